"""Account and session SQLAlchemy models."""

import enum
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin, utcnow

if TYPE_CHECKING:
    from src.models.client import Client


class Role(enum.Enum):
    """Account roles.

    - admin: sees and edits every row
    - member: sees clients it owns and their containers
    - operator: restricted to the single client it is assigned to
    """

    ADMIN = "admin"
    MEMBER = "member"
    OPERATOR = "operator"


class User(Base, TimestampMixin):
    """Represents an account that can sign in."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str | None] = mapped_column(String(255))
    full_name: Mapped[str | None] = mapped_column(String(255))
    role: Mapped[Role] = mapped_column(
        Enum(Role, values_callable=lambda roles: [role.value for role in roles]),
        default=Role.MEMBER,
        nullable=False,
    )
    client_id: Mapped[int | None] = mapped_column(
        ForeignKey("clients.id", use_alter=True, name="fk_users_client_id")
    )
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    sessions: Mapped[list["AuthSession"]] = relationship(back_populates="user")
    assigned_client: Mapped["Client | None"] = relationship(foreign_keys=[client_id])


class AuthSession(Base):
    """Opaque bearer token issued at sign-in.

    Tokens slide forward on every authenticated request and are revoked,
    never deleted, on sign-out.
    """

    __tablename__ = "auth_sessions"

    id: Mapped[int] = mapped_column(primary_key=True)
    token: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    ip: Mapped[str | None] = mapped_column(String(64))
    user_agent: Mapped[str | None] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )
    last_seen_at: Mapped[datetime | None] = mapped_column(DateTime)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime)

    # Relationships
    user: Mapped["User"] = relationship(back_populates="sessions")
