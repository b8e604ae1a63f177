"""Client-related SQLAlchemy models."""

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.container import Container


class Client(Base, TimestampMixin):
    """Represents a business that owns containers in the yard.

    Clients are never deleted; ``owner_id`` is the account that created the
    row and the only non-admin account allowed to read or write it.
    """

    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    trade_name: Mapped[str | None] = mapped_column(String(200))
    tax_id: Mapped[str] = mapped_column(String(14), nullable=False, unique=True)
    email: Mapped[str | None] = mapped_column(String(100))
    phone: Mapped[str | None] = mapped_column(String(20))
    address: Mapped[str | None] = mapped_column(String(300))
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False)
    owner_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"))

    # Relationships
    containers: Mapped[list["Container"]] = relationship(back_populates="client")
