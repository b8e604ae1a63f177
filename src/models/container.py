"""Container and container type SQLAlchemy models."""

import enum
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    Date,
    Enum,
    ForeignKey,
    Numeric,
    SmallInteger,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.client import Client
    from src.models.event import ContainerEvent
    from src.models.inventory import InventoryItem


class ContainerStatus(enum.Enum):
    """Enumeration of container lifecycle statuses."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    CLOSED = "closed"


class ContainerType(Base):
    """Catalog entry describing a container size/kind (e.g. 20DV, 40HC)."""

    __tablename__ = "container_types"

    code: Mapped[str] = mapped_column(String(20), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    default_base_cost: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))


class Container(Base, TimestampMixin):
    """Represents a tracked shipping/storage container."""

    __tablename__ = "containers"
    __table_args__ = (
        CheckConstraint(
            "measurement_day IS NULL OR (measurement_day BETWEEN 1 AND 31)",
            name="ck_containers_measurement_day",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    container_number: Mapped[str] = mapped_column(
        String(20), nullable=False, unique=True
    )
    container_code: Mapped[str | None] = mapped_column(String(50))
    bl_number: Mapped[str | None] = mapped_column(String(50))
    client_id: Mapped[int] = mapped_column(
        ForeignKey("clients.id"), nullable=False, index=True
    )
    container_type: Mapped[str] = mapped_column(
        ForeignKey("container_types.code"), nullable=False
    )
    status: Mapped[ContainerStatus] = mapped_column(
        Enum(
            ContainerStatus,
            name="container_status",
            values_callable=lambda statuses: [status.value for status in statuses],
        ),
        default=ContainerStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date)
    yard_location: Mapped[str | None] = mapped_column(String(100))
    nominal_volume_m3: Mapped[Decimal | None] = mapped_column(Numeric(10, 3))
    base_cost: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    measurement_day: Mapped[int | None] = mapped_column(SmallInteger)
    notes: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"))

    # Relationships
    client: Mapped["Client"] = relationship(back_populates="containers")
    type_info: Mapped["ContainerType"] = relationship()
    inventory_items: Mapped[list["InventoryItem"]] = relationship(
        back_populates="container",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    events: Mapped[list["ContainerEvent"]] = relationship(
        back_populates="container",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
