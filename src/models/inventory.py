"""Inventory SQLAlchemy models."""

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.container import Container


class InventoryItem(Base, TimestampMixin):
    """A stock line stored inside exactly one container.

    ``total_volume_m3`` is derived from quantity and unit volume when the
    line is written; the stats view sums it per container.
    """

    __tablename__ = "inventory"

    id: Mapped[int] = mapped_column(primary_key=True)
    container_id: Mapped[int] = mapped_column(
        ForeignKey("containers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sku: Mapped[str] = mapped_column(String(100), nullable=False)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    current_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_volume_m3: Mapped[Decimal | None] = mapped_column(Numeric(12, 4))
    unit_gross_weight_kg: Mapped[Decimal | None] = mapped_column(Numeric(12, 3))
    total_volume_m3: Mapped[Decimal | None] = mapped_column(Numeric(14, 4))

    # Relationships
    container: Mapped["Container"] = relationship(back_populates="inventory_items")
