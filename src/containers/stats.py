"""Per-container aggregate statistics (the containers stats view).

The same relation is installed in PostgreSQL as ``containers_stats_view`` by
the initial migration. Queries here build it inline as a subquery so every
read recomputes it from the live inventory, client and type rows.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import Numeric, Select, Subquery, cast, distinct, func, select

from src.models.client import Client
from src.models.container import Container, ContainerType
from src.models.inventory import InventoryItem

VIEW_NAME = "containers_stats_view"


def container_stats_select() -> Select:
    """Build the aggregate SELECT grouped per container.

    Containers without inventory rows report 0 items, 0 volume and 0 weight
    rather than NULL; missing client/type references yield NULL names.
    """
    gross_weight = InventoryItem.unit_gross_weight_kg * InventoryItem.current_quantity
    return (
        select(
            Container.id,
            Container.container_number,
            Container.container_code,
            Container.bl_number,
            Container.start_date,
            Container.end_date,
            Container.status,
            Container.yard_location,
            Container.nominal_volume_m3,
            Container.base_cost,
            Container.client_id,
            Container.container_type,
            Container.created_by,
            Client.name.label("client_name"),
            Client.owner_id.label("client_owner_id"),
            ContainerType.name.label("container_type_name"),
            func.count(distinct(InventoryItem.sku)).label("items_count"),
            func.coalesce(
                func.sum(InventoryItem.total_volume_m3), cast(0, Numeric)
            ).label("used_volume"),
            func.coalesce(func.sum(gross_weight), cast(0, Numeric)).label(
                "total_gross_weight"
            ),
        )
        .select_from(Container)
        .outerjoin(Client, Container.client_id == Client.id)
        .outerjoin(ContainerType, Container.container_type == ContainerType.code)
        .outerjoin(InventoryItem, InventoryItem.container_id == Container.id)
        .group_by(Container.id, Client.name, Client.owner_id, ContainerType.name)
    )


def container_stats_subquery() -> Subquery:
    """Return the stats relation as a named subquery for further filtering."""
    return container_stats_select().subquery(VIEW_NAME)


@dataclass(frozen=True)
class InventoryTotals:
    """Aggregates for one container, matching the stats view columns."""

    items_count: int
    used_volume: Decimal
    total_gross_weight: Decimal


def summarize_inventory(items: Iterable[InventoryItem]) -> InventoryTotals:
    """Compute view-equivalent totals from already loaded inventory rows."""
    skus: set[str] = set()
    used_volume = Decimal("0")
    gross_weight = Decimal("0")
    for item in items:
        skus.add(item.sku)
        if item.total_volume_m3 is not None:
            used_volume += Decimal(item.total_volume_m3)
        if item.unit_gross_weight_kg is not None:
            gross_weight += Decimal(item.unit_gross_weight_kg) * item.current_quantity
    return InventoryTotals(
        items_count=len(skus),
        used_volume=used_volume,
        total_gross_weight=gross_weight,
    )


def occupancy_percent(used_volume: Decimal | float, nominal_volume: Decimal | float | None) -> float:
    """Share of nominal volume in use, 0 when the nominal volume is unknown."""
    if not nominal_volume:
        return 0.0
    return float(used_volume) / float(nominal_volume) * 100
