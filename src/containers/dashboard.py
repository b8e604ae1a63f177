"""Dashboard KPIs computed from the visible container rows.

Revenue and volume are estimates: a container's own base cost / nominal
volume wins, then its type's default cost, then a flat rate by size
(40-foot types vs. everything else).
"""

from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.identity import Identity
from src.auth.policy import container_scope, scope_clauses
from src.containers.stats import container_stats_subquery
from src.models.base import utcnow
from src.models.client import Client
from src.models.container import Container, ContainerStatus, ContainerType
from src.models.event import ContainerEvent

LARGE_TYPE_MARKER = "40"
LARGE_REVENUE = Decimal("1200")
SMALL_REVENUE = Decimal("800")
LARGE_VOLUME = Decimal("67")
SMALL_VOLUME = Decimal("33")
RECENT_EVENTS_LIMIT = 50


@dataclass
class TypeCount:
    container_type: str
    name: str
    count: int


@dataclass
class TrendPoint:
    day: date
    count: int


@dataclass
class DashboardSummary:
    """KPIs and chart series for the dashboard."""

    active_containers: int
    revenue: Decimal
    volume: Decimal
    containers_by_type: list[TypeCount]
    events_trend: list[TrendPoint]


def _is_large(type_code: str | None) -> bool:
    return LARGE_TYPE_MARKER in (type_code or "")


def estimate_revenue(row: Mapping[str, Any], default_costs: Mapping[str, Decimal | None]) -> Decimal:
    """Estimate monthly revenue for one container row."""
    if row["base_cost"]:
        return Decimal(row["base_cost"])
    default_cost = default_costs.get(row["container_type"])
    if default_cost:
        return Decimal(default_cost)
    return LARGE_REVENUE if _is_large(row["container_type"]) else SMALL_REVENUE


def estimate_volume(row: Mapping[str, Any]) -> Decimal:
    """Estimate the volume of one container row in m3."""
    if row["nominal_volume_m3"]:
        return Decimal(row["nominal_volume_m3"])
    return LARGE_VOLUME if _is_large(row["container_type"]) else SMALL_VOLUME


def summarize_containers(
    rows: Iterable[Mapping[str, Any]],
    default_costs: Mapping[str, Decimal | None],
) -> tuple[int, Decimal, Decimal, list[TypeCount]]:
    """Compute active count, revenue, volume and per-type counts.

    Args:
        rows: Stats view rows visible to the identity.
        default_costs: Container type code to default base cost.

    Returns:
        Tuple of (active count, revenue, volume, per-type counts).
    """
    active = 0
    revenue = Decimal("0")
    volume = Decimal("0")
    type_counts: Counter[str] = Counter()
    type_names: dict[str, str] = {}

    for row in rows:
        if row["status"] == ContainerStatus.ACTIVE:
            active += 1
        revenue += estimate_revenue(row, default_costs)
        volume += estimate_volume(row)
        code = row["container_type"]
        type_counts[code] += 1
        type_names.setdefault(code, row["container_type_name"] or code)

    by_type = [
        TypeCount(container_type=code, name=type_names[code], count=count)
        for code, count in type_counts.most_common()
    ]
    return active, revenue, volume, by_type


def events_trend(timestamps: Iterable[datetime], today: date | None = None) -> list[TrendPoint]:
    """Bucket event timestamps per day, oldest day first.

    Returns a single zero point for ``today`` when there are no events.
    """
    per_day = Counter(moment.date() for moment in timestamps)
    if not per_day:
        return [TrendPoint(day=today or utcnow().date(), count=0)]
    return [TrendPoint(day=day, count=per_day[day]) for day in sorted(per_day)]


async def build_dashboard(db: AsyncSession, identity: Identity) -> DashboardSummary:
    """Fetch visible containers and recent events and compute the dashboard."""
    scope = container_scope(identity)

    stats = container_stats_subquery()
    stmt = select(stats)
    clauses = scope_clauses(stats.c, scope)
    if clauses:
        stmt = stmt.where(*clauses)
    rows = (await db.execute(stmt)).mappings().all()

    types_result = await db.execute(
        select(ContainerType.code, ContainerType.default_base_cost)
    )
    default_costs = {code: cost for code, cost in types_result.all()}

    active, revenue, volume, by_type = summarize_containers(rows, default_costs)

    event_columns = {
        "client_id": Container.client_id,
        "client_owner_id": Client.owner_id,
    }
    events_stmt = (
        select(ContainerEvent.created_at)
        .join(Container, ContainerEvent.container_id == Container.id)
        .outerjoin(Client, Container.client_id == Client.id)
        .order_by(ContainerEvent.created_at.desc())
        .limit(RECENT_EVENTS_LIMIT)
    )
    event_clauses = scope_clauses(event_columns, scope)
    if event_clauses:
        events_stmt = events_stmt.where(*event_clauses)
    timestamps = (await db.execute(events_stmt)).scalars().all()

    return DashboardSummary(
        active_containers=active,
        revenue=revenue,
        volume=volume,
        containers_by_type=by_type,
        events_trend=events_trend(timestamps),
    )
