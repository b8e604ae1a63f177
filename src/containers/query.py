"""List/filter query builder for the container listing.

Builds a count and a page query over the stats relation from one
:class:`ContainerListQuery`. Filters are applied in this order: the
caller's mandatory scope (row visibility), then search, status, client
and container type.
"""

import enum
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import ColumnElement, RowMapping, Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.policy import scope_clauses
from src.containers.stats import container_stats_subquery
from src.models.container import ContainerStatus

ALL = "all"


class SortColumn(str, enum.Enum):
    """Sortable columns of the container list."""

    NUMBER = "number"
    CLIENT_NAME = "client_name"
    START_DATE = "start_date"
    STATUS = "status"
    ITEMS_COUNT = "items_count"
    USED_VOLUME = "used_volume"
    RECENT = "recent"


class SortDirection(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> "SortDirection":
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


# Stats view column behind each sort option. RECENT has no creation
# timestamp in the view and is ordered by start date, newest first.
SORT_COLUMNS: dict[SortColumn, str] = {
    SortColumn.NUMBER: "container_number",
    SortColumn.CLIENT_NAME: "client_name",
    SortColumn.START_DATE: "start_date",
    SortColumn.STATUS: "status",
    SortColumn.ITEMS_COUNT: "items_count",
    SortColumn.USED_VOLUME: "used_volume",
    SortColumn.RECENT: "start_date",
}


@dataclass(frozen=True)
class ContainerListQuery:
    """Everything needed to fetch one page of the container list.

    Attributes:
        page: 1-based page number.
        page_size: Rows per page.
        search: Case-insensitive substring of container number or client name.
        status: Exact status, or None for all statuses.
        client_id: Exact client, or None for all clients.
        container_type: Exact type code, or None for all types.
        sort: Sort option.
        direction: Sort direction (ignored by ``recent``).
        scope: Mandatory equality filters injected by the caller's role.
    """

    page: int = 1
    page_size: int = 10
    search: str = ""
    status: ContainerStatus | None = None
    client_id: int | None = None
    container_type: str | None = None
    sort: SortColumn = SortColumn.NUMBER
    direction: SortDirection = SortDirection.ASC
    scope: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size


@dataclass
class ContainerPage:
    """One page of stats rows plus the unpaginated match count."""

    items: list[RowMapping]
    total: int
    page: int
    page_size: int

    @property
    def page_count(self) -> int:
        return math.ceil(self.total / self.page_size)

    @property
    def page_info(self) -> str:
        """Human-readable range, e.g. ``Showing 21-25 of 25``."""
        if not self.items:
            return f"Showing 0-0 of {self.total}"
        first = (self.page - 1) * self.page_size + 1
        last = min(self.page * self.page_size, self.total)
        return f"Showing {first}-{last} of {self.total}"


def parse_status_filter(value: str | None) -> ContainerStatus | None:
    """Map a status filter value (``all`` or an enum value) to a status."""
    if value is None or value.strip().lower() in ("", ALL):
        return None
    return ContainerStatus(value.strip().lower())


def parse_client_filter(value: str | int | None) -> int | None:
    """Map a client filter value (``all`` or an ID) to a client ID."""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    text = value.strip().lower()
    if text in ("", ALL):
        return None
    if not text.isdigit():
        raise ValueError(f"Invalid client filter: {value!r}")
    return int(text)


def parse_type_filter(value: str | None) -> str | None:
    """Map a container type filter value (``all`` or a code) to a code."""
    if value is None or value.strip().lower() in ("", ALL):
        return None
    return value.strip()


def build_container_filters(
    query: ContainerListQuery,
    columns: Mapping[str, ColumnElement[Any]],
) -> list[ColumnElement[bool]]:
    """Build WHERE clauses over the stats columns, scope first."""
    filters = scope_clauses(columns, query.scope)

    term = query.search.strip().lower()
    if term:
        filters.append(
            or_(
                func.lower(columns["container_number"]).contains(term, autoescape=True),
                func.lower(func.coalesce(columns["client_name"], "")).contains(
                    term, autoescape=True
                ),
            )
        )
    if query.status is not None:
        filters.append(columns["status"] == query.status)
    if query.client_id is not None:
        filters.append(columns["client_id"] == query.client_id)
    if query.container_type is not None:
        filters.append(columns["container_type"] == query.container_type)
    return filters


def build_container_statements(query: ContainerListQuery) -> tuple[Select, Select]:
    """Build the (count, page) statement pair for a list query."""
    stats = container_stats_subquery()
    filters = build_container_filters(query, stats.c)

    if query.sort is SortColumn.RECENT:
        direction = SortDirection.DESC
    else:
        direction = query.direction

    sort_column = stats.c[SORT_COLUMNS[query.sort]]
    # id breaks ties so pages stay disjoint for equal sort keys
    if direction is SortDirection.ASC:
        order_by = (sort_column.asc(), stats.c.id.asc())
    else:
        order_by = (sort_column.desc(), stats.c.id.desc())

    count_stmt = select(func.count()).select_from(stats)
    list_stmt = select(stats).order_by(*order_by)
    if filters:
        count_stmt = count_stmt.where(*filters)
        list_stmt = list_stmt.where(*filters)

    return count_stmt, list_stmt.offset(query.offset).limit(query.limit)


async def fetch_container_page(
    db: AsyncSession,
    query: ContainerListQuery,
) -> ContainerPage:
    """Run a list query and return its page.

    Args:
        db: Database session.
        query: Filters, sort and page.

    Returns:
        ContainerPage with rows and total match count.
    """
    count_stmt, list_stmt = build_container_statements(query)

    total_result = await db.execute(count_stmt)
    total = int(total_result.scalar() or 0)

    rows_result = await db.execute(list_stmt)
    return ContainerPage(
        items=list(rows_result.mappings().all()),
        total=total,
        page=query.page,
        page_size=query.page_size,
    )
