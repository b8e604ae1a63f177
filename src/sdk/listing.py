"""Debounced, last-write-wins container list controller.

Every filter change schedules a fetch after ``settings.list_debounce_ms`` of
quiet; a change arriving during the wait restarts it. Each fetch takes a
sequence number and its response is applied only if no newer fetch was
started meanwhile. A failed fetch leaves the previous rows and filters in
place and posts one error notice.
"""

import asyncio
from dataclasses import dataclass, field, replace
from typing import Any

from src.core.config import settings
from src.core.logging import get_logger
from src.sdk.notices import NoticeBoard
from src.sdk.session import GENERIC_FAILURE_MESSAGE, ApiError, YardSession

logger = get_logger(__name__)

ALL = "all"
LIST_FAILURE_MESSAGE = "Could not load containers"


@dataclass(frozen=True)
class ListFilters:
    """Current list controls as sent to ``GET /api/containers``."""

    page: int = 1
    page_size: int = 10
    search: str = ""
    status: str = ALL
    client_id: str = ALL
    container_type: str = ALL
    sort: str = "number"
    direction: str = "asc"

    def to_params(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "page_size": self.page_size,
            "search": self.search,
            "status": self.status,
            "client_id": self.client_id,
            "container_type": self.container_type,
            "sort": self.sort,
            "direction": self.direction,
        }


@dataclass
class ListState:
    """Rows and paging info last applied to the list."""

    items: list[dict[str, Any]] = field(default_factory=list)
    total: int = 0
    page_count: int = 0
    page_info: str = "Showing 0-0 of 0"
    loading: bool = False
    applied_filters: ListFilters | None = None


class ContainerListController:
    """Drive the container list from filter changes.

    Args:
        session: Signed-in session used for requests.
        notices: Board receiving failure notices.
        debounce_ms: Quiet period before fetching; defaults to settings.
    """

    def __init__(
        self,
        session: YardSession,
        notices: NoticeBoard,
        *,
        debounce_ms: int | None = None,
    ) -> None:
        self.session = session
        self.notices = notices
        self.debounce_seconds = (
            debounce_ms if debounce_ms is not None else settings.list_debounce_ms
        ) / 1000
        self.filters = ListFilters(page_size=settings.page_size_options[0])
        self.state = ListState()
        self._sequence = 0
        self._debounce: asyncio.Task[None] | None = None
        self._in_flight: set[asyncio.Task[None]] = set()

    def set_filters(self, **changes: Any) -> None:
        """Change filters and schedule a fetch.

        Any change other than ``page`` itself returns to the first page.
        """
        if "page" not in changes:
            changes["page"] = 1
        self.filters = replace(self.filters, **changes)
        self._schedule()

    def set_page(self, page: int) -> None:
        self.set_filters(page=page)

    def toggle_sort(self, column: str) -> None:
        """Sort by ``column``; picking the current column flips direction."""
        if column == self.filters.sort:
            direction = "desc" if self.filters.direction == "asc" else "asc"
        else:
            direction = "asc"
        self.set_filters(sort=column, direction=direction)

    def clear_filters(self) -> None:
        self.set_filters(search="", status=ALL, client_id=ALL, container_type=ALL)

    async def refresh(self) -> None:
        """Fetch immediately with the current filters."""
        await self._fetch()

    async def wait_idle(self) -> None:
        """Wait until no debounce timer or fetch is pending."""
        while True:
            pending = [
                task
                for task in (self._debounce, *self._in_flight)
                if task is not None and not task.done()
            ]
            if not pending:
                return
            await asyncio.wait(pending)

    def _schedule(self) -> None:
        if self._debounce is not None and not self._debounce.done():
            self._debounce.cancel()
        self._debounce = asyncio.create_task(self._debounced_fetch())

    async def _debounced_fetch(self) -> None:
        await asyncio.sleep(self.debounce_seconds)
        fetch = asyncio.create_task(self._fetch())
        self._in_flight.add(fetch)
        fetch.add_done_callback(self._in_flight.discard)

    async def _fetch(self) -> None:
        self._sequence += 1
        sequence = self._sequence
        filters = self.filters
        self.state.loading = True
        try:
            data = await self.session.request(
                "GET", "/api/containers", params=filters.to_params()
            )
            page = _page_state(data, filters)
        except ApiError as exc:
            if sequence == self._sequence:
                self.state.loading = False
                self.notices.error(
                    exc.message if exc.status_code else LIST_FAILURE_MESSAGE,
                    redirect_to=exc.redirect_to,
                )
            logger.warning(
                "container_list_fetch_failed",
                sequence=sequence,
                status_code=exc.status_code,
            )
            return

        if sequence != self._sequence:
            logger.debug("stale_list_response_discarded", sequence=sequence)
            return

        self.state = page


def _page_state(data: Any, filters: ListFilters) -> ListState:
    """Build the list state from a page body, rejecting malformed ones."""
    try:
        return ListState(
            items=list(data["items"]),
            total=int(data["total"]),
            page_count=int(data["page_count"]),
            page_info=str(data["page_info"]),
            loading=False,
            applied_filters=filters,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ApiError(200, GENERIC_FAILURE_MESSAGE) from exc
