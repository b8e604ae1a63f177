"""Container listing, aggregation, detail, dashboard and lifecycle."""

from src.containers.dashboard import DashboardSummary, build_dashboard
from src.containers.detail import (
    ContainerDetail,
    ContainerNotFound,
    load_container_detail,
    load_visible_container,
)
from src.containers.lifecycle import (
    ContainerStateMachine,
    TransitionNotAllowed,
    transition_status,
)
from src.containers.query import (
    ContainerListQuery,
    ContainerPage,
    SortColumn,
    SortDirection,
    fetch_container_page,
)
from src.containers.stats import container_stats_subquery, summarize_inventory

__all__ = [
    # Listing
    "ContainerListQuery",
    "ContainerPage",
    "SortColumn",
    "SortDirection",
    "fetch_container_page",
    # Aggregation
    "container_stats_subquery",
    "summarize_inventory",
    # Detail
    "ContainerDetail",
    "ContainerNotFound",
    "load_container_detail",
    "load_visible_container",
    # Dashboard
    "DashboardSummary",
    "build_dashboard",
    # Lifecycle
    "ContainerStateMachine",
    "TransitionNotAllowed",
    "transition_status",
]
