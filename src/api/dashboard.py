"""Dashboard KPI endpoint."""

from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_db, get_identity
from src.auth.identity import Identity
from src.containers.dashboard import build_dashboard

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


class TypeCountResponse(BaseModel):
    container_type: str
    name: str
    count: int


class TrendPointResponse(BaseModel):
    day: date
    count: int


class DashboardResponse(BaseModel):
    """KPIs and chart series computed from the caller's visible containers."""

    active_containers: int
    revenue: Decimal
    volume: Decimal
    containers_by_type: list[TypeCountResponse]
    events_trend: list[TrendPointResponse]


@router.get("", response_model=DashboardResponse)
async def get_dashboard(
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_identity),
) -> DashboardResponse:
    """Return dashboard KPIs for the caller's visible containers."""
    summary = await build_dashboard(db, identity)
    return DashboardResponse(
        active_containers=summary.active_containers,
        revenue=summary.revenue,
        volume=summary.volume,
        containers_by_type=[
            TypeCountResponse(
                container_type=entry.container_type,
                name=entry.name,
                count=entry.count,
            )
            for entry in summary.containers_by_type
        ],
        events_trend=[
            TrendPointResponse(day=point.day, count=point.count)
            for point in summary.events_trend
        ],
    )
