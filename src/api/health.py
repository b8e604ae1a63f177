"""Health check endpoint for infrastructure verification."""

from typing import Annotated

import redis.asyncio as redis
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_db, get_redis
from src.core.config import settings
from src.core.logging import get_logger
from src.core.redis import check_redis_health

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    environment: str
    db: str
    redis: str


@router.get("/health", response_model=HealthResponse)
async def health_check(
    db: Annotated[AsyncSession, Depends(get_db)],
    redis_pool: Annotated[redis.Redis, Depends(get_redis)],
) -> HealthResponse:
    """Check database and Redis connectivity.

    Returns:
        HealthResponse with status of each component; ``degraded`` when
        either is unreachable.
    """
    try:
        await db.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        logger.exception("database_health_check_failed", error=str(e))
        db_status = "disconnected"

    redis_status = "connected" if await check_redis_health(redis_pool) else "disconnected"

    return HealthResponse(
        status="ok"
        if db_status == "connected" and redis_status == "connected"
        else "degraded",
        environment=settings.environment,
        db=db_status,
        redis=redis_status,
    )
