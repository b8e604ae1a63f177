"""Redis pool for short-lived single-use auth tokens (recovery, OAuth state)."""

import redis.asyncio as redis

from src.core.config import settings
from src.core.logging import get_logger

logger = get_logger(__name__)


async def create_redis_pool() -> redis.Redis:
    """Create the pool stored on ``app.state.redis`` by the lifespan.

    Responses are decoded to ``str`` because every stored value is a short
    token payload (a user ID or a marker).
    """
    return redis.Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        max_connections=20,
    )


async def take_token(pool: redis.Redis, key: str) -> str | None:
    """Read and delete a single-use token in one command.

    ``GETDEL`` is atomic, so of two concurrent requests presenting the same
    token only one gets its value.

    Returns:
        The stored value, or None if the key is unknown or already taken.
    """
    return await pool.getdel(key)


async def check_redis_health(pool: redis.Redis) -> bool:
    """Return True if Redis answers a ping."""
    try:
        await pool.ping()
        return True
    except Exception as e:
        logger.exception("redis_health_check_failed", error=str(e))
        return False
