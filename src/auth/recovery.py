"""One-time password recovery tokens stored in Redis.

The reset link is a credential. It is handed to a :data:`ResetLinkSender`
and never written to the logs outside development.
"""

import secrets
from collections.abc import Awaitable, Callable
from urllib.parse import urlencode

import redis.asyncio as redis

from src.core.config import settings
from src.core.logging import get_logger
from src.core.redis import take_token

logger = get_logger(__name__)

RECOVERY_KEY_PREFIX = "auth:recovery:"

# Delivers a reset link to an email address (mail, queue, test capture).
ResetLinkSender = Callable[[str, str], Awaitable[None]]


async def issue_recovery_token(pool: redis.Redis, user_id: int) -> str:
    """Store a fresh recovery token for a user and return it.

    Args:
        pool: Redis connection pool.
        user_id: Account the token resets.

    Returns:
        URL-safe token valid for ``settings.recovery_token_ttl_seconds``.
    """
    token = secrets.token_urlsafe(32)
    await pool.set(
        f"{RECOVERY_KEY_PREFIX}{token}",
        str(user_id),
        ex=settings.recovery_token_ttl_seconds,
    )
    return token


async def consume_recovery_token(pool: redis.Redis, token: str) -> int | None:
    """Return the user ID for a token and invalidate it, or None if unknown."""
    value = await take_token(pool, f"{RECOVERY_KEY_PREFIX}{token}")
    return int(value) if value is not None else None


def build_reset_link(token: str) -> str:
    """Build the frontend reset link carrying the token in the URL fragment."""
    fragment = urlencode({"access_token": token, "type": "recovery"})
    return f"{settings.app_base_url.rstrip('/')}/reset-password#{fragment}"


async def log_reset_link(email: str, link: str) -> None:
    """Default sender: mail delivery is not wired, so only development sees the link."""
    if settings.environment != "development":
        logger.warning("reset_link_not_delivered")
        return
    logger.info("reset_link_for_development", reset_link=link)
