"""FastAPI dependency injection for database, Redis and identity access."""

from collections.abc import AsyncGenerator
from typing import TYPE_CHECKING, Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.identity import Identity
from src.auth.policy import assert_admin
from src.auth.sessions import load_identity
from src.core.logging import role_ctx, user_id_ctx

if TYPE_CHECKING:
    import redis.asyncio as redis


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session from the app's session factory.

    Args:
        request: FastAPI request containing app state.

    Yields:
        AsyncSession for database operations with automatic commit/rollback.
    """
    async with request.app.state.async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_redis(request: Request) -> "redis.Redis":
    """Get Redis connection pool from app state.

    Args:
        request: FastAPI request containing app state.

    Returns:
        Redis connection pool for recovery and OAuth state tokens.
    """
    return request.app.state.redis


def bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_identity(
    db: Annotated[AsyncSession, Depends(get_db)],
    authorization: str | None = Header(default=None),
) -> Identity:
    """Resolve the bearer session to an identity.

    Args:
        db: Request database session.
        authorization: Raw Authorization header.

    Returns:
        Identity of the signed-in account.

    Raises:
        HTTPException: 401 if the token is missing, unknown, revoked or expired.
    """
    identity = await load_identity(db, bearer_token(authorization))
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user_id_ctx.set(identity.user_id)
    role_ctx.set(identity.role.value)
    return identity


async def require_admin(
    identity: Annotated[Identity, Depends(get_identity)],
) -> Identity:
    """Like :func:`get_identity` but only for admin accounts."""
    assert_admin(identity)
    return identity
