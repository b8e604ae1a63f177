"""Bearer session tokens backed by the auth_sessions table."""

import secrets
from datetime import datetime, timedelta

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.identity import Identity
from src.core.config import settings
from src.models.base import utcnow
from src.models.user import AuthSession, User


def _session_expiry(now: datetime | None = None) -> datetime:
    return (now or utcnow()) + timedelta(minutes=settings.session_ttl_minutes)


async def create_session(
    db: AsyncSession,
    user: User,
    *,
    ip: str | None = None,
    user_agent: str | None = None,
) -> AuthSession:
    """Open a new session for a user and return it (token included).

    Args:
        db: Database session.
        user: Account that signed in.
        ip: Client IP, for auditing.
        user_agent: Client user agent, for auditing.

    Returns:
        The persisted AuthSession.
    """
    auth_session = AuthSession(
        token=secrets.token_urlsafe(48),
        user_id=user.id,
        ip=ip,
        user_agent=(user_agent or "")[:500] or None,
        expires_at=_session_expiry(),
    )
    db.add(auth_session)
    await db.flush()
    return auth_session


async def load_identity(db: AsyncSession, token: str | None) -> Identity | None:
    """Resolve a bearer token to an identity, sliding its expiry.

    Returns None for unknown, revoked or expired tokens and for inactive
    accounts.
    """
    if not token:
        return None

    row = (
        await db.execute(
            select(AuthSession, User)
            .join(User, User.id == AuthSession.user_id)
            .where(AuthSession.token == token)
        )
    ).one_or_none()
    if row is None:
        return None

    auth_session, user = row
    now = utcnow()
    if auth_session.revoked_at is not None or auth_session.expires_at <= now:
        return None
    if not user.active:
        return None

    auth_session.last_seen_at = now
    auth_session.expires_at = _session_expiry(now)
    return Identity.from_user(user)


async def revoke_session(db: AsyncSession, token: str) -> bool:
    """Revoke one session token. Returns False if it was unknown or already revoked."""
    auth_session = (
        await db.execute(select(AuthSession).where(AuthSession.token == token))
    ).scalar_one_or_none()
    if auth_session is None or auth_session.revoked_at is not None:
        return False
    auth_session.revoked_at = utcnow()
    return True


async def revoke_user_sessions(db: AsyncSession, user_id: int) -> None:
    """Revoke every open session of a user (after a password reset)."""
    await db.execute(
        update(AuthSession)
        .where(AuthSession.user_id == user_id)
        .where(AuthSession.revoked_at.is_(None))
        .values(revoked_at=utcnow())
    )
