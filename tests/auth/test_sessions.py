"""Tests for bearer session tokens."""

from datetime import timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.passwords import hash_password, verify_password
from src.auth.sessions import (
    create_session,
    load_identity,
    revoke_session,
    revoke_user_sessions,
)
from src.models.base import utcnow
from src.models.user import AuthSession, Role, User


async def _user(db: AsyncSession, email: str = "user@example.com", **fields) -> User:
    user = User(email=email, password_hash=hash_password("secret123"), **fields)
    db.add(user)
    await db.flush()
    return user


def test_password_hash_round_trip() -> None:
    hashed = hash_password("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("secret123", None)


@pytest.mark.asyncio
async def test_session_resolves_to_identity(db_session: AsyncSession) -> None:
    user = await _user(db_session, role=Role.OPERATOR, full_name="Op")
    auth_session = await create_session(db_session, user, ip="127.0.0.1", user_agent="pytest")

    identity = await load_identity(db_session, auth_session.token)

    assert identity is not None
    assert identity.user_id == user.id
    assert identity.role is Role.OPERATOR
    assert auth_session.last_seen_at is not None


@pytest.mark.asyncio
async def test_unknown_expired_and_revoked_tokens(db_session: AsyncSession) -> None:
    user = await _user(db_session)
    expired = await create_session(db_session, user)
    expired.expires_at = utcnow() - timedelta(minutes=1)
    revoked = await create_session(db_session, user)
    await db_session.flush()

    assert await load_identity(db_session, None) is None
    assert await load_identity(db_session, "missing") is None
    assert await load_identity(db_session, expired.token) is None

    assert await revoke_session(db_session, revoked.token) is True
    assert await revoke_session(db_session, revoked.token) is False
    assert await load_identity(db_session, revoked.token) is None


@pytest.mark.asyncio
async def test_inactive_user_has_no_identity(db_session: AsyncSession) -> None:
    user = await _user(db_session, active=False)
    auth_session = await create_session(db_session, user)

    assert await load_identity(db_session, auth_session.token) is None


@pytest.mark.asyncio
async def test_revoke_user_sessions(db_session: AsyncSession) -> None:
    user = await _user(db_session)
    first = await create_session(db_session, user)
    second = await create_session(db_session, user)

    await revoke_user_sessions(db_session, user.id)
    await db_session.commit()

    tokens = [first.token, second.token]
    result = await db_session.execute(
        select(AuthSession.revoked_at).where(AuthSession.token.in_(tokens))
    )
    assert all(revoked_at is not None for revoked_at in result.scalars().all())
