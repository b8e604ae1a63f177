"""Pytest configuration and shared fixtures for tests."""

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.api.deps import get_db
from src.auth.identity import Identity
from src.auth.passwords import hash_password
from src.auth.sessions import create_session
from src.main import app
from src.models import Base, Client, Container, ContainerStatus, ContainerType, User
from src.models.user import Role
from tests.fakes import FakeRedis

DEFAULT_PASSWORD = "secret123"


@dataclass
class Account:
    """A seeded user with an open session."""

    user_id: int
    email: str
    token: str
    identity: Identity

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


class Seeder:
    """Insert committed rows for API and query tests."""

    def __init__(self, factory: async_sessionmaker[AsyncSession]) -> None:
        self.factory = factory
        self._tax_counter = 0

    async def account(
        self,
        email: str,
        role: Role = Role.MEMBER,
        client_id: int | None = None,
        password: str = DEFAULT_PASSWORD,
    ) -> Account:
        async with self.factory() as session:
            user = User(
                email=email,
                password_hash=hash_password(password),
                role=role,
                client_id=client_id,
            )
            session.add(user)
            await session.flush()
            auth_session = await create_session(session, user)
            await session.commit()
            return Account(
                user_id=user.id,
                email=email,
                token=auth_session.token,
                identity=Identity.from_user(user),
            )

    async def container_type(
        self, code: str, name: str | None = None, default_base_cost: str | None = None
    ) -> str:
        async with self.factory() as session:
            session.add(
                ContainerType(
                    code=code,
                    name=name or code,
                    default_base_cost=Decimal(default_base_cost)
                    if default_base_cost is not None
                    else None,
                )
            )
            await session.commit()
        return code

    async def client(self, name: str, owner_id: int | None, tax_id: str | None = None) -> int:
        self._tax_counter += 1
        async with self.factory() as session:
            client = Client(
                name=name,
                tax_id=tax_id or f"{self._tax_counter:014d}",
                owner_id=owner_id,
            )
            session.add(client)
            await session.commit()
            return client.id

    async def container(
        self,
        number: str,
        client_id: int,
        container_type: str = "20DV",
        status: ContainerStatus = ContainerStatus.ACTIVE,
        start_date: date = date(2024, 1, 1),
        **fields: object,
    ) -> int:
        async with self.factory() as session:
            container = Container(
                container_number=number,
                client_id=client_id,
                container_type=container_type,
                status=status,
                start_date=start_date,
                **fields,
            )
            session.add(container)
            await session.commit()
            return container.id


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Create a sqlite-backed session factory with every table."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False)
    app.state.async_session = factory
    try:
        yield factory
    finally:
        await engine.dispose()


@pytest.fixture
def fake_redis() -> FakeRedis:
    """Install an in-memory Redis on the app."""
    redis_pool = FakeRedis()
    app.state.redis = redis_pool
    return redis_pool


@pytest.fixture
def seeder(session_factory: async_sessionmaker[AsyncSession]) -> Seeder:
    return Seeder(session_factory)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Open a session for direct query tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def override_db(session_factory: async_sessionmaker[AsyncSession]):
    """Route the get_db dependency to the sqlite session factory."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def api_client(override_db, fake_redis: FakeRedis) -> AsyncGenerator[AsyncClient, None]:
    """Create API client with DB dependency override."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
