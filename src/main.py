"""FastAPI application entry point with lifespan management."""

from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.auth import router as auth_router
from src.api.clients import router as clients_router
from src.api.container_types import router as container_types_router
from src.api.containers import router as containers_router
from src.api.dashboard import router as dashboard_router
from src.api.errors import install_exception_handlers
from src.api.health import router as health_router
from src.api.middleware import RequestContextMiddleware
from src.core.config import settings
from src.core.database import create_engine, create_session_factory
from src.core.logging import configure_logging, get_logger
from src.core.redis import create_redis_pool
from src.core.sentry import init_sentry

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle resources.

    Startup:
        - Configure structured logging
        - Initialize Sentry error tracking
        - Create database engine and session factory
        - Establish Redis connection pool

    Shutdown:
        - Close Redis connections
        - Dispose database engine
    """
    configure_logging()
    logger.info("Starting application", environment=settings.environment)

    init_sentry()

    app.state.db_engine = create_engine()
    app.state.async_session = create_session_factory(app.state.db_engine)
    logger.info("Database engine created")

    app.state.redis = await create_redis_pool()
    logger.info("Redis pool created")

    yield

    logger.info("Shutting down application")

    await app.state.redis.aclose()
    logger.info("Redis pool closed")

    await app.state.db_engine.dispose()
    logger.info("Database engine disposed")


app = FastAPI(
    title="Container Yard",
    description="Container, client, inventory and event tracking for a storage yard",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestContextMiddleware)

install_exception_handlers(app)

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(clients_router)
app.include_router(containers_router)
app.include_router(container_types_router)
app.include_router(dashboard_router)
