"""API module exports."""

from src.api.auth import router as auth_router
from src.api.clients import router as clients_router
from src.api.container_types import router as container_types_router
from src.api.containers import router as containers_router
from src.api.dashboard import router as dashboard_router
from src.api.deps import get_db, get_identity, get_redis, require_admin
from src.api.errors import install_exception_handlers
from src.api.health import router as health_router

__all__ = [
    "auth_router",
    "clients_router",
    "container_types_router",
    "containers_router",
    "dashboard_router",
    "get_db",
    "get_identity",
    "get_redis",
    "health_router",
    "install_exception_handlers",
    "require_admin",
]
