"""SQLAlchemy models for the container yard tracker."""

from src.models.base import Base
from src.models.client import Client
from src.models.container import Container, ContainerStatus, ContainerType
from src.models.event import SUGGESTED_EVENT_TYPES, ContainerEvent
from src.models.inventory import InventoryItem
from src.models.user import AuthSession, Role, User

__all__ = [
    "Base",
    "User",
    "Role",
    "AuthSession",
    "Client",
    "Container",
    "ContainerStatus",
    "ContainerType",
    "InventoryItem",
    "ContainerEvent",
    "SUGGESTED_EVENT_TYPES",
]
