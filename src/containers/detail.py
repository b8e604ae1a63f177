"""Container detail composition: record, client, inventory and events."""

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.identity import Identity
from src.auth.policy import assert_container_visible
from src.containers.stats import InventoryTotals, summarize_inventory
from src.models.client import Client
from src.models.container import Container, ContainerType
from src.models.event import ContainerEvent
from src.models.inventory import InventoryItem


class ContainerNotFound(LookupError):
    """Raised when a container ID does not exist."""


@dataclass
class ContainerDetail:
    """A container with everything its detail screen shows."""

    container: Container
    client_name: str | None
    container_type_name: str | None
    inventory: list[InventoryItem]
    events: list[ContainerEvent]
    totals: InventoryTotals


async def load_visible_container(
    db: AsyncSession,
    container_id: int,
    identity: Identity,
) -> tuple[Container, str | None, str | None]:
    """Fetch one container and check the identity may see it.

    The visibility check runs before any related rows are read.

    Returns:
        Tuple of (container, client name, container type name).

    Raises:
        ContainerNotFound: If the container does not exist.
        AccessDenied: If the identity's scope excludes the container.
    """
    row = (
        await db.execute(
            select(Container, Client.name, Client.owner_id, ContainerType.name)
            .outerjoin(Client, Container.client_id == Client.id)
            .outerjoin(ContainerType, Container.container_type == ContainerType.code)
            .where(Container.id == container_id)
        )
    ).one_or_none()
    if row is None:
        raise ContainerNotFound(container_id)

    container, client_name, client_owner_id, type_name = row
    assert_container_visible(
        identity,
        container_id=container.id,
        client_id=container.client_id,
        client_owner_id=client_owner_id,
    )
    return container, client_name, type_name


async def load_container_detail(
    db: AsyncSession,
    container_id: int,
    identity: Identity,
) -> ContainerDetail:
    """Compose the detail view for a container.

    Args:
        db: Database session.
        container_id: Container to load.
        identity: Requesting identity.

    Returns:
        ContainerDetail with inventory and events (newest first).
    """
    container, client_name, type_name = await load_visible_container(
        db, container_id, identity
    )

    inventory_result = await db.execute(
        select(InventoryItem)
        .where(InventoryItem.container_id == container.id)
        .order_by(InventoryItem.id.asc())
    )
    inventory = list(inventory_result.scalars().all())

    events_result = await db.execute(
        select(ContainerEvent)
        .where(ContainerEvent.container_id == container.id)
        .order_by(ContainerEvent.created_at.desc(), ContainerEvent.id.desc())
    )
    events = list(events_result.scalars().all())

    return ContainerDetail(
        container=container,
        client_name=client_name,
        container_type_name=type_name,
        inventory=inventory,
        events=events,
        totals=summarize_inventory(inventory),
    )
