"""Container API endpoints: listing, forms, detail, lifecycle, inventory and events."""

from datetime import date, datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel
from sqlalchemy import RowMapping, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_db, get_identity
from src.auth.identity import Identity
from src.auth.policy import can_view_client, container_scope
from src.containers.detail import load_container_detail, load_visible_container
from src.containers.lifecycle import TransitionNotAllowed, transition_status
from src.containers.query import (
    ALL,
    ContainerListQuery,
    SortColumn,
    SortDirection,
    fetch_container_page,
    parse_client_filter,
    parse_status_filter,
    parse_type_filter,
)
from src.containers.stats import occupancy_percent
from src.core.config import settings
from src.core.database import is_unique_violation
from src.core.logging import get_logger
from src.forms.containers import (
    ContainerCreateForm,
    ContainerUpdateForm,
    EventForm,
    InventoryItemForm,
)
from src.forms.errors import DuplicateValueError, FormError
from src.models.client import Client
from src.models.container import Container, ContainerStatus, ContainerType
from src.models.event import SUGGESTED_EVENT_TYPES, ContainerEvent
from src.models.inventory import InventoryItem

logger = get_logger(__name__)

router = APIRouter(prefix="/api/containers", tags=["containers"])


class ContainerStatusUpdateRequest(BaseModel):
    """Payload for moving a container through its lifecycle."""

    status: ContainerStatus


class ContainerResponse(BaseModel):
    """Container response model."""

    id: int
    container_number: str
    container_code: str | None
    bl_number: str | None
    client_id: int
    container_type: str
    status: str
    start_date: date
    end_date: date | None
    yard_location: str | None
    nominal_volume_m3: Decimal | None
    base_cost: Decimal | None
    measurement_day: int | None
    notes: str | None
    created_by: int | None
    created_at: datetime
    updated_at: datetime | None


class ContainerRowResponse(BaseModel):
    """One row of the container list (stats view)."""

    id: int
    container_number: str
    container_code: str | None
    bl_number: str | None
    client_id: int
    client_name: str | None
    container_type: str
    container_type_name: str | None
    status: str
    start_date: date
    end_date: date | None
    yard_location: str | None
    nominal_volume_m3: Decimal | None
    base_cost: Decimal | None
    items_count: int
    used_volume: Decimal
    total_gross_weight: Decimal


class ContainerListResponse(BaseModel):
    """Paginated container list response."""

    items: list[ContainerRowResponse]
    total: int
    page: int
    page_size: int
    page_count: int
    page_info: str


class InventoryItemResponse(BaseModel):
    id: int
    container_id: int
    sku: str
    product_name: str
    current_quantity: int
    unit_volume_m3: Decimal | None
    unit_gross_weight_kg: Decimal | None
    total_volume_m3: Decimal | None
    created_at: datetime


class EventResponse(BaseModel):
    id: int
    container_id: int
    event_type: str
    quantity: int | None
    notes: str | None
    created_by: int | None
    created_at: datetime


class ContainerDetailResponse(BaseModel):
    """Container with client, inventory and events (newest first)."""

    container: ContainerResponse
    client_name: str | None
    container_type_name: str | None
    inventory: list[InventoryItemResponse]
    events: list[EventResponse]
    items_count: int
    used_volume: Decimal
    total_gross_weight: Decimal
    occupancy_percent: float
    suggested_event_types: list[str]


def _to_container_response(container: Container) -> ContainerResponse:
    """Map SQLAlchemy container model to response model."""
    return ContainerResponse(
        id=container.id,
        container_number=container.container_number,
        container_code=container.container_code,
        bl_number=container.bl_number,
        client_id=container.client_id,
        container_type=container.container_type,
        status=container.status.value,
        start_date=container.start_date,
        end_date=container.end_date,
        yard_location=container.yard_location,
        nominal_volume_m3=container.nominal_volume_m3,
        base_cost=container.base_cost,
        measurement_day=container.measurement_day,
        notes=container.notes,
        created_by=container.created_by,
        created_at=container.created_at,
        updated_at=container.updated_at,
    )


def _to_row_response(row: RowMapping) -> ContainerRowResponse:
    """Map a stats view row to response model."""
    return ContainerRowResponse(
        id=row["id"],
        container_number=row["container_number"],
        container_code=row["container_code"],
        bl_number=row["bl_number"],
        client_id=row["client_id"],
        client_name=row["client_name"],
        container_type=row["container_type"],
        container_type_name=row["container_type_name"],
        status=row["status"].value,
        start_date=row["start_date"],
        end_date=row["end_date"],
        yard_location=row["yard_location"],
        nominal_volume_m3=row["nominal_volume_m3"],
        base_cost=row["base_cost"],
        items_count=int(row["items_count"]),
        used_volume=Decimal(row["used_volume"]),
        total_gross_weight=Decimal(row["total_gross_weight"]),
    )


def _to_item_response(item: InventoryItem) -> InventoryItemResponse:
    return InventoryItemResponse(
        id=item.id,
        container_id=item.container_id,
        sku=item.sku,
        product_name=item.product_name,
        current_quantity=item.current_quantity,
        unit_volume_m3=item.unit_volume_m3,
        unit_gross_weight_kg=item.unit_gross_weight_kg,
        total_volume_m3=item.total_volume_m3,
        created_at=item.created_at,
    )


def _to_event_response(event: ContainerEvent) -> EventResponse:
    return EventResponse(
        id=event.id,
        container_id=event.container_id,
        event_type=event.event_type,
        quantity=event.quantity,
        notes=event.notes,
        created_by=event.created_by,
        created_at=event.created_at,
    )


def _field_error(location: str, field: str, message: str) -> RequestValidationError:
    """Build a validation error reported like a failed form field."""
    return RequestValidationError(
        [{"loc": (location, field), "msg": message, "type": "value_error"}]
    )


def _duplicate_number() -> DuplicateValueError:
    return DuplicateValueError(
        "container_number",
        "Container number already exists",
        "A container with this number already exists",
    )


async def _ensure_number_available(
    db: AsyncSession, container_number: str, exclude_id: int | None = None
) -> None:
    stmt = select(Container.id).where(Container.container_number == container_number)
    if exclude_id is not None:
        stmt = stmt.where(Container.id != exclude_id)
    if (await db.execute(stmt)).first() is not None:
        raise _duplicate_number()


async def _get_container_type(db: AsyncSession, code: str) -> ContainerType:
    container_type = await db.get(ContainerType, code)
    if container_type is None:
        raise _field_error("body", "container_type", "Unknown container type")
    return container_type


async def _get_usable_client(db: AsyncSession, client_id: int, identity: Identity) -> Client:
    """Load a client the identity may attach containers to."""
    client = await db.get(Client, client_id)
    if client is None or not can_view_client(identity, client):
        raise HTTPException(status_code=404, detail="Client not found")
    return client


async def _flush_container(db: AsyncSession) -> None:
    try:
        await db.flush()
    except IntegrityError as exc:
        if is_unique_violation(exc):
            raise _duplicate_number() from exc
        raise


@router.get("", response_model=ContainerListResponse)
async def list_containers(
    page: int = Query(default=1, ge=1),
    page_size: int | None = Query(default=None),
    search: str = Query(default="", max_length=100),
    status_filter: str = Query(default=ALL, alias="status"),
    client_id: str = Query(default=ALL),
    container_type: str = Query(default=ALL),
    sort: SortColumn = Query(default=SortColumn.NUMBER),
    direction: SortDirection = Query(default=SortDirection.ASC),
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_identity),
) -> ContainerListResponse:
    """List visible containers with search, filters, sort and pagination.

    The caller's role scope is applied before the user-chosen filters.
    """
    size = page_size if page_size is not None else settings.page_size_options[0]
    if size not in settings.page_size_options:
        allowed = ", ".join(str(option) for option in settings.page_size_options)
        raise _field_error("query", "page_size", f"Page size must be one of {allowed}")
    try:
        status_value = parse_status_filter(status_filter)
    except ValueError as exc:
        raise _field_error("query", "status", "Unknown status") from exc
    try:
        client_value = parse_client_filter(client_id)
    except ValueError as exc:
        raise _field_error("query", "client_id", "Client filter must be an ID or 'all'") from exc

    query = ContainerListQuery(
        page=page,
        page_size=size,
        search=search,
        status=status_value,
        client_id=client_value,
        container_type=parse_type_filter(container_type),
        sort=sort,
        direction=direction,
        scope=container_scope(identity),
    )
    result = await fetch_container_page(db, query)

    return ContainerListResponse(
        items=[_to_row_response(row) for row in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        page_count=result.page_count,
        page_info=result.page_info,
    )


@router.post("", response_model=ContainerResponse, status_code=status.HTTP_201_CREATED)
async def create_container(
    payload: ContainerCreateForm,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_identity),
) -> ContainerResponse:
    """Create a container for a client the caller can see.

    Raises:
        DuplicateValueError: If the container number already exists.
    """
    await _get_usable_client(db, payload.client_id, identity)
    container_type = await _get_container_type(db, payload.container_type)
    payload = payload.with_type_defaults(container_type)
    await _ensure_number_available(db, payload.container_number)

    container = Container(**payload.model_dump(), created_by=identity.user_id)
    db.add(container)
    await _flush_container(db)

    logger.info(
        "container_created",
        container_id=container.id,
        container_number=container.container_number,
        client_id=container.client_id,
    )
    return _to_container_response(container)


@router.get("/{container_id}", response_model=ContainerDetailResponse)
async def get_container(
    container_id: int,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_identity),
) -> ContainerDetailResponse:
    """Get a container with client name, inventory and events."""
    detail = await load_container_detail(db, container_id, identity)
    return ContainerDetailResponse(
        container=_to_container_response(detail.container),
        client_name=detail.client_name,
        container_type_name=detail.container_type_name,
        inventory=[_to_item_response(item) for item in detail.inventory],
        events=[_to_event_response(event) for event in detail.events],
        items_count=detail.totals.items_count,
        used_volume=detail.totals.used_volume,
        total_gross_weight=detail.totals.total_gross_weight,
        occupancy_percent=occupancy_percent(
            detail.totals.used_volume, detail.container.nominal_volume_m3
        ),
        suggested_event_types=list(SUGGESTED_EVENT_TYPES),
    )


@router.patch("/{container_id}", response_model=ContainerResponse)
async def update_container(
    container_id: int,
    payload: ContainerUpdateForm,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_identity),
) -> ContainerResponse:
    """Partially update container fields; status goes through the lifecycle."""
    container, _, _ = await load_visible_container(db, container_id, identity)
    updates = payload.model_dump(exclude_unset=True)

    for required in ("container_number", "container_type", "client_id", "start_date"):
        if required in updates and updates[required] is None:
            raise _field_error("body", required, "This field cannot be empty")

    target_status = updates.pop("status", None)

    if "client_id" in updates and updates["client_id"] != container.client_id:
        await _get_usable_client(db, updates["client_id"], identity)
    if "container_type" in updates:
        await _get_container_type(db, updates["container_type"])
    if updates.get("container_number") not in (None, container.container_number):
        await _ensure_number_available(
            db, updates["container_number"], exclude_id=container.id
        )

    start_date = updates.get("start_date", container.start_date)
    end_date = updates.get("end_date", container.end_date)
    if end_date is not None and end_date < start_date:
        raise _field_error("body", "end_date", "End date cannot be before start date")

    for field_name, value in updates.items():
        setattr(container, field_name, value)

    if target_status is not None:
        _apply_status(container, target_status)

    await _flush_container(db)
    return _to_container_response(container)


def _apply_status(container: Container, target: ContainerStatus) -> None:
    """Run a lifecycle transition, mapping rejections to a 409 form error."""
    current = container.status
    try:
        transition_status(container, target)
    except TransitionNotAllowed as exc:
        raise FormError(
            f"Invalid transition from {current.value} to {target.value}",
            {"status": "Transition not allowed"},
        ) from exc


@router.patch("/{container_id}/status", response_model=ContainerResponse)
async def update_container_status(
    container_id: int,
    payload: ContainerStatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_identity),
) -> ContainerResponse:
    """Transition container to a new status using lifecycle constraints."""
    container, _, _ = await load_visible_container(db, container_id, identity)
    _apply_status(container, payload.status)
    await db.flush()
    return _to_container_response(container)


@router.post(
    "/{container_id}/inventory",
    response_model=InventoryItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_inventory_item(
    container_id: int,
    payload: InventoryItemForm,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_identity),
) -> InventoryItemResponse:
    """Add a stock line to a visible container."""
    container, _, _ = await load_visible_container(db, container_id, identity)
    item = InventoryItem(
        container_id=container.id,
        sku=payload.sku,
        product_name=payload.product_name,
        current_quantity=payload.quantity,
        unit_volume_m3=payload.unit_volume_m3,
        unit_gross_weight_kg=payload.unit_gross_weight_kg,
        total_volume_m3=payload.total_volume_m3,
    )
    db.add(item)
    await db.flush()
    logger.info("inventory_item_added", container_id=container.id, sku=item.sku)
    return _to_item_response(item)


@router.post(
    "/{container_id}/events",
    response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_event(
    container_id: int,
    payload: EventForm,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_identity),
) -> EventResponse:
    """Append an event to a visible container."""
    container, _, _ = await load_visible_container(db, container_id, identity)
    event = ContainerEvent(
        container_id=container.id,
        event_type=payload.event_type,
        quantity=payload.quantity,
        notes=payload.notes,
        created_by=identity.user_id,
    )
    db.add(event)
    await db.flush()
    logger.info(
        "container_event_added",
        container_id=container.id,
        event_type=event.event_type,
    )
    return _to_event_response(event)
