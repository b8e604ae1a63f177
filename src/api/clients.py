"""Clients API endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_db, get_identity
from src.auth.identity import Identity
from src.auth.policy import can_edit_client, can_view_client, client_visibility_clause
from src.core.database import is_unique_violation
from src.core.logging import get_logger
from src.forms.clients import ClientCreateForm, ClientUpdateForm
from src.forms.errors import DuplicateValueError
from src.models.client import Client

logger = get_logger(__name__)

router = APIRouter(prefix="/api/clients", tags=["clients"])

DUPLICATE_TAX_ID_MESSAGE = "A client with this tax ID is already registered"


class ClientResponse(BaseModel):
    """Client response model."""

    id: int
    name: str
    trade_name: str | None
    tax_id: str
    email: str | None
    phone: str | None
    address: str | None
    status: str
    owner_id: int | None
    created_at: datetime
    updated_at: datetime | None


class ClientListResponse(BaseModel):
    """Paginated client list response."""

    items: list[ClientResponse]
    total: int
    limit: int
    offset: int


def _to_client_response(client: Client) -> ClientResponse:
    """Map SQLAlchemy client model to response model."""
    return ClientResponse(
        id=client.id,
        name=client.name,
        trade_name=client.trade_name,
        tax_id=client.tax_id,
        email=client.email,
        phone=client.phone,
        address=client.address,
        status=client.status,
        owner_id=client.owner_id,
        created_at=client.created_at,
        updated_at=client.updated_at,
    )


def _duplicate_tax_id() -> DuplicateValueError:
    return DuplicateValueError("tax_id", "Tax ID already registered", DUPLICATE_TAX_ID_MESSAGE)


async def _get_visible_client(
    db: AsyncSession, client_id: int, identity: Identity
) -> Client:
    """Fetch a client the identity may read; hidden rows look missing."""
    client = await db.get(Client, client_id)
    if client is None or not can_view_client(identity, client):
        raise HTTPException(status_code=404, detail="Client not found")
    return client


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    payload: ClientCreateForm,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_identity),
) -> ClientResponse:
    """Create a new client owned by the caller.

    Raises:
        DuplicateValueError: If the tax ID is already registered.
    """
    existing = await db.execute(select(Client.id).where(Client.tax_id == payload.tax_id))
    if existing.scalar_one_or_none() is not None:
        raise _duplicate_tax_id()

    client = Client(**payload.model_dump(), owner_id=identity.user_id)
    db.add(client)
    try:
        await db.flush()
    except IntegrityError as exc:
        if is_unique_violation(exc):
            raise _duplicate_tax_id() from exc
        raise

    logger.info("client_created", client_id=client.id)
    return _to_client_response(client)


@router.get("", response_model=ClientListResponse)
async def list_clients(
    search: str | None = Query(default=None, min_length=1),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_identity),
) -> ClientListResponse:
    """List visible clients with optional search and pagination."""
    filters = []
    visibility = client_visibility_clause(identity)
    if visibility is not None:
        filters.append(visibility)
    if search:
        term = search.strip().lower()
        filters.append(
            or_(
                func.lower(Client.name).contains(term, autoescape=True),
                func.lower(func.coalesce(Client.trade_name, "")).contains(
                    term, autoescape=True
                ),
                Client.tax_id.contains(term, autoescape=True),
            )
        )

    count_stmt = select(func.count(Client.id))
    list_stmt = select(Client).order_by(Client.name.asc(), Client.id.asc())
    if filters:
        count_stmt = count_stmt.where(*filters)
        list_stmt = list_stmt.where(*filters)

    total_result = await db.execute(count_stmt)
    total = int(total_result.scalar() or 0)

    clients_result = await db.execute(list_stmt.limit(limit).offset(offset))
    clients = clients_result.scalars().all()

    return ClientListResponse(
        items=[_to_client_response(client) for client in clients],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: int,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_identity),
) -> ClientResponse:
    """Get client by ID."""
    client = await _get_visible_client(db, client_id, identity)
    return _to_client_response(client)


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: int,
    payload: ClientUpdateForm,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_identity),
) -> ClientResponse:
    """Partially update client fields (owner or admin only)."""
    client = await _get_visible_client(db, client_id, identity)
    if not can_edit_client(identity, client):
        raise HTTPException(status_code=403, detail="Only the owner can edit this client")

    updates = payload.model_dump(exclude_unset=True)
    if updates.get("name") is None:
        updates.pop("name", None)
    for field_name, value in updates.items():
        setattr(client, field_name, value)

    await db.flush()
    return _to_client_response(client)
