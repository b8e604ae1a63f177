"""Container type catalog endpoints."""

from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_db, get_identity, require_admin
from src.auth.identity import Identity
from src.forms.errors import DuplicateValueError
from src.forms.normalize import empty_or_zero_to_none
from src.models.container import ContainerType

router = APIRouter(prefix="/api/container-types", tags=["container-types"])


class ContainerTypeCreateRequest(BaseModel):
    """Payload for adding a container type."""

    code: str = Field(min_length=1, max_length=20)
    name: str = Field(min_length=1, max_length=100)
    default_base_cost: Decimal | None = Field(default=None, ge=0)

    @field_validator("code", mode="before")
    @classmethod
    def normalize_code(cls, value: object) -> object:
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator("default_base_cost", mode="before")
    @classmethod
    def empty_cost_to_none(cls, value: object) -> object:
        return empty_or_zero_to_none(value)


class ContainerTypeUpdateRequest(BaseModel):
    """Payload for updating a container type."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    default_base_cost: Decimal | None = Field(default=None, ge=0)

    @field_validator("default_base_cost", mode="before")
    @classmethod
    def empty_cost_to_none(cls, value: object) -> object:
        return empty_or_zero_to_none(value)


class ContainerTypeResponse(BaseModel):
    code: str
    name: str
    default_base_cost: Decimal | None


def _to_type_response(container_type: ContainerType) -> ContainerTypeResponse:
    return ContainerTypeResponse(
        code=container_type.code,
        name=container_type.name,
        default_base_cost=container_type.default_base_cost,
    )


@router.get("", response_model=list[ContainerTypeResponse])
async def list_container_types(
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_identity),
) -> list[ContainerTypeResponse]:
    """List the container type catalog ordered by code."""
    result = await db.execute(select(ContainerType).order_by(ContainerType.code.asc()))
    return [_to_type_response(row) for row in result.scalars().all()]


@router.post(
    "", response_model=ContainerTypeResponse, status_code=status.HTTP_201_CREATED
)
async def create_container_type(
    payload: ContainerTypeCreateRequest,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require_admin),
) -> ContainerTypeResponse:
    """Add a container type (admin only)."""
    if await db.get(ContainerType, payload.code) is not None:
        raise DuplicateValueError(
            "code",
            "Type code already exists",
            "A container type with this code already exists",
        )
    container_type = ContainerType(**payload.model_dump())
    db.add(container_type)
    await db.flush()
    return _to_type_response(container_type)


@router.patch("/{code}", response_model=ContainerTypeResponse)
async def update_container_type(
    code: str,
    payload: ContainerTypeUpdateRequest,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require_admin),
) -> ContainerTypeResponse:
    """Rename a container type or change its default cost (admin only)."""
    container_type = await db.get(ContainerType, code.strip().upper())
    if container_type is None:
        raise HTTPException(status_code=404, detail="Container type not found")

    updates = payload.model_dump(exclude_unset=True)
    if "name" in updates and updates["name"] is not None:
        container_type.name = updates["name"].strip()
    if "default_base_cost" in updates:
        container_type.default_base_cost = updates["default_base_cost"]

    await db.flush()
    return _to_type_response(container_type)
