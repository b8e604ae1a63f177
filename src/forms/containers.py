"""Container, inventory and event form validation."""

from datetime import date
from decimal import Decimal
from typing import Self

from pydantic import BaseModel, Field, field_validator, model_validator

from src.forms.normalize import blank_to_none, empty_or_zero_to_none
from src.models.container import ContainerStatus, ContainerType

_OPTIONAL_TEXT = ("container_code", "bl_number", "yard_location", "notes")
_OPTIONAL_NUMBERS = ("nominal_volume_m3", "base_cost", "measurement_day")


class ContainerCreateForm(BaseModel):
    """Payload for creating a container.

    Empty or zero optional numbers (volume, cost, measurement day) are
    stored as absent rather than 0.
    """

    client_id: int = Field(gt=0)
    container_number: str = Field(min_length=1, max_length=20)
    container_type: str = Field(min_length=1, max_length=20)
    start_date: date
    status: ContainerStatus = ContainerStatus.ACTIVE
    end_date: date | None = None
    container_code: str | None = Field(default=None, max_length=50)
    bl_number: str | None = Field(default=None, max_length=50)
    nominal_volume_m3: Decimal | None = Field(default=None, ge=0)
    base_cost: Decimal | None = Field(default=None, ge=0)
    measurement_day: int | None = Field(default=None, ge=1, le=31)
    yard_location: str | None = Field(default=None, max_length=100)
    notes: str | None = None

    @field_validator("container_number", mode="before")
    @classmethod
    def normalize_number(cls, value: object) -> object:
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator("container_type", mode="before")
    @classmethod
    def strip_type(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator(*_OPTIONAL_TEXT, "end_date", mode="before")
    @classmethod
    def empty_text_to_none(cls, value: object) -> object:
        return blank_to_none(value)

    @field_validator(*_OPTIONAL_NUMBERS, mode="before")
    @classmethod
    def empty_number_to_none(cls, value: object) -> object:
        return empty_or_zero_to_none(value)

    @model_validator(mode="after")
    def check_dates(self) -> Self:
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("End date cannot be before start date")
        return self

    def with_type_defaults(self, container_type: ContainerType) -> Self:
        """Pre-fill the base cost from the type's default when none was given."""
        if self.base_cost is None and container_type.default_base_cost:
            return self.model_copy(update={"base_cost": container_type.default_base_cost})
        return self


class ContainerUpdateForm(BaseModel):
    """Partial update of a container; status goes through the lifecycle."""

    container_number: str | None = Field(default=None, min_length=1, max_length=20)
    container_type: str | None = Field(default=None, min_length=1, max_length=20)
    client_id: int | None = Field(default=None, gt=0)
    status: ContainerStatus | None = None
    start_date: date | None = None
    end_date: date | None = None
    container_code: str | None = Field(default=None, max_length=50)
    bl_number: str | None = Field(default=None, max_length=50)
    nominal_volume_m3: Decimal | None = Field(default=None, ge=0)
    base_cost: Decimal | None = Field(default=None, ge=0)
    measurement_day: int | None = Field(default=None, ge=1, le=31)
    yard_location: str | None = Field(default=None, max_length=100)
    notes: str | None = None

    @field_validator("container_number", mode="before")
    @classmethod
    def normalize_number(cls, value: object) -> object:
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator(*_OPTIONAL_TEXT, "end_date", mode="before")
    @classmethod
    def empty_text_to_none(cls, value: object) -> object:
        return blank_to_none(value)

    @field_validator(*_OPTIONAL_NUMBERS, mode="before")
    @classmethod
    def empty_number_to_none(cls, value: object) -> object:
        return empty_or_zero_to_none(value)


class InventoryItemForm(BaseModel):
    """Payload for adding a stock line to a container."""

    sku: str = Field(min_length=1, max_length=100)
    product_name: str = Field(min_length=1, max_length=255)
    quantity: int = Field(ge=1)
    unit_volume_m3: Decimal | None = Field(default=None, ge=0)
    unit_gross_weight_kg: Decimal | None = Field(default=None, ge=0)

    @field_validator("sku", "product_name", mode="before")
    @classmethod
    def strip_text(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("unit_volume_m3", "unit_gross_weight_kg", mode="before")
    @classmethod
    def empty_to_none(cls, value: object) -> object:
        return blank_to_none(value)

    @property
    def total_volume_m3(self) -> Decimal | None:
        if self.unit_volume_m3 is None:
            return None
        return self.unit_volume_m3 * self.quantity


class EventForm(BaseModel):
    """Payload for appending an event to a container."""

    event_type: str = Field(min_length=1, max_length=50)
    quantity: int | None = Field(default=None, ge=0)
    notes: str | None = None

    @field_validator("event_type", mode="before")
    @classmethod
    def normalize_event_type(cls, value: object) -> object:
        if isinstance(value, str):
            return "-".join(value.strip().lower().split())
        return value

    @field_validator("quantity", "notes", mode="before")
    @classmethod
    def empty_to_none(cls, value: object) -> object:
        return blank_to_none(value)
