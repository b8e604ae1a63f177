"""Client form validation."""

from pydantic import BaseModel, EmailStr, Field, field_validator

from src.forms.normalize import blank_to_none, digits_only

TAX_ID_LENGTH = 14
EMAIL_MAX_LENGTH = 100


def _check_email(value: str | None) -> str | None:
    if value is None:
        return None
    if len(value) > EMAIL_MAX_LENGTH:
        raise ValueError(f"Email must have at most {EMAIL_MAX_LENGTH} characters")
    return value.lower()


class ClientCreateForm(BaseModel):
    """Payload for creating a client.

    ``tax_id`` accepts punctuation (``12.345.678/0001-90``) and is stored as
    its 14 digits.
    """

    name: str = Field(min_length=1, max_length=200)
    trade_name: str | None = Field(default=None, max_length=200)
    tax_id: str
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=20)
    address: str | None = Field(default=None, max_length=300)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("trade_name", "email", "phone", "address", mode="before")
    @classmethod
    def empty_to_none(cls, value: object) -> object:
        return blank_to_none(value)

    @field_validator("tax_id", mode="before")
    @classmethod
    def normalize_tax_id(cls, value: object) -> str:
        digits = digits_only(str(value or ""))
        if len(digits) != TAX_ID_LENGTH:
            raise ValueError(f"Tax ID must have {TAX_ID_LENGTH} digits")
        return digits

    @field_validator("email", mode="after")
    @classmethod
    def check_email(cls, value: str | None) -> str | None:
        return _check_email(value)


class ClientUpdateForm(BaseModel):
    """Payload for updating a client. The tax ID cannot change."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    trade_name: str | None = Field(default=None, max_length=200)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=20)
    address: str | None = Field(default=None, max_length=300)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("trade_name", "email", "phone", "address", mode="before")
    @classmethod
    def empty_to_none(cls, value: object) -> object:
        return blank_to_none(value)

    @field_validator("email", mode="after")
    @classmethod
    def check_email(cls, value: str | None) -> str | None:
        return _check_email(value)
