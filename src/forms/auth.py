"""Sign-up, sign-in and password reset form validation."""

from typing import Self

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from src.core.config import settings


def _check_password_length(value: str) -> str:
    if len(value) < settings.password_min_length:
        raise ValueError(
            f"Password must have at least {settings.password_min_length} characters"
        )
    return value


class SignInForm(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email", mode="after")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()


class SignUpForm(SignInForm):
    full_name: str | None = Field(default=None, max_length=255)

    @field_validator("password", mode="after")
    @classmethod
    def check_password(cls, value: str) -> str:
        return _check_password_length(value)


class PasswordResetRequestForm(BaseModel):
    email: EmailStr

    @field_validator("email", mode="after")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()


class PasswordResetConfirmForm(BaseModel):
    """New password submitted with the recovery token from the reset link."""

    access_token: str = Field(min_length=1)
    password: str
    confirm_password: str = Field(min_length=1)

    @field_validator("password", mode="after")
    @classmethod
    def check_password(cls, value: str) -> str:
        return _check_password_length(value)

    @model_validator(mode="after")
    def passwords_match(self) -> Self:
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self
