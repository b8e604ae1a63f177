"""Form schemas validating payloads before they reach the database."""

from src.forms.auth import (
    PasswordResetConfirmForm,
    PasswordResetRequestForm,
    SignInForm,
    SignUpForm,
)
from src.forms.clients import ClientCreateForm, ClientUpdateForm
from src.forms.containers import (
    ContainerCreateForm,
    ContainerUpdateForm,
    EventForm,
    InventoryItemForm,
)
from src.forms.errors import DuplicateValueError, FormError, field_errors_from_validation

__all__ = [
    "ClientCreateForm",
    "ClientUpdateForm",
    "ContainerCreateForm",
    "ContainerUpdateForm",
    "DuplicateValueError",
    "EventForm",
    "FormError",
    "InventoryItemForm",
    "PasswordResetConfirmForm",
    "PasswordResetRequestForm",
    "SignInForm",
    "SignUpForm",
    "field_errors_from_validation",
]
