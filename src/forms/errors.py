"""Form error types shared by the API and the SDK."""

from pydantic import ValidationError


class FormError(Exception):
    """A submission rejected with field-level messages.

    Attributes:
        message: Summary suitable for a notification.
        field_errors: Field name to message.
    """

    def __init__(self, message: str, field_errors: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field_errors = field_errors or {}


class DuplicateValueError(FormError):
    """A unique value (container number, tax ID) already exists."""

    def __init__(self, field: str, field_message: str, message: str) -> None:
        super().__init__(message, {field: field_message})
        self.field = field


def field_errors_from_validation(exc: ValidationError) -> dict[str, str]:
    """Flatten pydantic errors to ``{field: first message}``."""
    return field_errors_from_details(exc.errors())


def field_errors_from_details(details: list[dict]) -> dict[str, str]:
    """Flatten pydantic/FastAPI error dicts to ``{field: first message}``.

    Location prefixes added by FastAPI (``body``, ``query``, ``path``) are
    dropped; model-level errors are reported under ``__root__``.
    """
    field_errors: dict[str, str] = {}
    for detail in details:
        loc = [str(part) for part in detail.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "__root__"
        message = str(detail.get("msg", "Invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        field_errors.setdefault(field, message)
    return field_errors
