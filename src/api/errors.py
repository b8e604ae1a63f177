"""Exception handlers translating domain errors to HTTP responses.

Response bodies:

- 422: ``{"message", "field_errors"}`` for request validation failures
- 409: ``{"message", "field_errors"}`` for duplicate values and rejected
  status changes
- 403: ``{"detail", "redirect_to"}`` for rows outside the caller's scope
- 404: ``{"detail"}`` for unknown containers
- 503: ``{"detail"}`` generic notice for database failures
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from src.auth.oauth import OAuthError
from src.auth.policy import AccessDenied
from src.containers.detail import ContainerNotFound
from src.core.logging import get_logger
from src.forms.errors import FormError, field_errors_from_details

logger = get_logger(__name__)

DATABASE_UNAVAILABLE_MESSAGE = "The service is temporarily unavailable. Please try again."


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "message": "Please correct the highlighted fields",
            "field_errors": field_errors_from_details(list(exc.errors())),
        },
    )


async def form_error_handler(request: Request, exc: FormError) -> JSONResponse:
    logger.info(
        "form_rejected",
        path=request.url.path,
        fields=sorted(exc.field_errors),
    )
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"message": exc.message, "field_errors": exc.field_errors},
    )


async def access_denied_handler(request: Request, exc: AccessDenied) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content={"detail": exc.message, "redirect_to": exc.redirect_to},
    )


async def container_not_found_handler(
    request: Request, exc: ContainerNotFound
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": "Container not found"},
    )


async def oauth_error_handler(request: Request, exc: OAuthError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc)},
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Log a database failure and answer with a generic notice."""
    logger.error(
        "database_error",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": DATABASE_UNAVAILABLE_MESSAGE},
    )


def install_exception_handlers(app: FastAPI) -> None:
    """Register every domain exception handler on the application."""
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(FormError, form_error_handler)
    app.add_exception_handler(AccessDenied, access_denied_handler)
    app.add_exception_handler(ContainerNotFound, container_not_found_handler)
    app.add_exception_handler(OAuthError, oauth_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
