"""Request context middleware for correlation ID tracking."""

import uuid
from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from src.core.logging import get_logger, request_id_ctx, role_ctx, user_id_ctx

RequestResponseEndpoint = Callable[[Request], Awaitable[Response]]

logger = get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Set per-request logging context and echo the request ID.

    Uses the incoming X-Request-ID header (or a fresh UUID) and clears the
    identity context left by a previous request on the same task.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Process request and set context variables.

        Args:
            request: Incoming HTTP request.
            call_next: Next middleware/handler in chain.

        Returns:
            Response with X-Request-ID header set.
        """
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request_id_ctx.set(request_id)
        user_id_ctx.set(None)
        role_ctx.set(None)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        if response.status_code >= 500:
            logger.warning(
                "request_failed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
            )
        return response
