"""Explicit client session for the yard HTTP API.

A :class:`YardSession` owns the HTTP client and the bearer token. It is
created by the caller, initialized once on load (restoring a stored token)
and torn down on sign-out; nothing is kept in module-level state.
"""

from types import TracebackType
from typing import Any

import httpx

from src.core.logging import get_logger

logger = get_logger(__name__)

GENERIC_FAILURE_MESSAGE = "Something went wrong. Please try again."
NETWORK_FAILURE_MESSAGE = "Could not reach the server. Please try again."


class ApiError(Exception):
    """A failed API call, normalized for display.

    Attributes:
        status_code: HTTP status, or 0 when the server was unreachable.
        message: User-facing summary.
        field_errors: Field name to message for form failures.
        redirect_to: Path suggested by an authorization failure.
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        field_errors: dict[str, str] | None = None,
        redirect_to: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.field_errors = field_errors or {}
        self.redirect_to = redirect_to

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        """Build an error from a non-2xx response body."""
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        detail = body.get("message") or body.get("detail")
        if isinstance(detail, str) and (response.status_code < 500 or response.status_code == 503):
            message = detail
        else:
            message = GENERIC_FAILURE_MESSAGE
        return cls(
            status_code=response.status_code,
            message=message,
            field_errors=body.get("field_errors") or {},
            redirect_to=body.get("redirect_to"),
        )


class YardSession:
    """Signed-in (or anonymous) connection to the API.

    Args:
        base_url: API root, e.g. ``http://localhost:8000``.
        token: Previously stored bearer token to restore in :meth:`initialize`.
        transport: Optional httpx transport (tests pass ASGI or mock transports).
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            transport=transport,
            timeout=timeout,
        )
        self._token = token
        self.user: dict[str, Any] | None = None

    async def __aenter__(self) -> "YardSession":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None and self.user is not None

    async def initialize(self) -> dict[str, Any] | None:
        """Restore the stored token, dropping it when the server rejects it.

        Returns:
            The signed-in user, or None for an anonymous session.
        """
        if self._token is None:
            return None
        try:
            self.user = await self.request("GET", "/api/auth/session")
        except ApiError as exc:
            if exc.status_code != 401:
                raise
            logger.info("stored_session_expired")
            self._clear()
        return self.user

    async def sign_in(self, email: str, password: str) -> dict[str, Any]:
        data = await self.request(
            "POST", "/api/auth/signin", json={"email": email, "password": password}
        )
        return self._accept_session(data)

    async def sign_up(
        self, email: str, password: str, full_name: str | None = None
    ) -> dict[str, Any]:
        data = await self.request(
            "POST",
            "/api/auth/signup",
            json={"email": email, "password": password, "full_name": full_name},
        )
        return self._accept_session(data)

    async def sign_out(self) -> None:
        """Revoke the token server-side and forget it locally.

        Local state is cleared even when the server call fails.
        """
        if self._token is None:
            return
        try:
            await self.request("POST", "/api/auth/signout")
        except ApiError as exc:
            logger.warning("sign_out_failed", status_code=exc.status_code)
        finally:
            self._clear()

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Send an authorized request and return the decoded JSON body.

        Raises:
            ApiError: On any non-2xx status, transport failure or a body that
                is not JSON.
        """
        headers = {"Authorization": f"Bearer {self._token}"} if self._token else None
        try:
            response = await self._client.request(
                method, path, params=params, json=json, headers=headers
            )
        except httpx.HTTPError as exc:
            logger.warning("api_request_failed", method=method, path=path, error=str(exc))
            raise ApiError(0, NETWORK_FAILURE_MESSAGE) from exc

        if response.is_error:
            error = ApiError.from_response(response)
            logger.info(
                "api_request_rejected",
                method=method,
                path=path,
                status_code=response.status_code,
            )
            raise error
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            logger.warning(
                "api_response_not_json",
                method=method,
                path=path,
                status_code=response.status_code,
            )
            raise ApiError(response.status_code, GENERIC_FAILURE_MESSAGE) from exc

    async def aclose(self) -> None:
        await self._client.aclose()

    def _accept_session(self, data: dict[str, Any]) -> dict[str, Any]:
        self._token = data["access_token"]
        self.user = data["user"]
        return self.user

    def _clear(self) -> None:
        self._token = None
        self.user = None
