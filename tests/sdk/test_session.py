"""Tests for the SDK session against the ASGI app."""

import httpx
import pytest
from httpx import ASGITransport

from src.main import app
from src.sdk.session import GENERIC_FAILURE_MESSAGE, ApiError, YardSession


def _session(token: str | None = None) -> YardSession:
    return YardSession("http://test", token=token, transport=ASGITransport(app=app))


@pytest.mark.asyncio
async def test_sign_up_restore_and_sign_out(override_db, fake_redis) -> None:
    async with _session() as session:
        user = await session.sign_up("sdk@example.com", "hunter22")
        assert user["email"] == "sdk@example.com"
        assert session.is_authenticated
        token = session.token

        created = await session.request(
            "POST", "/api/clients", json={"name": "Acme", "tax_id": "12345678000190"}
        )
        assert created["owner_id"] == user["id"]

    async with _session(token) as restored:
        assert (await restored.initialize())["email"] == "sdk@example.com"
        await restored.sign_out()
        assert restored.token is None
        assert not restored.is_authenticated

    async with _session(token) as stale:
        assert await stale.initialize() is None
        assert stale.token is None


@pytest.mark.asyncio
async def test_rejected_request_raises_api_error(override_db, fake_redis) -> None:
    async with _session() as session:
        with pytest.raises(ApiError) as exc_info:
            await session.sign_in("ghost@example.com", "whatever")

    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "Invalid email or password"


def test_server_errors_get_a_generic_message() -> None:
    response = httpx.Response(500, json={"detail": "Traceback (most recent call last)"})

    error = ApiError.from_response(response)

    assert error.status_code == 500
    assert error.message == GENERIC_FAILURE_MESSAGE


def test_non_json_error_body() -> None:
    error = ApiError.from_response(httpx.Response(404, text="<html>not found</html>"))

    assert error.message == GENERIC_FAILURE_MESSAGE
    assert error.field_errors == {}


@pytest.mark.asyncio
async def test_success_without_json_body_raises_api_error() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))

    async with YardSession("http://test", transport=transport) as session:
        with pytest.raises(ApiError) as exc_info:
            await session.request("GET", "/api/containers")

    assert exc_info.value.status_code == 200
    assert exc_info.value.message == GENERIC_FAILURE_MESSAGE
