"""Tests for the OAuth authorization-code client."""

import asyncio
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from src.auth import oauth
from src.auth.oauth import (
    OAuthError,
    build_authorize_url,
    consume_state,
    fetch_profile,
    issue_state,
)
from src.core.config import settings
from tests.fakes import FakeRedis


@pytest.fixture
def oauth_configured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "oauth_client_id", "client-id")
    monkeypatch.setattr(settings, "oauth_client_secret", "client-secret")


def _provider(userinfo: dict, token_status: int = 200) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url == httpx.URL(settings.oauth_token_url):
            assert b"code=the-code" in request.content
            if token_status != 200:
                return httpx.Response(token_status, json={"error": "invalid_grant"})
            return httpx.Response(200, json={"access_token": "provider-token"})
        if request.url == httpx.URL(settings.oauth_userinfo_url):
            assert request.headers["Authorization"] == "Bearer provider-token"
            return httpx.Response(200, json=userinfo)
        return httpx.Response(404)

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_state_is_single_use() -> None:
    redis_pool = FakeRedis()
    state = await issue_state(redis_pool)

    assert redis_pool.expiries[f"{oauth.STATE_KEY_PREFIX}{state}"] == oauth.STATE_TTL_SECONDS
    assert await consume_state(redis_pool, state) is True
    assert await consume_state(redis_pool, state) is False


@pytest.mark.asyncio
async def test_state_concurrent_callbacks_accept_one() -> None:
    redis_pool = FakeRedis()
    state = await issue_state(redis_pool)

    results = await asyncio.gather(
        consume_state(redis_pool, state), consume_state(redis_pool, state)
    )

    assert sorted(results) == [False, True]


def test_authorize_url_requires_configuration(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "oauth_client_id", None)
    with pytest.raises(OAuthError):
        build_authorize_url("state")


def test_authorize_url_parameters(oauth_configured: None) -> None:
    url = build_authorize_url("state-1")

    query = parse_qs(urlsplit(url).query)
    assert query["client_id"] == ["client-id"]
    assert query["state"] == ["state-1"]
    assert query["response_type"] == ["code"]
    assert query["redirect_uri"] == [oauth.callback_url()]


@pytest.mark.asyncio
async def test_fetch_profile(oauth_configured: None) -> None:
    transport = _provider({"email": "Ana@Example.com", "name": "Ana", "email_verified": True})

    profile = await fetch_profile("the-code", transport=transport)

    assert profile.email == "ana@example.com"
    assert profile.full_name == "Ana"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("userinfo", "token_status"),
    [
        ({"email": "ana@example.com"}, 400),
        ({"name": "No Email"}, 200),
        ({"email": "ana@example.com", "email_verified": False}, 200),
    ],
)
async def test_fetch_profile_failures(
    oauth_configured: None, userinfo: dict, token_status: int
) -> None:
    with pytest.raises(OAuthError):
        await fetch_profile("the-code", transport=_provider(userinfo, token_status))
