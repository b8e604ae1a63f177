"""OAuth 2.0 authorization-code sign-in against a configured provider."""

import secrets
from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import urlencode

import httpx

from src.core.config import settings
from src.core.logging import get_logger
from src.core.redis import take_token

if TYPE_CHECKING:
    import redis.asyncio as redis

logger = get_logger(__name__)

STATE_KEY_PREFIX = "auth:oauth_state:"
STATE_TTL_SECONDS = 10 * 60


class OAuthError(Exception):
    """Raised when the provider flow cannot be completed."""


@dataclass
class OAuthProfile:
    """Subset of the provider's userinfo we keep."""

    email: str
    full_name: str | None


def callback_url() -> str:
    return f"{settings.app_base_url.rstrip('/')}/auth/callback"


async def issue_state(pool: "redis.Redis") -> str:
    """Store and return an anti-CSRF state value for one authorization."""
    state = secrets.token_urlsafe(24)
    await pool.set(f"{STATE_KEY_PREFIX}{state}", "1", ex=STATE_TTL_SECONDS)
    return state


async def consume_state(pool: "redis.Redis", state: str) -> bool:
    """Validate a returned state value and invalidate it."""
    key = f"{STATE_KEY_PREFIX}{state}"
    return await take_token(pool, key) is not None


def build_authorize_url(state: str) -> str:
    """Build the provider authorization URL for the configured client."""
    if not settings.oauth_client_id:
        raise OAuthError("OAuth provider is not configured")
    query = urlencode(
        {
            "client_id": settings.oauth_client_id,
            "redirect_uri": callback_url(),
            "response_type": "code",
            "scope": settings.oauth_scope,
            "state": state,
        }
    )
    return f"{settings.oauth_authorize_url}?{query}"


async def fetch_profile(
    code: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> OAuthProfile:
    """Exchange an authorization code and fetch the user's profile.

    Args:
        code: Authorization code returned by the provider.
        transport: Optional httpx transport (tests use MockTransport).

    Returns:
        Profile with a verified email address.

    Raises:
        OAuthError: If the provider rejects the code or returns no email.
    """
    if not settings.oauth_client_id or not settings.oauth_client_secret:
        raise OAuthError("OAuth provider is not configured")

    async with httpx.AsyncClient(
        timeout=settings.oauth_timeout_seconds,
        transport=transport,
    ) as client:
        try:
            token_response = await client.post(
                settings.oauth_token_url,
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": callback_url(),
                    "client_id": settings.oauth_client_id,
                    "client_secret": settings.oauth_client_secret,
                },
                headers={"Accept": "application/json"},
            )
            token_response.raise_for_status()
            access_token = token_response.json().get("access_token")
            if not access_token:
                raise OAuthError("Provider returned no access token")

            userinfo_response = await client.get(
                settings.oauth_userinfo_url,
                headers={"Authorization": f"Bearer {access_token}"},
            )
            userinfo_response.raise_for_status()
            userinfo = userinfo_response.json()
        except httpx.HTTPError as exc:
            logger.warning(
                "oauth_exchange_failed",
                provider=settings.oauth_provider,
                error=str(exc),
            )
            raise OAuthError("OAuth provider request failed") from exc

    email = str(userinfo.get("email") or "").strip().lower()
    if not email:
        raise OAuthError("Provider profile has no email address")
    if userinfo.get("email_verified") is False:
        raise OAuthError("Provider email address is not verified")
    return OAuthProfile(email=email, full_name=userinfo.get("name"))
