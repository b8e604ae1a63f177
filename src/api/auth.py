"""Authentication endpoints: password and OAuth sign-in, sessions, password reset."""

from datetime import datetime

import httpx
import redis.asyncio as redis
from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, Response, status
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import bearer_token, get_db, get_identity, get_redis
from src.auth.identity import Identity
from src.auth.oauth import build_authorize_url, consume_state, fetch_profile, issue_state
from src.auth.passwords import hash_password, verify_password
from src.auth.recovery import (
    ResetLinkSender,
    build_reset_link,
    consume_recovery_token,
    issue_recovery_token,
    log_reset_link,
)
from src.auth.sessions import create_session, revoke_session, revoke_user_sessions
from src.core.database import is_unique_violation
from src.core.logging import get_logger
from src.forms.auth import (
    PasswordResetConfirmForm,
    PasswordResetRequestForm,
    SignInForm,
    SignUpForm,
)
from src.forms.errors import DuplicateValueError
from src.models.user import AuthSession, Role, User

logger = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

INVALID_CREDENTIALS = "Invalid email or password"


class UserResponse(BaseModel):
    id: int
    email: str
    full_name: str | None
    role: str
    client_id: int | None


class SessionResponse(BaseModel):
    """Bearer session issued after a successful sign-in."""

    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserResponse


class MessageResponse(BaseModel):
    message: str


class OAuthStartResponse(BaseModel):
    authorize_url: str
    state: str


def _to_user_response(identity: Identity) -> UserResponse:
    return UserResponse(
        id=identity.user_id,
        email=identity.email,
        full_name=identity.full_name,
        role=identity.role.value,
        client_id=identity.client_id,
    )


def _to_session_response(auth_session: AuthSession, user: User) -> SessionResponse:
    return SessionResponse(
        access_token=auth_session.token,
        expires_at=auth_session.expires_at,
        user=_to_user_response(Identity.from_user(user)),
    )


def _client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


async def _open_session(db: AsyncSession, user: User, request: Request) -> SessionResponse:
    auth_session = await create_session(
        db,
        user,
        ip=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    logger.info("session_opened", user_id=user.id)
    return _to_session_response(auth_session, user)


async def _find_user(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


def _duplicate_email() -> DuplicateValueError:
    return DuplicateValueError(
        "email",
        "Email already registered",
        "An account with this email already exists",
    )


async def get_oauth_transport(request: Request) -> httpx.AsyncBaseTransport | None:
    """Transport used to reach the OAuth provider (None means the network)."""
    return getattr(request.app.state, "oauth_transport", None)


async def get_reset_link_sender(request: Request) -> ResetLinkSender:
    """Callable delivering reset links (defaults to the development log)."""
    return getattr(request.app.state, "reset_link_sender", log_reset_link)


@router.post("/signup", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(
    payload: SignUpForm,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> SessionResponse:
    """Register a member account and sign it in."""
    if await _find_user(db, payload.email) is not None:
        raise _duplicate_email()

    user = User(
        email=payload.email,
        password_hash=hash_password(payload.password),
        full_name=payload.full_name,
        role=Role.MEMBER,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as exc:
        if is_unique_violation(exc):
            raise _duplicate_email() from exc
        raise

    logger.info("user_signed_up", user_id=user.id)
    return await _open_session(db, user, request)


@router.post("/signin", response_model=SessionResponse)
async def sign_in(
    payload: SignInForm,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> SessionResponse:
    """Sign in with email and password."""
    user = await _find_user(db, payload.email)
    if user is None or not user.active or not verify_password(
        payload.password, user.password_hash
    ):
        logger.info("sign_in_rejected", email_domain=payload.email.rpartition("@")[2])
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS,
        )
    return await _open_session(db, user, request)


@router.post("/signout", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(
    db: AsyncSession = Depends(get_db),
    authorization: str | None = Header(default=None),
) -> Response:
    """Revoke the caller's session token."""
    token = bearer_token(authorization)
    if token is None or not await revoke_session(db, token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/session", response_model=UserResponse)
async def get_session(identity: Identity = Depends(get_identity)) -> UserResponse:
    """Return the account behind the bearer token."""
    return _to_user_response(identity)


@router.post(
    "/password-reset",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def request_password_reset(
    payload: PasswordResetRequestForm,
    db: AsyncSession = Depends(get_db),
    redis_pool: redis.Redis = Depends(get_redis),
    send_reset_link: ResetLinkSender = Depends(get_reset_link_sender),
) -> MessageResponse:
    """Issue a recovery link; the answer never reveals whether the account exists."""
    user = await _find_user(db, payload.email)
    if user is not None and user.active:
        token = await issue_recovery_token(redis_pool, user.id)
        await send_reset_link(user.email, build_reset_link(token))
        logger.info("password_reset_requested", user_id=user.id)
    return MessageResponse(
        message="If an account exists for this email, a reset link has been sent"
    )


@router.post("/password-reset/confirm", response_model=SessionResponse)
async def confirm_password_reset(
    payload: PasswordResetConfirmForm,
    request: Request,
    db: AsyncSession = Depends(get_db),
    redis_pool: redis.Redis = Depends(get_redis),
) -> SessionResponse:
    """Set a new password from a recovery token and open a fresh session."""
    user_id = await consume_recovery_token(redis_pool, payload.access_token)
    user = await db.get(User, user_id) if user_id is not None else None
    if user is None or not user.active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired recovery link",
        )

    user.password_hash = hash_password(payload.password)
    await revoke_user_sessions(db, user.id)
    logger.info("password_reset_completed", user_id=user.id)
    return await _open_session(db, user, request)


@router.get("/oauth/start", response_model=OAuthStartResponse)
async def start_oauth(
    redis_pool: redis.Redis = Depends(get_redis),
) -> OAuthStartResponse:
    """Begin the provider sign-in and return the authorization URL."""
    state = await issue_state(redis_pool)
    return OAuthStartResponse(authorize_url=build_authorize_url(state), state=state)


@router.get("/oauth/callback", response_model=SessionResponse)
async def oauth_callback(
    request: Request,
    code: str = Query(min_length=1),
    state: str = Query(min_length=1),
    db: AsyncSession = Depends(get_db),
    redis_pool: redis.Redis = Depends(get_redis),
    transport: httpx.AsyncBaseTransport | None = Depends(get_oauth_transport),
) -> SessionResponse:
    """Finish the provider sign-in, creating the account on first use."""
    if not await consume_state(redis_pool, state):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired OAuth state",
        )

    profile = await fetch_profile(code, transport=transport)
    user = await _find_user(db, profile.email)
    if user is None:
        user = User(email=profile.email, full_name=profile.full_name, role=Role.MEMBER)
        db.add(user)
        await db.flush()
        logger.info("user_signed_up", user_id=user.id, via="oauth")
    elif not user.active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS,
        )
    return await _open_session(db, user, request)
