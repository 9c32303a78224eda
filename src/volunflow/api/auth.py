"""Auth API — registration, login, token refresh, logout, OAuth.

- POST /auth/register          → 201 user + session cookies (409 on duplicate)
- POST /auth/login             → 200 user + session cookies (401 otherwise)
- POST /auth/refresh_token     → rotate the pair (401 no cookie, 403 rejected)
- POST /auth/logout            → revoke + clear cookies, always 200
- GET  /auth/me                → the identity resolved for this request
- GET  /auth/{provider}        → redirect to Google/Facebook consent
- GET  /auth/{provider}/callback → find-or-create user, cookies, redirect

Tokens travel only in HttpOnly cookies; response bodies never carry them.
"""

import enum
import secrets
import uuid
from typing import Optional

import httpx
import structlog
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from volunflow.api.errors import error_response
from volunflow.auth.context import ContextUser, RequestContext, get_context, get_current_user
from volunflow.auth.cookies import OAUTH_STATE_COOKIE, session_cookies
from volunflow.auth.errors import RefreshTokenRejected, TokenError, Unauthenticated
from volunflow.auth.jwt import REFRESH, verify_token
from volunflow.auth.oauth import OAuthError, OAuthProvider, get_oauth_providers
from volunflow.auth.tokens import TokenService
from volunflow.config import settings
from volunflow.db.engine import get_db
from volunflow.schemas.auth import LoginRequest, MessageResponse, RegisterRequest, UserRead
from volunflow.services.account_service import AccountService

logger = structlog.get_logger()

router = APIRouter(prefix="/auth")


class OAuthRoute(str, enum.Enum):
    google = "google"
    facebook = "facebook"


# ─── Register / Login ───────────────────────────────────


@router.post("/register", response_model=UserRead, status_code=201)
async def register(
    body: RegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Create an email/password account and start a session."""
    user = await AccountService(db).register(
        email=body.email,
        name=body.name,
        password=body.password,
        avatar_url=body.avatar_url,
    )
    pair = await TokenService(db).issue_token_pair(user)
    session_cookies.attach(response, pair.access_token, pair.refresh_token)
    return user


@router.post("/login", response_model=UserRead)
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Email/password login. Supersedes any session the user had elsewhere."""
    user = await AccountService(db).authenticate(body.email, body.password)
    pair = await TokenService(db).issue_token_pair(user)
    session_cookies.attach(response, pair.access_token, pair.refresh_token)
    return user


# ─── Refresh / Logout ───────────────────────────────────


@router.post("/refresh_token", response_model=MessageResponse)
async def refresh_token(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Rotate the session: the presented refresh token becomes invalid."""
    raw = session_cookies.read_refresh(request)
    if raw is None:
        raise Unauthenticated("Refresh token missing.")

    try:
        _, pair = await TokenService(db).rotate_from_refresh_token(raw)
    except RefreshTokenRejected as exc:
        # The client's session is over; drop its cookies too.
        rejected = error_response(exc)
        session_cookies.clear(rejected)
        return rejected

    session_cookies.attach(response, pair.access_token, pair.refresh_token)
    return {"message": "Token refreshed"}


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    context: RequestContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
):
    """Revoke the stored refresh token (best effort) and clear both cookies.

    The refresh cookie is path-scoped to /refresh_token, so browsers do not
    send it here; the access-token identity is the usual way to find the
    user. Never fails visibly.
    """
    user_id: Optional[uuid.UUID] = None
    raw = session_cookies.read_refresh(request)
    if raw is not None:
        try:
            user_id = verify_token(raw, REFRESH)
        except TokenError as e:
            logger.debug("auth.logout_refresh_ignored", reason=str(e))
    if user_id is None and context.user is not None:
        user_id = context.user.id

    if user_id is not None:
        try:
            await TokenService(db).revoke(user_id)
        except SQLAlchemyError as e:
            logger.warning("auth.logout_revoke_failed", user_id=str(user_id), error=type(e).__name__)

    session_cookies.clear(response)
    return {"message": "Logged out"}


@router.get("/me", response_model=UserRead)
async def me(user: ContextUser = Depends(get_current_user)):
    """The caller's identity as resolved from the access-token cookie."""
    return user


# ─── OAuth ──────────────────────────────────────────────


def _client_redirect(path: str) -> RedirectResponse:
    return RedirectResponse(f"{settings.client_url.rstrip('/')}{path}", status_code=302)


@router.get("/{provider}")
async def oauth_start(
    provider: OAuthRoute,
    providers: dict[str, OAuthProvider] = Depends(get_oauth_providers),
):
    """Send the browser to the provider's consent screen."""
    impl = providers[provider.value]
    state = secrets.token_urlsafe(24)
    try:
        url = impl.authorize_url(state)
    except OAuthError as e:
        logger.warning("oauth.start_failed", provider=provider.value, error=str(e))
        return _client_redirect("/login")

    redirect = RedirectResponse(url, status_code=302)
    session_cookies.attach_oauth_state(redirect, state)
    return redirect


@router.get("/{provider}/callback")
async def oauth_callback(
    provider: OAuthRoute,
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    providers: dict[str, OAuthProvider] = Depends(get_oauth_providers),
    db: AsyncSession = Depends(get_db),
):
    """Finish provider sign-in and start a session exactly like login."""
    failure = _client_redirect("/login")
    session_cookies.clear_oauth_state(failure)

    expected_state = request.cookies.get(OAUTH_STATE_COOKIE)
    if not code or not state or not expected_state or not secrets.compare_digest(
        state.encode(), expected_state.encode()
    ):
        logger.warning("oauth.state_mismatch", provider=provider.value)
        return failure

    impl = providers[provider.value]
    try:
        profile = await impl.exchange_code_for_profile(code)
    except (OAuthError, httpx.HTTPError) as e:
        logger.warning("oauth.callback_failed", provider=provider.value, error=str(e))
        return failure

    user = await AccountService(db).find_or_create_from_profile(profile)
    pair = await TokenService(db).issue_token_pair(user)

    success = _client_redirect("/dashboard")
    session_cookies.attach(success, pair.access_token, pair.refresh_token)
    session_cookies.clear_oauth_state(success)
    logger.info("oauth.login", provider=provider.value, user_id=str(user.id))
    return success
