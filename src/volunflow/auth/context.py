"""Identity resolution — who is making this request.

IdentityMiddleware runs on every request:

1. no accessToken cookie        → anonymous
2. cookie fails verification    → anonymous (stale/garbage cookies never
                                  break a request)
3. verified, user row missing   → anonymous
4. verified, user row found     → RequestContext(user=<stripped user>)

The user row is re-read on every request: role and admin_of_ngo_id are
never taken from the token, so a promotion or de-provisioning applies on
the very next call. Handlers read the result through get_context /
get_current_user and never touch tokens themselves.
"""

from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Depends
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from volunflow.auth.cookies import SessionCookies
from volunflow.auth.errors import TokenError, Unauthenticated
from volunflow.auth.store import CredentialStore
from volunflow.auth.tokens import TokenService
from volunflow.schemas.auth import UserRead

logger = structlog.get_logger()

ContextUser = UserRead


@dataclass(frozen=True)
class RequestContext:
    """Per-request identity. user is None for anonymous callers."""

    user: Optional[ContextUser] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


ANONYMOUS = RequestContext()


def _session_factory(request: Request):
    factory = getattr(request.app.state, "session_factory", None)
    if factory is None:
        from volunflow.db.engine import async_session_factory

        factory = async_session_factory
    return factory


async def resolve_identity(request: Request) -> RequestContext:
    token = SessionCookies.read_access(request)
    if not token:
        return ANONYMOUS

    try:
        user_id = TokenService.verify_access_token(token)
    except TokenError as e:
        logger.debug("auth.access_token_ignored", reason=str(e))
        return ANONYMOUS

    async with _session_factory(request)() as session:
        user = await CredentialStore(session).get_by_id(user_id)
        if user is None:
            logger.info("auth.access_token_unknown_user", user_id=str(user_id))
            return ANONYMOUS
        return RequestContext(user=ContextUser.model_validate(user))


class IdentityMiddleware(BaseHTTPMiddleware):
    """Attach a RequestContext to request.state for every request."""

    async def dispatch(self, request: Request, call_next) -> Response:
        context = await resolve_identity(request)
        request.state.context = context
        if context.user is not None:
            structlog.contextvars.bind_contextvars(user_id=str(context.user.id))
        return await call_next(request)


def get_context(request: Request) -> RequestContext:
    """FastAPI dependency — the identity resolved by IdentityMiddleware."""
    return getattr(request.state, "context", ANONYMOUS)


def get_current_user(
    context: RequestContext = Depends(get_context),
) -> ContextUser:
    """FastAPI dependency — the caller's identity, or 401 when anonymous."""
    if context.user is None:
        raise Unauthenticated()
    return context.user
