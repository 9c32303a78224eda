"""Session cookie gateway — tokens ↔ HTTP cookies.

accessToken   path=/                        max-age 1 day
refreshToken  path=/api/v1/auth/refresh_token  max-age 7 days

Both HttpOnly + SameSite=Strict, Secure in production. The refresh cookie
is path-scoped so the browser only ever sends it to the refresh endpoint;
script injection on any other route never sees it on the wire. Clearing
must use the same path or the browser keeps the old cookie.
"""

from typing import Optional

from starlette.requests import Request
from starlette.responses import Response

from volunflow.config import Settings, settings as default_settings

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"
OAUTH_STATE_COOKIE = "oauthState"


class SessionCookies:
    """Writes, reads and clears the session cookie pair."""

    def __init__(self, settings: Settings = default_settings):
        self.settings = settings

    def _common(self) -> dict:
        return {
            "httponly": True,
            "secure": self.settings.is_production,
            "samesite": "strict",
        }

    def attach(self, response: Response, access_token: str, refresh_token: str) -> None:
        response.set_cookie(
            ACCESS_COOKIE,
            access_token,
            max_age=self.settings.access_token_expire_minutes * 60,
            path="/",
            **self._common(),
        )
        response.set_cookie(
            REFRESH_COOKIE,
            refresh_token,
            max_age=self.settings.refresh_token_expire_days * 24 * 60 * 60,
            path=self.settings.refresh_cookie_path,
            **self._common(),
        )

    def clear(self, response: Response) -> None:
        response.delete_cookie(ACCESS_COOKIE, path="/", **self._common())
        response.delete_cookie(
            REFRESH_COOKIE, path=self.settings.refresh_cookie_path, **self._common()
        )

    @staticmethod
    def read_access(request: Request) -> Optional[str]:
        return request.cookies.get(ACCESS_COOKIE) or None

    @staticmethod
    def read_refresh(request: Request) -> Optional[str]:
        return request.cookies.get(REFRESH_COOKIE) or None

    # ─── OAuth CSRF state ───────────────────────────────

    def attach_oauth_state(self, response: Response, state: str) -> None:
        # Lax, not Strict: the provider redirects back cross-site.
        response.set_cookie(
            OAUTH_STATE_COOKIE,
            state,
            max_age=10 * 60,
            path=f"{self.settings.api_prefix}/auth",
            httponly=True,
            secure=self.settings.is_production,
            samesite="lax",
        )

    def clear_oauth_state(self, response: Response) -> None:
        response.delete_cookie(
            OAUTH_STATE_COOKIE,
            path=f"{self.settings.api_prefix}/auth",
            httponly=True,
            secure=self.settings.is_production,
            samesite="lax",
        )


session_cookies = SessionCookies()
