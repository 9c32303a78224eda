"""OAuth sign-in providers (Google, Facebook).

Each provider turns an authorization code into a VerifiedProfile. What
happens next (find-or-create the user, issue our own token pair) is the
same for every provider and lives in the auth routes. Provider tokens are
used once to read the profile and then discarded; they are never stored.

Setup (Google):
    VOLUNFLOW_GOOGLE_CLIENT_ID / VOLUNFLOW_GOOGLE_CLIENT_SECRET, redirect URI
    {server_url}/api/v1/auth/google/callback

Setup (Facebook):
    VOLUNFLOW_FACEBOOK_APP_ID / VOLUNFLOW_FACEBOOK_APP_SECRET, redirect URI
    {server_url}/api/v1/auth/facebook/callback
"""

from typing import Any, Optional, Protocol
from urllib.parse import urlencode

import httpx
import structlog
from pydantic import BaseModel

from volunflow.config import Settings, settings as default_settings
from volunflow.db.models import AuthProvider

logger = structlog.get_logger()


class VerifiedProfile(BaseModel):
    """Identity vouched for by an OAuth provider."""

    provider: AuthProvider
    provider_user_id: str
    email: str
    display_name: str
    photo_url: Optional[str] = None


class OAuthError(Exception):
    """OAuth flow failed (misconfiguration, provider error, missing email)."""


class OAuthProvider(Protocol):
    provider: AuthProvider

    @property
    def is_configured(self) -> bool: ...

    def authorize_url(self, state: str) -> str: ...

    async def exchange_code_for_profile(self, code: str) -> VerifiedProfile: ...


class _BaseOAuth:
    """Shared plumbing: redirect URI and the HTTP client."""

    slug = ""

    def __init__(
        self,
        settings: Settings = default_settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self._transport = transport

    @property
    def redirect_uri(self) -> str:
        base = self.settings.server_url.rstrip("/")
        return f"{base}{self.settings.api_prefix}/auth/{self.slug}/callback"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=10.0)

    def _read_json(self, response: httpx.Response, step: str) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            logger.error("oauth.malformed_response", provider=self.slug, step=step)
            raise OAuthError(f"Malformed {step} response")
        return data

    def _require_field(self, data: dict[str, Any], key: str, step: str) -> Any:
        value = data.get(key)
        if not value:
            logger.error("oauth.missing_field", provider=self.slug, step=step, field=key)
            raise OAuthError(f"No {key} in {step} response")
        return value

    def _require_configured(self) -> None:
        if not self.is_configured:
            raise OAuthError(f"{self.slug} OAuth not configured")

    @property
    def is_configured(self) -> bool:
        raise NotImplementedError


class GoogleOAuth(_BaseOAuth):
    """Google OAuth 2.0 (authorization code flow)."""

    provider = AuthProvider.GOOGLE
    slug = "google"

    AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.google_client_id and self.settings.google_client_secret)

    def authorize_url(self, state: str) -> str:
        self._require_configured()
        params = {
            "client_id": self.settings.google_client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": "openid email profile",
            "prompt": "select_account",
            "state": state,
        }
        return f"{self.AUTHORIZE_URL}?{urlencode(params)}"

    async def _exchange_code(self, client: httpx.AsyncClient, code: str) -> dict[str, Any]:
        response = await client.post(
            self.TOKEN_URL,
            data={
                "client_id": self.settings.google_client_id,
                "client_secret": self.settings.google_client_secret,
                "code": code,
                "redirect_uri": self.redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        if response.status_code != 200:
            logger.error("oauth.token_exchange_failed", provider=self.slug, status=response.status_code)
            raise OAuthError(f"Token exchange failed: {response.status_code}")
        return self._read_json(response, "token")

    async def exchange_code_for_profile(self, code: str) -> VerifiedProfile:
        self._require_configured()
        async with self._client() as client:
            tokens = await self._exchange_code(client, code)
            access_token = self._require_field(tokens, "access_token", "token")
            response = await client.get(
                self.USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        if response.status_code != 200:
            logger.error("oauth.userinfo_failed", provider=self.slug, status=response.status_code)
            raise OAuthError(f"Failed to get user info: {response.status_code}")

        data = self._read_json(response, "userinfo")
        email = data.get("email")
        if not email or not data.get("verified_email", True):
            raise OAuthError("Email not provided by Google.")
        return VerifiedProfile(
            provider=self.provider,
            provider_user_id=str(self._require_field(data, "id", "userinfo")),
            email=email,
            display_name=data.get("name") or email.split("@")[0],
            photo_url=data.get("picture"),
        )


class FacebookOAuth(_BaseOAuth):
    """Facebook Login (Graph API)."""

    provider = AuthProvider.FACEBOOK
    slug = "facebook"

    AUTHORIZE_URL = "https://www.facebook.com/v18.0/dialog/oauth"
    TOKEN_URL = "https://graph.facebook.com/v18.0/oauth/access_token"
    USERINFO_URL = "https://graph.facebook.com/v18.0/me"

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.facebook_app_id and self.settings.facebook_app_secret)

    def authorize_url(self, state: str) -> str:
        self._require_configured()
        params = {
            "client_id": self.settings.facebook_app_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": "email,public_profile",
            "state": state,
        }
        return f"{self.AUTHORIZE_URL}?{urlencode(params)}"

    async def exchange_code_for_profile(self, code: str) -> VerifiedProfile:
        self._require_configured()
        async with self._client() as client:
            response = await client.get(
                self.TOKEN_URL,
                params={
                    "client_id": self.settings.facebook_app_id,
                    "client_secret": self.settings.facebook_app_secret,
                    "code": code,
                    "redirect_uri": self.redirect_uri,
                },
            )
            if response.status_code != 200:
                logger.error("oauth.token_exchange_failed", provider=self.slug, status=response.status_code)
                raise OAuthError(f"Token exchange failed: {response.status_code}")
            access_token = self._require_field(
                self._read_json(response, "token"), "access_token", "token"
            )

            response = await client.get(
                self.USERINFO_URL,
                params={
                    "fields": "id,email,name,picture.type(large)",
                    "access_token": access_token,
                },
            )
        if response.status_code != 200:
            logger.error("oauth.userinfo_failed", provider=self.slug, status=response.status_code)
            raise OAuthError(f"Failed to get user info: {response.status_code}")

        data = self._read_json(response, "userinfo")
        email = data.get("email")
        if not email:
            raise OAuthError("Email not provided by Facebook.")
        return VerifiedProfile(
            provider=self.provider,
            provider_user_id=str(self._require_field(data, "id", "userinfo")),
            email=email,
            display_name=data.get("name") or email.split("@")[0],
            photo_url=data.get("picture", {}).get("data", {}).get("url"),
        )


_providers: Optional[dict[str, OAuthProvider]] = None


def get_oauth_providers() -> dict[str, OAuthProvider]:
    """FastAPI dependency — provider registry keyed by route slug."""
    global _providers
    if _providers is None:
        _providers = {"google": GoogleOAuth(), "facebook": FacebookOAuth()}
    return _providers
