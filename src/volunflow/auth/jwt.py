"""JWT creation and verification.

- Access token: short-lived (1 day), checked on every request by signature
  and expiry alone.
- Refresh token: long-lived (7 days), accepted only by the refresh endpoint
  and only while its hash is the one stored for the user.

Both carry just the user id (sub), a type claim and a random jti. Each
type is signed with its own secret.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from volunflow.auth.errors import TokenError
from volunflow.config import settings

ACCESS = "access"
REFRESH = "refresh"


def _secret_for(token_type: str) -> str:
    if token_type == ACCESS:
        return settings.access_token_secret
    return settings.refresh_token_secret


def _encode(user_id: str, token_type: str, expires_in: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "type": token_type,
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, _secret_for(token_type), algorithm=settings.jwt_algorithm)


def create_access_token(user_id: str, expires_minutes: Optional[int] = None) -> str:
    """Create a JWT access token."""
    return _encode(
        user_id,
        ACCESS,
        timedelta(minutes=expires_minutes or settings.access_token_expire_minutes),
    )


def create_refresh_token(user_id: str, expires_days: Optional[int] = None) -> str:
    """Create a JWT refresh token."""
    return _encode(
        user_id,
        REFRESH,
        timedelta(days=expires_days or settings.refresh_token_expire_days),
    )


def verify_token(token: str, token_type: str) -> uuid.UUID:
    """Verify a token of the given type and return its user id.

    Raises TokenError on any failure. The reason is kept on the exception
    for logging but callers must not echo it to clients.
    """
    try:
        payload = jwt.decode(
            token,
            _secret_for(token_type),
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp", "type"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"invalid: {type(e).__name__}")

    if payload.get("type") != token_type:
        raise TokenError("wrong token type")
    try:
        return uuid.UUID(str(payload["sub"]))
    except ValueError:
        raise TokenError("malformed subject")
