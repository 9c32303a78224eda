"""Password and refresh-token hashing.

bcrypt salts automatically and is deliberately slow. It only reads the
first 72 bytes of its input, which is fine for passwords but not for JWTs:
two refresh tokens for the same user share a long header/payload prefix.
Refresh tokens are therefore SHA-256 digested first and the 64-char hex
digest is what bcrypt sees.

All functions here are synchronous and CPU-bound; async callers run them
through asyncio.to_thread.
"""

import hashlib

import bcrypt

from volunflow.config import settings


def hash_password(password: str) -> str:
    """Hash a password with bcrypt (72-byte truncation)."""
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash. Malformed hashes fail."""
    try:
        pw_bytes = password.encode("utf-8")[:72]
        return bcrypt.checkpw(pw_bytes, password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def _token_digest(token: str) -> bytes:
    return hashlib.sha256(token.encode("utf-8")).hexdigest().encode("ascii")


def hash_refresh_token(token: str) -> str:
    """One-way hash of a raw refresh token for storage."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(_token_digest(token), salt).decode("utf-8")


def verify_refresh_token(token: str, token_hash: str) -> bool:
    """Compare a raw refresh token with the stored hash."""
    try:
        return bcrypt.checkpw(_token_digest(token), token_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False
