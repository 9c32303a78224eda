"""Token service — issue, verify, rotate and revoke session tokens.

Session lifecycle for one user:

    login/register/OAuth ──► issue_token_pair ──► hash stored (replaces old)
    every request        ──► verify_access_token (no DB)
    POST /refresh_token  ──► rotate_from_refresh_token ──► new pair, CAS on hash
    logout               ──► revoke ──► hash cleared

Only one refresh token per user is live at a time. A used or superseded
refresh token no longer matches the stored hash, so replaying it fails.
A second login (e.g. another device) also supersedes the previous one.
"""

import asyncio
import uuid
from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from volunflow.audit.store import AuditStore
from volunflow.audit.types import (
    SESSION_ISSUED,
    SESSION_REFRESH_REJECTED,
    SESSION_REVOKED,
    SESSION_ROTATED,
)
from volunflow.auth.errors import RefreshTokenRejected, TokenError
from volunflow.auth.jwt import (
    ACCESS,
    REFRESH,
    create_access_token,
    create_refresh_token,
    verify_token,
)
from volunflow.auth.password import hash_refresh_token, verify_refresh_token
from volunflow.auth.store import CredentialStore
from volunflow.db.models import User

logger = structlog.get_logger()


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenService:
    """Session token lifecycle on top of the credential store."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = CredentialStore(db)
        self.audit = AuditStore(db)

    @staticmethod
    def _mint(user_id: uuid.UUID) -> TokenPair:
        return TokenPair(
            access_token=create_access_token(str(user_id)),
            refresh_token=create_refresh_token(str(user_id)),
        )

    @staticmethod
    def verify_access_token(token: str) -> uuid.UUID:
        """Signature + expiry check only, no database round-trip. Raises TokenError."""
        return verify_token(token, ACCESS)

    async def issue_token_pair(self, user: User) -> TokenPair:
        """Mint a fresh pair and make its refresh token the only live one."""
        pair = self._mint(user.id)
        token_hash = await asyncio.to_thread(hash_refresh_token, pair.refresh_token)
        await self.store.replace_refresh_hash(user.id, token_hash)
        await self.audit.append(stream_id=f"user:{user.id}", event_type=SESSION_ISSUED)
        await self.db.commit()
        logger.info("auth.session_issued", user_id=str(user.id))
        return pair

    async def rotate_from_refresh_token(self, raw_token: str) -> tuple[User, TokenPair]:
        """Exchange a live refresh token for a brand-new pair.

        Raises RefreshTokenRejected if the token is invalid, expired, not
        the stored one, or lost a concurrent rotation race.
        """
        try:
            user_id = verify_token(raw_token, REFRESH)
        except TokenError as e:
            logger.info("auth.refresh_rejected", reason=str(e))
            raise RefreshTokenRejected()

        user = await self.store.get_by_id(user_id)
        if user is None or not user.refresh_token_hash:
            logger.info("auth.refresh_rejected", reason="no live session", user_id=str(user_id))
            raise RefreshTokenRejected()

        stored_hash = user.refresh_token_hash
        matches = await asyncio.to_thread(verify_refresh_token, raw_token, stored_hash)
        if not matches:
            # Signed by us but superseded: replay of an old token.
            await self._record_rejection(user_id, "superseded")
            raise RefreshTokenRejected()

        pair = self._mint(user.id)
        new_hash = await asyncio.to_thread(hash_refresh_token, pair.refresh_token)
        if not await self.store.swap_refresh_hash(user.id, stored_hash, new_hash):
            await self.db.rollback()
            await self._record_rejection(user_id, "concurrent rotation")
            raise RefreshTokenRejected()

        await self.audit.append(stream_id=f"user:{user.id}", event_type=SESSION_ROTATED)
        await self.db.commit()
        logger.info("auth.session_rotated", user_id=str(user.id))
        return user, pair

    async def revoke(self, user_id: uuid.UUID) -> None:
        """Clear the stored refresh-token hash. Safe to call repeatedly."""
        await self.store.clear_refresh_hash(user_id)
        await self.audit.append(stream_id=f"user:{user_id}", event_type=SESSION_REVOKED)
        await self.db.commit()
        logger.info("auth.session_revoked", user_id=str(user_id))

    async def _record_rejection(self, user_id: uuid.UUID, reason: str) -> None:
        logger.warning("auth.refresh_rejected", reason=reason, user_id=str(user_id))
        await self.audit.append(
            stream_id=f"user:{user_id}",
            event_type=SESSION_REFRESH_REJECTED,
            data={"reason": reason},
        )
        await self.db.commit()
