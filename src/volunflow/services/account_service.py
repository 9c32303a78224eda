"""Account service — registration, password login, OAuth find-or-create.

Token issuance is not done here: every successful path hands the User to
TokenService.issue_token_pair, so login, registration and OAuth all end
in exactly the same session state.
"""

import asyncio

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from volunflow.audit.store import AuditStore
from volunflow.audit.types import USER_OAUTH_LINKED, USER_REGISTERED
from volunflow.auth.errors import Conflict, Unauthenticated
from volunflow.auth.oauth import VerifiedProfile
from volunflow.auth.password import hash_password, verify_password
from volunflow.auth.store import CredentialStore
from volunflow.db.models import AuthProvider, User

logger = structlog.get_logger()

INVALID_CREDENTIALS = "Invalid credentials"


class AccountService:
    """Business logic for user accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = CredentialStore(db)
        self.audit = AuditStore(db)

    async def register(
        self,
        email: str,
        name: str,
        password: str,
        avatar_url: str | None = None,
    ) -> User:
        if await self.store.get_by_email(email):
            raise Conflict("Email already in use.")

        password_hash = await asyncio.to_thread(hash_password, password)
        try:
            user = await self.store.create_user(
                email=email,
                name=name,
                password_hash=password_hash,
                auth_provider=AuthProvider.EMAIL,
                avatar_url=avatar_url,
            )
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email.
            await self.db.rollback()
            raise Conflict("Email already in use.")

        await self.audit.append(
            stream_id=f"user:{user.id}",
            event_type=USER_REGISTERED,
            data={"provider": AuthProvider.EMAIL.value},
        )
        logger.info("auth.user_registered", user_id=str(user.id))
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """Email/password login. Every failure raises the same error."""
        user = await self.store.get_by_email(email)
        if user is None or not user.password_hash:
            logger.info("auth.login_failed", reason="no password account")
            raise Unauthenticated(INVALID_CREDENTIALS)

        valid = await asyncio.to_thread(verify_password, password, user.password_hash)
        if not valid:
            logger.info("auth.login_failed", reason="bad password", user_id=str(user.id))
            raise Unauthenticated(INVALID_CREDENTIALS)
        return user

    async def find_or_create_from_profile(self, profile: VerifiedProfile) -> User:
        """Map a provider-verified identity onto a local user row."""
        user = await self.store.get_by_email(profile.email)
        if user is not None:
            if user.auth_provider != profile.provider:
                user.auth_provider = profile.provider
                user.avatar_url = profile.photo_url or user.avatar_url
                await self.audit.append(
                    stream_id=f"user:{user.id}",
                    event_type=USER_OAUTH_LINKED,
                    data={"provider": profile.provider.value},
                )
                await self.db.flush()
            return user

        try:
            user = await self.store.create_user(
                email=profile.email,
                name=profile.display_name,
                auth_provider=profile.provider,
                avatar_url=profile.photo_url,
            )
        except IntegrityError:
            await self.db.rollback()
            user = await self.store.get_by_email(profile.email)
            if user is None:
                raise
            return user

        await self.audit.append(
            stream_id=f"user:{user.id}",
            event_type=USER_REGISTERED,
            data={"provider": profile.provider.value},
        )
        logger.info("auth.user_registered", user_id=str(user.id), provider=profile.provider.value)
        return user
