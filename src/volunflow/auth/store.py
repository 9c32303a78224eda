"""Credential store — user rows and the per-user refresh-token hash.

The refresh_token_hash column is the only mutable state shared between
concurrent session operations. It is written three ways:

- replace_refresh_hash: unconditional overwrite (login, register, OAuth)
- swap_refresh_hash:    compare-and-swap keyed on the previous hash (refresh)
- clear_refresh_hash:   set to NULL (logout, forced revocation)

swap_refresh_hash is a single conditional UPDATE, so two concurrent
refreshes with the same token cannot both succeed: the second one matches
zero rows.
"""

import uuid
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from volunflow.db.models import AuthProvider, User, UserRole


class CredentialStore:
    """Persistence for user identities and session state."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Lookups ────────────────────────────────────────

    async def get_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        # populate_existing: role and session state must be read fresh even
        # if this session already holds the row.
        result = await self.db.execute(
            select(User)
            .where(User.id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalars().first()

    # ─── Account creation ───────────────────────────────

    async def create_user(
        self,
        email: str,
        name: str,
        password_hash: Optional[str] = None,
        auth_provider: AuthProvider = AuthProvider.EMAIL,
        avatar_url: Optional[str] = None,
        role: UserRole = UserRole.VOLUNTEER,
    ) -> User:
        user = User(
            email=email.strip().lower(),
            name=name,
            password_hash=password_hash,
            auth_provider=auth_provider,
            avatar_url=avatar_url,
            role=role,
        )
        self.db.add(user)
        await self.db.flush()
        return user

    async def promote_to_ngo_admin(self, user_id: uuid.UUID, ngo_id: uuid.UUID) -> bool:
        """One-time promotion. Returns False if the user already administers an NGO."""
        result = await self.db.execute(
            update(User)
            .where(User.id == user_id, User.admin_of_ngo_id.is_(None))
            .values(role=UserRole.NGO_ADMIN, admin_of_ngo_id=ngo_id)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    # ─── Refresh-token state ────────────────────────────

    async def replace_refresh_hash(self, user_id: uuid.UUID, token_hash: str) -> None:
        await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(refresh_token_hash=token_hash)
            .execution_options(synchronize_session="fetch")
        )

    async def swap_refresh_hash(
        self, user_id: uuid.UUID, expected_hash: str, new_hash: str
    ) -> bool:
        """Write new_hash only if the stored hash is still expected_hash."""
        result = await self.db.execute(
            update(User)
            .where(User.id == user_id, User.refresh_token_hash == expected_hash)
            .values(refresh_token_hash=new_hash)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    async def clear_refresh_hash(self, user_id: uuid.UUID) -> None:
        await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(refresh_token_hash=None)
            .execution_options(synchronize_session="fetch")
        )
