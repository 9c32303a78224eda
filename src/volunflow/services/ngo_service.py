"""NGO service — tenant creation, profile updates, branches.

Creating an NGO promotes its creator to NGO_ADMIN of that NGO in the same
transaction. The promotion is one-time: a user who already administers an
NGO cannot create another.
"""

import uuid

import structlog
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from volunflow.audit.store import AuditStore
from volunflow.audit.types import (
    BRANCH_CREATED,
    BRANCH_DELETED,
    NGO_CREATED,
    NGO_UPDATED,
    USER_PROMOTED,
)
from volunflow.auth.context import ContextUser
from volunflow.auth.errors import Conflict, Forbidden
from volunflow.auth.guard import authorize_owned, require_ngo_admin, require_user
from volunflow.auth.store import CredentialStore
from volunflow.db.models import Branch, Ngo
from volunflow.schemas.ngo import BranchCreate, NgoCreate, NgoUpdate, slugify

logger = structlog.get_logger()

_CLEARABLE_NGO_FIELDS = {"logo_url", "website"}


class NgoService:
    """Business logic for NGOs and their branches."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = CredentialStore(db)
        self.audit = AuditStore(db)

    async def _ensure_name_free(self, name: str, slug: str, exclude: uuid.UUID | None = None):
        query = select(Ngo.id).where(or_(Ngo.name == name, Ngo.slug == slug))
        if exclude is not None:
            query = query.where(Ngo.id != exclude)
        if (await self.db.execute(query)).first():
            raise Conflict("An NGO with this name or slug already exists.")

    # ─── NGOs ───────────────────────────────────────────

    async def create_ngo(self, identity: ContextUser | None, body: NgoCreate) -> Ngo:
        identity = require_user(identity)
        if identity.admin_of_ngo_id is not None:
            raise Forbidden("You are already an admin of an NGO.")

        slug = slugify(body.name)
        await self._ensure_name_free(body.name, slug)

        ngo = Ngo(slug=slug, **body.model_dump())
        self.db.add(ngo)
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise Conflict("An NGO with this name or slug already exists.")

        if not await self.store.promote_to_ngo_admin(identity.id, ngo.id):
            # A concurrent request promoted this user first.
            await self.db.rollback()
            raise Forbidden("You are already an admin of an NGO.")

        await self.audit.append(
            stream_id=f"ngo:{ngo.id}",
            event_type=NGO_CREATED,
            data={"name": ngo.name, "slug": ngo.slug},
            metadata={"actor_id": str(identity.id)},
        )
        await self.audit.append(
            stream_id=f"user:{identity.id}",
            event_type=USER_PROMOTED,
            data={"role": "NGO_ADMIN", "ngo_id": str(ngo.id)},
        )
        await self.db.commit()
        logger.info("ngo.created", ngo_id=str(ngo.id), admin_id=str(identity.id))
        return ngo

    async def update_my_ngo(self, identity: ContextUser | None, body: NgoUpdate) -> Ngo:
        ngo_id = require_ngo_admin(identity)
        result = await self.db.execute(
            select(Ngo).where(Ngo.id == ngo_id).with_for_update()
        )
        ngo = result.scalars().one()

        changes = {
            k: v
            for k, v in body.model_dump(exclude_unset=True).items()
            if v is not None or k in _CLEARABLE_NGO_FIELDS
        }
        if "name" in changes:
            changes["slug"] = slugify(changes["name"])
            await self._ensure_name_free(changes["name"], changes["slug"], exclude=ngo.id)
        for field, value in changes.items():
            setattr(ngo, field, value)
        try:
            await self.db.flush()
        except IntegrityError:
            # A concurrent rename took the name between the check and the write.
            await self.db.rollback()
            raise Conflict("An NGO with this name or slug already exists.")

        await self.audit.append(
            stream_id=f"ngo:{ngo.id}",
            event_type=NGO_UPDATED,
            data={"fields": sorted(changes)},
            metadata={"actor_id": str(identity.id)},
        )
        await self.db.commit()
        return ngo

    async def get_by_slug(self, slug: str) -> Ngo | None:
        result = await self.db.execute(select(Ngo).where(Ngo.slug == slug))
        return result.scalars().first()

    # ─── Branches ───────────────────────────────────────

    async def add_branch(self, identity: ContextUser | None, body: BranchCreate) -> Branch:
        ngo_id = require_ngo_admin(identity)
        branch = Branch(ngo_id=ngo_id, **body.model_dump())
        self.db.add(branch)
        await self.db.flush()
        await self.audit.append(
            stream_id=f"branch:{branch.id}",
            event_type=BRANCH_CREATED,
            data={"ngo_id": str(ngo_id), "city": branch.city},
            metadata={"actor_id": str(identity.id)},
        )
        await self.db.commit()
        return branch

    async def delete_branch(self, identity: ContextUser | None, branch_id: uuid.UUID) -> None:
        branch = await authorize_owned(self.db, identity, Branch, branch_id)
        await self.db.delete(branch)
        await self.audit.append(
            stream_id=f"branch:{branch_id}",
            event_type=BRANCH_DELETED,
            data={"ngo_id": str(branch.ngo_id)},
            metadata={"actor_id": str(identity.id)},
        )
        await self.db.commit()
        logger.info("branch.deleted", branch_id=str(branch_id))
