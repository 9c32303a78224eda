"""Badge service — badge templates and awards."""

import uuid

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from volunflow.audit.store import AuditStore
from volunflow.audit.types import BADGE_AWARDED, BADGE_CREATED
from volunflow.auth.context import ContextUser
from volunflow.auth.errors import Conflict, NotFound
from volunflow.auth.guard import authorize_owned, require_ngo_admin
from volunflow.db.models import Badge, EarnedBadge, User
from volunflow.schemas.badge import BadgeCreate

logger = structlog.get_logger()


class BadgeService:
    """Business logic for badges."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditStore(db)

    async def create_badge(self, identity: ContextUser | None, body: BadgeCreate) -> Badge:
        ngo_id = require_ngo_admin(identity)
        badge = Badge(ngo_id=ngo_id, **body.model_dump())
        self.db.add(badge)
        await self.db.flush()
        await self.audit.append(
            stream_id=f"badge:{badge.id}",
            event_type=BADGE_CREATED,
            data={"ngo_id": str(ngo_id), "name": badge.name},
            metadata={"actor_id": str(identity.id)},
        )
        await self.db.commit()
        return badge

    async def award_badge(
        self, identity: ContextUser | None, badge_id: uuid.UUID, user_id: uuid.UUID
    ) -> EarnedBadge:
        """Award one of the admin's own badges to a user."""
        await authorize_owned(self.db, identity, Badge, badge_id)
        if await self.db.get(User, user_id) is None:
            raise NotFound("User not found.")

        earned = EarnedBadge(user_id=user_id, badge_id=badge_id)
        self.db.add(earned)
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise Conflict("This user has already earned this badge.")

        await self.audit.append(
            stream_id=f"badge:{badge_id}",
            event_type=BADGE_AWARDED,
            data={"user_id": str(user_id)},
            metadata={"actor_id": str(identity.id)},
        )
        await self.db.commit()
        logger.info("badge.awarded", badge_id=str(badge_id), user_id=str(user_id))
        return earned
