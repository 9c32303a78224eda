"""Event service — NGO events and volunteer signups.

Admin operations on an existing event go through authorize_owned;
creation stamps the admin's own ngo_id. Signing up only needs an identity.
"""

import uuid

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from volunflow.audit.store import AuditStore
from volunflow.audit.types import EVENT_CREATED, EVENT_DELETED, EVENT_UPDATED
from volunflow.auth.context import ContextUser
from volunflow.auth.errors import Conflict, NotFound
from volunflow.auth.guard import authorize_owned, require_ngo_admin, require_user
from volunflow.db.models import Event, Signup, User
from volunflow.schemas.event import EventCreate, EventUpdate

logger = structlog.get_logger()

CONFIRMED = "CONFIRMED"
CANCELLED = "CANCELLED"
_CLEARABLE_EVENT_FIELDS = {"image_url", "max_volunteers"}


class EventService:
    """Business logic for events."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditStore(db)

    # ─── Admin operations ───────────────────────────────

    async def create_event(self, identity: ContextUser | None, body: EventCreate) -> Event:
        ngo_id = require_ngo_admin(identity)
        event = Event(ngo_id=ngo_id, **body.model_dump())
        self.db.add(event)
        await self.db.flush()
        await self.audit.append(
            stream_id=f"event:{event.id}",
            event_type=EVENT_CREATED,
            data={"ngo_id": str(ngo_id), "title": event.title},
            metadata={"actor_id": str(identity.id)},
        )
        await self.db.commit()
        return event

    async def update_event(
        self, identity: ContextUser | None, event_id: uuid.UUID, body: EventUpdate
    ) -> Event:
        event = await authorize_owned(self.db, identity, Event, event_id)
        changes = {
            k: v
            for k, v in body.model_dump(exclude_unset=True).items()
            if v is not None or k in _CLEARABLE_EVENT_FIELDS
        }
        for field, value in changes.items():
            setattr(event, field, value)
        await self.audit.append(
            stream_id=f"event:{event_id}",
            event_type=EVENT_UPDATED,
            data={"fields": sorted(changes)},
            metadata={"actor_id": str(identity.id)},
        )
        await self.db.commit()
        return event

    async def delete_event(self, identity: ContextUser | None, event_id: uuid.UUID) -> None:
        event = await authorize_owned(self.db, identity, Event, event_id)
        await self.db.delete(event)
        await self.audit.append(
            stream_id=f"event:{event_id}",
            event_type=EVENT_DELETED,
            data={"ngo_id": str(event.ngo_id)},
            metadata={"actor_id": str(identity.id)},
        )
        await self.db.commit()
        logger.info("event.deleted", event_id=str(event_id))

    async def list_attendees(self, identity: ContextUser | None, event_id: uuid.UUID) -> list[User]:
        await authorize_owned(self.db, identity, Event, event_id, for_update=False)
        result = await self.db.execute(
            select(User)
            .join(Signup, Signup.user_id == User.id)
            .where(Signup.event_id == event_id, Signup.status == CONFIRMED)
            .order_by(User.name)
        )
        return list(result.scalars().all())

    # ─── Volunteer operations ───────────────────────────

    async def sign_up(self, identity: ContextUser | None, event_id: uuid.UUID) -> Signup:
        identity = require_user(identity)
        if await self.db.get(Event, event_id) is None:
            raise NotFound("Event not found.")

        existing = await self._get_signup(identity.id, event_id)
        if existing is not None:
            if existing.status == CONFIRMED:
                raise Conflict("You have already signed up for this event.")
            existing.status = CONFIRMED
            await self.db.commit()
            return existing

        signup = Signup(user_id=identity.id, event_id=event_id, status=CONFIRMED)
        self.db.add(signup)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise Conflict("You have already signed up for this event.")
        return signup

    async def cancel_signup(self, identity: ContextUser | None, event_id: uuid.UUID) -> Signup:
        identity = require_user(identity)
        signup = await self._get_signup(identity.id, event_id)
        if signup is None:
            raise NotFound("Signup not found or you're not registered for this event.")
        signup.status = CANCELLED
        await self.db.commit()
        return signup

    async def _get_signup(self, user_id: uuid.UUID, event_id: uuid.UUID) -> Signup | None:
        result = await self.db.execute(
            select(Signup).where(Signup.user_id == user_id, Signup.event_id == event_id)
        )
        return result.scalars().first()
