"""Event and Signup API routes."""

import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from volunflow.auth.context import RequestContext, get_context
from volunflow.db.engine import get_db
from volunflow.schemas.event import AttendeeRead, EventCreate, EventRead, EventUpdate, SignupRead
from volunflow.services.event_service import EventService

router = APIRouter(prefix="/events")


def _svc(db: AsyncSession = Depends(get_db)) -> EventService:
    return EventService(db)


# ─── Admin ──────────────────────────────────────────────

@router.post("", response_model=EventRead, status_code=201)
async def create_event(
    body: EventCreate,
    context: RequestContext = Depends(get_context),
    svc: EventService = Depends(_svc),
):
    """Create an event for the caller's own NGO."""
    return await svc.create_event(context.user, body)


@router.patch("/{event_id}", response_model=EventRead)
async def update_event(
    event_id: uuid.UUID,
    body: EventUpdate,
    context: RequestContext = Depends(get_context),
    svc: EventService = Depends(_svc),
):
    return await svc.update_event(context.user, event_id, body)


@router.delete("/{event_id}", status_code=204)
async def delete_event(
    event_id: uuid.UUID,
    context: RequestContext = Depends(get_context),
    svc: EventService = Depends(_svc),
):
    await svc.delete_event(context.user, event_id)
    return Response(status_code=204)


@router.get("/{event_id}/attendees", response_model=list[AttendeeRead])
async def list_attendees(
    event_id: uuid.UUID,
    context: RequestContext = Depends(get_context),
    svc: EventService = Depends(_svc),
):
    """Confirmed volunteers of an event. Owner admins only."""
    return await svc.list_attendees(context.user, event_id)


# ─── Volunteers ─────────────────────────────────────────

@router.post("/{event_id}/signup", response_model=SignupRead, status_code=201)
async def sign_up(
    event_id: uuid.UUID,
    context: RequestContext = Depends(get_context),
    svc: EventService = Depends(_svc),
):
    return await svc.sign_up(context.user, event_id)


@router.delete("/{event_id}/signup", response_model=SignupRead)
async def cancel_signup(
    event_id: uuid.UUID,
    context: RequestContext = Depends(get_context),
    svc: EventService = Depends(_svc),
):
    return await svc.cancel_signup(context.user, event_id)
