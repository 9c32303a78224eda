"""Badge API routes."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from volunflow.auth.context import RequestContext, get_context
from volunflow.db.engine import get_db
from volunflow.schemas.badge import AwardBadgeRequest, BadgeCreate, BadgeRead, EarnedBadgeRead
from volunflow.services.badge_service import BadgeService

router = APIRouter(prefix="/badges")


def _svc(db: AsyncSession = Depends(get_db)) -> BadgeService:
    return BadgeService(db)


@router.post("", response_model=BadgeRead, status_code=201)
async def create_badge(
    body: BadgeCreate,
    context: RequestContext = Depends(get_context),
    svc: BadgeService = Depends(_svc),
):
    return await svc.create_badge(context.user, body)


@router.post("/{badge_id}/award", response_model=EarnedBadgeRead, status_code=201)
async def award_badge(
    badge_id: uuid.UUID,
    body: AwardBadgeRequest,
    context: RequestContext = Depends(get_context),
    svc: BadgeService = Depends(_svc),
):
    """Award one of the caller's NGO badges to a user. 409 if already earned."""
    return await svc.award_badge(context.user, badge_id, body.user_id)
