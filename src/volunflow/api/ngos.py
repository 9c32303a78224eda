"""NGO and Branch API routes.

Any signed-in user may create an NGO and becomes its admin; everything
after that is scoped to the admin's own NGO by the service layer.
"""

import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from volunflow.auth.context import RequestContext, get_context
from volunflow.auth.errors import NotFound
from volunflow.db.engine import get_db
from volunflow.schemas.ngo import BranchCreate, BranchRead, NgoCreate, NgoRead, NgoUpdate
from volunflow.services.ngo_service import NgoService

router = APIRouter()


def _svc(db: AsyncSession = Depends(get_db)) -> NgoService:
    return NgoService(db)


# ─── NGOs ───────────────────────────────────────────────

@router.post("/ngos", response_model=NgoRead, status_code=201)
async def create_ngo(
    body: NgoCreate,
    context: RequestContext = Depends(get_context),
    svc: NgoService = Depends(_svc),
):
    """Create an NGO and promote the caller to its admin."""
    return await svc.create_ngo(context.user, body)


@router.patch("/ngos/mine", response_model=NgoRead)
async def update_my_ngo(
    body: NgoUpdate,
    context: RequestContext = Depends(get_context),
    svc: NgoService = Depends(_svc),
):
    return await svc.update_my_ngo(context.user, body)


@router.get("/ngos/{slug}", response_model=NgoRead)
async def get_ngo(slug: str, svc: NgoService = Depends(_svc)):
    ngo = await svc.get_by_slug(slug)
    if not ngo:
        raise NotFound("NGO not found.")
    return ngo


# ─── Branches ───────────────────────────────────────────

@router.post("/branches", response_model=BranchRead, status_code=201)
async def add_branch(
    body: BranchCreate,
    context: RequestContext = Depends(get_context),
    svc: NgoService = Depends(_svc),
):
    return await svc.add_branch(context.user, body)


@router.delete("/branches/{branch_id}", status_code=204)
async def delete_branch(
    branch_id: uuid.UUID,
    context: RequestContext = Depends(get_context),
    svc: NgoService = Depends(_svc),
):
    await svc.delete_branch(context.user, branch_id)
    return Response(status_code=204)
