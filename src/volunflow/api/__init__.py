"""API route aggregation.

All routers registered here get mounted in main.py.

Identity is resolved for every request by IdentityMiddleware; routers
whose every route needs a signed-in caller also carry get_current_user
as an include-level dependency. Role and tenant checks happen in the
service layer through volunflow.auth.guard.
"""

from fastapi import APIRouter, Depends

from volunflow.api.auth import router as auth_router
from volunflow.api.badges import router as badges_router
from volunflow.api.events import router as events_router
from volunflow.api.health import router as health_router
from volunflow.api.ngos import router as ngos_router
from volunflow.auth.context import get_current_user
from volunflow.config import settings

_auth = [Depends(get_current_user)]

api_router = APIRouter(prefix=settings.api_prefix)

# Open routes
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(ngos_router, tags=["ngos", "branches"])

# Signed-in only
api_router.include_router(events_router, tags=["events", "signups"], dependencies=_auth)
api_router.include_router(badges_router, tags=["badges"], dependencies=_auth)
