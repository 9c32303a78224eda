"""FastAPI application factory.

create_app() returns a configured FastAPI instance: lifespan (logging,
engine disposal), middleware, exception handlers and routers.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from volunflow import __version__
from volunflow.api import api_router
from volunflow.api.errors import register_exception_handlers
from volunflow.config import settings
from volunflow.logging import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(
        "volunflow.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )
    from volunflow.auth.oauth import get_oauth_providers
    missing = [slug for slug, p in get_oauth_providers().items() if not p.is_configured]
    if missing:
        logger.info("volunflow.oauth_disabled", providers=missing)

    yield

    logger.info("volunflow.shutdown")
    from volunflow.db.engine import engine
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    json_logs = settings.log_json if settings.log_json is not None else settings.is_production
    configure_logging(settings.log_level, json_output=json_logs)

    app = FastAPI(
        title="VolunFlow",
        description="Volunteer management platform — accounts, sessions and NGO workspaces",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Starlette runs middleware in reverse order of registration.
    # Request flow: CORS → Security → RequestId → Identity → handler

    from volunflow.auth.context import IdentityMiddleware
    from volunflow.middleware.request_id import RequestIdMiddleware
    from volunflow.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(IdentityMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        SecurityHeadersMiddleware,
        auth_path_prefix=f"{settings.api_prefix}/auth",
        hsts=settings.is_production,
    )
    # Credentialed CORS: cookies only cross to the listed origins.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: volunflow.main:app)
app = create_app()
