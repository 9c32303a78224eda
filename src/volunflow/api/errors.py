"""Exception handlers — domain errors → JSON.

Every AuthError renders as {"message": ..., "code": ...} with its own
status. No stack traces, token material or hashes ever reach the body.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from volunflow.auth.errors import AuthError

logger = structlog.get_logger()


def error_response(exc: AuthError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "code": exc.code},
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AuthError)
    async def handle_auth_error(request: Request, exc: AuthError):
        logger.info(
            "request.rejected",
            path=request.url.path,
            method=request.method,
            status_code=exc.status_code,
            code=exc.code,
        )
        return error_response(exc)
