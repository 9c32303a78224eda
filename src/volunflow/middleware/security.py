"""Security headers middleware.

Every response gets nosniff, frame denial and a strict referrer policy.
Auth responses carry session cookies, so they are also marked no-store.
HSTS is added only in production, where the app sits behind HTTPS.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    def __init__(self, app, auth_path_prefix: str = "/api/v1/auth", hsts: bool = False):
        super().__init__(app)
        self.auth_path_prefix = auth_path_prefix
        self.hsts = hsts

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if request.url.path.startswith(self.auth_path_prefix):
            response.headers["Cache-Control"] = "no-store"
        if self.hsts or request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response
