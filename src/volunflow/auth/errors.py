"""Auth error taxonomy.

Every error carries the HTTP status and a stable machine code. The API
layer renders them as {"message": ..., "code": ...}; see
api/errors.py. Messages are deliberately generic: they never say whether
an email exists or whether a token was expired rather than forged.
"""


class AuthError(Exception):
    """Base for errors that short-circuit a request."""

    status_code = 400
    code = "BAD_REQUEST"
    default_message = "Request rejected"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(AuthError):
    """No (valid) identity where one is required."""

    status_code = 401
    code = "UNAUTHENTICATED"
    default_message = "You must be logged in."


class Forbidden(AuthError):
    """Valid identity, insufficient role or wrong tenant."""

    status_code = 403
    code = "FORBIDDEN"
    default_message = "You are not allowed to perform this action."


class NotFound(AuthError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Not found."


class Conflict(AuthError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Already exists."


class RefreshTokenRejected(Forbidden):
    """Refresh token invalid, expired, revoked or already rotated."""

    default_message = "Invalid or expired token"


class TokenError(Exception):
    """Raised when a JWT cannot be verified. Never leaves the auth layer."""
