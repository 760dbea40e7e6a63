"""Structured error taxonomy shared by the auth core and the route layer.

Every error carries a human message, a stable machine-readable code and the
HTTP status the route layer should render it with. Clients rely on the codes
to tell "log in again" (INVALID_TOKEN) apart from "refresh silently"
(TOKEN_EXPIRED).
"""

from datetime import UTC, datetime
from typing import Any


class AppError(Exception):
    """Base class for errors raised by the core and mapped to HTTP responses."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        self.details = details
        self.timestamp = datetime.now(UTC)
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "error": self.message,
            "code": self.code,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    """Malformed or unacceptable input (422)."""

    status_code = 422
    code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class AuthenticationError(AppError):
    """Missing, invalid or expired credential (401)."""

    status_code = 401
    code = "AUTHENTICATION_ERROR"
    default_message = "Authentication required"


class AuthorizationError(AppError):
    """Authenticated, but not allowed to perform the action (403)."""

    status_code = 403
    code = "AUTHORIZATION_ERROR"
    default_message = "Insufficient permissions"


class NotFoundError(AppError):
    """Referenced entity does not exist (404)."""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource", *, code: str | None = None) -> None:
        self.resource = resource
        super().__init__(f"{resource} not found", code=code)


class ConflictError(AppError):
    """Uniqueness violation such as a duplicate email (409)."""

    status_code = 409
    code = "CONFLICT"
    default_message = "Resource conflict"


class RateLimitError(AppError):
    """Too many attempts inside the current window (429)."""

    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"
    default_message = "Rate limit exceeded"


class DatabaseError(AppError):
    """Storage-layer failure; wraps driver errors so their shapes never leak (500)."""

    status_code = 500
    code = "DATABASE_ERROR"
    default_message = "Database operation failed"
