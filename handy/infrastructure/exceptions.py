"""Custom exceptions for the application.

Every error carries the HTTP status it maps to and a short ``error`` label that
clients can match on; the message is the human readable detail.
"""

from typing import Optional


class ApplicationError(Exception):
    """Base exception for application errors."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, message: Optional[str] = None, *, error: Optional[str] = None):
        super().__init__(message or self.error)
        if error is not None:
            self.error = error

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(ApplicationError):
    """Malformed or missing input."""
    status_code = 400
    error = "Validation failed"


class AuthenticationError(ApplicationError):
    """Missing or invalid bearer credential."""
    status_code = 401
    error = "Unauthorized"


class AuthorizationError(ApplicationError):
    """Caller is the wrong user type or not a party to the resource."""
    status_code = 403
    error = "Forbidden"


class NotFoundError(ApplicationError):
    status_code = 404
    error = "Not found"


class ConflictError(ApplicationError):
    """State machine violated by a concurrent or stale request."""
    status_code = 400
    error = "Conflict"


class ReportNotAvailableError(ConflictError):
    error = "Report is not available"


class InvalidTransitionError(ConflictError):
    error = "Invalid transition"


class InsufficientPointsError(ApplicationError):
    status_code = 400
    error = "Insufficient points"


class ConcurrencyError(ApplicationError):
    """A guarded write kept losing to concurrent writers."""
    status_code = 500
    error = "Internal server error"
