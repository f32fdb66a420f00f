"""
Domain exceptions raised by the service layer.

Each exception carries the HTTP status it maps to; the handlers registered in
app.main render them in the standard error envelope.
"""
from typing import Dict, List, Optional


class AppError(Exception):
    """Base class for errors that should reach the client"""

    status_code: int = 500
    default_message: str = "An internal server error occurred."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed or missing input (e.g. a referenced id that does not exist)"""

    status_code = 422
    default_message = "Validation failed"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[Dict[str, List[str]]] = None
    ):
        super().__init__(message)
        self.errors = errors or {}

    @classmethod
    def for_field(cls, field: str, detail: str) -> "ValidationError":
        return cls(errors={field: [detail]})


class AuthenticationRequired(AppError):
    status_code = 401
    default_message = "Unauthenticated."


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(AppError):
    """The operation conflicts with the current state (duplicate, already member, ...)"""

    status_code = 409
    default_message = "Conflict"


class InvalidOperationError(AppError):
    """The request is well formed but can never succeed (e.g. befriending yourself)"""

    status_code = 400
    default_message = "Invalid operation"
