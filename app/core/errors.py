"""Jobly error hierarchy."""

from typing import Any


class JoblyError(Exception):
    """Base exception for Jobly errors."""

    code = "JOBLY_INTERNAL_ERROR"
    status_code = 500

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationError(JoblyError):
    """Invalid request parameters."""

    code = "JOBLY_INVALID_REQUEST"
    status_code = 400


class UnauthorizedError(JoblyError):
    """Missing or invalid credentials."""

    code = "JOBLY_UNAUTHORIZED"
    status_code = 401


class ForbiddenError(JoblyError):
    """Access forbidden due to scope/permission."""

    code = "JOBLY_FORBIDDEN"
    status_code = 403


class NotFoundError(JoblyError):
    """Resource not found."""

    code = "JOBLY_NOT_FOUND"
    status_code = 404


class ConflictError(JoblyError):
    """Resource conflict (duplicate key or association)."""

    code = "JOBLY_CONFLICT"
    status_code = 409


class InternalError(JoblyError):
    """Internal server error."""

    code = "JOBLY_INTERNAL_ERROR"
    status_code = 500


ERROR_STATUS_MAP: dict[type[JoblyError], int] = {
    ValidationError: 400,
    UnauthorizedError: 401,
    ForbiddenError: 403,
    NotFoundError: 404,
    ConflictError: 409,
    InternalError: 500,
}


def get_status_code(error: JoblyError) -> int:
    """Get HTTP status code for error."""
    return ERROR_STATUS_MAP.get(type(error), 500)
