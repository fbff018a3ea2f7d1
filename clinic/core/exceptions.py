"""Custom application exceptions."""

from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: str = "SERVER_ERROR",
        details: list[dict[str, Any]] | None = None,
    ):
        """Initialize exception with message, status code and error code."""
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found", code: str = "NOT_FOUND"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404, code=code)


class UnauthorizedException(AppException):
    """Unauthorized access exception."""

    def __init__(self, message: str = "Unauthorized"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401, code="UNAUTHORIZED")


class ForbiddenException(AppException):
    """Forbidden access exception."""

    def __init__(self, message: str = "Access denied", code: str = "ACCESS_DENIED"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403, code=code)


class BadRequestException(AppException):
    """Bad request exception."""

    def __init__(self, message: str = "Bad request", code: str = "BAD_REQUEST"):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400, code=code)


class ConflictException(AppException):
    """Conflict exception."""

    def __init__(
        self,
        message: str = "Conflict",
        code: str = "CONFLICT",
        details: list[dict[str, Any]] | None = None,
    ):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409, code=code, details=details)


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(
        self,
        message: str = "Validation error",
        code: str = "VALIDATION_ERROR",
        details: list[dict[str, Any]] | None = None,
    ):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422, code=code, details=details)


class InvalidTransitionException(ValidationException):
    """Requested appointment status change is not a legal transition."""

    def __init__(self, current: str, target: str):
        """Initialize with both ends of the rejected edge."""
        super().__init__(
            f"Cannot change status from {current} to {target}",
            code="INVALID_TRANSITION",
            details=[{"from": current, "to": target}],
        )
        self.current = current
        self.target = target
