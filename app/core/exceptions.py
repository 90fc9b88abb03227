"""Custom application exceptions."""

from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        """Initialize exception with message, status code and optional details."""
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class ForbiddenException(AppException):
    """Forbidden access exception."""

    def __init__(self, message: str = "Forbidden"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403)


class ConflictException(AppException):
    """Conflict exception."""

    def __init__(self, message: str = "Conflict", details: dict[str, Any] | None = None):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409, details=details)


class AlreadyProcessedException(ConflictException):
    """Transition requested against an appointment that can no longer change."""

    def __init__(self, current_status: str, message: str | None = None):
        """Initialize with the status the appointment is already in."""
        self.current_status = current_status
        super().__init__(
            message or f"Appointment is already {current_status}",
            details={"status": current_status},
        )


class InvalidTransitionException(ConflictException):
    """Transition not permitted by the appointment state machine."""

    def __init__(self, current_status: str, target_status: str):
        """Initialize with both ends of the rejected transition."""
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            f"Cannot move appointment from {current_status} to {target_status}",
            details={"status": current_status, "requested_status": target_status},
        )


class RateLimitException(AppException):
    """Rate limit exceeded exception."""

    def __init__(self, message: str = "Rate limit exceeded"):
        """Initialize with 429 status code."""
        super().__init__(message, status_code=429)


class TransientStoreException(AppException):
    """The data store could not complete the operation; safe to retry."""

    def __init__(self, message: str = "Temporary storage failure, please try again"):
        """Initialize with 503 status code."""
        super().__init__(message, status_code=503, details={"retryable": True})
