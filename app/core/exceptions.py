"""
Custom exceptions for the application.

API exceptions inherit from APIException for consistent error responses.
Infrastructure exceptions (queue, search) are plain exceptions raised by the
background pipeline; they never reach an HTTP client directly.
"""
from typing import Optional, Any


class APIException(Exception):
    """
    Base exception for all API errors.
    Provides consistent error response format.
    """

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: Optional[Any] = None,
    ):
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details
        super().__init__(self.message)


class NotFoundException(APIException):
    """404 Not Found"""

    def __init__(self, message: str = "Resource not found", code: str = "NOT_FOUND"):
        super().__init__(404, code, message)


class ConflictException(APIException):
    """409 Conflict"""

    def __init__(self, message: str = "Resource conflict", code: str = "CONFLICT"):
        super().__init__(409, code, message)


class ValidationException(APIException):
    """422 Validation Error"""

    def __init__(
        self,
        message: str = "Validation error",
        code: str = "VALIDATION_ERROR",
        details: Optional[Any] = None,
    ):
        super().__init__(422, code, message, details)


# Resource specific exceptions
class AlertNotFoundException(NotFoundException):
    """Job alert not found (or not owned by the requesting user)"""

    def __init__(self):
        super().__init__(message="Job alert not found", code="ALERT_NOT_FOUND")


class AlertLimitExceededException(ConflictException):
    """User already holds the maximum number of active alerts"""

    def __init__(self, current: int, maximum: int):
        super().__init__(
            message=f"Maximum active job alerts reached ({current}/{maximum})",
            code="ALERT_LIMIT_REACHED",
        )
        self.current = current
        self.maximum = maximum


# Infrastructure exceptions
class QueueUnavailableError(Exception):
    """The queue backend (broker or idempotency store) could not be reached."""


class QueueNotInitializedError(Exception):
    """A queue operation was attempted before initialize() succeeded."""


class SearchBackendError(Exception):
    """The search index failed to answer a query."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
