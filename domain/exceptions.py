"""
Domain Exceptions

Every rejected operation raises one of these so the API layer can render a
structured error naming the check that failed.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Machine-readable error codes"""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    CHECK_IN_IN_PAST = "CHECK_IN_IN_PAST"
    AMOUNT_MISMATCH = "AMOUNT_MISMATCH"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    BOOKING_CONFLICT = "BOOKING_CONFLICT"
    ROOM_UNAVAILABLE = "ROOM_UNAVAILABLE"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    DUPLICATE_REFERENCE = "DUPLICATE_REFERENCE"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    CANCELLATION_WINDOW_CLOSED = "CANCELLATION_WINDOW_CLOSED"
    AUTHORIZATION_FAILED = "AUTHORIZATION_FAILED"
    DEPENDENCY_UNAVAILABLE = "DEPENDENCY_UNAVAILABLE"


class BookingEngineError(Exception):
    """Base exception for all domain errors"""

    status_code = 500
    default_code = ErrorCode.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to response payload"""
        return {
            "message": self.message,
            "code": self.error_code.value,
            "details": self.details,
            "type": self.__class__.__name__,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


class ValidationError(BookingEngineError):
    """Missing or malformed input; never retried"""

    status_code = 400
    default_code = ErrorCode.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        error_code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if field:
            details["field"] = field
        self.field = field
        super().__init__(message, error_code, details)


class NotFoundError(BookingEngineError):
    status_code = 404
    default_code = ErrorCode.RESOURCE_NOT_FOUND


class ConflictError(BookingEngineError):
    """Request conflicts with the current state of a room or booking"""

    status_code = 409
    default_code = ErrorCode.BOOKING_CONFLICT


class DuplicateReferenceError(ConflictError):
    default_code = ErrorCode.DUPLICATE_REFERENCE


class AuthorizationError(BookingEngineError):
    status_code = 403
    default_code = ErrorCode.AUTHORIZATION_FAILED


class DependencyError(BookingEngineError):
    """Storage or another collaborator is unavailable"""

    status_code = 503
    default_code = ErrorCode.DEPENDENCY_UNAVAILABLE
