"""
TripMatch Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for every expected failure.
How:   Each class carries a stable machine-checkable `kind` (an ErrorKind),
       the HTTP status the boundary maps it to, a human-readable message and
       an optional context dict. Global handlers in main.py turn them into
       structured JSON responses.
Who:   Raised by services, security and middleware; caught by handlers.

Callers branch on `exc.kind` (or the exception type), never on the message
text, so messages can be reworded freely.

Exception Hierarchy:
    TripMatchError (base)                 kind          HTTP
    ├── ValidationError                   validation    400
    ├── AuthenticationError               unauthorized  401
    ├── ForbiddenError                    forbidden     403
    ├── NotFoundError                     not_found     404
    ├── ConflictError                     conflict      409
    ├── RateLimitExceededError            rate_limited  429
    ├── DatabaseError                     internal      500
    ├── FileStorageError                  internal      500
    ├── StorageServiceError               unavailable   503
    └── CircuitBreakerOpenError           unavailable   503
"""

import enum
from typing import Any, Dict, Optional


class ErrorKind(str, enum.Enum):
    """Stable error categories exposed as the `error` field of responses."""

    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    RATE_LIMITED = "rate_limited"
    INTERNAL = "internal"
    UNAVAILABLE = "unavailable"


class TripMatchError(Exception):
    """
    Base exception for all TripMatch application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; only returned for 4xx errors)
    """

    kind: ErrorKind = ErrorKind.INTERNAL
    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(TripMatchError):
    """
    Client input failed a business rule (unknown enum value, unknown tag ID,
    bad file, inconsistent ranges). Schema-level errors stay with FastAPI's 422.
    """

    kind = ErrorKind.VALIDATION
    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(TripMatchError):
    """Missing, malformed or expired bearer token."""

    kind = ErrorKind.UNAUTHORIZED
    status_code = 401

    def __init__(
        self,
        message: str = "Invalid or expired token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(TripMatchError):
    """
    The caller is authenticated but not allowed to perform the action,
    e.g. a non-creator updating, deleting or completing an event.
    """

    kind = ErrorKind.FORBIDDEN
    status_code = 403

    def __init__(
        self,
        message: str = "You are not authorized to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(TripMatchError):
    """
    A requested resource does not exist.

    Soft-deleted events raise this too: deleted rows are indistinguishable
    from rows that never existed.
    """

    kind = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource


class ConflictError(TripMatchError):
    """
    The action clashes with current state: duplicate join, event full,
    duplicate tag association, illegal status transition.
    """

    kind = ErrorKind.CONFLICT
    status_code = 409

    def __init__(
        self,
        message: str = "The request conflicts with the current state",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(TripMatchError):
    """Client exceeded the per-IP request budget."""

    kind = ErrorKind.RATE_LIMITED
    status_code = 429

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class DatabaseError(TripMatchError):
    """
    A database operation failed unexpectedly.

    The message returned to clients is always generic; SQL and constraint
    names are only logged server-side.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(TripMatchError):
    """Local file system operation failed (disk full, permission denied)."""

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StorageServiceError(TripMatchError):
    """Remote object storage failed after all retries."""

    kind = ErrorKind.UNAVAILABLE
    status_code = 503

    def __init__(
        self,
        message: str = "Image storage service is temporarily unavailable",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class CircuitBreakerOpenError(TripMatchError):
    """
    Remote storage has failed repeatedly and calls are being short-circuited.

    CLOSED → (N failures) → OPEN → (recovery timeout) → HALF_OPEN → CLOSED/OPEN
    """

    kind = ErrorKind.UNAVAILABLE
    status_code = 503

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            "Image storage is temporarily unavailable due to repeated failures. "
            f"Please retry in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time
