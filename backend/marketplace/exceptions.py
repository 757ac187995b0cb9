"""
RR Nagar Backend — Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for the different error scenarios.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the right status code.
Who:   Raised by services and dependencies; caught by global handlers.

Exception Hierarchy:
    MarketplaceError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── PermissionDeniedError    → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── FileStorageError         → 500 Internal Server Error
    ├── DatabaseError            → 500 Internal Server Error
    └── TranslationError         → never reaches a client
        └── CircuitBreakerOpenError

Translation errors are advisory: every caller catches them at the call
site and falls back to the original text.
"""

from typing import Any, Dict, Optional


class MarketplaceError(Exception):
    """
    Base exception for all marketplace application errors.

    Attributes:
        message:  Error description returned in the API response
        context:  Additional debug info (logged, and returned as `details`
                  only for validation errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(MarketplaceError):
    """
    Raised when client input fails validation.

    When:    Missing/malformed required fields, unsupported upload, or a
             category insert the database refuses.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Valid category name required",
            "details": {"field": "name"}
        }
    """

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


class AuthenticationError(MarketplaceError):
    """
    Raised when the request carries no identity that may perform the action.

    When:    Product creation without a supplier or admin session, bad login.
    HTTP:    401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Not authenticated",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(MarketplaceError):
    """
    Raised when an identity is present but may not touch the resource.

    When:    Deleting a product the supplier neither owns nor carries.
    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        message: str = "Not authorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(MarketplaceError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing records; the service layer converts
    that None into this exception so the handler can answer 404.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class FileStorageError(MarketplaceError):
    """
    Raised when file system operations fail.

    When:    Disk full, permission denied, directory not writable, libmagic failure.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(MarketplaceError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    The message is chosen by the raising service: listing endpoints use a
    fixed message, the others pass the driver's error text through.
    """

    def __init__(
        self,
        message: str = "A database error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class TranslationError(MarketplaceError):
    """
    Raised when the translation collaborator cannot produce a translation.

    When:    Service not configured, API failure, malformed batch response.
    HTTP:    none; callers catch it and keep the original text.
    """

    def __init__(
        self,
        message: str = "Translation service is unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class CircuitBreakerOpenError(TranslationError):
    """
    Raised when the translation circuit breaker is in OPEN state.

    How circuit breaker works:
        CLOSED (normal) → failures increment counter
        → After N failures → OPEN (reject calls for the recovery timeout)
        → After the timeout → HALF-OPEN (allow one test call)
        → If test succeeds → CLOSED
        → If test fails → OPEN again
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Translation is paused after repeated failures; "
            f"retrying in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time
