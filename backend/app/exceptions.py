"""
Cellar Tracker Backend - Custom Exception Hierarchy
====================================================

What:  Application-specific exceptions for the different error scenarios.
How:   Each exception class carries a user-facing message and an optional
       context dict. Global exception handlers (registered in main.py) catch
       these and return JSON error responses with the matching status code.
Who:   Raised by services and middleware; caught by global handlers.

Exception Hierarchy:
    CellarError (base)
    ├── ValidationError          → 400 Bad Request
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── FileStorageError         → 500 Internal Server Error
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class CellarError(Exception):
    """
    Base exception for all Cellar Tracker application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, never returned to the client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(CellarError):
    """
    Raised when client input fails validation.

    When:    Unsupported image type, oversized upload, malformed `wine` JSON
             field, drinking window with drinkFrom after drinkTo.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "Invalid file type. Only JPEG, PNG and WebP are allowed.",
            "code": "validation_error",
            "details": {"field": "image"}
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


class NotFoundError(CellarError):
    """
    Raised when a requested or referenced resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that None
    into this exception so the handler can answer 404.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource.capitalize()} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)


class ConflictError(CellarError):
    """
    Raised when a request conflicts with the current state of a resource.

    When:    Deleting a bin that still holds wines.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "The request conflicts with the current state of the resource",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(CellarError):
    """
    Raised when file system operations fail (disk full, permission denied).

    HTTP:    500 Internal Server Error. File paths stay in `context` and are
             never sent to the client.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(CellarError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic. SQL, constraint
    names and driver errors are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(CellarError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:    429 Too Many Requests, with a Retry-After header.
    """

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
