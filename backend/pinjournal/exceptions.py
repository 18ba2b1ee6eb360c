"""
PinJournal Backend — Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions, one per failure class a handler can
       produce.
Why:   Services raise a typed error and the global handlers in main.py map it
       to a status code. Route code never inspects driver error codes or
       exception names.
How:   Each exception carries a caller-safe message and an optional context
       dict. The context is logged, never returned to the client.

Exception Hierarchy:
    PinJournalError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── ConflictError            → 400 Bad Request (duplicate email)
    ├── NotFoundError            → 404 Not Found
    ├── MethodNotAllowedError    → 405 Method Not Allowed
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── UpstreamError            → 500 Internal Server Error
    │   └── IpResolutionError
    └── DatabaseError            → 500 Internal Server Error

ConflictError answers 400 rather than 409 because the deployed sign-up form
already branches on 400 + "Email already exists".
"""

from typing import Any, Dict, List, Optional


class PinJournalError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(PinJournalError):
    """
    Raised when client input fails validation.

    When:    Missing email/title/content, malformed email or IPv4 address,
             unknown pin colour, location too short.
    HTTP:    400 Bad Request

    `errors` keeps every individual message so a record that fails on several
    fields reports all of them, joined with ", " in `message`.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        errors: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field
        self.errors = errors or [message]


class ConflictError(PinJournalError):
    """
    Raised when a write collides with a unique constraint.

    When:    The normalized email is already stored.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(PinJournalError):
    """
    Raised when a requested resource does not exist or is soft-deleted.

    HTTP:    404 Not Found
    """

    def __init__(
        self,
        message: str = "The requested resource was not found",
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class MethodNotAllowedError(PinJournalError):
    """Raised by endpoints that only accept a fixed set of methods."""

    def __init__(
        self,
        message: str = "Method not allowed",
        allowed: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.allowed = allowed or []


class UpstreamError(PinJournalError):
    """
    Raised when a third-party network dependency fails.

    HTTP:    500 Internal Server Error. The client only ever sees the generic
             "Server error"; the upstream detail is in the logs.
    """

    def __init__(
        self,
        message: str = "Upstream service failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class IpResolutionError(UpstreamError):
    """The public IP lookup service errored, timed out, or returned garbage."""

    def __init__(
        self,
        message: str = "Unable to determine public IP",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(PinJournalError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    The message names the operation that failed ("Failed to create entry");
    the SQL error itself stays in the logs.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(PinJournalError):
    """
    Built by RateLimitMiddleware when a client exceeds the per-IP limit.

    HTTP:    429 Too Many Requests. The middleware runs outside the
             exception handlers, so it renders the 429 body itself.
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = "Too many requests from this IP, please try again later."
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
