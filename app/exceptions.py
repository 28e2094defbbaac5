"""
Lavandaria API — Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for every client-visible failure.
How:   Each exception carries a human-readable message, a stable machine
       code, the HTTP status it maps to, and an optional context dict.
       The global handler registered in main.py renders all of them through
       the failure envelope, so the response shape is identical everywhere.
Who:   Raised by guards, the pagination normalizer, the rate limiter and
       services; caught by the global handler.

Exception Hierarchy:
    LavandariaError (base)
    ├── ValidationError             → 400 VALIDATION_ERROR
    │   ├── InvalidSortFieldError   → 400 INVALID_SORT_FIELD
    │   └── InvalidOrderError       → 400 INVALID_ORDER
    ├── AuthenticationError         → 401 AUTHENTICATION_REQUIRED
    ├── AuthorizationError          → 403 FORBIDDEN
    ├── NotFoundError               → 404 NOT_FOUND
    ├── ConflictError               → 409 CONFLICT
    ├── RateLimitExceededError      → 429 RATE_LIMIT_EXCEEDED
    └── DatabaseError               → 500 SERVER_ERROR

Clients branch on `code`; `message` is prose and may be reworded.
`context` is logged server-side and never returned to the client.
"""

from typing import Any, Dict, Iterable, Optional


class LavandariaError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:      User-facing error description (safe to return)
        code:         Stable machine-readable error code
        status_code:  HTTP status the global handler responds with
        context:      Additional debug info (logged, NOT returned)
    """

    status_code: int = 500
    code: str = "SERVER_ERROR"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        if code is not None:
            self.code = code
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(LavandariaError):
    """
    Raised when client input fails validation.

    HTTP 400. `details` is the only context returned to the client: a list
    of {field, message} entries describing what to fix.
    """

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, code=code, context=ctx)
        self.field = field


class InvalidSortFieldError(ValidationError):
    """Raised when `sort` names a column outside the endpoint's allow-list."""

    code = "INVALID_SORT_FIELD"

    def __init__(self, sort: str, allowed: Iterable[str]):
        self.allowed = sorted(allowed)
        message = (
            f"Invalid sort field '{sort}'. Allowed fields: {', '.join(self.allowed)}"
        )
        super().__init__(
            message=message,
            field="sort",
            context={"sort": sort, "allowed": self.allowed},
        )


class InvalidOrderError(ValidationError):
    """Raised when `order` is neither ASC nor DESC."""

    code = "INVALID_ORDER"

    def __init__(self, order: str):
        super().__init__(
            message=f"Invalid order '{order}'. Must be ASC or DESC",
            field="order",
            context={"order": order},
        )


class AuthenticationError(LavandariaError):
    """
    Raised when no identity is established for the request.

    HTTP 401. The client must log in (again) before retrying.
    """

    status_code = 401
    code = "AUTHENTICATION_REQUIRED"

    def __init__(
        self,
        message: str = "Authentication required",
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code=code, context=context)


class AuthorizationError(LavandariaError):
    """
    Raised when the session role does not satisfy a route's requirement.

    HTTP 403. Not retryable without a role change.
    """

    status_code = 403
    code = "FORBIDDEN"

    def __init__(
        self,
        message: str = "Access denied",
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code=code, context=context)


class NotFoundError(LavandariaError):
    """
    Raised when a requested resource does not exist.

    HTTP 404. Services convert SQLAlchemy's `None` into this exception.
    """

    status_code = 404
    code = "NOT_FOUND"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource.capitalize()} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(LavandariaError):
    """Raised when a write collides with an existing unique value. HTTP 409."""

    status_code = 409
    code = "CONFLICT"

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(LavandariaError):
    """
    Raised when a client exceeds the login attempt limit.

    HTTP 429. `retry_after` (seconds) is sent both as the Retry-After header
    and as `retryAfter` in the body.
    """

    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"

    def __init__(
        self,
        retry_after: int = 900,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            minutes = max(1, retry_after // 60)
            message = (
                "Too many login attempts from this IP, "
                f"please try again after {minutes} minutes"
            )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class DatabaseError(LavandariaError):
    """
    Raised when database operations fail unexpectedly.

    HTTP 500. The client always gets the generic "Server error" text;
    the detailed cause goes to the server log under the correlation id.
    """

    status_code = 500
    code = "SERVER_ERROR"

    def __init__(
        self,
        message: str = "Server error",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
