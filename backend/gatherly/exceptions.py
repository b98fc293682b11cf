"""
Gatherly Backend: Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions raised by services and dependencies.
How:   Each exception carries a human-readable message and an optional context
       dict. Services raise them and never catch their own errors; the central
       table in `gatherly.api.error_handlers` is the only place that turns an
       exception kind into an HTTP status.
Who:   Raised by services, models and the principal dependency.

Exception Hierarchy:
    GatherlyError (base)
    ├── AuthenticationError      → 401 (no or unknown acting principal)
    ├── AuthorizationError       → 403 (privilege check failed)
    ├── NotFoundError            → 404
    ├── ConflictError            → 409 (uniqueness violation)
    ├── InvalidStateError        → 409 (lifecycle transition not allowed)
    ├── ValidationError          → 422 (model/persistence constraints)
    ├── NotificationError        → 502 (notifier failed after retries)
    ├── CircuitBreakerOpenError  → 503 (notifier circuit open)
    └── DatabaseError            → 500
"""

from typing import Any, Dict, List, Optional


class GatherlyError(Exception):
    """
    Base exception for all Gatherly application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional info; only whitelisted kinds expose it as `details`
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class AuthenticationError(GatherlyError):
    """
    Raised when the request carries no usable acting principal.

    When:    Missing principal header, malformed id, or an id that matches no user.
    HTTP:    401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthorizationError(GatherlyError):
    """
    Raised by a service's authorize step when the actor lacks a privilege.

    Example: a non-parent trying to create an event.
    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        message: str = "You are not allowed to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ValidationError(GatherlyError):
    """
    Raised when an entity violates model or persistence-layer constraints.

    What:    The candidate entity cannot be stored as built.
    When:    Missing required field, end before start, NOT NULL/FK violation.
    HTTP:    422 Unprocessable Entity

    `errors` is a list of {"field": ..., "message": ...} entries and is
    exposed to the client under details.errors.

    Example response:
        {
            "error": "validation_error",
            "message": "Event is invalid: name can't be blank",
            "details": {"errors": [{"field": "name", "message": "can't be blank"}]}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        errors: Optional[List[Dict[str, str]]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        self.errors = list(errors or [])
        ctx["errors"] = self.errors
        super().__init__(message=message, context=ctx)

    @classmethod
    def for_entity(cls, entity: str, errors: List[Dict[str, str]]) -> "ValidationError":
        """Builds the error for a list of model validation failures."""
        summary = ", ".join(f"{e['field']} {e['message']}" for e in errors)
        return cls(message=f"{entity} is invalid: {summary}", errors=errors)


class NotFoundError(GatherlyError):
    """
    Raised when a referenced entity does not exist.

    SQLAlchemy returns None for missing rows; services convert that into
    this exception so the HTTP status is decided centrally.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(GatherlyError):
    """
    Raised when persisting would duplicate a unique entity.

    When:    Inviting the same user twice, registering an e-mail twice.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "The resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidStateError(GatherlyError):
    """
    Raised when a lifecycle transition is not allowed from the current state.

    When:    Accepting an invitation that is not in the `issued` state.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "The resource is not in a state that allows this action",
        current_state: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if current_state:
            ctx["current_state"] = current_state
        super().__init__(message=message, context=ctx)
        self.current_state = current_state


class NotificationError(GatherlyError):
    """
    Raised by a notifier when delivery failed after all retries.

    Whether it reaches the client depends on the strict flag of the
    notifier that raised it.
    HTTP:    502 Bad Gateway
    """

    def __init__(
        self,
        message: str = "Notification delivery failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class CircuitBreakerOpenError(GatherlyError):
    """
    Raised when the notifier's circuit breaker is OPEN.

    State machine:
        CLOSED → N consecutive failures → OPEN (reject for recovery_time seconds)
        → HALF_OPEN (one trial delivery) → CLOSED on success, OPEN on failure
    HTTP:    503 Service Unavailable
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            "Notification delivery is temporarily suspended after repeated failures. "
            f"It will be retried in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class DatabaseError(GatherlyError):
    """
    Raised when a database operation fails unexpectedly.

    The client always receives a generic message; the context (constraint
    name, original exception type) is logged server-side only.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
