"""
Gatherly Backend: Error-to-Status Mapping
===========================================

What:  The single place where an exception kind becomes an HTTP response.
How:   `ERROR_STATUS` is a table keyed by exception class. `resolve_error()`
       walks the exception's MRO, picks the most specific entry and builds the
       response body; it is a pure function and does no logging. The
       FastAPI handlers registered by `register_exception_handlers()` only log
       and wrap its result in a JSONResponse.

Invariants:
    - Services never pick status codes; controllers never catch errors.
    - Response body is always {"error", "message", "details", "request_id"}.
    - 5xx responses carry a generic message unless the entry marks the
      exception's own message as public. Raw exception objects, tracebacks
      and SQL never reach the client.
"""

import logging
from typing import Any, Dict, NamedTuple, Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from gatherly.exceptions import (
    AuthenticationError,
    AuthorizationError,
    CircuitBreakerOpenError,
    ConflictError,
    DatabaseError,
    GatherlyError,
    InvalidStateError,
    NotFoundError,
    NotificationError,
    ValidationError,
)
from gatherly.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

GENERIC_SERVER_MESSAGE = "An internal error occurred. Please try again later."
UNEXPECTED_MESSAGE = "An unexpected error occurred. Please try again or contact support."


class ErrorMapping(NamedTuple):
    status_code: int
    code: str
    # Context keys returned to the client as `details`
    details: Tuple[str, ...] = ()
    # Whether exc.message may be shown; False uses the generic server message
    public_message: bool = True


ERROR_STATUS: Dict[type, ErrorMapping] = {
    AuthenticationError: ErrorMapping(401, "authentication_error"),
    AuthorizationError: ErrorMapping(403, "authorization_error"),
    NotFoundError: ErrorMapping(404, "not_found", details=("resource", "resource_id")),
    ConflictError: ErrorMapping(409, "conflict"),
    InvalidStateError: ErrorMapping(409, "invalid_state", details=("current_state",)),
    ValidationError: ErrorMapping(422, "validation_error", details=("errors",)),
    RequestValidationError: ErrorMapping(422, "validation_error", details=("errors",)),
    NotificationError: ErrorMapping(502, "notification_error"),
    CircuitBreakerOpenError: ErrorMapping(503, "service_unavailable", details=("recovery_time",)),
    DatabaseError: ErrorMapping(500, "server_error", public_message=False),
    SQLAlchemyError: ErrorMapping(500, "server_error", public_message=False),
    GatherlyError: ErrorMapping(500, "server_error", public_message=False),
}

FALLBACK = ErrorMapping(500, "internal_server_error", public_message=False)


def lookup(exc: BaseException) -> ErrorMapping:
    """Most specific table entry for the exception's class hierarchy."""
    for klass in type(exc).__mro__:
        if klass in ERROR_STATUS:
            return ERROR_STATUS[klass]
    return FALLBACK


def _request_validation_errors(exc: RequestValidationError) -> Dict[str, Any]:
    return {
        "errors": [
            {
                "field": ".".join(str(loc) for loc in e.get("loc", ()) if loc != "body"),
                "message": e.get("msg", "is invalid"),
            }
            for e in exc.errors()
        ]
    }


def resolve_error(
    exc: BaseException,
    request_id: str = "",
) -> Tuple[int, Dict[str, Any], Dict[str, str]]:
    """
    Map an exception to (status_code, body, headers).

    Example:
        >>> resolve_error(AuthorizationError("Only parents can create events"))
        (403, {"error": "authorization_error", "message": "Only parents ...",
               "details": None, "request_id": ""}, {})
    """
    mapping = lookup(exc)

    if isinstance(exc, RequestValidationError):
        message = "Request parameters are invalid"
        context: Dict[str, Any] = _request_validation_errors(exc)
    elif isinstance(exc, GatherlyError):
        message = exc.message
        context = exc.context
    else:
        message = ""
        context = {}

    if not mapping.public_message:
        message = UNEXPECTED_MESSAGE if mapping is FALLBACK else GENERIC_SERVER_MESSAGE

    details: Optional[Dict[str, Any]] = None
    exposed = {key: context[key] for key in mapping.details if key in context}
    if exposed:
        details = exposed

    headers: Dict[str, str] = {}
    if isinstance(exc, CircuitBreakerOpenError):
        headers["Retry-After"] = str(exc.recovery_time)

    body = {
        "error": mapping.code,
        "message": message,
        "details": details,
        "request_id": request_id,
    }
    return mapping.status_code, body, headers


def _respond(exc: BaseException) -> JSONResponse:
    status_code, body, headers = resolve_error(exc, request_id_var.get(""))
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register the global handlers. Log levels: 4xx WARNING, 5xx ERROR with
    context, unexpected exceptions ERROR with traceback.
    """

    @app.exception_handler(GatherlyError)
    async def handle_gatherly_error(request: Request, exc: GatherlyError):
        rid = request_id_var.get("")
        if lookup(exc).status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        else:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        return _respond(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        logger.warning(
            "[%s] Request validation failed on %s: %s",
            request_id_var.get(""),
            request.url.path,
            exc.errors(),
        )
        return _respond(exc)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error on %s: %s",
            request_id_var.get(""),
            request.url.path,
            str(exc),
            exc_info=True,
        )
        return _respond(exc)
