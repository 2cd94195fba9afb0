"""
Exception Handlers.

Turns every failure that leaves a request into the ErrorResponse envelope
(``success: false``) with the request id in ``metadata``:

    ApplicationError subclasses  -> status from EXCEPTION_STATUS_MAP
    RequestValidationError       -> 422 VAL_REQUEST_INVALID, per-field details
    anything else                -> 500 SYS_INTERNAL_ERROR, no details

Store failures (DatabaseError) name the failed stage in their message. That
text reaches the client only when ``features.api_detailed_errors`` is on.
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from minicrm.backend.core.exceptions import (
    ApplicationError,
    AuthenticationError,
    DatabaseError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from minicrm.backend.core.logging import get_logger
from minicrm.backend.schemas.base import ErrorDetail, ErrorResponse, ResponseMetadata

logger = get_logger(__name__)

EXCEPTION_STATUS_MAP: dict[type[ApplicationError], int] = {
    NotFoundError: 404,
    ValidationError: 400,
    AuthenticationError: 401,
    ExternalServiceError: 502,
    DatabaseError: 503,
}

GENERIC_STORE_ERROR = "The service is temporarily unavailable. Please try again."


def _get_request_id(request: Request) -> str | None:
    """Request id set by RequestContextMiddleware, else the raw header."""
    if hasattr(request.state, "request_id"):
        return request.state.request_id
    return request.headers.get("x-request-id")


def _detailed_errors_enabled() -> bool:
    try:
        from minicrm.backend.core.config import get_app_config

        return get_app_config().features.api_detailed_errors
    except (RuntimeError, FileNotFoundError, ValueError):
        return False


def _error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=ErrorDetail(code=code, message=message, details=details),
        metadata=ResponseMetadata(request_id=_get_request_id(request)),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


async def application_error_handler(request: Request, exc: ApplicationError) -> JSONResponse:
    status_code = EXCEPTION_STATUS_MAP.get(type(exc), 500)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "Request failed",
        extra={
            "code": exc.code,
            "error": exc.message,
            "status": status_code,
            "path": request.url.path,
            "method": request.method,
        },
    )

    message = exc.message
    if isinstance(exc, DatabaseError) and not _detailed_errors_enabled():
        message = GENERIC_STORE_ERROR

    details = exc.details if isinstance(exc, ValidationError) and exc.details else None
    return _error_response(request, status_code, exc.code, message, details)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Malformed bodies, params and queries.

    Each entry names the field by its dotted location, e.g. ``body.name``
    or ``query.archived``.
    """
    validation_errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", [])),
            "message": err.get("msg", "Validation error"),
            "type": err.get("type", "unknown"),
        }
        for err in exc.errors()
    ]

    logger.warning(
        "Request rejected",
        extra={
            "path": request.url.path,
            "method": request.method,
            "fields": [e["field"] for e in validation_errors],
        },
    )

    return _error_response(
        request,
        422,
        "VAL_REQUEST_INVALID",
        "Request validation failed",
        {"validation_errors": validation_errors},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
        },
    )
    return _error_response(request, 500, "SYS_INTERNAL_ERROR", "An unexpected error occurred")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApplicationError, application_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
