"""Exception handlers mapping errors to the JSON error body."""

from typing import Any

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import AppException, RateLimitException, TransientStoreException
from app.middleware.logging import redact_path

logger = structlog.get_logger()

# Seconds a client should wait before retrying a throttled or transient failure
RETRY_AFTER_SECONDS = {
    RateLimitException: 60,
    TransientStoreException: 1,
}


def _error_body(
    request: Request,
    error: str,
    message: Any,
    details: Any = None,
) -> dict[str, Any]:
    content = {
        "error": error,
        "message": message,
        "path": redact_path(request.url.path),
    }
    if details:
        content["details"] = details
    return content


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Handle custom application exceptions.

    Conflict responses carry the appointment's current status in
    ``details.status``; transient store failures carry ``details.retryable``.
    """
    if exc.status_code >= 500:
        logger.warning(
            "request_degraded",
            path=redact_path(request.url.path),
            error_type=exc.__class__.__name__,
        )

    headers = None
    retry_after = RETRY_AFTER_SECONDS.get(type(exc))
    if retry_after is not None:
        headers = {"Retry-After": str(retry_after)}

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.__class__.__name__, exc.message, exc.details),
        headers=headers,
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Handle HTTP exceptions raised by FastAPI and the auth dependencies."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, "HTTPException", exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Handle validation errors.

    Args:
        request: Request object
        exc: Validation exception

    Returns:
        JSON error response with validation details
    """
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(
            request,
            "ValidationError",
            "Request validation failed",
            # Pydantic error contexts may hold exception objects
            [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()],
        ),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without leaking internals."""
    logger.error(
        "unhandled_exception",
        path=redact_path(request.url.path),
        error_type=exc.__class__.__name__,
        error=str(exc),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(request, "InternalServerError", "An unexpected error occurred"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach every handler to the application."""
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, general_exception_handler)
