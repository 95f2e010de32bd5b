"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain and unexpected) and return consistent JSON responses with proper
HTTP status codes and traceability.

Design:
- RateLimitExceededAppError → 403 with rate limit headers
- StoreAppError / ConnectionAppError / ConfigurationAppError → 500, backend
  details withheld from the client
- Other AppError subclasses → 400
- Unexpected Exception → generic 500 (safety net)
- All responses include request_id for distributed tracing
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from reqlimit.core.errors import (
    AppError,
    ConfigurationAppError,
    ConnectionAppError,
    RateLimitExceededAppError,
    StoreAppError,
)
from reqlimit.core.logging import get_request_id

logger = logging.getLogger(__name__)

_SERVER_FAULTS = (StoreAppError, ConnectionAppError, ConfigurationAppError)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Routes domain errors to appropriate HTTP status codes:
    - RateLimitExceededAppError → 403 Forbidden (requester over quota)
    - Store, connection and configuration errors → 500 Internal Server Error
    - Any other AppError → 400 Bad Request

    All responses include:
    - error.code: Machine-readable error code
    - error.message: Human-readable message
    - error.request_id: For distributed tracing
    - error.details: Optional structured context (client-facing errors only)

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = 400
    headers: dict[str, str] | None = None
    if isinstance(exc, RateLimitExceededAppError):
        status_code = 403
        headers = exc.headers
    elif isinstance(exc, _SERVER_FAULTS):
        status_code = 500

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    if status_code >= 500:
        # Store internals (keys, hosts) stay in the logs
        error_content = {
            "code": exc.code,
            "message": "Something went wrong",
            "request_id": get_request_id(),
        }
    else:
        error_content = {
            "code": exc.code,
            "message": exc.message,
            "request_id": get_request_id(),
        }
        if exc.details:
            error_content["details"] = exc.details

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
        headers=headers,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic message.
    Prevents information leakage (no stack traces to client).

    Args:
        request: FastAPI request object.
        exc: Exception instance (unexpected).

    Returns:
        JSONResponse with generic error (no implementation details leaked).
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Order matters: specific handlers registered before general fallback.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
