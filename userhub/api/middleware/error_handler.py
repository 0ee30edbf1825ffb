"""Global exception handlers for the FastAPI application.

Every failure leaves the service as an error envelope
(``{"status": false, "message": ..., "data": ...}``) with a status code
chosen from the exception type:

=====================  ======
UserhubError subclass  Status
=====================  ======
ValidationError        422
NotFoundError          404
ConflictError          409
ExternalApiError       502
anything else          500
=====================  ======

Context is sanitized before it is logged, and unexpected exceptions expose
no internals when running in production.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response
from loguru import logger
from starlette.exceptions import HTTPException

from userhub.api.schemas.envelope import error
from userhub.api.validation import collect_field_errors
from userhub.core.config import Settings
from userhub.core.context import RequestContext
from userhub.core.error_context import sanitize_error_context
from userhub.core.exceptions import (
    ConflictError,
    ExternalApiError,
    NotFoundError,
    UserhubError,
    ValidationError,
)

VALIDATION_FAILED_MESSAGE = "Validation failed"
INTERNAL_ERROR_MESSAGE = "An internal server error occurred"

STATUS_BY_EXCEPTION: tuple[tuple[type[UserhubError], int], ...] = (
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ExternalApiError, status.HTTP_502_BAD_GATEWAY),
)


def status_code_for(exc: UserhubError) -> int:
    """Map a Userhub exception to its HTTP status code."""
    for exc_type, status_code in STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def userhub_error_handler(request: Request, exc: Exception) -> Response:
    """Handle UserhubError exceptions.

    Args:
        request: The FastAPI request that caused the exception
        exc: The UserhubError exception to handle

    Returns:
        Response: Error envelope with the mapped status code

    Raises:
        TypeError: If exc is not a UserhubError instance
    """
    if not isinstance(exc, UserhubError):
        raise TypeError(f"Expected UserhubError, got {type(exc).__name__}")

    status_code = status_code_for(exc)
    error_context = sanitize_error_context(
        exc,
        {
            "request_method": request.method,
            "request_path": str(request.url.path),
            "error_code": exc.error_code,
            "status_code": status_code,
        },
    )

    log = logger.warning if exc.is_expected else logger.error
    log(
        "Handling {exception_type}: {message}",
        exception_type=type(exc).__name__,
        message=exc.message,
        correlation_id=RequestContext.get_correlation_id(),
        **error_context,
    )

    return error(exc.message, exc.details).to_response(status_code)


async def validation_error_handler(request: Request, exc: Exception) -> Response:
    """Handle FastAPI RequestValidationError exceptions.

    Path and query parameters that fail FastAPI's own parsing are reported in
    the same field-error layout as body validation.

    Args:
        request: The FastAPI request that caused the exception
        exc: The RequestValidationError exception to handle

    Returns:
        Response: 422 error envelope with field errors

    Raises:
        TypeError: If exc is not a RequestValidationError instance
    """
    if not isinstance(exc, RequestValidationError):
        raise TypeError(f"Expected RequestValidationError, got {type(exc).__name__}")

    field_errors = collect_field_errors(exc.errors(), strip_request_location=True)

    error_context = sanitize_error_context(
        exc,
        {
            "path": str(request.url.path),
            "method": request.method,
            "validation_errors": field_errors,
        },
    )
    logger.warning(
        "Request validation failed",
        correlation_id=RequestContext.get_correlation_id(),
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        **error_context,
    )

    return error(VALIDATION_FAILED_MESSAGE, field_errors).to_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY
    )


async def http_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle Starlette HTTPException (unknown routes, wrong methods).

    Args:
        request: The FastAPI request that caused the exception
        exc: The HTTPException to handle

    Returns:
        Response: Error envelope with the exception's status code

    Raises:
        TypeError: If exc is not an HTTPException instance
    """
    if not isinstance(exc, HTTPException):
        raise TypeError(f"Expected HTTPException, got {type(exc).__name__}")

    error_context = sanitize_error_context(
        exc,
        {
            "status": exc.status_code,
            "method": request.method,
            "path": str(request.url.path),
        },
    )
    logger.warning(
        "HTTP exception",
        correlation_id=RequestContext.get_correlation_id(),
        **error_context,
    )

    response = error(str(exc.detail)).to_response(exc.status_code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def generic_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle generic exceptions.

    Hides internal error details from clients when the app's own settings
    say it runs in production.

    Args:
        request: The FastAPI request that caused the exception
        exc: The unhandled exception

    Returns:
        Response: 500 error envelope
    """
    settings: Settings = request.app.state.settings

    error_context = sanitize_error_context(
        exc,
        {
            "request_method": request.method,
            "request_path": str(request.url.path),
        },
    )
    logger.exception(
        "Unhandled exception: {exception_type}",
        exception_type=type(exc).__name__,
        correlation_id=RequestContext.get_correlation_id(),
        **error_context,
    )

    if settings.environment == "production":
        envelope = error(INTERNAL_ERROR_MESSAGE)
    else:
        envelope = error(
            f"Internal server error: {type(exc).__name__}",
            {"error": str(exc), "type": type(exc).__name__},
        )

    return envelope.to_response(status.HTTP_500_INTERNAL_SERVER_ERROR)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(UserhubError, userhub_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.info("Exception handlers registered")
