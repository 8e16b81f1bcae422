"""
Exception handlers for the trace correlation demo service.

This module provides FastAPI exception handlers that convert exceptions
to structured JSON error responses with consistent format. Every handled
error also produces a correlated log line: handlers run inside the request
span opened by the tracing middleware, so the line carries the request's
dd.trace_id / dd.span_id.
"""

import logging
import traceback
import uuid
from typing import Any, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from errors.codes import ErrorCode
from errors.exceptions import AppException
from telemetry.correlated_logging import get_logger

logger = get_logger(__name__)


class ErrorResponse(BaseModel):
    """
    Structured error response model.

    All error responses from the API follow this format for consistency
    and to enable programmatic error handling by clients.
    """
    error_code: str
    message: str
    details: Optional[dict[str, Any]] = None
    request_id: str


def get_request_id(request: Request) -> str:
    """
    Get the request ID from the request state or generate a new one.

    Args:
        request: The FastAPI request object

    Returns:
        The request ID string
    """
    if hasattr(request.state, "request_id"):
        return request.state.request_id

    return str(uuid.uuid4())


async def handle_app_exception(request: Request, exc: AppException) -> JSONResponse:
    """
    Handle known application exceptions and convert to structured response.

    Client errors are logged at warning level, server errors at error level.

    Args:
        request: The FastAPI request object
        exc: The AppException that was raised

    Returns:
        JSONResponse with structured error format
    """
    request_id = get_request_id(request)

    level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    # Details go at the root of the line; the handler's own keys win on a clash
    fields = dict(exc.details or {})
    fields.update(
        error_code=exc.error_code.value,
        error_message=exc.message,
        status_code=exc.status_code,
        path=request.url.path,
        method=request.method,
    )
    logger.emit(level, "Application error occurred", **fields)

    error_response = ErrorResponse(**exc.to_dict(), request_id=request_id)

    return JSONResponse(
        status_code=exc.status_code,
        content=error_response.model_dump(exclude_none=True),
    )


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Convert FastAPI request validation failures (malformed JSON, missing or
    mistyped fields) into a VALIDATION_ERROR response with HTTP 400.
    """
    errors = [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": str(error.get("msg", "")),
        }
        for error in exc.errors()
    ]
    app_exc = AppException(
        error_code=ErrorCode.VALIDATION_ERROR,
        message="Request validation failed",
        details={"errors": errors},
    )
    return await handle_app_exception(request, app_exc)


async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions safely without exposing internal details.

    The full stack trace is logged; the client gets a generic error.

    Args:
        request: The FastAPI request object
        exc: The unexpected exception that was raised

    Returns:
        JSONResponse with generic error message
    """
    request_id = get_request_id(request)

    logger.error(
        "Unexpected error occurred",
        error_code=ErrorCode.INTERNAL_ERROR.value,
        path=request.url.path,
        method=request.method,
        exception_type=type(exc).__name__,
        exception_message=str(exc),
        stack_trace="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
    )

    error_response = ErrorResponse(
        error_code=ErrorCode.INTERNAL_ERROR.value,
        message="An unexpected error occurred. Please try again later.",
        details=None,
        request_id=request_id,
    )

    return JSONResponse(
        status_code=500,
        content=error_response.model_dump(exclude_none=True),
    )


def register_exception_handlers(app) -> None:
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(AppException, handle_app_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)

    # Catch-all for failures outside the request span; route exceptions are
    # rendered by TracingMiddleware while the span is still active
    app.add_exception_handler(Exception, handle_unexpected_exception)

    logger.debug("Exception handlers registered successfully")
