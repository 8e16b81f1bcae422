"""
Request ID middleware for request correlation.

Every request gets an id, taken from the X-Request-ID header when the caller
sends one. The id is echoed on the response, stored on request.state for the
error handlers, and kept in a context variable so the JSON formatter can put
it on every log line emitted while the request is being handled.
"""

import uuid
from contextvars import ContextVar
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Context variable for storing request_id across async contexts
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Header name for request ID
REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that generates or extracts a request ID for each request.

    Added last so it wraps the tracing middleware: the request id is already
    bound when the request span starts and is present on all of its log lines.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())

        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            # Reset the context variable to avoid leaking between requests
            request_id_var.reset(token)


def get_request_id() -> str:
    """
    Get the current request ID from the context variable.

    Returns:
        The current request ID, or empty string if not in a request context
    """
    return request_id_var.get()
