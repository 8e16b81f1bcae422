"""
Request span middleware.

Opens one SERVER span per request and binds it to the request's task, so the
route handler, its child spans and every log line it emits share the
request's trace. An incoming W3C `traceparent` header is continued rather
than starting a new trace.
"""

from typing import Callable

from fastapi import Request, Response
from opentelemetry import propagate
from opentelemetry.trace import SpanKind, Status, StatusCode
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from errors.handlers import handle_unexpected_exception
from telemetry.service import TracerProviderHandle


class TracingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that wraps each request in a span.

    The span is named "{METHOD} {route template}" once routing has matched,
    so "/api/users/123" and "/api/users/456" aggregate under one resource.
    Responses with a 5xx status mark the span as an error. Unhandled
    exceptions from the route are recorded on the span and rendered as a
    generic 500 before the span closes.
    """

    def __init__(self, app: ASGIApp, handle: TracerProviderHandle):
        """
        Initialize the middleware.

        Args:
            app: The ASGI application to wrap
            handle: Tracer handle returned by init_telemetry()
        """
        super().__init__(app)
        self.handle = handle

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        tracer = self.handle.get_tracer(__name__)
        parent_context = propagate.extract(request.headers)

        with tracer.start_as_current_span(
            f"{request.method} {request.url.path}",
            context=parent_context,
            kind=SpanKind.SERVER,
            attributes={
                "http.method": request.method,
                "http.target": request.url.path,
                "http.scheme": request.url.scheme,
            },
        ) as span:
            unhandled = False
            try:
                response = await call_next(request)
            except Exception as exc:
                # Render here, inside the span and the request id scope, so the
                # error line is correlated like any other line of the request
                span.record_exception(exc)
                span.set_status(Status(StatusCode.ERROR, f"{type(exc).__name__}: {exc}"))
                response = await handle_unexpected_exception(request, exc)
                unhandled = True

            route_path = getattr(request.scope.get("route"), "path", None)
            if route_path:
                span.update_name(f"{request.method} {route_path}")
                span.set_attribute("http.route", route_path)

            span.set_attribute("http.status_code", response.status_code)
            if response.status_code >= 500 and not unhandled:
                span.set_status(Status(StatusCode.ERROR))

            return response
