"""
Middleware components for the trace correlation demo service.

This module contains FastAPI middleware for cross-cutting concerns
such as request correlation and request spans. TracingMiddleware lives in
middleware.tracing and is imported from there.
"""

from middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware, request_id_var

__all__ = [
    "REQUEST_ID_HEADER",
    "RequestIDMiddleware",
    "request_id_var",
]
