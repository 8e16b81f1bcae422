"""
Entrypoint for the trace/log correlation demo API.

Startup order: settings → JSON logging → tracer (init_telemetry) → app →
ShutdownCoordinator. The tracer handle created here is the one the
coordinator shuts down after the server has drained.
"""

import asyncio
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import ROUTERS
from config.settings import ConfigurationError, Settings, get_settings
from errors.handlers import register_exception_handlers
from middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware
from middleware.tracing import TracingMiddleware
from server.shutdown import ShutdownCoordinator
from telemetry.correlated_logging import get_logger, setup_logging
from telemetry.service import TracerProviderHandle, init_telemetry

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    settings = app.state.settings
    logger.info(
        "Starting trace correlation demo API",
        host=settings.host,
        port=settings.port,
    )

    yield  # Application runs here

    logger.info("Trace correlation demo API stopped accepting requests")


def create_app(settings: Settings, handle: TracerProviderHandle) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Validated application settings
        handle: Tracer handle from init_telemetry(); request spans are
                created from it

    Returns:
        The configured application
    """
    app = FastAPI(
        title="Trace Correlation Demo API",
        version=settings.service_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.telemetry = handle

    # Register exception handlers for structured error responses
    register_exception_handlers(app)

    # Middleware added last runs first: request id → CORS → request span
    app.add_middleware(TracingMiddleware, handle=handle)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Accept", "Content-Type", REQUEST_ID_HEADER, "traceparent", "tracestate"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(RequestIDMiddleware)

    for router in ROUTERS:
        app.include_router(router)

    return app


def main() -> int:
    try:
        settings = get_settings()
    except ConfigurationError as e:
        sys.stderr.write(f"{e}\n")
        return 1

    setup_logging(settings)
    handle = init_telemetry(settings)

    app = create_app(settings, handle)
    coordinator = ShutdownCoordinator(app, settings, handle)
    asyncio.run(coordinator.run())

    logger.info("Shutdown complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
