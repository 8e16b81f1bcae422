"""
Graceful shutdown for the HTTP server and the tracer.

On SIGINT/SIGTERM the coordinator asks uvicorn to exit. uvicorn then stops
accepting connections and waits for in-flight requests to finish (bounded by
the drain timeout). Only after serve() has returned is the tracer handle shut
down, so spans of requests that were in flight at signal time are exported
before the process exits.
"""

import asyncio
import contextlib
import signal
from typing import Any, List, Optional

import uvicorn

from telemetry.correlated_logging import get_logger
from telemetry.service import TracerProviderHandle

logger = get_logger(__name__)

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class CoordinatedServer(uvicorn.Server):
    """uvicorn server that leaves signal handling to the ShutdownCoordinator."""

    def install_signal_handlers(self) -> None:
        # uvicorn < 0.29
        pass

    @contextlib.contextmanager
    def capture_signals(self):
        # uvicorn >= 0.29 would re-raise the captured signal after serving
        yield


class ShutdownCoordinator:
    """
    Runs the server and sequences its shutdown with the tracer's.

    Order on shutdown:
    1. the listener stops accepting connections
    2. in-flight requests drain (at most drain_timeout seconds)
    3. the tracer handle is shut down, exactly once
    """

    def __init__(self, app: Any, settings: Any, handle: TracerProviderHandle):
        """
        Args:
            app: The ASGI application to serve
            settings: Application settings (host, port, drain timeout)
            handle: Tracer handle returned by init_telemetry()
        """
        self.handle = handle
        self.drain_timeout = settings.shutdown_drain_timeout_seconds
        config = uvicorn.Config(
            app,
            host=settings.host,
            port=settings.port,
            log_config=None,
            timeout_graceful_shutdown=self.drain_timeout,
        )
        self.server = CoordinatedServer(config)

    @property
    def started(self) -> bool:
        return self.server.started

    def request_shutdown(self, sig: Optional[signal.Signals] = None) -> None:
        """
        Begin graceful shutdown. A second SIGINT forces exit without draining.
        """
        if self.server.should_exit and sig == signal.SIGINT:
            logger.warning("Second interrupt received, forcing exit")
            self.server.force_exit = True
            return

        logger.info(
            "Shutdown signal received, shutting down gracefully",
            signal=sig.name if sig is not None else None,
            drain_timeout_seconds=self.drain_timeout,
        )
        self.server.should_exit = True

    async def run(self, sockets: Optional[List[Any]] = None) -> None:
        """
        Serve until shutdown is requested, then shut the tracer down.

        Args:
            sockets: Pre-bound listening sockets; host/port from settings
                     are used when omitted
        """
        loop = asyncio.get_running_loop()
        installed = self._install_signal_handlers(loop)
        try:
            await self.server.serve(sockets=sockets)
            logger.info("HTTP server stopped")
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)
            self.handle.shutdown()

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> List[signal.Signals]:
        installed = []
        for sig in HANDLED_SIGNALS:
            try:
                loop.add_signal_handler(sig, self.request_shutdown, sig)
            except (NotImplementedError, RuntimeError, ValueError):
                # Not the main thread, or a loop without signal support
                logger.debug("Signal handler not installed", signal=sig.name)
                continue
            installed.append(sig)
        return installed
