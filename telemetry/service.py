"""
Tracer lifecycle for the service.

init_telemetry() builds the OpenTelemetry tracer provider from settings,
registers it, and returns a TracerProviderHandle that owns the exporter and
its network resources. The handle is threaded through to the shutdown
coordinator, which calls shutdown() on it exactly once, after the HTTP
server has drained.

Spans are exported over OTLP/gRPC to the Datadog agent. The agent being
unreachable at startup is not fatal: a warning is logged and the batch
processor keeps exporting best-effort once the agent becomes available.
"""

import socket
import threading
from typing import Any, Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import (
    DEPLOYMENT_ENVIRONMENT,
    SERVICE_NAME,
    SERVICE_VERSION,
    Resource,
)
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SimpleSpanProcessor,
    SpanExporter,
)

from telemetry.correlated_logging import get_logger

logger = get_logger(__name__)


class TelemetryHandleError(RuntimeError):
    """Misuse of the tracer handle: double init, double shutdown, use after shutdown."""


class TelemetryConnectivityError(ConnectionError):
    """The trace agent could not be reached."""

    def __init__(self, host: str, port: int, reason: str):
        self.host = host
        self.port = port
        self.reason = reason
        super().__init__(f"Trace agent unreachable at {host}:{port}: {reason}")


class TracerProviderHandle:
    """
    Owned handle on the process tracer provider.

    Created once by init_telemetry(). shutdown() flushes pending spans and
    closes the exporter; it may be called exactly once.
    """

    def __init__(self, provider: TracerProvider, instrumentation_name: str):
        self._provider = provider
        self._instrumentation_name = instrumentation_name
        self._is_shutdown = False
        self._lock = threading.Lock()

    @property
    def provider(self) -> TracerProvider:
        return self._provider

    @property
    def is_shutdown(self) -> bool:
        return self._is_shutdown

    def get_tracer(self, name: Optional[str] = None) -> trace.Tracer:
        """
        Get a tracer backed by this provider.

        Raises:
            TelemetryHandleError: If the handle has been shut down
        """
        if self._is_shutdown:
            raise TelemetryHandleError("Tracer provider has been shut down")
        return self._provider.get_tracer(name or self._instrumentation_name)

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        if self._is_shutdown:
            raise TelemetryHandleError("Tracer provider has been shut down")
        return self._provider.force_flush(timeout_millis)

    def shutdown(self) -> None:
        """
        Flush pending spans and release exporter resources.

        Raises:
            TelemetryHandleError: If called more than once
        """
        with self._lock:
            if self._is_shutdown:
                raise TelemetryHandleError("Tracer provider shut down more than once")
            self._is_shutdown = True

        logger.info("Shutting down telemetry")
        try:
            self._provider.shutdown()
        except Exception as e:
            # Export failures stay inside telemetry; the process still exits cleanly
            logger.error("Error shutting down telemetry", error=str(e))
        else:
            logger.info("Telemetry shutdown complete")


# The handle returned by the last init_telemetry() call
_active_handle: Optional[TracerProviderHandle] = None


def check_agent_connectivity(host: str, port: int, timeout: float = 1.0) -> None:
    """
    Probe the agent's OTLP port with a TCP connect.

    Raises:
        TelemetryConnectivityError: If the connection cannot be established
    """
    try:
        with socket.create_connection((host, port), timeout=timeout):
            pass
    except OSError as e:
        raise TelemetryConnectivityError(host, port, str(e)) from e


def init_telemetry(
    settings: Any,
    *,
    exporter: Optional[SpanExporter] = None,
    register_global: bool = True,
) -> TracerProviderHandle:
    """
    Build and register the process tracer provider.

    Args:
        settings: Application settings (service metadata, agent address,
                  trace_enabled flag)
        exporter: Span exporter to use instead of OTLP; spans are exported
                  synchronously through it (used by tests)
        register_global: Also install the provider as the OpenTelemetry
                         global tracer provider

    Returns:
        The handle owning the provider; pass it to the shutdown coordinator

    Raises:
        TelemetryHandleError: If telemetry is already initialized and the
                              previous handle has not been shut down
    """
    global _active_handle

    if _active_handle is not None and not _active_handle.is_shutdown:
        raise TelemetryHandleError("Telemetry is already initialized")

    resource = Resource.create({
        SERVICE_NAME: settings.service_name,
        SERVICE_VERSION: settings.service_version,
        DEPLOYMENT_ENVIRONMENT: settings.environment,
    })
    provider = TracerProvider(resource=resource)

    if exporter is not None:
        provider.add_span_processor(SimpleSpanProcessor(exporter))
    elif settings.trace_enabled:
        otlp_exporter = OTLPSpanExporter(endpoint=settings.otlp_endpoint, insecure=True)
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
        try:
            check_agent_connectivity(
                settings.agent_host,
                settings.agent_otlp_port,
                timeout=settings.agent_probe_timeout_seconds,
            )
        except TelemetryConnectivityError as e:
            logger.warning(
                "Trace agent unreachable, spans will be exported when it becomes available",
                agent_host=e.host,
                agent_port=e.port,
                error=e.reason,
            )
    else:
        logger.info("Trace export disabled, spans are recorded locally only")

    if register_global:
        trace.set_tracer_provider(provider)

    handle = TracerProviderHandle(provider, settings.service_name)
    _active_handle = handle

    logger.info(
        "Telemetry initialized",
        otel_endpoint=settings.otlp_endpoint,
        trace_enabled=settings.trace_enabled,
    )
    return handle


def get_tracer(name: Optional[str] = None) -> trace.Tracer:
    """
    Get a tracer from the active handle.

    Precondition: init_telemetry() has run and its handle has not been shut
    down. Handlers call this per request, never at import time.

    Raises:
        TelemetryHandleError: If the precondition does not hold
    """
    if _active_handle is None:
        raise TelemetryHandleError("Telemetry is not initialized; call init_telemetry() first")
    return _active_handle.get_tracer(name)


def get_active_handle() -> Optional[TracerProviderHandle]:
    """Return the handle created by the last init_telemetry() call, if any."""
    return _active_handle
