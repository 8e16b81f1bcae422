"""
Access to the span bound to the current task.

OpenTelemetry keeps the active span in a contextvars-backed context, so each
asyncio task (and therefore each request) sees only its own span. Reading it
never blocks and never touches the exporter.
"""

from dataclasses import dataclass
from typing import Optional

from opentelemetry import trace

from telemetry.identifiers import CorrelationIds


@dataclass(frozen=True)
class TraceContext:
    """Snapshot of the active span's identifiers."""

    trace_id: int
    span_id: int
    valid: bool

    def correlation_ids(self) -> CorrelationIds:
        return CorrelationIds.from_ids(self.trace_id, self.span_id)


def current_trace_context() -> Optional[TraceContext]:
    """
    Read the span context of the span active in the calling task.

    Returns:
        The context snapshot, or None when no span is active or the active
        span's context is invalid (e.g. outside any request, or during startup)
    """
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        return None
    return TraceContext(
        trace_id=span_context.trace_id,
        span_id=span_context.span_id,
        valid=True,
    )


def current_correlation_ids() -> Optional[CorrelationIds]:
    """Decimal correlation ids for the active span, or None."""
    ctx = current_trace_context()
    if ctx is None:
        return None
    return ctx.correlation_ids()


def current_span_name() -> Optional[str]:
    """Name of the recording span active in the calling task, or None."""
    span = trace.get_current_span()
    if not span.is_recording():
        return None
    return getattr(span, "name", None)
