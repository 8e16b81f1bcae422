"""
Telemetry module for trace/log correlation.

This module provides:
- Identifier encoding into Datadog's decimal correlation format
- Access to the span context of the current task
- JSONFormatter and CorrelatedLogger for flat, correlated JSON log lines
- init_telemetry() and TracerProviderHandle for the tracer lifecycle
"""

from telemetry.context import (
    TraceContext,
    current_correlation_ids,
    current_span_name,
    current_trace_context,
)
from telemetry.correlated_logging import (
    CorrelatedLogger,
    JSONFormatter,
    ServiceMetadata,
    get_logger,
    setup_logging,
)
from telemetry.identifiers import CorrelationIds, encode_span_id, encode_trace_id
from telemetry.service import (
    TelemetryConnectivityError,
    TelemetryHandleError,
    TracerProviderHandle,
    get_tracer,
    init_telemetry,
)

__all__ = [
    "CorrelatedLogger",
    "CorrelationIds",
    "JSONFormatter",
    "ServiceMetadata",
    "TelemetryConnectivityError",
    "TelemetryHandleError",
    "TraceContext",
    "TracerProviderHandle",
    "current_correlation_ids",
    "current_span_name",
    "current_trace_context",
    "encode_span_id",
    "encode_trace_id",
    "get_logger",
    "get_tracer",
    "init_telemetry",
    "setup_logging",
]
