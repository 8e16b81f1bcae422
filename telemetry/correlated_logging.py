"""
Structured JSON logging with trace correlation.

Every log line is one flat JSON object. Service metadata is attached to all
records, and the Datadog correlation attributes `dd.trace_id` / `dd.span_id`
are added at the document root whenever a valid span is active. Datadog only
recognizes these keys at the root, so nothing is ever nested under a wrapper
key such as `fields`.

Caller fields travel on the log record as `extra_data`:

    logger.info("User created", extra={"extra_data": {"user_id": user_id}})

or, more conveniently, through CorrelatedLogger:

    log = get_logger(__name__)
    log.info("User created", user_id=user_id)
"""

import json
import logging
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO

from middleware.request_id import get_request_id
from telemetry.context import current_correlation_ids, current_span_name

# Keys owned by the formatter; caller fields with these names are dropped.
RESERVED_KEYS = frozenset({
    "timestamp",
    "level",
    "message",
    "logger",
    "service",
    "env",
    "environment",
    "version",
    "dd.trace_id",
    "dd.span_id",
    "span_name",
    "thread_name",
})

_NOT_CAPTURED = object()


@dataclass(frozen=True)
class ServiceMetadata:
    """Unified service tags, read once from settings at startup."""

    service: str
    version: str
    environment: str

    @classmethod
    def from_settings(cls, settings: Any) -> "ServiceMetadata":
        return cls(
            service=settings.service_name,
            version=settings.service_version,
            environment=settings.environment,
        )

    def to_log_fields(self) -> Dict[str, str]:
        return {
            "service": self.service,
            "environment": self.environment,
            "version": self.version,
        }


class JSONFormatter(logging.Formatter):
    """
    Log formatter that outputs one flat JSON object per record.

    Each log entry contains:
    - timestamp: ISO 8601 UTC time the record was created
    - level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - message: The log message
    - logger: Name of the logger that produced the entry
    - service, environment, version: Service metadata
    - dd.trace_id, dd.span_id: Decimal correlation ids, only inside a span
    - span_name: Name of the span that produced the line, only inside a span
    - thread_name: Name of the emitting thread
    - request_id: Request correlation id, only inside a request

    Caller fields attached as `extra_data` are merged at the root.
    """

    def __init__(self, metadata: ServiceMetadata):
        super().__init__()
        self.metadata = metadata

    def format(self, record: logging.LogRecord) -> str:
        """
        Format a log record as a single-line JSON string.

        Args:
            record: The log record to format

        Returns:
            JSON-formatted string containing the log entry
        """
        log_data: Dict[str, Any] = {
            "timestamp": _format_timestamp(record.created),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }
        log_data.update(self.metadata.to_log_fields())

        # Ids captured at emit time win over a lookup at format time
        correlation = getattr(record, "correlation", _NOT_CAPTURED)
        if correlation is _NOT_CAPTURED:
            correlation = current_correlation_ids()
            span_name = current_span_name()
        else:
            span_name = getattr(record, "span_name", None)
        if correlation is not None:
            log_data.update(correlation.to_log_fields())
        if span_name:
            log_data["span_name"] = span_name
        log_data["thread_name"] = record.threadName

        request_id = get_request_id()
        if request_id:
            log_data["request_id"] = request_id

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            for key, value in extra_data.items():
                if key not in RESERVED_KEYS:
                    log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_data["stack_trace"] = record.stack_info

        return json.dumps(log_data, default=str)


def _format_timestamp(created: float) -> str:
    stamp = datetime.fromtimestamp(created, tz=timezone.utc)
    return stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CorrelatedLogger:
    """
    Thin wrapper over a stdlib logger that takes caller fields as keywords.

    The active span is read when emit() is called, so the ids on the line are
    those of the span the caller was in, not whatever is active when the
    handler formats the record.
    """

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    @property
    def name(self) -> str:
        return self._logger.name

    def emit(self, level: int, message: str, /, **fields: Any) -> None:
        """
        Write one line at the given level.

        level and message are positional-only, so any keyword, including
        reserved names such as message or level, is a caller field.
        """
        self._log(level, message, fields)

    def _log(self, level: int, message: str, fields: Dict[str, Any], exc_info: bool = False) -> None:
        if not self._logger.isEnabledFor(level):
            return
        self._logger.log(
            level,
            message,
            exc_info=exc_info,
            extra={
                "extra_data": fields,
                "correlation": current_correlation_ids(),
                "span_name": current_span_name(),
            },
        )

    def debug(self, message: str, /, **fields: Any) -> None:
        self._log(logging.DEBUG, message, fields)

    def info(self, message: str, /, **fields: Any) -> None:
        self._log(logging.INFO, message, fields)

    def warning(self, message: str, /, **fields: Any) -> None:
        self._log(logging.WARNING, message, fields)

    def error(self, message: str, /, **fields: Any) -> None:
        self._log(logging.ERROR, message, fields)

    def exception(self, message: str, /, **fields: Any) -> None:
        self._log(logging.ERROR, message, fields, exc_info=True)


def get_logger(name: str) -> CorrelatedLogger:
    """Get a correlated logger with the specified name."""
    return CorrelatedLogger(name)


def setup_logging(
    settings: Any,
    metadata: Optional[ServiceMetadata] = None,
    stream: Optional[TextIO] = None,
) -> logging.Handler:
    """
    Configure structured JSON logging on the root logger.

    Existing root handlers are removed so every line leaving the process is
    JSON. Server loggers (uvicorn) propagate into the same handler.

    Args:
        settings: Application settings providing log_level and service metadata
        metadata: Service metadata; derived from settings when omitted
        stream: Output stream, stdout by default

    Returns:
        The installed handler
    """
    log_level_str = getattr(settings, "log_level", "INFO")
    log_level = getattr(logging, log_level_str.upper(), logging.INFO)

    if metadata is None:
        metadata = ServiceMetadata.from_settings(settings)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicate logs
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    stdout_handler = logging.StreamHandler(stream or sys.stdout)
    stdout_handler.setLevel(log_level)
    stdout_handler.setFormatter(JSONFormatter(metadata))
    root_logger.addHandler(stdout_handler)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.propagate = True

    return stdout_handler
