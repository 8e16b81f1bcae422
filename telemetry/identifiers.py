"""
Trace and span identifier encoding for Datadog log correlation.

OpenTelemetry assigns 128-bit trace ids and 64-bit span ids. Datadog's log
pipeline links a log line to a trace through the `dd.trace_id` and
`dd.span_id` attributes, which it expects as unsigned 64-bit decimal strings.
For the trace id that means only the low-order 64 bits are kept.
"""

from dataclasses import dataclass

TRACE_ID_BITS = 128
SPAN_ID_BITS = 64

_LOW_64_MASK = (1 << 64) - 1


def _check_width(value: int, bits: int, kind: str) -> None:
    if value < 0 or value >> bits:
        raise ValueError(f"{kind} must be an unsigned {bits}-bit integer, got {value!r}")


def encode_trace_id(trace_id: int) -> str:
    """
    Encode a 128-bit trace id as the decimal string Datadog correlates on.

    The id is read as 16 big-endian bytes and bytes 8..15 (the low 64 bits)
    are rendered in decimal. The high 64 bits are discarded.

    Args:
        trace_id: The OpenTelemetry trace id

    Returns:
        Unsigned decimal rendering of the low 64 bits

    Raises:
        ValueError: If trace_id is negative or wider than 128 bits
    """
    _check_width(trace_id, TRACE_ID_BITS, "trace_id")
    return str(trace_id & _LOW_64_MASK)


def encode_span_id(span_id: int) -> str:
    """
    Encode a 64-bit span id as an unsigned decimal string.

    Raises:
        ValueError: If span_id is negative or wider than 64 bits
    """
    _check_width(span_id, SPAN_ID_BITS, "span_id")
    return str(span_id)


@dataclass(frozen=True)
class CorrelationIds:
    """Decimal identifiers as they appear on a log line."""

    trace_id: str
    span_id: str

    @classmethod
    def from_ids(cls, trace_id: int, span_id: int) -> "CorrelationIds":
        return cls(trace_id=encode_trace_id(trace_id), span_id=encode_span_id(span_id))

    def to_log_fields(self) -> dict[str, str]:
        return {"dd.trace_id": self.trace_id, "dd.span_id": self.span_id}
