"""
Shared pytest fixtures and configuration for all tests.
"""
import io
import json
import logging
import os
from typing import Generator, List

import pytest
from fastapi.testclient import TestClient
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

# Hypothesis configuration for property-based testing
from hypothesis import settings as hypothesis_settings, Verbosity, Phase

from config.settings import Settings
from telemetry.correlated_logging import setup_logging
from telemetry.service import TracerProviderHandle, init_telemetry

# Default profile: balanced for local development
hypothesis_settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,
    print_blob=True,  # Print failing examples for debugging
)

# CI profile: more thorough testing for continuous integration
hypothesis_settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    derandomize=True,  # Reproducible results in CI
)

# Debug profile: minimal examples for quick debugging
hypothesis_settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    phases=[Phase.explicit, Phase.reuse, Phase.generate],  # Skip shrinking for speed
)

# Load profile from environment variable HYPOTHESIS_PROFILE, default to "default"
hypothesis_settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


@pytest.fixture
def settings() -> Settings:
    """Settings for a local run without an agent."""
    return Settings(
        service_name="correlation-test",
        service_version="1.2.3",
        environment="test",
        trace_enabled=False,
        log_level="DEBUG",
        simulated_timeout_seconds=0.0,
        shutdown_drain_timeout_seconds=5.0,
        host="127.0.0.1",
        port=0,
    )


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    """Exporter collecting finished spans in memory."""
    return InMemorySpanExporter()


@pytest.fixture
def telemetry_handle(settings, span_exporter) -> Generator[TracerProviderHandle, None, None]:
    """Tracer handle exporting synchronously into span_exporter."""
    handle = init_telemetry(settings, exporter=span_exporter, register_global=False)
    yield handle
    if not handle.is_shutdown:
        handle.shutdown()


@pytest.fixture
def log_stream(settings) -> Generator[io.StringIO, None, None]:
    """Root logging configured with the JSON formatter, writing into a buffer."""
    stream = io.StringIO()
    handler = setup_logging(settings, stream=stream)
    yield stream
    root_logger = logging.getLogger()
    root_logger.removeHandler(handler)
    root_logger.setLevel(logging.WARNING)


class LogCapture:
    """Reads back the JSON lines written to a stream."""

    def __init__(self, stream: io.StringIO):
        self.stream = stream

    def raw_lines(self) -> List[str]:
        return [line for line in self.stream.getvalue().splitlines() if line.strip()]

    def lines(self) -> List[dict]:
        return [json.loads(line) for line in self.raw_lines()]

    def with_message(self, message: str) -> List[dict]:
        return [line for line in self.lines() if line["message"] == message]

    def find(self, message: str) -> dict:
        matches = self.with_message(message)
        assert matches, f"No log line with message {message!r}"
        return matches[0]


@pytest.fixture
def captured_logs(log_stream) -> LogCapture:
    """Parsed view of the lines written to log_stream."""
    return LogCapture(log_stream)


@pytest.fixture
def app(settings, log_stream, telemetry_handle):
    """The full application wired to the in-memory exporter."""
    from main import create_app

    return create_app(settings, telemetry_handle)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """Test client running the application's lifespan."""
    with TestClient(app) as test_client:
        yield test_client
