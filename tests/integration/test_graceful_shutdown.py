"""
Integration tests for the shutdown sequence.

A real uvicorn server is started on an ephemeral port. Shutdown is requested
while a slow request is in flight; the request must still be answered, and
the tracer must be shut down only afterwards, with the request's span already
exported.
"""

import asyncio
import signal
import socket

import httpx
import pytest

from main import create_app
from server.shutdown import ShutdownCoordinator

pytestmark = pytest.mark.integration


def listening_socket() -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    sock.bind(("127.0.0.1", 0))
    return sock


async def wait_until_started(coordinator: ShutdownCoordinator, timeout: float = 5.0) -> None:
    async def poll():
        while not coordinator.started:
            await asyncio.sleep(0.01)

    await asyncio.wait_for(poll(), timeout)


class TestShutdownCoordinator:
    """Tests for ShutdownCoordinator."""

    @pytest.mark.asyncio
    async def test_in_flight_request_completes_before_tracer_shutdown(
        self, settings, log_stream, telemetry_handle, span_exporter, monkeypatch
    ):
        events = []
        original_shutdown = telemetry_handle.shutdown

        def recording_shutdown():
            events.append(("tracer_shutdown", [span.name for span in span_exporter.get_finished_spans()]))
            original_shutdown()

        monkeypatch.setattr(telemetry_handle, "shutdown", recording_shutdown)

        app = create_app(settings, telemetry_handle)
        coordinator = ShutdownCoordinator(app, settings, telemetry_handle)
        sock = listening_socket()
        port = sock.getsockname()[1]

        server_task = asyncio.create_task(coordinator.run(sockets=[sock]))
        await wait_until_started(coordinator)

        async with httpx.AsyncClient(base_url=f"http://127.0.0.1:{port}", timeout=10.0) as client:
            request_task = asyncio.create_task(client.get("/api/slow-operation"))
            await asyncio.sleep(0.3)

            assert not request_task.done()
            coordinator.request_shutdown(signal.SIGTERM)

            response = await request_task
            events.append(("response", response.status_code))

        await asyncio.wait_for(server_task, timeout=10.0)

        assert response.status_code == 200
        assert response.json()["message"] == "Slow operation completed"
        assert telemetry_handle.is_shutdown

        shutdown_events = [event for event in events if event[0] == "tracer_shutdown"]
        assert len(shutdown_events) == 1
        assert "GET /api/slow-operation" in shutdown_events[0][1]

    @pytest.mark.asyncio
    async def test_idle_server_shuts_down_tracer_once(self, settings, log_stream, telemetry_handle):
        app = create_app(settings, telemetry_handle)
        coordinator = ShutdownCoordinator(app, settings, telemetry_handle)
        sock = listening_socket()

        server_task = asyncio.create_task(coordinator.run(sockets=[sock]))
        await wait_until_started(coordinator)

        coordinator.request_shutdown()
        await asyncio.wait_for(server_task, timeout=10.0)

        assert telemetry_handle.is_shutdown

    @pytest.mark.asyncio
    async def test_new_connections_refused_after_shutdown(self, settings, log_stream, telemetry_handle):
        app = create_app(settings, telemetry_handle)
        coordinator = ShutdownCoordinator(app, settings, telemetry_handle)
        sock = listening_socket()
        port = sock.getsockname()[1]

        server_task = asyncio.create_task(coordinator.run(sockets=[sock]))
        await wait_until_started(coordinator)
        coordinator.request_shutdown()
        await asyncio.wait_for(server_task, timeout=10.0)

        async with httpx.AsyncClient(base_url=f"http://127.0.0.1:{port}", timeout=1.0) as client:
            with pytest.raises(httpx.ConnectError):
                await client.get("/health")

    def test_second_interrupt_forces_exit(self, settings, telemetry_handle):
        coordinator = ShutdownCoordinator(object(), settings, telemetry_handle)

        coordinator.request_shutdown(signal.SIGINT)
        assert coordinator.server.should_exit
        assert not coordinator.server.force_exit

        coordinator.request_shutdown(signal.SIGINT)
        assert coordinator.server.force_exit

    def test_shutdown_logged_with_signal_name(self, settings, telemetry_handle, captured_logs):
        coordinator = ShutdownCoordinator(object(), settings, telemetry_handle)

        coordinator.request_shutdown(signal.SIGTERM)

        line = captured_logs.find("Shutdown signal received, shutting down gracefully")
        assert line["signal"] == "SIGTERM"
        assert line["drain_timeout_seconds"] == 5.0
