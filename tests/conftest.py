"""Shared pytest fixtures: a local state collector and sample flow instances."""

from __future__ import annotations

import json
import threading
from collections.abc import Generator
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, ClassVar

import pytest

from flowtrail.models import FlowInstance, FlowStatus
from flowtrail.recorder import RemoteStateRecorder, ServiceConfig


class CollectorHandler(BaseHTTPRequestHandler):
    """Mock state collector recording every POST it receives."""

    requests: ClassVar[list[dict[str, Any]]] = []
    # path -> statuses to answer with, consumed in order; 200 once exhausted
    statuses: ClassVar[dict[str, list[int]]] = {}
    hang_paths: ClassVar[set[str]] = set()
    release: ClassVar[threading.Event] = threading.Event()
    lock: ClassVar[threading.Lock] = threading.Lock()

    def log_message(self, format: str, *args: Any) -> None:
        """Suppress server logs during tests."""
        pass

    def _send_response(self, status: int, body: bytes) -> None:
        self.send_response(status)
        self.send_header("Content-Type", "text/plain")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def do_POST(self) -> None:
        """Handle POST requests."""
        content_length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(content_length) if content_length > 0 else b""

        with CollectorHandler.lock:
            CollectorHandler.requests.append(
                {
                    "method": self.command,
                    "path": self.path,
                    "headers": dict(self.headers),
                    "body": body,
                    "json": json.loads(body) if body else None,
                }
            )
            queued = CollectorHandler.statuses.get(self.path, [])
            status = queued.pop(0) if queued else 200

        if self.path in CollectorHandler.hang_paths:
            CollectorHandler.release.wait(timeout=5)
            return

        if status >= 300:
            self._send_response(status, f"collector says no ({status})".encode())
        else:
            self._send_response(status, b"")


@pytest.fixture
def collector() -> Generator[str, None, None]:
    """Start a local collector and yield its base URL."""
    CollectorHandler.requests = []
    CollectorHandler.statuses = {}
    CollectorHandler.hang_paths = set()
    CollectorHandler.release = threading.Event()

    server = ThreadingHTTPServer(("127.0.0.1", 0), CollectorHandler)
    server.daemon_threads = True
    port = server.server_address[1]
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{port}"
    CollectorHandler.release.set()
    server.shutdown()
    server.server_close()


@pytest.fixture
def collector_requests() -> list[dict[str, Any]]:
    """Requests received by the collector (live list)."""
    return CollectorHandler.requests


@pytest.fixture
def make_recorder(collector: str):
    """Build a RemoteStateRecorder pointed at the local collector."""

    def _make(**settings: str) -> RemoteStateRecorder:
        merged = {"host": collector, "timeout": "2"}
        merged.update(settings)
        return RemoteStateRecorder(ServiceConfig(settings=merged))

    return _make


@pytest.fixture
def instance() -> FlowInstance:
    """An active flow instance with one tracked change."""
    flow = FlowInstance(
        flow_id="flow-42",
        flow_uri="res://flow:order_fulfillment",
        state=3,
        status=FlowStatus.ACTIVE,
        step_id=7,
        attrs={"orderId": "A-1001", "total": 99.5},
        created_at=1_700_000_000_000,
    )
    flow.change_tracker.track("task", "ship_order", {"status": "done"})
    return flow


@pytest.fixture
def collector_statuses(collector: str) -> dict[str, list[int]]:
    """Per-path statuses the collector answers with, consumed in order."""
    return CollectorHandler.statuses


@pytest.fixture
def collector_hang_paths(collector: str) -> set[str]:
    """Paths on which the collector accepts the request but never answers."""
    return CollectorHandler.hang_paths
