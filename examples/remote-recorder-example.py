#!/usr/bin/env python3
"""
Remote Recorder Example - Demonstrates recording a flow's history.

This example shows how to:
1. Configure a RemoteStateRecorder against a collector
2. Record a step delta after every step and a snapshot on status changes
3. Inspect RecordResult instead of letting recording failures stop the flow

Requirements:
    None beyond flowtrail (the collector is a stdlib HTTP server)

Run with:
    python examples/remote-recorder-example.py
"""

import json
import logging
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any

from flowtrail import FlowInstance, FlowStatus, ServiceConfig, create_state_recorder
from flowtrail.logging import configure_logging

# =============================================================================
# A toy collector
# =============================================================================

received: list[tuple[str, dict[str, Any]]] = []


class CollectorHandler(BaseHTTPRequestHandler):
    def do_POST(self) -> None:
        length = int(self.headers.get("Content-Length", 0))
        received.append((self.path, json.loads(self.rfile.read(length))))
        self.send_response(202)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def log_message(self, format: str, *args: Any) -> None:
        pass


def start_collector() -> HTTPServer:
    server = HTTPServer(("127.0.0.1", 0), CollectorHandler)
    threading.Thread(target=server.serve_forever, daemon=True).start()
    return server


# =============================================================================
# Flow driver
# =============================================================================


def run_order_flow(recorder: Any) -> None:
    instance = FlowInstance(flow_id="order-1001", flow_uri="res://flow:order_fulfillment", state=1)

    instance.status = FlowStatus.ACTIVE
    recorder.record_snapshot(instance)

    for task, value in [("reserve_stock", "reserved"), ("charge_card", "charged"), ("ship", "shipped")]:
        instance.advance_step()
        instance.set_attr(task, value)
        result = recorder.record_step(instance)
        if not result:
            print(f"  step {instance.step_id} not recorded: {result.error}")
        instance.change_tracker.reset()

    instance.status = FlowStatus.COMPLETED
    recorder.record_snapshot(instance)


def main() -> None:
    configure_logging(level=logging.INFO)
    server = start_collector()
    host, port = server.server_address[:2]

    recorder = create_state_recorder(
        ServiceConfig(settings={"host": str(host), "port": str(port), "timeout": "2"})
    )
    print(f"Recording to {recorder.host}")

    run_order_flow(recorder)
    server.shutdown()

    print(f"Collector received {len(received)} records:")
    for path, body in received:
        print(f"  {path:<20} step={body['id']} status={body['status']}")


if __name__ == "__main__":
    main()
