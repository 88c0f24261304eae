"""Tests for RemoteStateRecorder against a local collector."""

import socket
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from flowtrail.errors import (
    RecordingCancelledError,
    RecordingTimeoutError,
    RemoteRejectionError,
    SerializationError,
    TransportError,
)
from flowtrail.models import FlowInstance
from flowtrail.recorder import RemoteStateRecorder, ServiceConfig


def _unused_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class TestRecordSnapshot:
    """Tests for record_snapshot()."""

    def test_posts_one_snapshot(self, make_recorder, collector_requests, instance: FlowInstance) -> None:
        recorder = make_recorder()

        result = recorder.record_snapshot(instance)

        assert result.success
        assert result.status_code == 200
        assert result.attempts == 1
        assert result.url == recorder.host + "/instances/snapshot"
        assert len(collector_requests) == 1

        request = collector_requests[0]
        assert request["method"] == "POST"
        assert request["path"] == "/instances/snapshot"
        assert request["headers"]["Content-Type"] == "application/json"
        assert request["json"] == {
            "id": 7,
            "flowID": "flow-42",
            "state": 3,
            "status": 100,
            "snapshotData": instance.to_dict(),
        }

    def test_remote_500_is_reported_not_raised(
        self,
        collector_statuses, make_recorder, collector_requests, instance: FlowInstance, caplog: pytest.LogCaptureFixture
    ) -> None:
        collector_statuses["/instances/snapshot"] = [500]
        recorder = make_recorder()

        result = recorder.record_snapshot(instance)

        assert not result.success
        assert result.status_code == 500
        assert isinstance(result.error, RemoteRejectionError)
        assert result.error.status_code == 500
        assert "collector says no (500)" in result.error.body
        assert "HTTP 500" in caplog.text
        assert "flow-42" in caplog.text

    def test_redirect_is_a_rejection(self, collector_statuses, make_recorder, instance: FlowInstance) -> None:
        collector_statuses["/instances/snapshot"] = [302]

        result = make_recorder().record_snapshot(instance)

        assert not result.success
        assert result.status_code == 302

    def test_each_call_sends_a_fresh_snapshot(self, make_recorder, collector_requests, instance: FlowInstance) -> None:
        recorder = make_recorder()

        recorder.record_snapshot(instance)
        instance.advance_step()
        instance.set_attr("total", 120)
        recorder.record_snapshot(instance)

        first, second = (r["json"] for r in collector_requests)
        assert (first["id"], second["id"]) == (7, 8)
        assert first["snapshotData"]["attrs"]["total"] == 99.5
        assert second["snapshotData"]["attrs"]["total"] == 120


class TestRecordStep:
    """Tests for record_step()."""

    def test_posts_change_tracker_to_steps(self, make_recorder, collector_requests, instance: FlowInstance) -> None:
        result = make_recorder().record_step(instance)

        assert result.success
        assert len(collector_requests) == 1
        request = collector_requests[0]
        assert request["path"] == "/instances/steps"
        assert request["headers"]["Content-Type"] == "application/json"
        assert request["json"]["id"] == 7
        assert request["json"]["stepData"] == instance.change_tracker.to_dict()
        assert "snapshotData" not in request["json"]

    def test_both_paths_succeed(self, make_recorder, instance: FlowInstance) -> None:
        recorder = make_recorder()

        assert recorder.record_snapshot(instance)
        assert recorder.record_step(instance)


class TestFailures:
    """Tests for transport failures, timeouts and failure policies."""

    def test_unreachable_collector_returns_transport_error(self, instance: FlowInstance) -> None:
        recorder = RemoteStateRecorder(
            ServiceConfig(settings={"host": "127.0.0.1", "port": str(_unused_port()), "timeout": "2"})
        )

        result = recorder.record_step(instance)

        assert not result.success
        assert isinstance(result.error, TransportError)
        assert result.status_code is None

    def test_unresponsive_collector_times_out(
        self, collector_hang_paths, make_recorder, instance: FlowInstance
    ) -> None:
        collector_hang_paths.add("/instances/snapshot")
        recorder = make_recorder(timeout="0.3")

        start = time.monotonic()
        result = recorder.record_snapshot(instance)
        elapsed = time.monotonic() - start

        assert not result.success
        assert isinstance(result.error, RecordingTimeoutError)
        assert isinstance(result.error, TransportError)
        assert elapsed < 3

    def test_raise_policy_propagates_rejection(
        self, collector_statuses, make_recorder, instance: FlowInstance
    ) -> None:
        collector_statuses["/instances/steps"] = [400]
        recorder = make_recorder(failurePolicy="raise")

        with pytest.raises(RemoteRejectionError) as exc_info:
            recorder.record_step(instance)

        assert exc_info.value.status_code == 400

    def test_raise_policy_propagates_transport_error(self, instance: FlowInstance) -> None:
        recorder = RemoteStateRecorder(
            ServiceConfig(
                settings={
                    "host": "127.0.0.1",
                    "port": str(_unused_port()),
                    "failurePolicy": "raise",
                }
            )
        )

        with pytest.raises(TransportError):
            recorder.record_snapshot(instance)

    def test_ignore_policy_does_not_warn(
        self,
        collector_statuses, make_recorder, instance: FlowInstance, caplog: pytest.LogCaptureFixture
    ) -> None:
        collector_statuses["/instances/snapshot"] = [500]
        recorder = make_recorder(failurePolicy="ignore")

        with caplog.at_level("WARNING"):
            result = recorder.record_snapshot(instance)

        assert not result.success
        assert "HTTP 500" not in caplog.text

    def test_unencodable_instance_is_reported(self, make_recorder, collector_requests, instance: FlowInstance) -> None:
        instance.attrs["lock"] = threading.Lock()

        result = make_recorder().record_snapshot(instance)

        assert not result.success
        assert isinstance(result.error, SerializationError)
        assert result.attempts == 0
        assert collector_requests == []

    @pytest.mark.parametrize("value", ["cycle", float("nan"), float("inf")])
    def test_unrepresentable_attrs_are_reported(
        self, make_recorder, collector_requests, instance: FlowInstance, value: object
    ) -> None:
        instance.attrs["bad"] = instance.attrs if value == "cycle" else value

        result = make_recorder().record_snapshot(instance)

        assert not result.success
        assert isinstance(result.error, SerializationError)
        assert collector_requests == []

    def test_self_referencing_step_data_with_raise_policy(self, make_recorder, instance: FlowInstance) -> None:
        instance.change_tracker.track("attr", "loop", instance.change_tracker.changes)

        with pytest.raises(SerializationError):
            make_recorder(failurePolicy="raise").record_step(instance)


class TestRetries:
    """Tests for retrying transient failures."""

    def test_retries_transient_status_then_succeeds(
        self,
        collector_statuses, make_recorder, collector_requests, instance: FlowInstance
    ) -> None:
        collector_statuses["/instances/steps"] = [503, 502]
        recorder = make_recorder(retries="3", retryDelay="0.01")

        result = recorder.record_step(instance)

        assert result.success
        assert result.attempts == 3
        assert len(collector_requests) == 3

    def test_permanent_rejection_is_not_retried(
        self,
        collector_statuses, make_recorder, collector_requests, instance: FlowInstance
    ) -> None:
        collector_statuses["/instances/steps"] = [400]
        recorder = make_recorder(retries="3", retryDelay="0.01")

        result = recorder.record_step(instance)

        assert not result.success
        assert result.attempts == 1
        assert len(collector_requests) == 1

    def test_gives_up_after_retries(
        self, collector_statuses, make_recorder, collector_requests, instance: FlowInstance
    ) -> None:
        collector_statuses["/instances/snapshot"] = [503, 503, 503, 503]
        recorder = make_recorder(retries="2", retryDelay="0.01")

        result = recorder.record_snapshot(instance)

        assert not result.success
        assert isinstance(result.error, RemoteRejectionError)
        assert result.error.status_code == 503
        assert len(collector_requests) == 3
        assert result.attempts == 3

    def test_no_retries_by_default(
        self, collector_statuses, make_recorder, collector_requests, instance: FlowInstance
    ) -> None:
        collector_statuses["/instances/snapshot"] = [503]

        result = make_recorder().record_snapshot(instance)

        assert not result.success
        assert len(collector_requests) == 1


class TestCancellation:
    """Tests for cooperative cancellation."""

    def test_cancelled_before_sending(self, make_recorder, collector_requests, instance: FlowInstance) -> None:
        cancel = threading.Event()
        cancel.set()

        result = make_recorder().record_snapshot(instance, cancel=cancel)

        assert not result.success
        assert isinstance(result.error, RecordingCancelledError)
        assert collector_requests == []

    def test_in_flight_call_is_abandoned(self, collector_hang_paths, make_recorder, instance: FlowInstance) -> None:
        collector_hang_paths.add("/instances/steps")
        recorder = make_recorder(timeout="5", retries="2", retryDelay="0.01")
        cancel = threading.Event()
        timer = threading.Timer(0.2, cancel.set)
        timer.start()

        start = time.monotonic()
        result = recorder.record_step(instance, cancel=cancel)
        elapsed = time.monotonic() - start
        timer.cancel()

        assert not result.success
        assert isinstance(result.error, RecordingCancelledError)
        assert result.attempts == 1
        assert elapsed < 2

    def test_unset_cancel_event_does_not_interfere(self, make_recorder, instance: FlowInstance) -> None:
        result = make_recorder().record_step(instance, cancel=threading.Event())
        assert result.success


class TestConcurrency:
    """Tests for concurrent use of one recorder."""

    def test_concurrent_calls_from_many_threads(self, make_recorder, collector_requests) -> None:
        recorder = make_recorder()
        instances = [FlowInstance(flow_id=f"flow-{i}", step_id=i) for i in range(20)]

        with ThreadPoolExecutor(max_workers=4) as executor:
            results = list(executor.map(recorder.record_snapshot, instances))

        assert all(r.success for r in results)
        received = sorted((r["json"]["flowID"], r["json"]["id"]) for r in collector_requests)
        assert received == sorted((f"flow-{i}", i) for i in range(20))
