"""
In-memory state recorder.

Keeps the wire form of every record in process memory. Useful for testing
and development. Records are lost when the process exits.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

from flowtrail.errors import FlowtrailError, RecordingCancelledError
from flowtrail.recorder.config import SERVICE_STATE_RECORDER
from flowtrail.recorder.interface import StateRecorder
from flowtrail.recorder.requests import RecordRequest, SnapshotRequest, StepRequest
from flowtrail.recorder.result import FailurePolicy, RecordResult

if TYPE_CHECKING:
    from flowtrail.models.instance import RecordableInstance


class InMemoryStateRecorder(StateRecorder):
    """
    Thread-safe recorder that captures envelopes as dicts.

    Each record is encoded at call time, so later mutations of the instance
    do not leak into what was recorded.

    Example:
        recorder = InMemoryStateRecorder()
        recorder.record_step(instance)
        assert recorder.steps[-1]["id"] == instance.step_id
    """

    def __init__(
        self,
        name: str = SERVICE_STATE_RECORDER,
        enabled: bool = True,
        failure_policy: FailurePolicy = FailurePolicy.LOG,
    ) -> None:
        super().__init__(name=name, enabled=enabled)
        self._failure_policy = failure_policy
        self._records: list[tuple[str, dict[str, Any]]] = []
        self._lock = threading.Lock()

    def record_snapshot(
        self,
        instance: RecordableInstance,
        cancel: threading.Event | None = None,
    ) -> RecordResult:
        return self._record(SnapshotRequest.from_instance(instance), cancel)

    def record_step(
        self,
        instance: RecordableInstance,
        cancel: threading.Event | None = None,
    ) -> RecordResult:
        return self._record(StepRequest.from_instance(instance), cancel)

    def _record(self, request: RecordRequest, cancel: threading.Event | None) -> RecordResult:
        try:
            if cancel is not None and cancel.is_set():
                raise RecordingCancelledError(f"Recording {request.kind} cancelled")
            # Round-trip through the encoder so unencodable payloads fail here too
            request.to_json()
            data = request.to_dict()
        except FlowtrailError as e:
            return self._report_failure(self._failure_policy, request, RecordResult.failed(e, attempts=0))

        with self._lock:
            self._records.append((request.kind, data))
        return RecordResult.ok()

    @property
    def records(self) -> list[tuple[str, dict[str, Any]]]:
        """All records in call order as (kind, envelope) pairs."""
        with self._lock:
            return list(self._records)

    @property
    def snapshots(self) -> list[dict[str, Any]]:
        """Recorded snapshot envelopes in call order."""
        with self._lock:
            return [data for kind, data in self._records if kind == SnapshotRequest.kind]

    @property
    def steps(self) -> list[dict[str, Any]]:
        """Recorded step envelopes in call order."""
        with self._lock:
            return [data for kind, data in self._records if kind == StepRequest.kind]

    def clear(self) -> None:
        """Drop everything recorded so far."""
        with self._lock:
            self._records.clear()
