"""
File state recorder.

Appends one JSON document per record to a local file (JSON Lines), for
environments without a collector. Each line is the wire envelope plus a
``kind`` field of ``snapshot`` or ``step``.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from pathlib import Path
from typing import TYPE_CHECKING

from flowtrail.errors import (
    ConfigurationError,
    FlowtrailError,
    RecordingCancelledError,
    TransientError,
)
from flowtrail.recorder.config import SERVICE_STATE_RECORDER, ServiceConfig
from flowtrail.recorder.interface import StateRecorder
from flowtrail.recorder.requests import RecordRequest, SnapshotRequest, StepRequest
from flowtrail.recorder.result import FailurePolicy, RecordResult

if TYPE_CHECKING:
    from flowtrail.models.instance import RecordableInstance

logger = logging.getLogger(__name__)


class FileStateRecorder(StateRecorder):
    """
    Recorder that appends records to a JSON Lines file.

    Writes are serialized with a lock so concurrent flows never interleave
    partial lines. The parent directory is created on ``start()`` or on the
    first write.
    """

    def __init__(
        self,
        path: str | Path,
        name: str = SERVICE_STATE_RECORDER,
        enabled: bool = True,
        failure_policy: FailurePolicy = FailurePolicy.LOG,
    ) -> None:
        super().__init__(name=name, enabled=enabled)
        self._path = Path(path)
        self._failure_policy = failure_policy
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: ServiceConfig) -> FileStateRecorder:
        """Create a file recorder from the ``path`` setting.

        Raises:
            ConfigurationError: If ``path`` is missing or the policy is unknown
        """
        path = (config.settings.get("path") or "").strip()
        if not path:
            raise ConfigurationError("FileStateRecorder: required setting 'path' not set", setting="path")
        try:
            policy = FailurePolicy.parse(config.settings.get("failurePolicy") or FailurePolicy.LOG)
        except ValueError as e:
            raise ConfigurationError(f"FileStateRecorder: {e}", setting="failurePolicy", cause=e) from e
        return cls(path, name=config.name, enabled=config.enabled, failure_policy=policy)

    @property
    def path(self) -> Path:
        return self._path

    def start(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        logger.debug("FileStateRecorder: writing to %s", self._path)

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
        start_time = time.monotonic()
        try:
            if cancel is not None and cancel.is_set():
                raise RecordingCancelledError(f"Recording {request.kind} cancelled")
            # Validates encodability and raises SerializationError
            request.to_json()
            line = json.dumps({"kind": request.kind, **request.to_dict()}, separators=(",", ":"))
            self._append(line)
        except FlowtrailError as e:
            elapsed_ms = int((time.monotonic() - start_time) * 1000)
            result = RecordResult.failed(e, url=str(self._path), elapsed_ms=elapsed_ms)
            return self._report_failure(self._failure_policy, request, result)

        elapsed_ms = int((time.monotonic() - start_time) * 1000)
        return RecordResult.ok(url=str(self._path), elapsed_ms=elapsed_ms)

    def _append(self, line: str) -> None:
        with self._lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with open(self._path, "a", encoding="utf-8") as f:
                    f.write(line + "\n")
            except OSError as e:
                raise TransientError(f"Cannot append record to {self._path}: {e}", cause=e) from e
