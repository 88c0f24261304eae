"""No-op state recorder."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from flowtrail.recorder.interface import StateRecorder
from flowtrail.recorder.result import RecordResult

if TYPE_CHECKING:
    from flowtrail.models.instance import RecordableInstance


class NoOpStateRecorder(StateRecorder):
    """Accepts every record and discards it.

    Used when recording is disabled, and as the fallback when a remote
    recorder cannot be configured.
    """

    def record_snapshot(
        self,
        instance: RecordableInstance,
        cancel: threading.Event | None = None,
    ) -> RecordResult:
        return RecordResult.ok(attempts=0)

    def record_step(
        self,
        instance: RecordableInstance,
        cancel: threading.Event | None = None,
    ) -> RecordResult:
        return RecordResult.ok(attempts=0)
