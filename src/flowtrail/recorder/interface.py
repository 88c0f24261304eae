"""
StateRecorder interface.

A state recorder is the sink a flow engine reports instance history to:
a full snapshot after state transitions, and the change-tracker delta after
each step. The engine depends only on this interface, so remote, local-file,
in-memory and no-op sinks are interchangeable.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from flowtrail.errors import RemoteRejectionError
from flowtrail.recorder.config import SERVICE_STATE_RECORDER
from flowtrail.recorder.result import FailurePolicy, RecordResult

if TYPE_CHECKING:
    from flowtrail.models.instance import RecordableInstance
    from flowtrail.recorder.requests import RecordRequest

logger = logging.getLogger(__name__)


class StateRecorder(ABC):
    """
    Base interface for all state recorders.

    Implementations must be safe to call repeatedly and from any thread the
    engine runs flows on. A recording call never changes the instance.

    Example:
        class StdoutRecorder(StateRecorder):
            def record_snapshot(self, instance, cancel=None):
                print(SnapshotRequest.from_instance(instance).to_json())
                return RecordResult.ok()

            def record_step(self, instance, cancel=None):
                print(StepRequest.from_instance(instance).to_json())
                return RecordResult.ok()
    """

    def __init__(self, name: str = SERVICE_STATE_RECORDER, enabled: bool = True) -> None:
        self._name = name
        self._enabled = enabled

    @property
    def name(self) -> str:
        """Service name used for registry integration."""
        return self._name

    @property
    def enabled(self) -> bool:
        """Whether the engine should invoke this recorder.

        Set at construction and never changed. Honouring it is the
        engine's job; recorders do not check it themselves.
        """
        return self._enabled

    def start(self) -> None:
        """Acquire resources before the first record (no-op by default)."""

    def stop(self) -> None:
        """Release resources after the last record (no-op by default)."""

    @abstractmethod
    def record_snapshot(
        self,
        instance: RecordableInstance,
        cancel: threading.Event | None = None,
    ) -> RecordResult:
        """
        Record a complete snapshot of the instance's current state.

        Args:
            instance: The flow instance to snapshot
            cancel: Optional event; once set, an undelivered record is abandoned

        Returns:
            RecordResult describing the delivery outcome
        """

    @abstractmethod
    def record_step(
        self,
        instance: RecordableInstance,
        cancel: threading.Event | None = None,
    ) -> RecordResult:
        """
        Record the changes of the instance's current step.

        Only the change tracker is recorded, not the whole instance.

        Args:
            instance: The flow instance whose change tracker holds the step delta
            cancel: Optional event; once set, an undelivered record is abandoned

        Returns:
            RecordResult describing the delivery outcome
        """

    def _report_failure(
        self,
        policy: FailurePolicy,
        request: RecordRequest,
        result: RecordResult,
    ) -> RecordResult:
        """Apply the failure policy to an undelivered record.

        Returns the result unchanged for LOG and IGNORE; raises the
        result's error for RAISE.
        """
        error = result.error
        if policy is FailurePolicy.RAISE and error is not None:
            raise error

        level = logging.WARNING if policy is FailurePolicy.LOG else logging.DEBUG
        if isinstance(error, RemoteRejectionError):
            logger.log(
                level,
                "%s: collector rejected %s for flow %s step %d (HTTP %d): %s",
                type(self).__name__,
                request.kind,
                request.flow_id,
                request.id,
                error.status_code,
                error.body,
            )
        else:
            logger.log(
                level,
                "%s: failed to record %s for flow %s step %d after %d attempt(s): %s",
                type(self).__name__,
                request.kind,
                request.flow_id,
                request.id,
                result.attempts,
                error,
            )
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r}, enabled={self._enabled})"
