"""
State recorders for flow instances.

Record point-in-time snapshots and per-step deltas of running flow
instances so their execution history can be reconstructed later.
"""

from flowtrail.recorder.config import (
    SERVICE_STATE_RECORDER,
    RemoteRecorderSettings,
    ServiceConfig,
    default_config,
    resolve_host,
)
from flowtrail.recorder.factory import create_state_recorder, detect_recorder_type
from flowtrail.recorder.file import FileStateRecorder
from flowtrail.recorder.interface import StateRecorder
from flowtrail.recorder.memory import InMemoryStateRecorder
from flowtrail.recorder.noop import NoOpStateRecorder
from flowtrail.recorder.remote import RemoteStateRecorder
from flowtrail.recorder.requests import (
    SNAPSHOT_PATH,
    STEPS_PATH,
    SnapshotRequest,
    StepRequest,
    encode_payload,
)
from flowtrail.recorder.result import FailurePolicy, RecordResult

__all__ = [
    "FailurePolicy",
    "FileStateRecorder",
    "InMemoryStateRecorder",
    "NoOpStateRecorder",
    "RecordResult",
    "RemoteRecorderSettings",
    "RemoteStateRecorder",
    "SERVICE_STATE_RECORDER",
    "SNAPSHOT_PATH",
    "STEPS_PATH",
    "ServiceConfig",
    "SnapshotRequest",
    "StateRecorder",
    "StepRequest",
    "create_state_recorder",
    "default_config",
    "detect_recorder_type",
    "encode_payload",
    "resolve_host",
]
