"""
Flowtrail - state recording for flow execution engines.

Captures point-in-time snapshots and per-step deltas of running flow
instances and ships them to a collector, so execution history can be
reconstructed after the fact:
- StateRecorder interface with remote (HTTP/JSON), file, in-memory and
  no-op implementations
- Explicit recording results with log/ignore/raise failure policies
- Timeouts, transient-error retries and cooperative cancellation
- Structured logging with structlog
"""

__version__ = "0.1.0"

from flowtrail.errors import (
    ConfigurationError,
    FlowtrailError,
    RecordingCancelledError,
    RecordingTimeoutError,
    RemoteRejectionError,
    TransportError,
)
from flowtrail.models import ChangeTracker, FlowInstance, FlowStatus, RecordableInstance
from flowtrail.recorder import (
    FailurePolicy,
    FileStateRecorder,
    InMemoryStateRecorder,
    NoOpStateRecorder,
    RecordResult,
    RemoteStateRecorder,
    ServiceConfig,
    SnapshotRequest,
    StateRecorder,
    StepRequest,
    create_state_recorder,
    default_config,
)

__all__ = [
    "ChangeTracker",
    "ConfigurationError",
    "FailurePolicy",
    "FileStateRecorder",
    "FlowInstance",
    "FlowStatus",
    "FlowtrailError",
    "InMemoryStateRecorder",
    "NoOpStateRecorder",
    "RecordResult",
    "RecordableInstance",
    "RecordingCancelledError",
    "RecordingTimeoutError",
    "RemoteRejectionError",
    "RemoteStateRecorder",
    "ServiceConfig",
    "SnapshotRequest",
    "StateRecorder",
    "StepRequest",
    "TransportError",
    "__version__",
    "create_state_recorder",
    "default_config",
]
