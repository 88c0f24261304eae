"""Flowtrail error hierarchy.

Import from ``flowtrail.errors``.
"""

from flowtrail.errors.base import FlowtrailBaseException, FlowtrailError
from flowtrail.errors.permanent import ConfigurationError, PermanentError, SerializationError
from flowtrail.errors.recording import (
    RETRYABLE_STATUS_CODES,
    RecordingCancelledError,
    RemoteRejectionError,
)
from flowtrail.errors.transient import RecordingTimeoutError, TransientError, TransportError
from flowtrail.errors.utils import is_permanent, is_transient, truncate_error

__all__ = [
    "ConfigurationError",
    "FlowtrailBaseException",
    "FlowtrailError",
    "PermanentError",
    "RETRYABLE_STATUS_CODES",
    "RecordingCancelledError",
    "RecordingTimeoutError",
    "RemoteRejectionError",
    "SerializationError",
    "TransientError",
    "TransportError",
    "is_permanent",
    "is_transient",
    "truncate_error",
]
