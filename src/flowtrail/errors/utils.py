"""Error utility functions."""

from __future__ import annotations

import errno
import http.client
import socket
import urllib.error

from flowtrail.errors.permanent import PermanentError
from flowtrail.errors.recording import RecordingCancelledError, RemoteRejectionError
from flowtrail.errors.transient import TransientError

_TRANSIENT_STDLIB_TYPES = (
    ConnectionError,
    TimeoutError,
    socket.timeout,
    socket.gaierror,
    http.client.RemoteDisconnected,
    urllib.error.URLError,
)

_TRANSIENT_ERRNO_VALUES = frozenset(
    {
        errno.ECONNREFUSED,
        errno.ECONNRESET,
        errno.ECONNABORTED,
        errno.ETIMEDOUT,
        errno.EHOSTUNREACH,
        errno.ENETUNREACH,
    }
)


def is_transient(error: Exception) -> bool:
    """Check if an error is transient and should be retried.

    Checks the error itself and its cause chain (__cause__) for transient errors.
    Permanent classification takes precedence, and a cancelled recording is
    never retried.

    Args:
        error: The exception to check

    Returns:
        True if the error is transient and should be retried
    """
    if isinstance(error, TransientError):
        return True

    if isinstance(error, (PermanentError, RecordingCancelledError)):
        return False

    if isinstance(error, RemoteRejectionError):
        return error.is_retryable

    if isinstance(error, _TRANSIENT_STDLIB_TYPES):
        return True

    if isinstance(error, OSError) and error.errno in _TRANSIENT_ERRNO_VALUES:
        return True

    cause = getattr(error, "__cause__", None)
    if cause is not None and cause is not error:
        return is_transient(cause)

    return False


def is_permanent(error: Exception) -> bool:
    """Check if an error is permanent and should not be retried.

    Args:
        error: The exception to check

    Returns:
        True if the error is permanent and should not be retried
    """
    if isinstance(error, PermanentError):
        return True

    # Explicit TransientError must never be classified as permanent
    if isinstance(error, TransientError):
        return False

    if isinstance(error, RemoteRejectionError):
        return not error.is_retryable

    if isinstance(error, (ValueError, TypeError, AttributeError, KeyError, IndexError)):
        return True

    cause = getattr(error, "__cause__", None)
    if cause is not None and cause is not error:
        return is_permanent(cause)

    return False


def truncate_error(message: str, max_bytes: int = 4096) -> str:
    """Truncate message to max_bytes, appending '[TRUNCATED]' marker.

    Keeps collector response bodies from flooding the logs.

    Args:
        message: The message to truncate
        max_bytes: Maximum size in bytes (default: 4KB)

    Returns:
        Original message if within limit, otherwise truncated with marker.
    """
    if not message:
        return message

    encoded = message.encode("utf-8", errors="replace")

    if len(encoded) <= max_bytes:
        return message

    marker = " [TRUNCATED]"
    target_bytes = max_bytes - len(marker.encode("utf-8"))

    if target_bytes <= 0:
        return marker.strip()

    # errors="ignore" drops a multi-byte sequence cut at the boundary
    return encoded[:target_bytes].decode("utf-8", errors="ignore") + marker
