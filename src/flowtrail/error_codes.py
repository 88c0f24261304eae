"""
Structured error codes for Flowtrail.

Provides semantic error classification and exception chain traversal
for recording failures.

Usage:
    from flowtrail.error_codes import ErrorCode, error_chain, classify_error

    result = recorder.record_step(instance)
    if not result.success:
        code = classify_error(result.error)
        if code == ErrorCode.NETWORK_ERROR:
            # Collector unreachable, alert on sustained failure
            pass
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(Enum):
    """Semantic error codes for categorizing exceptions.

    These codes provide a standardized way to classify errors for:
    - Routing decisions (retry vs drop)
    - Alerting and monitoring
    - Error aggregation and reporting
    """

    # General errors
    UNKNOWN = "UNKNOWN"
    SYSTEM_ERROR = "SYSTEM_ERROR"
    USER_CODE_ERROR = "USER_CODE_ERROR"

    # Configuration errors
    CONFIGURATION_INVALID = "CONFIGURATION_INVALID"

    # Network errors
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"

    # Collector responses
    REMOTE_REJECTED = "REMOTE_REJECTED"
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"

    # Payload errors
    SERIALIZATION_FAILED = "SERIALIZATION_FAILED"
    VALIDATION_FAILED = "VALIDATION_FAILED"

    # Caller-initiated
    CANCELLED = "CANCELLED"


def error_chain(error: Exception) -> list[Exception]:
    """Traverse __cause__ chain, return list from root to leaf.

    Args:
        error: The exception to traverse

    Returns:
        List of exceptions from root cause to the provided exception.
        If no cause chain exists, returns a list with just the error.
    """
    chain: list[Exception] = []
    current: Exception | None = error

    while current is not None:
        chain.append(current)
        cause = getattr(current, "__cause__", None)
        if cause is current or cause in chain:
            # Prevent infinite loops on self-referential causes
            break
        current = cause

    chain.reverse()
    return chain


def find_in_chain(error: Exception, error_type: type) -> Exception | None:
    """Find first error of given type in cause chain.

    Args:
        error: The exception to search from
        error_type: The type of exception to find

    Returns:
        The first exception of the given type (root first), or None if not found.
    """
    for exc in error_chain(error):
        if isinstance(exc, error_type):
            return exc
    return None


def classify_error(error: Exception) -> ErrorCode:
    """Map any exception to an ErrorCode for routing/alerting.

    Uses a combination of:
    - Explicit error_code attributes on Flowtrail exceptions
    - Name-based heuristics for unknown exceptions

    Args:
        error: The exception to classify

    Returns:
        The most appropriate ErrorCode for the exception.
    """
    if hasattr(error, "error_code"):
        return error.error_code  # type: ignore[no-any-return]

    for exc in error_chain(error):
        if hasattr(exc, "error_code"):
            return exc.error_code  # type: ignore[no-any-return]

    error_type = type(error).__name__.lower()

    if "timeout" in error_type or "timedout" in error_type:
        return ErrorCode.TIMEOUT

    if any(
        pattern in error_type
        for pattern in ["connection", "network", "socket", "dns", "http", "url"]
    ):
        return ErrorCode.NETWORK_ERROR

    if any(
        pattern in error_type
        for pattern in ["authentication", "authorization", "forbidden", "unauthorized"]
    ):
        return ErrorCode.AUTHENTICATION_FAILED

    if any(pattern in error_type for pattern in ["json", "encode", "serializ"]):
        return ErrorCode.SERIALIZATION_FAILED

    if any(pattern in error_type for pattern in ["validation", "invalid", "parse", "schema"]):
        return ErrorCode.VALIDATION_FAILED

    if any(pattern in error_type for pattern in ["config", "setting", "environment"]):
        return ErrorCode.CONFIGURATION_INVALID

    if "cancel" in error_type:
        return ErrorCode.CANCELLED

    return ErrorCode.UNKNOWN
