"""Errors worth another attempt."""

from __future__ import annotations

from flowtrail.error_codes import ErrorCode
from flowtrail.errors.base import FlowtrailError


class TransientError(FlowtrailError):
    """A temporary condition: the same record may go through on retry.

    The remote recorder retries these with backoff when ``retries`` > 0.
    Local sinks raise it for I/O failures.
    """

    code = 101
    default_error_code = ErrorCode.NETWORK_ERROR


class TransportError(TransientError):
    """The request to the collector could not be completed.

    Raised for DNS failures, refused or reset connections and socket errors.
    """

    code = 110

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.url = url


class RecordingTimeoutError(TransportError):
    """The collector did not answer within the configured timeout."""

    code = 111
    default_error_code = ErrorCode.TIMEOUT

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        timeout: float | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, url=url, cause=cause)
        self.timeout = timeout
