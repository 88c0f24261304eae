"""Errors reported by the collector side of a recording call."""

from __future__ import annotations

from flowtrail.error_codes import ErrorCode
from flowtrail.errors.base import FlowtrailError

# Collector statuses worth another attempt
RETRYABLE_STATUS_CODES = frozenset({429, 502, 503, 504})


class RemoteRejectionError(FlowtrailError):
    """The collector answered with a status code >= 300.

    Attributes:
        status_code: HTTP status returned by the collector
        body: Response body (already truncated for reporting)
        url: Endpoint that rejected the record
    """

    code = 120
    default_error_code = ErrorCode.REMOTE_REJECTED

    def __init__(
        self,
        status_code: int,
        *,
        body: str = "",
        url: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        message = f"Collector rejected record with HTTP {status_code}"
        if url:
            message = f"{message} at {url}"
        super().__init__(message, cause=cause)
        self.status_code = status_code
        self.body = body
        self.url = url

    @property
    def is_retryable(self) -> bool:
        """True when the status indicates a temporary collector condition."""
        return self.status_code in RETRYABLE_STATUS_CODES

    @property
    def error_code(self) -> ErrorCode:
        if self._error_code is not None:
            return self._error_code
        if self.status_code in (401, 403):
            return ErrorCode.AUTHENTICATION_FAILED
        if self.is_retryable:
            return ErrorCode.NETWORK_ERROR
        return self.default_error_code


class RecordingCancelledError(FlowtrailError):
    """The caller signalled cancellation before the record was delivered."""

    code = 121
    default_error_code = ErrorCode.CANCELLED
