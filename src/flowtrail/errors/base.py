"""Root of the Flowtrail error hierarchy.

``FlowtrailBaseException`` always propagates. ``FlowtrailError`` and its
subclasses are what recorders catch and hand to the failure policy.

Every class carries a numeric ``code`` and a semantic ``default_error_code``;
an instance may override the latter through the ``error_code`` argument.
"""

from __future__ import annotations

from typing import ClassVar

from flowtrail.error_codes import ErrorCode


class FlowtrailBaseException(Exception):  # noqa: N818 - intentional base exception name
    """Base exception for all Flowtrail errors.

    Attributes:
        code: Numeric error code for programmatic handling
        cause: Exception that led to this one, if any
    """

    code: ClassVar[int] = 0
    default_error_code: ClassVar[ErrorCode] = ErrorCode.UNKNOWN

    def __init__(
        self,
        message: str,
        *,
        cause: Exception | None = None,
        error_code: ErrorCode | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self._error_code = error_code

    @property
    def error_code(self) -> ErrorCode:
        """Semantic code used by ``classify_error`` and log routing."""
        return self._error_code or self.default_error_code

    def __str__(self) -> str:
        text = f"{self.message} (code={self.code})" if self.code else self.message
        if self.cause is not None:
            text = f"{text} caused by: {self.cause}"
        return text


class FlowtrailError(FlowtrailBaseException):
    """Error a recorder reports as a failed record instead of crashing."""

    code = 100
    default_error_code = ErrorCode.SYSTEM_ERROR
