"""
RecordResult - outcome of a single recording call.

Recording is observability, not execution: a failed record is reported to
the caller as a value and, depending on the FailurePolicy, logged or
raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FailurePolicy(Enum):
    """What a recorder does when a record cannot be delivered."""

    # Log at WARNING and return a failed result
    LOG = "log"

    # Return a failed result, log at DEBUG only
    IGNORE = "ignore"

    # Raise the error to the caller (guaranteed-delivery integrations)
    RAISE = "raise"

    @classmethod
    def parse(cls, value: str | FailurePolicy) -> FailurePolicy:
        """Parse a policy from its setting value (case-insensitive)."""
        if isinstance(value, FailurePolicy):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            allowed = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown failure policy '{value}', expected one of: {allowed}") from None


@dataclass(frozen=True)
class RecordResult:
    """
    Result of a recording call.

    Attributes:
        success: True when the record was accepted
        url: Endpoint the record was sent to (empty for local sinks)
        status_code: HTTP status of the last attempt, if any
        error: Error that prevented delivery
        elapsed_ms: Time spent in the call, retries included
        attempts: Number of transport attempts made
    """

    success: bool
    url: str = ""
    status_code: int | None = None
    error: Exception | None = None
    elapsed_ms: int = 0
    attempts: int = 0

    @classmethod
    def ok(
        cls,
        url: str = "",
        status_code: int | None = None,
        elapsed_ms: int = 0,
        attempts: int = 1,
    ) -> RecordResult:
        """Create a successful result."""
        return cls(
            success=True,
            url=url,
            status_code=status_code,
            elapsed_ms=elapsed_ms,
            attempts=attempts,
        )

    @classmethod
    def failed(
        cls,
        error: Exception,
        url: str = "",
        status_code: int | None = None,
        elapsed_ms: int = 0,
        attempts: int = 1,
    ) -> RecordResult:
        """Create a failed result carrying the delivery error."""
        return cls(
            success=False,
            url=url,
            status_code=status_code,
            error=error,
            elapsed_ms=elapsed_ms,
            attempts=attempts,
        )

    def __bool__(self) -> bool:
        return self.success
