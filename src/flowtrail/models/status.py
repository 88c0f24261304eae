"""
FlowStatus enum.

Lifecycle status codes reported by a flow instance. The recorder treats the
value as opaque and only ever ships ``int(status)``; the named members exist
so engines and tests can speak about the common codes.
"""

from enum import IntEnum


class FlowStatus(IntEnum):
    """Lifecycle status of a flow instance."""

    # The instance has been created but no step has run
    NOT_STARTED = 0

    # Steps are being executed
    ACTIVE = 100

    # The flow reached its end
    COMPLETED = 500

    # The instance was cancelled by an operator or parent flow
    CANCELLED = 600

    # A step failed and the flow cannot proceed
    FAILED = 700

    @property
    def is_complete(self) -> bool:
        """True once the instance will not run further steps."""
        return self in _TERMINAL_STATUSES

    def __str__(self) -> str:
        return self.name


_TERMINAL_STATUSES: frozenset[FlowStatus] = frozenset(
    {
        FlowStatus.COMPLETED,
        FlowStatus.CANCELLED,
        FlowStatus.FAILED,
    }
)
