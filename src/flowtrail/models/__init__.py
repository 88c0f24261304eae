"""Flow instance models consumed by state recorders."""

from flowtrail.models.instance import ChangeTracker, FlowInstance, RecordableInstance
from flowtrail.models.status import FlowStatus

__all__ = [
    "ChangeTracker",
    "FlowInstance",
    "FlowStatus",
    "RecordableInstance",
]
