"""
Flow instance boundary consumed by state recorders.

Recorders never drive a flow; they read a handful of attributes from
whatever instance the engine hands them. ``RecordableInstance`` names that
surface. ``FlowInstance`` and ``ChangeTracker`` are a minimal concrete pair
for engines without their own instance type, for tooling and for tests.

Usage:
    instance = FlowInstance(flow_id="flow-123", flow_uri="res://flow:order")
    instance.change_tracker.track("attr", "total", 42)
    instance.advance_step()
    recorder.record_step(instance)
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from flowtrail.models.status import FlowStatus


@runtime_checkable
class RecordableInstance(Protocol):
    """What a recorder reads from a flow instance.

    Attributes:
        flow_id: Identity of the running instance
        step_id: Current step counter, advanced once per recorded step
        state: Structural/version code of the flow definition in use
        status: Lifecycle status, anything ``int()`` accepts
        change_tracker: Opaque, serializable delta for the current step
    """

    @property
    def flow_id(self) -> str: ...

    @property
    def step_id(self) -> int: ...

    @property
    def state(self) -> int: ...

    @property
    def status(self) -> Any: ...

    @property
    def change_tracker(self) -> Any: ...


@dataclass
class ChangeTracker:
    """Accumulates the changes produced by the current step.

    Entries are stored as plain dicts and shipped as-is; their shape is
    owned by the engine.
    """

    changes: list[dict[str, Any]] = field(default_factory=list)

    def track(self, kind: str, target: str, value: Any = None) -> None:
        """Append a change entry for the current step."""
        self.changes.append({"kind": kind, "target": target, "value": value})

    def reset(self) -> None:
        """Drop all entries, typically after the step was recorded."""
        self.changes = []

    def __len__(self) -> int:
        return len(self.changes)

    def to_dict(self) -> dict[str, Any]:
        return {"changes": [dict(entry) for entry in self.changes]}


@dataclass
class FlowInstance:
    """A running execution of a flow definition.

    Attributes:
        flow_id: Unique instance identifier
        flow_uri: Reference to the flow definition being executed
        state: Structural/version code of the definition in use
        status: Lifecycle status
        step_id: Step counter
        attrs: Instance-level attributes (flow variables)
        change_tracker: Delta for the step in progress
        created_at: Epoch milliseconds when the instance was created
    """

    flow_id: str
    flow_uri: str = ""
    state: int = 0
    status: FlowStatus = FlowStatus.NOT_STARTED
    step_id: int = 0
    attrs: dict[str, Any] = field(default_factory=dict)
    change_tracker: ChangeTracker = field(default_factory=ChangeTracker)
    created_at: int = field(default_factory=lambda: int(time.time() * 1000))

    def advance_step(self) -> int:
        """Move to the next step and return the new step id."""
        self.step_id += 1
        return self.step_id

    def set_attr(self, name: str, value: Any) -> None:
        """Set an instance attribute and track the change."""
        self.attrs[name] = value
        self.change_tracker.track("attr", name, value)

    def to_dict(self) -> dict[str, Any]:
        """Serializable form shipped as ``snapshotData``.

        The change tracker is left out: snapshots are self-contained and
        steps carry the delta separately.
        """
        return {
            "id": self.flow_id,
            "flowUri": self.flow_uri,
            "state": self.state,
            "status": int(self.status),
            "stepId": self.step_id,
            "attrs": dict(self.attrs),
            "createdAt": self.created_at,
        }
