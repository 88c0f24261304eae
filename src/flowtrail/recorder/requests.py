"""
Request envelopes shipped to the state collector.

Both envelopes are built fresh for every recording call, encoded to JSON
and discarded. ``id`` is always the step id the instance reports at the
moment of the call; recorders never keep their own step counter.

Wire shapes:
    POST /instances/snapshot
        {"id": 3, "flowID": "...", "state": 1, "status": 100, "snapshotData": {...}}
    POST /instances/steps
        {"id": 3, "flowID": "...", "state": 1, "status": 100, "stepData": {...}}
"""

from __future__ import annotations

import base64
import dataclasses
import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from flowtrail.errors import SerializationError

if TYPE_CHECKING:
    from flowtrail.models.instance import RecordableInstance

SNAPSHOT_PATH = "/instances/snapshot"
STEPS_PATH = "/instances/steps"


def encode_payload(value: Any, _active: set[int] | None = None) -> Any:
    """Convert a payload object into JSON-compatible primitives.

    Objects exposing ``to_dict()`` are encoded through it, dataclasses field
    by field, enums by value, dates as ISO-8601 strings and bytes as base64.
    Values json cannot represent are returned unchanged so that
    ``json.dumps`` reports them.

    Raises:
        ValueError: If the payload refers to itself
    """
    if isinstance(value, Enum):
        return encode_payload(value.value, _active)
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")

    # Containers and objects: guard against cycles along the current path
    active = set() if _active is None else _active
    if id(value) in active:
        raise ValueError(f"Circular reference detected at {type(value).__name__}")
    active.add(id(value))
    try:
        to_dict = getattr(value, "to_dict", None)
        if callable(to_dict):
            return encode_payload(to_dict(), active)
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return {f.name: encode_payload(getattr(value, f.name), active) for f in dataclasses.fields(value)}
        if isinstance(value, Mapping):
            return {str(k): encode_payload(v, active) for k, v in value.items()}
        if isinstance(value, (list, tuple, set, frozenset)):
            return [encode_payload(v, active) for v in value]
        return value
    finally:
        active.discard(id(value))


@dataclass(frozen=True)
class SnapshotRequest:
    """Full, self-contained copy of an instance at the time of the call.

    Attributes:
        id: Step id reported by the instance
        flow_id: Instance identity
        state: Structural/version code
        status: Lifecycle status code
        snapshot_data: The instance itself, encoded recursively on send
    """

    id: int
    flow_id: str
    state: int
    status: int
    snapshot_data: Any

    path = SNAPSHOT_PATH
    kind = "snapshot"

    @classmethod
    def from_instance(cls, instance: RecordableInstance) -> SnapshotRequest:
        return cls(
            id=int(instance.step_id),
            flow_id=str(instance.flow_id),
            state=int(instance.state),
            status=int(instance.status),
            snapshot_data=instance,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "flowID": self.flow_id,
            "state": self.state,
            "status": self.status,
            "snapshotData": encode_payload(self.snapshot_data),
        }

    def to_json(self) -> bytes:
        return _dump(self.to_dict, self.kind)


@dataclass(frozen=True)
class StepRequest:
    """Incremental delta for the step just completed.

    Attributes:
        id: Step id reported by the instance
        flow_id: Instance identity
        state: Structural/version code
        status: Lifecycle status code
        step_data: The instance's change tracker, passed through opaquely
    """

    id: int
    flow_id: str
    state: int
    status: int
    step_data: Any

    path = STEPS_PATH
    kind = "step"

    @classmethod
    def from_instance(cls, instance: RecordableInstance) -> StepRequest:
        return cls(
            id=int(instance.step_id),
            flow_id=str(instance.flow_id),
            state=int(instance.state),
            status=int(instance.status),
            step_data=instance.change_tracker,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "flowID": self.flow_id,
            "state": self.state,
            "status": self.status,
            "stepData": encode_payload(self.step_data),
        }

    def to_json(self) -> bytes:
        return _dump(self.to_dict, self.kind)


RecordRequest = SnapshotRequest | StepRequest


def _dump(build: Callable[[], dict[str, Any]], kind: str) -> bytes:
    try:
        return json.dumps(build(), separators=(",", ":"), allow_nan=False).encode("utf-8")
    except (TypeError, ValueError, RecursionError) as e:
        raise SerializationError(f"Cannot encode {kind} request as JSON: {e}", cause=e) from e
