"""Command implementations for the flowtrail CLI."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from flowtrail.errors import ConfigurationError
from flowtrail.logging import get_logger, instance_logger
from flowtrail.recorder.config import ServiceConfig
from flowtrail.recorder.remote import RemoteStateRecorder

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2

_REQUIRED_KEYS = ("id", "flowID", "state", "status")


@dataclass
class DocumentInstance:
    """Flow instance rebuilt from a recorded envelope document."""

    flow_id: str
    step_id: int
    state: int
    status: int
    snapshot_data: Any = None
    change_tracker: Any = field(default_factory=dict)

    @classmethod
    def from_document(cls, document: dict[str, Any], data_key: str) -> DocumentInstance:
        missing = [key for key in (*_REQUIRED_KEYS, data_key) if key not in document]
        if missing:
            raise ValueError(f"Document is missing keys: {', '.join(missing)}")
        return cls(
            flow_id=str(document["flowID"]),
            step_id=int(document["id"]),
            state=int(document["state"]),
            status=int(document["status"]),
            snapshot_data=document.get("snapshotData"),
            change_tracker=document.get("stepData"),
        )

    def to_dict(self) -> Any:
        return self.snapshot_data


def build_config(
    host: str | None,
    port: str | None,
    timeout: float | None,
    retries: int | None,
) -> ServiceConfig:
    """Environment configuration overridden by command-line flags."""
    config = ServiceConfig.from_env()
    overrides = {
        "host": host,
        "port": port,
        "timeout": None if timeout is None else str(timeout),
        "retries": None if retries is None else str(retries),
    }
    config.settings.update({key: value for key, value in overrides.items() if value is not None})
    return config


def load_document(path: str) -> dict[str, Any]:
    """Read a JSON envelope document from a file, or stdin for '-'."""
    text = sys.stdin.read() if path == "-" else Path(path).read_text(encoding="utf-8")
    document = json.loads(text)
    if not isinstance(document, dict):
        raise ValueError("Document must be a JSON object")
    return document


def send(kind: str, path: str, config: ServiceConfig) -> int:
    """Send a snapshot or step document to the collector."""
    logger = get_logger("flowtrail.cli")
    data_key = "snapshotData" if kind == "snapshot" else "stepData"

    try:
        recorder = RemoteStateRecorder(config)
    except ConfigurationError as e:
        logger.error("invalid_configuration", error=str(e), setting=e.setting)
        return EXIT_CONFIG

    try:
        instance = DocumentInstance.from_document(load_document(path), data_key)
    except (OSError, ValueError) as e:
        logger.error("invalid_document", path=path, error=str(e))
        return EXIT_FAILED

    log = instance_logger(instance.flow_id).bind(step_id=instance.step_id, kind=kind)
    if kind == "snapshot":
        result = recorder.record_snapshot(instance)
    else:
        result = recorder.record_step(instance)

    if result.success:
        log.info("recorded", url=result.url, status_code=result.status_code, elapsed_ms=result.elapsed_ms)
        return EXIT_OK

    log.error(
        "record_failed",
        url=result.url,
        status_code=result.status_code,
        attempts=result.attempts,
        error=str(result.error),
    )
    return EXIT_FAILED


def check_config(config: ServiceConfig) -> int:
    """Resolve the configuration and print the collector URL."""
    try:
        recorder = RemoteStateRecorder(config)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG

    settings = recorder.settings
    print(f"Collector:      {recorder.host}")
    print(f"Enabled:        {recorder.enabled}")
    print(f"Timeout:        {settings.timeout}s")
    print(f"Retries:        {settings.retries}")
    print(f"Failure policy: {settings.failure_policy.value}")
    return EXIT_OK
