"""
Factory functions for creating state recorders.

Selects the recorder implementation from the service configuration:

    enabled = False          -> NoOpStateRecorder
    settings["type"] remote  -> RemoteStateRecorder (default)
    settings["type"] file    -> FileStateRecorder
    settings["type"] memory  -> InMemoryStateRecorder
    settings["type"] noop    -> NoOpStateRecorder
"""

from __future__ import annotations

import logging

from flowtrail.errors import ConfigurationError
from flowtrail.recorder.config import ServiceConfig
from flowtrail.recorder.file import FileStateRecorder
from flowtrail.recorder.interface import StateRecorder
from flowtrail.recorder.memory import InMemoryStateRecorder
from flowtrail.recorder.noop import NoOpStateRecorder
from flowtrail.recorder.remote import RemoteStateRecorder

logger = logging.getLogger(__name__)

RECORDER_TYPES = frozenset({"remote", "file", "memory", "noop"})


def detect_recorder_type(config: ServiceConfig) -> str:
    """
    Determine which recorder a configuration asks for.

    Examples:
        >>> detect_recorder_type(ServiceConfig(settings={"host": "collector"}))
        'remote'
        >>> detect_recorder_type(ServiceConfig(settings={"type": "File", "path": "x"}))
        'file'

    Raises:
        ConfigurationError: If the ``type`` setting is unknown
    """
    recorder_type = (config.settings.get("type") or "remote").strip().lower()
    if recorder_type not in RECORDER_TYPES:
        raise ConfigurationError(
            f"Unknown recorder type '{recorder_type}', expected one of: {', '.join(sorted(RECORDER_TYPES))}",
            setting="type",
        )
    return recorder_type


def create_state_recorder(
    config: ServiceConfig | None = None,
    fallback: StateRecorder | None = None,
) -> StateRecorder:
    """
    Create the state recorder described by a service configuration.

    A disabled configuration yields a NoOpStateRecorder that reports
    ``enabled == False``. An invalid configuration raises
    ConfigurationError, unless ``fallback`` is given: then the error is
    logged and the fallback is returned instead.

    Args:
        config: Recorder configuration (default: from environment)
        fallback: Recorder to use when the configuration is invalid

    Returns:
        A ready-to-use StateRecorder

    Examples:
        # Remote collector
        recorder = create_state_recorder(
            ServiceConfig(settings={"host": "collector", "port": "9090"})
        )

        # Never let recording configuration stop the engine
        recorder = create_state_recorder(config, fallback=NoOpStateRecorder())
    """
    config = config or ServiceConfig.from_env()

    if not config.enabled:
        logger.info("State recorder '%s' disabled", config.name)
        return NoOpStateRecorder(name=config.name, enabled=False)

    try:
        recorder_type = detect_recorder_type(config)
        if recorder_type == "file":
            return FileStateRecorder.from_config(config)
        if recorder_type == "memory":
            return InMemoryStateRecorder(name=config.name, enabled=config.enabled)
        if recorder_type == "noop":
            return NoOpStateRecorder(name=config.name, enabled=config.enabled)
        return RemoteStateRecorder(config)
    except ConfigurationError as e:
        if fallback is None:
            raise
        logger.error("State recorder '%s' misconfigured, using %r: %s", config.name, fallback, e)
        return fallback
