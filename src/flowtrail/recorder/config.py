"""
State recorder configuration.

A recorder is configured like any other engine service: a name, an enabled
flag and a flat string-to-string settings map. Settings are validated once,
at construction, and are immutable afterwards.

Settings:
    host (str): Collector hostname or URL (required)
    port (str): Collector port (required when host carries no port)
    timeout (str): Per-attempt timeout in seconds (default: 10)
    retries (str): Additional attempts on transient failure (default: 0)
    retryDelay (str): Base backoff delay in seconds (default: 0.5)
    failurePolicy (str): log, ignore or raise (default: log)
    type (str): remote, file, memory or noop (default: remote)
    path (str): Target file of the file recorder

Environment Variables:
    FLOWTRAIL_RECORDER_ENABLED: Enable the recorder (default: true)
    FLOWTRAIL_RECORDER_HOST: Collector host
    FLOWTRAIL_RECORDER_PORT: Collector port
    FLOWTRAIL_RECORDER_TIMEOUT: Per-attempt timeout in seconds
    FLOWTRAIL_RECORDER_RETRIES: Additional attempts on transient failure
    FLOWTRAIL_RECORDER_RETRY_DELAY: Base backoff delay in seconds
    FLOWTRAIL_RECORDER_FAILURE_POLICY: log, ignore or raise
    FLOWTRAIL_RECORDER_TYPE: remote, file, memory or noop
    FLOWTRAIL_RECORDER_PATH: Target file of the file recorder
"""

from __future__ import annotations

import logging
import math
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit, urlunsplit

from flowtrail.errors import ConfigurationError
from flowtrail.recorder.result import FailurePolicy

logger = logging.getLogger(__name__)

# Well-known service name the engine registers recorders under
SERVICE_STATE_RECORDER = "stateRecorder"

DEFAULT_TIMEOUT = 10.0
DEFAULT_RETRIES = 0
DEFAULT_RETRY_DELAY = 0.5

_ENV_SETTINGS = {
    "FLOWTRAIL_RECORDER_HOST": "host",
    "FLOWTRAIL_RECORDER_PORT": "port",
    "FLOWTRAIL_RECORDER_TIMEOUT": "timeout",
    "FLOWTRAIL_RECORDER_RETRIES": "retries",
    "FLOWTRAIL_RECORDER_RETRY_DELAY": "retryDelay",
    "FLOWTRAIL_RECORDER_FAILURE_POLICY": "failurePolicy",
    "FLOWTRAIL_RECORDER_TYPE": "type",
    "FLOWTRAIL_RECORDER_PATH": "path",
}


@dataclass
class ServiceConfig:
    """Configuration handed to a recorder at construction.

    Attributes:
        name: Service name used for registry integration
        enabled: Whether the engine should use this recorder at all
        settings: Flat string settings (see module docstring)
    """

    name: str = SERVICE_STATE_RECORDER
    enabled: bool = True
    settings: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ServiceConfig:
        """Create configuration from environment variables."""
        env = os.environ if environ is None else environ
        settings = {key: env[var] for var, key in _ENV_SETTINGS.items() if var in env}
        enabled = env.get("FLOWTRAIL_RECORDER_ENABLED", "true").strip().lower() in (
            "1",
            "true",
            "yes",
            "on",
        )
        return cls(name=SERVICE_STATE_RECORDER, enabled=enabled, settings=settings)


def default_config() -> ServiceConfig:
    """Default recorder configuration.

    The host is present but empty, so constructing a remote recorder from
    it fails until a real collector address is configured.
    """
    return ServiceConfig(name=SERVICE_STATE_RECORDER, enabled=True, settings={"host": ""})


@dataclass(frozen=True)
class RemoteRecorderSettings:
    """Validated settings of a RemoteStateRecorder.

    Attributes:
        host: Fully qualified collector base URL
        timeout: Per-attempt timeout in seconds
        retries: Additional attempts on transient failure
        retry_delay: Base backoff delay in seconds
        failure_policy: What to do when a record cannot be delivered
    """

    host: str
    timeout: float = DEFAULT_TIMEOUT
    retries: int = DEFAULT_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY
    failure_policy: FailurePolicy = FailurePolicy.LOG

    @classmethod
    def from_settings(cls, settings: Mapping[str, str]) -> RemoteRecorderSettings:
        """Validate a settings map.

        Raises:
            ConfigurationError: If a required setting is missing or invalid
        """
        host = resolve_host(settings)
        timeout = _parse_number(settings, "timeout", float, DEFAULT_TIMEOUT)
        if timeout <= 0:
            raise ConfigurationError(
                f"RemoteStateRecorder: setting 'timeout' must be positive, got {timeout}",
                setting="timeout",
            )
        retries = _parse_number(settings, "retries", int, DEFAULT_RETRIES)
        if retries < 0:
            raise ConfigurationError(
                f"RemoteStateRecorder: setting 'retries' must not be negative, got {retries}",
                setting="retries",
            )
        retry_delay = _parse_number(settings, "retryDelay", float, DEFAULT_RETRY_DELAY)
        if retry_delay < 0:
            raise ConfigurationError(
                f"RemoteStateRecorder: setting 'retryDelay' must not be negative, got {retry_delay}",
                setting="retryDelay",
            )
        try:
            policy = FailurePolicy.parse(settings.get("failurePolicy") or FailurePolicy.LOG)
        except ValueError as e:
            raise ConfigurationError(
                f"RemoteStateRecorder: {e}", setting="failurePolicy", cause=e
            ) from e

        return cls(
            host=host,
            timeout=timeout,
            retries=retries,
            retry_delay=retry_delay,
            failure_policy=policy,
        )


def resolve_host(settings: Mapping[str, str]) -> str:
    """Build the collector base URL from the ``host`` and ``port`` settings.

    Rules:
        - ``host`` must be present and non-empty.
        - A host without a scheme is served over ``http://``.
        - ``port`` is appended when the host carries no explicit port, and
          is required in that case for scheme-less hosts.
        - A host that already carries a port is used as-is; ``port`` is
          ignored.
        - The path of a URL host is preserved, trailing slashes dropped.

    Examples:
        {"host": "collector", "port": "9090"}         -> http://collector:9090
        {"host": "https://collector", "port": "443"}  -> https://collector:443
        {"host": "http://collector:9090"}             -> http://collector:9090
        {"host": "http://collector/api", "port": "80"} -> http://collector:80/api

    Raises:
        ConfigurationError: If host is missing/empty or the URL is unusable
    """
    if "host" not in settings or settings["host"] is None:
        raise ConfigurationError("RemoteStateRecorder: required setting 'host' not set", setting="host")

    host = settings["host"].strip()
    if not host:
        raise ConfigurationError("RemoteStateRecorder: required setting 'host' is empty", setting="host")

    port = (settings.get("port") or "").strip()
    if port and not port.isdigit():
        raise ConfigurationError(
            f"RemoteStateRecorder: setting 'port' must be numeric, got '{port}'", setting="port"
        )

    has_scheme = "://" in host
    url = host if has_scheme else f"http://{host}"
    parts = urlsplit(url)

    if parts.scheme not in ("http", "https"):
        raise ConfigurationError(
            f"RemoteStateRecorder: unsupported scheme '{parts.scheme}' in host '{host}'", setting="host"
        )
    if not parts.hostname:
        raise ConfigurationError(f"RemoteStateRecorder: cannot parse host '{host}'", setting="host")

    try:
        explicit_port = parts.port
    except ValueError as e:
        raise ConfigurationError(
            f"RemoteStateRecorder: invalid port in host '{host}'", setting="host", cause=e
        ) from e

    if explicit_port is not None:
        if port and port != str(explicit_port):
            logger.warning(
                "RemoteStateRecorder: host '%s' already has port %s, ignoring port setting %s",
                host,
                explicit_port,
                port,
            )
    elif port:
        url = urlunsplit((parts.scheme, f"{parts.netloc}:{port}", parts.path, parts.query, parts.fragment))
    elif not has_scheme:
        raise ConfigurationError(
            f"RemoteStateRecorder: setting 'port' is required for host '{host}'", setting="port"
        )

    return url.rstrip("/")


def _parse_number(settings: Mapping[str, str], key: str, kind: type, default: float) -> Any:
    raw = settings.get(key)
    if raw is None or str(raw).strip() == "":
        return kind(default)
    try:
        value = kind(str(raw).strip())
    except ValueError as e:
        raise ConfigurationError(
            f"RemoteStateRecorder: setting '{key}' must be {kind.__name__}, got '{raw}'",
            setting=key,
            cause=e,
        ) from e
    if isinstance(value, float) and not math.isfinite(value):
        raise ConfigurationError(
            f"RemoteStateRecorder: setting '{key}' must be a finite number, got '{raw}'",
            setting=key,
        )
    return value
