"""
RemoteStateRecorder - ships instance history to an HTTP collector.

Each call builds a fresh request envelope from the instance, encodes it as
JSON and POSTs it to the collector:

    snapshot -> POST <host>/instances/snapshot
    step     -> POST <host>/instances/steps

Any status below 300 is success; the response body is ignored. Delivery
failures never escape into flow execution unless the failure policy is
``raise``. Configuration problems, on the other hand, fail construction.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from datetime import timedelta
from typing import TYPE_CHECKING

from resilient_circuit import ExponentialDelay, RetryWithBackoffPolicy
from resilient_circuit.exceptions import RetryLimitReached

from flowtrail.errors import (
    FlowtrailError,
    RecordingCancelledError,
    RemoteRejectionError,
    TransportError,
    is_transient,
)
from flowtrail.recorder.config import SERVICE_STATE_RECORDER, RemoteRecorderSettings, ServiceConfig
from flowtrail.recorder.interface import StateRecorder
from flowtrail.recorder.requests import RecordRequest, SnapshotRequest, StepRequest
from flowtrail.recorder.result import RecordResult
from flowtrail.recorder.transport import TransportResponse, post_json

if TYPE_CHECKING:
    from flowtrail.models.instance import RecordableInstance

logger = logging.getLogger(__name__)


class RemoteStateRecorder(StateRecorder):
    """
    StateRecorder that POSTs snapshots and steps to a remote collector.

    The collector URL and delivery settings are fixed at construction; the
    recorder keeps no other state, so one instance can serve concurrent
    flows. Calls block for the round trip, bounded by ``timeout`` per
    attempt.

    Example:
        config = ServiceConfig(settings={"host": "collector", "port": "9090"})
        recorder = RemoteStateRecorder(config)
        # recorder.host == "http://collector:9090"

        result = recorder.record_snapshot(instance)
        if not result:
            metrics.increment("recorder.failures")

    Raises:
        ConfigurationError: If ``host`` is missing or a setting is invalid
    """

    def __init__(self, config: ServiceConfig) -> None:
        super().__init__(name=config.name or SERVICE_STATE_RECORDER, enabled=config.enabled)
        self._settings = RemoteRecorderSettings.from_settings(config.settings)

        logger.debug("RemoteStateRecorder: collector = %s", self._settings.host)

    @property
    def host(self) -> str:
        """Collector base URL."""
        return self._settings.host

    @property
    def settings(self) -> RemoteRecorderSettings:
        return self._settings

    def record_snapshot(
        self,
        instance: RecordableInstance,
        cancel: threading.Event | None = None,
    ) -> RecordResult:
        """POST a full snapshot of the instance to ``<host>/instances/snapshot``."""
        return self._record(SnapshotRequest.from_instance(instance), cancel)

    def record_step(
        self,
        instance: RecordableInstance,
        cancel: threading.Event | None = None,
    ) -> RecordResult:
        """POST the instance's change tracker to ``<host>/instances/steps``."""
        return self._record(StepRequest.from_instance(instance), cancel)

    def _record(self, request: RecordRequest, cancel: threading.Event | None) -> RecordResult:
        url = self._settings.host + request.path
        start_time = time.monotonic()
        attempts = 0

        def attempt() -> TransportResponse:
            nonlocal attempts
            if cancel is not None and cancel.is_set():
                raise RecordingCancelledError(f"Recording to {url} cancelled before attempt")
            attempts += 1
            return post_json(url, payload, self._settings.timeout, cancel)

        try:
            payload = request.to_json()
            logger.debug("POST %s: %s", url, payload.decode("utf-8"))
            response = self._send(attempt, url)
        except FlowtrailError as e:
            elapsed_ms = int((time.monotonic() - start_time) * 1000)
            result = RecordResult.failed(
                e,
                url=url,
                status_code=e.status_code if isinstance(e, RemoteRejectionError) else None,
                elapsed_ms=elapsed_ms,
                attempts=attempts,
            )
            return self._report_failure(self._settings.failure_policy, request, result)

        elapsed_ms = int((time.monotonic() - start_time) * 1000)
        logger.debug(
            "Recorded %s for flow %s step %d in %dms (HTTP %d)",
            request.kind,
            request.flow_id,
            request.id,
            elapsed_ms,
            response.status_code,
        )
        return RecordResult.ok(
            url=url,
            status_code=response.status_code,
            elapsed_ms=elapsed_ms,
            attempts=attempts,
        )

    def _send(self, attempt: Callable[[], TransportResponse], url: str) -> TransportResponse:
        """Deliver the payload, retrying transient failures when configured."""
        retries = self._settings.retries
        if retries <= 0:
            return attempt()

        retry_delay = self._settings.retry_delay
        backoff = ExponentialDelay(
            min_delay=timedelta(seconds=retry_delay),
            max_delay=timedelta(seconds=retry_delay * 10),
            factor=2,
            jitter=0.1,
        )
        retry_policy = RetryWithBackoffPolicy(
            max_retries=retries,
            backoff=backoff,
            should_handle=is_transient,
        )

        try:
            return retry_policy(attempt)()
        except RetryLimitReached as e:
            cause = e.__cause__
            if isinstance(cause, FlowtrailError):
                raise cause
            raise TransportError(
                f"Giving up on collector at {url} after {retries} retries", url=url, cause=e
            ) from e
