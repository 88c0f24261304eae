"""
HTTP transport for remote state recording.

One blocking POST per attempt using Python's stdlib urllib, with an explicit
timeout. Failures are mapped onto the Flowtrail error hierarchy:

- collector answered >= 300          -> RemoteRejectionError
- collector did not answer in time   -> RecordingTimeoutError
- connection/DNS/socket failure      -> TransportError
- caller cancelled the call          -> RecordingCancelledError

Redirects are not followed: a POST silently turned into a GET would drop
the record.
"""

from __future__ import annotations

import http.client
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from urllib.error import HTTPError, URLError
from urllib.request import HTTPRedirectHandler, Request, build_opener

from flowtrail.errors import (
    RecordingCancelledError,
    RecordingTimeoutError,
    RemoteRejectionError,
    TransportError,
    truncate_error,
)

logger = logging.getLogger(__name__)

# Response bodies are only read for error reporting
MAX_BODY_BYTES = 64 * 1024
CANCEL_POLL_INTERVAL = 0.05

JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


@dataclass(frozen=True)
class TransportResponse:
    """Status line and (truncated) body of a collector response."""

    status_code: int
    body: str = ""


class _NoRedirectHandler(HTTPRedirectHandler):
    """Surfaces 3xx responses as HTTPError instead of following them."""

    def redirect_request(self, req, fp, code, msg, headers, newurl):  # type: ignore[no-untyped-def]
        return None


def post_json(
    url: str,
    payload: bytes,
    timeout: float,
    cancel: threading.Event | None = None,
) -> TransportResponse:
    """POST a JSON payload and return the collector's response.

    Args:
        url: Full endpoint URL
        payload: Encoded JSON body
        timeout: Socket timeout in seconds
        cancel: Optional event; when set the call is abandoned

    Returns:
        TransportResponse for a status code below 300

    Raises:
        RemoteRejectionError: Collector answered with status >= 300
        RecordingTimeoutError: No answer within ``timeout``
        TransportError: The request could not be completed
        RecordingCancelledError: ``cancel`` was set before completion
    """
    if cancel is None:
        return _post(url, payload, timeout)

    if cancel.is_set():
        raise RecordingCancelledError(f"Recording to {url} cancelled before sending")
    return _post_cancellable(url, payload, timeout, cancel)


def _post(url: str, payload: bytes, timeout: float) -> TransportResponse:
    request = Request(url, data=payload, method="POST", headers=JSON_HEADERS)
    opener = build_opener(_NoRedirectHandler())

    try:
        with opener.open(request, timeout=timeout) as response:
            status_code = response.status
            body = _read_body(response)
    except HTTPError as e:
        body = _read_body(e)
        e.close()
        raise RemoteRejectionError(e.code, body=truncate_error(body), url=url, cause=e) from e
    except TimeoutError as e:
        raise RecordingTimeoutError(
            f"Collector at {url} did not answer within {timeout}s", url=url, timeout=timeout, cause=e
        ) from e
    except URLError as e:
        if isinstance(e.reason, TimeoutError):
            raise RecordingTimeoutError(
                f"Collector at {url} did not answer within {timeout}s",
                url=url,
                timeout=timeout,
                cause=e,
            ) from e
        raise TransportError(f"Cannot reach collector at {url}: {e.reason}", url=url, cause=e) from e
    except (http.client.HTTPException, OSError) as e:
        raise TransportError(f"Request to collector at {url} failed: {e}", url=url, cause=e) from e

    if status_code >= 300:
        raise RemoteRejectionError(status_code, body=truncate_error(body), url=url)

    logger.debug("Collector response status: %s", status_code)
    return TransportResponse(status_code=status_code, body=body)


def _post_cancellable(
    url: str,
    payload: bytes,
    timeout: float,
    cancel: threading.Event,
) -> TransportResponse:
    """Run the blocking POST on a worker thread so the caller can walk away.

    An abandoned request keeps running on its worker until the socket
    timeout fires; its outcome is discarded.
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="flowtrail-record")
    try:
        future = executor.submit(_post, url, payload, timeout)
        while True:
            done, _ = wait([future], timeout=CANCEL_POLL_INTERVAL)
            if done:
                return future.result()
            if cancel.is_set():
                future.cancel()
                logger.debug("Recording to %s abandoned on cancellation", url)
                raise RecordingCancelledError(f"Recording to {url} cancelled in flight")
    finally:
        executor.shutdown(wait=False)


def _read_body(response: http.client.HTTPResponse | HTTPError) -> str:
    try:
        raw = response.read(MAX_BODY_BYTES)
    except (OSError, AttributeError, http.client.HTTPException):
        return ""
    if not raw:
        return ""
    return raw.decode("utf-8", errors="replace")
