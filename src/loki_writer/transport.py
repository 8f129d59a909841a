from __future__ import annotations

import logging
import threading
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

import httpx

from loki_writer.encoding import CONTENT_TYPE, encode_push_request
from loki_writer.errors import ProtocolError, TransportError

if TYPE_CHECKING:
    from loki_writer.models import Entry, LokiConfig

logger = logging.getLogger(__name__)

PUSH_PATH = "/api/prom/push"
MAX_ERROR_BODY = 1024


def push_url(endpoint: str) -> str:
    """Return ``endpoint`` with the push path appended unless already there."""
    try:
        url = httpx.URL(endpoint)
    except httpx.InvalidURL as exc:
        raise ValueError(f"invalid endpoint {endpoint!r}: {exc}") from exc

    if url.scheme not in ("http", "https") or not url.host:
        raise ValueError(f"invalid endpoint {endpoint!r}: need an http(s) URL")

    if PUSH_PATH in url.path:
        return str(url)
    return str(url.copy_with(path=url.path.rstrip("/") + PUSH_PATH))


class LokiTransport:
    """POSTs encoded batches to Loki, one attempt per batch.

    Every counter is in log entries:
        sent_count   — delivered.
        error_count  — rejected, server responded outside 2xx.
        drop_count   — lost on the network, no response arrived.

    Each request is bounded by ``config.timeout`` measured from its start.
    """

    def __init__(self, config: LokiConfig) -> None:
        self._config = config
        self._url = push_url(config.endpoint)
        self._client = httpx.Client(timeout=config.timeout)
        self._lock = threading.Lock()
        self._sent_count: int = 0
        self._error_count: int = 0
        self._drop_count: int = 0

    @property
    def url(self) -> str:
        return self._url

    @property
    def stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "sent_count": self._sent_count,
                "error_count": self._error_count,
                "drop_count": self._drop_count,
            }

    def send(self, entries: Sequence[Entry], labels: str) -> None:
        """Encode and POST one batch. Raises on any failure."""
        body = encode_push_request(entries, labels)
        try:
            self._post(body)
        except TransportError:
            with self._lock:
                self._drop_count += len(entries)
            raise
        except ProtocolError:
            with self._lock:
                self._error_count += len(entries)
            raise
        with self._lock:
            self._sent_count += len(entries)

    def close(self) -> None:
        self._client.close()

    def _post(self, body: bytes) -> None:
        deadline = time.monotonic() + self._config.timeout
        request = self._client.build_request(
            "POST",
            self._url,
            content=body,
            headers={"Content-Type": CONTENT_TYPE},
        )
        try:
            resp = self._client.send(request, stream=True)
        except httpx.HTTPError as exc:
            raise TransportError(str(exc) or type(exc).__name__) from exc

        try:
            if resp.is_success:
                return
            prefix = _read_prefix(resp, MAX_ERROR_BODY, deadline)
        finally:
            resp.close()

        lines = prefix.decode("utf-8", errors="replace").splitlines()
        raise ProtocolError(
            resp.status_code, resp.reason_phrase, lines[0] if lines else "",
        )


def _read_prefix(resp: httpx.Response, limit: int, deadline: float) -> bytes:
    """Read at most ``limit`` body bytes, giving up once ``deadline`` passes.

    httpx fixes the per-read timeout when the body stream opens, so no
    single read outlasts the time that was left when the request began.
    """
    buf = bytearray()
    try:
        for chunk in resp.iter_bytes():
            buf.extend(chunk)
            if len(buf) >= limit:
                break
            if time.monotonic() >= deadline:
                logger.debug(
                    "error body from %s cut at %d bytes: deadline passed",
                    resp.url, len(buf),
                )
                break
    except httpx.HTTPError as exc:
        logger.debug("reading error body from %s failed: %s", resp.url, exc)
    return bytes(buf[:limit])
