from __future__ import annotations

import threading
from collections.abc import Callable, Sequence

import httpx

from loki_writer.errors import ProtocolError
from loki_writer.models import Entry, LokiConfig


def make_config(**overrides: object) -> LokiConfig:
    """Shared config factory with sensible test defaults."""
    defaults: dict[str, object] = {
        "endpoint": "http://loki:3100",
        "labels": {"app": "testapp", "env": "test"},
        "max_batch_age": 60.0,
        "max_batch_count": 100,
        "queue_size": 100,
        "check_json": False,
    }
    defaults.update(overrides)
    return LokiConfig(**defaults)  # type: ignore[arg-type]


def make_entry(line: str = "hello", ts: int = 1) -> Entry:
    """Shared Entry factory."""
    return Entry(line=line, timestamp_ns=ts)


def mock_client(
    handler: Callable[[httpx.Request], httpx.Response],
) -> httpx.Client:
    """httpx client whose requests are answered by ``handler``."""
    return httpx.Client(transport=httpx.MockTransport(handler))


class FakeTransport:
    """In-memory transport that records batches for test assertions."""

    def __init__(self, *, fail_until: int = 0) -> None:
        self.batches: list[list[Entry]] = []
        self.labels: list[str] = []
        self.calls = 0
        self.closed: bool = False
        self.sent = threading.Event()
        self._fail_until = fail_until

    @property
    def stats(self) -> dict[str, int]:
        return {
            "sent_count": sum(len(b) for b in self.batches),
            "error_count": min(self.calls, self._fail_until),
            "drop_count": 0,
        }

    def send(self, entries: Sequence[Entry], labels: str) -> None:
        self.calls += 1
        try:
            if self.calls <= self._fail_until:
                raise ProtocolError(500, "Internal Server Error", "boom")
            self.batches.append(list(entries))
            self.labels.append(labels)
        finally:
            self.sent.set()

    def close(self) -> None:
        self.closed = True
