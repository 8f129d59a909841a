from __future__ import annotations

import dataclasses
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class LokiConfig:
    endpoint: str
    labels: dict[str, str] = field(default_factory=dict)
    max_batch_age: float = 30.0
    max_batch_count: int = 5
    queue_size: int = 5
    check_json: bool = True
    timeout: float = 10.0
    enqueue_timeout: float | None = None

    def __post_init__(self) -> None:
        if not self.endpoint:
            raise ValueError("endpoint must not be empty")
        if not self.labels:
            raise ValueError("labels must be set")
        if self.max_batch_age <= 0:
            raise ValueError("max_batch_age must be > 0")
        if self.max_batch_count < 1:
            raise ValueError("max_batch_count must be >= 1")
        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        if self.enqueue_timeout is not None and self.enqueue_timeout <= 0:
            raise ValueError("enqueue_timeout must be > 0 or None")

    def replace(self, **overrides: object) -> LokiConfig:
        return dataclasses.replace(self, **overrides)  # type: ignore[arg-type]


class TransportProtocol(Protocol):
    @property
    def stats(self) -> dict[str, int]: ...
    def send(self, entries: Sequence[Entry], labels: str) -> None: ...
    def close(self) -> None: ...


@dataclass(frozen=True, slots=True)
class Entry:
    line: str
    timestamp_ns: int = field(default_factory=lambda: time.time_ns())
