from __future__ import annotations

import json
import time
from typing import IO, overload

from loki_writer.buffer import LogBuffer
from loki_writer.errors import InvalidJSONError
from loki_writer.labels import format_labels
from loki_writer.models import Entry, LokiConfig
from loki_writer.transport import LokiTransport


def _reject_constant(name: str) -> None:
    raise ValueError(f"{name} is not valid JSON")


class LokiWriter:
    """Byte-stream front end: every ``write()`` becomes one Loki entry.

    Writes are queued for the background batcher and optionally mirrored
    to ``output`` (for example ``sys.stdout.buffer``). Delivery failures
    are logged, never raised from ``write()``.
    """

    @overload
    def __init__(
        self, config: LokiConfig, *, output: IO[bytes] | None = None,
    ) -> None: ...

    @overload
    def __init__(
        self,
        *,
        endpoint: str,
        labels: dict[str, str],
        max_batch_age: float = 30.0,
        max_batch_count: int = 5,
        queue_size: int = 5,
        check_json: bool = True,
        timeout: float = 10.0,
        enqueue_timeout: float | None = None,
        output: IO[bytes] | None = None,
    ) -> None: ...

    def __init__(
        self,
        config: LokiConfig | None = None,
        *,
        output: IO[bytes] | None = None,
        **kwargs: object,
    ) -> None:
        if config is not None:
            if kwargs:
                raise TypeError(
                    "Cannot pass both config and keyword arguments",
                )
            self._config = config
        else:
            self._config = LokiConfig(**kwargs)  # type: ignore[arg-type]

        self._output = output
        self._labels = format_labels(self._config.labels)
        self._transport = LokiTransport(self._config)
        self._buffer = LogBuffer(self._transport, self._config, self._labels)

    @property
    def config(self) -> LokiConfig:
        return self._config

    @property
    def labels(self) -> str:
        return self._labels

    @property
    def url(self) -> str:
        return self._transport.url

    def write(self, data: bytes | str) -> int:
        raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        if self._config.check_json:
            try:
                json.loads(raw, parse_constant=_reject_constant)
            except (ValueError, RecursionError):
                raise InvalidJSONError() from None

        self._buffer.append(
            Entry(line=raw.decode("utf-8", errors="replace")),
        )

        if self._output is not None:
            return self._output.write(raw)
        return len(raw)

    def submit(self, line: str, timestamp_ns: int | None = None) -> None:
        if timestamp_ns is None:
            timestamp_ns = time.time_ns()
        self._buffer.append(Entry(line=line, timestamp_ns=timestamp_ns))

    def flush(self) -> None:
        self._buffer.flush()

    def close(self) -> None:
        self._buffer.stop()
        self._transport.close()

    @property
    def stats(self) -> dict[str, int]:
        """Aggregate stats (eventually consistent across subsystems)."""
        buf = self._buffer.stats
        transport = self._transport.stats
        return {
            "sent": buf["sent_count"],
            "errors": transport["error_count"],
            "failed_flushes": buf["error_count"],
            "dropped": buf["drop_count"],
            "pending": buf["buffered"] + buf["queued"],
            "flushes": buf["flush_count"],
        }
