from __future__ import annotations

import logging
from typing import ClassVar

from loki_writer.writer import LokiWriter


class LokiHandler(logging.Handler):
    # httpx logs every request from the worker thread; shipping those
    # would feed the buffer from its own consumer.
    _IGNORE_PREFIXES: ClassVar[tuple[str, ...]] = (
        "loki_writer",
        "httpx",
        "httpcore",
    )

    def __init__(self, writer: LokiWriter, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self._writer = writer
        self._owns_writer = False

    @classmethod
    def from_writer(cls, writer: LokiWriter) -> LokiHandler:
        return cls(writer)

    @classmethod
    def standalone(cls, **kwargs: object) -> LokiHandler:
        writer = LokiWriter(**kwargs)  # type: ignore[arg-type]
        handler = cls(writer)
        handler._owns_writer = True
        return handler

    def emit(self, record: logging.LogRecord) -> None:
        if record.name.startswith(self._IGNORE_PREFIXES):
            return
        try:
            line = self.format(record)
            self._writer.submit(line, timestamp_ns=int(record.created * 1e9))
        except Exception:
            self.handleError(record)

    def flush(self) -> None:
        self._writer.flush()

    def close(self) -> None:
        if self._owns_writer:
            self._writer.close()
        super().close()
