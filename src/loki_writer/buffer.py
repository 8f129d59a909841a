from __future__ import annotations

import atexit
import logging
import queue
import threading
import time
from typing import TYPE_CHECKING

from loki_writer.errors import BufferFullError, WriterClosedError

if TYPE_CHECKING:
    from loki_writer.models import Entry, LokiConfig, TransportProtocol

logger = logging.getLogger(__name__)


class _FlushRequest:
    __slots__ = ("done",)

    def __init__(self) -> None:
        self.done = threading.Event()


_STOP = object()


class LogBuffer:
    """Batches entries on a single worker thread.

    Producers only touch the bounded queue; the batch and the flush
    deadline belong to the worker. A batch is sent when it reaches
    ``max_batch_count`` entries or when ``max_batch_age`` has passed
    since the previous flush, whichever comes first.
    """

    def __init__(
        self,
        transport: TransportProtocol,
        config: LokiConfig,
        labels: str,
    ) -> None:
        self._transport = transport
        self._config = config
        self._labels = labels
        self._queue: queue.Queue[object] = queue.Queue(config.queue_size)
        self._batch: list[Entry] = []
        self._deadline = 0.0

        self._put_lock = threading.Lock()
        self._lock = threading.Lock()
        self._closed = False
        self._flush_count: int = 0
        self._sent_count: int = 0
        self._drop_count: int = 0
        self._error_count: int = 0

        self._thread = threading.Thread(
            target=self._run, daemon=True, name="loki-writer-buffer"
        )
        self._thread.start()
        atexit.register(self.stop)

    def append(self, entry: Entry) -> None:
        # _put_lock orders puts against the stop signal. The worker never
        # takes it, so a producer blocked on a full queue cannot stall it.
        with self._put_lock:
            if self._closed:
                raise WriterClosedError()
            timeout = self._config.enqueue_timeout
            try:
                self._queue.put(entry, timeout=timeout)
            except queue.Full:
                with self._lock:
                    self._drop_count += 1
                raise BufferFullError(timeout) from None  # type: ignore[arg-type]

    def flush(self) -> None:
        """Send whatever is buffered and wait until the worker is done."""
        request = _FlushRequest()
        with self._put_lock:
            if self._closed:
                return
            self._queue.put(request)
        request.done.wait()

    def stop(self) -> None:
        with self._put_lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_STOP)
        self._thread.join()
        atexit.unregister(self.stop)

    @property
    def stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "buffered": len(self._batch),
                "queued": self._queue.qsize(),
                "flush_count": self._flush_count,
                "sent_count": self._sent_count,
                "drop_count": self._drop_count,
                "error_count": self._error_count,
            }

    def _run(self) -> None:
        self._deadline = time.monotonic() + self._config.max_batch_age
        while True:
            remaining = self._deadline - time.monotonic()
            try:
                item = self._queue.get(timeout=max(remaining, 0.0))
            except queue.Empty:
                self._on_timer()
                continue

            if item is _STOP:
                break
            if isinstance(item, _FlushRequest):
                self._flush()
                item.done.set()
                continue

            self._batch.append(item)  # type: ignore[arg-type]
            if len(self._batch) >= self._config.max_batch_count:
                self._flush()

        # stop() is the last message; everything before it is in the batch
        self._flush()

    def _on_timer(self) -> None:
        if self._batch:
            self._flush()
        else:
            self._deadline = time.monotonic() + self._config.max_batch_age

    def _flush(self) -> None:
        if not self._batch:
            return

        self._deadline = time.monotonic() + self._config.max_batch_age
        batch, self._batch = self._batch, []

        try:
            self._transport.send(batch, self._labels)
        except Exception as exc:
            logger.error("failed to send batch: %s", exc)
            with self._lock:
                self._flush_count += 1
                self._error_count += 1
                self._drop_count += len(batch)
            return

        with self._lock:
            self._flush_count += 1
            self._sent_count += len(batch)
