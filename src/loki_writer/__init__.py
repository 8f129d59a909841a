from loki_writer.errors import (
    BufferFullError,
    EncodeError,
    InvalidJSONError,
    LokiWriterError,
    ProtocolError,
    TransportError,
    WriterClosedError,
)
from loki_writer.handler import LokiHandler
from loki_writer.labels import format_labels
from loki_writer.models import Entry, LokiConfig
from loki_writer.writer import LokiWriter

__all__ = [
    "LokiWriter",
    "LokiHandler",
    "LokiConfig",
    "Entry",
    "format_labels",
    "LokiWriterError",
    "InvalidJSONError",
    "WriterClosedError",
    "BufferFullError",
    "EncodeError",
    "TransportError",
    "ProtocolError",
]
