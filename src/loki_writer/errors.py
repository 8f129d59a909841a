from __future__ import annotations


class LokiWriterError(Exception):
    """Base class for every error raised by loki_writer."""


class InvalidJSONError(LokiWriterError, ValueError):
    def __init__(self, message: str = "invalid json written") -> None:
        super().__init__(message)


class WriterClosedError(LokiWriterError, RuntimeError):
    def __init__(self, message: str = "writer is closed") -> None:
        super().__init__(message)


class BufferFullError(LokiWriterError):
    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"queue still full after {timeout}s, entry dropped")


class EncodeError(LokiWriterError):
    """The batch could not be turned into a push request payload."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"format push request: {reason}")


class TransportError(LokiWriterError):
    """The request never got a response (connect, DNS, timeout...)."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"send push request: {reason}")


class ProtocolError(LokiWriterError):
    """Loki answered with a status outside the 2xx range.

    Args:
        status_code: HTTP status code of the response.
        reason: Reason phrase sent with the status.
        body: First line of the (truncated) response body.
    """

    def __init__(self, status_code: int, reason: str, body: str) -> None:
        self.status_code = status_code
        self.reason = reason
        self.body = body
        super().__init__(
            f"send push request: server returned HTTP status "
            f"{status_code} {reason} ({status_code}): {body}"
        )
