"""Protobuf + snappy encoding of Loki push requests.

The message layout mirrors Loki's ``logproto`` push schema::

    message PushRequest   { repeated StreamAdapter streams = 1; }
    message StreamAdapter { string labels = 1; repeated EntryAdapter entries = 2; }
    message EntryAdapter  { google.protobuf.Timestamp timestamp = 1; string line = 2; }

Descriptors are registered in a private pool so they never clash with
another ``logproto`` package loaded in the same process.
"""

from __future__ import annotations

from collections.abc import Sequence

import snappy
from google.protobuf import (
    descriptor_pb2,
    descriptor_pool,
    message,
    message_factory,
    timestamp_pb2,
)

from loki_writer.errors import EncodeError
from loki_writer.models import Entry

CONTENT_TYPE = "application/x-protobuf"

_NANOS = 1_000_000_000
_F = descriptor_pb2.FieldDescriptorProto


def _push_schema() -> descriptor_pb2.FileDescriptorProto:
    schema = descriptor_pb2.FileDescriptorProto(
        name="loki_writer/push.proto",
        package="logproto",
        syntax="proto3",
        dependency=[timestamp_pb2.DESCRIPTOR.name],
    )

    push = schema.message_type.add(name="PushRequest")
    push.field.add(
        name="streams", number=1, label=_F.LABEL_REPEATED,
        type=_F.TYPE_MESSAGE, type_name=".logproto.StreamAdapter",
    )

    stream = schema.message_type.add(name="StreamAdapter")
    stream.field.add(
        name="labels", number=1, label=_F.LABEL_OPTIONAL,
        type=_F.TYPE_STRING,
    )
    stream.field.add(
        name="entries", number=2, label=_F.LABEL_REPEATED,
        type=_F.TYPE_MESSAGE, type_name=".logproto.EntryAdapter",
    )

    entry = schema.message_type.add(name="EntryAdapter")
    entry.field.add(
        name="timestamp", number=1, label=_F.LABEL_OPTIONAL,
        type=_F.TYPE_MESSAGE, type_name=".google.protobuf.Timestamp",
    )
    entry.field.add(
        name="line", number=2, label=_F.LABEL_OPTIONAL,
        type=_F.TYPE_STRING,
    )
    return schema


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(timestamp_pb2.DESCRIPTOR.serialized_pb)
_pool.AddSerializedFile(_push_schema().SerializeToString())

PushRequest = message_factory.GetMessageClass(
    _pool.FindMessageTypeByName("logproto.PushRequest"),
)


def encode_push_request(entries: Sequence[Entry], labels: str) -> bytes:
    """Serialize ``entries`` as one stream and snappy-compress the result."""
    if not entries:
        raise EncodeError("no entries to encode")

    try:
        request = PushRequest()
        stream = request.streams.add(labels=labels)
        for entry in entries:
            seconds, nanos = divmod(entry.timestamp_ns, _NANOS)
            item = stream.entries.add(line=entry.line)
            item.timestamp.seconds = seconds
            item.timestamp.nanos = nanos
        body = request.SerializeToString()
    except (ValueError, TypeError, message.EncodeError) as exc:
        raise EncodeError(str(exc)) from exc

    return snappy.compress(body)


def decode_push_request(payload: bytes) -> tuple[str, list[Entry]]:
    """Inverse of :func:`encode_push_request` for a single-stream payload."""
    try:
        request = PushRequest.FromString(snappy.decompress(payload))
    except (snappy.UncompressError, message.DecodeError) as exc:
        raise EncodeError(f"decode push request: {exc}") from exc

    if len(request.streams) != 1:
        raise EncodeError(
            f"expected exactly one stream, got {len(request.streams)}",
        )
    stream = request.streams[0]
    entries = [
        Entry(
            line=e.line,
            timestamp_ns=e.timestamp.seconds * _NANOS + e.timestamp.nanos,
        )
        for e in stream.entries
    ]
    return stream.labels, entries
