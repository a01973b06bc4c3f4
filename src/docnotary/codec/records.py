"""Byte-exact codec for registry records and authorization payloads.

Layout rules shared by every record:

- fields are written in declared order with no padding;
- multi-byte integers are little-endian;
- identities are fixed 32-byte fields;
- variable-length byte fields carry a ``u32`` little-endian length prefix.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from docnotary.core.errors import MalformedRecord

IDENTITY_LENGTH = 32
U32_MAX = 0xFFFF_FFFF
U64_MAX = 0xFFFF_FFFF_FFFF_FFFF

_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")
_TIMESTAMPS = struct.Struct("<QQ")

RECEIVER_SIZE = _U32.size


@dataclass(frozen=True)
class ReceiverDescriptor:
    """Per-receiver metadata; the counter doubles as the next free index."""

    documents_counter: int = 0


@dataclass(frozen=True)
class Document:
    """A notarized document as persisted in storage."""

    sender: bytes
    data: bytes
    sent_at: int
    opened_at: int = 0

    @property
    def is_opened(self) -> bool:
        return self.opened_at != 0


@dataclass(frozen=True)
class DocumentAuthorization:
    """Fields a sender signs to let a relayer create a document on their behalf."""

    sender: bytes
    receiver: bytes
    data: bytes
    nonce: int


@dataclass(frozen=True)
class OpenedAtAuthorization:
    """Fields a receiver signs to let a relayer mark a document as opened."""

    receiver: bytes
    index: int
    nonce: int


def require_identity(value: bytes, field: str = "identity") -> bytes:
    """Return ``value`` as bytes if it is a well-formed 32-byte identity."""
    if not isinstance(value, bytes | bytearray) or len(value) != IDENTITY_LENGTH:
        raise ValueError(f"{field} must be {IDENTITY_LENGTH} bytes")
    return bytes(value)


def _check_range(value: int, upper: int, field: str) -> None:
    if not 0 <= value <= upper:
        raise ValueError(f"{field} out of range: {value}")


class _Reader:
    """Cursor over an input buffer that fails with MalformedRecord on underrun."""

    def __init__(self, buffer: bytes, record: str) -> None:
        self._buffer = memoryview(bytes(buffer))
        self._offset = 0
        self._record = record

    def take(self, size: int) -> bytes:
        end = self._offset + size
        if end > len(self._buffer):
            raise MalformedRecord(
                f"{self._record}: need {size} bytes at offset {self._offset}, "
                f"{len(self._buffer) - self._offset} remaining"
            )
        chunk = self._buffer[self._offset:end].tobytes()
        self._offset = end
        return chunk

    def u32(self) -> int:
        return _U32.unpack(self.take(_U32.size))[0]

    def u64(self) -> int:
        return _U64.unpack(self.take(_U64.size))[0]

    def identity(self) -> bytes:
        return self.take(IDENTITY_LENGTH)

    def blob(self) -> bytes:
        length = self.u32()
        return self.take(length)

    def finish(self) -> None:
        if self._offset != len(self._buffer):
            raise MalformedRecord(
                f"{self._record}: {len(self._buffer) - self._offset} trailing bytes"
            )


def _blob(data: bytes) -> bytes:
    _check_range(len(data), U32_MAX, "data length")
    return _U32.pack(len(data)) + bytes(data)


# --- Receiver descriptor -------------------------------------------------------------

def encode_receiver(receiver: ReceiverDescriptor) -> bytes:
    _check_range(receiver.documents_counter, U32_MAX, "documents_counter")
    return _U32.pack(receiver.documents_counter)


def decode_receiver(buffer: bytes) -> ReceiverDescriptor:
    reader = _Reader(buffer, "receiver")
    descriptor = ReceiverDescriptor(documents_counter=reader.u32())
    reader.finish()
    return descriptor


# --- Document ------------------------------------------------------------------------

def document_size(data_length: int) -> int:
    """Return the exact encoded size of a document carrying ``data_length`` bytes."""
    return IDENTITY_LENGTH + _U32.size + data_length + _TIMESTAMPS.size


def encode_document(document: Document) -> bytes:
    require_identity(document.sender, "sender")
    _check_range(document.sent_at, U64_MAX, "sent_at")
    _check_range(document.opened_at, U64_MAX, "opened_at")
    return (
        bytes(document.sender)
        + _blob(document.data)
        + _TIMESTAMPS.pack(document.sent_at, document.opened_at)
    )


def decode_document(buffer: bytes) -> Document:
    reader = _Reader(buffer, "document")
    sender = reader.identity()
    data = reader.blob()
    sent_at = reader.u64()
    opened_at = reader.u64()
    reader.finish()
    return Document(sender=sender, data=data, sent_at=sent_at, opened_at=opened_at)


# --- Authorization payloads -----------------------------------------------------------

def encode_document_authorization(payload: DocumentAuthorization) -> bytes:
    require_identity(payload.sender, "sender")
    require_identity(payload.receiver, "receiver")
    _check_range(payload.nonce, U64_MAX, "nonce")
    return (
        bytes(payload.sender)
        + bytes(payload.receiver)
        + _blob(payload.data)
        + _U64.pack(payload.nonce)
    )


def decode_document_authorization(buffer: bytes) -> DocumentAuthorization:
    reader = _Reader(buffer, "document authorization")
    sender = reader.identity()
    receiver = reader.identity()
    data = reader.blob()
    nonce = reader.u64()
    reader.finish()
    return DocumentAuthorization(sender=sender, receiver=receiver, data=data, nonce=nonce)


def encode_opened_at_authorization(payload: OpenedAtAuthorization) -> bytes:
    require_identity(payload.receiver, "receiver")
    _check_range(payload.index, U32_MAX, "index")
    _check_range(payload.nonce, U64_MAX, "nonce")
    return bytes(payload.receiver) + _U32.pack(payload.index) + _U64.pack(payload.nonce)


def decode_opened_at_authorization(buffer: bytes) -> OpenedAtAuthorization:
    reader = _Reader(buffer, "opened-at authorization")
    receiver = reader.identity()
    index = reader.u32()
    nonce = reader.u64()
    reader.finish()
    return OpenedAtAuthorization(receiver=receiver, index=index, nonce=nonce)
