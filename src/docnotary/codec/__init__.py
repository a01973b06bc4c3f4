"""Binary codec for registry records."""

from .records import (
    IDENTITY_LENGTH,
    RECEIVER_SIZE,
    U32_MAX,
    U64_MAX,
    Document,
    DocumentAuthorization,
    OpenedAtAuthorization,
    ReceiverDescriptor,
    decode_document,
    decode_document_authorization,
    decode_opened_at_authorization,
    decode_receiver,
    document_size,
    encode_document,
    encode_document_authorization,
    encode_opened_at_authorization,
    encode_receiver,
    require_identity,
)

__all__ = [
    "IDENTITY_LENGTH", "RECEIVER_SIZE", "U32_MAX", "U64_MAX",
    "Document", "DocumentAuthorization", "OpenedAtAuthorization", "ReceiverDescriptor",
    "decode_document", "decode_document_authorization",
    "decode_opened_at_authorization", "decode_receiver",
    "document_size",
    "encode_document", "encode_document_authorization",
    "encode_opened_at_authorization", "encode_receiver",
    "require_identity",
]
