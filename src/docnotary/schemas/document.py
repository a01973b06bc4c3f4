"""Document-related Pydantic schemas.

Identities, payloads and signatures travel as hex strings.
"""

from pydantic import BaseModel, Field

from docnotary.codec import U32_MAX, U64_MAX

IDENTITY_HEX_PATTERN = r"^[0-9a-fA-F]{64}$"
HEX_PATTERN = r"^(?:[0-9a-fA-F]{2})*$"


class PreSignedDocumentCreate(BaseModel):
    """Relayed request to create a document on the sender's behalf."""

    sender: str = Field(..., pattern=IDENTITY_HEX_PATTERN, description="Sender public key (hex)")
    receiver: str = Field(..., pattern=IDENTITY_HEX_PATTERN, description="Receiver public key (hex)")
    data: str = Field(..., pattern=HEX_PATTERN, description="Opaque document payload (hex)")
    nonce: int = Field(..., ge=0, le=U64_MAX)
    signature: str = Field(..., pattern=HEX_PATTERN, description="Sender's Ed25519 signature (hex)")

    @property
    def sender_bytes(self) -> bytes:
        return bytes.fromhex(self.sender)

    @property
    def receiver_bytes(self) -> bytes:
        return bytes.fromhex(self.receiver)

    @property
    def data_bytes(self) -> bytes:
        return bytes.fromhex(self.data)

    @property
    def signature_bytes(self) -> bytes:
        return bytes.fromhex(self.signature)


class PreSignedOpenedAtCreate(BaseModel):
    """Relayed request to mark a document as opened on the receiver's behalf."""

    receiver: str = Field(..., pattern=IDENTITY_HEX_PATTERN, description="Receiver public key (hex)")
    index: int = Field(..., ge=0, le=U32_MAX)
    nonce: int = Field(..., ge=0, le=U64_MAX)
    signature: str = Field(..., pattern=HEX_PATTERN, description="Receiver's Ed25519 signature (hex)")

    @property
    def receiver_bytes(self) -> bytes:
        return bytes.fromhex(self.receiver)

    @property
    def signature_bytes(self) -> bytes:
        return bytes.fromhex(self.signature)


class DocumentOut(BaseModel):
    """Schema for a stored document returned by the API."""

    receiver: str
    index: int
    sender: str
    data: str
    sent_at: int
    opened_at: int


class DocumentsCountOut(BaseModel):
    """Number of documents ever addressed to a receiver."""

    receiver: str
    documents_count: int


class ErrorOut(BaseModel):
    """Stable error envelope returned for every registry failure."""

    error: str
    detail: str


class EncodedPreSignedCreate(BaseModel):
    """Relayed request carrying a codec-encoded authorization payload as signed."""

    payload: str = Field(..., pattern=HEX_PATTERN, description="Encoded authorization payload (hex)")
    signature: str = Field(..., pattern=HEX_PATTERN, description="Signature over the payload digest (hex)")

    @property
    def payload_bytes(self) -> bytes:
        return bytes.fromhex(self.payload)

    @property
    def signature_bytes(self) -> bytes:
        return bytes.fromhex(self.signature)
