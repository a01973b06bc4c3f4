"""Authorization digests and signature checks for presigned operations."""
from __future__ import annotations

from docnotary.codec import (
    DocumentAuthorization,
    OpenedAtAuthorization,
    encode_document_authorization,
    encode_opened_at_authorization,
)
from docnotary.core.security import verify_signature
from docnotary.utils.hash import blake3_digest


def calculate_document_hash(sender: bytes, receiver: bytes, data: bytes, nonce: int) -> bytes:
    """Return the digest a sender signs to authorize creating a document.

    The assigned index is deliberately absent: the signer cannot know it in
    advance.
    """
    payload = DocumentAuthorization(sender=sender, receiver=receiver, data=data, nonce=nonce)
    return blake3_digest(encode_document_authorization(payload))


def calculate_opened_at_hash(receiver: bytes, index: int, nonce: int) -> bytes:
    """Return the digest a receiver signs to authorize opening document ``index``."""
    payload = OpenedAtAuthorization(receiver=receiver, index=index, nonce=nonce)
    return blake3_digest(encode_opened_at_authorization(payload))


class SignatureVerifier:
    """Checks that a digest was signed by the holder of a claimed identity.

    The verifier never rebuilds the signed payload; callers hand it the
    digest they computed.
    """

    def is_valid_signature(self, signer: bytes, digest: bytes, signature: bytes) -> bool:
        """Return True when ``signature`` over ``digest`` verifies under ``signer``.

        Raises:
            InvalidSignatureEncoding: If the signature is not a 64-byte value.
        """
        return verify_signature(signer, digest, signature)
