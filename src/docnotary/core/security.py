"""Signature utilities built on Ed25519 primitives."""
from __future__ import annotations

from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from docnotary.core.errors import InvalidSignatureEncoding

SIGNATURE_LENGTH = 64


def verify_signature(pubkey: bytes, message: bytes, signature: bytes) -> bool:
    """Verify an Ed25519 signature.

    Args:
        pubkey: Raw 32-byte public key of the claimed signer.
        message: Exact bytes that were signed.
        signature: Raw 64-byte signature.

    Returns:
        True if the signature is valid for `message` under `pubkey`; False otherwise.

    Raises:
        InvalidSignatureEncoding: If `signature` is not 64 bytes long.
    """
    if not isinstance(signature, bytes | bytearray) or len(signature) != SIGNATURE_LENGTH:
        raise InvalidSignatureEncoding(
            f"Signature must be {SIGNATURE_LENGTH} bytes, got "
            f"{len(signature) if isinstance(signature, bytes | bytearray) else type(signature).__name__}"
        )
    try:
        VerifyKey(bytes(pubkey)).verify(message, bytes(signature))
        return True
    except (BadSignatureError, ValueError, TypeError):
        return False
