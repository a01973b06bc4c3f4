# src/docnotary/services/crypto.py
"""Client-side key handling and presigned request construction."""

from __future__ import annotations

import base64
import secrets

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from docnotary.codec import IDENTITY_LENGTH
from docnotary.schemas.document import PreSignedDocumentCreate, PreSignedOpenedAtCreate
from docnotary.services.signing import calculate_document_hash, calculate_opened_at_hash


class CryptoService:
    """Helpers a signer uses to authorize operations that a relayer submits."""

    @staticmethod
    def _decode_base64(data: str) -> bytes:
        """Decode a URL-safe base64 string, accepting omitted padding."""
        padding = "=" * (-len(data) % 4)
        try:
            return base64.urlsafe_b64decode(data + padding)
        except Exception as err:
            raise ValueError(f"Invalid base64 encoding: {err}") from err

    @staticmethod
    def _decode_hex(data: str) -> bytes:
        try:
            return bytes.fromhex(data)
        except ValueError as err:
            raise ValueError(f"Invalid hex encoding: {err}") from err

    @staticmethod
    def validate_and_decode_pubkey(pubkey_encoded: str) -> bytes:
        """Validate and decode an Ed25519 public key given as hex or base64."""
        cleaned = pubkey_encoded.strip()
        errors: list[str] = []
        for decoder in (
            CryptoService._decode_hex,
            CryptoService._decode_base64,
        ):
            try:
                result = decoder(cleaned)
            except ValueError as err:
                errors.append(str(err))
                continue
            if len(result) != IDENTITY_LENGTH:
                errors.append("Ed25519 public keys must be 32 bytes")
                continue
            return result
        joined = "; ".join(errors) if errors else "unknown decoding error"
        raise ValueError(f"Invalid public key format: {joined}")

    @staticmethod
    def generate_key_pair() -> tuple[bytes, bytes]:
        """Generate a new Ed25519 key pair.

        Returns:
            Tuple of (private_key_bytes, public_key_bytes)
        """
        private_key = Ed25519PrivateKey.generate()
        private_bytes = private_key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return private_bytes, CryptoService.public_key(private_bytes)

    @staticmethod
    def public_key(private_key_bytes: bytes) -> bytes:
        """Return the raw public key (the registry identity) for a private key."""
        try:
            private_key = Ed25519PrivateKey.from_private_bytes(private_key_bytes)
        except ValueError as err:
            raise ValueError(f"Invalid private key: {err}") from err
        return private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )

    @staticmethod
    def generate_nonce() -> int:
        """Return a random 64-bit nonce."""
        return secrets.randbits(64)

    @staticmethod
    def sign_message(private_key_bytes: bytes, message: bytes) -> bytes:
        """Sign a message with an Ed25519 private key.

        Args:
            private_key_bytes: Raw Ed25519 private key bytes
            message: Message to sign

        Returns:
            Raw signature bytes
        """
        try:
            private_key = Ed25519PrivateKey.from_private_bytes(private_key_bytes)
            return private_key.sign(message)
        except ValueError as err:
            raise ValueError(f"Invalid private key: {err}") from err

    @staticmethod
    def presign_document(
        private_key_bytes: bytes,
        receiver: bytes,
        data: bytes,
        nonce: int | None = None,
    ) -> PreSignedDocumentCreate:
        """Build a relayable request creating ``data`` for ``receiver``."""
        sender = CryptoService.public_key(private_key_bytes)
        nonce = CryptoService.generate_nonce() if nonce is None else nonce
        digest = calculate_document_hash(sender, receiver, data, nonce)
        signature = CryptoService.sign_message(private_key_bytes, digest)
        return PreSignedDocumentCreate(
            sender=sender.hex(),
            receiver=bytes(receiver).hex(),
            data=bytes(data).hex(),
            nonce=nonce,
            signature=signature.hex(),
        )

    @staticmethod
    def presign_opened_at(
        private_key_bytes: bytes,
        index: int,
        nonce: int | None = None,
    ) -> PreSignedOpenedAtCreate:
        """Build a relayable request marking the signer's document ``index`` as opened."""
        receiver = CryptoService.public_key(private_key_bytes)
        nonce = CryptoService.generate_nonce() if nonce is None else nonce
        digest = calculate_opened_at_hash(receiver, index, nonce)
        signature = CryptoService.sign_message(private_key_bytes, digest)
        return PreSignedOpenedAtCreate(
            receiver=receiver.hex(),
            index=index,
            nonce=nonce,
            signature=signature.hex(),
        )
