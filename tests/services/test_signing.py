# tests/services/test_signing.py
"""Tests for authorization digests and signature verification."""

import pytest

from docnotary.codec import DocumentAuthorization, encode_document_authorization
from docnotary.core.errors import InvalidSignatureEncoding
from docnotary.core.security import verify_signature
from docnotary.services.crypto import CryptoService
from docnotary.services.signing import (
    SignatureVerifier,
    calculate_document_hash,
    calculate_opened_at_hash,
)
from docnotary.utils.hash import blake3_digest


def test_document_hash_is_blake3_of_encoded_payload(sender, receiver) -> None:
    payload = DocumentAuthorization(
        sender=sender.public_key, receiver=receiver.public_key, data=b"doc", nonce=9
    )
    expected = blake3_digest(encode_document_authorization(payload))
    assert calculate_document_hash(sender.public_key, receiver.public_key, b"doc", 9) == expected


def test_digests_change_with_every_field(sender, receiver) -> None:
    base = calculate_document_hash(sender.public_key, receiver.public_key, b"doc", 1)
    variants = {
        calculate_document_hash(receiver.public_key, receiver.public_key, b"doc", 1),
        calculate_document_hash(sender.public_key, sender.public_key, b"doc", 1),
        calculate_document_hash(sender.public_key, receiver.public_key, b"doc2", 1),
        calculate_document_hash(sender.public_key, receiver.public_key, b"doc", 2),
    }
    assert base not in variants
    assert len(variants) == 4

    opened = calculate_opened_at_hash(receiver.public_key, 0, 1)
    assert opened != calculate_opened_at_hash(receiver.public_key, 1, 1)
    assert opened != calculate_opened_at_hash(receiver.public_key, 0, 2)


def test_valid_signature_verifies(sender, receiver) -> None:
    digest = calculate_document_hash(sender.public_key, receiver.public_key, b"doc", 1)
    signature = CryptoService.sign_message(sender.private_key, digest)

    verifier = SignatureVerifier()
    assert verifier.is_valid_signature(sender.public_key, digest, signature) is True


def test_wrong_signer_or_digest_is_rejected_without_raising(sender, receiver) -> None:
    digest = calculate_opened_at_hash(receiver.public_key, 0, 1)
    signature = CryptoService.sign_message(sender.private_key, digest)

    verifier = SignatureVerifier()
    assert verifier.is_valid_signature(receiver.public_key, digest, signature) is False
    other_digest = calculate_opened_at_hash(receiver.public_key, 0, 2)
    assert verifier.is_valid_signature(sender.public_key, other_digest, signature) is False


def test_malformed_signature_encoding_raises(sender) -> None:
    with pytest.raises(InvalidSignatureEncoding):
        verify_signature(sender.public_key, b"\x00" * 32, b"\x01" * 63)


def test_garbage_identity_is_rejected(sender) -> None:
    digest = b"\x00" * 32
    signature = CryptoService.sign_message(sender.private_key, digest)
    assert verify_signature(b"\x00" * 31, digest, signature) is False
