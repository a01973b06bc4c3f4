# src/docnotary/utils/hash.py
"""Hashing helpers used for authorization digests and address derivation."""

from __future__ import annotations

import hashlib

from blake3 import blake3

DIGEST_LENGTH = 32


def blake3_digest(data: bytes) -> bytes:
    """Return the 32-byte BLAKE3 digest of the supplied data."""
    return blake3(data).digest()


def sha256_digest(*parts: bytes) -> bytes:
    """Return the SHA-256 digest over the concatenation of ``parts``."""
    hasher = hashlib.sha256()
    for part in parts:
        hasher.update(part)
    return hasher.digest()
