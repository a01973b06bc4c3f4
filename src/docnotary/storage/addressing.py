"""Storage strategies mapping logical registry keys to storage addresses.

Two strategies share one interface so the registry is written once:

``MappingStrategy``
    The address *is* the key. Descriptors, documents and consumed digests
    live side by side in one associative store and need no allocation.

``SegmentedStrategy``
    Every record sits in its own pre-sized cell whose address is derived
    from seeds and the registry's program id by a one-way function. A
    derived address that decompresses to an Ed25519 curve point is
    rejected, because such an address could belong to a key holder; the
    search then retries with a decreasing bump byte.
"""

from __future__ import annotations

import struct
from functools import lru_cache
from typing import Protocol

from docnotary.codec import U32_MAX, require_identity
from docnotary.core.errors import AllocationFailure
from docnotary.storage.backend import StorageBackend
from docnotary.utils.hash import DIGEST_LENGTH, sha256_digest

ADDRESS_LENGTH = 32
MAX_SEED_LENGTH = 32
MAX_SEEDS = 16
MAX_BUMP = 255
DERIVATION_MARKER = b"ProgramDerivedAddress"

# Edwards25519 field prime and curve constant d = -121665/121666 mod p.
FIELD_PRIME = 2**255 - 19
CURVE_D = -121665 * pow(121666, FIELD_PRIME - 2, FIELD_PRIME) % FIELD_PRIME

RECEIVER_SEED = b"receiver"
DOCUMENT_SEED = "document"
EXECUTION_SEED = b"executed"


class StorageStrategy(Protocol):
    """Capability set the registry needs from a storage layout."""

    name: str
    requires_allocation: bool

    def resolve_receiver(self, receiver: bytes) -> bytes: ...

    def resolve_document(self, receiver: bytes, index: int) -> bytes: ...

    def resolve_execution(self, digest: bytes) -> bytes: ...

    def allocate(self, backend: StorageBackend, address: bytes, size: int) -> None: ...


def _check_index(index: int) -> int:
    if not 0 <= index <= U32_MAX:
        raise ValueError(f"Document index out of range: {index}")
    return index


def _check_digest(digest: bytes) -> bytes:
    if len(digest) != DIGEST_LENGTH:
        raise ValueError(f"Digest must be {DIGEST_LENGTH} bytes")
    return bytes(digest)


class MappingStrategy:
    """Direct keyed addressing over a single shared store."""

    name = "mapping"
    requires_allocation = False

    def resolve_receiver(self, receiver: bytes) -> bytes:
        return b"receiver/" + require_identity(receiver, "receiver")

    def resolve_document(self, receiver: bytes, index: int) -> bytes:
        return (
            b"document/"
            + require_identity(receiver, "receiver")
            + struct.pack("<I", _check_index(index))
        )

    def resolve_execution(self, digest: bytes) -> bytes:
        return b"executed/" + _check_digest(digest)

    def allocate(self, backend: StorageBackend, address: bytes, size: int) -> None:
        return None


def is_on_curve(encoded: bytes) -> bool:
    """Return True if ``encoded`` decompresses to an Edwards25519 point.

    The sign bit is ignored and ``y`` is reduced mod p, so points of every
    order and non-canonical encodings are reported. A point exists iff
    (y^2 - 1) / (d*y^2 + 1) is a square mod p; d is not a square, so the
    denominator never vanishes.
    """
    y = int.from_bytes(encoded, "little") & ((1 << 255) - 1)
    y = y % FIELD_PRIME
    y2 = y * y % FIELD_PRIME
    u = (y2 - 1) % FIELD_PRIME
    v = (CURVE_D * y2 + 1) % FIELD_PRIME
    ratio = u * pow(v, FIELD_PRIME - 2, FIELD_PRIME) % FIELD_PRIME
    return ratio == 0 or pow(ratio, (FIELD_PRIME - 1) // 2, FIELD_PRIME) == 1


def create_program_address(seeds: tuple[bytes, ...], program_id: bytes) -> bytes | None:
    """Hash ``seeds`` under ``program_id``; return None if the result is a curve point."""
    if len(seeds) > MAX_SEEDS:
        raise ValueError(f"At most {MAX_SEEDS} seeds are allowed")
    for seed in seeds:
        if len(seed) > MAX_SEED_LENGTH:
            raise ValueError(f"Seeds are limited to {MAX_SEED_LENGTH} bytes")
    candidate = sha256_digest(*seeds, program_id, DERIVATION_MARKER)
    if is_on_curve(candidate):
        return None
    return candidate


@lru_cache(maxsize=4096)
def find_program_address(seeds: tuple[bytes, ...], program_id: bytes) -> tuple[bytes, int]:
    """Search for an off-curve address, trying bump values from 255 downward.

    Returns:
        The derived address and the bump that produced it.

    Raises:
        AllocationFailure: If every bump yields a reserved address.
    """
    for bump in range(MAX_BUMP, 0, -1):
        address = create_program_address((*seeds, bytes([bump])), program_id)
        if address is not None:
            return address, bump
    raise AllocationFailure("Unable to find a viable program address bump seed")


class SegmentedStrategy:
    """Derived, independently sized cells namespaced by a program id."""

    name = "segmented"
    requires_allocation = True

    def __init__(self, program_id: bytes) -> None:
        if len(program_id) != ADDRESS_LENGTH:
            raise ValueError(f"Program id must be {ADDRESS_LENGTH} bytes")
        self.program_id = bytes(program_id)

    def receiver_address(self, receiver: bytes) -> tuple[bytes, int]:
        seeds = (require_identity(receiver, "receiver"), RECEIVER_SEED)
        return find_program_address(seeds, self.program_id)

    def document_address(self, receiver: bytes, index: int) -> tuple[bytes, int]:
        seed = (str(_check_index(index)) + DOCUMENT_SEED).encode()
        seeds = (require_identity(receiver, "receiver"), seed)
        return find_program_address(seeds, self.program_id)

    def execution_address(self, digest: bytes) -> tuple[bytes, int]:
        return find_program_address((_check_digest(digest), EXECUTION_SEED), self.program_id)

    def resolve_receiver(self, receiver: bytes) -> bytes:
        return self.receiver_address(receiver)[0]

    def resolve_document(self, receiver: bytes, index: int) -> bytes:
        return self.document_address(receiver, index)[0]

    def resolve_execution(self, digest: bytes) -> bytes:
        return self.execution_address(digest)[0]

    def allocate(self, backend: StorageBackend, address: bytes, size: int) -> None:
        backend.allocate(address, size)


def build_strategy(name: str, program_id: bytes) -> StorageStrategy:
    """Return the strategy registered under ``name``."""
    if name == MappingStrategy.name:
        return MappingStrategy()
    if name == SegmentedStrategy.name:
        return SegmentedStrategy(program_id)
    raise ValueError(f"Unknown storage strategy: {name!r}")
