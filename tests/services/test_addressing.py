# tests/services/test_addressing.py
"""Tests for storage address derivation."""

import hashlib

import pytest

from docnotary.core.errors import AllocationFailure
from docnotary.storage import addressing
from docnotary.storage.addressing import (
    DERIVATION_MARKER,
    FIELD_PRIME,
    MappingStrategy,
    SegmentedStrategy,
    build_strategy,
    create_program_address,
    find_program_address,
    is_on_curve,
)

PROGRAM_A = bytes.fromhex("aa" * 32)
PROGRAM_B = bytes.fromhex("bb" * 32)
RECEIVER = bytes(range(32))
OTHER_RECEIVER = bytes(range(1, 33))

BASEPOINT = bytes.fromhex("58" + "66" * 31)
SQRT_M1 = pow(2, (FIELD_PRIME - 1) // 4, FIELD_PRIME)


def _decompresses(encoded: bytes) -> bool:
    """Recover x the way Ed25519 decompression does; True when a root exists."""
    p = FIELD_PRIME
    d = -121665 * pow(121666, p - 2, p) % p
    y = (int.from_bytes(encoded, "little") & ((1 << 255) - 1)) % p
    u = (y * y - 1) % p
    v = (d * y * y + 1) % p
    x2 = u * pow(v, p - 2, p) % p
    x = pow(x2, (p + 3) // 8, p)
    if x * x % p != x2:
        x = x * SQRT_M1 % p
    return x * x % p == x2


def test_program_address_is_sha256_of_seeds_program_and_marker() -> None:
    address, bump = find_program_address((RECEIVER, b"receiver"), PROGRAM_A)
    seeds = (RECEIVER, b"receiver", bytes([bump]))
    expected = hashlib.sha256(b"".join(seeds) + PROGRAM_A + DERIVATION_MARKER).digest()
    assert address == expected
    assert create_program_address(seeds, PROGRAM_A) == expected


def test_curve_points_are_detected_in_every_subgroup() -> None:
    assert is_on_curve(BASEPOINT)
    # Sign bit set on the same y.
    assert is_on_curve(BASEPOINT[:31] + bytes([BASEPOINT[31] | 0x80]))
    # Small-order points: the identity (y = 1) and the order-4 point (y = 0).
    assert is_on_curve(b"\x01" + bytes(31))
    assert is_on_curve(bytes(32))


def test_found_address_is_off_curve_and_stable() -> None:
    address, bump = find_program_address((RECEIVER, b"receiver"), PROGRAM_A)
    assert len(address) == 32
    assert 1 <= bump <= 255
    assert not _decompresses(address)
    assert create_program_address((RECEIVER, b"receiver", bytes([bump])), PROGRAM_A) == address
    assert find_program_address((RECEIVER, b"receiver"), PROGRAM_A) == (address, bump)


def test_curve_check_agrees_with_decompression() -> None:
    candidates = [hashlib.sha256(bytes([i])).digest() for i in range(64)]
    assert [is_on_curve(c) for c in candidates] == [_decompresses(c) for c in candidates]
    # Roughly half of all hashes land on the curve.
    assert 0 < sum(is_on_curve(c) for c in candidates) < 64


def test_segmented_document_addresses_never_decompress() -> None:
    strategy = SegmentedStrategy(bytes([11]) * 32)
    on_curve = [
        index for index in range(64) if _decompresses(strategy.resolve_document(RECEIVER, index))
    ]
    assert on_curve == []


def test_bump_search_skips_reserved_candidates(monkeypatch: pytest.MonkeyPatch) -> None:
    find_program_address.cache_clear()
    rejected = {255, 254}
    real = addressing.is_on_curve
    attempts: list[int] = []

    def fake_is_on_curve(candidate: bytes) -> bool:
        bump = 255 - len(attempts)
        attempts.append(bump)
        return bump in rejected or real(candidate)

    monkeypatch.setattr(addressing, "is_on_curve", fake_is_on_curve)
    _, bump = find_program_address((RECEIVER, b"bump-test"), PROGRAM_A)
    find_program_address.cache_clear()

    assert bump <= 253
    assert attempts[:2] == [255, 254]


def test_bump_search_is_bounded(monkeypatch: pytest.MonkeyPatch) -> None:
    find_program_address.cache_clear()
    calls = []

    def always_on_curve(candidate: bytes) -> bool:
        calls.append(candidate)
        return True

    monkeypatch.setattr(addressing, "is_on_curve", always_on_curve)
    with pytest.raises(AllocationFailure):
        find_program_address((RECEIVER, b"exhausted"), PROGRAM_A)
    find_program_address.cache_clear()

    assert len(calls) == 255


def test_seed_length_is_limited() -> None:
    with pytest.raises(ValueError):
        create_program_address((b"x" * 33,), PROGRAM_A)


def test_segmented_addresses_are_distinct_per_key_and_program() -> None:
    strategy_a = SegmentedStrategy(PROGRAM_A)
    strategy_b = SegmentedStrategy(PROGRAM_B)

    addresses = {
        strategy_a.resolve_receiver(RECEIVER),
        strategy_a.resolve_receiver(OTHER_RECEIVER),
        strategy_a.resolve_document(RECEIVER, 0),
        strategy_a.resolve_document(RECEIVER, 1),
        strategy_a.resolve_document(OTHER_RECEIVER, 0),
        strategy_a.resolve_execution(b"\x00" * 32),
        strategy_b.resolve_receiver(RECEIVER),
        strategy_b.resolve_document(RECEIVER, 0),
    }
    assert len(addresses) == 8


def test_segmented_document_seed_prefixes_index() -> None:
    strategy = SegmentedStrategy(PROGRAM_A)
    address, bump = strategy.document_address(RECEIVER, 12)
    assert create_program_address((RECEIVER, b"12document", bytes([bump])), PROGRAM_A) == address


def test_mapping_addresses_are_the_keys() -> None:
    strategy = MappingStrategy()
    assert strategy.resolve_receiver(RECEIVER) == b"receiver/" + RECEIVER
    assert strategy.resolve_document(RECEIVER, 1) == b"document/" + RECEIVER + b"\x01\x00\x00\x00"
    assert strategy.resolve_execution(b"\x07" * 32) == b"executed/" + b"\x07" * 32


def test_strategies_reject_malformed_keys() -> None:
    for strategy in (MappingStrategy(), SegmentedStrategy(PROGRAM_A)):
        with pytest.raises(ValueError):
            strategy.resolve_receiver(b"short")
        with pytest.raises(ValueError):
            strategy.resolve_document(RECEIVER, -1)
        with pytest.raises(ValueError):
            strategy.resolve_execution(b"short")


def test_build_strategy_by_name() -> None:
    assert isinstance(build_strategy("mapping", PROGRAM_A), MappingStrategy)
    assert isinstance(build_strategy("segmented", PROGRAM_A), SegmentedStrategy)
    with pytest.raises(ValueError):
        build_strategy("sharded", PROGRAM_A)
