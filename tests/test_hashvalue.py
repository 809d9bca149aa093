from __future__ import annotations

import random

import pytest

from hashring.hashvalue import (
    UINT32_MASK,
    hash_value,
    hash_value_legacy,
    pack_digest,
    truncate_to_int,
)

BOTH = [hash_value, hash_value_legacy]


@pytest.mark.parametrize("fn", BOTH)
def test_in_range_lanes_pack_most_significant_first(fn) -> None:
    rng = random.Random(1234)
    for _ in range(2000):
        b = [rng.randrange(256) for _ in range(4)]
        v = fn(*b)
        assert v == (b[0] << 24) | (b[1] << 16) | (b[2] << 8) | b[3]
        assert 0 <= v <= UINT32_MASK


@pytest.mark.parametrize("fn", BOTH)
def test_zero_and_max(fn) -> None:
    assert fn(0, 0, 0, 0) == 0
    assert fn(255, 255, 255, 255) == 4294967295
    assert isinstance(fn(255, 255, 255, 255), int)


@pytest.mark.parametrize("fn", BOTH)
def test_lane_isolation(fn) -> None:
    assert fn(1, 0, 0, 0) - fn(0, 0, 0, 0) == 16777216
    assert fn(0, 1, 0, 0) == 65536
    assert fn(0, 0, 1, 0) == 256
    assert fn(0, 0, 0, 1) == 1


@pytest.mark.parametrize("fn", BOTH)
def test_example_vector_and_determinism(fn) -> None:
    first = fn(18, 52, 171, 205)
    assert first == 0x1234ABCD == 305441741
    assert all(fn(18, 52, 171, 205) == first for _ in range(100))


def test_fractional_lanes_truncate_toward_zero() -> None:
    assert hash_value(18.9, 52.1, 171.5, 205.99) == 305441741
    assert truncate_to_int(3.9) == 3
    assert truncate_to_int(-3.9) == -3


def test_truncate_wraps_to_signed_32_bit() -> None:
    assert truncate_to_int(2**31) == -(2**31)
    assert truncate_to_int(2**32 + 5) == 5
    assert truncate_to_int(-1) == -1


def test_truncate_coerces_numeric_strings_like_the_host() -> None:
    assert truncate_to_int("12") == 12
    with pytest.raises(ValueError):
        truncate_to_int("twelve")
    with pytest.raises(TypeError):
        truncate_to_int(None)


# masked policy


def test_masked_policy_discards_out_of_range_bits() -> None:
    assert hash_value(256, 0, 0, 0) == 0
    assert hash_value(0, 256, 0, 0) == 0
    assert hash_value(0, 0, 0, 0x1FF) == 0xFF
    assert hash_value(-1, 0, 0, 0) == 0xFF000000


# legacy (unmasked) policy


def test_legacy_policy_bleeds_into_neighbouring_lanes() -> None:
    # bit 32 falls off the 32-bit pattern
    assert hash_value_legacy(256, 0, 0, 0) == 0
    assert hash_value_legacy(0, 256, 0, 0) == 16777216
    assert hash_value_legacy(0, 0, 0, 256) == 256
    assert hash_value_legacy(0, 0, 0, 0x1FF) == 0x1FF


def test_legacy_policy_negative_lane_sets_high_bits() -> None:
    assert hash_value_legacy(0, 0, 0, -1) == UINT32_MASK
    assert hash_value_legacy(0, 0, -1, 0) == 0xFFFFFF00


def test_pack_digest_reads_lanes_little_endian() -> None:
    d = bytes([0x01, 0x02, 0x03, 0x04, 0xAA, 0xBB, 0xCC, 0xDD])
    assert pack_digest(d) == 0x04030201
    assert pack_digest(d, 4) == 0xDDCCBBAA


def test_pack_digest_short_digest_reads_zero() -> None:
    assert pack_digest(b"\x01") == 1
    assert pack_digest(b"", 0) == 0
    assert pack_digest(b"\x01\x02\x03\x04\x05", 4) == 5
