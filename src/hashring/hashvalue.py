"""Byte packing primitives for the hash ring.

Four byte lanes are combined into one unsigned 32-bit value, most
significant lane first:

    b0 -> bits 24-31, b1 -> bits 16-23, b2 -> bits 8-15, b3 -> bits 0-7

Two policies are provided:
  - `hash_value`: each lane is masked to 8 bits before shifting.
  - `hash_value_legacy`: lanes are shifted at full width, so out-of-range
    lanes bleed into their neighbours (bit-compatible with the historic
    native extension).

Both are pure and always return an int in [0, 0xFFFFFFFF].
"""

from __future__ import annotations

from typing import Any, Sequence

UINT32_MASK = 0xFFFFFFFF
BYTE_MASK = 0xFF

_INT32_SIGN = 0x80000000
_INT32_SPAN = 0x100000000


def truncate_to_int(value: Any) -> int:
    """C-style `(int) value`: truncate toward zero, wrap to signed 32-bit.

    Non-numeric input raises whatever `int()` raises for it.
    """

    n = int(value)
    return ((n + _INT32_SIGN) % _INT32_SPAN) - _INT32_SIGN


def hash_value(b0: Any, b1: Any, b2: Any, b3: Any) -> int:
    return (
        ((truncate_to_int(b0) & BYTE_MASK) << 24)
        | ((truncate_to_int(b1) & BYTE_MASK) << 16)
        | ((truncate_to_int(b2) & BYTE_MASK) << 8)
        | (truncate_to_int(b3) & BYTE_MASK)
    )


def hash_value_legacy(b0: Any, b1: Any, b2: Any, b3: Any) -> int:
    """Unmasked packing; the 32-bit result pattern is read as unsigned."""

    packed = (
        (truncate_to_int(b0) << 24)
        | (truncate_to_int(b1) << 16)
        | (truncate_to_int(b2) << 8)
        | truncate_to_int(b3)
    )
    return packed & UINT32_MASK


def pack_digest(digest: Sequence[int], offset: int = 0) -> int:
    """Pack four digest bytes the ketama way (little-endian lane order).

    Reads digest[offset + 3], [offset + 2], [offset + 1], [offset]. Bytes
    past the end of the digest read as 0.
    """

    lanes = [digest[i] if i < len(digest) else 0 for i in range(offset, offset + 4)]
    return hash_value(lanes[3], lanes[2], lanes[1], lanes[0])
