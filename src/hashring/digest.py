"""Key digests used to place keys and virtual nodes on the continuum.

A digest is plain bytes; the ring reads it four bytes at a time.
"""

from __future__ import annotations

import hashlib
import zlib
from typing import Any, Callable, Sequence, Union

Hasher = Callable[[bytes], Union[bytes, bytearray, str, Sequence[int]]]
Algorithm = Union[str, Hasher]

DEFAULT_ALGORITHM = "md5"


def key_bytes(key: Any) -> bytes:
    if isinstance(key, (bytes, bytearray, memoryview)):
        return bytes(key)
    return str(key).encode("utf-8")


def crc32_digest(data: bytes) -> bytes:
    """Decimal form of the unsigned CRC-32, as ASCII bytes.

    Older memcached clients hash with crc32 and read the digit characters,
    not the raw checksum bytes.
    """

    crc = zlib.crc32(data) & 0xFFFFFFFF
    return str(crc).encode("ascii")


def _coerce(result: Any) -> bytes:
    if isinstance(result, (bytes, bytearray, memoryview)):
        return bytes(result)
    if isinstance(result, str):
        return result.encode("utf-8")
    try:
        return bytes(int(x) & 0xFF for x in result)
    except TypeError as e:
        raise TypeError(f"custom hasher returned {type(result).__name__}, expected bytes") from e


def digest(key: Any, algorithm: Algorithm = DEFAULT_ALGORITHM) -> bytes:
    data = key_bytes(key)
    if callable(algorithm):
        return _coerce(algorithm(data))
    if algorithm == "crc32":
        return crc32_digest(data)
    h = hashlib.new(algorithm)
    h.update(data)
    return h.digest()


def check_algorithm(algorithm: Algorithm) -> None:
    """Raise ValueError early for names hashlib does not know."""

    if callable(algorithm) or algorithm == "crc32":
        return
    if not isinstance(algorithm, str):
        raise TypeError(f"algorithm must be a name or callable, got {type(algorithm).__name__}")
    hashlib.new(algorithm)
