"""Table-driven CRC-32 as used by PNG chunks.

See https://www.w3.org/TR/png/#D-CRCAppendix. The result is identical to
``zlib.crc32``.
"""

from __future__ import annotations

from typing import Tuple

POLYNOMIAL = 0xEDB88320


def _make_table() -> Tuple[int, ...]:
    table = []
    for n in range(256):
        c = n
        for _ in range(8):
            if c & 1:
                c = POLYNOMIAL ^ (c >> 1)
            else:
                c >>= 1
        table.append(c)
    return tuple(table)


# CRCs of all 8-bit messages
CRC_TABLE: Tuple[int, ...] = _make_table()


def crc32(data: bytes | bytearray | memoryview, crc: int = 0) -> int:
    """Return the CRC of *data*, continuing from a previous result *crc*."""

    c = crc ^ 0xFFFFFFFF
    for byte in bytes(data):
        c = CRC_TABLE[(c ^ byte) & 0xFF] ^ (c >> 8)
    return c ^ 0xFFFFFFFF


def crc_bytes(data: bytes | bytearray | memoryview, crc: int = 0) -> bytes:
    return crc32(data, crc).to_bytes(4, "big")


__all__ = ["CRC_TABLE", "POLYNOMIAL", "crc32", "crc_bytes"]
