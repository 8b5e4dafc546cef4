"""zlib adapter used for IDAT payloads."""

from __future__ import annotations

import zlib

from .errors import DecompressionFailure

DEFAULT_LEVEL = 6


def compress(data: bytes, level: int = DEFAULT_LEVEL) -> bytes:
    return zlib.compress(bytes(data), level)


def decompress(data: bytes) -> bytes:
    try:
        return zlib.decompress(bytes(data))
    except zlib.error as err:
        raise DecompressionFailure(f"Could not inflate image data: {err}") from err


__all__ = ["DEFAULT_LEVEL", "compress", "decompress"]
