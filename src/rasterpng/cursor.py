"""Sequential reader over an in-memory byte buffer."""

from __future__ import annotations

import struct

from .errors import EndOfData


class ByteCursor:
    """Hands out fixed-length slices of *data* in order.

    A read that cannot be satisfied raises :class:`EndOfData` and leaves the
    position untouched, so callers can report where the stream broke off.
    """

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self._data = bytes(data)
        self._index = 0

    def __len__(self) -> int:
        return len(self._data)

    def tell(self) -> int:
        return self._index

    def remaining(self) -> int:
        return len(self._data) - self._index

    def exhausted(self) -> bool:
        return self._index >= len(self._data)

    def read(self, size: int) -> bytes:
        if size < 0:
            raise ValueError("Cannot read a negative number of bytes")
        if size > self.remaining():
            raise EndOfData(
                f"Tried to read {size} bytes at offset {self._index}, only {self.remaining()} left"
            )
        value = self._data[self._index : self._index + size]
        self._index += size
        return value

    def read_u32(self) -> int:
        return struct.unpack(">I", self.read(4))[0]


__all__ = ["ByteCursor"]
