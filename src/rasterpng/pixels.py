"""The canonical decoded image: a flat, row-major run of RGBA pixels."""

from __future__ import annotations

from typing import Iterable, Iterator, Tuple

from .errors import InvalidImageSize

RGBA = Tuple[int, int, int, int]


class PixelBuffer:
    """Immutable RGBA pixel buffer of exactly ``width * height`` pixels.

    The pixels live in a ``bytes`` object (4 bytes per pixel) so a buffer can
    be handed to callers without exposing any codec-internal state.
    ``len(buffer)`` is the pixel count and indexing yields ``(r, g, b, a)``
    tuples.
    """

    __slots__ = ("width", "height", "_data")

    def __init__(self, width: int, height: int, data: bytes) -> None:
        if len(data) != width * height * 4:
            raise InvalidImageSize(
                f"Expected {width * height * 4} bytes for a {width}x{height} image, got {len(data)}"
            )
        self.width = width
        self.height = height
        self._data = bytes(data)

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes | bytearray | memoryview) -> "PixelBuffer":
        return cls(width, height, bytes(data))

    @classmethod
    def from_pixels(cls, width: int, height: int, pixels: Iterable[RGBA]) -> "PixelBuffer":
        data = bytearray()
        for pixel in pixels:
            data.extend(pixel)
        return cls(width, height, bytes(data))

    @classmethod
    def blank(cls, width: int, height: int, color: RGBA = (0, 0, 0, 0)) -> "PixelBuffer":
        return cls(width, height, bytes(color) * (width * height))

    def __len__(self) -> int:
        return self.width * self.height

    def __getitem__(self, index: int) -> RGBA:
        if index < 0:
            index += len(self)
        if not 0 <= index < len(self):
            raise IndexError("pixel index out of range")
        offset = index * 4
        r, g, b, a = self._data[offset : offset + 4]
        return r, g, b, a

    def __iter__(self) -> Iterator[RGBA]:
        for offset in range(0, len(self._data), 4):
            r, g, b, a = self._data[offset : offset + 4]
            yield r, g, b, a

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return (self.width, self.height, self._data) == (other.width, other.height, other._data)

    def __hash__(self) -> int:
        return hash((self.width, self.height, self._data))

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"PixelBuffer({self.width}x{self.height})"

    def pixel(self, x: int, y: int) -> RGBA:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} image")
        return self[y * self.width + x]

    def row(self, y: int) -> bytes:
        stride = self.width * 4
        return self._data[y * stride : (y + 1) * stride]

    def tobytes(self) -> bytes:
        return self._data


__all__ = ["PixelBuffer", "RGBA"]
