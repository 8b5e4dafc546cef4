"""PNG encoder.

Output is always 8-bit truecolor with alpha, no interlacing, and every
scanline uses filter type None.
"""

from __future__ import annotations

from io import BytesIO
from typing import BinaryIO, Iterable, List, Sequence

from .chunks import IDAT, IEND, PNG_SIGNATURE, Chunk
from .compression import DEFAULT_LEVEL, compress
from .errors import InvalidImageSize
from .filters import FilterType
from .header import ColorType, ImageHeader
from .pixels import RGBA, PixelBuffer


def assemble_png(chunks: Iterable[Chunk]) -> bytes:
    """Concatenate the signature and the serialized *chunks*."""

    buffer = BytesIO()
    buffer.write(PNG_SIGNATURE)
    for chunk in chunks:
        buffer.write(chunk.to_bytes())
    return buffer.getvalue()


class PngWriter:
    """Serializes a pixel buffer plus optional auxiliary chunks.

    Auxiliary chunks are written after IDAT and before IEND, in the order they
    were added.
    """

    def __init__(
        self,
        width: int,
        height: int,
        pixels: PixelBuffer | Sequence[RGBA],
        level: int = DEFAULT_LEVEL,
    ) -> None:
        if width <= 0 or height <= 0:
            raise InvalidImageSize(f"Image dimensions must be positive, got {width}x{height}")
        if len(pixels) != width * height:
            raise InvalidImageSize(
                f"Invalid image size: {len(pixels)} pixels for a {width}x{height} image"
            )
        if not isinstance(pixels, PixelBuffer):
            pixels = PixelBuffer.from_pixels(width, height, pixels)
        elif (pixels.width, pixels.height) != (width, height):
            pixels = PixelBuffer.from_bytes(width, height, pixels.tobytes())
        self.width = width
        self.height = height
        self.pixels = pixels
        self.level = level
        self.chunks: List[Chunk] = []

    def add_chunk(self, chunk: Chunk) -> None:
        self.chunks.append(chunk)

    def remove_chunks(self, tag: bytes) -> None:
        self.chunks = [chunk for chunk in self.chunks if chunk.tag != tag]

    def remove(self, index: int) -> None:
        del self.chunks[index]

    def get_chunk(self, index: int) -> Chunk | None:
        if -len(self.chunks) <= index < len(self.chunks):
            return self.chunks[index]
        return None

    def header(self) -> ImageHeader:
        return ImageHeader(
            width=self.width,
            height=self.height,
            bit_depth=8,
            color_type=ColorType.TRUECOLOR_ALPHA,
            compression_method=0,
            filter_method=0,
            interlace_method=0,
        )

    def image_data(self) -> bytes:
        """Raw scanlines, each prefixed with the None filter tag."""

        rows = []
        for y in range(self.height):
            rows.append(bytes((FilterType.NONE,)) + self.pixels.row(y))
        return b"".join(rows)

    def iter_chunks(self) -> Iterable[Chunk]:
        yield self.header().to_chunk()
        yield Chunk.new(IDAT, compress(self.image_data(), self.level))
        yield from self.chunks
        yield Chunk.new(IEND)

    def write(self, stream: BinaryIO) -> None:
        stream.write(self.to_bytes())

    def to_bytes(self) -> bytes:
        return assemble_png(self.iter_chunks())


def encode_png(
    pixels: PixelBuffer | Sequence[RGBA],
    width: int,
    height: int,
    chunks: Iterable[Chunk] = (),
    level: int = DEFAULT_LEVEL,
) -> bytes:
    writer = PngWriter(width, height, pixels, level=level)
    for chunk in chunks:
        writer.add_chunk(chunk)
    return writer.to_bytes()


__all__ = ["PngWriter", "assemble_png", "encode_png"]
