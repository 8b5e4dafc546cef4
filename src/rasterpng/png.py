"""PNG decoder.

Supports every non-interlaced colour type and bit depth of the PNG
specification and always produces 8-bit RGBA pixels: 16-bit samples are
downscaled, palettes and tRNS transparency are resolved. Chunks other than
IHDR, PLTE, IDAT, IEND, tRNS and gAMA are kept verbatim in
:attr:`PngImage.other_chunks` but not interpreted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import List, Optional

from .chunks import GAMA, IDAT, IEND, IHDR, PLTE, TRNS, Chunk, ChunkReader, split_signature
from .compression import decompress
from .errors import MalformedChunk, MalformedHeader, MissingIEND, MissingPalette, TruncatedImageData
from .filters import defilter
from .header import (
    ColorType,
    ImageHeader,
    PaletteTable,
    TransparencyTable,
    parse_gamma,
    parse_header,
    parse_palette,
    parse_transparency,
)
from .pixels import PixelBuffer
from .unpack import unpack_pixels

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodeOptions:
    """Policy switches for :func:`read_png`.

    check_crc:
        Verify chunk CRCs. Bad critical chunks are fatal, bad ancillary
        chunks are skipped.
    require_iend:
        Treat a stream without IEND as an error rather than a warning.
    require_palette:
        Treat an indexed image without PLTE as an error. When disabled the
        image decodes against an all-black palette.
    """

    check_crc: bool = True
    require_iend: bool = True
    require_palette: bool = True


@dataclass
class PngImage:
    """A parsed PNG whose pixel data is still compressed."""

    header: ImageHeader
    idat: bytes
    palette: Optional[PaletteTable] = None
    transparency: Optional[TransparencyTable] = None
    gamma: Optional[float] = None
    other_chunks: List[Chunk] = field(default_factory=list)

    @property
    def width(self) -> int:
        return self.header.width

    @property
    def height(self) -> int:
        return self.header.height

    def image_data(self) -> bytes:
        """Decompressed and defiltered scanline bytes."""

        return defilter(decompress(self.idat), self.header)

    def pixels(self) -> PixelBuffer:
        return unpack_pixels(self.image_data(), self.header, self.palette, self.transparency)


@dataclass(frozen=True)
class DecodedImage:
    width: int
    height: int
    pixels: PixelBuffer


def read_png(data: bytes, options: DecodeOptions = DecodeOptions()) -> PngImage:
    """Parse the chunk structure of PNG *data* without decompressing it."""

    reader = ChunkReader(split_signature(data), check_crc=options.check_crc)

    header: ImageHeader | None = None
    palette: PaletteTable | None = None
    transparency: TransparencyTable | None = None
    gamma: float | None = None
    idat_chunks: List[bytes] = []
    other_chunks: List[Chunk] = []
    iend_found = False

    for chunk in reader:
        if header is None:
            if chunk.tag != IHDR:
                raise MalformedHeader(f"Expected IHDR as first chunk, found {chunk.name}")
            header = parse_header(chunk.data)
        elif chunk.tag == IHDR:
            logger.warning("ignoring duplicate IHDR chunk")
        elif chunk.tag == IDAT:
            idat_chunks.append(chunk.data)
        elif chunk.tag == PLTE:
            palette = parse_palette(chunk.data)
        elif chunk.tag == TRNS:
            transparency = parse_transparency(chunk.data, header)
        elif chunk.tag == GAMA:
            try:
                gamma = parse_gamma(chunk.data)
            except MalformedChunk as err:
                logger.warning("ignoring gAMA chunk: %s", err)
        elif chunk.tag == IEND:
            iend_found = True
            break
        else:
            other_chunks.append(chunk)

    if header is None:
        raise MalformedHeader("Missing IHDR chunk in PNG data")

    if not iend_found:
        if options.require_iend:
            raise MissingIEND("IEND chunk not found")
        logger.warning("IEND chunk not found, decoding anyway")

    if header.color_type == ColorType.INDEXED and palette is None:
        if options.require_palette:
            raise MissingPalette("Indexed-color image has no PLTE chunk")
        logger.warning("indexed-color image has no PLTE chunk, using a black palette")
        palette = PaletteTable()

    if not idat_chunks:
        raise TruncatedImageData("PNG file has no image data")

    return PngImage(
        header=header,
        idat=b"".join(idat_chunks),
        palette=palette,
        transparency=transparency,
        gamma=gamma,
        other_chunks=other_chunks,
    )


def decode_png(data: bytes, options: DecodeOptions = DecodeOptions()) -> DecodedImage:
    """Decode PNG *data* into an RGBA :class:`PixelBuffer`."""

    image = read_png(data, options)
    return DecodedImage(width=image.width, height=image.height, pixels=image.pixels())


__all__ = ["DecodeOptions", "DecodedImage", "PngImage", "decode_png", "read_png"]
