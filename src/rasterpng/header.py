"""Interpretation of the IHDR, PLTE, tRNS and gAMA chunks."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
import logging
import math
import struct
from typing import Dict, FrozenSet, Tuple

from .chunks import GAMA, IHDR, Chunk
from .errors import InvalidBitDepth, InvalidPalette, MalformedChunk, MalformedHeader, UnsupportedFormat

logger = logging.getLogger(__name__)

IHDR_SIZE = 13
PALETTE_SIZE = 256
GAMMA_SCALE = 100000

RGB = Tuple[int, int, int]


class ColorType(IntEnum):
    GRAYSCALE = 0
    TRUECOLOR = 2
    INDEXED = 3
    GRAYSCALE_ALPHA = 4
    TRUECOLOR_ALPHA = 6


CHANNELS: Dict[int, int] = {
    ColorType.GRAYSCALE: 1,
    ColorType.TRUECOLOR: 3,
    ColorType.INDEXED: 1,
    ColorType.GRAYSCALE_ALPHA: 2,
    ColorType.TRUECOLOR_ALPHA: 4,
}

ALLOWED_BIT_DEPTHS: Dict[int, FrozenSet[int]] = {
    ColorType.GRAYSCALE: frozenset({1, 2, 4, 8, 16}),
    ColorType.TRUECOLOR: frozenset({8, 16}),
    ColorType.INDEXED: frozenset({1, 2, 4, 8}),
    ColorType.GRAYSCALE_ALPHA: frozenset({8, 16}),
    ColorType.TRUECOLOR_ALPHA: frozenset({8, 16}),
}


def valid_bit_depth(color_type: int, bit_depth: int) -> bool:
    return bit_depth in ALLOWED_BIT_DEPTHS.get(color_type, frozenset())


@dataclass(frozen=True)
class ImageHeader:
    width: int
    height: int
    bit_depth: int = 8
    color_type: int = ColorType.TRUECOLOR_ALPHA
    compression_method: int = 0
    filter_method: int = 0
    interlace_method: int = 0

    @property
    def channels(self) -> int:
        return CHANNELS.get(self.color_type, 1)

    @property
    def bits_per_pixel(self) -> int:
        return self.bit_depth * self.channels

    @property
    def bytes_per_pixel(self) -> int:
        """Distance between the bytes a filter predictor compares, at least 1."""

        return max(1, math.ceil(self.bits_per_pixel / 8))

    @property
    def row_length(self) -> int:
        """Bytes in one scanline, excluding the filter tag."""

        return math.ceil(self.bits_per_pixel * self.width / 8)

    def to_bytes(self) -> bytes:
        return struct.pack(
            ">IIBBBBB",
            self.width,
            self.height,
            self.bit_depth,
            self.color_type,
            self.compression_method,
            self.filter_method,
            self.interlace_method,
        )

    def to_chunk(self) -> Chunk:
        return Chunk.new(IHDR, self.to_bytes())


def parse_header(payload: bytes) -> ImageHeader:
    """Decode and validate a 13-byte IHDR payload."""

    if len(payload) != IHDR_SIZE:
        raise MalformedHeader(f"Invalid IHDR chunk length: {len(payload)}")
    width, height, bit_depth, color_type, compression, filter_method, interlace = struct.unpack(
        ">IIBBBBB", payload
    )
    if width == 0 or height == 0:
        raise MalformedHeader(f"Image dimensions must be non-zero, got {width}x{height}")
    if not valid_bit_depth(color_type, bit_depth):
        raise InvalidBitDepth(
            f"Invalid color type bit depth combination: c: {color_type}, bd: {bit_depth}"
        )
    if compression != 0 or filter_method != 0:
        raise UnsupportedFormat("Unsupported PNG compression or filter method")
    if interlace != 0:
        raise UnsupportedFormat("Interlaced PNG images are not supported")
    return ImageHeader(
        width=width,
        height=height,
        bit_depth=bit_depth,
        color_type=color_type,
        compression_method=compression,
        filter_method=filter_method,
        interlace_method=interlace,
    )


@dataclass(frozen=True)
class PaletteTable:
    """Always 256 entries; slots past ``declared`` are opaque black."""

    colors: Tuple[RGB, ...] = ((0, 0, 0),) * PALETTE_SIZE
    declared: int = 0

    def __len__(self) -> int:
        return len(self.colors)

    def __getitem__(self, index: int) -> RGB:
        return self.colors[index]


def parse_palette(payload: bytes) -> PaletteTable:
    if len(payload) % 3:
        raise InvalidPalette(f"PLTE length {len(payload)} is not divisible by 3")
    declared = len(payload) // 3
    if declared > PALETTE_SIZE:
        raise InvalidPalette(f"PLTE declares {declared} entries, at most {PALETTE_SIZE} allowed")
    colors = list(struct.iter_unpack("!3B", payload))
    colors.extend([(0, 0, 0)] * (PALETTE_SIZE - declared))
    return PaletteTable(colors=tuple(colors), declared=declared)


@dataclass(frozen=True)
class TransparencyTable:
    """Per-index alpha values (indexed images) or a colour key.

    ``key`` is in raw sample units: a 1-tuple for grayscale, a 3-tuple for
    truecolor.
    """

    alphas: Tuple[int, ...] = (255,) * PALETTE_SIZE
    key: Tuple[int, ...] | None = None


OPAQUE = TransparencyTable()


def parse_transparency(payload: bytes, header: ImageHeader) -> TransparencyTable:
    if header.color_type == ColorType.INDEXED:
        alphas = list(payload[:PALETTE_SIZE])
        if len(payload) > PALETTE_SIZE:
            logger.warning("tRNS holds %d entries, keeping the first %d", len(payload), PALETTE_SIZE)
        alphas.extend([255] * (PALETTE_SIZE - len(alphas)))
        return TransparencyTable(alphas=tuple(alphas))
    if header.color_type == ColorType.GRAYSCALE and len(payload) == 2:
        return TransparencyTable(key=struct.unpack(">H", payload))
    if header.color_type == ColorType.TRUECOLOR and len(payload) == 6:
        return TransparencyTable(key=struct.unpack(">3H", payload))
    logger.warning(
        "ignoring tRNS chunk of %d bytes for color type %d", len(payload), header.color_type
    )
    return OPAQUE


def parse_gamma(payload: bytes) -> float:
    if len(payload) != 4:
        raise MalformedChunk(f"Invalid gamma data size: {len(payload)}")
    return struct.unpack(">I", payload)[0] / GAMMA_SCALE


def gamma_chunk(gamma: float) -> Chunk:
    return Chunk.new(GAMA, struct.pack(">I", int(round(gamma * GAMMA_SCALE))))


__all__ = [
    "ALLOWED_BIT_DEPTHS",
    "ColorType",
    "ImageHeader",
    "OPAQUE",
    "PaletteTable",
    "TransparencyTable",
    "gamma_chunk",
    "parse_gamma",
    "parse_header",
    "parse_palette",
    "parse_transparency",
    "valid_bit_depth",
]
