"""Expansion of defiltered scanline bytes into RGBA pixels.

The decoder dispatches on ``(color_type, bit_depth)`` through ``UNPACKERS``.
Every unpacker receives one scanline and returns ``width * 4`` bytes, so the
padding bits at the end of sub-byte rows never turn into pixels.
"""

from __future__ import annotations

import struct
from typing import Callable, Dict, List, Optional, Tuple

from .errors import TruncatedImageData
from .header import ALLOWED_BIT_DEPTHS, OPAQUE, ColorType, ImageHeader, PaletteTable, TransparencyTable
from .pixels import PixelBuffer

# bit replication factors that stretch an N-bit sample over 0..255
_SCALE = {1: 0xFF, 2: 0x55, 4: 0x11, 8: 0x01}

RowUnpacker = Callable[[bytes, int, int, PaletteTable, TransparencyTable], bytearray]


def read_samples(row: bytes, bit_depth: int, count: int) -> List[int]:
    """Split *row* into *count* unsigned samples of *bit_depth* bits, MSB first."""

    if bit_depth == 8:
        return list(row[:count])
    if bit_depth == 16:
        return list(struct.unpack(f">{count}H", row[: count * 2]))
    mask = (1 << bit_depth) - 1
    samples: List[int] = []
    for byte in row:
        for shift in range(8 - bit_depth, -1, -bit_depth):
            samples.append((byte >> shift) & mask)
    return samples[:count]


def scale_sample(sample: int, bit_depth: int) -> int:
    """Map a raw sample to 8 bits; 16-bit values are rounded to the nearest step."""

    if bit_depth == 16:
        return (sample * 255 + 32767) // 65535
    return sample * _SCALE[bit_depth]


def _grayscale(row: bytes, width: int, bit_depth: int, palette: PaletteTable, trns: TransparencyTable) -> bytearray:
    key = trns.key[0] if trns.key else None
    out = bytearray()
    for sample in read_samples(row, bit_depth, width):
        value = scale_sample(sample, bit_depth)
        out += bytes((value, value, value, 0 if sample == key else 255))
    return out


def _truecolor(row: bytes, width: int, bit_depth: int, palette: PaletteTable, trns: TransparencyTable) -> bytearray:
    samples = read_samples(row, bit_depth, width * 3)
    out = bytearray()
    for i in range(0, len(samples), 3):
        rgb = tuple(samples[i : i + 3])
        out += bytes(scale_sample(s, bit_depth) for s in rgb)
        out.append(0 if rgb == trns.key else 255)
    return out


def _indexed(row: bytes, width: int, bit_depth: int, palette: PaletteTable, trns: TransparencyTable) -> bytearray:
    out = bytearray()
    for index in read_samples(row, bit_depth, width):
        out += bytes(palette[index])
        out.append(trns.alphas[index])
    return out


def _grayscale_alpha(row: bytes, width: int, bit_depth: int, palette: PaletteTable, trns: TransparencyTable) -> bytearray:
    samples = read_samples(row, bit_depth, width * 2)
    out = bytearray()
    for i in range(0, len(samples), 2):
        value = scale_sample(samples[i], bit_depth)
        out += bytes((value, value, value, scale_sample(samples[i + 1], bit_depth)))
    return out


def _truecolor_alpha(row: bytes, width: int, bit_depth: int, palette: PaletteTable, trns: TransparencyTable) -> bytearray:
    if bit_depth == 8:
        return bytearray(row[: width * 4])
    return bytearray(scale_sample(s, bit_depth) for s in read_samples(row, bit_depth, width * 4))


_BY_COLOR_TYPE: Dict[int, RowUnpacker] = {
    ColorType.GRAYSCALE: _grayscale,
    ColorType.TRUECOLOR: _truecolor,
    ColorType.INDEXED: _indexed,
    ColorType.GRAYSCALE_ALPHA: _grayscale_alpha,
    ColorType.TRUECOLOR_ALPHA: _truecolor_alpha,
}

UNPACKERS: Dict[Tuple[int, int], RowUnpacker] = {
    (color_type, bit_depth): unpacker
    for color_type, unpacker in _BY_COLOR_TYPE.items()
    for bit_depth in ALLOWED_BIT_DEPTHS[color_type]
}


def unpack_pixels(
    raw: bytes,
    header: ImageHeader,
    palette: Optional[PaletteTable] = None,
    transparency: Optional[TransparencyTable] = None,
) -> PixelBuffer:
    """Turn defiltered image bytes into a :class:`PixelBuffer`."""

    unpacker = UNPACKERS.get((header.color_type, header.bit_depth))
    if unpacker is None:  # pragma: no cover - rejected by parse_header
        return PixelBuffer(0, 0, b"")

    row_length = header.row_length
    if len(raw) < row_length * header.height:
        raise TruncatedImageData(
            f"Expected {row_length * header.height} bytes of image data, got {len(raw)}"
        )

    palette = palette or PaletteTable()
    transparency = transparency or OPAQUE
    data = bytearray()
    for y in range(header.height):
        row = raw[y * row_length : (y + 1) * row_length]
        data += unpacker(row, header.width, header.bit_depth, palette, transparency)
    return PixelBuffer(header.width, header.height, bytes(data))


__all__ = ["UNPACKERS", "read_samples", "scale_sample", "unpack_pixels"]
