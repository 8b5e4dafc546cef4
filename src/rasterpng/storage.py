"""File helpers around the in-memory codec."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence

from .chunks import Chunk
from .pixels import RGBA, PixelBuffer
from .png import DecodedImage, DecodeOptions, decode_png
from .writer import encode_png


def load_png(path: str | Path, options: DecodeOptions = DecodeOptions()) -> DecodedImage:
    data = Path(path).read_bytes()
    return decode_png(data, options)


def save_png(
    path: str | Path,
    pixels: PixelBuffer | Sequence[RGBA],
    width: int,
    height: int,
    chunks: Iterable[Chunk] = (),
) -> None:
    png_bytes = encode_png(pixels, width, height, chunks)
    Path(path).write_bytes(png_bytes)


__all__ = ["load_png", "save_png"]
