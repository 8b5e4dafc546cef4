"""In-memory PNG codec producing and consuming RGBA pixel buffers."""

from .chunks import PNG_SIGNATURE, Chunk, ChunkReader
from .errors import (
    CrcMismatch,
    DecompressionFailure,
    InvalidBitDepth,
    InvalidImageSize,
    InvalidPalette,
    InvalidSignature,
    MalformedChunk,
    MalformedHeader,
    MissingIEND,
    MissingPalette,
    PNGFormatError,
    TruncatedImageData,
    UnsupportedFormat,
)
from .header import ColorType, ImageHeader, gamma_chunk
from .pixels import PixelBuffer
from .png import DecodedImage, DecodeOptions, PngImage, decode_png, read_png
from .storage import load_png, save_png
from .writer import PngWriter, encode_png

__all__ = [
    "Chunk",
    "ChunkReader",
    "ColorType",
    "CrcMismatch",
    "DecodeOptions",
    "DecodedImage",
    "DecompressionFailure",
    "ImageHeader",
    "InvalidBitDepth",
    "InvalidImageSize",
    "InvalidPalette",
    "InvalidSignature",
    "MalformedChunk",
    "MalformedHeader",
    "MissingIEND",
    "MissingPalette",
    "PNGFormatError",
    "PNG_SIGNATURE",
    "PixelBuffer",
    "PngImage",
    "PngWriter",
    "TruncatedImageData",
    "UnsupportedFormat",
    "decode_png",
    "encode_png",
    "gamma_chunk",
    "load_png",
    "read_png",
    "save_png",
]
