"""Exceptions raised by the PNG codec.

Every error derives from :class:`PNGFormatError`, itself a ``ValueError``, so
callers that only care about "this is not a usable PNG" can catch a single
type.
"""

from __future__ import annotations


class PNGFormatError(ValueError):
    """Raised when PNG data cannot be decoded or encoded."""


class InvalidSignature(PNGFormatError):
    """The first eight bytes are not the PNG magic."""


class EndOfData(PNGFormatError):
    """A read would run past the end of the buffer."""


class MalformedChunk(PNGFormatError):
    """A chunk field could not be read within the buffer bounds."""


class CrcMismatch(PNGFormatError):
    """The stored CRC of a critical chunk does not match its contents."""

    def __init__(self, tag: bytes, expected: bytes, actual: bytes) -> None:
        self.tag = tag
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"CRC mismatch in chunk {tag!r}: stored {expected.hex()}, computed {actual.hex()}"
        )


class MalformedHeader(PNGFormatError):
    """IHDR is missing, misplaced or not exactly 13 bytes."""


class InvalidBitDepth(PNGFormatError):
    """Illegal colour type / bit depth combination."""


class InvalidPalette(PNGFormatError):
    """PLTE payload is not a whole number of RGB entries."""


class MissingPalette(PNGFormatError):
    """An indexed-colour image has no PLTE chunk."""


class MissingIEND(PNGFormatError):
    """The stream ended without an IEND chunk."""


class UnsupportedFormat(PNGFormatError):
    """Valid PNG feature that this codec does not implement (e.g. interlacing)."""


class TruncatedImageData(PNGFormatError):
    """The decompressed image data holds fewer rows than the header declares."""


class DecompressionFailure(PNGFormatError):
    """The zlib stream inside IDAT is corrupt."""


class InvalidImageSize(PNGFormatError):
    """The pixel buffer length disagrees with width * height."""


__all__ = [
    "CrcMismatch",
    "DecompressionFailure",
    "EndOfData",
    "InvalidBitDepth",
    "InvalidImageSize",
    "InvalidPalette",
    "InvalidSignature",
    "MalformedChunk",
    "MalformedHeader",
    "MissingIEND",
    "MissingPalette",
    "PNGFormatError",
    "TruncatedImageData",
    "UnsupportedFormat",
]
