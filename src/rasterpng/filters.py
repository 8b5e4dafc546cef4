"""Scanline filtering.

Each scanline of the decompressed image data starts with a filter tag byte
that says how the remaining bytes were predicted from their neighbours. See
https://www.w3.org/TR/png/#9Filters. Reconstruction must run row by row in
order because every row is predicted from the previous, already reconstructed
one.
"""

from __future__ import annotations

from enum import IntEnum
import logging
from typing import Iterator

from .cursor import ByteCursor
from .errors import EndOfData, TruncatedImageData
from .header import ImageHeader

logger = logging.getLogger(__name__)


class FilterType(IntEnum):
    NONE = 0
    SUB = 1
    UP = 2
    AVERAGE = 3
    PAETH = 4


def paeth(a: int, b: int, c: int) -> int:
    """Paeth predictor: whichever of left, above, upper-left is closest to a + b - c."""

    p = a + b - c
    pa = abs(p - a)
    pb = abs(p - b)
    pc = abs(p - c)
    if pa <= pb and pa <= pc:
        return a
    if pb <= pc:
        return b
    return c


def unfilter_row(filter_type: int, row: bytearray, previous_row: bytes, bpp: int) -> bytearray:
    """Reverse *filter_type* on *row* in place and return it."""

    length = len(row)
    if filter_type == FilterType.SUB:
        for j in range(bpp, length):
            row[j] = (row[j] + row[j - bpp]) & 0xFF
    elif filter_type == FilterType.UP:
        for j in range(length):
            row[j] = (row[j] + previous_row[j]) & 0xFF
    elif filter_type == FilterType.AVERAGE:
        for j in range(length):
            left = row[j - bpp] if j >= bpp else 0
            row[j] = (row[j] + ((left + previous_row[j]) >> 1)) & 0xFF
    elif filter_type == FilterType.PAETH:
        for j in range(min(bpp, length)):
            row[j] = (row[j] + previous_row[j]) & 0xFF
        for j in range(bpp, length):
            predicted = paeth(row[j - bpp], previous_row[j], previous_row[j - bpp])
            row[j] = (row[j] + predicted) & 0xFF
    elif filter_type != FilterType.NONE:
        # unknown tags decode as "no filter" instead of failing
        logger.debug("unknown filter type %d, treating row as unfiltered", filter_type)
    return row


def apply_filter(filter_type: int, row: bytes, previous_row: bytes, bpp: int) -> bytearray:
    """Forward counterpart of :func:`unfilter_row`; *row* is left untouched."""

    filter_type = FilterType(filter_type)
    out = bytearray(row)
    for j in range(len(row)):
        left = row[j - bpp] if j >= bpp else 0
        up = previous_row[j]
        upper_left = previous_row[j - bpp] if j >= bpp else 0
        if filter_type == FilterType.SUB:
            predicted = left
        elif filter_type == FilterType.UP:
            predicted = up
        elif filter_type == FilterType.AVERAGE:
            predicted = (left + up) >> 1
        elif filter_type == FilterType.PAETH:
            predicted = paeth(left, up, upper_left)
        else:
            predicted = 0
        out[j] = (row[j] - predicted) & 0xFF
    return out


class RowDecoder:
    """Yields reconstructed scanlines, one per call to :meth:`next_row`.

    The decoder keeps the previously reconstructed row (all zeros before the
    first one) and stops after *height* rows; any trailing bytes are ignored.
    """

    def __init__(self, data: bytes, row_length: int, bpp: int, height: int) -> None:
        self._cursor = ByteCursor(data)
        self.row_length = row_length
        self.bpp = bpp
        self.height = height
        self._rows_read = 0
        self._previous_row = bytes(row_length)

    def __iter__(self) -> Iterator[bytes]:
        return self

    def __next__(self) -> bytes:
        row = self.next_row()
        if row is None:
            raise StopIteration
        return row

    def next_row(self) -> bytes | None:
        if self._rows_read >= self.height:
            return None
        try:
            filter_type = self._cursor.read(1)[0]
            row = bytearray(self._cursor.read(self.row_length))
        except EndOfData as err:
            raise TruncatedImageData(
                f"Image data ends after {self._rows_read} of {self.height} rows"
            ) from err
        unfilter_row(filter_type, row, self._previous_row, self.bpp)
        self._previous_row = bytes(row)
        self._rows_read += 1
        return self._previous_row


def defilter(data: bytes, header: ImageHeader) -> bytes:
    """Reconstruct the raw scanline bytes of a whole image."""

    rows = RowDecoder(data, header.row_length, header.bytes_per_pixel, header.height)
    return b"".join(rows)


__all__ = ["FilterType", "RowDecoder", "apply_filter", "defilter", "paeth", "unfilter_row"]
