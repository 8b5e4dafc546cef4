"""PNG chunk model and the chunk stream parser.

A PNG stream is the 8-byte signature followed by chunks, each of which is a
4-byte big-endian length, a 4-byte type tag, ``length`` bytes of payload and a
CRC over tag and payload.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import struct
from typing import Iterator

from .crc import crc32, crc_bytes
from .cursor import ByteCursor
from .errors import CrcMismatch, EndOfData, InvalidSignature, MalformedChunk

logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

IHDR = b"IHDR"
PLTE = b"PLTE"
IDAT = b"IDAT"
IEND = b"IEND"
TRNS = b"tRNS"
GAMA = b"gAMA"

CRITICAL_TAGS = frozenset((IHDR, PLTE, IDAT, IEND))


@dataclass(frozen=True)
class Chunk:
    tag: bytes
    data: bytes
    length: int
    crc: bytes

    @classmethod
    def new(cls, tag: bytes, data: bytes = b"") -> "Chunk":
        """Build a chunk with a freshly computed length and CRC."""

        if len(tag) != 4:
            raise ValueError(f"Chunk tag must be 4 bytes, got {tag!r}")
        data = bytes(data)
        return cls(tag=bytes(tag), data=data, length=len(data), crc=crc_bytes(data, crc32(tag)))

    @property
    def name(self) -> str:
        return self.tag.decode("latin-1")

    @property
    def critical(self) -> bool:
        """One of the four chunks a decoder cannot do without."""

        return self.tag in CRITICAL_TAGS

    def computed_crc(self) -> bytes:
        return crc_bytes(self.data, crc32(self.tag))

    def crc_ok(self) -> bool:
        return self.crc == self.computed_crc()

    def to_bytes(self) -> bytes:
        return struct.pack(">I", len(self.data)) + self.tag + self.data + self.crc

    def __str__(self) -> str:  # pragma: no cover - debugging helper
        return f"Type: {self.name}, Size {self.length}, CRC: {self.crc.hex()}"


def split_signature(data: bytes | bytearray | memoryview) -> bytes:
    """Check the PNG magic and return the chunk stream that follows it."""

    data = bytes(data)
    if not data.startswith(PNG_SIGNATURE):
        raise InvalidSignature("File is not a valid PNG image")
    return data[len(PNG_SIGNATURE) :]


class ChunkReader:
    """Pulls chunks one at a time out of a post-signature byte stream.

    ``next_chunk()`` returns ``None`` once the stream is exhausted. Ancillary
    chunks with a bad CRC, unknown ones included, are dropped with a warning; a
    bad CRC on IHDR, PLTE, IDAT or IEND raises :class:`CrcMismatch`.
    """

    def __init__(self, data: bytes | bytearray | memoryview, check_crc: bool = True) -> None:
        self._cursor = ByteCursor(data)
        self.check_crc = check_crc

    def __iter__(self) -> Iterator[Chunk]:
        return self

    def __next__(self) -> Chunk:
        chunk = self.next_chunk()
        if chunk is None:
            raise StopIteration
        return chunk

    def next_chunk(self) -> Chunk | None:
        while not self._cursor.exhausted():
            chunk = self._read_chunk()
            if not self.check_crc or chunk.crc_ok():
                logger.debug("read chunk %s (%d bytes)", chunk.name, chunk.length)
                return chunk
            if chunk.critical:
                raise CrcMismatch(chunk.tag, chunk.crc, chunk.computed_crc())
            logger.warning("ignoring chunk %s with invalid CRC", chunk.name)
        return None

    def _read_chunk(self) -> Chunk:
        start = self._cursor.tell()
        try:
            length = self._cursor.read_u32()
            tag = self._cursor.read(4)
            data = self._cursor.read(length)
            crc = self._cursor.read(4)
        except EndOfData as err:
            raise MalformedChunk(f"Unexpected end of PNG data in chunk starting at offset {start}") from err
        return Chunk(tag=tag, data=data, length=length, crc=crc)


__all__ = [
    "CRITICAL_TAGS",
    "Chunk",
    "ChunkReader",
    "GAMA",
    "IDAT",
    "IEND",
    "IHDR",
    "PLTE",
    "PNG_SIGNATURE",
    "TRNS",
    "split_signature",
]
