from __future__ import annotations

import base64
import struct
import zlib

import pytest

from rasterpng import (
    CrcMismatch,
    DecodeOptions,
    DecompressionFailure,
    InvalidSignature,
    MalformedChunk,
    MalformedHeader,
    MissingIEND,
    MissingPalette,
    PNGFormatError,
    TruncatedImageData,
    UnsupportedFormat,
    decode_png,
    read_png,
)
from rasterpng.chunks import IDAT, IEND, PLTE, TRNS, Chunk
from rasterpng.filters import FilterType, apply_filter
from rasterpng.header import ColorType, ImageHeader, gamma_chunk
from rasterpng.writer import assemble_png


SAMPLE_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAIAAACQd1PeAAAADElEQVR4nGP4z8AAAAMBAQDJ/pLvAAAAAElFTkSuQmCC"
)


def make_png(header: ImageHeader, rows: list[bytes], *extra: Chunk, filters: list[int] | None = None) -> bytes:
    """Build a PNG from unfiltered *rows*, filtering row i with ``filters[i]``."""

    filters = filters or [FilterType.NONE] * len(rows)
    previous = bytes(header.row_length)
    scanlines = []
    for filter_type, row in zip(filters, rows):
        scanlines.append(bytes([filter_type]) + apply_filter(filter_type, row, previous, header.bytes_per_pixel))
        previous = row
    idat = Chunk.new(IDAT, zlib.compress(b"".join(scanlines)))
    return assemble_png([header.to_chunk(), *extra, idat, Chunk.new(IEND)])


def flip_bit(data: bytes, offset: int, bit: int = 0) -> bytes:
    out = bytearray(data)
    out[offset] ^= 1 << bit
    return bytes(out)


def test_parse_png_metadata() -> None:
    parsed = read_png(SAMPLE_PNG)
    assert parsed.width == 1
    assert parsed.height == 1
    assert parsed.header.bit_depth == 8
    assert parsed.header.color_type == 2
    assert parsed.idat
    assert parsed.other_chunks == []


def test_decode_sample_png() -> None:
    image = decode_png(SAMPLE_PNG)
    assert (image.width, image.height) == (1, 1)
    assert image.pixels[0] == (255, 0, 0, 255)


def test_parse_png_rejects_non_png() -> None:
    try:
        read_png(b"not png data")
    except PNGFormatError:
        pass
    else:  # pragma: no cover - defensive branch
        raise AssertionError("PNGFormatError was not raised")


@pytest.mark.parametrize("prefix", [b"", b"GIF89a", SAMPLE_PNG[:7], b"\x00" + SAMPLE_PNG[1:]])
def test_signature_rejection(prefix: bytes) -> None:
    with pytest.raises(InvalidSignature):
        decode_png(prefix + SAMPLE_PNG[8:])


def idat_offset(data: bytes) -> int:
    """Offset of the first IDAT payload byte."""

    return data.index(IDAT) + 4


@pytest.mark.parametrize("bit", [0, 3, 7])
def test_flipped_bit_in_idat_payload_fails_crc(bit: int) -> None:
    corrupted = flip_bit(SAMPLE_PNG, idat_offset(SAMPLE_PNG) + 2, bit)
    with pytest.raises(CrcMismatch) as excinfo:
        decode_png(corrupted)
    assert excinfo.value.tag == IDAT


def test_flipped_bit_in_idat_crc_fails() -> None:
    start = idat_offset(SAMPLE_PNG)
    length = struct.unpack(">I", SAMPLE_PNG[start - 8 : start - 4])[0]
    corrupted = flip_bit(SAMPLE_PNG, start + length + 1, 5)
    with pytest.raises(CrcMismatch):
        decode_png(corrupted)


def test_bad_crc_in_ancillary_chunk_is_tolerated() -> None:
    header = ImageHeader(2, 1, 8, ColorType.TRUECOLOR)
    text = Chunk.new(b"tEXt", b"Comment\x00hello")
    data = make_png(header, [bytes([1, 2, 3, 4, 5, 6])], text)
    tag_at = data.index(b"tEXt")
    corrupted = flip_bit(data, tag_at + 4 + len(text.data), 1)
    image = read_png(corrupted)
    assert image.other_chunks == []
    assert list(image.pixels()) == [(1, 2, 3, 255), (4, 5, 6, 255)]


def test_crc_checks_can_be_disabled() -> None:
    corrupted = flip_bit(SAMPLE_PNG, len(SAMPLE_PNG) - 1)
    with pytest.raises(CrcMismatch):
        decode_png(corrupted)
    image = decode_png(corrupted, DecodeOptions(check_crc=False))
    assert image.pixels[0] == (255, 0, 0, 255)


def test_truncated_stream_is_malformed() -> None:
    with pytest.raises(MalformedChunk):
        decode_png(SAMPLE_PNG[:-3])


def test_missing_iend_policy() -> None:
    without_iend = SAMPLE_PNG[: SAMPLE_PNG.index(IEND) - 4]
    with pytest.raises(MissingIEND):
        decode_png(without_iend)
    image = decode_png(without_iend, DecodeOptions(require_iend=False))
    assert image.pixels[0] == (255, 0, 0, 255)


def test_chunks_after_iend_are_ignored() -> None:
    trailing = Chunk(tag=b"JUNK", data=b"", length=0, crc=b"\x00\x00\x00\x00").to_bytes()
    assert decode_png(SAMPLE_PNG + trailing).pixels[0] == (255, 0, 0, 255)


def test_ihdr_must_come_first() -> None:
    header = ImageHeader(1, 1, 8, ColorType.GRAYSCALE)
    idat = Chunk.new(IDAT, zlib.compress(b"\x00\x80"))
    data = assemble_png([idat, header.to_chunk(), Chunk.new(IEND)])
    with pytest.raises(MalformedHeader):
        decode_png(data)
    with pytest.raises(MalformedHeader):
        decode_png(assemble_png([]))


def test_malformed_ihdr_payload() -> None:
    data = assemble_png([Chunk.new(b"IHDR", bytes(12)), Chunk.new(IEND)])
    with pytest.raises(MalformedHeader):
        decode_png(data)


def test_interlaced_image_is_rejected() -> None:
    header = ImageHeader(1, 1, 8, ColorType.GRAYSCALE, interlace_method=1)
    with pytest.raises(UnsupportedFormat):
        decode_png(make_png(header, [b"\x00"]))


def test_image_without_idat() -> None:
    header = ImageHeader(1, 1, 8, ColorType.GRAYSCALE)
    with pytest.raises(TruncatedImageData):
        decode_png(assemble_png([header.to_chunk(), Chunk.new(IEND)]))


def test_corrupt_zlib_stream() -> None:
    header = ImageHeader(1, 1, 8, ColorType.GRAYSCALE)
    data = assemble_png([header.to_chunk(), Chunk.new(IDAT, b"definitely not zlib"), Chunk.new(IEND)])
    with pytest.raises(DecompressionFailure):
        decode_png(data)


def test_too_few_rows() -> None:
    header = ImageHeader(2, 3, 8, ColorType.GRAYSCALE)
    data = make_png(header, [b"\x01\x02", b"\x03\x04"])
    with pytest.raises(TruncatedImageData):
        decode_png(data)


def test_idat_may_be_split() -> None:
    header = ImageHeader(2, 2, 8, ColorType.GRAYSCALE)
    compressed = zlib.compress(b"\x00\x10\x20\x00\x30\x40")
    chunks = [header.to_chunk()]
    chunks += [Chunk.new(IDAT, compressed[i : i + 3]) for i in range(0, len(compressed), 3)]
    chunks.append(Chunk.new(IEND))
    image = decode_png(assemble_png(chunks))
    assert [pixel[0] for pixel in image.pixels] == [0x10, 0x20, 0x30, 0x40]


def test_every_filter_type_decodes() -> None:
    header = ImageHeader(3, 5, 8, ColorType.TRUECOLOR)
    rows = [bytes((x * 40 + y * 13 + c * 70) % 256 for x in range(3) for c in range(3)) for y in range(5)]
    data = make_png(header, rows, filters=list(FilterType))
    image = decode_png(data)
    expected = [tuple(row[i : i + 3]) + (255,) for row in rows for i in range(0, 9, 3)]
    assert list(image.pixels) == expected


def test_indexed_image_with_transparency() -> None:
    header = ImageHeader(3, 2, 2, ColorType.INDEXED)
    palette = Chunk.new(PLTE, bytes([255, 0, 0, 0, 255, 0, 0, 0, 255]))
    trns = Chunk.new(TRNS, bytes([0]))
    rows = [bytes([0b00011000]), bytes([0b10010000])]
    image = decode_png(make_png(header, rows, palette, trns))
    assert list(image.pixels) == [
        (255, 0, 0, 0),
        (0, 255, 0, 255),
        (0, 0, 255, 255),
        (0, 0, 255, 255),
        (0, 255, 0, 255),
        (255, 0, 0, 0),
    ]


def test_missing_palette_policy() -> None:
    header = ImageHeader(2, 1, 8, ColorType.INDEXED)
    data = make_png(header, [bytes([0, 1])])
    with pytest.raises(MissingPalette):
        decode_png(data)
    image = decode_png(data, DecodeOptions(require_palette=False))
    assert list(image.pixels) == [(0, 0, 0, 255), (0, 0, 0, 255)]


def test_grayscale_sixteen_bit_image_with_key() -> None:
    header = ImageHeader(2, 1, 16, ColorType.GRAYSCALE)
    trns = Chunk.new(TRNS, struct.pack(">H", 0x1234))
    image = decode_png(make_png(header, [struct.pack(">2H", 0x1234, 0xFFFF)], trns))
    assert list(image.pixels) == [(18, 18, 18, 0), (255, 255, 255, 255)]


def test_gamma_and_unknown_chunks_are_kept() -> None:
    header = ImageHeader(1, 1, 8, ColorType.GRAYSCALE)
    text = Chunk.new(b"tEXt", b"Software\x00rasterpng")
    image = read_png(make_png(header, [b"\x7f"], gamma_chunk(0.5), text))
    assert image.gamma == pytest.approx(0.5)
    assert image.other_chunks == [text]
    assert image.image_data() == b"\x7f"


def test_malformed_gamma_is_ignored() -> None:
    header = ImageHeader(1, 1, 8, ColorType.GRAYSCALE)
    image = read_png(make_png(header, [b"\x7f"], Chunk.new(b"gAMA", b"\x01")))
    assert image.gamma is None
    assert image.pixels()[0] == (127, 127, 127, 255)


def test_unknown_uppercase_chunk_with_bad_crc_is_skipped() -> None:
    header = ImageHeader(1, 1, 8, ColorType.GRAYSCALE)
    unknown = Chunk(tag=b"ZZZZ", data=b"", length=0, crc=b"\x00\x00\x00\x00")
    image = read_png(make_png(header, [b"\x7f"], unknown))
    assert image.other_chunks == []
    assert image.pixels()[0] == (127, 127, 127, 255)
