import io

import pytest

from sigil.core.errors import OutOfRangeError, TruncatedInputError
from sigil.parsers.reader import ByteReader

SAMPLE = bytes(range(16))


def test_reader_little_endian_integers() -> None:
    reader = ByteReader(SAMPLE)
    assert reader.read_u8() == 0x00
    assert reader.read_u16() == 0x0201
    assert reader.read_u32() == 0x06050403
    assert reader.tell() == 7


def test_reader_big_endian_integers() -> None:
    reader = ByteReader(SAMPLE, is_big_endian=True)
    reader.seek(1)
    assert reader.read_u16() == 0x0102
    assert reader.read_u64() == 0x030405060708090A


def test_reader_word_follows_class() -> None:
    narrow = ByteReader(SAMPLE)
    wide = ByteReader(SAMPLE, is_64_bits=True)
    assert narrow.read_word() == 0x03020100
    assert narrow.tell() == 4
    assert wide.read_word() == 0x0706050403020100
    assert wide.tell() == 8
    assert narrow.word_size == 4
    assert wide.word_size == 8


def test_reader_signed_values() -> None:
    reader = ByteReader(b"\xff\xff\xff\xff\xfe\xff\xff\xff\xff\xff\xff\xff")
    assert reader.read_i32() == -1
    assert reader.read_sword() == -2
    assert ByteReader(b"\xff" * 8, is_64_bits=True).read_sword() == -1


def test_reader_configure_returns_copy() -> None:
    reader = ByteReader(SAMPLE)
    wide = reader.configure(is_64_bits=True, is_big_endian=True)
    assert wide is not reader
    assert not reader.is_64_bits
    assert not reader.is_big_endian
    assert wide.byte_order == ">"
    assert wide.read_at(0, 2) == b"\x00\x01"


def test_reader_unpack_at() -> None:
    reader = ByteReader(SAMPLE, is_big_endian=True)
    assert reader.unpack_at("HB", 2) == (0x0203, 0x04)


def test_reader_short_read_is_truncated() -> None:
    reader = ByteReader(SAMPLE)
    with pytest.raises(TruncatedInputError) as exc_info:
        reader.read_at(12, 8)
    assert exc_info.value.offset == 12
    assert exc_info.value.wanted == 8
    assert exc_info.value.available == 4


def test_reader_read_at_end_is_truncated() -> None:
    reader = ByteReader(SAMPLE)
    reader.seek(len(SAMPLE))
    with pytest.raises(TruncatedInputError):
        reader.read_u8()


def test_reader_offset_outside_source() -> None:
    reader = ByteReader(SAMPLE)
    with pytest.raises(OutOfRangeError):
        reader.seek(-1)
    with pytest.raises(OutOfRangeError):
        reader.seek(len(SAMPLE) + 1)
    with pytest.raises(OutOfRangeError):
        reader.read_at(100, 1)


def test_reader_cstring() -> None:
    reader = ByteReader(b"abc\x00def\x00gh")
    assert reader.read_cstring(0) == b"abc"
    assert reader.read_cstring(4) == b"def"
    assert reader.read_cstring(1, limit=2) == b"b"
    assert reader.read_cstring(8) == b"gh"


def test_reader_stream_mode_matches_buffer_mode() -> None:
    stream = ByteReader(io.BytesIO(SAMPLE), is_big_endian=True)
    buffer = ByteReader(SAMPLE, is_big_endian=True)
    assert not stream.is_buffered
    assert buffer.is_buffered
    assert stream.size == buffer.size == len(SAMPLE)
    assert stream.unpack_at("IQ", 2) == buffer.unpack_at("IQ", 2)
    with pytest.raises(TruncatedInputError):
        stream.read_at(10, 10)


def test_reader_stream_cstring_across_chunks() -> None:
    text = b"x" * 700
    reader = ByteReader(io.BytesIO(b"\x00" + text + b"\x00tail"))
    assert reader.read_cstring(1) == text
    assert reader.read_cstring(702) == b"tail"
