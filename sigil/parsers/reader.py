"""
Endianness- and Word-Size-Aware Byte Reader
=============================================

:class:`ByteReader` is the single primitive decoder underneath every ELF
structure.  It performs random-access reads over either a fully buffered
byte snapshot or a seekable binary stream, using :mod:`struct` with the
byte-order prefix selected by the file's encoding.

The *word* helpers read 4 bytes for 32-bit class files and 8 bytes for
64-bit ones, which lets the header, section, segment and symbol decoders
stay word-size-agnostic wherever the field order is shared.
"""

from __future__ import annotations

import copy
import io
import struct
from typing import BinaryIO, Union

from sigil.core.errors import OutOfRangeError, TruncatedInputError

ByteSource = Union[bytes, bytearray, memoryview, BinaryIO]

_CSTRING_CHUNK: int = 256


class ByteReader:
    """Random-access primitive decoder over a byte buffer or stream.

    Usage::

        reader = ByteReader(raw_bytes, is_64_bits=True)
        reader.seek(0x18)
        entry = reader.read_word()
        (sh_name, sh_type) = reader.unpack_at("II", 0x40)

    Args:
        source:        ``bytes``-like snapshot or a seekable binary stream.
        is_64_bits:    Word size used by :meth:`read_word`.
        is_big_endian: Byte order used by every multi-byte read.
    """

    def __init__(
        self,
        source: ByteSource,
        *,
        is_64_bits: bool = False,
        is_big_endian: bool = False,
    ) -> None:
        self._data: bytes | None
        self._stream: BinaryIO | None
        if isinstance(source, (bytes, bytearray, memoryview)):
            self._data = bytes(source)
            self._stream = None
            self._size = len(self._data)
        else:
            self._data = None
            self._stream = source
            self._size = source.seek(0, io.SEEK_END)
        self._position = 0
        self.is_64_bits = is_64_bits
        self.is_big_endian = is_big_endian

    # ------------------------------------------------------------------ #
    #  Configuration
    # ------------------------------------------------------------------ #

    def configure(self, *, is_64_bits: bool, is_big_endian: bool) -> ByteReader:
        """Return a reader over the same source with a new word size / order."""
        reader = copy.copy(self)
        reader.is_64_bits = is_64_bits
        reader.is_big_endian = is_big_endian
        return reader

    @property
    def byte_order(self) -> str:
        """The :mod:`struct` byte-order prefix (``"<"`` or ``">"``)."""
        return ">" if self.is_big_endian else "<"

    @property
    def word_size(self) -> int:
        """Width in bytes of an address / offset field."""
        return 8 if self.is_64_bits else 4

    @property
    def size(self) -> int:
        """Total number of bytes in the backing source."""
        return self._size

    @property
    def is_buffered(self) -> bool:
        return self._data is not None

    # ------------------------------------------------------------------ #
    #  Positioning
    # ------------------------------------------------------------------ #

    def seek(self, offset: int) -> None:
        """Move to absolute *offset*.

        Raises:
            OutOfRangeError: If *offset* lies outside ``[0, size]``.
        """
        self._check_offset(offset)
        self._position = offset

    def tell(self) -> int:
        return self._position

    # ------------------------------------------------------------------ #
    #  Raw bytes
    # ------------------------------------------------------------------ #

    def read_bytes(self, count: int) -> bytes:
        """Read exactly *count* bytes at the current position.

        Raises:
            OutOfRangeError: If the current position is outside the source.
            TruncatedInputError: If fewer than *count* bytes remain.
        """
        offset = self._position
        self._check_offset(offset)
        available = self._size - offset
        if count > available:
            raise TruncatedInputError(offset, count, max(available, 0))

        if self._data is not None:
            chunk = self._data[offset:offset + count]
        else:
            assert self._stream is not None
            self._stream.seek(offset)
            chunk = self._stream.read(count)
            if len(chunk) < count:
                raise TruncatedInputError(offset, count, len(chunk))

        self._position = offset + count
        return chunk

    def read_at(self, offset: int, count: int) -> bytes:
        """Seek to *offset* and read exactly *count* bytes."""
        self.seek(offset)
        return self.read_bytes(count)

    def read_cstring(self, offset: int, limit: int | None = None) -> bytes:
        """Read bytes from *offset* up to (not including) the next NUL.

        The scan stops at *limit* (an absolute end offset, exclusive) or at
        the end of the source, whichever comes first; reaching it without
        a NUL returns everything read so far.

        Raises:
            OutOfRangeError: If *offset* lies outside the source.
        """
        self._check_offset(offset)
        end = self._size if limit is None else min(limit, self._size)

        if self._data is not None:
            terminator = self._data.find(b"\x00", offset, end)
            if terminator == -1:
                terminator = end
            return self._data[offset:terminator]

        assert self._stream is not None
        parts: list[bytes] = []
        position = offset
        while position < end:
            self._stream.seek(position)
            chunk = self._stream.read(min(_CSTRING_CHUNK, end - position))
            if not chunk:
                break
            terminator = chunk.find(b"\x00")
            if terminator != -1:
                parts.append(chunk[:terminator])
                break
            parts.append(chunk)
            position += len(chunk)
        return b"".join(parts)

    # ------------------------------------------------------------------ #
    #  Structured reads
    # ------------------------------------------------------------------ #

    def unpack_at(self, layout: str, offset: int) -> tuple[int, ...]:
        """Decode a :mod:`struct` *layout* (without byte-order prefix) at *offset*."""
        fmt = self.byte_order + layout
        raw = self.read_at(offset, struct.calcsize(fmt))
        return struct.unpack(fmt, raw)

    def _unpack(self, code: str) -> int:
        fmt = self.byte_order + code
        (value,) = struct.unpack(fmt, self.read_bytes(struct.calcsize(fmt)))
        return value

    def read_u8(self) -> int:
        return self._unpack("B")

    def read_u16(self) -> int:
        return self._unpack("H")

    def read_u32(self) -> int:
        return self._unpack("I")

    def read_u64(self) -> int:
        return self._unpack("Q")

    def read_i8(self) -> int:
        return self._unpack("b")

    def read_i16(self) -> int:
        return self._unpack("h")

    def read_i32(self) -> int:
        return self._unpack("i")

    def read_i64(self) -> int:
        return self._unpack("q")

    def read_word(self) -> int:
        """Read an unsigned address-width value (4 or 8 bytes)."""
        return self._unpack("Q" if self.is_64_bits else "I")

    def read_sword(self) -> int:
        """Read a signed address-width value (4 or 8 bytes)."""
        return self._unpack("q" if self.is_64_bits else "i")

    # ------------------------------------------------------------------ #
    #  Internal helpers
    # ------------------------------------------------------------------ #

    def _check_offset(self, offset: int) -> None:
        if offset < 0 or offset > self._size:
            raise OutOfRangeError(
                f"Offset 0x{offset:x} outside data of {self._size} bytes"
            )
