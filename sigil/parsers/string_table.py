"""
ELF String Table View
======================

A read-only window over a byte range holding NUL-terminated strings.
Sections refer to their names, and symbols to theirs, by byte offset into
one of these tables.
"""

from __future__ import annotations

from sigil.core.errors import OutOfRangeError
from sigil.parsers.reader import ByteReader


class StringTable:
    """Resolve offsets within ``[offset, offset + size)`` to text.

    Args:
        reader: Reader over the whole file.
        offset: File offset of the first byte of the table.
        size:   Length of the table in bytes.
    """

    __slots__ = ("_reader", "offset", "size")

    def __init__(self, reader: ByteReader, offset: int, size: int) -> None:
        self._reader = reader
        self.offset = offset
        self.size = size

    def lookup(self, offset: int) -> str:
        """Return the string starting at table-relative *offset*.

        The string ends at the next NUL, or at the end of the table if the
        table is not terminated.

        Raises:
            OutOfRangeError: If *offset* lies outside the table.
        """
        if offset < 0 or offset >= self.size:
            raise OutOfRangeError(
                f"String offset {offset} outside table of {self.size} bytes"
            )
        start = self.offset + offset
        raw = self._reader.read_cstring(start, self.offset + self.size)
        return raw.decode("utf-8", errors="replace")

    def __len__(self) -> int:
        return self.size

    def __repr__(self) -> str:
        return f"StringTable(offset=0x{self.offset:x}, size={self.size})"
