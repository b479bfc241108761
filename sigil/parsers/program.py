"""
ELF Program Header
===================

One record of the program header (segment) table.  Unlike section
headers, the two classes order their fields differently, so decoding
branches on class rather than only widening fields::

    Elf32_Phdr (32 bytes): type offset vaddr paddr filesz memsz flags align
    Elf64_Phdr (56 bytes): type flags offset vaddr paddr filesz memsz align
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sigil.parsers.constants import (
    PT_INTERP,
    describe_segment_type,
    segment_flags_str,
)

if TYPE_CHECKING:
    from sigil.parsers.elf_file import ElfFile

_PHDR32_LAYOUT: str = "IIIIIIII"
_PHDR64_LAYOUT: str = "IIQQQQQQ"


class ProgramHeader:
    """A decoded program header."""

    def __init__(self, elf: ElfFile, index: int, offset: int) -> None:
        self._elf = elf
        self.index = index

        reader = elf.reader
        if reader.is_64_bits:
            (
                self.type, self.flags, self.offset, self.virtual_address,
                self.physical_address, self.file_size, self.memory_size,
                self.alignment,
            ) = reader.unpack_at(_PHDR64_LAYOUT, offset)
        else:
            (
                self.type, self.offset, self.virtual_address,
                self.physical_address, self.file_size, self.memory_size,
                self.flags, self.alignment,
            ) = reader.unpack_at(_PHDR32_LAYOUT, offset)

    @property
    def type_name(self) -> str:
        return describe_segment_type(self.type)

    @property
    def flags_str(self) -> str:
        return segment_flags_str(self.flags)

    def interpreter(self) -> Optional[str]:
        """Return the loader path held by a ``PT_INTERP`` segment.

        Reads exactly ``file_size`` bytes at ``offset`` and trims a single
        trailing NUL.  Returns ``None`` for any other segment type.

        Raises:
            TruncatedInputError: If the segment extends past the end of the file.
            OutOfRangeError: If the segment starts outside the file.
        """
        if self.type != PT_INTERP:
            return None
        raw = self._elf.reader.read_at(self.offset, self.file_size)
        if raw.endswith(b"\x00"):
            raw = raw[:-1]
        return raw.decode("utf-8", errors="replace")

    def __repr__(self) -> str:
        return (
            f"ProgramHeader(index={self.index}, type={self.type_name}, "
            f"offset=0x{self.offset:x}, vaddr=0x{self.virtual_address:x})"
        )
