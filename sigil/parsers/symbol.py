"""
ELF Symbol Table Entry
=======================

One fixed-size record of a ``SHT_SYMTAB`` / ``SHT_DYNSYM`` section.

On-disk layouts::

    Elf32_Sym (16 bytes): st_name, st_value, st_size, st_info, st_other, st_shndx
    Elf64_Sym (24 bytes): st_name, st_info, st_other, st_shndx, st_value, st_size
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sigil.core.lazy import LazyCache
from sigil.parsers.constants import (
    describe_symbol_binding,
    describe_symbol_type,
    describe_symbol_visibility,
)
from sigil.parsers.reader import ByteReader

if TYPE_CHECKING:
    from sigil.parsers.elf_file import ElfFile
    from sigil.parsers.section import SectionHeader

_SYM32_LAYOUT: str = "IIIBBH"
_SYM64_LAYOUT: str = "IBBHQQ"


class Symbol:
    """A decoded symbol record.

    Attributes:
        index:         Position within the owning symbol table.
        name_offset:   Offset of the name in the linked string table.
        value:         Symbol value (usually an address).
        size:          Size of the referenced object.
        info:          Packed type (low nibble) and binding (high nibble).
        other:         Reserved byte; the low two bits hold the visibility.
        section_index: Index of the section the symbol is defined in.
    """

    __slots__ = (
        "_elf", "section", "index", "offset",
        "name_offset", "value", "size", "info", "other", "section_index",
        "_name",
    )

    def __init__(
        self,
        elf: ElfFile,
        section: SectionHeader,
        index: int,
        offset: int,
    ) -> None:
        self._elf = elf
        self.section = section
        self.index = index
        self.offset = offset

        reader: ByteReader = elf.reader
        if reader.is_64_bits:
            (
                self.name_offset, self.info, self.other,
                self.section_index, self.value, self.size,
            ) = reader.unpack_at(_SYM64_LAYOUT, offset)
        else:
            (
                self.name_offset, self.value, self.size,
                self.info, self.other, self.section_index,
            ) = reader.unpack_at(_SYM32_LAYOUT, offset)

        self._name: LazyCache[str] = LazyCache(self._resolve_name)

    # ------------------------------------------------------------------ #
    #  Derived fields
    # ------------------------------------------------------------------ #

    @property
    def type(self) -> int:
        return self.info & 0xF

    @property
    def binding(self) -> int:
        return (self.info >> 4) & 0xF

    @property
    def visibility(self) -> int:
        return self.other & 0x3

    @property
    def type_name(self) -> str:
        return describe_symbol_type(self.type)

    @property
    def binding_name(self) -> str:
        return describe_symbol_binding(self.binding)

    @property
    def visibility_name(self) -> str:
        return describe_symbol_visibility(self.visibility)

    @property
    def name(self) -> str:
        """Symbol name, resolved through the owning section's linked string table."""
        return self._name.get()

    def contains(self, address: int) -> bool:
        """``True`` when *address* falls in ``[value, value + size)``."""
        return self.value <= address < self.value + self.size

    def _resolve_name(self) -> str:
        strtab = self._elf.section_header(self.section.link).string_table
        return strtab.lookup(self.name_offset)

    def __repr__(self) -> str:
        return (
            f"Symbol(index={self.index}, value=0x{self.value:x}, "
            f"size={self.size}, type={self.type_name}, bind={self.binding_name})"
        )
