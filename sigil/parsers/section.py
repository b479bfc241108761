"""
ELF Section Header
===================

One record of the section header table.  Name, string-table view and
symbol entries are all resolved lazily and cached.

On-disk layouts (same field order, different widths)::

    Elf32_Shdr (40 bytes): name type flags addr offset size link info addralign entsize
    Elf64_Shdr (64 bytes): same fields, flags/addr/offset/size/addralign/entsize 8 bytes
"""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING, Iterator

from sigil.core.errors import OutOfRangeError
from sigil.core.lazy import LazyCache
from sigil.parsers.constants import describe_section_type, section_flags_str
from sigil.parsers.string_table import StringTable
from sigil.parsers.symbol import Symbol

if TYPE_CHECKING:
    from sigil.parsers.elf_file import ElfFile

_SHDR32_LAYOUT: str = "IIIIIIIIII"
_SHDR64_LAYOUT: str = "IIQQQQIIQQ"


class SectionHeader:
    """A decoded section header.

    Attributes:
        index:         Position in the section header table.
        name_offset:   Offset of the name in the section-header string table.
        type:          Section type (``SHT_*``).
        flags:         Section flags (``SHF_*``).
        address:       Virtual address when loaded, or 0.
        offset:        File offset of the section contents.
        size:          Size of the section contents in bytes.
        link:          Index of an associated section; meaning depends on type.
        info:          Extra type-dependent information.
        address_alignment: Required alignment of ``address``.
        entry_size:    Size of one fixed record, nonzero only for tables.
    """

    def __init__(self, elf: ElfFile, index: int, offset: int) -> None:
        self._elf = elf
        self.index = index

        layout = _SHDR64_LAYOUT if elf.reader.is_64_bits else _SHDR32_LAYOUT
        (
            self.name_offset, self.type, self.flags, self.address,
            self.offset, self.size, self.link, self.info,
            self.address_alignment, self.entry_size,
        ) = elf.reader.unpack_at(layout, offset)

        self._name: LazyCache[str] = LazyCache(self._resolve_name)
        self._string_table: LazyCache[StringTable] = LazyCache(
            lambda: StringTable(self._elf.reader, self.offset, self.size)
        )
        self._symbols: LazyCache[list[LazyCache[Symbol]]] = LazyCache(
            self._build_symbol_slots
        )

    # ------------------------------------------------------------------ #
    #  Lazy views
    # ------------------------------------------------------------------ #

    @property
    def name(self) -> str:
        """Section name, or ``""`` when the file has no name string table."""
        return self._name.get()

    @property
    def string_table(self) -> StringTable:
        """This section's contents viewed as a string table."""
        return self._string_table.get()

    @property
    def number_of_symbols(self) -> int:
        """Number of fixed-size records held by this section."""
        if self.entry_size == 0:
            return 0
        return self.size // self.entry_size

    def symbol(self, index: int) -> Symbol:
        """Return the symbol record at *index*.

        Raises:
            OutOfRangeError: If *index* is outside ``[0, number_of_symbols)``.
        """
        slots = self._symbols.get()
        if not 0 <= index < len(slots):
            raise OutOfRangeError(
                f"Symbol index {index} outside section {self.index} "
                f"with {len(slots)} entries"
            )
        return slots[index].get()

    def symbols(self) -> Iterator[Symbol]:
        """Iterate over every symbol record in table order."""
        for index in range(self.number_of_symbols):
            yield self.symbol(index)

    @property
    def type_name(self) -> str:
        return describe_section_type(self.type)

    @property
    def flags_str(self) -> str:
        return section_flags_str(self.flags)

    # ------------------------------------------------------------------ #
    #  Producers
    # ------------------------------------------------------------------ #

    def _resolve_name(self) -> str:
        strtab = self._elf.section_header_string_table()
        if strtab is None:
            return ""
        return strtab.lookup(self.name_offset)

    def _build_symbol_slots(self) -> list[LazyCache[Symbol]]:
        return [
            LazyCache(partial(self._load_symbol, index))
            for index in range(self.number_of_symbols)
        ]

    def _load_symbol(self, index: int) -> Symbol:
        offset = self.offset + index * self.entry_size
        return Symbol(self._elf, self, index, offset)

    def __repr__(self) -> str:
        return (
            f"SectionHeader(index={self.index}, type={self.type_name}, "
            f"offset=0x{self.offset:x}, size={self.size})"
        )
