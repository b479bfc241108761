"""
ELF File Object Model
======================

:class:`ElfFile` is the entry point of the parser.  Construction decodes
the identification block and file header eagerly and validates the small
set of invariants needed to parse safely; everything else (section
headers, program headers, symbols, string tables) is decoded on first
request and cached for the lifetime of the object.

Usage::

    elf = ElfFile.from_path("/bin/ls")
    print(elf.machine_name, hex(elf.entry_point))
    print(elf.interpreter_path())
    sym = elf.symbol_by_name("main")

References:
    - TIS Committee. (1995). Tool Interface Standard (TIS) Executable and
      Linkable Format (ELF) Specification, Version 1.2.
    - Linux man page: elf(5).
"""

from __future__ import annotations

from functools import partial
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

from sigil.core.errors import (
    MalformedHeaderError,
    OutOfRangeError,
    UnsupportedFeatureError,
)
from sigil.core.lazy import LazyCache
from sigil.parsers.constants import (
    DT_NEEDED,
    DT_SONAME,
    DYNAMIC_STRING_TABLE_NAME,
    EI_ABIVERSION,
    EI_CLASS,
    EI_DATA,
    EI_NIDENT,
    EI_OSABI,
    EI_VERSION,
    ELF_MAGIC,
    ELFCLASS32,
    ELFCLASS64,
    ELFDATA2LSB,
    ELFDATA2MSB,
    EV_CURRENT,
    PT_INTERP,
    SHN_UNDEF,
    SHN_XINDEX,
    SHT_DYNAMIC,
    SHT_DYNSYM,
    SHT_SYMTAB,
    STRING_TABLE_NAME,
    describe_machine,
    describe_object_type,
)
from sigil.parsers.dynamic import DynamicEntry, read_dynamic_entries
from sigil.parsers.program import ProgramHeader
from sigil.parsers.reader import ByteReader, ByteSource
from sigil.parsers.section import SectionHeader
from sigil.parsers.string_table import StringTable
from sigil.parsers.symbol import Symbol


class ElfFile:
    """A parsed ELF file with lazily resolved contents.

    Construction either yields a fully validated header or raises; no
    partially constructed object is ever returned.

    Args:
        source: ``bytes``-like snapshot of the file, or a seekable binary
                stream read on demand.

    Raises:
        MalformedHeaderError: Bad magic, class, encoding or version byte.
        UnsupportedFeatureError: Extended section count or string index.
        TruncatedInputError: The header is cut short.
    """

    def __init__(self, source: ByteSource) -> None:
        reader = ByteReader(source)
        self._owned_stream: BinaryIO | None = None

        # Magic first, so corruption is reported before anything else is read
        head = reader.read_at(0, min(len(ELF_MAGIC), reader.size))
        if head != ELF_MAGIC[:len(head)] or not head:
            raise MalformedHeaderError("Bad magic number for file")
        ident = reader.read_at(0, EI_NIDENT)

        self.elf_class: int = ident[EI_CLASS]
        if self.elf_class not in (ELFCLASS32, ELFCLASS64):
            raise MalformedHeaderError(
                f"Invalid object size class: {self.elf_class}"
            )
        self.encoding: int = ident[EI_DATA]
        if self.encoding not in (ELFDATA2LSB, ELFDATA2MSB):
            raise MalformedHeaderError(f"Invalid encoding: {self.encoding}")
        self.ident_version: int = ident[EI_VERSION]
        if self.ident_version != EV_CURRENT:
            raise MalformedHeaderError(
                f"Invalid elf version: {self.ident_version}"
            )
        self.os_abi: int = ident[EI_OSABI]
        self.abi_version: int = ident[EI_ABIVERSION]

        self.reader: ByteReader = reader.configure(
            is_64_bits=self.elf_class == ELFCLASS64,
            is_big_endian=self.encoding == ELFDATA2MSB,
        )
        self._parse_header()

        self._section_headers: list[LazyCache[SectionHeader]] = [
            LazyCache(partial(self._load_section_header, index))
            for index in range(self.sh_count)
        ]
        self._program_headers: list[LazyCache[ProgramHeader]] = [
            LazyCache(partial(self._load_program_header, index))
            for index in range(self.ph_count)
        ]

        self._symbol_table_section: LazyCache[Optional[SectionHeader]] = (
            LazyCache(partial(self._find_section_by_type, SHT_SYMTAB))
        )
        self._dynamic_symbol_table_section: LazyCache[Optional[SectionHeader]] = (
            LazyCache(partial(self._find_section_by_type, SHT_DYNSYM))
        )
        self._dynamic_link_section: LazyCache[Optional[SectionHeader]] = (
            LazyCache(partial(self._find_section_by_type, SHT_DYNAMIC))
        )
        self._dynamic_entries: LazyCache[list[DynamicEntry]] = LazyCache(
            self._load_dynamic_entries
        )

    # ------------------------------------------------------------------ #
    #  Construction helpers
    # ------------------------------------------------------------------ #

    @classmethod
    def from_bytes(cls, data: bytes) -> ElfFile:
        return cls(data)

    @classmethod
    def from_stream(cls, stream: BinaryIO, *, buffered: bool = True) -> ElfFile:
        """Build from a binary stream.

        With *buffered* the whole stream is read into memory, aborting as
        soon as the first four bytes are known not to be the ELF magic.
        Otherwise *stream* must be seekable and is read on demand; the
        caller keeps ownership of it.
        """
        if not buffered:
            return cls(stream)
        head = stream.read(len(ELF_MAGIC))
        if head != ELF_MAGIC:
            raise MalformedHeaderError("Bad magic number for file")
        return cls(head + stream.read())

    @classmethod
    def from_path(cls, path: str | Path, *, buffered: bool = True) -> ElfFile:
        """Open the file at *path*.

        A buffered file is read fully and closed immediately.  An
        unbuffered one stays open until :meth:`close` (or the end of a
        ``with`` block).
        """
        path = Path(path)
        if buffered:
            return cls(path.read_bytes())

        stream = open(path, "rb")
        try:
            elf = cls(stream)
        except BaseException:
            stream.close()
            raise
        elf._owned_stream = stream
        return elf

    def close(self) -> None:
        """Close the underlying stream if this object opened it."""
        if self._owned_stream is not None:
            self._owned_stream.close()
            self._owned_stream = None

    def __enter__(self) -> ElfFile:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _parse_header(self) -> None:
        """Decode the header fields that follow the identification block."""
        r = self.reader
        r.seek(EI_NIDENT)
        self.object_type: int = r.read_u16()
        self.machine: int = r.read_u16()
        self.version: int = r.read_u32()
        self.entry_point: int = r.read_word()
        self.ph_offset: int = r.read_word()
        self.sh_offset: int = r.read_word()
        self.flags: int = r.read_u32()
        self.header_size: int = r.read_u16()
        self.ph_entry_size: int = r.read_u16()
        self.ph_count: int = r.read_u16()
        self.sh_entry_size: int = r.read_u16()
        self.sh_count: int = r.read_u16()
        if self.sh_count == 0:
            raise UnsupportedFeatureError(
                "e_shnum is SHN_UNDEF(0), which is not supported (the actual "
                "number of section header table entries is contained in the "
                "sh_size field of the section header at index 0)"
            )
        self.sh_string_index: int = r.read_u16()
        if self.sh_string_index == SHN_XINDEX:
            raise UnsupportedFeatureError(
                "e_shstrndx is SHN_XINDEX(0xffff), which is not supported "
                "(the actual index of the section name string table section "
                "is contained in the sh_link field of the section header at "
                "index 0)"
            )

    # ------------------------------------------------------------------ #
    #  Header properties
    # ------------------------------------------------------------------ #

    @property
    def is_64_bits(self) -> bool:
        return self.elf_class == ELFCLASS64

    @property
    def is_big_endian(self) -> bool:
        return self.encoding == ELFDATA2MSB

    @property
    def bits(self) -> int:
        return 64 if self.is_64_bits else 32

    @property
    def endian(self) -> str:
        return "big" if self.is_big_endian else "little"

    @property
    def object_type_name(self) -> str:
        return describe_object_type(self.object_type)

    @property
    def machine_name(self) -> str:
        return describe_machine(self.machine)

    # ------------------------------------------------------------------ #
    #  Header tables
    # ------------------------------------------------------------------ #

    def section_header(self, index: int) -> SectionHeader:
        """Return the section header at *index*.

        Index 0 is the reserved undefined section.

        Raises:
            OutOfRangeError: If *index* is outside ``[0, sh_count)``.
        """
        if not 0 <= index < len(self._section_headers):
            raise OutOfRangeError(
                f"Section index {index} outside table of "
                f"{len(self._section_headers)} entries"
            )
        return self._section_headers[index].get()

    def program_header(self, index: int) -> ProgramHeader:
        """Return the program header at *index*.

        Raises:
            OutOfRangeError: If *index* is outside ``[0, ph_count)``.
        """
        if not 0 <= index < len(self._program_headers):
            raise OutOfRangeError(
                f"Program header index {index} outside table of "
                f"{len(self._program_headers)} entries"
            )
        return self._program_headers[index].get()

    def sections(self) -> Iterator[SectionHeader]:
        """Iterate over all section headers, including index 0."""
        for index in range(self.sh_count):
            yield self.section_header(index)

    def segments(self) -> Iterator[ProgramHeader]:
        """Iterate over all program headers."""
        for index in range(self.ph_count):
            yield self.program_header(index)

    def _load_section_header(self, index: int) -> SectionHeader:
        return SectionHeader(self, index, self.sh_offset + index * self.sh_entry_size)

    def _load_program_header(self, index: int) -> ProgramHeader:
        return ProgramHeader(self, index, self.ph_offset + index * self.ph_entry_size)

    # ------------------------------------------------------------------ #
    #  String tables
    # ------------------------------------------------------------------ #

    def section_header_string_table(self) -> Optional[StringTable]:
        """String table holding section names, or ``None`` if the file has none."""
        if self.sh_string_index == SHN_UNDEF:
            return None
        return self.section_header(self.sh_string_index).string_table

    def string_table(self) -> Optional[StringTable]:
        """The ``.strtab`` string table, or ``None``."""
        return self._find_string_table(STRING_TABLE_NAME)

    def dynamic_string_table(self) -> Optional[StringTable]:
        """The ``.dynstr`` string table, or ``None``."""
        return self._find_string_table(DYNAMIC_STRING_TABLE_NAME)

    def section_by_name(self, name: str) -> Optional[SectionHeader]:
        """First section (after the undefined one) called *name*, or ``None``."""
        for index in range(1, self.sh_count):
            section = self.section_header(index)
            if section.name == name:
                return section
        return None

    def _find_string_table(self, name: str) -> Optional[StringTable]:
        section = self.section_by_name(name)
        return section.string_table if section is not None else None

    # ------------------------------------------------------------------ #
    #  Well-known sections
    # ------------------------------------------------------------------ #

    def symbol_table_section(self) -> Optional[SectionHeader]:
        """The ``SHT_SYMTAB`` section, if any."""
        return self._symbol_table_section.get()

    def dynamic_symbol_table_section(self) -> Optional[SectionHeader]:
        """The ``SHT_DYNSYM`` section, if any."""
        return self._dynamic_symbol_table_section.get()

    def dynamic_link_section(self) -> Optional[SectionHeader]:
        """The ``SHT_DYNAMIC`` section (normally ``.dynamic``), if any."""
        return self._dynamic_link_section.get()

    def _find_section_by_type(self, section_type: int) -> Optional[SectionHeader]:
        for index in range(1, self.sh_count):
            section = self.section_header(index)
            if section.type == section_type:
                return section
        return None

    # ------------------------------------------------------------------ #
    #  Segments
    # ------------------------------------------------------------------ #

    def interpreter_path(self) -> Optional[str]:
        """Path named by the first ``PT_INTERP`` segment, or ``None``."""
        for segment in self.segments():
            if segment.type == PT_INTERP:
                return segment.interpreter()
        return None

    # ------------------------------------------------------------------ #
    #  Symbols
    # ------------------------------------------------------------------ #

    def symbol_by_name(self, name: str) -> Optional[Symbol]:
        """Find a symbol called *name*, dynamic table first.

        Each table is searched from both ends at once; the low index is
        compared first at every step, so a name present at both ends is
        reported at the low index.
        """
        for section in (
            self.dynamic_symbol_table_section(),
            self.symbol_table_section(),
        ):
            if section is None:
                continue
            symbol = self._search_from_both_ends(section, name)
            if symbol is not None:
                return symbol
        return None

    def symbol_by_address(self, address: int) -> Optional[Symbol]:
        """First symbol whose ``[value, value + size)`` contains *address*.

        The dynamic table is searched before the static one.  For shared
        objects *address* is relative to the load base.
        """
        for section in (
            self.dynamic_symbol_table_section(),
            self.symbol_table_section(),
        ):
            if section is None:
                continue
            for symbol in section.symbols():
                if symbol.contains(address):
                    return symbol
        return None

    @staticmethod
    def _search_from_both_ends(section: SectionHeader, name: str) -> Optional[Symbol]:
        low, high = 0, section.number_of_symbols - 1
        while low <= high:
            symbol = section.symbol(low)
            if symbol.name == name:
                return symbol
            if high != low:
                symbol = section.symbol(high)
                if symbol.name == name:
                    return symbol
            low += 1
            high -= 1
        return None

    # ------------------------------------------------------------------ #
    #  Dynamic linking
    # ------------------------------------------------------------------ #

    def dynamic_entries(self) -> list[DynamicEntry]:
        """Entries of the dynamic section up to ``DT_NULL``; empty if absent."""
        return self._dynamic_entries.get()

    def needed_libraries(self) -> list[str]:
        """``DT_NEEDED`` library names, in file order."""
        return [
            self._dynamic_string(entry.value)
            for entry in self.dynamic_entries()
            if entry.tag == DT_NEEDED
        ]

    def soname(self) -> Optional[str]:
        """The ``DT_SONAME`` value, if present."""
        for entry in self.dynamic_entries():
            if entry.tag == DT_SONAME:
                return self._dynamic_string(entry.value)
        return None

    def _load_dynamic_entries(self) -> list[DynamicEntry]:
        section = self.dynamic_link_section()
        if section is None:
            return []
        return read_dynamic_entries(self.reader, section.offset, section.size)

    def _dynamic_string(self, offset: int) -> str:
        section = self.dynamic_link_section()
        assert section is not None
        return self.section_header(section.link).string_table.lookup(offset)

    # ------------------------------------------------------------------ #
    #  Sharing
    # ------------------------------------------------------------------ #

    def resolve_all(self) -> None:
        """Force-resolve every lazily derived entity.

        Lazy slots are not safe for concurrent first access.  After this
        call every entity is resolved and the object can be shared across
        threads for reads.  Any parse error is raised here.
        """
        for section in self.sections():
            section.name  # noqa: B018
            section.string_table  # noqa: B018
            if section.type in (SHT_SYMTAB, SHT_DYNSYM):
                for symbol in section.symbols():
                    symbol.name  # noqa: B018
        for _segment in self.segments():
            pass
        self.symbol_table_section()
        self.dynamic_symbol_table_section()
        self.dynamic_link_section()
        self.dynamic_entries()

    def __repr__(self) -> str:
        return (
            f"ElfFile(class={self.bits}-bit, endian={self.endian}, "
            f"type={self.object_type_name}, machine={self.machine_name}, "
            f"sections={self.sh_count}, segments={self.ph_count})"
        )
