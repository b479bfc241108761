"""
Sigil Data Models
==================

Pydantic models describing what the engine reports about an ELF file.
The parser's own objects are lazy views over the file; these models are
plain, serialisable snapshots handed to the console and report writers.

References:
    - TIS Committee. (1995). Executable and Linkable Format (ELF) Specification.
    - Pydantic v2 documentation. https://docs.pydantic.dev/latest/
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Header summary
# ---------------------------------------------------------------------------

class ElfSummary(BaseModel):
    """Top-level metadata about an ELF file.

    Attributes:
        path: Filesystem path to the binary.
        size: File size in bytes.
        bits: Address width (32 or 64).
        endian: Byte order (``"little"`` or ``"big"``).
        object_type: Object type name (REL, EXEC, DYN, CORE).
        machine: Architecture name.
        os_abi: Identification OS/ABI byte.
        version: Header version word.
        entry_point: Virtual address of the entry point.
        flags: Processor-specific flags.
        section_count: Number of section headers.
        segment_count: Number of program headers.
        interpreter: Dynamic loader path, when present.
        needed: ``DT_NEEDED`` shared library names.
        soname: ``DT_SONAME`` value, when present.
    """
    path: str = ""
    size: int = 0
    bits: int = 0
    endian: str = "little"
    object_type: str = ""
    machine: str = ""
    os_abi: int = 0
    version: int = 0
    entry_point: int = 0
    flags: int = 0
    section_count: int = 0
    segment_count: int = 0
    interpreter: Optional[str] = None
    needed: list[str] = Field(default_factory=list)
    soname: Optional[str] = None


# ---------------------------------------------------------------------------
# Section / Segment information
# ---------------------------------------------------------------------------

class SectionInfo(BaseModel):
    """One section header.

    Attributes:
        index: Position in the section header table.
        name: Section name (e.g. ``.text``).
        type: Section type name (PROGBITS, SYMTAB, ...).
        flags: Flags as a string such as ``"AX"``.
        address: Virtual address when loaded.
        offset: File offset in bytes.
        size: Section size in bytes.
        link: Index of the associated section.
        info: Type-dependent extra information.
        alignment: Address alignment.
        entry_size: Size of one fixed record, or 0.
        symbol_count: ``size // entry_size``, or 0.
    """
    index: int = 0
    name: str = ""
    type: str = ""
    flags: str = ""
    address: int = 0
    offset: int = 0
    size: int = 0
    link: int = 0
    info: int = 0
    alignment: int = 0
    entry_size: int = 0
    symbol_count: int = 0


class SegmentInfo(BaseModel):
    """One program header."""
    index: int = 0
    type: str = ""
    flags: str = ""
    offset: int = 0
    virtual_address: int = 0
    physical_address: int = 0
    file_size: int = 0
    memory_size: int = 0
    alignment: int = 0


# ---------------------------------------------------------------------------
# Symbol information
# ---------------------------------------------------------------------------

class SymbolInfo(BaseModel):
    """A symbol entry.

    Attributes:
        index: Position within its symbol table.
        name: Symbol name.
        value: Symbol value (usually an address).
        size: Size of the object the symbol refers to.
        type: Symbol type (FUNC, OBJECT, NOTYPE, ...).
        bind: Binding (LOCAL, GLOBAL, WEAK).
        visibility: Visibility (DEFAULT, HIDDEN, ...).
        section_index: Index of the defining section.
        table: Name of the symbol table section holding the entry.
    """
    index: int = 0
    name: str = ""
    value: int = 0
    size: int = 0
    type: str = ""
    bind: str = ""
    visibility: str = ""
    section_index: int = 0
    table: str = ""


class SymbolReport(BaseModel):
    """A filtered symbol dump, as written by the report sink."""
    path: str = ""
    table: str = ""
    types: list[str] = Field(default_factory=list)
    bindings: list[str] = Field(default_factory=list)
    symbols: list[SymbolInfo] = Field(default_factory=list)
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def count(self) -> int:
        return len(self.symbols)
