"""
Sigil Parsers
==============

Lazy structural parser for the Executable and Linkable Format: the
byte reader, the file object model and its section, segment, symbol and
string-table views.
"""

from sigil.parsers.elf_file import ElfFile
from sigil.parsers.program import ProgramHeader
from sigil.parsers.reader import ByteReader
from sigil.parsers.section import SectionHeader
from sigil.parsers.string_table import StringTable
from sigil.parsers.symbol import Symbol

__all__ = [
    "ByteReader",
    "ElfFile",
    "ProgramHeader",
    "SectionHeader",
    "StringTable",
    "Symbol",
]
