"""
Sigil -- ELF Structural Inspector
===================================

Sigil reads Executable and Linkable Format binaries (executables, shared
libraries, relocatable objects, core dumps) and exposes their header
fields, section headers, program headers, symbol tables and string tables
without executing, linking or disassembling them.

Everything past the file header is decoded lazily on first request and
cached for the lifetime of the :class:`~sigil.parsers.elf_file.ElfFile`.

Modules:
    - sigil.parsers: Byte reader and the lazy ELF object model
    - sigil.core: Errors, memo cell, data models and analysis engine
    - sigil.output: Console and report output
    - sigil.cli: Click-based command-line interface

References:
    - TIS Committee. (1995). ELF Specification, Version 1.2.
    - System V Application Binary Interface, Edition 4.1.
"""

from sigil.core.errors import (
    ElfError,
    MalformedHeaderError,
    OutOfRangeError,
    TruncatedInputError,
    UnsupportedFeatureError,
)
from sigil.parsers.elf_file import ElfFile

__version__ = "1.0.0"
__tool_name__ = "sigil"
__all__ = [
    "ElfError",
    "ElfFile",
    "MalformedHeaderError",
    "OutOfRangeError",
    "TruncatedInputError",
    "UnsupportedFeatureError",
]
