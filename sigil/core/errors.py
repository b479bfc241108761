"""
Sigil Error Taxonomy
=====================

Exception classes raised by the ELF parser.  Every failure is an
:class:`ElfError`; the subclasses distinguish *why* a parse or query
failed so that callers can react without inspecting message text.

Header-level failures (:class:`MalformedHeaderError`,
:class:`UnsupportedFeatureError`, :class:`TruncatedInputError`) abort
construction of an :class:`~sigil.parsers.elf_file.ElfFile` entirely.
:class:`OutOfRangeError` raised by a later query aborts only that query.
"""

from __future__ import annotations


class ElfError(Exception):
    """Base class for every error raised while reading an ELF file."""


class MalformedHeaderError(ElfError):
    """Bad magic, class, encoding or identification version byte."""


class UnsupportedFeatureError(ElfError):
    """The file uses an encoding this parser does not implement.

    Raised for the extended section count (``e_shnum == 0``) and the
    extended string-table index (``e_shstrndx == SHN_XINDEX``) forms.
    """


class TruncatedInputError(ElfError):
    """Fewer bytes are available than the format requires."""

    def __init__(self, offset: int, wanted: int, available: int) -> None:
        self.offset = offset
        self.wanted = wanted
        self.available = available
        super().__init__(
            f"Truncated input at offset 0x{offset:x}: "
            f"wanted {wanted} bytes, {available} available"
        )


class OutOfRangeError(ElfError):
    """An index or offset lies outside the valid bounds of a table."""
