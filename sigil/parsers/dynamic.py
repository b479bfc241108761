"""
ELF Dynamic Section Entries
============================

Decodes the ``(d_tag, d_val)`` pairs of the ``SHT_DYNAMIC`` section.  Tags
are signed words and values unsigned words of the file's class.
"""

from __future__ import annotations

from dataclasses import dataclass

from sigil.parsers.constants import DT_NULL, describe_dynamic_tag
from sigil.parsers.reader import ByteReader


@dataclass(frozen=True, slots=True)
class DynamicEntry:
    """One dynamic-linking entry."""
    tag: int
    value: int

    @property
    def tag_name(self) -> str:
        return describe_dynamic_tag(self.tag)


def read_dynamic_entries(
    reader: ByteReader, offset: int, size: int
) -> list[DynamicEntry]:
    """Decode entries in ``[offset, offset + size)`` up to and including ``DT_NULL``."""
    entry_size = 2 * reader.word_size
    entries: list[DynamicEntry] = []
    position = offset
    end = offset + size

    while position + entry_size <= end:
        reader.seek(position)
        tag = reader.read_sword()
        value = reader.read_word()
        entries.append(DynamicEntry(tag, value))
        if tag == DT_NULL:
            break
        position += entry_size

    return entries
