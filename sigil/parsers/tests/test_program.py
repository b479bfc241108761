import struct

import pytest

from sigil.core.errors import TruncatedInputError
from sigil.parsers.constants import PF_R, PF_X, PT_INTERP, PT_LOAD
from sigil.parsers.elf_file import ElfFile


@pytest.mark.parametrize("bits", [32, 64])
@pytest.mark.parametrize("big_endian", [False, True])
def test_program_header_fields(elf_image, bits, big_endian) -> None:
    built = elf_image(bits=bits, big_endian=big_endian)
    elf = ElfFile(built.data)

    interp = elf.program_header(0)
    assert interp.type == PT_INTERP
    assert interp.flags == PF_R
    assert interp.offset == built.section_offset[".interp"]
    assert interp.virtual_address == built.section_offset[".interp"]
    assert interp.file_size == len(b"/lib/ld.so\x00")
    assert interp.memory_size == interp.file_size
    assert interp.alignment == 1

    load = elf.program_header(1)
    assert load.type == PT_LOAD
    assert load.flags == PF_R | PF_X
    assert load.offset == 0
    assert load.file_size == len(built.data)
    assert load.alignment == 0x1000


def test_program_header_names(elf_image) -> None:
    elf = ElfFile(elf_image().data)
    assert [(p.type_name, p.flags_str) for p in elf.segments()] == [
        ("INTERP", "R"),
        ("LOAD", "RX"),
    ]


def test_interpreter_of_other_segment_is_none(elf_image) -> None:
    elf = ElfFile(elf_image().data)
    assert elf.program_header(1).interpreter() is None


def test_interpreter_past_end_of_file(elf_image) -> None:
    built = elf_image()
    data = bytearray(built.data)
    # p_filesz of the first 64-bit program header
    struct.pack_into("<Q", data, built.ph_offset + 32, 0x100000)
    elf = ElfFile(bytes(data))
    with pytest.raises(TruncatedInputError):
        elf.interpreter_path()
