"""
Synthetic ELF images for the test suite.

:func:`build_elf` lays out a small but structurally complete ELF file in
memory: header, program headers (``PT_INTERP`` + ``PT_LOAD``), and the
sections ``.interp``, ``.dynsym``, ``.dynstr``, ``.dynamic``, ``.symtab``,
``.strtab`` and ``.shstrtab``.  Every part is optional so tests can
exercise the absent-table paths, and the class / byte order can be
chosen freely.

Symbols are given as ``(name, value, size)`` or
``(name, value, size, type, bind)`` tuples.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

import pytest

from sigil.parsers.constants import (
    DT_NEEDED,
    DT_NULL,
    DT_SONAME,
    ELF_MAGIC,
    ELFCLASS32,
    ELFCLASS64,
    ELFDATA2LSB,
    ELFDATA2MSB,
    EM_X86_64,
    ET_DYN,
    EV_CURRENT,
    PF_R,
    PF_X,
    PT_INTERP,
    PT_LOAD,
    SHF_ALLOC,
    SHT_DYNAMIC,
    SHT_DYNSYM,
    SHT_PROGBITS,
    SHT_STRTAB,
    SHT_SYMTAB,
    STB_GLOBAL,
    STB_LOCAL,
    STB_WEAK,
    STT_FILE,
    STT_FUNC,
    STT_NOTYPE,
    STT_OBJECT,
)

SymbolSpec = tuple

DEFAULT_DYNSYM: list[SymbolSpec] = [
    ("malloc", 0, 0, STT_FUNC, STB_GLOBAL),
    ("sigil_init", 0x1100, 0x40, STT_FUNC, STB_GLOBAL),
    ("sigil_table", 0x4000, 0x100, STT_OBJECT, STB_GLOBAL),
    ("sigil_hook", 0x1180, 0x20, STT_FUNC, STB_WEAK),
]

DEFAULT_SYMTAB: list[SymbolSpec] = [
    ("crt.c", 0, 0, STT_FILE, STB_LOCAL),
    ("helper", 0x1140, 0x30, STT_FUNC, STB_LOCAL),
    ("sigil_init", 0x1100, 0x80, STT_FUNC, STB_GLOBAL),
    ("main", 0x1200, 0x80, STT_FUNC, STB_GLOBAL),
]

DEFAULT_INTERPRETER: bytes = b"/lib/ld.so\x00"


@dataclass
class BuiltElf:
    """An image produced by :func:`build_elf` plus where things landed."""

    data: bytes
    bits: int
    big_endian: bool
    entry: int
    ph_offset: int
    ph_count: int
    sh_offset: int
    sh_count: int
    sh_string_index: int
    section_index: dict[str, int] = field(default_factory=dict)
    section_offset: dict[str, int] = field(default_factory=dict)

    def write(self, path: Path) -> Path:
        path.write_bytes(self.data)
        return path


class _Blob:
    def __init__(self, start: int) -> None:
        self.start = start
        self.data = bytearray()

    @property
    def end(self) -> int:
        return self.start + len(self.data)

    def add(self, chunk: bytes, align: int = 8) -> int:
        while self.end % align:
            self.data.append(0)
        offset = self.end
        self.data += chunk
        return offset


def _string_table(names: Sequence[str]) -> tuple[bytes, dict[str, int]]:
    data = bytearray(b"\x00")
    offsets: dict[str, int] = {"": 0}
    for name in names:
        if name not in offsets:
            offsets[name] = len(data)
            data += name.encode("utf-8") + b"\x00"
    return bytes(data), offsets


def _normalize(spec: SymbolSpec) -> tuple[str, int, int, int, int]:
    if len(spec) == 3:
        name, value, size = spec
        return name, value, size, STT_FUNC, STB_GLOBAL
    name, value, size, sym_type, bind = spec
    return name, value, size, sym_type, bind


def _pack_symbols(
    symbols: Sequence[tuple[str, int, int, int, int]],
    offsets: dict[str, int],
    order: str,
    wide: bool,
) -> bytes:
    out = bytearray()
    for name, value, size, sym_type, bind in symbols:
        info = (bind << 4) | sym_type
        shndx = 0 if value == 0 else 1
        if wide:
            out += struct.pack(order + "IBBHQQ", offsets[name], info, 0, shndx, value, size)
        else:
            out += struct.pack(order + "IIIBBH", offsets[name], value, size, info, 0, shndx)
    return bytes(out)


def build_elf(
    *,
    bits: int = 64,
    big_endian: bool = False,
    object_type: int = ET_DYN,
    machine: int = EM_X86_64,
    entry: int = 0x1040,
    os_abi: int = 0,
    flags: int = 0,
    interpreter: Optional[bytes] = DEFAULT_INTERPRETER,
    dynsym: Optional[Sequence[SymbolSpec]] = DEFAULT_DYNSYM,
    symtab: Optional[Sequence[SymbolSpec]] = DEFAULT_SYMTAB,
    needed: Sequence[str] = ("libc.so.6",),
    soname: Optional[str] = None,
    null_symbol: bool = True,
    section_names: bool = True,
    sh_count: Optional[int] = None,
    sh_string_index: Optional[int] = None,
) -> BuiltElf:
    """Lay out an ELF image; see the module docstring."""
    wide = bits == 64
    order = ">" if big_endian else "<"
    header_size = 64 if wide else 52
    ph_entry_size = 56 if wide else 32
    sh_entry_size = 64 if wide else 40
    sym_entry_size = 24 if wide else 16
    dyn_layout = order + ("qQ" if wide else "iI")

    has_dynamic = dynsym is not None and (bool(needed) or soname is not None)

    names: list[str] = [""]
    if interpreter is not None:
        names.append(".interp")
    if dynsym is not None:
        names += [".dynsym", ".dynstr"]
        if has_dynamic:
            names.append(".dynamic")
    if symtab is not None:
        names += [".symtab", ".strtab"]
    if section_names:
        names.append(".shstrtab")
    index = {name: i for i, name in enumerate(names)}

    ph_count = (1 if interpreter is not None else 0) + 1
    ph_offset = header_size
    blob = _Blob(ph_offset + ph_count * ph_entry_size)

    # (name, type, flags, offset, size, link, info, align, entsize)
    records: list[tuple[str, int, int, int, int, int, int, int, int]] = []
    offsets: dict[str, int] = {}

    if interpreter is not None:
        offsets[".interp"] = blob.add(interpreter, 1)
        records.append((".interp", SHT_PROGBITS, SHF_ALLOC, offsets[".interp"],
                        len(interpreter), 0, 0, 1, 0))

    if dynsym is not None:
        dyn_symbols = [_normalize(s) for s in dynsym]
        if null_symbol:
            dyn_symbols.insert(0, ("", 0, 0, STT_NOTYPE, STB_LOCAL))
        extra = list(needed) + ([soname] if soname is not None else [])
        dynstr, dynstr_offsets = _string_table([s[0] for s in dyn_symbols] + extra)
        packed = _pack_symbols(dyn_symbols, dynstr_offsets, order, wide)
        offsets[".dynsym"] = blob.add(packed)
        records.append((".dynsym", SHT_DYNSYM, SHF_ALLOC, offsets[".dynsym"],
                        len(packed), index[".dynstr"], 1, 8, sym_entry_size))
        offsets[".dynstr"] = blob.add(dynstr, 1)
        records.append((".dynstr", SHT_STRTAB, SHF_ALLOC, offsets[".dynstr"],
                        len(dynstr), 0, 0, 1, 0))
        if has_dynamic:
            entries = [(DT_NEEDED, dynstr_offsets[lib]) for lib in needed]
            if soname is not None:
                entries.append((DT_SONAME, dynstr_offsets[soname]))
            entries.append((DT_NULL, 0))
            packed = b"".join(struct.pack(dyn_layout, tag, val) for tag, val in entries)
            offsets[".dynamic"] = blob.add(packed)
            records.append((".dynamic", SHT_DYNAMIC, SHF_ALLOC, offsets[".dynamic"],
                            len(packed), index[".dynstr"], 0, 8, len(packed) // len(entries)))

    if symtab is not None:
        static_symbols = [_normalize(s) for s in symtab]
        if null_symbol:
            static_symbols.insert(0, ("", 0, 0, STT_NOTYPE, STB_LOCAL))
        strtab, strtab_offsets = _string_table([s[0] for s in static_symbols])
        packed = _pack_symbols(static_symbols, strtab_offsets, order, wide)
        offsets[".symtab"] = blob.add(packed)
        records.append((".symtab", SHT_SYMTAB, 0, offsets[".symtab"],
                        len(packed), index[".strtab"], 1, 8, sym_entry_size))
        offsets[".strtab"] = blob.add(strtab, 1)
        records.append((".strtab", SHT_STRTAB, 0, offsets[".strtab"],
                        len(strtab), 0, 0, 1, 0))

    shstrtab, shstrtab_offsets = _string_table(names[1:])
    if section_names:
        offsets[".shstrtab"] = blob.add(shstrtab, 1)
        records.append((".shstrtab", SHT_STRTAB, 0, offsets[".shstrtab"],
                        len(shstrtab), 0, 0, 1, 0))

    sh_offset = blob.add(b"", 8)
    section_table = bytearray(sh_entry_size)
    for name, sh_type, sh_flags, offset, size, link, info, align, entsize in records:
        name_offset = shstrtab_offsets[name] if section_names else 0
        address = offset if sh_flags & SHF_ALLOC else 0
        layout = "IIQQQQIIQQ" if wide else "IIIIIIIIII"
        section_table += struct.pack(
            order + layout, name_offset, sh_type, sh_flags, address,
            offset, size, link, info, align, entsize,
        )
    blob.add(bytes(section_table))
    total_size = blob.end

    segments: list[tuple[int, int, int, int, int, int, int]] = []
    if interpreter is not None:
        segments.append((PT_INTERP, PF_R, offsets[".interp"], offsets[".interp"],
                         len(interpreter), len(interpreter), 1))
    segments.append((PT_LOAD, PF_R | PF_X, 0, 0, total_size, total_size, 0x1000))
    program_table = bytearray()
    for p_type, p_flags, offset, vaddr, filesz, memsz, align in segments:
        if wide:
            program_table += struct.pack(order + "IIQQQQQQ", p_type, p_flags, offset,
                                         vaddr, vaddr, filesz, memsz, align)
        else:
            program_table += struct.pack(order + "IIIIIIII", p_type, offset, vaddr,
                                         vaddr, filesz, memsz, p_flags, align)

    shnum = len(names) if sh_count is None else sh_count
    if sh_string_index is not None:
        shstrndx = sh_string_index
    else:
        shstrndx = index.get(".shstrtab", 0)

    ident = ELF_MAGIC + bytes([
        ELFCLASS64 if wide else ELFCLASS32,
        ELFDATA2MSB if big_endian else ELFDATA2LSB,
        EV_CURRENT,
        os_abi,
        0,
    ])
    ident += bytes(16 - len(ident))
    header_layout = "HHIQQQIHHHHHH" if wide else "HHIIIIIHHHHHH"
    header = ident + struct.pack(
        order + header_layout, object_type, machine, EV_CURRENT, entry,
        ph_offset, sh_offset, flags, header_size, ph_entry_size, ph_count,
        sh_entry_size, shnum, shstrndx,
    )

    data = header + bytes(program_table) + bytes(blob.data)
    return BuiltElf(
        data=data,
        bits=bits,
        big_endian=big_endian,
        entry=entry,
        ph_offset=ph_offset,
        ph_count=ph_count,
        sh_offset=sh_offset,
        sh_count=shnum,
        sh_string_index=shstrndx,
        section_index=index,
        section_offset=offsets,
    )


@pytest.fixture
def elf_image():
    """The :func:`build_elf` factory."""
    return build_elf


@pytest.fixture
def elf_path(tmp_path: Path) -> Path:
    """A default 64-bit little-endian image written to disk."""
    return build_elf(soname="libsigil.so.1").write(tmp_path / "libsigil.so")
