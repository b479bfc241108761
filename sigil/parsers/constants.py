"""
ELF Constants
==============

Numeric constants of the Executable and Linkable Format together with
human-readable name tables used by the engine and the console output.

References:
    - TIS Committee. (1995). Tool Interface Standard (TIS) Executable and
      Linkable Format (ELF) Specification, Version 1.2.
    - System V Application Binary Interface, Edition 4.1.
    - Linux man page: elf(5).
"""

from __future__ import annotations


# ---------------------------------------------------------------------------
# Identification
# ---------------------------------------------------------------------------

# Magic number
ELF_MAGIC: bytes = b"\x7fELF"
EI_NIDENT: int = 16

# e_ident indexes
EI_CLASS: int = 4
EI_DATA: int = 5
EI_VERSION: int = 6
EI_OSABI: int = 7
EI_ABIVERSION: int = 8

# ELF Class (32-bit vs 64-bit)
ELFCLASSNONE: int = 0
ELFCLASS32: int = 1
ELFCLASS64: int = 2

# Data encoding (endianness)
ELFDATANONE: int = 0
ELFDATA2LSB: int = 1  # Little-endian
ELFDATA2MSB: int = 2  # Big-endian

EV_CURRENT: int = 1

# ELF type
ET_NONE: int = 0
ET_REL: int = 1   # Relocatable
ET_EXEC: int = 2  # Executable
ET_DYN: int = 3   # Shared object / PIE
ET_CORE: int = 4  # Core dump

_ET_NAMES: dict[int, str] = {
    ET_NONE: "NONE",
    ET_REL: "REL (Relocatable)",
    ET_EXEC: "EXEC (Executable)",
    ET_DYN: "DYN (Shared object)",
    ET_CORE: "CORE (Core dump)",
}

# Machine architectures
EM_NONE: int = 0
EM_M32: int = 1
EM_SPARC: int = 2
EM_386: int = 3
EM_68K: int = 4
EM_88K: int = 5
EM_860: int = 7
EM_MIPS: int = 8
EM_PPC: int = 20
EM_PPC64: int = 21
EM_S390: int = 22
EM_ARM: int = 40
EM_SPARCV9: int = 43
EM_IA_64: int = 50
EM_X86_64: int = 62
EM_AARCH64: int = 183
EM_RISCV: int = 243

_EM_NAMES: dict[int, str] = {
    EM_NONE: "None",
    EM_M32: "AT&T WE 32100",
    EM_SPARC: "SPARC",
    EM_386: "x86",
    EM_68K: "Motorola 68000",
    EM_88K: "Motorola 88000",
    EM_860: "Intel 80860",
    EM_MIPS: "MIPS",
    EM_PPC: "PowerPC",
    EM_PPC64: "PowerPC64",
    EM_S390: "IBM S/390",
    EM_ARM: "ARM",
    EM_SPARCV9: "SPARC v9",
    EM_IA_64: "IA-64",
    EM_X86_64: "x86_64",
    EM_AARCH64: "AArch64",
    EM_RISCV: "RISC-V",
}


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

SHT_NULL: int = 0
SHT_PROGBITS: int = 1
SHT_SYMTAB: int = 2
SHT_STRTAB: int = 3
SHT_RELA: int = 4
SHT_HASH: int = 5
SHT_DYNAMIC: int = 6
SHT_NOTE: int = 7
SHT_NOBITS: int = 8
SHT_REL: int = 9
SHT_SHLIB: int = 10
SHT_DYNSYM: int = 11
SHT_INIT_ARRAY: int = 14
SHT_FINI_ARRAY: int = 15
SHT_PREINIT_ARRAY: int = 16
SHT_GROUP: int = 17
SHT_SYMTAB_SHNDX: int = 18
SHT_GNU_HASH: int = 0x6FFFFFF6
SHT_GNU_VERDEF: int = 0x6FFFFFFD
SHT_GNU_VERNEED: int = 0x6FFFFFFE
SHT_GNU_VERSYM: int = 0x6FFFFFFF

_SHT_NAMES: dict[int, str] = {
    SHT_NULL: "NULL",
    SHT_PROGBITS: "PROGBITS",
    SHT_SYMTAB: "SYMTAB",
    SHT_STRTAB: "STRTAB",
    SHT_RELA: "RELA",
    SHT_HASH: "HASH",
    SHT_DYNAMIC: "DYNAMIC",
    SHT_NOTE: "NOTE",
    SHT_NOBITS: "NOBITS",
    SHT_REL: "REL",
    SHT_SHLIB: "SHLIB",
    SHT_DYNSYM: "DYNSYM",
    SHT_INIT_ARRAY: "INIT_ARRAY",
    SHT_FINI_ARRAY: "FINI_ARRAY",
    SHT_PREINIT_ARRAY: "PREINIT_ARRAY",
    SHT_GROUP: "GROUP",
    SHT_SYMTAB_SHNDX: "SYMTAB_SHNDX",
    SHT_GNU_HASH: "GNU_HASH",
    SHT_GNU_VERDEF: "GNU_VERDEF",
    SHT_GNU_VERNEED: "GNU_VERNEED",
    SHT_GNU_VERSYM: "GNU_VERSYM",
}

# Well-known section names
STRING_TABLE_NAME: str = ".strtab"
DYNAMIC_STRING_TABLE_NAME: str = ".dynstr"

# Section header flags
SHF_WRITE: int = 0x1
SHF_ALLOC: int = 0x2
SHF_EXECINSTR: int = 0x4

# Special section indices
SHN_UNDEF: int = 0
SHN_LORESERVE: int = 0xFF00
SHN_ABS: int = 0xFFF1
SHN_COMMON: int = 0xFFF2
SHN_XINDEX: int = 0xFFFF


# ---------------------------------------------------------------------------
# Segments
# ---------------------------------------------------------------------------

PT_NULL: int = 0
PT_LOAD: int = 1
PT_DYNAMIC: int = 2
PT_INTERP: int = 3
PT_NOTE: int = 4
PT_SHLIB: int = 5
PT_PHDR: int = 6
PT_TLS: int = 7
PT_GNU_EH_FRAME: int = 0x6474E550
PT_GNU_STACK: int = 0x6474E551
PT_GNU_RELRO: int = 0x6474E552

_PT_NAMES: dict[int, str] = {
    PT_NULL: "NULL",
    PT_LOAD: "LOAD",
    PT_DYNAMIC: "DYNAMIC",
    PT_INTERP: "INTERP",
    PT_NOTE: "NOTE",
    PT_SHLIB: "SHLIB",
    PT_PHDR: "PHDR",
    PT_TLS: "TLS",
    PT_GNU_EH_FRAME: "GNU_EH_FRAME",
    PT_GNU_STACK: "GNU_STACK",
    PT_GNU_RELRO: "GNU_RELRO",
}

# Program header flags
PF_X: int = 0x1  # Execute
PF_W: int = 0x2  # Write
PF_R: int = 0x4  # Read


# ---------------------------------------------------------------------------
# Symbols
# ---------------------------------------------------------------------------

STB_LOCAL: int = 0
STB_GLOBAL: int = 1
STB_WEAK: int = 2
STB_GNU_UNIQUE: int = 10

_STB_NAMES: dict[int, str] = {
    STB_LOCAL: "LOCAL",
    STB_GLOBAL: "GLOBAL",
    STB_WEAK: "WEAK",
    STB_GNU_UNIQUE: "UNIQUE",
}

STT_NOTYPE: int = 0
STT_OBJECT: int = 1
STT_FUNC: int = 2
STT_SECTION: int = 3
STT_FILE: int = 4
STT_COMMON: int = 5
STT_TLS: int = 6
STT_GNU_IFUNC: int = 10

_STT_NAMES: dict[int, str] = {
    STT_NOTYPE: "NOTYPE",
    STT_OBJECT: "OBJECT",
    STT_FUNC: "FUNC",
    STT_SECTION: "SECTION",
    STT_FILE: "FILE",
    STT_COMMON: "COMMON",
    STT_TLS: "TLS",
    STT_GNU_IFUNC: "IFUNC",
}

STV_DEFAULT: int = 0
STV_INTERNAL: int = 1
STV_HIDDEN: int = 2
STV_PROTECTED: int = 3

_STV_NAMES: dict[int, str] = {
    STV_DEFAULT: "DEFAULT",
    STV_INTERNAL: "INTERNAL",
    STV_HIDDEN: "HIDDEN",
    STV_PROTECTED: "PROTECTED",
}


# ---------------------------------------------------------------------------
# Dynamic tags
# ---------------------------------------------------------------------------

DT_NULL: int = 0
DT_NEEDED: int = 1
DT_PLTRELSZ: int = 2
DT_PLTGOT: int = 3
DT_HASH: int = 4
DT_STRTAB: int = 5
DT_SYMTAB: int = 6
DT_RELA: int = 7
DT_RELASZ: int = 8
DT_STRSZ: int = 10
DT_INIT: int = 12
DT_FINI: int = 13
DT_SONAME: int = 14
DT_RPATH: int = 15
DT_RUNPATH: int = 29

_DT_NAMES: dict[int, str] = {
    DT_NULL: "NULL",
    DT_NEEDED: "NEEDED",
    DT_PLTRELSZ: "PLTRELSZ",
    DT_PLTGOT: "PLTGOT",
    DT_HASH: "HASH",
    DT_STRTAB: "STRTAB",
    DT_SYMTAB: "SYMTAB",
    DT_RELA: "RELA",
    DT_RELASZ: "RELASZ",
    DT_STRSZ: "STRSZ",
    DT_INIT: "INIT",
    DT_FINI: "FINI",
    DT_SONAME: "SONAME",
    DT_RPATH: "RPATH",
    DT_RUNPATH: "RUNPATH",
}


# ---------------------------------------------------------------------------
# Name helpers
# ---------------------------------------------------------------------------

def describe_object_type(value: int) -> str:
    """Return a readable name for an ``e_type`` value."""
    return _ET_NAMES.get(value, f"unknown({value})")


def describe_machine(value: int) -> str:
    """Return a readable name for an ``e_machine`` value."""
    return _EM_NAMES.get(value, f"unknown({value})")


def describe_section_type(value: int) -> str:
    return _SHT_NAMES.get(value, f"0x{value:x}")


def describe_segment_type(value: int) -> str:
    return _PT_NAMES.get(value, f"0x{value:x}")


def describe_symbol_type(value: int) -> str:
    return _STT_NAMES.get(value, f"UNKNOWN({value})")


def describe_symbol_binding(value: int) -> str:
    return _STB_NAMES.get(value, f"UNKNOWN({value})")


def describe_symbol_visibility(value: int) -> str:
    return _STV_NAMES.get(value, f"UNKNOWN({value})")


def describe_dynamic_tag(value: int) -> str:
    return _DT_NAMES.get(value, f"0x{value:x}")


def symbol_type_by_name(name: str) -> int:
    """Inverse of :func:`describe_symbol_type` (case-insensitive).

    Raises:
        KeyError: If *name* is not a known symbol type.
    """
    lookup = {v: k for k, v in _STT_NAMES.items()}
    return lookup[name.upper()]


def symbol_binding_by_name(name: str) -> int:
    """Inverse of :func:`describe_symbol_binding` (case-insensitive).

    Raises:
        KeyError: If *name* is not a known binding.
    """
    lookup = {v: k for k, v in _STB_NAMES.items()}
    return lookup[name.upper()]


def section_flags_str(flags: int) -> str:
    """Convert section flags bitmask to a readable string.

    Args:
        flags: Section header flags value (sh_flags).

    Returns:
        String like ``"WAX"`` for Write+Alloc+Exec.
    """
    parts: list[str] = []
    if flags & SHF_WRITE:
        parts.append("W")
    if flags & SHF_ALLOC:
        parts.append("A")
    if flags & SHF_EXECINSTR:
        parts.append("X")
    return "".join(parts) if parts else "-"


def segment_flags_str(flags: int) -> str:
    """Convert program header flags to a readable string.

    Args:
        flags: Program header flags value (p_flags).

    Returns:
        String like ``"RWX"`` for Read+Write+Execute.
    """
    parts: list[str] = []
    if flags & PF_R:
        parts.append("R")
    if flags & PF_W:
        parts.append("W")
    if flags & PF_X:
        parts.append("X")
    return "".join(parts) if parts else "-"
