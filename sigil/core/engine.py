"""
Sigil Engine
=============

Drives the lazy ELF parser on behalf of the command-line interface:
opens files under the configured size limit and source mode, turns the
parser's lazy views into serialisable models, and runs the filtered
symbol dump (symbols of a given table, restricted by type and binding).

The engine never reaches into raw bytes itself; every value it reports
comes from the public queries of :class:`~sigil.parsers.elf_file.ElfFile`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

from shared.config import SigilConfig
from shared.logger import SigilLogger

from sigil.core.errors import ElfError
from sigil.core.models import (
    ElfSummary,
    SectionInfo,
    SegmentInfo,
    SymbolInfo,
    SymbolReport,
)
from sigil.parsers.constants import (
    SHT_DYNSYM,
    SHT_SYMTAB,
    symbol_binding_by_name,
    symbol_type_by_name,
)
from sigil.parsers.elf_file import ElfFile
from sigil.parsers.symbol import Symbol


_SYMBOL_TABLE_TYPES: dict[str, int] = {
    "dynsym": SHT_DYNSYM,
    "symtab": SHT_SYMTAB,
}


class SigilEngine:
    """Load ELF files and describe their contents.

    Usage::

        engine = SigilEngine()
        elf = engine.load("/usr/lib/libc.so.6")
        for sym in engine.extract_symbols(elf, types=["FUNC"], bindings=["GLOBAL"]):
            print(sym.name)
    """

    def __init__(
        self,
        config: SigilConfig | None = None,
        logger: SigilLogger | None = None,
    ) -> None:
        """Initialise the engine.

        Args:
            config: Sigil configuration.  Defaults are used if not provided.
            logger: Logger instance.  A new one is created if not provided.
        """
        self._config: SigilConfig = config or SigilConfig()
        self._logger: SigilLogger = logger or SigilLogger("engine")

    @property
    def config(self) -> SigilConfig:
        return self._config

    # ------------------------------------------------------------------ #
    #  Loading
    # ------------------------------------------------------------------ #

    def load(self, file_path: str | Path) -> ElfFile:
        """Open *file_path* as an :class:`ElfFile`.

        Raises:
            OSError: If the file cannot be read.
            ValueError: If the file exceeds ``elf.max_file_size``.
            ElfError: If the header is malformed, truncated or unsupported.
        """
        path = Path(file_path)
        file_size = path.stat().st_size
        max_size = self._config.elf.max_file_size
        if file_size > max_size:
            raise ValueError(
                f"File too large: {file_size:,} bytes (max: {max_size:,} bytes)"
            )

        buffered = self._config.elf.buffered
        with self._logger.operation("load"), self._logger.timed(f"parse {path}"):
            try:
                elf = ElfFile.from_path(path, buffered=buffered)
            except ElfError as exc:
                self._logger.error("Cannot parse %s: %s", path, exc)
                raise

        self._logger.info(
            "Loaded %s: %d-bit %s, %s, %d sections, %d segments",
            path, elf.bits, elf.endian, elf.machine_name,
            elf.sh_count, elf.ph_count,
        )
        return elf

    # ------------------------------------------------------------------ #
    #  Descriptions
    # ------------------------------------------------------------------ #

    def summarize(self, elf: ElfFile, path: str = "<memory>") -> ElfSummary:
        """Build an :class:`ElfSummary` from the header and dynamic section."""
        return ElfSummary(
            path=path,
            size=elf.reader.size,
            bits=elf.bits,
            endian=elf.endian,
            object_type=elf.object_type_name,
            machine=elf.machine_name,
            os_abi=elf.os_abi,
            version=elf.version,
            entry_point=elf.entry_point,
            flags=elf.flags,
            section_count=elf.sh_count,
            segment_count=elf.ph_count,
            interpreter=elf.interpreter_path(),
            needed=elf.needed_libraries(),
            soname=elf.soname(),
        )

    def describe_sections(self, elf: ElfFile) -> list[SectionInfo]:
        result: list[SectionInfo] = []
        for sh in elf.sections():
            result.append(SectionInfo(
                index=sh.index,
                name=sh.name,
                type=sh.type_name,
                flags=sh.flags_str,
                address=sh.address,
                offset=sh.offset,
                size=sh.size,
                link=sh.link,
                info=sh.info,
                alignment=sh.address_alignment,
                entry_size=sh.entry_size,
                symbol_count=sh.number_of_symbols,
            ))
        return result

    def describe_segments(self, elf: ElfFile) -> list[SegmentInfo]:
        result: list[SegmentInfo] = []
        for ph in elf.segments():
            result.append(SegmentInfo(
                index=ph.index,
                type=ph.type_name,
                flags=ph.flags_str,
                offset=ph.offset,
                virtual_address=ph.virtual_address,
                physical_address=ph.physical_address,
                file_size=ph.file_size,
                memory_size=ph.memory_size,
                alignment=ph.alignment,
            ))
        return result

    # ------------------------------------------------------------------ #
    #  Symbols
    # ------------------------------------------------------------------ #

    def extract_symbols(
        self,
        elf: ElfFile,
        table: str | None = None,
        types: Iterable[str] | None = None,
        bindings: Iterable[str] | None = None,
    ) -> list[SymbolInfo]:
        """Return symbols of every *table* section matching the filters.

        Args:
            elf: The parsed file.
            table: ``"dynsym"`` or ``"symtab"``; defaults to ``elf.symbol_table``.
            types: Symbol type names to keep (e.g. ``["FUNC"]``); an empty
                   list keeps all.  Defaults to ``elf.symbol_types``.
            bindings: Binding names to keep (e.g. ``["GLOBAL"]``); an empty
                      list keeps all.  Defaults to ``elf.symbol_bindings``.

        Raises:
            ValueError: On an unknown table, type or binding name.
        """
        cfg = self._config.elf
        table = (table or cfg.symbol_table).lower()
        if table not in _SYMBOL_TABLE_TYPES:
            raise ValueError(f"Unknown symbol table: {table}")
        section_type = _SYMBOL_TABLE_TYPES[table]
        wanted_types = self._resolve_names(
            cfg.symbol_types if types is None else types, symbol_type_by_name
        )
        wanted_bindings = self._resolve_names(
            cfg.symbol_bindings if bindings is None else bindings,
            symbol_binding_by_name,
        )

        result: list[SymbolInfo] = []
        with self._logger.operation("symbols"):
            for sh in elf.sections():
                if sh.type != section_type:
                    continue
                self._logger.debug(
                    "Scanning %s (%d entries)", sh.name, sh.number_of_symbols
                )
                for sym in sh.symbols():
                    if wanted_types and sym.type not in wanted_types:
                        continue
                    if wanted_bindings and sym.binding not in wanted_bindings:
                        continue
                    result.append(self.symbol_info(sym))

        self._logger.info("Extracted %d symbols from %s", len(result), table)
        return result

    def build_report(
        self,
        elf: ElfFile,
        path: str,
        table: str | None = None,
        types: Iterable[str] | None = None,
        bindings: Iterable[str] | None = None,
    ) -> SymbolReport:
        """Run :meth:`extract_symbols` and wrap the result for a report sink."""
        cfg = self._config.elf
        types = list(cfg.symbol_types if types is None else types)
        bindings = list(cfg.symbol_bindings if bindings is None else bindings)
        table = table or cfg.symbol_table
        return SymbolReport(
            path=path,
            table=table,
            types=[t.upper() for t in types],
            bindings=[b.upper() for b in bindings],
            symbols=self.extract_symbols(elf, table, types, bindings),
        )

    def lookup_name(self, elf: ElfFile, name: str) -> Optional[SymbolInfo]:
        symbol = elf.symbol_by_name(name)
        return self.symbol_info(symbol) if symbol is not None else None

    def lookup_address(self, elf: ElfFile, address: int) -> Optional[SymbolInfo]:
        symbol = elf.symbol_by_address(address)
        return self.symbol_info(symbol) if symbol is not None else None

    @staticmethod
    def symbol_info(symbol: Symbol) -> SymbolInfo:
        """Snapshot a lazy :class:`Symbol` into a :class:`SymbolInfo`."""
        return SymbolInfo(
            index=symbol.index,
            name=symbol.name,
            value=symbol.value,
            size=symbol.size,
            type=symbol.type_name,
            bind=symbol.binding_name,
            visibility=symbol.visibility_name,
            section_index=symbol.section_index,
            table=symbol.section.name,
        )

    @staticmethod
    def _resolve_names(names: Iterable[str], resolver) -> set[int]:
        try:
            return {resolver(name) for name in names}
        except KeyError as exc:
            raise ValueError(f"Unknown symbol attribute: {exc.args[0]}") from exc
