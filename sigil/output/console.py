"""
Sigil Console Output
=====================

Rich-powered terminal display for Sigil results: a header summary panel
and tables for sections, segments and symbols.

Uses the SigilConsole abstraction for consistent styling.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from shared.console import SigilConsole

from sigil.core.models import ElfSummary, SectionInfo, SegmentInfo, SymbolInfo


# ---------------------------------------------------------------------------
# Colour helpers
# ---------------------------------------------------------------------------

_SECTION_TYPE_COLOURS: dict[str, str] = {
    "PROGBITS": "bright_white",
    "SYMTAB": "bright_magenta",
    "DYNSYM": "bright_magenta",
    "STRTAB": "bright_blue",
    "DYNAMIC": "bright_yellow",
    "RELA": "yellow",
    "REL": "yellow",
    "NOBITS": "dim",
    "NULL": "dim",
}

_BINDING_COLOURS: dict[str, str] = {
    "GLOBAL": "bright_green",
    "WEAK": "yellow",
    "LOCAL": "dim",
}


def _hex(value: int, width: int) -> str:
    return f"0x{value:0{width}x}"


# ---------------------------------------------------------------------------
# SigilConsoleOutput
# ---------------------------------------------------------------------------

class SigilConsoleOutput:
    """Rich terminal display for ELF structure.

    Usage::

        output = SigilConsoleOutput()
        output.display_summary(engine.summarize(elf, path))
        output.display_sections(engine.describe_sections(elf), bits=elf.bits)
    """

    def __init__(self, console: SigilConsole | None = None) -> None:
        """Initialise the output renderer.

        Args:
            console: Optional SigilConsole instance.  A new one is
                     created if not provided.
        """
        self._console: SigilConsole = console or SigilConsole()

    @property
    def console(self) -> SigilConsole:
        return self._console

    def display_summary(self, summary: ElfSummary) -> None:
        """Display the header metadata panel."""
        width = summary.bits // 4
        lines: list[str] = [
            f"[bold]File:[/bold]         {escape(summary.path)}",
            f"[bold]Size:[/bold]         {summary.size:,} bytes",
            f"[bold]Class:[/bold]        ELF{summary.bits} ({summary.endian} endian)",
            f"[bold]Type:[/bold]         {summary.object_type}",
            f"[bold]Machine:[/bold]      {summary.machine}",
            f"[bold]OS/ABI:[/bold]       {summary.os_abi}",
            f"[bold]Entry Point:[/bold]  {_hex(summary.entry_point, width)}",
            f"[bold]Flags:[/bold]        0x{summary.flags:x}",
            f"[bold]Sections:[/bold]     {summary.section_count}",
            f"[bold]Segments:[/bold]     {summary.segment_count}",
        ]
        if summary.interpreter:
            lines.append(f"[bold]Interpreter:[/bold]  {escape(summary.interpreter)}")
        if summary.soname:
            lines.append(f"[bold]SONAME:[/bold]       {escape(summary.soname)}")
        if summary.needed:
            lines.append(
                f"[bold]Needed:[/bold]       {escape(', '.join(summary.needed))}"
            )

        panel = Panel(
            "\n".join(lines),
            title="[bold bright_cyan]ELF Header[/bold bright_cyan]",
            border_style="bright_cyan",
            padding=(1, 2),
        )
        self._console.rich.print(panel)
        self._console.blank()

    def display_sections(self, sections: list[SectionInfo], bits: int = 64) -> None:
        """Display the section header table.

        Args:
            sections: SectionInfo models in table order.
            bits: Address width, used for hex padding.
        """
        self._console.section("Sections")
        width = bits // 4

        tbl = Table(
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            padding=(0, 1),
        )
        tbl.add_column("#", style="dim", width=4, justify="right")
        tbl.add_column("Name", style="bold", min_width=12)
        tbl.add_column("Type")
        tbl.add_column("Address", justify="right")
        tbl.add_column("Offset", justify="right")
        tbl.add_column("Size", justify="right")
        tbl.add_column("EntSize", justify="right")
        tbl.add_column("Flags")
        tbl.add_column("Link", justify="right")
        tbl.add_column("Info", justify="right")
        tbl.add_column("Align", justify="right")

        for sec in sections:
            colour = _SECTION_TYPE_COLOURS.get(sec.type, "white")
            tbl.add_row(
                str(sec.index),
                escape(sec.name),
                f"[{colour}]{sec.type}[/{colour}]",
                _hex(sec.address, width),
                f"0x{sec.offset:x}",
                f"0x{sec.size:x}",
                f"0x{sec.entry_size:x}",
                sec.flags,
                str(sec.link),
                str(sec.info),
                str(sec.alignment),
            )

        self._console.rich.print(tbl)
        self._console.blank()

    def display_segments(self, segments: list[SegmentInfo], bits: int = 64) -> None:
        """Display the program header table."""
        self._console.section("Segments")
        width = bits // 4

        tbl = Table(
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            padding=(0, 1),
        )
        tbl.add_column("#", style="dim", width=4, justify="right")
        tbl.add_column("Type", style="bold")
        tbl.add_column("Offset", justify="right")
        tbl.add_column("VirtAddr", justify="right")
        tbl.add_column("PhysAddr", justify="right")
        tbl.add_column("FileSiz", justify="right")
        tbl.add_column("MemSiz", justify="right")
        tbl.add_column("Flags")
        tbl.add_column("Align", justify="right")

        for seg in segments:
            tbl.add_row(
                str(seg.index),
                seg.type,
                f"0x{seg.offset:x}",
                _hex(seg.virtual_address, width),
                _hex(seg.physical_address, width),
                f"0x{seg.file_size:x}",
                f"0x{seg.memory_size:x}",
                seg.flags,
                f"0x{seg.alignment:x}",
            )

        self._console.rich.print(tbl)
        self._console.blank()

    def display_symbols(
        self,
        symbols: list[SymbolInfo],
        title: str = "Symbols",
        bits: int = 64,
    ) -> None:
        """Display a symbol table.

        Args:
            symbols: SymbolInfo models to render.
            title: Section header text.
            bits: Address width, used for hex padding.
        """
        self._console.section(title)
        if not symbols:
            self._console.warning("No matching symbols")
            return
        width = bits // 4

        tbl = Table(
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            padding=(0, 1),
            caption=f"{len(symbols)} symbols",
        )
        tbl.add_column("Num", style="dim", justify="right")
        tbl.add_column("Value", justify="right")
        tbl.add_column("Size", justify="right")
        tbl.add_column("Type")
        tbl.add_column("Bind")
        tbl.add_column("Vis")
        tbl.add_column("Ndx", justify="right")
        tbl.add_column("Name", style="bold")
        tbl.add_column("Table", style="dim")

        for sym in symbols:
            colour = _BINDING_COLOURS.get(sym.bind, "white")
            tbl.add_row(
                str(sym.index),
                _hex(sym.value, width),
                str(sym.size),
                sym.type,
                f"[{colour}]{sym.bind}[/{colour}]",
                sym.visibility,
                str(sym.section_index),
                escape(sym.name),
                escape(sym.table),
            )

        self._console.rich.print(tbl)
        self._console.blank()
