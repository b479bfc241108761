import pytest

from shared.console import SigilConsole

from sigil.core.models import ElfSummary, SectionInfo, SegmentInfo, SymbolInfo
from sigil.output.console import SigilConsoleOutput


@pytest.fixture
def console() -> SigilConsole:
    con = SigilConsole(record=True)
    con.rich.width = 160
    return con


def test_display_summary(console) -> None:
    summary = ElfSummary(
        path="/usr/lib/libsigil.so",
        size=4096,
        bits=64,
        machine="x86_64",
        object_type="DYN (Shared object)",
        entry_point=0x1040,
        interpreter="/lib/ld.so",
        needed=["libc.so.6", "libm.so.6"],
        soname="libsigil.so.1",
    )
    SigilConsoleOutput(console).display_summary(summary)
    text = console.rich.export_text()
    assert "x86_64" in text
    assert "0x0000000000001040" in text
    assert "/lib/ld.so" in text
    assert "libc.so.6, libm.so.6" in text
    assert "libsigil.so.1" in text


def test_display_sections(console) -> None:
    sections = [
        SectionInfo(index=0, type="NULL", flags="-"),
        SectionInfo(index=1, name=".text", type="PROGBITS", flags="AX", address=0x1000, size=0x80),
    ]
    SigilConsoleOutput(console).display_sections(sections, bits=32)
    text = console.rich.export_text()
    assert ".text" in text
    assert "0x00001000" in text
    assert "PROGBITS" in text


def test_display_segments(console) -> None:
    segments = [SegmentInfo(index=0, type="LOAD", flags="RX", alignment=0x1000)]
    SigilConsoleOutput(console).display_segments(segments)
    text = console.rich.export_text()
    assert "LOAD" in text
    assert "0x1000" in text


def test_display_symbols(console) -> None:
    symbols = [SymbolInfo(index=3, name="main", value=0x1200, size=128,
                          type="FUNC", bind="GLOBAL", visibility="DEFAULT",
                          section_index=1, table=".symtab")]
    SigilConsoleOutput(console).display_symbols(symbols, title="Symbols (symtab)")
    text = console.rich.export_text()
    assert "main" in text
    assert "GLOBAL" in text
    assert "1 symbols" in text


def test_display_no_symbols(console) -> None:
    SigilConsoleOutput(console).display_symbols([])
    assert "No matching symbols" in console.rich.export_text()


def test_names_with_markup_are_escaped(console) -> None:
    symbols = [SymbolInfo(name="[bold]weird[/bold]", table=".dynsym")]
    SigilConsoleOutput(console).display_symbols(symbols)
    assert "[bold]weird[/bold]" in console.rich.export_text()
