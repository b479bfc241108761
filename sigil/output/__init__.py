"""Sigil output: Rich console display and symbol report writers."""

from sigil.output.console import SigilConsoleOutput
from sigil.output.report import SymbolReportWriter

__all__ = ["SigilConsoleOutput", "SymbolReportWriter"]
