"""
Sigil Report Writer
====================

Writes filtered symbol dumps to disk.

The text format carries one line per symbol, ``<name> <table>``, where
*table* is the name of the symbol table section the entry came from.
The JSON format is a structured document suitable for downstream
tooling.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, TextIO

from sigil.core.models import SymbolReport


class SymbolReportWriter:
    """Render :class:`SymbolReport` objects as text or JSON.

    Usage::

        writer = SymbolReportWriter()
        writer.write_text(report, "symbols.txt")
        writer.write_json(report, "symbols.json")
    """

    @staticmethod
    def text_lines(report: SymbolReport) -> list[str]:
        return [f"{sym.name} {sym.table}" for sym in report.symbols]

    def render_text(self, report: SymbolReport, stream: TextIO) -> None:
        for line in self.text_lines(report):
            stream.write(line + "\n")

    def write_text(self, report: SymbolReport, output_path: str | Path) -> str:
        """Write one ``<name> <table>`` line per symbol.

        Returns:
            The absolute path of the written file.
        """
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            self.render_text(report, f)
        return str(path.resolve())

    @staticmethod
    def to_dict(report: SymbolReport) -> dict[str, Any]:
        return {
            "report_type": "sigil_symbols",
            "version": "1.0.0",
            "generated_at": report.generated_at.isoformat(),
            "path": report.path,
            "table": report.table,
            "filters": {
                "types": report.types,
                "bindings": report.bindings,
            },
            "count": report.count,
            "symbols": [sym.model_dump() for sym in report.symbols],
        }

    def write_json(self, report: SymbolReport, output_path: str | Path) -> str:
        """Write a structured JSON symbol report.

        Returns:
            The absolute path of the written file.
        """
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(report), f, indent=2, ensure_ascii=False, default=str)
        return str(path.resolve())
