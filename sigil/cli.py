"""
Sigil CLI -- ELF Structural Inspector
======================================

Click-based command-line interface for Sigil.  Each subcommand opens one
ELF file through :class:`~sigil.core.engine.SigilEngine` and renders the
requested view with Rich, or as JSON for machine consumption.

Usage::

    # Header summary
    sigil info /usr/bin/ls

    # Section and program header tables
    sigil sections /usr/bin/ls
    sigil segments /usr/bin/ls

    # Exported functions of the dynamic symbol table
    sigil symbols /usr/lib/libc.so.6 --type FUNC --bind GLOBAL

    # Write the dump as "<symbol> <section>" lines
    sigil symbols /usr/lib/libc.so.6 --output symbols.txt

    # Symbol lookups
    sigil lookup /usr/bin/ls --name main
    sigil lookup /usr/bin/ls --address 0x4021a0

References:
    - Click documentation: https://click.palletsprojects.com/
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Callable

import click

from shared.config import SigilConfig
from shared.console import SigilConsole
from shared.logger import SigilLogger

from sigil import __version__
from sigil.core.engine import SigilEngine
from sigil.core.errors import ElfError
from sigil.core.models import SymbolInfo
from sigil.output.console import SigilConsoleOutput
from sigil.output.report import SymbolReportWriter
from sigil.parsers.elf_file import ElfFile


# ---------------------------------------------------------------------------
# Shared state
# ---------------------------------------------------------------------------

class _Context:
    """Objects shared by every subcommand of one invocation."""

    def __init__(self, config: SigilConfig, verbose: bool) -> None:
        self.config = config
        self.verbose = verbose
        settings = config.global_settings
        log_level = "DEBUG" if verbose or settings.debug else settings.log_level
        self.logger = SigilLogger(
            "cli",
            log_level=log_level,
            log_file=settings.log_file,
            json_logs=settings.log_json,
        )
        self.console = SigilConsole()
        self.engine = SigilEngine(
            config=config,
            logger=SigilLogger(
                "engine",
                log_level=log_level,
                log_file=settings.log_file,
                json_logs=settings.log_json,
            ),
        )

    def run(self, label: str, action: Callable[[], Any]) -> Any:
        """Run *action*, turning parse and I/O failures into exit status 1."""
        try:
            return action()
        except KeyboardInterrupt:
            self.console.warning("Interrupted by user.")
            sys.exit(130)
        except (ElfError, OSError, ValueError) as exc:
            log = self.logger.exception if self.verbose else self.logger.error
            log("%s failed: %s", label, exc)
            self.console.error(f"{label} failed: {exc}")
            sys.exit(1)

    def open(self, path: str) -> ElfFile:
        return self.run("Loading", lambda: self.engine.load(path))


pass_context = click.make_pass_decorator(_Context)


def _parse_address(
    ctx: click.Context, param: click.Parameter, value: str | None
) -> int | None:
    if value is None:
        return None
    try:
        return int(value, 0)
    except ValueError:
        raise click.BadParameter(f"not an integer address: {value!r}")


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


# ---------------------------------------------------------------------------
# CLI group / commands
# ---------------------------------------------------------------------------

@click.group("sigil")
@click.version_option(__version__, prog_name="sigil")
@click.option(
    "--config", "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to a sigil.toml configuration file.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable verbose/debug output.",
)
@click.pass_context
def sigil_cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """Sigil -- ELF Structural Inspector.

    Read the header, section headers, program headers and symbol tables
    of an ELF binary without executing or linking it.
    """
    try:
        config = SigilConfig.load(config_path)
    except FileNotFoundError as exc:
        raise click.BadParameter(str(exc), param_hint="--config")
    ctx.obj = _Context(config, verbose)


@sigil_cli.command("info")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
@pass_context
def info_cmd(state: _Context, path: str, json_output: bool) -> None:
    """Show the ELF header summary of PATH."""
    with state.open(path) as elf:
        summary = state.run("Summary", lambda: state.engine.summarize(elf, path))

    if json_output:
        _echo_json(summary.model_dump(mode="json"))
        return
    SigilConsoleOutput(state.console).display_summary(summary)


@sigil_cli.command("sections")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
@pass_context
def sections_cmd(state: _Context, path: str, json_output: bool) -> None:
    """List the section headers of PATH."""
    with state.open(path) as elf:
        sections = state.run(
            "Sections", lambda: state.engine.describe_sections(elf)
        )
        bits = elf.bits

    if json_output:
        _echo_json([s.model_dump() for s in sections])
        return
    SigilConsoleOutput(state.console).display_sections(sections, bits=bits)


@sigil_cli.command("segments")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
@pass_context
def segments_cmd(state: _Context, path: str, json_output: bool) -> None:
    """List the program headers of PATH."""
    with state.open(path) as elf:
        segments = state.run(
            "Segments", lambda: state.engine.describe_segments(elf)
        )
        bits = elf.bits

    if json_output:
        _echo_json([s.model_dump() for s in segments])
        return
    SigilConsoleOutput(state.console).display_segments(segments, bits=bits)


@sigil_cli.command("symbols")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--table", "-t",
    type=click.Choice(["dynsym", "symtab"], case_sensitive=False),
    default=None,
    help="Symbol table to dump.  Default: from configuration (dynsym).",
)
@click.option(
    "--type", "types",
    multiple=True,
    help="Keep symbols of this type (FUNC, OBJECT, ...).  Repeatable.",
)
@click.option(
    "--bind", "bindings",
    multiple=True,
    help="Keep symbols with this binding (GLOBAL, WEAK, ...).  Repeatable.",
)
@click.option(
    "--all", "all_symbols",
    is_flag=True,
    default=False,
    help="Disable type and binding filters.",
)
@click.option(
    "--output", "-o",
    "output_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the dump to a file (.json for JSON, text otherwise).",
)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
@pass_context
def symbols_cmd(
    state: _Context,
    path: str,
    table: str | None,
    types: tuple[str, ...],
    bindings: tuple[str, ...],
    all_symbols: bool,
    output_path: str | None,
    json_output: bool,
) -> None:
    """Dump the symbols of PATH, filtered by type and binding.

    Without filters the configured defaults apply: global functions of
    the dynamic symbol table.

    \b
    Examples:
        sigil symbols /usr/lib/libc.so.6
        sigil symbols a.out --table symtab --type OBJECT --bind LOCAL
        sigil symbols a.out --all --output symbols.json
    """
    type_filter: list[str] | None = [] if all_symbols else (list(types) or None)
    bind_filter: list[str] | None = [] if all_symbols else (list(bindings) or None)

    with state.open(path) as elf:
        report = state.run(
            "Symbol dump",
            lambda: state.engine.build_report(
                elf, path, table=table, types=type_filter, bindings=bind_filter
            ),
        )
        bits = elf.bits

    writer = SymbolReportWriter()
    if output_path is not None:
        use_json = (
            Path(output_path).suffix.lower() == ".json"
            or state.config.elf.output_format == "json"
        )
        if use_json:
            written = state.run(
                "Writing report", lambda: writer.write_json(report, output_path)
            )
        else:
            written = state.run(
                "Writing report", lambda: writer.write_text(report, output_path)
            )
        state.logger.info("Wrote %d symbols to %s", report.count, written)

    if json_output:
        _echo_json(writer.to_dict(report))
        return
    if output_path is not None:
        state.console.success(f"{report.count} symbols written to {written}")
        return
    SigilConsoleOutput(state.console).display_symbols(
        report.symbols, title=f"Symbols ({report.table})", bits=bits
    )


@sigil_cli.command("lookup")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--name", "-n", default=None, help="Symbol name to find.")
@click.option(
    "--address", "-a",
    default=None,
    callback=_parse_address,
    help="Address to resolve (decimal or 0x-prefixed hex).",
)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
@pass_context
def lookup_cmd(
    state: _Context,
    path: str,
    name: str | None,
    address: int | None,
    json_output: bool,
) -> None:
    """Find a symbol of PATH by name or by address.

    Exits with status 1 when nothing matches.
    """
    if (name is None) == (address is None):
        raise click.UsageError("Specify exactly one of --name or --address.")

    with state.open(path) as elf:
        if name is not None:
            query = name
            symbol: SymbolInfo | None = state.run(
                "Lookup", lambda: state.engine.lookup_name(elf, name)
            )
        else:
            query = f"0x{address:x}"
            symbol = state.run(
                "Lookup", lambda: state.engine.lookup_address(elf, address)
            )
        bits = elf.bits

    if symbol is None:
        if json_output:
            _echo_json(None)
        else:
            state.console.warning(f"No symbol matches {query}")
        sys.exit(1)

    if json_output:
        _echo_json(symbol.model_dump())
        return
    SigilConsoleOutput(state.console).display_symbols(
        [symbol], title=f"Lookup {query}", bits=bits
    )


def main() -> None:
    """Entry point for the ``sigil`` console script."""
    sigil_cli()


if __name__ == "__main__":
    main()
