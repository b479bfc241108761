"""
Sigil Console Interface
========================

Rich-powered console abstraction providing a unified presentation layer
for the Sigil command-line interface.

The class wraps :class:`rich.console.Console` and adds section headers
and severity-coloured messages with consistent styling.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.theme import Theme

# ---------------------------------------------------------------------------
# Theme -- consistent palette across all Sigil output
# ---------------------------------------------------------------------------
_SIGIL_THEME = Theme(
    {
        "sigil.section": "bold bright_magenta",
        "sigil.success": "bold green",
        "sigil.warning": "bold yellow",
        "sigil.error": "bold red",
    }
)


class SigilConsole:
    """Unified console interface for Sigil output.

    Usage::

        con = SigilConsole()
        con.section("Sections")
        con.success("Symbols written")
    """

    def __init__(
        self,
        *,
        quiet: bool = False,
        record: bool = False,
        stderr: bool = False,
    ) -> None:
        """Initialise the console.

        Args:
            quiet:  Suppress all output (useful in library / test mode).
            record: Enable Rich recording of everything printed.
            stderr: Write to standard error instead of standard output.
        """
        self._console = Console(
            theme=_SIGIL_THEME,
            quiet=quiet,
            record=record,
            stderr=stderr,
            highlight=False,
        )

    @property
    def rich(self) -> Console:
        """Direct access to the underlying Rich Console instance."""
        return self._console

    # ------------------------------------------------------------------ #
    #  Section header
    # ------------------------------------------------------------------ #

    def section(self, title: str) -> None:
        """Print a prominent section header."""
        self._console.rule(
            f"  {title}  ",
            style="sigil.section",
            characters="─",
        )
        self._console.print()

    # ------------------------------------------------------------------ #
    #  Message helpers (severity-coloured)
    # ------------------------------------------------------------------ #

    def success(self, message: str) -> None:
        self._console.print(
            f"[sigil.success][✔] SUCCESS:[/sigil.success] {escape(message)}"
        )

    def warning(self, message: str) -> None:
        self._console.print(
            f"[sigil.warning][⚠] WARNING:[/sigil.warning] {escape(message)}"
        )

    def error(self, message: str) -> None:
        self._console.print(
            f"[sigil.error][✘] ERROR:[/sigil.error] {escape(message)}"
        )

    # ------------------------------------------------------------------ #
    #  Utility
    # ------------------------------------------------------------------ #

    def blank(self, count: int = 1) -> None:
        """Print *count* blank lines."""
        for _ in range(count):
            self._console.print()
