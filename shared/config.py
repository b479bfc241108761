"""
Sigil Configuration Management
===============================

Centralized configuration for the Sigil ELF inspector using Python
dataclasses and TOML-based persistence.

Configuration is kept out of code: every default below can be overridden
from a ``sigil.toml`` file with a ``[global]`` and an ``[elf]`` table.

References:
    - Wiggins, A. (2011). The Twelve-Factor App. https://12factor.net/
    - TOML v1.0.0 Specification. https://toml.io/en/v1.0.0
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


# ---------------------------------------------------------------------------
# Default configuration file path relative to the project root
# ---------------------------------------------------------------------------
_DEFAULT_CONFIG_PATH: Path = Path(__file__).resolve().parent.parent / "sigil.toml"


# ========================== Tool-Specific Configs ==========================


@dataclass(frozen=False, slots=True)
class ElfConfig:
    """Configuration for the ELF parser and the symbol dump.

    ``buffered`` selects between loading the whole file into memory
    (default, deterministic) and reading a seekable stream on demand for
    very large files.  The symbol filters default to the exported
    functions of the dynamic symbol table.
    """

    max_file_size: int = 268_435_456  # 256 MiB
    buffered: bool = True
    symbol_table: str = "dynsym"
    symbol_types: list[str] = field(default_factory=lambda: ["FUNC"])
    symbol_bindings: list[str] = field(default_factory=lambda: ["GLOBAL"])
    output_format: str = "text"


# =========================== Global Settings ===============================


@dataclass(frozen=False, slots=True)
class GlobalConfig:
    """Global settings: logging verbosity and destinations."""

    log_level: str = "INFO"
    log_file: str | None = None
    log_json: bool = False
    debug: bool = False
    version: str = "1.0.0"


# =========================== Master Config =================================


@dataclass(frozen=False, slots=True)
class SigilConfig:
    """Master configuration aggregating global and ELF settings.

    Usage:
        >>> config = SigilConfig.load()                  # from default path
        >>> config = SigilConfig.load("custom.toml")     # from custom path
        >>> print(config.elf.symbol_table)
        'dynsym'
    """

    global_settings: GlobalConfig = field(default_factory=GlobalConfig)
    elf: ElfConfig = field(default_factory=ElfConfig)

    # ------------------------------------------------------------------ #
    #  TOML Loading
    # ------------------------------------------------------------------ #

    @classmethod
    def load(cls, path: str | Path | None = None) -> SigilConfig:
        """Load configuration from a TOML file.

        If *path* is ``None`` the loader looks for ``sigil.toml`` in the
        project root.  Missing keys fall back to dataclass defaults.

        Args:
            path: Filesystem path to a TOML configuration file.

        Returns:
            A fully-populated :class:`SigilConfig` instance.

        Raises:
            FileNotFoundError: If the specified path does not exist
                *and* was explicitly provided by the caller.
        """
        config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH

        if not config_path.exists():
            if path is not None:
                raise FileNotFoundError(
                    f"Configuration file not found: {config_path}"
                )
            # Fall back to pure defaults when the default file is absent.
            return cls()

        with open(config_path, "rb") as fh:
            raw: dict[str, Any] = tomllib.load(fh)

        return cls(
            global_settings=cls._build_section(GlobalConfig, raw.get("global", {})),
            elf=cls._build_section(ElfConfig, raw.get("elf", {})),
        )

    # ------------------------------------------------------------------ #
    #  Serialisation helpers
    # ------------------------------------------------------------------ #

    def to_dict(self) -> dict[str, Any]:
        """Serialise the entire configuration tree to a plain dictionary."""
        return asdict(self)

    # ------------------------------------------------------------------ #
    #  Internal helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _build_section(cls: type, data: dict[str, Any]) -> Any:
        """Instantiate a dataclass *cls* using only the keys it declares.

        Unknown keys in the TOML source are ignored so that newer config
        files keep working with older code.
        """
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}  # type: ignore[attr-defined]
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        return cls(**filtered)


# ========================= Module-level convenience ========================

def get_config(path: str | Path | None = None) -> SigilConfig:
    """Module-level convenience wrapper around :meth:`SigilConfig.load`.

    Caches the result so that repeated calls share one instance.
    """
    if not hasattr(get_config, "_cached") or path is not None:
        get_config._cached = SigilConfig.load(path)  # type: ignore[attr-defined]
    return get_config._cached  # type: ignore[attr-defined]
