"""
Sigil Core Module
==================

Error taxonomy, the compute-once memo cell, data models and the engine
that drives the parser on behalf of the command-line interface.
"""

from sigil.core.errors import (
    ElfError,
    MalformedHeaderError,
    OutOfRangeError,
    TruncatedInputError,
    UnsupportedFeatureError,
)
from sigil.core.lazy import LazyCache

__all__ = [
    "ElfError",
    "LazyCache",
    "MalformedHeaderError",
    "OutOfRangeError",
    "TruncatedInputError",
    "UnsupportedFeatureError",
]
