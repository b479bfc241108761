"""
Sigil Shared Module
===================

Configuration, structured logging and console presentation shared by
the Sigil engine and command-line interface.
"""

from shared.config import SigilConfig, get_config

__all__ = ["SigilConfig", "get_config"]
