"""
Sigil Module Entry Point
=========================

Allows running the Sigil CLI via: python -m sigil
"""

from sigil.cli import main

if __name__ == "__main__":
    main()
