"""
Compute-Once Memo Cell
=======================

:class:`LazyCache` wraps a zero-argument producer and runs it at most once
per successful resolution.  Every header, symbol and string table exposed
by :class:`~sigil.parsers.elf_file.ElfFile` sits behind one of these cells
so that nothing is decoded until a caller asks for it.

Failures are not cached: if the producer raises, the cell stays empty and
the next :meth:`LazyCache.get` re-invokes the producer, which re-fails the
same way against the same immutable input.

The check-then-store sequence is not atomic.  Resolve cells from a single
thread, or force-resolve everything before sharing (see
:meth:`ElfFile.resolve_all`).
"""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

T = TypeVar("T")


class LazyCache(Generic[T]):
    """Memo cell around a zero-argument *producer*.

    Usage::

        cell = LazyCache(lambda: expensive())
        cell.get()   # runs expensive()
        cell.get()   # returns the stored value
    """

    __slots__ = ("_producer", "_value", "_resolved")

    def __init__(self, producer: Callable[[], T]) -> None:
        self._producer = producer
        self._value: T | None = None
        self._resolved = False

    @property
    def resolved(self) -> bool:
        """``True`` once a value has been produced and stored."""
        return self._resolved

    def get(self) -> T:
        """Return the stored value, producing it on first access."""
        if not self._resolved:
            value = self._producer()
            self._value = value
            self._resolved = True
        return self._value  # type: ignore[return-value]

    def __repr__(self) -> str:
        state = repr(self._value) if self._resolved else "<unresolved>"
        return f"LazyCache({state})"
