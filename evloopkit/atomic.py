"""Thread-safe integer counters with fixed-width wrap-around semantics."""

from __future__ import annotations

import threading
from typing import ClassVar


class AtomicInteger:
    """An integer whose read-modify-write operations are atomic.

    The base class holds an unbounded integer; subclasses fix a bit width
    and wrap on overflow like two's-complement machine integers.
    """

    _bits: ClassVar[int | None] = None

    __slots__ = ("_value", "_lock")

    def __init__(self, value: int = 0) -> None:
        self._lock = threading.Lock()
        self._value = self._wrap(value)

    @classmethod
    def _wrap(cls, value: int) -> int:
        bits = cls._bits
        if bits is None:
            return value
        value &= (1 << bits) - 1
        if value >= 1 << (bits - 1):
            value -= 1 << bits
        return value

    def get(self) -> int:
        """Return the current value."""
        with self._lock:
            return self._value

    def get_and_add(self, x: int) -> int:
        """Add ``x`` and return the value held before the addition."""
        with self._lock:
            old = self._value
            self._value = self._wrap(old + x)
            return old

    def add_and_get(self, x: int) -> int:
        """Add ``x`` and return the new value."""
        return self._wrap(self.get_and_add(x) + x)

    def increment_and_get(self) -> int:
        """Add one and return the new value."""
        return self.add_and_get(1)

    def decrement_and_get(self) -> int:
        """Subtract one and return the new value."""
        return self.add_and_get(-1)

    def add(self, x: int) -> None:
        """Add ``x``."""
        self.get_and_add(x)

    def increment(self) -> None:
        """Add one."""
        self.increment_and_get()

    def decrement(self) -> None:
        """Subtract one."""
        self.decrement_and_get()

    def get_and_set(self, new_value: int) -> int:
        """Store ``new_value`` and return the value held before."""
        with self._lock:
            old = self._value
            self._value = self._wrap(new_value)
            return old

    def __int__(self) -> int:
        return self.get()

    def __index__(self) -> int:
        return self.get()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.get()})"


class AtomicInt32(AtomicInteger):
    """A 32-bit signed atomic integer."""

    _bits = 32
    __slots__ = ()


class AtomicInt64(AtomicInteger):
    """A 64-bit signed atomic integer."""

    _bits = 64
    __slots__ = ()