"""A non-reentrant mutex that records which thread holds it."""

from __future__ import annotations

import threading


class MutexLock:
    """A mutual-exclusion lock that knows its holder.

    Use it as a context manager to hold it for the extent of a block.
    """

    __slots__ = ("_lock", "_holder")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._holder: int | None = None

    def lock(self) -> None:
        """Acquire the lock, blocking until it is free."""
        self._lock.acquire()
        self._holder = threading.get_ident()

    def unlock(self) -> None:
        """Release the lock; it must be held by the calling thread."""
        if self._holder != threading.get_ident():
            raise RuntimeError("mutex is not held by this thread")
        self._holder = None
        self._lock.release()

    def is_locked_by_this_thread(self) -> bool:
        """Return whether the calling thread holds the lock."""
        return self._holder == threading.get_ident()

    def assert_locked(self) -> None:
        """Raise RuntimeError unless the calling thread holds the lock."""
        if not self.is_locked_by_this_thread():
            raise RuntimeError("mutex is not held by this thread")

    def __enter__(self) -> MutexLock:
        self.lock()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unlock()