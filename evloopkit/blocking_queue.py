"""Unbounded and bounded FIFO queues whose take() blocks until data arrives."""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Generic, TypeVar

T = TypeVar("T")


class BlockingQueue(Generic[T]):
    """An unbounded thread-safe FIFO queue."""

    def __init__(self) -> None:
        self._not_empty = threading.Condition(threading.Lock())
        self._queue: Deque[T] = deque()

    def put(self, x: T) -> None:
        """Append ``x`` and wake one waiting taker."""
        with self._not_empty:
            self._queue.append(x)
            self._not_empty.notify()

    def take(self) -> T:
        """Remove and return the oldest item, waiting while the queue is empty."""
        with self._not_empty:
            while not self._queue:
                self._not_empty.wait()
            return self._queue.popleft()

    def __len__(self) -> int:
        with self._not_empty:
            return len(self._queue)


class BoundedBlockingQueue(Generic[T]):
    """A thread-safe FIFO queue holding at most ``maxsize`` items."""

    def __init__(self, maxsize: int) -> None:
        if maxsize < 0:
            raise ValueError("maxsize must not be negative")
        lock = threading.Lock()
        self._not_empty = threading.Condition(lock)
        self._not_full = threading.Condition(lock)
        self._lock = lock
        self._maxsize = maxsize
        self._queue: Deque[T] = deque()

    def put(self, x: T) -> None:
        """Append ``x``, waiting while the queue is full."""
        with self._not_full:
            while len(self._queue) >= self._maxsize:
                self._not_full.wait()
            self._queue.append(x)
            self._not_empty.notify()

    def take(self) -> T:
        """Remove and return the oldest item, waiting while the queue is empty."""
        with self._not_empty:
            while not self._queue:
                self._not_empty.wait()
            front = self._queue.popleft()
            self._not_full.notify()
            return front

    def empty(self) -> bool:
        """Return whether the queue holds no items."""
        with self._lock:
            return not self._queue

    def full(self) -> bool:
        """Return whether the queue is at capacity."""
        with self._lock:
            return len(self._queue) >= self._maxsize

    def capacity(self) -> int:
        """Return the maximum number of items."""
        return self._maxsize

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)