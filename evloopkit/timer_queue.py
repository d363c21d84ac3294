"""An ordered set of pending timers, fired by whoever drives the queue."""

from __future__ import annotations

import bisect
import math
import time
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from .timer import Timer, TimerCallback, TimerId

_Entry = Tuple[float, int, Timer]


class TimerQueue:
    """A best-effort timer queue; callbacks may run later than scheduled.

    When a ``loop`` is given, additions and cancellations are handed to
    ``loop.run_in_loop`` so they take effect in the loop's thread, and
    :meth:`process_expired` must be called from that thread. Without a
    loop, every operation takes effect immediately in the caller's thread.
    """

    def __init__(self, loop: Any = None) -> None:
        self._loop = loop
        self._timers: List[_Entry] = []
        self._active: Dict[int, Timer] = {}
        self._calling_expired = False
        self._canceling: Set[int] = set()

    def add_timer(self, cb: TimerCallback, when: float, interval: float = 0.0) -> TimerId:
        """Schedule ``cb`` at ``when``, repeating every ``interval`` if positive."""
        timer = Timer(cb, when, interval)
        self._run_in_loop(lambda: self._add_timer_in_loop(timer))
        return TimerId(timer, timer.sequence)

    def cancel(self, timer_id: TimerId) -> None:
        """Cancel the timer named by ``timer_id``; unknown ids are ignored."""
        self._run_in_loop(lambda: self._cancel_in_loop(timer_id))

    def earliest_expiration(self) -> Optional[float]:
        """Return when the next timer is due, or None if none is pending."""
        return self._timers[0][0] if self._timers else None

    def process_expired(self, now: Optional[float] = None) -> int:
        """Run every timer due at or before ``now``; return how many ran.

        Repeating timers that were not cancelled while running are
        rescheduled relative to ``now``.
        """
        self._assert_in_loop_thread()
        if now is None:
            now = time.time()
        expired = self._get_expired(now)
        self._calling_expired = True
        self._canceling.clear()
        try:
            for _, _, timer in expired:
                timer.run()
        finally:
            self._calling_expired = False
            self._reset(expired, now)
        return len(expired)

    def __len__(self) -> int:
        return len(self._timers)

    def _run_in_loop(self, fn: Callable[[], None]) -> None:
        if self._loop is None:
            fn()
        else:
            self._loop.run_in_loop(fn)

    def _assert_in_loop_thread(self) -> None:
        if self._loop is not None:
            self._loop.assert_in_loop_thread()

    def _add_timer_in_loop(self, timer: Timer) -> None:
        self._assert_in_loop_thread()
        self._insert(timer)

    def _cancel_in_loop(self, timer_id: TimerId) -> None:
        self._assert_in_loop_thread()
        timer = self._active.get(timer_id.sequence)
        if timer is not None and timer is timer_id.timer:
            index = bisect.bisect_left(self._timers, (timer.expiration, timer.sequence))
            del self._timers[index]
            del self._active[timer.sequence]
        elif self._calling_expired:
            self._canceling.add(timer_id.sequence)

    def _get_expired(self, now: float) -> List[_Entry]:
        end = bisect.bisect_right(self._timers, (now, math.inf))
        expired = self._timers[:end]
        del self._timers[:end]
        for _, sequence, _ in expired:
            del self._active[sequence]
        return expired

    def _reset(self, expired: List[_Entry], now: float) -> None:
        for _, sequence, timer in expired:
            if timer.repeat and sequence not in self._canceling:
                timer.restart(now)
                self._insert(timer)

    def _insert(self, timer: Timer) -> None:
        if timer.expiration is None:
            raise ValueError("cannot schedule a timer with no expiration")
        bisect.insort(self._timers, (timer.expiration, timer.sequence, timer))
        self._active[timer.sequence] = timer