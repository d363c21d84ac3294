"""Timer events and the handles used to cancel them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, ClassVar, Optional

from .atomic import AtomicInt64

TimerCallback = Callable[[], None]


class Timer:
    """A callback due at an expiration time, optionally repeating.

    Times are seconds since the epoch as floats. A timer with a positive
    ``interval`` repeats; after it fires, :meth:`restart` moves its
    expiration ``interval`` seconds past the given time. A one-shot timer's
    expiration becomes None once restarted.
    """

    _num_created: ClassVar[AtomicInt64] = AtomicInt64()

    __slots__ = ("_callback", "_expiration", "_interval", "_repeat", "_sequence")

    def __init__(self, cb: TimerCallback, when: float, interval: float = 0.0) -> None:
        self._callback = cb
        self._expiration: Optional[float] = when
        self._interval = interval
        self._repeat = interval > 0.0
        self._sequence = Timer._num_created.increment_and_get()

    @property
    def expiration(self) -> Optional[float]:
        """The time the timer is due, or None when it will not fire again."""
        return self._expiration

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def repeat(self) -> bool:
        return self._repeat

    @property
    def sequence(self) -> int:
        """A number unique to this timer among all timers created."""
        return self._sequence

    def run(self) -> None:
        """Invoke the callback."""
        self._callback()

    def restart(self, now: float) -> None:
        """Reschedule a repeating timer from ``now``; invalidate a one-shot one."""
        if self._repeat:
            self._expiration = now + self._interval
        else:
            self._expiration = None

    @staticmethod
    def num_created() -> int:
        """Return how many timers have been created in this process."""
        return Timer._num_created.get()

    def __repr__(self) -> str:
        return (
            f"Timer(sequence={self._sequence}, expiration={self._expiration}, "
            f"interval={self._interval})"
        )


@dataclass(frozen=True)
class TimerId:
    """An opaque handle naming one timer, used to cancel it."""

    timer: Optional[Timer] = None
    sequence: int = 0