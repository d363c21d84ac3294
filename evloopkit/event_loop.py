"""A reactor: one event loop per thread, dispatching I/O, timers and queued calls."""

from __future__ import annotations

import logging
import math
import socket
import struct
import threading
import time
from typing import Any, Callable, List, Optional

from .channel import Channel
from .mutex import MutexLock
from .poller import new_default_poller
from .timer import TimerCallback, TimerId
from .timer_queue import TimerQueue

log = logging.getLogger(__name__)

Functor = Callable[[], None]

POLL_TIME_MS = 10000

_current = threading.local()


def get_event_loop_of_current_thread() -> Optional["EventLoop"]:
    """Return the event loop created in the calling thread, if any."""
    return getattr(_current, "loop", None)


class EventLoop:
    """A reactor; at most one per thread.

    :meth:`loop` must run in the thread that created the object. Other
    threads hand work to it with :meth:`run_in_loop` or
    :meth:`queue_in_loop` and schedule timers with :meth:`run_at`,
    :meth:`run_after` and :meth:`run_every`.
    """

    def __init__(self) -> None:
        self._thread_id = threading.get_ident()
        existing = get_event_loop_of_current_thread()
        if existing is not None:
            raise RuntimeError(
                f"another EventLoop {existing!r} exists in this thread {self._thread_id}"
            )
        self._looping = False
        self._quit = False
        self._event_handling = False
        self._calling_pending_functors = False
        self._iteration = 0
        self._poll_return_time = 0.0
        self._closed = False
        self.context: Any = None
        self._active_channels: List[Channel] = []
        self._current_active_channel: Optional[Channel] = None
        self._mutex = MutexLock()
        self._pending_functors: List[Functor] = []
        self._poller = new_default_poller(self)
        self._timer_queue = TimerQueue(self)
        self._wakeup_reader, self._wakeup_writer = socket.socketpair()
        self._wakeup_reader.setblocking(False)
        self._wakeup_writer.setblocking(False)
        log.debug("EventLoop created %r in thread %d", self, self._thread_id)
        _current.loop = self
        self._wakeup_channel = Channel(self, self._wakeup_reader.fileno())
        self._wakeup_channel.read_callback = lambda receive_time: self._handle_read()
        self._wakeup_channel.enable_reading()

    @property
    def poll_return_time(self) -> float:
        """When the last poll returned, usually the arrival time of data."""
        return self._poll_return_time

    @property
    def iteration(self) -> int:
        """How many times the loop has polled."""
        return self._iteration

    @property
    def event_handling(self) -> bool:
        return self._event_handling

    def loop(self) -> None:
        """Run until :meth:`quit` is called; must be called in the loop thread."""
        if self._looping:
            raise RuntimeError("EventLoop is already looping")
        self.assert_in_loop_thread()
        self._looping = True
        self._quit = False
        log.debug("EventLoop %r start looping", self)
        try:
            while not self._quit:
                self._active_channels = []
                self._poll_return_time, self._active_channels = self._poller.poll(
                    self._poll_timeout_ms()
                )
                self._iteration += 1
                if log.isEnabledFor(logging.DEBUG):
                    self._print_active_channels()
                self._event_handling = True
                try:
                    for channel in self._active_channels:
                        self._current_active_channel = channel
                        channel.handle_event(self._poll_return_time)
                finally:
                    self._current_active_channel = None
                    self._event_handling = False
                self._timer_queue.process_expired(time.time())
                self._do_pending_functors()
        finally:
            log.debug("EventLoop %r stop looping", self)
            self._looping = False

    def quit(self) -> None:
        """Ask the loop to stop after its current iteration."""
        self._quit = True
        if not self.is_in_loop_thread():
            self.wakeup()

    def close(self) -> None:
        """Release the loop's resources; must be called in the loop thread."""
        if self._closed:
            return
        self.assert_in_loop_thread()
        log.debug(
            "EventLoop %r of thread %d destructs in thread %d",
            self,
            self._thread_id,
            threading.get_ident(),
        )
        self._wakeup_channel.disable_all()
        self._wakeup_channel.remove()
        self._wakeup_reader.close()
        self._wakeup_writer.close()
        self._poller.close()
        self._closed = True
        if get_event_loop_of_current_thread() is self:
            _current.loop = None

    def __enter__(self) -> "EventLoop":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def run_in_loop(self, cb: Functor) -> None:
        """Run ``cb`` now if in the loop thread, otherwise queue it for the loop."""
        if self.is_in_loop_thread():
            cb()
        else:
            self.queue_in_loop(cb)

    def queue_in_loop(self, cb: Functor) -> None:
        """Queue ``cb`` to run in the loop thread after the current poll."""
        with self._mutex:
            self._pending_functors.append(cb)
        if not self.is_in_loop_thread() or self._calling_pending_functors:
            self.wakeup()

    def queue_size(self) -> int:
        """Return how many queued calls are waiting."""
        with self._mutex:
            return len(self._pending_functors)

    def run_at(self, time: float, cb: TimerCallback) -> TimerId:
        """Run ``cb`` at ``time`` (seconds since the epoch)."""
        return self._timer_queue.add_timer(cb, time, 0.0)

    def run_after(self, delay: float, cb: TimerCallback) -> TimerId:
        """Run ``cb`` after ``delay`` seconds."""
        return self.run_at(_now() + delay, cb)

    def run_every(self, interval: float, cb: TimerCallback) -> TimerId:
        """Run ``cb`` every ``interval`` seconds."""
        return self._timer_queue.add_timer(cb, _now() + interval, interval)

    def cancel(self, timer_id: TimerId) -> None:
        """Cancel a timer."""
        self._timer_queue.cancel(timer_id)

    def wakeup(self) -> None:
        """Interrupt a poll in progress."""
        one = struct.pack("=Q", 1)
        try:
            n = self._wakeup_writer.send(one)
        except BlockingIOError:
            return
        except OSError:
            log.error("EventLoop.wakeup() failed", exc_info=True)
            return
        if n != len(one):
            log.error("EventLoop.wakeup() writes %d bytes instead of 8", n)

    def update_channel(self, channel: Channel) -> None:
        """Change what the poller watches for ``channel``."""
        self._check_owner(channel)
        self.assert_in_loop_thread()
        self._poller.update_channel(channel)

    def remove_channel(self, channel: Channel) -> None:
        """Stop watching ``channel``."""
        self._check_owner(channel)
        self.assert_in_loop_thread()
        if (
            self._event_handling
            and channel is not self._current_active_channel
            and channel in self._active_channels
        ):
            raise RuntimeError("cannot remove another active channel while handling events")
        self._poller.remove_channel(channel)

    def has_channel(self, channel: Channel) -> bool:
        """Return whether the poller watches ``channel``."""
        self._check_owner(channel)
        self.assert_in_loop_thread()
        return self._poller.has_channel(channel)

    def assert_in_loop_thread(self) -> None:
        """Raise RuntimeError unless called in the loop thread."""
        if not self.is_in_loop_thread():
            raise RuntimeError(
                f"EventLoop {self!r} was created in thread {self._thread_id}, "
                f"current thread id = {threading.get_ident()}"
            )

    def is_in_loop_thread(self) -> bool:
        """Return whether the caller runs in the thread that owns the loop."""
        return self._thread_id == threading.get_ident()

    def _check_owner(self, channel: Channel) -> None:
        if channel.loop is not self:
            raise ValueError("channel belongs to another loop")

    def _poll_timeout_ms(self) -> float:
        earliest = self._timer_queue.earliest_expiration()
        if earliest is None:
            return POLL_TIME_MS
        remaining = (earliest - _now()) * 1000.0
        return max(0, min(POLL_TIME_MS, math.ceil(remaining)))

    def _handle_read(self) -> None:
        total = 0
        while True:
            try:
                data = self._wakeup_reader.recv(4096)
            except BlockingIOError:
                break
            if not data:
                break
            total += len(data)
        if total == 0 or total % 8:
            log.error("EventLoop.handle_read() reads %d bytes instead of 8", total)

    def _do_pending_functors(self) -> None:
        self._calling_pending_functors = True
        try:
            with self._mutex:
                functors, self._pending_functors = self._pending_functors, []
            for functor in functors:
                functor()
        finally:
            self._calling_pending_functors = False

    def _print_active_channels(self) -> None:
        for channel in self._active_channels:
            log.debug("{%s} ", channel.revents_to_string())

    def __repr__(self) -> str:
        return f"<EventLoop thread={self._thread_id} at {id(self):#x}>"


def _now() -> float:
    return time.time()