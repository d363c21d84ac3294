"""A selectable I/O channel dispatching poll events to callbacks."""

from __future__ import annotations

import enum
import logging
import weakref
from typing import Any, Callable, Optional

log = logging.getLogger(__name__)

EventCallback = Callable[[], None]
ReadEventCallback = Callable[[float], None]


class Event(enum.IntFlag):
    """Poll event bits."""

    IN = 0x001
    PRI = 0x002
    OUT = 0x004
    ERR = 0x008
    HUP = 0x010
    NVAL = 0x020
    RDHUP = 0x2000


NONE_EVENT = 0
READ_EVENT = Event.IN | Event.PRI
WRITE_EVENT = Event.OUT

_NAMES = (
    (Event.IN, "IN"),
    (Event.PRI, "PRI"),
    (Event.OUT, "OUT"),
    (Event.HUP, "HUP"),
    (Event.RDHUP, "RDHUP"),
    (Event.ERR, "ERR"),
    (Event.NVAL, "NVAL"),
)


def events_to_string(fd: int, ev: int) -> str:
    """Describe the event bits ``ev`` on descriptor ``fd``."""
    names = "".join(f"{name} " for flag, name in _NAMES if ev & flag)
    return f"{fd}: {names}"


class Channel:
    """Routes the events of one file descriptor to its callbacks.

    The channel does not own the descriptor. Changes to the set of events
    it watches are passed to its loop through ``loop.update_channel``.
    The poller sets ``revents`` and keeps its own bookkeeping in ``index``.
    """

    def __init__(self, loop: Any, fd: int) -> None:
        self.loop = loop
        self._fd = fd
        self._events = NONE_EVENT
        self.revents = 0
        self.index = -1
        self._log_hup = True
        self._tie: Optional[weakref.ref] = None
        self._event_handling = False
        self._added_to_loop = False
        self.read_callback: Optional[ReadEventCallback] = None
        self.write_callback: Optional[EventCallback] = None
        self.close_callback: Optional[EventCallback] = None
        self.error_callback: Optional[EventCallback] = None

    @property
    def fd(self) -> int:
        return self._fd

    @property
    def events(self) -> int:
        """The event bits this channel watches."""
        return self._events

    @property
    def event_handling(self) -> bool:
        return self._event_handling

    @property
    def added_to_loop(self) -> bool:
        return self._added_to_loop

    def tie(self, obj: object) -> None:
        """Handle events only while ``obj`` is still alive."""
        self._tie = weakref.ref(obj)

    def handle_event(self, receive_time: float) -> None:
        """Dispatch the received events in ``revents`` to the callbacks."""
        if self._tie is not None:
            guard = self._tie()
            if guard is not None:
                self._handle_event_with_guard(receive_time)
        else:
            self._handle_event_with_guard(receive_time)

    def _handle_event_with_guard(self, receive_time: float) -> None:
        self._event_handling = True
        try:
            revents = self.revents
            log.debug("%s", self.revents_to_string())
            if revents & Event.HUP and not revents & Event.IN:
                if self._log_hup:
                    log.warning("fd = %d Channel.handle_event() POLLHUP", self._fd)
                if self.close_callback:
                    self.close_callback()
            if revents & Event.NVAL:
                log.warning("fd = %d Channel.handle_event() POLLNVAL", self._fd)
            if revents & (Event.ERR | Event.NVAL):
                if self.error_callback:
                    self.error_callback()
            if revents & (Event.IN | Event.PRI | Event.RDHUP):
                if self.read_callback:
                    self.read_callback(receive_time)
            if revents & Event.OUT:
                if self.write_callback:
                    self.write_callback()
        finally:
            self._event_handling = False

    def enable_reading(self) -> None:
        self._events |= READ_EVENT
        self._update()

    def disable_reading(self) -> None:
        self._events &= ~READ_EVENT
        self._update()

    def enable_writing(self) -> None:
        self._events |= WRITE_EVENT
        self._update()

    def disable_writing(self) -> None:
        self._events &= ~WRITE_EVENT
        self._update()

    def disable_all(self) -> None:
        self._events = NONE_EVENT
        self._update()

    def is_writing(self) -> bool:
        return bool(self._events & WRITE_EVENT)

    def is_reading(self) -> bool:
        return bool(self._events & READ_EVENT)

    def is_none_event(self) -> bool:
        return self._events == NONE_EVENT

    def do_not_log_hup(self) -> None:
        """Stop warning when the peer hangs up."""
        self._log_hup = False

    def remove(self) -> None:
        """Detach the channel from its loop; it must watch no events."""
        if not self.is_none_event():
            raise RuntimeError("cannot remove a channel that still watches events")
        self._added_to_loop = False
        self.loop.remove_channel(self)

    def revents_to_string(self) -> str:
        return events_to_string(self._fd, self.revents)

    def events_to_string(self) -> str:
        return events_to_string(self._fd, self._events)

    def _update(self) -> None:
        self._added_to_loop = True
        self.loop.update_channel(self)

    def __repr__(self) -> str:
        return f"Channel(fd={self._fd}, events={self.events_to_string()!r})"