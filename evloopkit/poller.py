"""I/O multiplexing over the channels of one event loop."""

from __future__ import annotations

import abc
import logging
import selectors
import time
from typing import Any, Dict, List, Optional, Tuple

from .channel import Channel, Event

log = logging.getLogger(__name__)

ChannelList = List[Channel]

_NEW = -1
_ADDED = 1
_DELETED = 2


class Poller(abc.ABC):
    """Base class for I/O multiplexing; it does not own the channels."""

    def __init__(self, loop: Any) -> None:
        self._owner_loop = loop
        self._channels: Dict[int, Channel] = {}

    @abc.abstractmethod
    def poll(self, timeout_ms: Optional[float]) -> Tuple[float, ChannelList]:
        """Wait for I/O events; return the time they arrived and the active channels.

        A ``timeout_ms`` of None or below zero waits without limit.
        Must be called in the loop thread.
        """

    @abc.abstractmethod
    def update_channel(self, channel: Channel) -> None:
        """Start or change watching the events ``channel`` asks for."""

    @abc.abstractmethod
    def remove_channel(self, channel: Channel) -> None:
        """Forget ``channel`` entirely."""

    def has_channel(self, channel: Channel) -> bool:
        """Return whether this poller knows ``channel``."""
        self.assert_in_loop_thread()
        return self._channels.get(channel.fd) is channel

    def assert_in_loop_thread(self) -> None:
        """Raise unless called from the owner loop's thread."""
        self._owner_loop.assert_in_loop_thread()


def _selector_mask(events: int) -> int:
    mask = 0
    if events & (Event.IN | Event.PRI):
        mask |= selectors.EVENT_READ
    if events & Event.OUT:
        mask |= selectors.EVENT_WRITE
    return mask


def _revents(mask: int) -> int:
    revents = 0
    if mask & selectors.EVENT_READ:
        revents |= Event.IN
    if mask & selectors.EVENT_WRITE:
        revents |= Event.OUT
    return revents


class SelectorPoller(Poller):
    """A poller built on the platform's best ``selectors`` implementation."""

    def __init__(self, loop: Any) -> None:
        super().__init__(loop)
        self._selector = selectors.DefaultSelector()

    def poll(self, timeout_ms: Optional[float]) -> Tuple[float, ChannelList]:
        if timeout_ms is None or timeout_ms < 0:
            timeout = None
        else:
            timeout = timeout_ms / 1000.0
        active: ChannelList = []
        if not self._selector.get_map():
            if timeout:
                time.sleep(timeout)
            log.debug("nothing happened")
            return time.time(), active
        ready = self._selector.select(timeout)
        now = time.time()
        for key, mask in ready:
            channel: Channel = key.data
            channel.revents = _revents(mask)
            active.append(channel)
        if active:
            log.debug("%d events happened", len(active))
        else:
            log.debug("nothing happened")
        return now, active

    def update_channel(self, channel: Channel) -> None:
        self.assert_in_loop_thread()
        fd = channel.fd
        index = channel.index
        log.debug("fd = %d events = %d index = %d", fd, channel.events, index)
        if index in (_NEW, _DELETED):
            if index == _NEW:
                if fd in self._channels:
                    raise ValueError(f"descriptor {fd} is already watched")
                self._channels[fd] = channel
            elif self._channels.get(fd) is not channel:
                raise ValueError(f"channel for descriptor {fd} is not known")
            if channel.is_none_event():
                channel.index = _DELETED
            else:
                self._selector.register(fd, _selector_mask(channel.events), channel)
                channel.index = _ADDED
        else:
            if self._channels.get(fd) is not channel:
                raise ValueError(f"channel for descriptor {fd} is not known")
            if channel.is_none_event():
                self._selector.unregister(fd)
                channel.index = _DELETED
            else:
                self._selector.modify(fd, _selector_mask(channel.events), channel)

    def remove_channel(self, channel: Channel) -> None:
        self.assert_in_loop_thread()
        fd = channel.fd
        log.debug("fd = %d", fd)
        if self._channels.get(fd) is not channel:
            raise ValueError(f"channel for descriptor {fd} is not known")
        if not channel.is_none_event():
            raise RuntimeError("cannot remove a channel that still watches events")
        index = channel.index
        if index not in (_ADDED, _DELETED):
            raise RuntimeError(f"channel for descriptor {fd} is in an unexpected state")
        del self._channels[fd]
        if index == _ADDED:
            self._selector.unregister(fd)
        channel.index = _NEW

    def close(self) -> None:
        """Release the underlying selector."""
        self._selector.close()


def new_default_poller(loop: Any) -> Poller:
    """Return the poller an event loop uses by default."""
    return SelectorPoller(loop)