"""Reactor-style event loop with timers, channels, a selector poller, socket helpers and thread primitives."""

__version__ = "0.1.0"