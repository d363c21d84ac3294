"""Conversions between host and network (big-endian) byte order."""

from __future__ import annotations

import sys


def _swap(value: int, size: int) -> int:
    return int.from_bytes(value.to_bytes(size, sys.byteorder), "big")


def host_to_network64(host64: int) -> int:
    """Convert an unsigned 64-bit integer from host to network order."""
    return _swap(host64, 8)


def host_to_network32(host32: int) -> int:
    """Convert an unsigned 32-bit integer from host to network order."""
    return _swap(host32, 4)


def host_to_network16(host16: int) -> int:
    """Convert an unsigned 16-bit integer from host to network order."""
    return _swap(host16, 2)


def network_to_host64(net64: int) -> int:
    """Convert an unsigned 64-bit integer from network to host order."""
    return _swap(net64, 8)


def network_to_host32(net32: int) -> int:
    """Convert an unsigned 32-bit integer from network to host order."""
    return _swap(net32, 4)


def network_to_host16(net16: int) -> int:
    """Convert an unsigned 16-bit integer from network to host order."""
    return _swap(net16, 2)