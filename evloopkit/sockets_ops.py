"""Thin helpers over TCP sockets and socket addresses."""

from __future__ import annotations

import errno
import logging
import os
import socket
from typing import Tuple, Union

log = logging.getLogger(__name__)

Address = Union[Tuple[str, int], Tuple[str, int, int, int]]
SocketLike = Union[socket.socket, int]

_EXPECTED_ACCEPT_ERRORS = frozenset(
    {
        errno.EAGAIN,
        errno.EWOULDBLOCK,
        errno.ECONNABORTED,
        errno.EINTR,
        getattr(errno, "EPROTO", errno.EAGAIN),
        errno.EPERM,
        errno.EMFILE,
    }
)


def create_nonblocking_or_die(family: int) -> socket.socket:
    """Create a non-blocking, non-inheritable TCP socket of ``family``."""
    try:
        sock = socket.socket(family, socket.SOCK_STREAM, socket.IPPROTO_TCP)
    except OSError:
        log.critical("sockets.create_nonblocking_or_die", exc_info=True)
        raise
    sock.setblocking(False)
    sock.set_inheritable(False)
    return sock


def connect(sock: socket.socket, addr: Address) -> int:
    """Start connecting ``sock`` to ``addr``; return 0 or the error number."""
    return sock.connect_ex(addr)


def bind_or_die(sock: socket.socket, addr: Address) -> None:
    """Bind ``sock`` to ``addr``."""
    try:
        sock.bind(addr)
    except OSError:
        log.critical("sockets.bind_or_die", exc_info=True)
        raise


def listen_or_die(sock: socket.socket) -> None:
    """Put ``sock`` into listening mode with the system's maximum backlog."""
    try:
        sock.listen(socket.SOMAXCONN)
    except OSError:
        log.critical("sockets.listen_or_die", exc_info=True)
        raise


def accept(sock: socket.socket) -> Tuple[socket.socket, Address]:
    """Accept a connection, returning a non-blocking socket and the peer address.

    Transient errors (would block, aborted connection, interrupted call,
    descriptor limits) propagate as the original OSError. Any other error
    is raised as RuntimeError.
    """
    try:
        conn, addr = sock.accept()
    except OSError as exc:
        log.error("Socket.accept", exc_info=True)
        if exc.errno in _EXPECTED_ACCEPT_ERRORS:
            raise
        raise RuntimeError(f"unexpected error of accept {exc.errno}") from exc
    conn.setblocking(False)
    conn.set_inheritable(False)
    return conn, addr


def read(sock: SocketLike, count: int) -> bytes:
    """Read up to ``count`` bytes from a socket or file descriptor."""
    if isinstance(sock, int):
        return os.read(sock, count)
    return sock.recv(count)


def write(sock: SocketLike, data: bytes) -> int:
    """Write ``data`` to a socket or file descriptor; return bytes written."""
    if isinstance(sock, int):
        return os.write(sock, data)
    return sock.send(data)


def close(sock: SocketLike) -> None:
    """Close a socket or file descriptor, logging any failure."""
    try:
        if isinstance(sock, int):
            os.close(sock)
        else:
            sock.close()
    except OSError:
        log.error("sockets.close", exc_info=True)


def shutdown_write(sock: socket.socket) -> None:
    """Shut down the writing half of ``sock``, logging any failure."""
    try:
        sock.shutdown(socket.SHUT_WR)
    except OSError:
        log.error("sockets.shutdown_write", exc_info=True)


def _family_of(addr: Address) -> int:
    return socket.AF_INET if len(addr) == 2 else socket.AF_INET6


def _packed(addr: Address) -> bytes:
    host = addr[0].split("%", 1)[0]
    return socket.inet_pton(_family_of(addr), host)


def to_ip(addr: Address) -> str:
    """Return the textual IP address of ``addr``."""
    return socket.inet_ntop(_family_of(addr), _packed(addr))


def to_ip_port(addr: Address) -> str:
    """Return ``addr`` as ``ip:port``."""
    return f"{to_ip(addr)}:{addr[1]}"


def from_ip_port(ip: str, port: int, family: int = socket.AF_INET) -> Address:
    """Build an address tuple for ``ip`` and ``port`` in ``family``."""
    if not 0 <= port <= 0xFFFF:
        raise ValueError(f"port {port} out of range")
    if family not in (socket.AF_INET, socket.AF_INET6):
        raise ValueError(f"unsupported address family {family}")
    try:
        packed = socket.inet_pton(family, ip)
    except OSError as exc:
        log.error("sockets.from_ip_port", exc_info=True)
        raise ValueError(f"invalid address {ip!r}") from exc
    host = socket.inet_ntop(family, packed)
    if family == socket.AF_INET:
        return (host, port)
    return (host, port, 0, 0)


def get_socket_error(sock: socket.socket) -> int:
    """Return the pending error number on ``sock``, or 0 if none."""
    try:
        return sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
    except OSError as exc:
        return exc.errno or 0


def get_local_addr(sock: socket.socket) -> Address:
    """Return the local address ``sock`` is bound to."""
    try:
        return sock.getsockname()
    except OSError:
        log.error("sockets.get_local_addr", exc_info=True)
        raise


def get_peer_addr(sock: socket.socket) -> Address:
    """Return the address of the peer ``sock`` is connected to."""
    try:
        return sock.getpeername()
    except OSError:
        log.error("sockets.get_peer_addr", exc_info=True)
        raise


def is_self_connect(sock: socket.socket) -> bool:
    """Return whether ``sock`` is connected to itself."""
    try:
        local = get_local_addr(sock)
        peer = get_peer_addr(sock)
    except OSError:
        return False
    if sock.family not in (socket.AF_INET, socket.AF_INET6):
        return False
    if _family_of(local) != _family_of(peer):
        return False
    return local[1] == peer[1] and _packed(local) == _packed(peer)