import os
import select
import socket

import pytest

from evloopkit import sockets_ops


@pytest.fixture
def server():
    sock = sockets_ops.create_nonblocking_or_die(socket.AF_INET)
    sockets_ops.bind_or_die(sock, sockets_ops.from_ip_port("127.0.0.1", 0))
    sockets_ops.listen_or_die(sock)
    yield sock
    sock.close()


def _accept_ready(server_sock):
    readable, _, _ = select.select([server_sock], [], [], 5.0)
    assert readable == [server_sock]
    return sockets_ops.accept(server_sock)


@pytest.fixture
def connected(server):
    client = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    assert sockets_ops.connect(client, sockets_ops.get_local_addr(server)) == 0
    conn, _ = _accept_ready(server)
    yield client, conn
    client.close()
    conn.close()


def test_create_nonblocking():
    sock = sockets_ops.create_nonblocking_or_die(socket.AF_INET)
    try:
        assert sock.getblocking() is False
        assert sock.type == socket.SOCK_STREAM
        assert sock.get_inheritable() is False
    finally:
        sock.close()


def test_from_ip_port_ipv4():
    addr = sockets_ops.from_ip_port("127.0.0.1", 8080)
    assert addr == ("127.0.0.1", 8080)
    assert sockets_ops.to_ip(addr) == "127.0.0.1"
    assert sockets_ops.to_ip_port(addr) == "127.0.0.1:8080"


def test_from_ip_port_ipv6_canonical():
    addr = sockets_ops.from_ip_port("0:0:0:0:0:0:0:1", 80, socket.AF_INET6)
    assert addr == ("::1", 80, 0, 0)
    assert sockets_ops.to_ip(addr) == "::1"


def test_from_ip_port_errors():
    with pytest.raises(ValueError):
        sockets_ops.from_ip_port("not-an-ip", 80)
    with pytest.raises(ValueError):
        sockets_ops.from_ip_port("127.0.0.1", 70000)
    with pytest.raises(ValueError):
        sockets_ops.from_ip_port("::1", 80, socket.AF_INET)


def test_accept_with_nothing_pending_raises(server):
    with pytest.raises(BlockingIOError):
        sockets_ops.accept(server)


def test_connection_addresses_match(connected):
    client, conn = connected
    assert sockets_ops.get_local_addr(conn) == sockets_ops.get_peer_addr(client)
    assert sockets_ops.get_peer_addr(conn) == sockets_ops.get_local_addr(client)
    assert conn.getblocking() is False
    assert sockets_ops.get_socket_error(conn) == 0
    assert sockets_ops.is_self_connect(conn) is False


def test_read_write_round_trip(connected):
    client, conn = connected
    payload = b"ping over loopback"
    assert sockets_ops.write(client, payload) == len(payload)
    select.select([conn], [], [], 5.0)
    assert sockets_ops.read(conn, 1024) == payload


def test_shutdown_write_gives_eof(connected):
    client, conn = connected
    sockets_ops.shutdown_write(client)
    select.select([conn], [], [], 5.0)
    assert sockets_ops.read(conn, 1024) == b""


def test_read_write_on_file_descriptors():
    r, w = os.pipe()
    try:
        assert sockets_ops.write(w, b"abc") == 3
        assert sockets_ops.read(r, 3) == b"abc"
    finally:
        sockets_ops.close(r)
        sockets_ops.close(w)
    with pytest.raises(OSError):
        os.fstat(r)


def test_close_socket():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sockets_ops.close(sock)
    assert sock.fileno() == -1


def test_unconnected_is_not_self_connect():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        assert sockets_ops.is_self_connect(sock) is False
        with pytest.raises(OSError):
            sockets_ops.get_peer_addr(sock)
    finally:
        sock.close()