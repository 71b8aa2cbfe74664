"""
Unit tests for the per-client connection wrapper.
"""

import socket
import threading
import time

import pytest

from showdocs.core.connection import Connection, ConnectionState, DRAIN_TIMEOUT


@pytest.fixture
def socket_pair():
    """(server_side, client_side) connected sockets."""
    server_side, client_side = socket.socketpair()
    client_side.settimeout(5.0)
    yield server_side, client_side
    server_side.close()
    client_side.close()


class TestRead:
    def test_single_read(self, socket_pair):
        server_side, client_side = socket_pair
        client_side.sendall(b"GET / HTTP/1.1\r\n\r\n")

        conn = Connection(socket=server_side, address=("127.0.0.1", 1))

        assert conn.read() == b"GET / HTTP/1.1\r\n\r\n"
        assert conn.state == ConnectionState.READING

    def test_read_limited_to_buffer_size(self, socket_pair):
        server_side, client_side = socket_pair
        client_side.sendall(b"x" * 100)

        conn = Connection(socket=server_side, address=("127.0.0.1", 1), buffer_size=10)

        assert conn.read() == b"x" * 10

    def test_read_timeout_returns_empty(self, socket_pair):
        server_side, _ = socket_pair

        conn = Connection(socket=server_side, address=("127.0.0.1", 1), read_timeout=0.1)

        assert conn.read() == b""


class TestSend:
    def test_send(self, socket_pair):
        server_side, client_side = socket_pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 1))

        assert conn.send(b"hello") is True
        assert client_side.recv(16) == b"hello"

    def test_send_to_closed_peer(self, socket_pair):
        server_side, client_side = socket_pair
        client_side.close()
        conn = Connection(socket=server_side, address=("127.0.0.1", 1))

        assert conn.send(b"x" * 100000) is False


class TestClose:
    """Tests for Connection.close()."""

    def test_peer_sees_end_of_stream(self, socket_pair):
        server_side, client_side = socket_pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 1))
        conn.send(b"bye")

        conn.close()

        assert client_side.recv(16) == b"bye"
        assert client_side.recv(16) == b""
        assert conn.state == ConnectionState.CLOSED

    def test_close_twice(self, socket_pair):
        server_side, _ = socket_pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 1))

        conn.close()
        conn.close()

        assert conn.state == ConnectionState.CLOSED

    def test_unread_input_is_discarded(self, socket_pair):
        server_side, client_side = socket_pair
        client_side.sendall(b"GET / HTTP/1.1\r\n\r\nleftover body")
        conn = Connection(socket=server_side, address=("127.0.0.1", 1))

        conn.close()

        assert client_side.recv(16) == b""

    def test_client_that_keeps_sending_is_cut_off(self, socket_pair):
        """Draining is bounded even if the input never ends."""
        server_side, client_side = socket_pair
        stop = threading.Event()

        def flood():
            while not stop.is_set():
                try:
                    client_side.sendall(b"x" * 4096)
                except OSError:
                    return

        sender = threading.Thread(target=flood, daemon=True)
        sender.start()
        conn = Connection(socket=server_side, address=("127.0.0.1", 1))

        start = time.monotonic()
        conn.close()
        elapsed = time.monotonic() - start

        stop.set()
        sender.join(5.0)

        assert elapsed < DRAIN_TIMEOUT + 1.0
        assert conn.state == ConnectionState.CLOSED
