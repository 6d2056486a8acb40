"""Tests for the TCP stream socket transport."""

import socket
import threading

import pytest

from transport import SocketError, StreamSocket


def make_listener(family: int, host: str) -> socket.socket:
    server = socket.socket(family, socket.SOCK_STREAM)
    server.bind((host, 0))
    server.listen(1)
    return server


@pytest.fixture
def listener():
    server = make_listener(socket.AF_INET, "127.0.0.1")
    yield server
    server.close()


@pytest.fixture
def pair(listener):
    """A connected StreamSocket and the accepted socket acting as the device."""
    port = listener.getsockname()[1]
    transport = StreamSocket(("127.0.0.1", 0), ("127.0.0.1", port))
    device, _ = listener.accept()
    yield transport, device
    transport.close()
    device.close()


class TestStreamSocket:
    def test_send(self, pair):
        transport, device = pair
        assert transport.send(b"hello") is True
        assert device.recv(5) == b"hello"

    def test_receive_exactly_reassembles_fragments(self, pair):
        """Bytes arriving in pieces are collected into one buffer."""
        transport, device = pair

        def trickle():
            for chunk in (b"ab", b"cde", b"fgh"):
                device.sendall(chunk)

        writer = threading.Thread(target=trickle)
        writer.start()
        assert transport.receive_exactly(8) == b"abcdefgh"
        writer.join()

    def test_receive_exactly_on_close(self, pair):
        """A peer closing before enough bytes arrive is a failed read."""
        transport, device = pair
        device.sendall(b"abc")
        device.shutdown(socket.SHUT_WR)
        assert transport.receive_exactly(8) is None

    def test_closed_transport(self, pair):
        transport, _ = pair
        transport.close()
        transport.close()
        assert transport.send(b"x") is False
        assert transport.receive_exactly(1) is None

    def test_context_manager(self, listener):
        port = listener.getsockname()[1]
        with StreamSocket(("127.0.0.1", 0), ("127.0.0.1", port)) as transport:
            device, _ = listener.accept()
            with device:
                device.sendall(b"\x01\x02")
                assert transport.receive_exactly(2) == b"\x01\x02"
        assert transport.send(b"x") is False

    def test_connect_refused(self, listener):
        """Connecting to a port nobody listens on raises SocketError."""
        port = listener.getsockname()[1]
        listener.close()
        with pytest.raises(SocketError, match="Failed to connect"):
            StreamSocket(("127.0.0.1", 0), ("127.0.0.1", port))

    def test_unresolvable_host(self):
        with pytest.raises(SocketError, match="Failed to resolve"):
            StreamSocket(("127.0.0.1", 0), ("no such host.invalid", 10010))

    def test_ipv6_loopback(self):
        """An IPv6 remote host gets an IPv6 socket."""
        try:
            server = make_listener(socket.AF_INET6, "::1")
        except OSError:
            pytest.skip("IPv6 loopback not available")

        with server:
            port = server.getsockname()[1]
            with StreamSocket(("::1", 0), ("::1", port)) as transport:
                device, _ = server.accept()
                with device:
                    assert transport.send(b"v6") is True
                    assert device.recv(2) == b"v6"
