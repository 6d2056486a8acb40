"""TCP stream socket transport."""

import logging
import socket

from .base import Transport

logger = logging.getLogger(__name__)

Address = tuple[str, int]


class SocketError(Exception):
    """Raised when a stream socket cannot be created, bound or connected."""
    pass


class StreamSocket(Transport):
    """
    A connected TCP socket to one emulated device.

    The socket is bound to a local address first (port 0 picks any free
    port) and then connected to the device's listening address. IPv4 or
    IPv6 is chosen from the remote host.
    """

    def __init__(self, local: Address, remote: Address):
        """
        Create, bind and connect the socket.

        Args:
            local: (host, port) on this machine
            remote: (host, port) the device listens on

        Raises:
            SocketError: If resolving, creating, binding or connecting fails
        """
        try:
            family = socket.getaddrinfo(remote[0], remote[1], type=socket.SOCK_STREAM)[0][0]
        except socket.gaierror as e:
            raise SocketError(f"Failed to resolve the address {remote[0]}. Reason: {e.strerror or e}.") from e

        try:
            sock = socket.socket(family, socket.SOCK_STREAM)
        except OSError as e:
            raise SocketError(f"Failed to create a socket descriptor. Reason: {e}.") from e

        try:
            sock.bind(local)
        except OSError as e:
            sock.close()
            raise SocketError(
                f"Failed to bind the socket to {local[0]}:{local[1]}. Reason: {e.strerror or e}."
            ) from e

        try:
            sock.connect(remote)
        except OSError as e:
            sock.close()
            raise SocketError(
                f"Failed to connect the socket to {remote[0]}:{remote[1]}. Reason: {e.strerror or e}."
            ) from e

        self._sock: socket.socket | None = sock
        logger.debug(f"Connected {local[0]}:{sock.getsockname()[1]} -> {remote[0]}:{remote[1]}")

    def send(self, data: bytes) -> bool:
        if self._sock is None:
            return False
        try:
            self._sock.sendall(data)
            return True
        except OSError as e:
            logger.debug(f"send failed: {e}")
            return False

    def receive_exactly(self, length: int) -> bytes | None:
        if self._sock is None:
            return None
        buffer = bytearray(length)
        view = memoryview(buffer)
        received = 0
        while received < length:
            try:
                n = self._sock.recv_into(view[received:], length - received)
            except OSError as e:
                logger.debug(f"recv failed after {received}/{length} bytes: {e}")
                return None
            if n == 0:
                # Peer closed the stream
                return None
            received += n
        return bytes(buffer)

    def close(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None
