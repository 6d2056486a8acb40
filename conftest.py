import sys
import threading
from pathlib import Path

import pytest

# Add project root to Python path for imports
sys.path.insert(0, str(Path(__file__).parent))

from transport import Transport  # noqa: E402


class MockTransport(Transport):
    """
    In-memory transport for testing without device emulators.

    Bytes fed with feed() are handed out by receive_exactly(), which blocks
    like a real socket until enough data arrives or the input is closed.
    Everything passed to send() is recorded in `sent`.
    """

    def __init__(self, incoming: bytes = b"", fail_send: bool = False):
        self._inbox = bytearray(incoming)
        self._closed = False
        self._cond = threading.Condition()
        self.fail_send = fail_send
        self.sent: list[bytes] = []

    def feed(self, data: bytes) -> None:
        with self._cond:
            self._inbox.extend(data)
            self._cond.notify_all()

    def close_input(self) -> None:
        """Simulate the device hanging up."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def send(self, data: bytes) -> bool:
        with self._cond:
            if self.fail_send:
                return False
            self.sent.append(bytes(data))
            self._cond.notify_all()
            return True

    def receive_exactly(self, length: int) -> bytes | None:
        with self._cond:
            self._cond.wait_for(lambda: len(self._inbox) >= length or self._closed)
            if len(self._inbox) < length:
                return None
            data = bytes(self._inbox[:length])
            del self._inbox[:length]
            return data

    def wait_for_sent(self, count: int, timeout: float = 2.0) -> bool:
        """Block until at least `count` buffers have been sent."""
        with self._cond:
            return self._cond.wait_for(lambda: len(self.sent) >= count, timeout=timeout)

    def close(self) -> None:
        self.close_input()


@pytest.fixture
def make_transport():
    """Factory for MockTransport instances; closes their input afterwards."""
    created: list[MockTransport] = []

    def factory(incoming: bytes = b"", fail_send: bool = False) -> MockTransport:
        transport = MockTransport(incoming, fail_send)
        created.append(transport)
        return transport

    yield factory
    for transport in created:
        transport.close_input()
