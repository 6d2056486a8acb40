"""Abstract base class for device transports."""

from abc import ABC, abstractmethod


class Transport(ABC):
    """
    Abstract base class for a blocking, point-to-point byte stream.

    The relay controller only needs to write whole buffers and to read an
    exact number of bytes, so any stream (TCP socket, pipe, test double) can
    stand in for a device connection.
    """

    @abstractmethod
    def send(self, data: bytes) -> bool:
        """
        Write the whole buffer to the stream.

        Args:
            data: Bytes to transmit

        Returns:
            True if every byte was written, False on failure
        """
        pass

    @abstractmethod
    def receive_exactly(self, length: int) -> bytes | None:
        """
        Block until exactly `length` bytes have arrived.

        Args:
            length: Number of bytes to read

        Returns:
            The bytes read, or None if the connection failed or closed early
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the underlying connection."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
