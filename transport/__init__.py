"""
Device transports for the relay controller.

This package provides the transport abstraction and a TCP stream socket
implementation used to reach the emulated devices.
"""

from .base import Transport
from .stream_socket import SocketError, StreamSocket

__all__ = [
    "Transport",
    "SocketError",
    "StreamSocket",
]
