"""
Command queue feeding the controller's single sender thread.

Classes:
    DeviceSlot: Fixed identities a device connection can be bound to
    Command: A message together with the slot it must be sent to
    LinkedBlockingQueue: Unbounded thread-safe FIFO with blocking dequeue
"""

import threading
from collections import deque
from dataclasses import dataclass
from enum import IntEnum
from typing import Generic, TypeVar

from utils import message as wire
from utils.message import WireMessage

T = TypeVar("T")


class DeviceSlot(IntEnum):
    """The three device identities a connection may be bound to."""

    MONITOR = 0
    ACTUATOR = 1
    GATEWAY = 2

    @property
    def label(self) -> str:
        return self.name.capitalize()


@dataclass(frozen=True)
class Command:
    """A message to be written to the device bound to `slot`."""

    message: WireMessage
    slot: DeviceSlot

    @classmethod
    def change_soil_moisture(cls, level: int) -> "Command":
        return cls(wire.change_soil_moisture(level), DeviceSlot.MONITOR)

    @classmethod
    def change_water_status(cls, has_water: bool) -> "Command":
        return cls(wire.change_water_status(has_water), DeviceSlot.ACTUATOR)

    @classmethod
    def relay_to_monitor(cls, message: WireMessage) -> "Command":
        return cls(message, DeviceSlot.MONITOR)

    @classmethod
    def relay_to_actuator(cls, message: WireMessage) -> "Command":
        return cls(message, DeviceSlot.ACTUATOR)

    @classmethod
    def dry_soil_alert(cls) -> "Command":
        return cls(wire.soil_dry_alert(), DeviceSlot.ACTUATOR)

    @classmethod
    def wet_soil_alert(cls) -> "Command":
        return cls(wire.soil_wet_alert(), DeviceSlot.ACTUATOR)


class LinkedBlockingQueue(Generic[T]):
    """
    Unbounded FIFO shared by any number of producers.

    offer() never blocks. poll() blocks until an element is available;
    poll_with_timeout() gives up after a deadline without consuming anything.
    Waiters may wake in any order, but elements always leave in the order
    they were offered.
    """

    def __init__(self):
        self._queue: deque[T] = deque()
        self._nonempty = threading.Condition(threading.Lock())

    def is_empty(self) -> bool:
        with self._nonempty:
            return not self._queue

    def __len__(self) -> int:
        with self._nonempty:
            return len(self._queue)

    def offer(self, element: T) -> None:
        """Append an element to the tail and wake every waiter."""
        with self._nonempty:
            self._queue.append(element)
            self._nonempty.notify_all()

    def poll(self) -> T:
        """Remove and return the head, blocking until one is available."""
        with self._nonempty:
            # wait_for releases the lock while blocked and re-checks on wakeup
            self._nonempty.wait_for(lambda: len(self._queue) > 0)
            return self._queue.popleft()

    def poll_with_timeout(self, timeout: float) -> T | None:
        """
        Wait up to `timeout` seconds for the head element.

        Args:
            timeout: Maximum seconds to wait for the queue to become non-empty

        Returns:
            The head element, or None if the deadline passed first
        """
        with self._nonempty:
            if self._nonempty.wait_for(lambda: len(self._queue) > 0, timeout=timeout):
                return self._queue.popleft()
        return None
