"""
Controller package - host-side relay between the emulated devices.

This package contains:
- command_queue: Blocking FIFO, device slots and relay commands
- relay: Sender/receiver threads, message dispatch and gateway round trips
- shell: Interactive Commander shell
- server: Entry point (argument parsing, config, socket setup)
"""

from controller.command_queue import Command, DeviceSlot, LinkedBlockingQueue
from controller.relay import RelayController
from controller.server import load_config, main, run_controller
from controller.shell import CommandShell

__all__ = [
    "Command",
    "CommandShell",
    "DeviceSlot",
    "LinkedBlockingQueue",
    "RelayController",
    "load_config",
    "main",
    "run_controller",
]
