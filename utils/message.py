"""
Wire message codec for controller <-> device communication.

Every message exchanged with the monitor, actuator and gateway devices has
the same fixed layout, regardless of direction:

┌────────┬────────┬──────────┐
│ magic  │ type   │ data     │
│ 2B     │ 2B     │ 4B       │
└────────┴────────┴──────────┘

- magic: 0x4657 sentinel, records with any other value are rejected
- type: message type tag (see MessageType)
- data: opaque payload whose meaning depends on the type

Fields use native byte order with standard sizes, matching the device
firmware that shares the host's endianness.
"""

import struct
from dataclasses import dataclass
from enum import IntEnum


MAGIC = 0x4657
MESSAGE_FMT = "=HHI"    # magic(2) + type(2) + data(4) = 8 bytes
MESSAGE_SIZE = struct.calcsize(MESSAGE_FMT)
DATA_MAX = 0xFFFFFFFF


class MessageType(IntEnum):
    """Closed set of message types understood by the controller."""

    MONITOR_USER_STACK = 0
    ACTUATOR_USER_STACK = 1
    GATEWAY_USER_STACK = 2
    SOIL_DRY_ALERT = 3
    SOIL_WET_ALERT = 4
    ACK_SOIL_WET = 5
    RUN_OUT_OF_WATER_ALERT = 6
    CHANGE_SOIL_MOISTURE = 7
    CHANGE_WATER_STATUS = 8


class MessageError(ValueError):
    """Raised when a byte buffer is not a valid wire message."""
    pass


def type_name(tag: int) -> str:
    """Readable name for a type tag, including tags outside MessageType."""
    try:
        return MessageType(tag).name
    except ValueError:
        return f"Unknown({tag})"


@dataclass(frozen=True)
class WireMessage:
    """A single fixed-size message."""

    type: int
    data: int = 0
    magic: int = MAGIC

    def __post_init__(self):
        if not 0 <= self.data <= DATA_MAX:
            raise MessageError(f"data {self.data} does not fit in 4 bytes")
        if not 0 <= self.type <= 0xFFFF:
            raise MessageError(f"type {self.type} does not fit in 2 bytes")

    @property
    def kind(self) -> MessageType | None:
        """The MessageType for this tag, or None if the tag is unknown."""
        try:
            return MessageType(self.type)
        except ValueError:
            return None

    def encode(self) -> bytes:
        return struct.pack(MESSAGE_FMT, self.magic, self.type, self.data)

    def __str__(self) -> str:
        return f"{type_name(self.type)}(data=0x{self.data:08x})"


def decode_message(data: bytes) -> WireMessage:
    """
    Validate and parse a single wire message.

    Only the magic sentinel is checked; the type tag is carried through
    unchanged so the dispatcher can decide what an unknown tag means.

    Args:
        data: Exactly MESSAGE_SIZE raw bytes

    Returns:
        Parsed WireMessage

    Raises:
        MessageError: If the buffer has the wrong size or the magic mismatches
    """
    if len(data) != MESSAGE_SIZE:
        raise MessageError(f"Message size {len(data)} != {MESSAGE_SIZE}")

    magic, tag, payload = struct.unpack(MESSAGE_FMT, data)
    if magic != MAGIC:
        raise MessageError(f"Invalid magic: {magic:04x} != {MAGIC:04x}")

    return WireMessage(type=tag, data=payload, magic=magic)


# =============================================================================
# Factories (one per semantic event)
# =============================================================================

def monitor_user_stack(address: int) -> WireMessage:
    return WireMessage(MessageType.MONITOR_USER_STACK, address)


def actuator_user_stack(address: int) -> WireMessage:
    return WireMessage(MessageType.ACTUATOR_USER_STACK, address)


def gateway_user_stack(address: int) -> WireMessage:
    return WireMessage(MessageType.GATEWAY_USER_STACK, address)


def soil_dry_alert() -> WireMessage:
    return WireMessage(MessageType.SOIL_DRY_ALERT)


def soil_wet_alert() -> WireMessage:
    return WireMessage(MessageType.SOIL_WET_ALERT)


def ack_soil_wet() -> WireMessage:
    return WireMessage(MessageType.ACK_SOIL_WET)


def run_out_of_water_alert() -> WireMessage:
    return WireMessage(MessageType.RUN_OUT_OF_WATER_ALERT)


def change_soil_moisture(level: int) -> WireMessage:
    """Tell the monitor device to report a new moisture level."""
    return WireMessage(MessageType.CHANGE_SOIL_MOISTURE, level)


def change_water_status(has_water: bool) -> WireMessage:
    """Tell the actuator whether its bottle holds water (widened to 4 bytes)."""
    return WireMessage(MessageType.CHANGE_WATER_STATUS, 1 if has_water else 0)
