"""
CoAP request encoder for the gateway round-trip experiment.

Builds one fixed-shape 32-byte POST datagram addressed to
coap://localhost:10086/moisture:

┌────────┬──────────────┬───────────┬──────────────┬──────┬──────────┐
│ header │ Uri-Host     │ Uri-Port  │ Uri-Path     │ 0xFF │ moisture │
│ 4B     │ 1B + 9B      │ 1B + 2B   │ 1B + 9B      │ 1B   │ 4B       │
└────────┴──────────────┴───────────┴──────────────┴──────┴──────────┘

Each option is a single delta/length nibble byte followed by the option
value, where the delta is the distance from the previous option number.
This is not a general CoAP message builder.
"""

import struct

from aiocoap.numbers import Code, OptionNumber, Type

from utils.faults import FaultSeverity, RelayError, RelayFault

COAP_VERSION = 1
COAP_MESSAGE_ID = 0x4657
COAP_HOST = b"localhost"
COAP_PORT = 10086
COAP_PATH = b"/moisture"
PAYLOAD_MARKER = 0xFF
COAP_REQUEST_SIZE = 32

# ver(2 bits) | type(2 bits) | token length(4 bits), then the request code
COAP_HEADER_PREFIX = bytes([
    (COAP_VERSION << 6) | (int(Type.NON) << 4) | 0,
    int(Code.POST),
])


def _option(delta: int, value: bytes) -> bytes:
    """Encode one option with a single-byte delta/length header."""
    if delta > 12 or len(value) > 12:
        raise ValueError(f"Option delta {delta} / length {len(value)} needs extended encoding")
    return bytes([(delta << 4) | len(value)]) + value


def make_coap_request(moisture: int) -> bytes:
    """
    Build the CoAP POST request carrying a moisture reading.

    Args:
        moisture: Moisture level, sent as an unsigned 32-bit payload in
                  native byte order

    Returns:
        The 32-byte datagram

    Raises:
        ValueError: If moisture does not fit in 32 bits
        RelayError: (DEFECT) if the encoded request is not 32 bytes
    """
    if not 0 <= moisture <= 0xFFFFFFFF:
        raise ValueError(f"Moisture {moisture} does not fit in 4 bytes")

    host = int(OptionNumber.URI_HOST)
    port = int(OptionNumber.URI_PORT)
    path = int(OptionNumber.URI_PATH)

    request = b"".join([
        COAP_HEADER_PREFIX,
        struct.pack(">H", COAP_MESSAGE_ID),
        _option(host, COAP_HOST),
        _option(port - host, struct.pack(">H", COAP_PORT)),
        _option(path - port, COAP_PATH),
        bytes([PAYLOAD_MARKER]),
        struct.pack("=I", moisture),
    ])

    if len(request) != COAP_REQUEST_SIZE:
        raise RelayError(RelayFault(
            FaultSeverity.DEFECT,
            "Gateway",
            f"CoAP request is {len(request)} bytes, expected {COAP_REQUEST_SIZE}",
        ))
    return request
