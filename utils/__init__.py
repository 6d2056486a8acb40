"""
Utility modules for the relay controller.

This package provides the wire codecs, fault types and measurement helpers
shared by the controller threads.
"""

from .coap import COAP_HEADER_PREFIX, COAP_REQUEST_SIZE, make_coap_request
from .experiments import MeasurementResult, measure_execution_time
from .faults import FaultSeverity, RelayError, RelayFault
from .message import (
    MAGIC,
    MESSAGE_SIZE,
    MessageError,
    MessageType,
    WireMessage,
    decode_message,
    type_name,
)

__all__ = [
    # Wire messages
    "MAGIC",
    "MESSAGE_SIZE",
    "MessageError",
    "MessageType",
    "WireMessage",
    "decode_message",
    "type_name",
    # CoAP
    "COAP_HEADER_PREFIX",
    "COAP_REQUEST_SIZE",
    "make_coap_request",
    # Faults
    "FaultSeverity",
    "RelayError",
    "RelayFault",
    # Measurement
    "MeasurementResult",
    "measure_execution_time",
]
