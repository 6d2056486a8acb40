"""Tests for the CoAP request encoder."""

import struct

import pytest

from utils.coap import (
    COAP_HEADER_PREFIX,
    COAP_REQUEST_SIZE,
    PAYLOAD_MARKER,
    make_coap_request,
)


class TestCoapRequest:
    """Tests for the fixed-shape 32-byte POST request."""

    @pytest.mark.parametrize("moisture", [0, 1, 100, 0xFFFFFFFF])
    def test_size_and_payload(self, moisture):
        """Request is 32 bytes and ends with the moisture in native order."""
        request = make_coap_request(moisture)
        assert len(request) == COAP_REQUEST_SIZE == 32
        assert request[-4:] == struct.pack("=I", moisture)

    def test_header(self):
        """Version 1, non-confirmable, no token, POST, message id 0x4657."""
        request = make_coap_request(100)
        assert request[:2] == COAP_HEADER_PREFIX == b"\x50\x02"
        assert request[2:4] == b"\x46\x57"

    def test_options(self):
        """Uri-Host, Uri-Port and Uri-Path use single-byte delta/length headers."""
        request = make_coap_request(100)
        # Uri-Host: option 3, length 9
        assert request[4] == (3 << 4) | 9
        assert request[5:14] == b"localhost"
        # Uri-Port: delta 4 (7 - 3), length 2, network byte order
        assert request[14] == (4 << 4) | 2
        assert request[15:17] == struct.pack(">H", 10086)
        # Uri-Path: delta 4 (11 - 7), length 9
        assert request[17] == (4 << 4) | 9
        assert request[18:27] == b"/moisture"

    def test_payload_marker(self):
        request = make_coap_request(100)
        assert request[27] == PAYLOAD_MARKER == 0xFF

    def test_deterministic(self):
        assert make_coap_request(55) == make_coap_request(55)

    @pytest.mark.parametrize("moisture", [-1, 1 << 32])
    def test_out_of_range(self, moisture):
        with pytest.raises(ValueError):
            make_coap_request(moisture)
