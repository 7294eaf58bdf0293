"""Tests for UDS DID decoding and response location."""

from obdcore.uds import (
    UdsDidResult, decode_did, decode_read_did_lines,
    find_negative_response, find_read_did_response,
)


class TestDecodeDid:

    def test_vin(self):
        res = decode_did(0xF190, list(b" WVWZZZ1JZXW000001 \x00"))
        assert res == UdsDidResult(0xF190, "VIN (UDS)", "WVWZZZ1JZXW000001")

    def test_odometer(self):
        res = decode_did(0xF18C, [0x01, 0xE2, 0x40])
        assert res.label == "Odometer"
        assert res.value == "123456 km"

    def test_odometer_empty(self):
        assert decode_did(0xF18C, []).value == "0 km"

    def test_serial(self):
        res = decode_did(0xF187, list(b"A123\x00"))
        assert res.label == "ECU Serial"
        assert res.value == "A123"

    def test_generic(self):
        res = decode_did(0xF1A0, [0x01, 0xab, 0x10])
        assert res == UdsDidResult(0xF1A0, "DID 0xF1A0", "01 AB 10")

    def test_small_did_label(self):
        assert decode_did(0x10, []).label == "DID 0x0010"


class TestFindResponses:

    def test_positive_with_ascii_payload(self):
        # payload letters A..O (0x41..0x4F) must not be mistaken for OBD responses
        lines = ["7E8 10 14 62 F1 87 41 42 43 >"]
        assert find_read_did_response(lines) == (0xF187, [0x41, 0x42, 0x43])

    def test_did_filter(self):
        lines = ["62 F1 87 41", "62 F1 8C 00 10 00"]
        assert find_read_did_response(lines, 0xF18C) == (0xF18C, [0x00, 0x10, 0x00])
        assert find_read_did_response(lines, 0xF190) is None

    def test_no_response(self):
        assert find_read_did_response(["NO DATA", ">"]) is None

    def test_decode_lines(self):
        res = decode_read_did_lines(["62F18C0001F4"], 0xF18C)
        assert res.value == "500 km"

    def test_negative_response(self):
        nr = find_negative_response(["7F 22 78", "7F 22 31"])
        assert nr.sid == 0x22
        assert nr.nrc == 0x31
        assert nr.description == "Request out of range"

    def test_unknown_nrc(self):
        assert find_negative_response(["7F 22 99"]).description == "Unknown NRC 0x99"

    def test_pending_only(self):
        assert find_negative_response(["7F 22 78"]) is None
