# obdcore/uds.py
"""UDS (ISO 14229) ReadDataByIdentifier helpers"""
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .commands import build_uds_read_did
from .elm import hex_tokens, sanitize_line

logger = logging.getLogger("obdcore.uds")

READ_DATA_BY_IDENTIFIER = 0x22
POSITIVE_RESPONSE_OFFSET = 0x40
NEGATIVE_RESPONSE = 0x7F
NRC_RESPONSE_PENDING = 0x78

DID_VIN = 0xF190
DID_ODOMETER = 0xF18C
DID_ECU_SERIAL = 0xF187
SAFE_DIDS = (DID_VIN, DID_ODOMETER, DID_ECU_SERIAL)

NRC_DESCRIPTIONS = {
    0x10: "General reject",
    0x11: "Service not supported",
    0x12: "Sub-function not supported",
    0x13: "Incorrect message length or invalid format",
    0x14: "Response too long",
    0x21: "Busy, repeat request",
    0x22: "Conditions not correct",
    0x24: "Request sequence error",
    0x31: "Request out of range",
    0x33: "Security access denied",
    0x35: "Invalid key",
    0x36: "Exceeded number of attempts",
    0x37: "Required time delay not expired",
    0x78: "Request correctly received but response is pending",
    0x7E: "Sub-function not supported in active session",
    0x7F: "Service not supported in active session",
}

build_read_did = build_uds_read_did


@dataclass(frozen=True)
class UdsDidResult:
    did: int
    label: str
    value: str


@dataclass(frozen=True)
class NegativeResponse:
    sid: int
    nrc: int
    description: str


def _ascii(data: Iterable[int]) -> str:
    return "".join(chr(b) for b in data if 0x20 <= b <= 0x7E)


def decode_did(did: int, data: Iterable[int]) -> UdsDidResult:
    """Decode a DID payload; unknown DIDs become a hex dump. Never raises."""
    data = list(data)
    if did == DID_VIN:
        return UdsDidResult(did, "VIN (UDS)", _ascii(data).strip())
    if did == DID_ODOMETER:
        km = 0
        for b in data:
            km = (km << 8) | b
        return UdsDidResult(did, "Odometer", f"{km} km")
    if did == DID_ECU_SERIAL:
        return UdsDidResult(did, "ECU Serial", _ascii(data))
    return UdsDidResult(did, f"DID 0x{did:04X}", " ".join(f"{b:02X}" for b in data))


def _line_bytes(lines: Iterable[str]):
    for raw in lines:
        clean = sanitize_line(raw)
        if clean:
            yield [int(t, 16) for t in hex_tokens(clean)]


def find_read_did_response(lines: Iterable[str], did: Optional[int] = None) -> Optional[Tuple[int, List[int]]]:
    """
    Locate "62 <DID hi> <DID lo> <data...>" in raw adapter lines.

    The OBD positive-response anchor is not used here: UDS payloads often
    contain ASCII letters A-O (0x41..0x4F). Only single-line responses are
    handled; multi-frame payloads must be joined by the caller first.
    """
    want = READ_DATA_BY_IDENTIFIER + POSITIVE_RESPONSE_OFFSET
    for b in _line_bytes(lines):
        for i in range(len(b) - 2):
            if b[i] != want:
                continue
            got = (b[i + 1] << 8) | b[i + 2]
            if did is None or got == did:
                return got, b[i + 3:]
    return None


def find_negative_response(lines: Iterable[str]) -> Optional[NegativeResponse]:
    """First "7F <sid> <nrc>" that is not a response-pending notice."""
    for b in _line_bytes(lines):
        for i in range(len(b) - 2):
            if b[i] == NEGATIVE_RESPONSE and b[i + 2] != NRC_RESPONSE_PENDING:
                nrc = b[i + 2]
                desc = NRC_DESCRIPTIONS.get(nrc, f"Unknown NRC 0x{nrc:02X}")
                logger.debug(f"negative response to 0x{b[i + 1]:02X}: {desc}")
                return NegativeResponse(b[i + 1], nrc, desc)
    return None


def decode_read_did_lines(lines: Iterable[str], did: Optional[int] = None) -> Optional[UdsDidResult]:
    found = find_read_did_response(lines, did)
    if found is None:
        return None
    return decode_did(*found)
