"""
OBD-II / ELM327 response decoding.

    from obdcore import build_mode01, parse_lines, decode

    lines = transport.send(build_mode01("0C"))     # ["41 0C 1A F8"]
    for r in parse_lines(lines):
        print(decode(r.key, r.data))               # {"rpm": 1726.0}
"""

from .commands import (
    build_mode01, build_mode03, build_mode04, build_mode06, build_mode07,
    build_mode09, build_mode0a, build_set_header, build_uds_read_did,
)
from .decoders import PID_DECODERS, PidSpec, decode, decode_supported_pids, is_truncated, zero_extend
from .dtc_db import DtcEntry, DtcLibrary
from .elm import ParseStats, Response, extract_can_id, parse_lines, sanitize_line, tokenize
from .j1979 import MonitorRecord, decode_dtcs, decode_mode06, decode_response, decode_vin
from .uds import NegativeResponse, UdsDidResult, decode_did, find_negative_response, find_read_did_response

__all__ = [
    "build_mode01", "build_mode03", "build_mode04", "build_mode06", "build_mode07",
    "build_mode09", "build_mode0a", "build_set_header", "build_uds_read_did",
    "PID_DECODERS", "PidSpec", "decode", "decode_supported_pids", "is_truncated", "zero_extend",
    "DtcEntry", "DtcLibrary",
    "ParseStats", "Response", "extract_can_id", "parse_lines", "sanitize_line", "tokenize",
    "MonitorRecord", "decode_dtcs", "decode_mode06", "decode_response", "decode_vin",
    "NegativeResponse", "UdsDidResult", "decode_did", "find_negative_response", "find_read_did_response",
]

__version__ = "0.1.0"
