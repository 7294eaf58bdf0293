# obdcore/commands.py
"""
ASCII request builders for the ELM327 command console.

Builders only pad and upper-case; they do not validate. A non-hex PID is
passed through upper-cased, so "zz" becomes "01ZZ".
"""
from typing import Union

Hex = Union[str, int]


def _hex(value: Hex, width: int) -> str:
    if isinstance(value, int):
        return f"{value:0{width}X}"
    return str(value).strip().upper().rjust(width, "0")


def build_mode01(pid: Hex) -> str:
    """Current data, e.g. build_mode01("0c") -> "010C"."""
    return "01" + _hex(pid, 2)


def build_mode03() -> str: return "03"
def build_mode04() -> str: return "04"
def build_mode07() -> str: return "07"
def build_mode0a() -> str: return "0A"


def build_mode06(mid: Hex = "00") -> str:
    return "06" + _hex(mid, 2)


def build_mode09(pid: Hex) -> str:
    return "09" + _hex(pid, 2)


def build_uds_read_did(did: Hex) -> str:
    """UDS ReadDataByIdentifier (0x22), e.g. 0xF190 -> "22F190"."""
    return "22" + _hex(did, 4)


def build_set_header(address: Hex) -> str:
    # 11-bit CAN header, e.g. "7E0" targets the engine ECU
    return "ATSH" + _hex(address, 3)
