# obdcore/j1979.py
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .decoders import decode
from .elm import Response

DTC_LETTERS = ("P", "C", "B", "U")
DTC_SERVICES = ("03", "07", "0A")


def decode_dtc(a: int, b: int) -> str:
    """Two raw bytes -> 5 character code, e.g. (0x01, 0x01) -> "P0101"."""
    letter = DTC_LETTERS[(a >> 6) & 0b11]
    digits = ((a >> 4) & 0b11, a & 0xF, (b >> 4) & 0xF, b & 0xF)
    return letter + "".join(f"{n:X}" for n in digits)


def decode_dtcs(data: Sequence[int]) -> List[str]:
    """
    Decode DTC pairs from a Mode 03/07/0A payload (bytes after the service byte).
    A 00 00 pair ends the list; a trailing odd byte is ignored.
    """
    out: List[str] = []
    for i in range(0, len(data) - 1, 2):
        a, b = data[i], data[i + 1]
        if a == 0 and b == 0:
            break
        out.append(decode_dtc(a, b))
    return out


def decode_vin(data: Sequence[int]) -> str:
    """
    Printable ASCII (0x20..0x7E) joined; first 17 characters if there are
    that many, otherwise the partial string. No checksum validation.
    """
    vin = "".join(chr(x) for x in data if 0x20 <= x <= 0x7E)
    return vin[:17]


@dataclass(frozen=True)
class MonitorRecord:
    tid: int
    cid: int
    value: int
    min: int
    max: int
    passed: bool


def decode_mode06(data: Sequence[int]) -> List[MonitorRecord]:
    """
    Split a Mode 06 payload into 8 byte records:
    TID, CID, value(u16), min(u16), max(u16). Leftover bytes are dropped.

    The fixed record width is an approximation of common ECU output, not the
    standard layout; OBDMID-prefixed CAN records will decode incorrectly.
    """
    out: List[MonitorRecord] = []
    for i in range(0, len(data) - 7, 8):
        r = data[i:i + 8]
        value = (r[2] << 8) | r[3]
        lo = (r[4] << 8) | r[5]
        hi = (r[6] << 8) | r[7]
        out.append(MonitorRecord(r[0], r[1], value, lo, hi, lo <= value <= hi))
    return out


# ---- response helpers ----

def try_decode_pid(resp: Response) -> Optional[dict]:
    if resp.service != "01" or not resp.pid:
        return None
    return decode("01" + resp.pid, resp.data)


def try_decode_dtcs(resp: Response) -> Optional[List[str]]:
    if resp.service not in DTC_SERVICES:
        return None
    return decode_dtcs(resp.data)


def try_decode_vin(resp: Response) -> Optional[str]:
    if resp.service != "09" or resp.pid != "02":
        return None
    return decode_vin(resp.data)


def try_decode_monitors(resp: Response) -> Optional[List[MonitorRecord]]:
    if resp.service != "06":
        return None
    return decode_mode06(resp.data)


def decode_response(resp: Response):
    """Best decoder for the response's service; raw bytes when none applies."""
    for fn in (try_decode_pid, try_decode_dtcs, try_decode_vin, try_decode_monitors):
        res = fn(resp)
        if res is not None:
            return res
    return {"raw": list(resp.data)}
