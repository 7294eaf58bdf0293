# obdcore/ops.py
"""
Diagnostic flows over a transport.

A transport is anything with send(command) returning the adapter's raw text
lines up to the prompt, either directly or as an awaitable. Connection
handling, retries and timeouts belong to the transport.
"""
import inspect
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from . import commands
from .decoders import decode, decode_supported_pids
from .elm import Response, extract_can_id, parse_lines, sanitize_line, tokenize
from .j1979 import DTC_SERVICES, MonitorRecord, decode_dtcs, decode_mode06, decode_vin
from .uds import SAFE_DIDS, UdsDidResult, decode_read_did_lines

logger = logging.getLogger("obdcore.ops")

BROADCAST_HEADER = "7DF"
SUPPORTED_PID_BASES = (0x00, 0x20, 0x40, 0x60, 0x80, 0xA0, 0xC0)
_ECU_NAMES = {"0": "Engine", "8": "Engine", "1": "TCM", "9": "TCM", "2": "ABS/ESP", "A": "ABS/ESP"}


@dataclass(frozen=True)
class DiscoveredEcu:
    id: str
    name: str


async def send(transport, command: str) -> List[str]:
    logger.debug(f"-> {command}")
    lines = transport.send(command)
    if inspect.isawaitable(lines):
        lines = await lines
    lines = list(lines or [])
    logger.debug(f"<- {lines}")
    return lines


async def query(transport, command: str) -> List[Response]:
    return parse_lines(await send(transport, command))


def _first(resps: Iterable[Response], service: str, pid: Optional[str] = None) -> Optional[Response]:
    for r in resps:
        if r.service == service and (pid is None or r.pid == pid):
            return r
    return None


async def read_pid(transport, pid) -> Optional[dict]:
    """Mode 01 read, e.g. read_pid(t, "0C") -> {"rpm": 1726.0}; None without a matching answer."""
    cmd = commands.build_mode01(pid)
    r = _first(await query(transport, cmd), "01", cmd[2:])
    return decode(r.key, r.data) if r else None


async def probe_supported_pids(transport) -> List[int]:
    supported: List[int] = []
    for base in SUPPORTED_PID_BASES:
        r = _first(await query(transport, commands.build_mode01(base)), "01", f"{base:02X}")
        chunk = decode_supported_pids(base, r.data) if r else []
        supported.extend(chunk)
        # stop when the "next range supported" bit is clear
        if base + 0x20 not in chunk:
            break
    return supported


async def read_dtcs(transport, mode: str = "03") -> List[str]:
    """Codes from every ECU answering Mode 03/07/0A, de-duplicated in order."""
    mode = mode.upper()
    if mode not in DTC_SERVICES:
        raise ValueError(f"Not a DTC service: {mode}")
    out: List[str] = []
    for r in await query(transport, mode):
        if r.service != mode:
            continue
        for code in decode_dtcs(r.data):
            if code not in out:
                out.append(code)
    return out


async def read_all_dtcs(transport) -> Dict[str, List[str]]:
    """Return stored, pending, permanent DTCs."""
    return {
        "stored":    await read_dtcs(transport, commands.build_mode03()),
        "pending":   await read_dtcs(transport, commands.build_mode07()),
        "permanent": await read_dtcs(transport, commands.build_mode0a()),
    }


async def clear_dtcs(transport) -> bool:
    """Mode 04; True when an ECU acknowledged with 0x44."""
    lines = await send(transport, commands.build_mode04())
    for raw in lines:
        tokens = tokenize(sanitize_line(raw))
        if tokens and tokens[0] == "44":
            return True
    return False


async def read_vin(transport) -> str:
    """
    Mode 09 PID 02. Data of every "49 02" line is joined in order before
    decoding, which covers legacy protocols that send one line per 4 bytes.
    CAN multi-frame output ("0: 49 02 01 ...", "1: ...") must be joined into
    one payload line by the transport first.
    """
    resps = await query(transport, commands.build_mode09("02"))
    data: List[int] = []
    for r in resps:
        if r.service == "09" and r.pid == "02":
            data.extend(r.data)
    return decode_vin(data)


async def read_mode06(transport, mid="00") -> List[MonitorRecord]:
    r = _first(await query(transport, commands.build_mode06(mid)), "06")
    return decode_mode06(r.data) if r else []


def label_for_ecu(can_id: str) -> str:
    cid = can_id.upper()
    if cid.startswith("7E") and cid[-1] in _ECU_NAMES:
        return _ECU_NAMES[cid[-1]]
    return f"ECU {cid}"


async def discover_ecus(transport) -> List[DiscoveredEcu]:
    """Broadcast 0100 with headers on; every responding CAN ID is an ECU."""
    seen: List[str] = []
    for raw in await send(transport, commands.build_mode01("00")):
        can_id = extract_can_id(raw)
        if can_id and can_id not in seen:
            seen.append(can_id)
    return [DiscoveredEcu(i, label_for_ecu(i)) for i in seen]


async def uds_read_safe(transport, address: str, dids: Iterable = SAFE_DIDS,
                        restore_header: str = BROADCAST_HEADER) -> List[UdsDidResult]:
    """Read-only DIDs from one ECU; DIDs without a positive answer are left out."""
    out: List[UdsDidResult] = []
    await send(transport, commands.build_set_header(address))
    try:
        for did in dids:
            did = int(did, 16) if isinstance(did, str) else did
            res = decode_read_did_lines(await send(transport, commands.build_uds_read_did(did)), did)
            if res is not None:
                out.append(res)
    finally:
        await send(transport, commands.build_set_header(restore_header))
    return out
