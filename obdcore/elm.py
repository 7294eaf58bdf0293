# obdcore/elm.py
"""
ELM327 line parsing.

Raw adapter lines go through three steps:

  sanitize_line   drop the prompt, status banners and extra whitespace
  tokenize        hex byte pairs, sliced at the first positive response byte
  parse_lines     one Response per usable line

Lines that cannot be parsed are skipped silently; pass a ParseStats to see
how many were dropped and why.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

logger = logging.getLogger("obdcore.elm")

PID_SERVICES = ("01", "09")

# Longest phrases first so "BUS INIT" wins over "BUS ERROR"/"ERROR".
_BANNERS = re.compile(
    r"SEARCHING\.*"
    r"|BUS\s+INIT\s*:?\s*\.*"
    r"|UNABLE\s+TO\s+CONNECT"
    r"|NO\s+DATA"
    r"|CAN\s+ERROR|BUS\s+ERROR|BUS\s+BUSY|DATA\s+ERROR|FB\s+ERROR"
    r"|BUFFER\s+FULL|LV\s+RESET|ACT\s+ALERT"
    r"|STOPPED|ERROR|\bOK\b|\?",
    re.IGNORECASE,
)
_HEX_PAIR = re.compile(r"[0-9A-Fa-f]{2}")
_CAN_ID = re.compile(r"^([0-9A-Fa-f]{3,4})\b")
_OBD_RESPONSE_ID = re.compile(r"^7E[0-9A-F]$")


@dataclass
class Response:
    """One positive response line: service/pid as 2-digit upper hex."""
    service: str
    data: List[int] = field(default_factory=list)
    raw: str = ""
    pid: Optional[str] = None

    @property
    def key(self) -> str:
        return self.service + (self.pid or "")


@dataclass
class ParseStats:
    """Counters for parse_lines; parsed + skipped == lines."""
    lines: int = 0
    parsed: int = 0
    empty: int = 0
    short: int = 0
    not_positive: int = 0

    @property
    def skipped(self) -> int:
        return self.empty + self.short + self.not_positive


def sanitize_line(line: str) -> str:
    s = line.replace("\r", " ").replace("\n", " ").replace(">", " ")
    s = _BANNERS.sub(" ", s)
    return " ".join(s.split())


def hex_tokens(line: str) -> List[str]:
    """All hex pairs after the last colon (ISO-TP "1: 49 02 ..." prefixes)."""
    if ":" in line:
        line = line.rsplit(":", 1)[1]
    return [t.upper() for t in _HEX_PAIR.findall(line)]


def tokenize(line: str) -> List[str]:
    """
    Hex pairs starting at the first positive response byte (0x40..0x4F).
    Leading CAN IDs and PCI bytes such as "7E8 06" are discarded. When no
    positive byte is present the full token list is returned unchanged.
    """
    tokens = hex_tokens(line)
    for i, tok in enumerate(tokens):
        if tok[0] == "4":
            return tokens[i:]
    return tokens


def parse_response(line: str) -> Optional[Response]:
    """Parse a single sanitized line, or None if it is not a usable response."""
    return _parse(line, None)


def _parse(clean: str, stats: Optional[ParseStats]) -> Optional[Response]:
    b = [int(t, 16) for t in tokenize(clean)]
    if len(b) < 2:
        _skip(stats, "short", clean)
        return None
    if b[0] < 0x40:
        _skip(stats, "not_positive", clean)
        return None

    service = f"{b[0] - 0x40:02X}"
    if service in PID_SERVICES:
        if len(b) < 3:  # service + pid + at least one data byte
            _skip(stats, "short", clean)
            return None
        return Response(service=service, pid=f"{b[1]:02X}", data=b[2:], raw=clean)
    return Response(service=service, data=b[1:], raw=clean)


def _skip(stats: Optional[ParseStats], reason: str, line: str):
    logger.debug(f"skip ({reason}): {line!r}")
    if stats is not None:
        setattr(stats, reason, getattr(stats, reason) + 1)


def parse_lines(lines: Iterable[str], stats: Optional[ParseStats] = None) -> List[Response]:
    """
    Convert raw adapter lines into responses, in input order.
    Example: ["SEARCHING...", "41 0C 1A F8 >"] -> [Response("01", [0x1A, 0xF8], pid="0C")]
    """
    out: List[Response] = []
    for raw in lines:
        if stats is not None:
            stats.lines += 1
        clean = sanitize_line(raw)
        if not clean:
            _skip(stats, "empty", raw)
            continue
        resp = _parse(clean, stats)
        if resp is not None:
            out.append(resp)
            if stats is not None:
                stats.parsed += 1
    return out


def extract_can_id(raw_line: str) -> Optional[str]:
    """
    Best-effort arbitration ID from the start of a raw line with headers on,
    e.g. "7E8 06 41 00 BE 3E A8 13" -> "7E8". Accepts the 7E0..7EF response
    range as well as any other 3 or 4 digit header. Used for labelling ECUs only.
    """
    m = _CAN_ID.match(raw_line.strip())
    return m.group(1).upper() if m else None


def is_obd_response_id(can_id: str) -> bool:
    return bool(_OBD_RESPONSE_ID.match(can_id.upper()))
