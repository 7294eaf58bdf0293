# obdcore/decoders.py
"""
Mode 01 PID formulas (SAE J1979).

The table is keyed by service + PID ("010C") and is read-only once built.
Decoders receive the data bytes after the PID byte. Short data frames are
zero-extended to the size the formula expects; use is_truncated() when a
missing byte must be told apart from a real zero.
"""
import logging
import math
from collections import namedtuple
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Sequence

logger = logging.getLogger("obdcore.decoders")

PidSpec = namedtuple("PidSpec", "key size fn")


def zero_extend(data: Sequence[int], size: int) -> List[int]:
    d = list(data[:size])
    return d + [0] * (size - len(d))


def _round_half_up(x: float) -> int: return math.floor(x + 0.5)
def _pct(a: int) -> float:           return _round_half_up(a * 10000 / 255) / 100
def _trim(a: int) -> float:          return _round_half_up((a - 128) * 10000 / 128) / 100
def _temp(a: int) -> int:            return a - 40             # °C
def _u16(a: int, b: int) -> int:     return (a << 8) + b


def _monitor_status(d: List[int]) -> Dict[str, float]:
    return {"mil": bool(d[0] & 0x80), "dtc_count": d[0] & 0x7F}


_SPECS = [
    PidSpec("0101", 4, _monitor_status),
    PidSpec("0104", 1, lambda d: {"engine_load_pct": _pct(d[0])}),
    PidSpec("0105", 1, lambda d: {"coolant_c": _temp(d[0])}),
    PidSpec("0106", 1, lambda d: {"stft1_pct": _trim(d[0])}),
    PidSpec("0107", 1, lambda d: {"ltft1_pct": _trim(d[0])}),
    PidSpec("0108", 1, lambda d: {"stft2_pct": _trim(d[0])}),
    PidSpec("0109", 1, lambda d: {"ltft2_pct": _trim(d[0])}),
    PidSpec("010A", 1, lambda d: {"fuel_pressure_kpa": 3 * d[0]}),
    PidSpec("010B", 1, lambda d: {"map_kpa": d[0]}),
    PidSpec("010C", 2, lambda d: {"rpm": _u16(d[0], d[1]) / 4}),
    PidSpec("010D", 1, lambda d: {"speed_kph": d[0]}),
    PidSpec("010E", 1, lambda d: {"timing_advance_deg": d[0] / 2 - 64}),
    PidSpec("010F", 1, lambda d: {"iat_c": _temp(d[0])}),
    PidSpec("0110", 2, lambda d: {"maf_gps": _u16(d[0], d[1]) / 100}),
    PidSpec("0111", 1, lambda d: {"throttle_pct": _pct(d[0])}),
    PidSpec("011F", 2, lambda d: {"runtime_s": _u16(d[0], d[1])}),
    PidSpec("012F", 1, lambda d: {"fuel_level_pct": _pct(d[0])}),
    PidSpec("0131", 2, lambda d: {"distance_since_clear_km": _u16(d[0], d[1])}),
    PidSpec("0133", 1, lambda d: {"baro_kpa": d[0]}),
    PidSpec("0142", 2, lambda d: {"module_voltage_v": _u16(d[0], d[1]) / 1000}),
    PidSpec("0146", 1, lambda d: {"ambient_c": _temp(d[0])}),
]


def build_table(specs: Iterable[PidSpec]) -> Mapping[str, PidSpec]:
    return MappingProxyType({s.key.upper(): s for s in specs})


PID_DECODERS = build_table(_SPECS)


def extend_table(extra: Iterable[PidSpec], base: Mapping[str, PidSpec] = PID_DECODERS) -> Mapping[str, PidSpec]:
    """New read-only table with `extra` added (or overriding) entries."""
    return build_table(list(base.values()) + list(extra))


def decode(service_pid: str, data: Sequence[int], table: Mapping[str, PidSpec] = PID_DECODERS) -> dict:
    """
    decode("010C", [0x1A, 0xF8]) -> {"rpm": 1726.0}
    Unknown keys fall back to {"raw": [...]}. Never raises on short data.
    """
    spec = table.get(service_pid.upper())
    if spec is None:
        logger.debug(f"no decoder for {service_pid}")
        return {"raw": list(data)}
    return spec.fn(zero_extend(data, spec.size))


def is_truncated(service_pid: str, data: Sequence[int], table: Mapping[str, PidSpec] = PID_DECODERS) -> bool:
    spec = table.get(service_pid.upper())
    return spec is not None and len(data) < spec.size


def decode_supported_pids(base: int, data: Sequence[int]) -> List[int]:
    """Bitmap from PID 00/20/40/... -> supported PID numbers after `base`."""
    res: List[int] = []
    bits = zero_extend(data, 4)
    for i in range(32):
        if bits[i // 8] & (1 << (7 - (i % 8))):
            res.append(base + 1 + i)
    return res
