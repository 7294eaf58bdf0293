# obdcore/dtc_db.py
import logging
import os
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional

import yaml

logger = logging.getLogger("obdcore.dtc_db")

DATA_DIR = os.path.join(os.path.dirname(__file__), "data")
GENERIC_PROFILE = "generic"
SEVERITY_WEIGHTS = {"Critical": 2.0, "Warning": 1.0, "Info": 0.5}
_DOMAINS = {"P": "Powertrain", "C": "Chassis", "B": "Body", "U": "Network"}


@dataclass(frozen=True)
class DtcEntry:
    code: str
    short: str
    description: str
    severity: str = "Info"
    causes: List[str] = field(default_factory=list)
    symptoms: List[str] = field(default_factory=list)
    quick_checks: List[str] = field(default_factory=list)


def infer_severity(code: str) -> str:
    # P03xx misfire -> Critical, other generic powertrain -> Warning
    if re.fullmatch(r"P03\d{2}", code):
        return "Critical"
    if re.fullmatch(r"P0\d{3}", code):
        return "Warning"
    return "Info"


def _entry(code: str, value) -> DtcEntry:
    if isinstance(value, dict):
        return DtcEntry(
            code=code,
            short=str(value.get("short", "")),
            description=str(value.get("description", value.get("short", ""))),
            severity=str(value.get("severity", infer_severity(code))),
            causes=list(value.get("causes") or []),
            symptoms=list(value.get("symptoms") or []),
            quick_checks=list(value.get("quick_checks") or []),
        )
    text = str(value).strip()
    return DtcEntry(code=code, short=text, description=text, severity=infer_severity(code))


def _parse_text(path: str) -> Dict[str, str]:
    """
    Accepts lines like:
      P0420 = Catalyst system efficiency below threshold (Bank 1)
      P0171: System too lean (Bank 1)
      P0301 Misfire detected (Cylinder 1)
    Ignores blank lines and lines starting with '#'
    """
    m: Dict[str, str] = {}
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            s = line.strip()
            if not s or s.startswith("#"):
                continue
            if "=" in s:
                k, v = s.split("=", 1)
            elif ":" in s:
                k, v = s.split(":", 1)
            else:
                parts = s.split(None, 1)
                if len(parts) != 2:
                    continue
                k, v = parts
            m[k.strip().upper()] = v.strip()
    return m


def _profile_filename(name: str) -> str:
    # "Jaguar XF" -> "jaguar_xf"
    return name.strip().lower().replace(" ", "_")


def load_profile(name: str, search_path: Iterable[str] = (DATA_DIR,)) -> Dict[str, DtcEntry]:
    """Entries of profile `name` (.yaml/.yml/.txt); {} if no such file."""
    base = _profile_filename(name)
    for d in search_path:
        for ext in (".yaml", ".yml", ".txt"):
            path = os.path.join(d, base + ext)
            if not os.path.exists(path):
                continue
            if ext == ".txt":
                raw = _parse_text(path)
            else:
                with open(path, "r", encoding="utf-8") as f:
                    raw = yaml.safe_load(f) or {}
            logger.debug(f"loaded {len(raw)} DTC entries from {path}")
            # "P1234:" with no value falls through to the generic lookup
            return {str(k).upper(): _entry(str(k).upper(), v) for k, v in raw.items() if v is not None}
    logger.debug(f"DTC profile not found: {name}")
    return {}


class DtcLibrary:
    """
    Read-only DTC lookup: vehicle profile, then the generic table, then
    misfire patterns, then an inferred description.
    """

    def __init__(self, profile: Optional[str] = None, profiles_path: Optional[str] = None):
        self._search = [p for p in (profiles_path, DATA_DIR) if p]
        self.profile = profile or ""
        self._base: Mapping[str, DtcEntry] = MappingProxyType(load_profile(GENERIC_PROFILE, self._search))
        self._vehicle: Mapping[str, DtcEntry] = MappingProxyType(
            load_profile(profile, self._search) if profile else {}
        )

    @classmethod
    def from_config(cls, cfg: dict) -> "DtcLibrary":
        dtc = cfg.get("dtc", {})
        return cls(profile=dtc.get("profile"), profiles_path=dtc.get("profiles_path"))

    def list_profiles(self) -> List[str]:
        names = set()
        for d in self._search:
            if not os.path.isdir(d):
                continue
            for fn in os.listdir(d):
                root, ext = os.path.splitext(fn)
                if ext in (".yaml", ".yml", ".txt"):
                    names.add(root.replace("_", " ").title())
        names.discard(GENERIC_PROFILE.title())
        return sorted(names)

    def lookup(self, code: str) -> DtcEntry:
        c = code.upper().strip()
        if c in self._vehicle:
            return self._vehicle[c]
        if c in self._base:
            return self._base[c]
        pat = _pattern_description(c)
        if pat:
            return DtcEntry(code=c, short=pat, description=pat, severity="Critical",
                            causes=["Ignition coil", "Spark plug", "Fuel injector", "Compression"])
        return DtcEntry(code=c, short="Unknown code", description=_generic_description(c),
                        severity=infer_severity(c), causes=["Unknown"])

    def describe(self, code: str) -> str:
        return self.lookup(code).description

    def rank_likely_causes(self, codes: Iterable[str]) -> List[tuple]:
        """[(cause, score)] weighted by severity, highest first."""
        tallies: Dict[str, float] = {}
        for c in codes:
            e = self.lookup(c)
            weight = SEVERITY_WEIGHTS.get(e.severity, 0.5)
            for cause in e.causes:
                tallies[cause] = tallies.get(cause, 0.0) + weight
        return sorted(tallies.items(), key=lambda kv: kv[1], reverse=True)


def _pattern_description(code: str) -> Optional[str]:
    # P0301..P0309 -> Misfire cylinder N
    if re.fullmatch(r"P030[1-9]", code):
        return f"Misfire detected (Cylinder {code[-1]})"
    return None


def _generic_description(code: str) -> str:
    domain = _DOMAINS.get(code[:1], "Unknown")
    gen = "Generic" if len(code) > 1 and code[1] == "0" else "Manufacturer-specific"
    return f"{gen} {domain} fault (no detailed mapping available)"
