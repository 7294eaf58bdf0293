# obdcore/utils.py
import copy
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

import yaml

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"

DEFAULTS = {
    "logging": {"level": "WARNING", "path": "", "max_bytes": 1_000_000, "backup_count": 5},
    "dtc": {"profile": "", "profiles_path": ""},
}

ENV_OVERRIDES = {
    "OBDCORE_LOG_LEVEL": ("logging", "level"),
    "OBDCORE_LOG_PATH": ("logging", "path"),
    "OBDCORE_DTC_PROFILE": ("dtc", "profile"),
    "OBDCORE_DTC_PATH": ("dtc", "profiles_path"),
}


def _merge(base: dict, extra: dict) -> dict:
    for k, v in extra.items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(path: Optional[str] = None) -> dict:
    """Defaults, then the YAML file (if given), then OBDCORE_* environment variables."""
    cfg = copy.deepcopy(DEFAULTS)
    if path:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        _merge(cfg, data)
    for name, section in DEFAULTS.items():
        # "dtc:" with every key commented out loads as None
        if cfg.get(name) is None:
            cfg[name] = copy.deepcopy(section)
        elif not isinstance(cfg[name], dict):
            raise ValueError(f"Config section {name} must be a mapping")
    for env, (section, key) in ENV_OVERRIDES.items():
        val = os.environ.get(env)
        if val:
            cfg[section][key] = val
    return cfg


def setup_logging(cfg: dict) -> logging.Logger:
    lp = cfg["logging"]
    level = logging.getLevelName(str(lp["level"]).upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {lp['level']}")

    logger = logging.getLogger("obdcore")
    logger.setLevel(level)
    if not logger.handlers:
        if lp.get("path"):
            d = os.path.dirname(lp["path"])
            if d:
                os.makedirs(d, exist_ok=True)
            h = RotatingFileHandler(lp["path"], maxBytes=int(lp["max_bytes"]),
                                    backupCount=int(lp["backup_count"]))
        else:
            h = logging.StreamHandler()
        h.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(h)
    return logger
