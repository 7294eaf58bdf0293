#!/usr/bin/env python3
"""Decode captured ELM327 output into JSON lines."""
import argparse
import dataclasses
import json
import logging
import sys
from typing import Iterable, List, TextIO

from .dtc_db import DtcLibrary
from .elm import ParseStats, parse_lines
from .j1979 import decode_response
from .utils import load_config, setup_logging

logger = logging.getLogger("obdcore.cli")


def _jsonable(value):
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    if dataclasses.is_dataclass(value):
        return dataclasses.asdict(value)
    return value


def decode_capture(lines: Iterable[str], library: DtcLibrary, stats: ParseStats) -> List[dict]:
    out = []
    for resp in parse_lines(lines, stats):
        decoded = decode_response(resp)
        row = {"service": resp.service, "pid": resp.pid, "raw": resp.raw, "decoded": _jsonable(decoded)}
        if resp.service in ("03", "07", "0A"):
            row["descriptions"] = {c: library.describe(c) for c in decoded}
        out.append(row)
    return out


def _read_lines(paths: List[str]) -> List[str]:
    if not paths:
        return sys.stdin.read().splitlines()
    lines: List[str] = []
    for p in paths:
        with open(p, "r", errors="ignore") as f:
            # adapters end lines with bare CR
            lines.extend(f.read().replace("\r", "\n").splitlines())
    return lines


def _write(rows: List[dict], fh: TextIO):
    for row in rows:
        fh.write(json.dumps(row) + "\n")


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Decode raw ELM327 adapter output to JSON lines")
    ap.add_argument("captures", nargs="*", help="capture files (default: stdin)")
    ap.add_argument("--config", default=None, help="YAML config file")
    ap.add_argument("--out", default="-", help="output file (default: stdout)")
    ap.add_argument("--profile", default=None, help="DTC profile, e.g. mercedes")
    ap.add_argument("--stats", action="store_true", help="print parse counters to stderr")
    args = ap.parse_args(argv)

    cfg = load_config(args.config)
    if args.profile:
        cfg["dtc"]["profile"] = args.profile
    setup_logging(cfg)

    stats = ParseStats()
    rows = decode_capture(_read_lines(args.captures), DtcLibrary.from_config(cfg), stats)
    logger.info(f"decoded {stats.parsed} of {stats.lines} lines")

    if args.out == "-":
        _write(rows, sys.stdout)
    else:
        with open(args.out, "w") as f:
            _write(rows, f)

    if args.stats:
        print(json.dumps(dataclasses.asdict(stats)), file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
