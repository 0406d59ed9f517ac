#!/usr/bin/env python3
"""
Standardise boundary metadata, attach game metadata and create placeholder
files for required countries that have no data yet.

Example:
  python scripts/enhance_boundaries.py --root data/boundaries
"""
from __future__ import annotations

import argparse
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common.config import load_config
from common.logging_setup import get_logger, setup_logging
from boundaries.enhance import BoundaryEnhancer


log = get_logger("enhance_boundaries")


def main(argv=None) -> int:
    P = load_config()
    ap = argparse.ArgumentParser(description="Enhance boundary files with game metadata")
    ap.add_argument("--root", default=P["data"]["boundaries_root"], help="Boundaries root directory")
    ap.add_argument("--no-create", action="store_true", help="Do not create placeholder files")
    ap.add_argument("--log-level", default=None)
    args = ap.parse_args(argv)
    setup_logging(args.log_level or P["logging"]["level"], P["logging"].get("file"))

    try:
        report = BoundaryEnhancer(args.root).run(create_missing=not args.no_create)
    except OSError as e:
        log.exception("Enhancement failed")
        print(f"Error: {e}")
        return 1

    totals = report.summary.get("totals", {})
    print(f"[ok] {totals.get('files', 0)} files, {totals.get('unique_countries', 0)} countries")
    for level, codes in report.created.items():
        if codes:
            print(f"     {level}: created {len(codes)} placeholders ({', '.join(codes)})")
    for key, err in sorted(report.failed.items()):
        print(f"  Failed {key}: {err}")
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
