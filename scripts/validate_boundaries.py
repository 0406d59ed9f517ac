#!/usr/bin/env python3
"""
Check every boundary file for structure and report expected countries that
are missing. Exits 1 when any file is invalid.

Example:
  python scripts/validate_boundaries.py --root data/boundaries
"""
from __future__ import annotations

import argparse
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common.config import load_config
from common.logging_setup import setup_logging
from boundaries.validate import validate_boundaries


def main(argv=None) -> int:
    P = load_config()
    ap = argparse.ArgumentParser(description="Validate boundary files")
    ap.add_argument("--root", default=P["data"]["boundaries_root"], help="Boundaries root directory")
    ap.add_argument("--no-report", action="store_true", help="Do not write validation-report.json")
    ap.add_argument("--log-level", default=None)
    args = ap.parse_args(argv)
    setup_logging(args.log_level or P["logging"]["level"], P["logging"].get("file"))

    report = validate_boundaries(args.root, write_report=not args.no_report)
    for level, s in report["levels"].items():
        if not s["exists"]:
            print(f"  {level}: directory missing")
            continue
        print(f"  {level}: {s['valid']} valid, {s['invalid']} invalid, {len(s['missing'])} expected missing")
        if s["missing"]:
            print(f"    missing: {', '.join(s['missing'])}")
        for code, errs in s["errors"].items():
            print(f"    {code}: {'; '.join(errs[:3])}")

    if report["ok"]:
        print(f"[ok] {report['totals']['valid']} valid boundary files")
        return 0
    print(f" {report['totals']['invalid']} invalid boundary files")
    return 1


if __name__ == "__main__":
    sys.exit(main())
