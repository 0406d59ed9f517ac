#!/usr/bin/env python3
"""
Derive detailed/ultra boundary files from overview files by densifying
polygon rings. Existing finer files are kept unless --overwrite is given.

Example:
  python scripts/generate_detail_levels.py --countries USA CHN RUS
"""
from __future__ import annotations

import argparse
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common.config import load_config
from common.logging_setup import get_logger, setup_logging
from boundaries.detail import generate_detail_levels


log = get_logger("generate_detail_levels")


def main(argv=None) -> int:
    P = load_config()
    ap = argparse.ArgumentParser(description="Generate detailed/ultra boundary files from overview files")
    ap.add_argument("--root", default=P["data"]["boundaries_root"], help="Boundaries root directory")
    ap.add_argument("--countries", nargs="*", default=None, help="ISO_A3 codes (default: every overview file)")
    ap.add_argument("--levels", nargs="+", default=["detailed", "ultra"], help="Target levels")
    ap.add_argument("--overwrite", action="store_true", help="Replace existing finer files")
    ap.add_argument("--log-level", default=None)
    args = ap.parse_args(argv)
    setup_logging(args.log_level or P["logging"]["level"], P["logging"].get("file"))

    try:
        report = generate_detail_levels(args.root, args.countries, args.levels, overwrite=args.overwrite)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    print(f"[ok] processed {len(report.written)} countries")
    for code, err in sorted(report.failed.items()):
        print(f"  Failed {code}: {err}")
    return 0 if report.written or not report.failed else 1


if __name__ == "__main__":
    sys.exit(main())
