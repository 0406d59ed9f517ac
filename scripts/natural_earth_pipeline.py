#!/usr/bin/env python3
"""
Download Natural Earth admin-0/admin-1 data for each detail level and write
per-country boundary files. Requires GDAL's ogr2ogr.

Example:
  python scripts/natural_earth_pipeline.py --levels overview detailed --keep-temp
"""
from __future__ import annotations

import argparse
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common.config import load_config
from common.logging_setup import get_logger, setup_logging
from boundaries.natural_earth import DependencyError, NaturalEarthPipeline


log = get_logger("natural_earth_pipeline")


def main(argv=None) -> int:
    P = load_config()
    ap = argparse.ArgumentParser(description="Build boundary files from Natural Earth")
    ap.add_argument("--out", default=P["data"]["boundaries_root"], help="Boundaries root directory")
    ap.add_argument("--temp", default=P["data"]["temp_root"], help="Download/extract directory")
    ap.add_argument("--levels", nargs="+", default=["overview", "detailed", "ultra"])
    ap.add_argument("--keep-temp", action="store_true", default=P["natural_earth"]["keep_temp"])
    ap.add_argument("--workers", type=int, default=4, help="Parallel downloads")
    ap.add_argument("--log-level", default=None)
    args = ap.parse_args(argv)
    setup_logging(args.log_level or P["logging"]["level"], P["logging"].get("file"))

    try:
        pipe = NaturalEarthPipeline(args.out, args.temp, args.levels, keep_temp=args.keep_temp,
                                    max_workers=args.workers)
        report = pipe.run()
    except DependencyError as e:
        print(f"Error: {e}")
        return 1
    except Exception as e:
        log.exception("Natural Earth pipeline failed")
        print(f"Error: {e}")
        return 1

    print(f"[ok] {len(report.countries)} countries, {report.summary.get('total_files', 0)} files")
    for key, err in sorted(report.failed.items()):
        print(f"  Failed {key}: {err}")
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
