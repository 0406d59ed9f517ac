#!/usr/bin/env python3
"""
Split a world boundaries GeoJSON into one file per country.

Writes {out}/{level}/{ISO_A3}.json, UNKNOWN.json for unmapped features and
a _SUMMARY.json report.

Example:
  python scripts/split_geojson_by_country.py --input world_overview.json --level overview
"""
from __future__ import annotations

import argparse
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common.config import load_config
from common.logging_setup import get_logger, setup_logging
from common.utils import Stopwatch
from boundaries.split import split_by_country


log = get_logger("split_geojson_by_country")


def main(argv=None) -> int:
    P = load_config()
    ap = argparse.ArgumentParser(description="Split a world GeoJSON FeatureCollection by country")
    ap.add_argument("--input", required=True, help="World FeatureCollection (GeoJSON)")
    ap.add_argument("--level", required=True, help="Detail level: overview, detailed or ultra")
    ap.add_argument("--out", default=P["data"]["boundaries_root"], help="Boundaries root directory")
    ap.add_argument("--log-level", default=None, help="DEBUG/INFO/WARNING/ERROR")
    args = ap.parse_args(argv)
    setup_logging(args.log_level or P["logging"]["level"], P["logging"].get("file"))

    try:
        with Stopwatch() as sw:
            summary = split_by_country(args.input, args.level, args.out)
    except Exception as e:
        log.error("Split failed: %s", e)
        print(f"Error: {e}")
        return 1

    print(f"[ok] {summary.total_countries} countries, {summary.total_features} features -> {summary.output_dir}")
    if summary.largest:
        print(f"     largest: {summary.largest[0]} ({summary.largest[1]} features)")
        print(f"     smallest: {summary.smallest[0]} ({summary.smallest[1]} features)")
    if summary.unknown_features:
        print(f"     unmapped: {summary.unknown_features} features (see UNKNOWN.json)")
    print(f"     took {sw.ms / 1000:.2f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
