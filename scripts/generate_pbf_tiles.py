#!/usr/bin/env python3
"""
Cut boundary files into geobuf PBF tiles per detail level.

Writes {tiles}/{level}/{z}/{x}/{y}.pbf and {tiles}/metadata.json.

Example:
  python scripts/generate_pbf_tiles.py --countries USA CAN MEX
  uvicorn tiles.server:app --port 8000
"""
from __future__ import annotations

import argparse
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common.config import load_config
from common.logging_setup import get_logger, setup_logging
from common.utils import Stopwatch, format_bytes
from tiles.generator import TileGenerator


log = get_logger("generate_pbf_tiles")


def main(argv=None) -> int:
    P = load_config()
    T = P["tiles"]
    ap = argparse.ArgumentParser(description="Generate PBF tiles from boundary files")
    ap.add_argument("--boundaries", default=P["data"]["boundaries_root"], help="Boundaries root directory")
    ap.add_argument("--out", default=P["data"]["tiles_root"], help="Tiles root directory")
    ap.add_argument("--countries", nargs="*", default=None, help="ISO_A3 codes (default: all)")
    ap.add_argument("--sources", nargs="+", default=T["source_levels"], help="Boundary levels to read")
    ap.add_argument("--log-level", default=None)
    args = ap.parse_args(argv)
    setup_logging(args.log_level or P["logging"]["level"], P["logging"].get("file"))

    gen = TileGenerator(
        boundaries_root=args.boundaries,
        tiles_root=args.out,
        zoom_levels=T["zoom_levels"],
        source_levels=args.sources,
        countries=args.countries,
        tile_size=int(T["tile_size"]),
    )
    try:
        with Stopwatch() as sw:
            report = gen.generate_all()
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    for level, n in report.tiles.items():
        print(f"  {level}: {n} tiles")
    print(f"[ok] {report.total_tiles} tiles ({format_bytes(report.bytes_written)}) in {sw.ms / 1000:.1f}s")
    if report.failed:
        print(f"  {len(report.failed)} tiles failed")
    return 0 if not report.failed else 1


if __name__ == "__main__":
    sys.exit(main())
