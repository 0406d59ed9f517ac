"""
Detail levels for boundary geometry.

Two directions are supported:
  - simplify: reduce vertex count (shapely Douglas-Peucker) for coarser levels
  - densify: derive detailed/ultra files from an overview file when no finer
    source data exists, by interpolating extra vertices along every edge
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from shapely.geometry import mapping, shape

from common.logging_setup import get_logger
from common.types import DetailLevel
from common.utils import iso_now_ms
from boundaries.io import country_file, iter_country_files, read_json, require_feature_collection, write_json


log = get_logger(__name__)

# Simplification tolerance (deg) per level; None keeps geometry untouched
SIMPLIFY_TOLERANCE: Dict[DetailLevel, Optional[float]] = {
    DetailLevel.OVERVIEW: 0.1,
    DetailLevel.DETAILED: 0.01,
    DetailLevel.ULTRA: None,
}

# (segments per edge, rounding decimals) when densifying
DENSIFY_PARAMS: Dict[DetailLevel, tuple] = {
    DetailLevel.DETAILED: (2, 4),
    DetailLevel.ULTRA: (4, 6),
}


def as_lists(obj: Any) -> Any:
    """shapely.mapping() yields tuples; GeoJSON writers expect lists."""
    if isinstance(obj, (list, tuple)):
        return [as_lists(v) for v in obj]
    if isinstance(obj, dict):
        return {k: as_lists(v) for k, v in obj.items()}
    return obj


def simplify_geometry(geometry: Dict, tolerance: float, preserve_topology: bool = True) -> Dict:
    geom = shape(geometry)
    simplified = geom.simplify(tolerance, preserve_topology=preserve_topology)
    if simplified.is_empty:
        # collapsed below tolerance
        return geometry
    return as_lists(mapping(simplified))


def simplify_feature(feature: Dict, tolerance: Optional[float], preserve_topology: bool = True) -> Dict:
    """Copy of feature with simplified geometry; failures keep the original geometry."""
    if not tolerance or not feature.get("geometry"):
        return feature
    out = dict(feature)
    try:
        out["geometry"] = simplify_geometry(feature["geometry"], tolerance, preserve_topology)
    except Exception as e:
        props = feature.get("properties") or {}
        log.warning("Simplification failed for feature %s: %s", props.get("id", "unknown"), e)
        return feature
    return out


def simplify_collection(fc: Dict, level: DetailLevel | str | None = None, tolerance: Optional[float] = None) -> Dict:
    """
    Simplify every feature of a FeatureCollection.

    Pass a detail level (tolerance from SIMPLIFY_TOLERANCE) or an explicit tolerance.
    """
    if tolerance is None and level is not None:
        tolerance = SIMPLIFY_TOLERANCE[DetailLevel.parse(level)]
    out = dict(fc)
    out["features"] = [simplify_feature(f, tolerance) for f in fc.get("features", [])]
    return out


# -------------------------
# Densify
# -------------------------
def _interpolate(a: Sequence[float], b: Sequence[float], steps: int) -> List[List[float]]:
    return [
        [a[0] + (b[0] - a[0]) * (i / steps), a[1] + (b[1] - a[1]) * (i / steps)]
        for i in range(1, steps)
    ]


def densify_ring(ring: Sequence[Sequence[float]], steps: int, precision: int) -> List[List[float]]:
    """Insert steps-1 evenly spaced points on each edge and round all positions."""
    out: List[List[float]] = []
    for i, cur in enumerate(ring):
        out.append([round(cur[0], precision), round(cur[1], precision)])
        if i < len(ring) - 1:
            for p in _interpolate(cur, ring[i + 1], steps):
                out.append([round(p[0], precision), round(p[1], precision)])
    return out


def densify_geometry(geometry: Dict, level: DetailLevel | str) -> Dict:
    lvl = DetailLevel.parse(level)
    if lvl not in DENSIFY_PARAMS or not geometry:
        return geometry
    steps, precision = DENSIFY_PARAMS[lvl]
    kind = geometry.get("type")
    if kind == "Polygon":
        coords = [densify_ring(r, steps, precision) for r in geometry["coordinates"]]
    elif kind == "MultiPolygon":
        coords = [[densify_ring(r, steps, precision) for r in poly] for poly in geometry["coordinates"]]
    else:
        return geometry
    return {**geometry, "coordinates": coords}


def densify_collection(fc: Dict, level: DetailLevel | str) -> Dict:
    lvl = DetailLevel.parse(level)
    out = copy.deepcopy(fc)
    for feature in out.get("features", []):
        feature["geometry"] = densify_geometry(feature.get("geometry"), lvl)
    meta = out.get("metadata")
    if isinstance(meta, dict):
        meta["level"] = lvl.value
        meta["derivedFrom"] = DetailLevel.OVERVIEW.value
        meta["generated"] = iso_now_ms()
    return out


@dataclass
class DetailLevelReport:
    written: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)


def generate_detail_levels(
    boundaries_root: str | Path,
    countries: Optional[Sequence[str]] = None,
    levels: Sequence[DetailLevel | str] = (DetailLevel.DETAILED, DetailLevel.ULTRA),
    overwrite: bool = False,
) -> DetailLevelReport:
    """
    Derive finer levels from {root}/overview/{code}.json by densification.

    Existing finer files are kept unless overwrite=True (real data beats
    interpolated data). Per-country failures are logged and skipped.
    """
    root = Path(boundaries_root)
    wanted = {c.upper() for c in countries} if countries else None
    targets = [DetailLevel.parse(l) for l in levels]
    report = DetailLevelReport()

    for code, path in iter_country_files(root, DetailLevel.OVERVIEW):
        if wanted is not None and code not in wanted:
            continue
        try:
            overview = require_feature_collection(read_json(path), origin=str(path))
            for lvl in targets:
                dst = country_file(root, lvl, code)
                if dst.exists() and not overwrite:
                    log.debug("Keeping existing %s", dst)
                    continue
                write_json(dst, densify_collection(overview, lvl))
            report.written.append(code)
            log.info("Generated detail levels for %s (%d features)", code, len(overview["features"]))
        except Exception as e:
            log.error("Error processing %s: %s", code, e)
            report.failed[code] = str(e)

    if wanted:
        for code in sorted(wanted - set(report.written) - set(report.failed)):
            log.warning("Overview file not found for %s", code)
            report.failed[code] = "overview file not found"
    return report
