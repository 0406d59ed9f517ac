"""
Viewport level-of-detail helpers.

The map view addresses a coarse degree grid with keys "{level}_{lat}_{lon}"
(south-west corner of the cell). View zoom is the UI scale (1.0 .. 10.0),
not the XYZ tile zoom.
"""
from __future__ import annotations

import math
from typing import Dict, List, Optional, Tuple

from common.types import DetailLevel
from common.utils import clamp


HYSTERESIS = 0.2
OVERVIEW_MAX_ZOOM = 2.5    # below: overview
DETAILED_MAX_ZOOM = 4.0    # below: detailed, else ultra

BASE_TILE_DEG = 10.0


def detail_level_from_zoom(zoom: float, current: DetailLevel | str = DetailLevel.OVERVIEW) -> DetailLevel:
    """
    Detail level for a view zoom. The boundary next to the current level is
    pushed away by HYSTERESIS so small zoom jitter does not flip levels.
    """
    cur = DetailLevel.parse(current)
    overview_max = OVERVIEW_MAX_ZOOM
    detailed_max = DETAILED_MAX_ZOOM
    if cur is DetailLevel.OVERVIEW:
        overview_max += HYSTERESIS
    elif cur is DetailLevel.DETAILED:
        overview_max -= HYSTERESIS
        detailed_max += HYSTERESIS
    else:
        detailed_max -= HYSTERESIS

    if zoom < overview_max:
        return DetailLevel.OVERVIEW
    if zoom < detailed_max:
        return DetailLevel.DETAILED
    return DetailLevel.ULTRA


def tile_size_deg(zoom: float) -> float:
    return BASE_TILE_DEG / max(1.0, zoom / 2.0)


def _fmt(v: float) -> str:
    # integral degrees print without a trailing .0
    return str(int(v)) if float(v).is_integer() else repr(round(v, 6))


def make_tile_key(level: DetailLevel | str, lat: float, lon: float) -> str:
    return f"{DetailLevel.parse(level).value}_{_fmt(lat)}_{_fmt(lon)}"


def parse_tile_key(key: str) -> Optional[Tuple[DetailLevel, float, float]]:
    parts = key.split("_")
    if len(parts) != 3:
        return None
    try:
        return DetailLevel.parse(parts[0]), float(parts[1]), float(parts[2])
    except ValueError:
        return None


def visible_tile_keys(
    center: Tuple[float, float],
    zoom: float,
    view_range: int = 5,
    level: Optional[DetailLevel | str] = None,
) -> List[str]:
    """
    Keys of the view_range x view_range grid around center (lat, lon).

    Cells shrink as zoom grows; corners are clamped to [-90, 80] x [-180, 170]
    and duplicates produced by clamping are dropped.
    """
    lat, lon = center
    lvl = DetailLevel.parse(level) if level is not None else detail_level_from_zoom(zoom)
    size = tile_size_deg(zoom)
    cx = math.floor(lon / size) * size
    cy = math.floor(lat / size) * size
    half = view_range // 2

    keys: List[str] = []
    seen = set()
    for dx in range(-half, half + 1):
        for dy in range(-half, half + 1):
            tx = clamp(cx + dx * size, -180.0, 170.0)
            ty = clamp(cy + dy * size, -90.0, 80.0)
            key = make_tile_key(lvl, ty, tx)
            if key not in seen:
                seen.add(key)
                keys.append(key)
    return keys


def filter_tiles_for_culling(
    keys: List[str],
    center: Tuple[float, float],
    max_distance: float = 3.0,
) -> Dict[str, List[str]]:
    """
    Split keys into {"keep": [...], "cull": [...]} by Chebyshev distance (in
    10 degree cells) from center (lat, lon). Unparseable keys are culled.
    """
    keep: List[str] = []
    cull: List[str] = []
    lat, lon = center
    for key in keys:
        parsed = parse_tile_key(key)
        if parsed is None:
            cull.append(key)
            continue
        _, tlat, tlon = parsed
        distance = max(abs(tlat - lat) / BASE_TILE_DEG, abs(tlon - lon) / BASE_TILE_DEG)
        (cull if distance > max_distance else keep).append(key)
    return {"keep": keep, "cull": cull}


def tile_key_bounds(key: str) -> Optional[Dict[str, float]]:
    """{north, south, east, west} of a 10 degree cell, or None for a malformed key."""
    parsed = parse_tile_key(key)
    if parsed is None:
        return None
    _, lat, lon = parsed
    return {"north": lat + BASE_TILE_DEG, "south": lat, "east": lon + BASE_TILE_DEG, "west": lon}


def is_point_in_tile(point: Tuple[float, float], key: str) -> bool:
    """Half-open test: south/west edges inside, north/east edges outside."""
    b = tile_key_bounds(key)
    if b is None:
        return False
    lat, lon = point
    return b["south"] <= lat < b["north"] and b["west"] <= lon < b["east"]
