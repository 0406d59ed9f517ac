from __future__ import annotations

from typing import Any, Iterator, List, Optional, Sequence, Tuple
import math
import numpy as np

from common.types import TileCoord


BBox = Tuple[float, float, float, float]  # lon_min, lat_min, lon_max, lat_max

# Web Mercator latitude limit (deg); tiles are square only up to here
MAX_MERCATOR_LAT = 85.0511287798
WORLD_BBOX: BBox = (-180.0, -90.0, 180.0, 90.0)


# -------------------------
# XYZ tile indexing (Web Mercator)
# -------------------------
def point_to_tile(lon: float, lat: float, z: int) -> Tuple[int, int]:
    """
    XYZ tile (x, y) containing lon/lat (deg) at zoom z.

    Latitude is clamped to the Mercator limit and the result to the valid
    index range, so world-bbox corners map to edge tiles.
    """
    n = 1 << int(z)
    lat = max(-MAX_MERCATOR_LAT, min(MAX_MERCATOR_LAT, float(lat)))
    phi = math.radians(lat)
    x = math.floor((float(lon) + 180.0) / 360.0 * n)
    y = math.floor((1.0 - math.log(math.tan(phi) + 1.0 / math.cos(phi)) / math.pi) / 2.0 * n)
    return int(min(max(x, 0), n - 1)), int(min(max(y, 0), n - 1))


def tile_to_bbox(x: int, y: int, z: int) -> BBox:
    """[lon_min, lat_min, lon_max, lat_max] of an XYZ tile."""
    n = float(1 << int(z))
    lon_min = x / n * 360.0 - 180.0
    lon_max = (x + 1) / n * 360.0 - 180.0
    lat_min = math.degrees(math.atan(math.sinh(math.pi * (1.0 - 2.0 * (y + 1) / n))))
    lat_max = math.degrees(math.atan(math.sinh(math.pi * (1.0 - 2.0 * y / n))))
    return (lon_min, lat_min, lon_max, lat_max)


def tiles_for_bounds(bbox: Sequence[float], z: int) -> List[TileCoord]:
    """
    All tiles of the rectangle covering bbox at zoom z, x-major order.

    The north edge gives the smallest y (tile rows grow southwards).
    """
    lon_min, lat_min, lon_max, lat_max = (float(v) for v in bbox)
    x0, y0 = point_to_tile(lon_min, lat_max, z)
    x1, y1 = point_to_tile(lon_max, lat_min, z)
    return [
        TileCoord(z=int(z), x=x, y=y)
        for x in range(min(x0, x1), max(x0, x1) + 1)
        for y in range(min(y0, y1), max(y0, y1) + 1)
    ]


# -------------------------
# GeoJSON extents
# -------------------------
def _iter_positions(coords: Any) -> Iterator[Tuple[float, float]]:
    if not coords:
        return
    if isinstance(coords[0], (int, float)):
        yield float(coords[0]), float(coords[1])
        return
    for c in coords:
        yield from _iter_positions(c)


def _iter_geometry_positions(geom: Optional[dict]) -> Iterator[Tuple[float, float]]:
    if not geom:
        return
    if geom.get("type") == "GeometryCollection":
        for g in geom.get("geometries", []):
            yield from _iter_geometry_positions(g)
        return
    yield from _iter_positions(geom.get("coordinates"))


def geojson_bbox(obj: dict) -> Optional[BBox]:
    """
    Extent of a FeatureCollection, Feature or bare geometry.
    Returns None when the object carries no coordinates.
    """
    kind = obj.get("type")
    if kind == "FeatureCollection":
        positions = [p for f in obj.get("features", []) for p in _iter_geometry_positions(f.get("geometry"))]
    elif kind == "Feature":
        positions = list(_iter_geometry_positions(obj.get("geometry")))
    else:
        positions = list(_iter_geometry_positions(obj))
    if not positions:
        return None
    a = np.asarray(positions, dtype=float)
    lo = a.min(axis=0)
    hi = a.max(axis=0)
    return (float(lo[0]), float(lo[1]), float(hi[0]), float(hi[1]))


def bbox_intersects(a: Sequence[float], b: Sequence[float]) -> bool:
    """Closed-interval overlap of two [lon_min, lat_min, lon_max, lat_max] boxes."""
    return not (a[2] < b[0] or b[2] < a[0] or a[3] < b[1] or b[3] < a[1])


def bbox_union(boxes: Sequence[Optional[BBox]]) -> Optional[BBox]:
    valid = [b for b in boxes if b is not None]
    if not valid:
        return None
    a = np.asarray(valid, dtype=float)
    return (float(a[:, 0].min()), float(a[:, 1].min()), float(a[:, 2].max()), float(a[:, 3].max()))
