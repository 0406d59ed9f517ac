from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

import geobuf

from common.types import DetailLevel, TileCoord


# geobuf stores coordinates as integers scaled by 10**precision
COORD_PRECISION = 6
MEDIA_TYPE = "application/x-protobuf"

# geobuf has no null value; null property keys travel in this list instead
NULLS_KEY = "_nulls"


def _pack_nulls(feature: Dict) -> Dict:
    props = feature.get("properties")
    if not props:
        return feature
    nulls = [k for k, v in props.items() if v is None]
    if not nulls:
        return feature
    packed = {k: v for k, v in props.items() if v is not None}
    packed[NULLS_KEY] = nulls
    return {**feature, "properties": packed}


def _unpack_nulls(feature: Dict) -> None:
    props = feature.get("properties")
    if not props or NULLS_KEY not in props:
        return
    for k in props.pop(NULLS_KEY) or []:
        props[k] = None


def encode_tile(fc: Dict, precision: int = COORD_PRECISION) -> bytes:
    """geobuf-encode a FeatureCollection. Null properties survive via NULLS_KEY."""
    if fc.get("type") != "FeatureCollection":
        raise ValueError("tile payload must be a FeatureCollection")
    payload = {**fc, "features": [_pack_nulls(f) for f in fc.get("features", [])]}
    return geobuf.encode(payload, precision)


def decode_tile(data: bytes) -> Dict:
    """Decode geobuf bytes; an empty payload decodes to an empty collection."""
    if not data:
        return {"type": "FeatureCollection", "features": []}
    out = geobuf.decode(data)
    if out.get("type") == "Feature":
        out = {"type": "FeatureCollection", "features": [out]}
    out.setdefault("features", [])
    for f in out["features"]:
        _unpack_nulls(f)
    return out


def tile_relpath(level: DetailLevel | str, coord: TileCoord) -> str:
    return f"{DetailLevel.parse(level).value}/{coord.z}/{coord.x}/{coord.y}.pbf"


def tile_path(root: str | Path, level: DetailLevel | str, coord: TileCoord) -> Path:
    return Path(root) / tile_relpath(level, coord)


def write_tile(root: str | Path, level: DetailLevel | str, coord: TileCoord, fc: Dict) -> int:
    """Encode and write a tile; returns the encoded size in bytes."""
    data = encode_tile(fc)
    p = tile_path(root, level, coord)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_bytes(data)
    return len(data)


def read_tile(root: str | Path, level: DetailLevel | str, coord: TileCoord) -> Optional[Dict]:
    """Decoded tile, or None when the tile file does not exist."""
    p = tile_path(root, level, coord)
    if not p.is_file():
        return None
    return decode_tile(p.read_bytes())
