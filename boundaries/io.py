from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Tuple

from common.types import BoundaryFormatError, DetailLevel


UNKNOWN_FILE = "UNKNOWN.json"


def read_json(path: Path) -> Any:
    with Path(path).open("r", encoding="utf-8") as f:
        return json.load(f)


def write_json(path: Path, data: Any) -> int:
    """Write indented UTF-8 JSON, creating parent dirs. Returns bytes written."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(data, indent=2, ensure_ascii=False)
    path.write_text(text, encoding="utf-8")
    return len(text.encode("utf-8"))


def empty_collection() -> Dict[str, Any]:
    return {"type": "FeatureCollection", "features": []}


def require_feature_collection(data: Any, origin: str = "input") -> Dict[str, Any]:
    if not isinstance(data, dict) or data.get("type") != "FeatureCollection" or not isinstance(data.get("features"), list):
        raise BoundaryFormatError(f"{origin}: invalid GeoJSON format - expected FeatureCollection with features array")
    return data


def normalize_collection(data: Any, origin: str = "input") -> Dict[str, Any]:
    """
    Coerce the boundary payload shapes seen in the wild into a FeatureCollection:

      - FeatureCollection: returned as is
      - Feature: wrapped
      - {id: Feature, ...} (legacy province records): values collected, ids kept
    """
    if isinstance(data, dict):
        kind = data.get("type")
        if kind == "FeatureCollection":
            return require_feature_collection(data, origin)
        if kind == "Feature":
            return {"type": "FeatureCollection", "features": [data]}
        if kind is None:
            features = []
            for key, feat in data.items():
                if isinstance(feat, dict) and feat.get("type") == "Feature":
                    props = feat.setdefault("properties", {}) or {}
                    props.setdefault("id", key)
                    feat["properties"] = props
                    features.append(feat)
            return {"type": "FeatureCollection", "features": features}
    raise BoundaryFormatError(f"{origin}: unsupported boundary data format")


def level_dir(root: Path, level: DetailLevel | str) -> Path:
    return Path(root) / DetailLevel.parse(level).value


def country_file(root: Path, level: DetailLevel | str, code: str) -> Path:
    return level_dir(root, level) / f"{code}.json"


def is_country_file(path: Path) -> bool:
    """Country files are {ISO_A3}.json; reports (_*.json) and UNKNOWN.json are not."""
    return path.suffix == ".json" and not path.name.startswith("_") and path.name != UNKNOWN_FILE


def iter_country_files(root: Path, level: DetailLevel | str) -> Iterator[Tuple[str, Path]]:
    """(code, path) of every country file of a level, sorted by code."""
    d = level_dir(root, level)
    if not d.is_dir():
        return
    for p in sorted(d.glob("*.json")):
        if is_country_file(p):
            yield p.stem, p


def is_valid_boundary_file(data: Any) -> bool:
    """FeatureCollection with metadata whose features all carry type, geometry type and properties."""
    return not validation_errors(data)


def validation_errors(data: Any) -> List[str]:
    """Human readable reasons a boundary file is invalid (empty if valid)."""
    if not isinstance(data, dict) or data.get("type") != "FeatureCollection":
        return ["not a FeatureCollection"]
    if not isinstance(data.get("features"), list):
        return ["features is not an array"]
    errs: List[str] = []
    if not data.get("metadata"):
        errs.append("missing metadata")
    for i, feature in enumerate(data["features"]):
        if not isinstance(feature, dict) or feature.get("type") != "Feature":
            errs.append(f"feature {i}: not a Feature")
            continue
        geom = feature.get("geometry")
        if not isinstance(geom, dict) or not geom.get("type"):
            errs.append(f"feature {i}: missing geometry")
        if not isinstance(feature.get("properties"), dict):
            errs.append(f"feature {i}: missing properties")
    return errs
