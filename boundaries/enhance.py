from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence, Set

from common.logging_setup import get_logger
from common.types import LEVELS, BoundaryMetadata, DetailLevel
from common.utils import iso_now_ms
from boundaries.game_data import REQUIRED_COUNTRIES, country_extent, country_name, game_metadata
from boundaries.io import country_file, iter_country_files, read_json, require_feature_collection, write_json


log = get_logger(__name__)

VERSION = "1.0.0"
SUMMARY_FILE = "enhancement-summary.json"

# Share of the country's half-extent used for placeholder rectangles
PLACEHOLDER_SCALE: Dict[DetailLevel, float] = {
    DetailLevel.OVERVIEW: 0.8,
    DetailLevel.DETAILED: 0.5,
    DetailLevel.ULTRA: 0.2,
}


@dataclass
class EnhancementReport:
    enhanced: Dict[str, List[str]] = field(default_factory=dict)
    created: Dict[str, List[str]] = field(default_factory=dict)
    failed: Dict[str, str] = field(default_factory=dict)   # "level:code" -> error
    summary: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


def enhance_collection(data: Dict, code: str, level: DetailLevel | str) -> Dict:
    """
    Standardise metadata, attach gameMetadata and fill feature ids in place.

    Existing metadata keys survive; source/generated are only defaulted.
    """
    lvl = DetailLevel.parse(level)
    existing = data.get("metadata") or {}
    meta = BoundaryMetadata(
        source=existing.get("source") or "Natural Earth",
        level=lvl.value,
        country=code,
        generated=existing.get("generated") or iso_now_ms(),
        extra={k: v for k, v in existing.items() if k not in ("source", "level", "country", "generated")},
    )
    meta.extra["enhanced"] = iso_now_ms()
    meta.extra["version"] = VERSION
    data["metadata"] = meta.to_dict()
    data["gameMetadata"] = game_metadata(code).to_dict()

    for feature in data.get("features", []):
        props = feature.get("properties")
        if not isinstance(props, dict):
            props = feature["properties"] = {}
        props.setdefault("id", code)
        props.setdefault("ISO_A3", code)
    return data


def placeholder_geometry(code: str, level: DetailLevel | str) -> Dict:
    """Axis-aligned rectangle around the country's approximate center."""
    (lon, lat), (w, h) = country_extent(code)
    s = PLACEHOLDER_SCALE[DetailLevel.parse(level)]
    ring = [
        [lon - w * s, lat - h * s],
        [lon + w * s, lat - h * s],
        [lon + w * s, lat + h * s],
        [lon - w * s, lat + h * s],
        [lon - w * s, lat - h * s],
    ]
    return {"type": "Polygon", "coordinates": [ring]}


def placeholder_collection(code: str, level: DetailLevel | str) -> Dict:
    lvl = DetailLevel.parse(level)
    name = country_name(code)
    meta = BoundaryMetadata(
        source="Generated",
        level=lvl.value,
        country=code,
        extra={"version": VERSION, "note": "Simplified geometry for game use"},
    )
    return {
        "type": "FeatureCollection",
        "metadata": meta.to_dict(),
        "gameMetadata": game_metadata(code).to_dict(),
        "features": [{
            "type": "Feature",
            "properties": {"id": code, "ISO_A3": code, "NAME": name, "ADMIN": name},
            "geometry": placeholder_geometry(code, lvl),
        }],
    }


class BoundaryEnhancer:
    """
    Enhances every country file under root/{level}/ with game metadata and
    creates placeholder files for required countries that are missing.

        root/
          ├─ overview/{ISO_A3}.json
          ├─ detailed/{ISO_A3}.json
          ├─ ultra/{ISO_A3}.json
          └─ enhancement-summary.json
    """

    def __init__(self, root: str | Path = "data/boundaries", required: Sequence[str] = REQUIRED_COUNTRIES,
                 levels: Sequence[DetailLevel | str] = LEVELS):
        self.root = Path(root)
        self.required = [c.upper() for c in required]
        self.levels = [DetailLevel.parse(l) for l in levels]
        self._processed: Set[str] = set()

    def run(self, create_missing: bool = True) -> EnhancementReport:
        report = EnhancementReport()
        for lvl in self.levels:
            (self.root / lvl.value).mkdir(parents=True, exist_ok=True)
            self.enhance_level(lvl, report)
        if create_missing:
            for lvl in self.levels:
                self.create_missing(lvl, report)
        report.summary = self.write_summary()
        return report

    def enhance_level(self, level: DetailLevel, report: EnhancementReport) -> None:
        files = list(iter_country_files(self.root, level))
        log.info("Enhancing %s: %d files", level.value, len(files))
        for code, path in files:
            try:
                data = require_feature_collection(read_json(path), origin=str(path))
                write_json(path, enhance_collection(data, code, level))
                report.enhanced.setdefault(level.value, []).append(code)
                self._processed.add(f"{level.value}:{code}")
            except Exception as e:
                log.warning("Failed to enhance %s (%s): %s", code, level.value, e)
                report.failed[f"{level.value}:{code}"] = str(e)

    def create_missing(self, level: DetailLevel, report: EnhancementReport) -> None:
        created = []
        for code in self.required:
            key = f"{level.value}:{code}"
            # a file that failed to enhance is broken, not missing
            if key in self._processed or key in report.failed:
                continue
            if country_file(self.root, level, code).exists():
                continue
            write_json(country_file(self.root, level, code), placeholder_collection(code, level))
            self._processed.add(key)
            created.append(code)
        if created:
            log.info("Created %d missing files for %s", len(created), level.value,
                     extra={"extra": {"countries": created}})
        report.created[level.value] = created

    def write_summary(self) -> Dict[str, Any]:
        levels: Dict[str, Any] = {}
        countries: Set[str] = set()
        total = 0
        for lvl in self.levels:
            codes = [code for code, _ in iter_country_files(self.root, lvl)]
            levels[lvl.value] = {"files": len(codes), "countries": codes}
            countries.update(codes)
            total += len(codes)
        summary = {
            "generated": iso_now_ms(),
            "enhancer_version": VERSION,
            "levels": levels,
            "totals": {"files": total, "unique_countries": len(countries), "countries": sorted(countries)},
        }
        write_json(self.root / SUMMARY_FILE, summary)
        return summary
