from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from common.logging_setup import get_logger
from common.types import BoundaryMetadata, DetailLevel
from common.utils import iso_now_ms
from boundaries.country_codes import is_known_code, resolve_country_code
from boundaries.io import UNKNOWN_FILE, level_dir, read_json, require_feature_collection, write_json


log = get_logger(__name__)

SUMMARY_FILE = "_SUMMARY.json"


@dataclass
class SplitSummary:
    """Outcome of one split run (also written to _SUMMARY.json)."""
    input_file: str
    level: DetailLevel
    output_dir: Path
    counts: Dict[str, int] = field(default_factory=dict)
    unknown_features: int = 0
    processed_at: str = field(default_factory=iso_now_ms)

    @property
    def total_countries(self) -> int:
        return len(self.counts)

    @property
    def total_features(self) -> int:
        return sum(self.counts.values())

    @property
    def largest(self) -> Optional[Tuple[str, int]]:
        if not self.counts:
            return None
        code = max(self.counts, key=lambda c: self.counts[c])
        return code, self.counts[code]

    @property
    def smallest(self) -> Optional[Tuple[str, int]]:
        if not self.counts:
            return None
        code = min(self.counts, key=lambda c: self.counts[c])
        return code, self.counts[code]

    def to_dict(self) -> Dict[str, Any]:
        largest = self.largest or ("", 0)
        smallest = self.smallest or ("", 0)
        return {
            "inputFile": self.input_file,
            "detailLevel": self.level.value,
            "processedAt": self.processed_at,
            "statistics": {
                "totalCountries": self.total_countries,
                "totalFeatures": self.total_features,
                "largestCountry": {"code": largest[0], "count": largest[1]},
                "smallestCountry": {"code": smallest[0], "count": smallest[1]},
                "filesGenerated": self.total_countries,
                "unknownFeatures": self.unknown_features,
            },
            "countries": sorted(self.counts),
            "sampleCountries": [
                {"code": code, "featureCount": n} for code, n in list(self.counts.items())[:10]
            ],
        }


def group_by_country(features: List[Dict]) -> Tuple[Dict[str, List[Dict]], List[Dict]]:
    """Group features by resolved ISO_A3 code; unresolvable ones are returned separately."""
    groups: Dict[str, List[Dict]] = {}
    unknown: List[Dict] = []
    for feature in features:
        code = resolve_country_code(feature)
        if not is_known_code(code):
            props = feature.get("properties") or {}
            log.warning(
                "Unknown country for feature",
                extra={"extra": {"name": props.get("NAME") or props.get("name"), "properties": sorted(props)}},
            )
            unknown.append(feature)
            continue
        groups.setdefault(code, []).append(feature)
    return groups, unknown


def split_by_country(input_path: str | Path, level: DetailLevel | str, out_root: str | Path) -> SplitSummary:
    """
    Split a world FeatureCollection into {out_root}/{level}/{ISO_A3}.json.

    Unmapped features go to UNKNOWN.json; a _SUMMARY.json report is written.
    Raises ValueError (bad level), FileNotFoundError, BoundaryFormatError.
    """
    lvl = DetailLevel.parse(level)
    src = Path(input_path)
    if not src.exists():
        raise FileNotFoundError(f"Input file not found: {src}")

    data = require_feature_collection(read_json(src), origin=str(src))
    log.info("Splitting %s (%s): %d features", src.name, lvl.value, len(data["features"]))

    out_dir = level_dir(Path(out_root), lvl)
    out_dir.mkdir(parents=True, exist_ok=True)

    groups, unknown = group_by_country(data["features"])
    summary = SplitSummary(input_file=src.name, level=lvl, output_dir=out_dir, unknown_features=len(unknown))

    for code, features in groups.items():
        meta = BoundaryMetadata(
            source=src.name,
            level=lvl.value,
            country=code,
            extra={"detailLevel": lvl.value, "featureCount": len(features)},
        )
        write_json(out_dir / f"{code}.json", {
            "type": "FeatureCollection",
            "metadata": meta.to_dict(),
            "features": features,
        })
        summary.counts[code] = len(features)
        log.debug("%s: %d features", code, len(features))

    if unknown:
        meta = BoundaryMetadata(
            source=src.name,
            level=lvl.value,
            country="UNKNOWN",
            extra={
                "detailLevel": lvl.value,
                "featureCount": len(unknown),
                "note": "Features that could not be mapped to ISO_A3 country codes",
            },
        )
        write_json(out_dir / UNKNOWN_FILE, {"type": "FeatureCollection", "metadata": meta.to_dict(), "features": unknown})
        log.warning("%d features could not be mapped to countries; see %s", len(unknown), out_dir / UNKNOWN_FILE)

    write_json(out_dir / SUMMARY_FILE, summary.to_dict())
    log.info(
        "Split complete",
        extra={"extra": {"countries": summary.total_countries, "features": summary.total_features, "unknown": len(unknown)}},
    )
    return summary
