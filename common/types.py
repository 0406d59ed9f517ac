from __future__ import annotations

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Optional, Tuple, Any, Dict

from common.utils import iso_now_ms


class DetailLevel(str, Enum):
    """
    Geometry simplification degree of a boundary file or tile set.

    Each level owns a contiguous range of tile zooms (inclusive).
    """
    OVERVIEW = "overview"
    DETAILED = "detailed"
    ULTRA = "ultra"

    @classmethod
    def parse(cls, value: "DetailLevel | str") -> "DetailLevel":
        if isinstance(value, DetailLevel):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            names = ", ".join(l.value for l in cls)
            raise ValueError(f"Invalid detail level {value!r}. Must be one of: {names}") from None

    @property
    def zoom_range(self) -> Tuple[int, int]:
        return _ZOOM_RANGES[self]

    @property
    def rank(self) -> int:
        return list(DetailLevel).index(self)

    def __str__(self) -> str:
        return self.value


_ZOOM_RANGES: Dict[DetailLevel, Tuple[int, int]] = {
    DetailLevel.OVERVIEW: (0, 3),
    DetailLevel.DETAILED: (4, 7),
    DetailLevel.ULTRA: (8, 10),
}

LEVELS: Tuple[DetailLevel, ...] = tuple(DetailLevel)


@dataclass(frozen=True, slots=True)
class TileCoord:
    """XYZ (slippy map) tile index."""
    z: int
    x: int
    y: int

    def __post_init__(self) -> None:
        if self.z < 0:
            raise ValueError("z must be >= 0")
        n = 1 << self.z
        if not (0 <= self.x < n) or not (0 <= self.y < n):
            raise ValueError(f"tile {self.x}/{self.y} out of range for zoom {self.z}")

    def key(self, level: DetailLevel | str) -> str:
        return f"{DetailLevel.parse(level).value}/{self.z}/{self.x}/{self.y}"

    def __str__(self) -> str:
        return f"{self.z}/{self.x}/{self.y}"


@dataclass(slots=True)
class BoundaryMetadata:
    """
    `metadata` block of a boundary file.

    Attributes:
        source: data origin, e.g. "Natural Earth" or "Generated".
        level: detail level name.
        country: ISO_A3 code (or "UNKNOWN").
        generated: ISO-8601 (UTC) creation time.
        extra: any additional keys (featureCount, provinces, note, ...).
    """
    source: str
    level: str
    country: str
    generated: str = field(default_factory=iso_now_ms)
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.level = DetailLevel.parse(self.level).value

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "source": self.source,
            "level": self.level,
            "country": self.country,
            "generated": self.generated,
        }
        d.update(self.extra)
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BoundaryMetadata":
        known = ("source", "level", "country", "generated")
        return cls(
            source=str(d.get("source", "unknown")),
            level=str(d.get("level") or d.get("detailLevel") or "overview"),
            country=str(d.get("country", "UNK")),
            generated=str(d.get("generated") or d.get("generatedAt") or iso_now_ms()),
            extra={k: v for k, v in d.items() if k not in known},
        )


@dataclass(slots=True)
class GameMetadata:
    """Starting-state facts shown in the nation panel (serialized camelCase)."""
    display_name: str
    region: str = "Unknown"
    starting_year: int = 1990
    government: str = "Unknown"
    ideology: str = "Unknown"
    gdp_estimate: float = 100e9
    population: int = 10_000_000
    capital: str = "Unknown"

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        return {
            "displayName": d["display_name"],
            "region": d["region"],
            "startingYear": d["starting_year"],
            "government": d["government"],
            "ideology": d["ideology"],
            "gdpEstimate": d["gdp_estimate"],
            "population": d["population"],
            "capital": d["capital"],
        }


class BoundaryFormatError(ValueError):
    """Input is not a usable GeoJSON FeatureCollection."""


class GeographicDataError(Exception):
    """Failure loading boundary or tile data for a region at a detail level."""

    def __init__(self, message: str, region: str, detail_level: Optional[DetailLevel | str] = None):
        super().__init__(message)
        self.region = region
        self.detail_level = str(detail_level) if detail_level is not None else None

    def __str__(self) -> str:
        base = super().__str__()
        if self.detail_level:
            return f"{base} ({self.region}/{self.detail_level})"
        return f"{base} ({self.region})"
