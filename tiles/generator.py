from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from shapely.geometry import box, shape
from shapely.strtree import STRtree

from common.geo import WORLD_BBOX, bbox_union, geojson_bbox, tile_to_bbox, tiles_for_bounds
from common.logging_setup import get_logger
from common.types import DetailLevel, TileCoord
from common.utils import format_bytes, iso_now_ms
from boundaries.detail import simplify_feature
from boundaries.io import iter_country_files, normalize_collection, read_json, write_json
from tiles.codec import write_tile


log = get_logger(__name__)

VERSION = "1.0.0"
METADATA_FILE = "metadata.json"

# (tolerance, preserve_topology) by zoom band
_ZOOM_SIMPLIFY: Tuple[Tuple[int, Optional[float], bool], ...] = (
    (4, 0.1, False),
    (8, 0.01, True),
)


def simplification_for_zoom(z: int) -> Tuple[Optional[float], bool]:
    for upper, tol, keep_topology in _ZOOM_SIMPLIFY:
        if z < upper:
            return tol, keep_topology
    return None, True


def simplify_for_zoom(feature: Dict, z: int) -> Dict:
    tol, keep_topology = simplification_for_zoom(z)
    return simplify_feature(feature, tol, keep_topology)


def _game_data(props: Dict, generated: str) -> Dict[str, Any]:
    infra = props.get("infrastructure") or {}
    economy = props.get("economy") or {}
    military = props.get("military") or {}
    return {
        "tileGenerated": generated,
        "version": VERSION,
        "resourceMask": len(props.get("resourceDeposits") or {}),
        "infrastructureLevels": {
            "roads": infra.get("roads", 0),
            "internet": infra.get("internet", 0),
            "power": infra.get("powerGrid", 0),
        },
        "economicData": {
            "gdp": economy.get("gdp", 0),
            "gdpPerCapita": economy.get("gdpPerCapita", 0),
        },
        "militaryValue": military.get("fortificationLevel", 0),
    }


def with_game_data(feature: Dict, generated: str) -> Dict:
    props = dict(feature.get("properties") or {})
    props["gameData"] = _game_data(props, generated)
    return {**feature, "properties": props}


@dataclass
class LevelIndex:
    """Features of one source level plus a spatial index over their geometries."""
    features: List[Dict]
    geoms: List[Any]
    tree: STRtree
    bounds: Optional[Tuple[float, float, float, float]]

    @classmethod
    def build(cls, features: List[Dict]) -> "LevelIndex":
        kept: List[Dict] = []
        geoms: List[Any] = []
        for f in features:
            try:
                g = shape(f["geometry"])
            except Exception as e:
                log.warning("Skipping feature %s with unreadable geometry: %s",
                            (f.get("properties") or {}).get("id", "unknown"), e)
                continue
            kept.append(f)
            geoms.append(g)
        bounds = bbox_union([geojson_bbox(f) for f in kept])
        return cls(features=kept, geoms=geoms, tree=STRtree(geoms), bounds=bounds)

    def intersecting(self, tile_bbox: Tuple[float, float, float, float]) -> List[Dict]:
        """Features intersecting the tile polygon; a failed exact test includes the feature."""
        tile_poly = box(*tile_bbox)
        out = []
        for i in sorted(int(i) for i in self.tree.query(tile_poly)):
            try:
                hit = self.geoms[i].intersects(tile_poly)
            except Exception as e:
                log.warning("Intersection check failed for feature %s: %s",
                            (self.features[i].get("properties") or {}).get("id", "unknown"), e)
                hit = True
            if hit:
                out.append(self.features[i])
        return out


@dataclass
class GenerationReport:
    tiles: Dict[str, int] = field(default_factory=dict)     # level -> tiles written
    bytes_written: int = 0
    failed: Dict[str, str] = field(default_factory=dict)    # tile key -> error
    bounds: Optional[Tuple[float, float, float, float]] = None

    @property
    def total_tiles(self) -> int:
        return sum(self.tiles.values())


class TileGenerator:
    """
    Builds geobuf PBF tiles from boundary files.

        boundaries_root/{level}/{ISO_A3}.json   ->   tiles_root/{level}/{z}/{x}/{y}.pbf
                                                     tiles_root/metadata.json

    Tiles of a level are cut from boundary files of the same level; when a
    level has no boundary files, the finest coarser level is used.
    """

    def __init__(
        self,
        boundaries_root: str | Path = "data/boundaries",
        tiles_root: str | Path = "data/tiles",
        zoom_levels: Optional[Dict[str, Sequence[int]]] = None,
        source_levels: Sequence[DetailLevel | str] = (DetailLevel.OVERVIEW, DetailLevel.DETAILED),
        countries: Optional[Sequence[str]] = None,
        tile_size: int = 256,
    ):
        self.boundaries_root = Path(boundaries_root)
        self.tiles_root = Path(tiles_root)
        if zoom_levels:
            self.zoom_levels = {DetailLevel.parse(k): (int(v[0]), int(v[1])) for k, v in zoom_levels.items()}
        else:
            self.zoom_levels = {lvl: lvl.zoom_range for lvl in DetailLevel}
        self.source_levels = sorted({DetailLevel.parse(l) for l in source_levels}, key=lambda l: l.rank)
        self.countries = {c.upper() for c in countries} if countries else None
        self.tile_size = tile_size

    # -------- public API --------

    def generate_all(self) -> GenerationReport:
        report = GenerationReport()
        self.tiles_root.mkdir(parents=True, exist_ok=True)

        sources = self.load_sources()
        if not sources:
            raise FileNotFoundError(f"No boundary data found under {self.boundaries_root}")

        generated = iso_now_ms()
        indexes = {
            lvl: LevelIndex.build([with_game_data(f, generated) for f in feats])
            for lvl, feats in sources.items()
        }
        report.bounds = bbox_union([ix.bounds for ix in indexes.values()])

        for lvl, (z0, z1) in sorted(self.zoom_levels.items(), key=lambda kv: kv[0].rank):
            src = self.source_for(lvl, indexes)
            if src is None:
                log.warning("No source data for %s tiles", lvl.value)
                continue
            log.info("Generating %s tiles for zoom %d-%d", lvl.value, z0, z1)
            for z in range(z0, z1 + 1):
                self.generate_zoom(lvl, z, indexes[src], report)

        self.write_metadata(report, generated)
        log.info(
            "PBF tile generation complete",
            extra={"extra": {"tiles": report.tiles, "bytes": report.bytes_written, "failed": len(report.failed)}},
        )
        return report

    def load_sources(self) -> Dict[DetailLevel, List[Dict]]:
        """Features of every readable country file, tagged with _sourceLevel/_sourceFile."""
        sources: Dict[DetailLevel, List[Dict]] = {}
        for lvl in self.source_levels:
            feats: List[Dict] = []
            for code, path in iter_country_files(self.boundaries_root, lvl):
                if self.countries is not None and code not in self.countries:
                    continue
                try:
                    fc = normalize_collection(read_json(path), origin=str(path))
                except Exception as e:
                    log.warning("Failed to load %s/%s: %s", lvl.value, path.name, e)
                    continue
                for f in fc["features"]:
                    if not f.get("geometry"):
                        continue
                    props = dict(f.get("properties") or {})
                    props["_sourceLevel"] = lvl.value
                    props["_sourceFile"] = path.name
                    feats.append({**f, "properties": props})
                log.debug("Loaded %d features from %s/%s", len(fc["features"]), lvl.value, path.name)
            if feats:
                sources[lvl] = feats
        return sources

    @staticmethod
    def source_for(level: DetailLevel, indexes: Dict[DetailLevel, LevelIndex]) -> Optional[DetailLevel]:
        if level in indexes:
            return level
        coarser = [l for l in indexes if l.rank < level.rank]
        if coarser:
            return max(coarser, key=lambda l: l.rank)
        finer = [l for l in indexes if l.rank > level.rank]
        return min(finer, key=lambda l: l.rank) if finer else None

    def generate_zoom(self, level: DetailLevel, z: int, index: LevelIndex, report: GenerationReport) -> None:
        if index.bounds is None:
            return
        written = 0
        for coord in tiles_for_bounds(index.bounds, z):
            key = coord.key(level)
            try:
                fc = self.extract_tile(index, coord)
                if not fc["features"]:
                    continue
                n = write_tile(self.tiles_root, level, coord, fc)
            except Exception as e:
                log.error("Failed to encode tile %s: %s", key, e)
                report.failed[key] = str(e)
                continue
            written += 1
            report.bytes_written += n
            log.debug("Saved tile %s (%d features, %s)", key, len(fc["features"]), format_bytes(n))
        report.tiles[level.value] = report.tiles.get(level.value, 0) + written
        log.info("Zoom %d: %d %s tiles", z, written, level.value)

    def extract_tile(self, index: LevelIndex, coord: TileCoord) -> Dict:
        hits = index.intersecting(tile_to_bbox(coord.x, coord.y, coord.z))
        return {"type": "FeatureCollection", "features": [simplify_for_zoom(f, coord.z) for f in hits]}

    def write_metadata(self, report: GenerationReport, generated: str) -> Dict:
        meta = {
            "generated": generated,
            "version": VERSION,
            "tileFormat": "pbf",
            "encoding": "geobuf",
            "zoomLevels": {lvl.value: list(rng) for lvl, rng in self.zoom_levels.items()},
            "tileSize": self.tile_size,
            "bounds": list(WORLD_BBOX),
            "dataBounds": list(report.bounds) if report.bounds else None,
            "layers": ["boundaries", "provinces", "countries"],
            "tileCounts": report.tiles,
            "description": "Balance of Powers PBF tiles for geographic data rendering",
        }
        write_json(self.tiles_root / METADATA_FILE, meta)
        return meta
