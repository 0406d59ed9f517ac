from __future__ import annotations

import json
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import requests

from common.geo import tiles_for_bounds
from common.logging_setup import get_logger
from common.types import DetailLevel, GeographicDataError, TileCoord
from common.utils import RunningStats, Stopwatch, format_bytes
from boundaries.io import empty_collection, normalize_collection
from tiles.codec import decode_tile, tile_relpath


log = get_logger(__name__)

DEFAULT_MAX_BYTES = 50 * 1024 * 1024


class NotFound(GeographicDataError):
    """The requested file does not exist at the source."""


# -------------------------
# Sources
# -------------------------
class LocalSource:
    """
    Reads data from a directory laid out like the static host:

        root/
          ├─ boundaries/{level}/{ISO_A3}.json
          ├─ regions/{region}/province-boundaries_{name}.json
          └─ tiles/{level}/{z}/{x}/{y}.pbf
    """

    def __init__(self, root: str | Path = "data"):
        self.root = Path(root)

    def fetch_bytes(self, relpath: str) -> bytes:
        p = self.root / relpath
        try:
            return p.read_bytes()
        except FileNotFoundError:
            raise NotFound(f"not found: {p}", relpath) from None
        except OSError as e:
            raise GeographicDataError(f"read failed: {p}: {e}", relpath) from e

    def describe(self, relpath: str) -> str:
        return str(self.root / relpath)


class HttpSource:
    """Fetches the same layout over HTTP (see tiles.server)."""

    def __init__(self, base_url: str, session: Optional[requests.Session] = None, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch_bytes(self, relpath: str) -> bytes:
        url = self.describe(relpath)
        try:
            r = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise GeographicDataError(f"request failed: {url}: {e}", relpath) from e
        if r.status_code == 404:
            raise NotFound(f"not found: {url}", relpath)
        if r.status_code != 200:
            raise GeographicDataError(f"Failed to fetch boundary data: {r.status_code} {r.reason}, URL: {url}", relpath)
        return r.content

    def describe(self, relpath: str) -> str:
        return f"{self.base_url}/{quote(relpath)}"


# -------------------------
# Cache
# -------------------------
@dataclass
class CacheEntry:
    data: Dict
    detail_level: DetailLevel
    size: int           # estimated bytes (UTF-8 JSON)
    last_accessed: float
    loaded_at: float


def estimate_size(data: Any) -> int:
    return len(json.dumps(data, separators=(",", ":"), ensure_ascii=False).encode("utf-8"))


class GeographicDataManager:
    """
    On-demand loader for boundary files and PBF tiles with an in-memory cache
    bounded by estimated byte size; least recently used entries are evicted
    first.

    Keys: "{region}_{level}" for boundary files, "tile:{level}/{z}/{x}/{y}"
    for tiles. Failed loads return an empty FeatureCollection and are not
    cached; a tile that does not exist is an empty tile and is cached.
    """

    def __init__(self, source: LocalSource | HttpSource, max_bytes: int = DEFAULT_MAX_BYTES):
        if max_bytes <= 0:
            raise ValueError("max_bytes must be > 0")
        self.source = source
        self.max_bytes = int(max_bytes)
        self._cache: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._size = 0
        self._lock = threading.RLock()
        self._load_ms = RunningStats()
        self._stats = {
            "total_requests": 0,
            "cache_hits": 0,
            "cache_misses": 0,
            "total_bytes_loaded": 0,
            "evicted_entries": 0,
            "errors": 0,
        }

    # -------- public API --------

    def load_nation_boundaries(self, nation_code: str, detail_level: DetailLevel | str = DetailLevel.OVERVIEW) -> Dict:
        """Country file boundaries/{level}/{code}.json as a FeatureCollection."""
        lvl = DetailLevel.parse(detail_level)
        code = nation_code.upper()
        return self._load(f"{code}_{lvl.value}", lvl, f"boundaries/{lvl.value}/{code}.json", self._parse_json, code)

    def load_region(self, region: str, detail_level: DetailLevel | str = DetailLevel.OVERVIEW) -> Dict:
        """
        Legacy region file. 'superpowers/usa' maps to
        regions/superpowers/province-boundaries_usa.json, 'europe' to
        regions/europe/province-boundaries_europe.json.
        """
        lvl = DetailLevel.parse(detail_level)
        parts = region.strip("/").split("/")
        if len(parts) == 2:
            relpath = f"regions/{parts[0]}/province-boundaries_{parts[1]}.json"
        else:
            relpath = f"regions/{region}/province-boundaries_{parts[-1]}.json"
        return self._load(f"{region}_{lvl.value}", lvl, relpath, self._parse_json, region)

    def load_tile(self, detail_level: DetailLevel | str, coord: TileCoord) -> Dict:
        lvl = DetailLevel.parse(detail_level)
        relpath = "tiles/" + tile_relpath(lvl, coord)
        return self._load(f"tile:{coord.key(lvl)}", lvl, relpath, decode_tile, coord.key(lvl), missing_ok=True)

    def load_tiles_for_bounds(self, detail_level: DetailLevel | str, bbox: Sequence[float], z: int) -> Dict:
        """Merged features of every tile covering bbox at zoom z (duplicates across tiles kept)."""
        features: List[Dict] = []
        for coord in tiles_for_bounds(bbox, z):
            features.extend(self.load_tile(detail_level, coord)["features"])
        return {"type": "FeatureCollection", "features": features}

    def upgrade_detail(self, region: str, new_level: DetailLevel | str) -> Dict:
        """Drop every cached level of a nation, then load it at new_level."""
        log.info("Upgrading %s to %s detail", region, DetailLevel.parse(new_level).value)
        self.clear(region)
        return self.load_nation_boundaries(region, new_level)

    def clear(self, region: Optional[str] = None) -> int:
        """Remove one region's entries (all levels) or everything. Returns entries removed."""
        with self._lock:
            if region is None:
                n = len(self._cache)
                self._cache.clear()
                self._size = 0
                log.info("Cleared entire cache")
                return n
            prefixes = (f"{region}_", f"{region.upper()}_")
            keys = [k for k in self._cache if k.startswith(prefixes)]
            for k in keys:
                self._remove(k)
            log.info("Cleared cache for region %s (%d entries)", region, len(keys))
            return len(keys)

    def cached_entries(self) -> List[Dict[str, Any]]:
        """Cached entries, most recently used first."""
        with self._lock:
            return [
                {
                    "key": k,
                    "region": k.rsplit("_", 1)[0] if not k.startswith("tile:") else k[5:],
                    "detail_level": e.detail_level.value,
                    "size": e.size,
                    "last_accessed": e.last_accessed,
                }
                for k, e in reversed(self._cache.items())
            ]

    def contains(self, key: str) -> bool:
        with self._lock:
            return key in self._cache

    @property
    def current_size(self) -> int:
        return self._size

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            total = self._stats["total_requests"]
            return {
                **self._stats,
                "average_load_ms": self._load_ms.mean,
                "load_ms": self._load_ms.to_dict(),
                "current_cache_size": self._size,
                "max_cache_size": self.max_bytes,
                "cache_entries": len(self._cache),
                "hit_ratio": (self._stats["cache_hits"] / total) if total else 0.0,
                "utilization": self._size / self.max_bytes,
            }

    # -------- internals --------

    @staticmethod
    def _parse_json(raw: bytes) -> Dict:
        return normalize_collection(json.loads(raw.decode("utf-8")))

    def _load(self, key: str, level: DetailLevel, relpath: str, parse, region: str, missing_ok: bool = False) -> Dict:
        with self._lock:
            self._stats["total_requests"] += 1
            entry = self._cache.get(key)
            if entry is not None:
                entry.last_accessed = time.time()
                self._cache.move_to_end(key)
                self._stats["cache_hits"] += 1
                log.debug("Cache hit for %s", key)
                return entry.data
            self._stats["cache_misses"] += 1

        try:
            with Stopwatch() as sw:
                try:
                    data = parse(self.source.fetch_bytes(relpath))
                except NotFound:
                    if not missing_ok:
                        raise
                    data = empty_collection()
        except Exception as e:
            err = e if isinstance(e, GeographicDataError) else GeographicDataError(
                f"Failed to load {self.source.describe(relpath)}: {e}", region, level)
            if err.detail_level is None:
                err.detail_level = level.value
            log.error("%s", err)
            with self._lock:
                self._stats["errors"] += 1
            return empty_collection()

        size = estimate_size(data)
        now = time.time()
        with self._lock:
            self._load_ms.add(sw.ms)
            self._stats["total_bytes_loaded"] += size
            if size > self.max_bytes:
                log.warning("%s (%s) exceeds the cache budget; not cached", key, format_bytes(size))
                return data
            if key in self._cache:
                self._remove(key)
            self._ensure_capacity(size)
            self._cache[key] = CacheEntry(data=data, detail_level=level, size=size, last_accessed=now, loaded_at=now)
            self._size += size
        log.info("Loaded and cached %s (%s)", key, format_bytes(size))
        return data

    def _remove(self, key: str) -> None:
        entry = self._cache.pop(key)
        self._size -= entry.size

    def _ensure_capacity(self, incoming: int) -> None:
        """Evict least recently used entries until `incoming` bytes fit."""
        target = self.max_bytes - incoming
        if self._size <= target:
            return
        log.info("Cache size %s exceeds limit, evicting...", format_bytes(self._size))
        freed = 0
        count = 0
        while self._cache and self._size > target:
            key, entry = self._cache.popitem(last=False)
            self._size -= entry.size
            freed += entry.size
            count += 1
            self._stats["evicted_entries"] += 1
            log.debug("Evicted %s (%s)", key, format_bytes(entry.size))
        log.info("Evicted %d entries, freed %s", count, format_bytes(freed))
