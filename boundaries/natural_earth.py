"""
Natural Earth import: download admin-0/admin-1 shapefiles per detail level,
convert them to GeoJSON with ogr2ogr and split them into country files.

Usage:
    pipe = NaturalEarthPipeline("data/boundaries", "temp/natural-earth")
    report = pipe.run()

Requires GDAL's `ogr2ogr` on PATH.
"""
from __future__ import annotations

import shutil
import subprocess
import uuid
import zipfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set

import requests

from common.logging_setup import get_logger
from common.types import LEVELS, BoundaryMetadata, DetailLevel
from common.utils import iso_now_ms
from boundaries.io import country_file, iter_country_files, read_json, write_json


log = get_logger(__name__)

_BASE = "https://naturalearth.s3.amazonaws.com"

NATURAL_EARTH_URLS: Dict[DetailLevel, Dict[str, str]] = {
    DetailLevel.OVERVIEW: {
        "countries": f"{_BASE}/110m_cultural/ne_110m_admin_0_countries.zip",
        "provinces": f"{_BASE}/110m_cultural/ne_110m_admin_1_states_provinces.zip",
    },
    DetailLevel.DETAILED: {
        "countries": f"{_BASE}/50m_cultural/ne_50m_admin_0_countries.zip",
        "provinces": f"{_BASE}/50m_cultural/ne_50m_admin_1_states_provinces.zip",
    },
    DetailLevel.ULTRA: {
        "countries": f"{_BASE}/10m_cultural/ne_10m_admin_0_countries.zip",
        "provinces": f"{_BASE}/10m_cultural/ne_10m_admin_1_states_provinces.zip",
    },
}

SUMMARY_FILE = "natural-earth-summary.json"
_NO_CODE = {"", "-99", "undefined", "None"}


class DependencyError(RuntimeError):
    """A required external tool (ogr2ogr) is not installed."""


@dataclass
class PipelineReport:
    countries: Set[str] = field(default_factory=set)
    provinces: Dict[str, int] = field(default_factory=dict)
    failed: Dict[str, str] = field(default_factory=dict)   # dataset key -> error
    summary: Dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


def country_code_of(props: Dict) -> Optional[str]:
    for key in ("ISO_A3", "ADM0_A3"):
        v = str(props.get(key) or "").strip()
        if v not in _NO_CODE:
            return v
    return None


def province_country_code(props: Dict) -> Optional[str]:
    # adm0_a3 is alpha-3 in admin-1 files; iso_3166_1 kept as fallback
    for key in ("adm0_a3", "iso_3166_1"):
        v = str(props.get(key) or "").strip()
        if v not in _NO_CODE:
            return v
    return None


def province_id(props: Dict) -> str:
    for key in ("id", "gns_id", "name"):
        v = props.get(key)
        if v not in (None, "", 0):
            return str(v)
    return f"province_{uuid.uuid4().hex[:9]}"


def split_countries(data: Dict, level: DetailLevel, out_root: Path) -> List[str]:
    """One file per admin-0 feature; features without an ISO code are skipped."""
    written = []
    for feature in data.get("features", []):
        props = feature.setdefault("properties", {})
        code = country_code_of(props)
        if not code:
            log.warning("Skipping feature with no valid ISO_A3: %s", props.get("NAME"))
            continue
        props["id"] = props.get("id") or code
        meta = BoundaryMetadata(source="Natural Earth", level=level.value, country=code)
        write_json(country_file(out_root, level, code), {
            "type": "FeatureCollection",
            "metadata": meta.to_dict(),
            "features": [feature],
        })
        written.append(code)
    return written


def merge_provinces(data: Dict, level: DetailLevel, out_root: Path) -> Dict[str, int]:
    """
    Group admin-1 features by country and merge them into the country file,
    creating the file when the country had no admin-0 row. Existing
    features with a matching id are replaced.
    """
    groups: Dict[str, List[Dict]] = {}
    for feature in data.get("features", []):
        props = feature.setdefault("properties", {})
        code = province_country_code(props)
        if not code:
            continue
        props["id"] = province_id(props)
        groups.setdefault(code, []).append(feature)

    for code, provinces in groups.items():
        path = country_file(out_root, level, code)
        if path.exists():
            existing = read_json(path)
            # re-runs replace provinces already merged under the same id
            ids = {p["properties"]["id"] for p in provinces}
            kept = [f for f in existing.get("features", [])
                    if (f.get("properties") or {}).get("id") not in ids]
            existing["features"] = kept + provinces
            meta = existing.setdefault("metadata", {})
            meta["provinces"] = len(provinces)
            meta["updated"] = iso_now_ms()
            write_json(path, existing)
        else:
            meta = BoundaryMetadata(source="Natural Earth", level=level.value, country=code,
                                    extra={"provinces": len(provinces)})
            write_json(path, {"type": "FeatureCollection", "metadata": meta.to_dict(), "features": provinces})
    return {code: len(p) for code, p in groups.items()}


class NaturalEarthPipeline:
    def __init__(
        self,
        out_root: str | Path = "data/boundaries",
        temp_dir: str | Path = "temp/natural-earth",
        levels: Sequence[DetailLevel | str] = LEVELS,
        session: Optional[requests.Session] = None,
        keep_temp: bool = False,
        max_workers: int = 4,
        timeout: float = 120.0,
    ):
        self.out_root = Path(out_root)
        self.temp_dir = Path(temp_dir)
        self.levels = [DetailLevel.parse(l) for l in levels]
        self.session = session or requests.Session()
        self.keep_temp = keep_temp
        self.max_workers = max_workers
        self.timeout = timeout

    # ----------------------------
    # Public API
    # ----------------------------
    def run(self) -> PipelineReport:
        self.check_dependencies()
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        for lvl in self.levels:
            (self.out_root / lvl.value).mkdir(parents=True, exist_ok=True)

        report = PipelineReport()
        zips = self.download_all(report)

        for lvl in self.levels:
            # countries first: provinces are appended to the country files
            for kind in ("countries", "provinces"):
                key = f"{lvl.value}-{kind}"
                if key not in zips:
                    continue
                try:
                    geojson = self.convert_to_geojson(self.extract(zips[key], key))
                    data = read_json(geojson)
                    if kind == "countries":
                        report.countries.update(split_countries(data, lvl, self.out_root))
                    else:
                        for code, n in merge_provinces(data, lvl, self.out_root).items():
                            report.provinces[f"{lvl.value}:{code}"] = n
                    log.info("Processed %s", key)
                except Exception as e:
                    log.exception("Failed to process %s", key)
                    report.failed[key] = str(e)

        report.summary = self.write_summary(report)
        if not self.keep_temp:
            self.cleanup()
        return report

    def check_dependencies(self) -> None:
        if shutil.which("ogr2ogr") is None:
            raise DependencyError("Missing dependency: ogr2ogr. Please install GDAL tools.")

    def download_all(self, report: PipelineReport) -> Dict[str, Path]:
        """Download every dataset concurrently; failures are recorded, the rest continue."""
        jobs = {
            f"{lvl.value}-{kind}": url
            for lvl in self.levels
            for kind, url in NATURAL_EARTH_URLS[lvl].items()
        }
        done: Dict[str, Path] = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = {key: pool.submit(self.download, url, self.temp_dir / f"{key}.zip") for key, url in jobs.items()}
            for key, fut in futures.items():
                try:
                    done[key] = fut.result()
                except Exception as e:
                    log.error("Download failed for %s: %s", key, e)
                    report.failed[key] = str(e)
        return done

    def download(self, url: str, dest: Path) -> Path:
        if dest.exists() and dest.stat().st_size > 0:
            log.info("Using cached download %s", dest.name)
            return dest
        log.info("Downloading %s", url)
        tmp = dest.with_suffix(dest.suffix + ".part")
        with self.session.get(url, stream=True, timeout=self.timeout) as r:
            r.raise_for_status()
            with tmp.open("wb") as f:
                for chunk in r.iter_content(chunk_size=1 << 16):
                    if chunk:
                        f.write(chunk)
        tmp.replace(dest)
        return dest

    def extract(self, zip_path: Path, name: str) -> Path:
        """Unzip (once) and return the contained .shp path."""
        target = self.temp_dir / name
        if not target.exists():
            target.mkdir(parents=True)
            with zipfile.ZipFile(zip_path) as zf:
                zf.extractall(target)
        shp = sorted(target.rglob("*.shp"))
        if not shp:
            raise FileNotFoundError(f"No shapefile found in {target}")
        return shp[0]

    def convert_to_geojson(self, shp_path: Path) -> Path:
        out = shp_path.with_suffix(".geojson")
        if out.exists():
            log.info("Using existing GeoJSON %s", out.name)
            return out
        subprocess.run(["ogr2ogr", "-f", "GeoJSON", str(out), str(shp_path)], check=True, capture_output=True)
        return out

    def write_summary(self, report: PipelineReport) -> Dict:
        levels = {}
        total = 0
        for lvl in self.levels:
            codes = [code for code, _ in iter_country_files(self.out_root, lvl)]
            levels[lvl.value] = {"files": len(codes), "countries": codes}
            total += len(codes)
        summary = {
            "generated": iso_now_ms(),
            "pipeline_version": "1.0.0",
            "source": "Natural Earth",
            "countries": sorted(report.countries),
            "levels": levels,
            "total_files": total,
            "failed": report.failed,
        }
        write_json(self.out_root / SUMMARY_FILE, summary)
        return summary

    def cleanup(self) -> None:
        try:
            shutil.rmtree(self.temp_dir)
        except OSError as e:
            log.warning("Cleanup failed: %s", e)
