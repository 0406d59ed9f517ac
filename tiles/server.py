from __future__ import annotations

import re
import threading
from pathlib import Path
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from common.config import load_config
from common.logging_setup import get_logger, setup_logging
from common.types import DetailLevel, TileCoord
from boundaries.io import country_file, iter_country_files, read_json
from tiles.codec import MEDIA_TYPE, tile_path
from tiles.generator import METADATA_FILE


log = get_logger(__name__)

_CODE_RE = re.compile(r"^[A-Za-z0-9_-]{1,16}$")


class _Counters:
    """Per-route request counters, shared across the handler thread pool."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.served: Dict[str, int] = {}
        self.missing: Dict[str, int] = {}
        self.bytes_served = 0

    def hit(self, kind: str, n: int) -> None:
        with self._lock:
            self.served[kind] = self.served.get(kind, 0) + 1
            self.bytes_served += n

    def miss(self, kind: str) -> None:
        with self._lock:
            self.missing[kind] = self.missing.get(kind, 0) + 1

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {"served": dict(self.served), "missing": dict(self.missing), "bytes_served": self.bytes_served}


def _level_or_400(level: str) -> DetailLevel:
    try:
        return DetailLevel.parse(level)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def create_app(config: Optional[Dict[str, Any]] = None) -> FastAPI:
    """
    Static host for boundary files and PBF tiles:

      GET /boundaries/{level}/{code}        -> {boundaries_root}/{level}/{CODE}.json
      GET /tiles/metadata                   -> {tiles_root}/metadata.json
      GET /tiles/{level}/{z}/{x}/{y}.pbf    -> {tiles_root}/{level}/{z}/{x}/{y}.pbf
    """
    P = config if config is not None else load_config()
    data_cfg = P.get("data", {})
    boundaries_root = Path(data_cfg.get("boundaries_root", "data/boundaries"))
    tiles_root = Path(data_cfg.get("tiles_root", "data/tiles"))
    counters = _Counters()

    app = FastAPI(title="Balance of Powers Geodata API", version="1.0.0")

    # browser clients load tiles cross-origin during development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "boundaries_root": {"path": str(boundaries_root), "exists": boundaries_root.is_dir()},
            "tiles_root": {"path": str(tiles_root), "exists": tiles_root.is_dir()},
        }

    @app.get("/stats")
    def stats():
        files = {lvl.value: sum(1 for _ in iter_country_files(boundaries_root, lvl)) for lvl in DetailLevel}
        return {"boundary_files": files, "requests": counters.to_dict()}

    @app.get("/boundaries/{level}/{code}")
    def boundaries(level: str, code: str):
        lvl = _level_or_400(level)
        if code.endswith(".json"):
            code = code[:-5]
        if not _CODE_RE.match(code):
            raise HTTPException(status_code=400, detail=f"invalid country code: {code}")
        p = country_file(boundaries_root, lvl, code.upper())
        if not p.is_file():
            counters.miss("boundaries")
            raise HTTPException(status_code=404, detail=f"no {lvl.value} boundaries for {code.upper()}")
        body = p.read_bytes()
        counters.hit("boundaries", len(body))
        return Response(content=body, media_type="application/json", headers={"Cache-Control": "public, max-age=3600"})

    @app.get("/tiles/metadata")
    def tiles_metadata():
        p = tiles_root / METADATA_FILE
        if not p.is_file():
            raise HTTPException(status_code=404, detail="tile metadata not generated")
        return read_json(p)

    @app.get("/tiles/{level}/{z}/{x}/{y}.pbf")
    def tile(level: str, z: int, x: int, y: int):
        lvl = _level_or_400(level)
        try:
            coord = TileCoord(z, x, y)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        p = tile_path(tiles_root, lvl, coord)
        if not p.is_file():
            counters.miss("tiles")
            raise HTTPException(status_code=404, detail="tile_not_found")
        body = p.read_bytes()
        counters.hit("tiles", len(body))
        headers = {
            "Cache-Control": "public, max-age=86400",
            "X-Tile-Z": str(z),
            "X-Tile-X": str(x),
            "X-Tile-Y": str(y),
        }
        return Response(content=body, media_type=MEDIA_TYPE, headers=headers)

    log.info("Geodata server configured", extra={"extra": {"boundaries": str(boundaries_root), "tiles": str(tiles_root)}})
    return app


P = load_config()
app = create_app(P)


# -------- local dev entrypoint --------
if __name__ == "__main__":
    setup_logging(P.get("logging", {}).get("level"), P.get("logging", {}).get("file"))
    srv = P.get("server", {})
    uvicorn.run(app, host=srv.get("host", "0.0.0.0"), port=int(srv.get("port", 8000)))
