"""
Unit tests for the on-demand boundary/tile loader and its LRU cache
"""

import json
import os
import sys
from unittest.mock import MagicMock

import pytest
import requests

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.types import GeographicDataError, TileCoord
from tiles.cache import GeographicDataManager, HttpSource, LocalSource, NotFound, estimate_size
from tiles.codec import write_tile


def _fc(code, n=1):
    return {
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "properties": {"id": f"{code}_{i}"},
             "geometry": {"type": "Point", "coordinates": [float(i), 0.0]}}
            for i in range(n)
        ],
    }


@pytest.fixture
def data_root(tmp_path):
    for level, code in (("overview", "USA"), ("detailed", "USA"), ("overview", "CAN"), ("overview", "MEX")):
        p = tmp_path / "boundaries" / level / f"{code}.json"
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(_fc(code)), encoding="utf-8")
    region = tmp_path / "regions" / "superpowers" / "province-boundaries_usa.json"
    region.parent.mkdir(parents=True)
    region.write_text(json.dumps({"tx": {"type": "Feature", "properties": {}, "geometry": None}}), encoding="utf-8")
    write_tile(tmp_path / "tiles", "overview", TileCoord(0, 0, 0), _fc("T", 2))
    return tmp_path


class TestLoading:
    """Loading through a local source"""

    def test_load_and_hit(self, data_root):
        mgr = GeographicDataManager(LocalSource(data_root))
        first = mgr.load_nation_boundaries("usa", "overview")
        second = mgr.load_nation_boundaries("USA", "overview")
        assert first is second
        s = mgr.stats()
        assert s["total_requests"] == 2
        assert s["cache_hits"] == 1
        assert s["cache_misses"] == 1
        assert s["hit_ratio"] == 0.5
        assert mgr.contains("USA_overview")
        assert s["load_ms"]["count"] == 1

    def test_missing_file_returns_empty_and_is_not_cached(self, data_root):
        mgr = GeographicDataManager(LocalSource(data_root))
        out = mgr.load_nation_boundaries("FRA", "overview")
        assert out == {"type": "FeatureCollection", "features": []}
        assert not mgr.contains("FRA_overview")
        assert mgr.stats()["errors"] == 1

    def test_invalid_level_raises(self, data_root):
        mgr = GeographicDataManager(LocalSource(data_root))
        with pytest.raises(ValueError):
            mgr.load_nation_boundaries("USA", "low")

    def test_legacy_region(self, data_root):
        mgr = GeographicDataManager(LocalSource(data_root))
        fc = mgr.load_region("superpowers/usa")
        assert fc["features"][0]["properties"]["id"] == "tx"

    def test_tiles(self, data_root):
        mgr = GeographicDataManager(LocalSource(data_root))
        tile = mgr.load_tile("overview", TileCoord(0, 0, 0))
        assert len(tile["features"]) == 2
        missing = mgr.load_tile("overview", TileCoord(1, 0, 0))
        assert missing["features"] == []
        # an absent tile is a valid empty tile
        assert mgr.contains("tile:overview/1/0/0")
        assert mgr.stats()["errors"] == 0

    def test_tiles_for_bounds(self, data_root):
        mgr = GeographicDataManager(LocalSource(data_root))
        fc = mgr.load_tiles_for_bounds("overview", (-10, -10, 10, 10), 0)
        assert len(fc["features"]) == 2


class TestEviction:
    """Byte-size budget and LRU order"""

    def test_lru_eviction(self, data_root):
        one = estimate_size(_fc("USA"))
        mgr = GeographicDataManager(LocalSource(data_root), max_bytes=one * 2 + 1)
        mgr.load_nation_boundaries("USA")
        mgr.load_nation_boundaries("CAN")
        mgr.load_nation_boundaries("USA")      # USA becomes most recent
        mgr.load_nation_boundaries("MEX")      # evicts CAN

        assert mgr.contains("USA_overview")
        assert mgr.contains("MEX_overview")
        assert not mgr.contains("CAN_overview")
        assert mgr.stats()["evicted_entries"] == 1
        assert mgr.current_size <= mgr.max_bytes
        assert [e["key"] for e in mgr.cached_entries()] == ["MEX_overview", "USA_overview"]

    def test_oversize_entry_not_cached(self, data_root):
        mgr = GeographicDataManager(LocalSource(data_root), max_bytes=10)
        fc = mgr.load_nation_boundaries("USA")
        assert len(fc["features"]) == 1
        assert mgr.stats()["cache_entries"] == 0

    def test_invalid_budget(self, data_root):
        with pytest.raises(ValueError):
            GeographicDataManager(LocalSource(data_root), max_bytes=0)


class TestManagement:
    def test_clear_region(self, data_root):
        mgr = GeographicDataManager(LocalSource(data_root))
        mgr.load_nation_boundaries("USA", "overview")
        mgr.load_nation_boundaries("USA", "detailed")
        mgr.load_nation_boundaries("CAN", "overview")
        assert mgr.clear("usa") == 2
        assert mgr.stats()["cache_entries"] == 1
        assert mgr.clear() == 1
        assert mgr.current_size == 0

    def test_upgrade_detail(self, data_root):
        mgr = GeographicDataManager(LocalSource(data_root))
        mgr.load_nation_boundaries("USA", "overview")
        mgr.upgrade_detail("USA", "detailed")
        assert not mgr.contains("USA_overview")
        assert mgr.contains("USA_detailed")


class TestHttpSource:
    """HTTP fetches with a mocked session"""

    def _session(self, status, content=b""):
        resp = MagicMock()
        resp.status_code = status
        resp.reason = "Server Error" if status >= 500 else "OK"
        resp.content = content
        session = MagicMock()
        session.get.return_value = resp
        return session

    def test_fetch(self):
        session = self._session(200, json.dumps(_fc("USA")).encode("utf-8"))
        mgr = GeographicDataManager(HttpSource("http://host/data/", session=session))
        fc = mgr.load_nation_boundaries("USA")
        assert len(fc["features"]) == 1
        url = session.get.call_args[0][0]
        assert url == "http://host/data/boundaries/overview/USA.json"

    def test_404(self):
        src = HttpSource("http://host", session=self._session(404))
        with pytest.raises(NotFound):
            src.fetch_bytes("boundaries/overview/XXX.json")

    def test_server_error_counted(self):
        mgr = GeographicDataManager(HttpSource("http://host", session=self._session(500)))
        assert mgr.load_nation_boundaries("USA")["features"] == []
        assert mgr.stats()["errors"] == 1

    def test_connection_error(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("refused")
        src = HttpSource("http://host", session=session)
        with pytest.raises(GeographicDataError):
            src.fetch_bytes("tiles/overview/0/0/0.pbf")
