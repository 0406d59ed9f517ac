"""
Unit tests for geobuf tile encoding and tile paths
"""

import os
import sys

import pytest

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.types import TileCoord
from tiles.codec import decode_tile, encode_tile, read_tile, tile_path, tile_relpath, write_tile


FC = {
    "type": "FeatureCollection",
    "features": [{
        "type": "Feature",
        "properties": {"id": "FRA", "NAME": "France"},
        "geometry": {"type": "Polygon", "coordinates": [[[2.1234567, 46.0], [3.0, 46.0], [3.0, 47.0], [2.1234567, 46.0]]]},
    }],
}


class TestCodec:
    """geobuf encode/decode"""

    def test_encode_decode(self):
        data = encode_tile(FC)
        assert isinstance(data, bytes) and data
        out = decode_tile(data)
        assert out["type"] == "FeatureCollection"
        assert out["features"][0]["properties"]["NAME"] == "France"
        first = out["features"][0]["geometry"]["coordinates"][0][0]
        assert first[0] == pytest.approx(2.123457, abs=1e-6)
        assert first[1] == pytest.approx(46.0)

    def test_null_properties_kept(self):
        fc = {"type": "FeatureCollection", "features": [{
            "type": "Feature",
            "properties": {"a": None, "b": True, "c": 1},
            "geometry": {"type": "Point", "coordinates": [1.0, 2.0]},
        }]}
        props = decode_tile(encode_tile(fc))["features"][0]["properties"]
        assert props == {"a": None, "b": True, "c": 1}
        # caller's collection is not modified
        assert fc["features"][0]["properties"] == {"a": None, "b": True, "c": 1}

    def test_empty_payload(self):
        assert decode_tile(b"") == {"type": "FeatureCollection", "features": []}

    def test_rejects_non_collection(self):
        with pytest.raises(ValueError):
            encode_tile(FC["features"][0])


class TestTileFiles:
    """On-disk tile layout"""

    def test_relpath(self):
        assert tile_relpath("detailed", TileCoord(5, 16, 11)) == "detailed/5/16/11.pbf"

    def test_write_and_read(self, tmp_path):
        coord = TileCoord(2, 2, 1)
        n = write_tile(tmp_path, "overview", coord, FC)
        p = tile_path(tmp_path, "overview", coord)
        assert p.is_file()
        assert p.stat().st_size == n
        assert read_tile(tmp_path, "overview", coord)["features"][0]["properties"]["id"] == "FRA"

    def test_read_missing(self, tmp_path):
        assert read_tile(tmp_path, "overview", TileCoord(0, 0, 0)) is None
