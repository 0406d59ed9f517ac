"""
Unit tests for boundary enhancement and placeholder creation
"""

import json
import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from boundaries.enhance import SUMMARY_FILE, BoundaryEnhancer, enhance_collection, placeholder_collection


def _collection(props=None, metadata=None):
    fc = {
        "type": "FeatureCollection",
        "features": [{"type": "Feature", "properties": props if props is not None else {},
                      "geometry": {"type": "Point", "coordinates": [0, 0]}}],
    }
    if metadata is not None:
        fc["metadata"] = metadata
    return fc


class TestEnhanceCollection:
    """In-place enrichment of one country file"""

    def test_metadata_defaults(self):
        out = enhance_collection(_collection(), "USA", "overview")
        meta = out["metadata"]
        assert meta["source"] == "Natural Earth"
        assert meta["level"] == "overview"
        assert meta["country"] == "USA"
        assert meta["version"] == "1.0.0"
        assert "enhanced" in meta and "generated" in meta

    def test_existing_metadata_kept(self):
        data = _collection(metadata={"source": "world.json", "generated": "2020-01-01T00:00:00.000Z", "featureCount": 1})
        meta = enhance_collection(data, "FRA", "detailed")["metadata"]
        assert meta["source"] == "world.json"
        assert meta["generated"] == "2020-01-01T00:00:00.000Z"
        assert meta["featureCount"] == 1

    def test_game_metadata_known_and_default(self):
        usa = enhance_collection(_collection(), "USA", "overview")["gameMetadata"]
        assert usa["displayName"] == "United States"
        assert usa["capital"] == "Washington D.C."
        nor = enhance_collection(_collection(), "NOR", "overview")["gameMetadata"]
        assert nor["displayName"] == "Norway"
        assert nor["startingYear"] == 1990

    def test_feature_ids_filled_not_overwritten(self):
        out = enhance_collection(_collection({"id": "usa_1"}), "USA", "overview")
        props = out["features"][0]["properties"]
        assert props["id"] == "usa_1"
        assert props["ISO_A3"] == "USA"


class TestPlaceholder:
    def test_placeholder_rectangle(self):
        fc = placeholder_collection("FRA", "overview")
        assert fc["metadata"]["source"] == "Generated"
        ring = fc["features"][0]["geometry"]["coordinates"][0]
        assert len(ring) == 5 and ring[0] == ring[-1]
        # center (2, 46), half extent (8, 8), scale 0.8
        assert ring[0] == [2 - 6.4, 46 - 6.4]

    def test_placeholder_shrinks_with_level(self):
        def width(level):
            ring = placeholder_collection("USA", level)["features"][0]["geometry"]["coordinates"][0]
            return ring[1][0] - ring[0][0]
        assert width("overview") > width("detailed") > width("ultra")


class TestBoundaryEnhancer:
    """Whole-tree enhancement run"""

    def test_run_enhances_and_creates(self, tmp_path):
        (tmp_path / "overview").mkdir()
        (tmp_path / "overview" / "USA.json").write_text(json.dumps(_collection()), encoding="utf-8")

        report = BoundaryEnhancer(tmp_path, required=["USA", "CAN"], levels=["overview", "detailed"]).run()

        assert report.ok
        assert report.enhanced == {"overview": ["USA"]}
        assert report.created["overview"] == ["CAN"]
        assert report.created["detailed"] == ["USA", "CAN"]
        usa = json.loads((tmp_path / "overview" / "USA.json").read_text(encoding="utf-8"))
        assert usa["gameMetadata"]["displayName"] == "United States"
        summary = json.loads((tmp_path / SUMMARY_FILE).read_text(encoding="utf-8"))
        assert summary["totals"]["files"] == 4
        assert summary["totals"]["unique_countries"] == 2

    def test_broken_file_is_reported_not_replaced(self, tmp_path):
        (tmp_path / "overview").mkdir()
        broken = tmp_path / "overview" / "USA.json"
        broken.write_text("{not json", encoding="utf-8")

        report = BoundaryEnhancer(tmp_path, required=["USA"], levels=["overview"]).run()

        assert not report.ok
        assert "overview:USA" in report.failed
        assert report.created["overview"] == []
        assert broken.read_text(encoding="utf-8") == "{not json"

    def test_no_create(self, tmp_path):
        report = BoundaryEnhancer(tmp_path, required=["USA"], levels=["overview"]).run(create_missing=False)
        assert report.created == {}
        assert not (tmp_path / "overview" / "USA.json").exists()
