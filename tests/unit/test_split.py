"""
Unit tests for splitting a world FeatureCollection by country
"""

import json
import os
import sys

import pytest

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from boundaries.split import SUMMARY_FILE, split_by_country
from common.types import BoundaryFormatError


def _square(x, y, size=1.0):
    return {"type": "Polygon", "coordinates": [[[x, y], [x + size, y], [x + size, y + size], [x, y + size], [x, y]]]}


def _world():
    return {
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "properties": {"ISO_A3": "FRA", "NAME": "France"}, "geometry": _square(2, 46)},
            {"type": "Feature", "properties": {"ISO_A3": "-99", "NAME": "France"}, "geometry": _square(3, 47)},
            {"type": "Feature", "properties": {"NAME": "Germany"}, "geometry": _square(10, 51)},
            {"type": "Feature", "properties": {"NAME": "Qqqqq"}, "geometry": _square(0, 0)},
        ],
    }


@pytest.fixture
def world_file(tmp_path):
    p = tmp_path / "world.json"
    p.write_text(json.dumps(_world()), encoding="utf-8")
    return p


class TestSplitByCountry:
    """split_by_country output files and summary"""

    def test_writes_country_files(self, world_file, tmp_path):
        out = tmp_path / "boundaries"
        summary = split_by_country(world_file, "overview", out)

        assert summary.counts == {"FRA": 2, "DEU": 1}
        assert summary.unknown_features == 1
        assert summary.largest == ("FRA", 2)

        fra = json.loads((out / "overview" / "FRA.json").read_text(encoding="utf-8"))
        assert fra["type"] == "FeatureCollection"
        assert len(fra["features"]) == 2
        assert fra["metadata"]["country"] == "FRA"
        assert fra["metadata"]["level"] == "overview"
        assert fra["metadata"]["source"] == "world.json"
        assert fra["metadata"]["featureCount"] == 2

    def test_unknown_and_summary_files(self, world_file, tmp_path):
        out = tmp_path / "boundaries"
        split_by_country(world_file, "detailed", out)

        unknown = json.loads((out / "detailed" / "UNKNOWN.json").read_text(encoding="utf-8"))
        assert len(unknown["features"]) == 1
        assert "note" in unknown["metadata"]

        summary = json.loads((out / "detailed" / SUMMARY_FILE).read_text(encoding="utf-8"))
        assert summary["detailLevel"] == "detailed"
        assert summary["statistics"]["totalCountries"] == 2
        assert summary["statistics"]["totalFeatures"] == 3
        assert summary["statistics"]["unknownFeatures"] == 1
        assert summary["countries"] == ["DEU", "FRA"]

    def test_invalid_level(self, world_file, tmp_path):
        with pytest.raises(ValueError, match="Invalid detail level"):
            split_by_country(world_file, "low", tmp_path)

    def test_missing_input(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            split_by_country(tmp_path / "nope.json", "overview", tmp_path)

    def test_not_a_feature_collection(self, tmp_path):
        p = tmp_path / "bad.json"
        p.write_text(json.dumps({"type": "Feature"}), encoding="utf-8")
        with pytest.raises(BoundaryFormatError):
            split_by_country(p, "overview", tmp_path / "out")
