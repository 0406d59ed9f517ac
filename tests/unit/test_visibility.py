"""
Unit tests for view level-of-detail selection and tile culling
"""

import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.types import DetailLevel
from tiles.visibility import (
    detail_level_from_zoom,
    filter_tiles_for_culling,
    is_point_in_tile,
    make_tile_key,
    parse_tile_key,
    tile_key_bounds,
    visible_tile_keys,
)


class TestDetailLevelFromZoom:
    """Zoom thresholds with hysteresis"""

    def test_thresholds(self):
        assert detail_level_from_zoom(1.0) is DetailLevel.OVERVIEW
        assert detail_level_from_zoom(3.0) is DetailLevel.DETAILED
        assert detail_level_from_zoom(5.0) is DetailLevel.ULTRA

    def test_hysteresis_holds_current_level(self):
        # just past the 2.5 boundary: stays overview, stays detailed
        assert detail_level_from_zoom(2.6, DetailLevel.OVERVIEW) is DetailLevel.OVERVIEW
        assert detail_level_from_zoom(2.4, DetailLevel.DETAILED) is DetailLevel.DETAILED
        assert detail_level_from_zoom(4.1, DetailLevel.DETAILED) is DetailLevel.DETAILED
        assert detail_level_from_zoom(3.9, DetailLevel.ULTRA) is DetailLevel.ULTRA

    def test_large_moves_switch(self):
        assert detail_level_from_zoom(2.8, "overview") is DetailLevel.DETAILED
        assert detail_level_from_zoom(2.2, "detailed") is DetailLevel.OVERVIEW
        assert detail_level_from_zoom(3.7, "ultra") is DetailLevel.DETAILED


class TestVisibleTiles:
    """Grid of keys around the view center"""

    def test_five_by_five(self):
        keys = visible_tile_keys((0.0, 0.0), 1.0, level="overview")
        assert len(keys) == 25
        assert "overview_0_0" in keys
        assert "overview_-20_-20" in keys
        assert "overview_20_20" in keys

    def test_level_from_zoom(self):
        keys = visible_tile_keys((0.0, 0.0), 6.0)
        assert all(k.startswith("ultra_") for k in keys)

    def test_clamped_near_pole_has_no_duplicates(self):
        keys = visible_tile_keys((85.0, 175.0), 1.0, level="overview")
        assert len(keys) == len(set(keys))
        assert len(keys) < 25
        for k in keys:
            _, lat, lon = parse_tile_key(k)
            assert -90 <= lat <= 80
            assert -180 <= lon <= 170

    def test_cells_shrink_with_zoom(self):
        keys = visible_tile_keys((0.0, 0.0), 4.0, view_range=3, level="detailed")
        assert sorted(keys) == sorted(
            make_tile_key("detailed", lat, lon) for lat in (-5, 0, 5) for lon in (-5, 0, 5)
        )


class TestCulling:
    def test_keep_and_cull(self):
        keys = ["overview_0_0", "overview_20_20", "overview_50_0", "nonsense"]
        out = filter_tiles_for_culling(keys, (0.0, 0.0), max_distance=3)
        assert out["keep"] == ["overview_0_0", "overview_20_20"]
        assert out["cull"] == ["overview_50_0", "nonsense"]


class TestTileKeyBounds:
    def test_bounds(self):
        assert tile_key_bounds("detailed_40_-80") == {"north": 50, "south": 40, "east": -70, "west": -80}

    def test_malformed(self):
        assert tile_key_bounds("detailed_40") is None
        assert tile_key_bounds("low_0_0") is None
        assert not is_point_in_tile((0, 0), "garbage")

    def test_point_in_tile_half_open(self):
        assert is_point_in_tile((40.0, -80.0), "detailed_40_-80")
        assert is_point_in_tile((45.0, -75.0), "detailed_40_-80")
        assert not is_point_in_tile((50.0, -75.0), "detailed_40_-80")
        assert not is_point_in_tile((45.0, -70.0), "detailed_40_-80")
