"""
Unit tests for the command line scripts' exit codes and output
"""

import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from scripts import generate_pbf_tiles, split_geojson_by_country


class TestScriptErrors:
    """Failures print an Error: line and exit 1"""

    def test_pbf_tiles_without_boundaries(self, tmp_path, capsys):
        rc = generate_pbf_tiles.main(["--boundaries", str(tmp_path / "none"), "--out", str(tmp_path / "tiles")])
        out = capsys.readouterr().out
        assert rc == 1
        assert any(line.startswith("Error: No boundary data found") for line in out.splitlines())

    def test_split_missing_input(self, tmp_path, capsys):
        rc = split_geojson_by_country.main(["--input", str(tmp_path / "missing.geojson"), "--level", "overview",
                                            "--out", str(tmp_path / "out")])
        out = capsys.readouterr().out
        assert rc == 1
        assert any(line.startswith("Error: ") for line in out.splitlines())
