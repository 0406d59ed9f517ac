"""
Unit tests for configuration loading and logging setup
"""

import json
import logging
import os
import sys

import pytest

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.config import DEFAULTS, load_config
from common.logging_setup import JsonFormatter, get_logger, setup_logging
from common.types import BoundaryMetadata, DetailLevel, GeographicDataError
from common.utils import Stopwatch, format_bytes


class TestLoadConfig:
    """YAML params merged over defaults"""

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_config(str(tmp_path / "missing.yaml")) == DEFAULTS

    def test_partial_override(self, tmp_path):
        p = tmp_path / "params.yaml"
        p.write_text("cache:\n  max_bytes: 1024\nserver:\n  port: 9000\n", encoding="utf-8")
        cfg = load_config(str(p))
        assert cfg["cache"]["max_bytes"] == 1024
        assert cfg["server"]["port"] == 9000
        assert cfg["server"]["host"] == "0.0.0.0"
        assert cfg["tiles"]["zoom_levels"]["ultra"] == [8, 10]

    def test_env_path(self, tmp_path, monkeypatch):
        p = tmp_path / "env.yaml"
        p.write_text("logging:\n  level: DEBUG\n", encoding="utf-8")
        monkeypatch.setenv("BOP_CONFIG", str(p))
        assert load_config()["logging"]["level"] == "DEBUG"

    def test_non_mapping_rejected(self, tmp_path):
        p = tmp_path / "bad.yaml"
        p.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(str(p))


class TestJsonFormatter:
    def test_extra_payload(self):
        rec = logging.LogRecord("bop", logging.INFO, __file__, 1, "loaded %s", ("USA",), None)
        rec.extra = {"bytes": 10}
        out = json.loads(JsonFormatter().format(rec))
        assert out["lvl"] == "INFO"
        assert out["msg"] == "loaded USA"
        assert out["extra"] == {"bytes": 10}

    def test_log_file_handler(self, tmp_path):
        """A configured log file receives JSON lines"""
        path = tmp_path / "logs" / "run.jsonl"
        setup_logging(log_file=str(path))
        setup_logging(log_file=str(path))
        root = logging.getLogger()
        handlers = [h for h in root.handlers
                    if isinstance(h, logging.FileHandler) and h.baseFilename == str(path.resolve())]
        try:
            assert len(handlers) == 1
            get_logger("bop.test").warning("tile written", extra={"extra": {"z": 3}})
            handlers[0].flush()
            line = json.loads(path.read_text(encoding="utf-8").strip().splitlines()[-1])
            assert line["msg"] == "tile written"
            assert line["extra"] == {"z": 3}
        finally:
            for h in handlers:
                root.removeHandler(h)
                h.close()


class TestTypesAndUtils:
    def test_detail_level_parse(self):
        assert DetailLevel.parse(" Ultra ") is DetailLevel.ULTRA
        assert DetailLevel.DETAILED.zoom_range == (4, 7)
        with pytest.raises(ValueError, match="Must be one of"):
            DetailLevel.parse("low")

    def test_metadata_round_trip_keeps_extra(self):
        meta = BoundaryMetadata.from_dict({"source": "x", "level": "detailed", "country": "FRA", "featureCount": 3})
        d = meta.to_dict()
        assert d["level"] == "detailed"
        assert d["featureCount"] == 3

    def test_geographic_data_error_str(self):
        err = GeographicDataError("boom", "USA", DetailLevel.ULTRA)
        assert str(err) == "boom (USA/ultra)"

    def test_format_bytes(self):
        assert format_bytes(0) == "0 Bytes"
        assert format_bytes(512) == "512 Bytes"
        assert format_bytes(1536) == "1.5 KB"
        assert format_bytes(50 * 1024 * 1024) == "50 MB"

    def test_stopwatch(self):
        with Stopwatch() as sw:
            sum(range(1000))
        assert sw.ms >= 0.0
