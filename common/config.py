from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


DEFAULT_CONFIG_PATH = "config/params.yaml"

DEFAULTS: Dict[str, Any] = {
    "data": {
        "boundaries_root": "data/boundaries",
        "tiles_root": "data/tiles",
        "temp_root": "temp/natural-earth",
    },
    "cache": {"max_bytes": 50 * 1024 * 1024},
    "tiles": {
        "tile_size": 256,
        "zoom_levels": {"overview": [0, 3], "detailed": [4, 7], "ultra": [8, 10]},
        "source_levels": ["overview", "detailed"],
    },
    "server": {"host": "0.0.0.0", "port": 8000},
    "natural_earth": {"keep_temp": False},
    "logging": {"level": "INFO", "file": None},
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load YAML params merged over DEFAULTS.

    Path precedence: explicit arg, env BOP_CONFIG, config/params.yaml.
    A missing file yields the defaults.
    """
    p = Path(path or os.environ.get("BOP_CONFIG") or DEFAULT_CONFIG_PATH)
    if not p.exists():
        return copy.deepcopy(DEFAULTS)
    with p.open("r", encoding="utf-8") as f:
        loaded = yaml.safe_load(f) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"{p}: expected a mapping at top level")
    return _merge(DEFAULTS, loaded)
