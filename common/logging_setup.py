from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from common.utils import iso_now_ms


_CONFIGURED_FLAG = "_bop_configured"


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line:
      {"t": "2024-01-01T00:00:00.000Z", "lvl": "INFO", "name": "tiles.cache", "msg": "...", "extra": {...}}

    Structured fields go through `extra={"extra": {...}}`; values that are not
    JSON types (Paths, enums) are stringified.
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "t": iso_now_ms(),
            "lvl": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload["extra"] = extra
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _resolve_level(name: Optional[str]) -> int:
    lvl = getattr(logging, (name or "INFO").upper(), None)
    return lvl if isinstance(lvl, int) else logging.INFO


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Configure the root logger with JSON lines on stdout.

    Level: `level` arg, else env LOG_LEVEL, else INFO. `log_file` adds a
    second JSON-lines handler (parent dirs created). Calling again on a
    configured root only applies an explicit level and a new log file.
    """
    root = logging.getLogger()
    lvl = _resolve_level(level or os.environ.get("LOG_LEVEL"))

    if not getattr(root, _CONFIGURED_FLAG, False):
        stream = logging.StreamHandler(sys.stdout)
        stream.setFormatter(JsonFormatter())
        root.handlers.clear()
        root.addHandler(stream)
        root.setLevel(lvl)
        setattr(root, _CONFIGURED_FLAG, True)
    elif level:
        root.setLevel(lvl)

    if log_file:
        path = Path(log_file).resolve()
        for h in root.handlers:
            if isinstance(h, logging.FileHandler) and Path(h.baseFilename) == path:
                return
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(path, encoding="utf-8")
        fh.setFormatter(JsonFormatter())
        root.addHandler(fh)


def get_logger(name: str) -> logging.Logger:
    """Module logger; configures the root on first use."""
    setup_logging()
    return logging.getLogger(name)
