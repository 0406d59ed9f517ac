from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence

from common.logging_setup import get_logger
from common.types import LEVELS, DetailLevel
from common.utils import iso_now_ms
from boundaries.game_data import EXPECTED_COUNTRIES
from boundaries.io import iter_country_files, level_dir, read_json, validation_errors, write_json


log = get_logger(__name__)

REPORT_FILE = "validation-report.json"


@dataclass
class LevelStatus:
    level: DetailLevel
    exists: bool = True
    files: List[str] = field(default_factory=list)
    valid: int = 0
    invalid: int = 0
    missing: List[str] = field(default_factory=list)
    errors: Dict[str, List[str]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exists": self.exists,
            "files": len(self.files),
            "valid": self.valid,
            "invalid": self.invalid,
            "missing": self.missing,
            "errors": self.errors,
        }


def validate_level(root: str | Path, level: DetailLevel | str,
                   expected: Sequence[str] = EXPECTED_COUNTRIES) -> LevelStatus:
    """Parse and check every country file of one level; note expected countries without a file."""
    lvl = DetailLevel.parse(level)
    status = LevelStatus(level=lvl, exists=level_dir(Path(root), lvl).is_dir())
    if not status.exists:
        status.missing = list(expected)
        return status

    for code, path in iter_country_files(Path(root), lvl):
        status.files.append(code)
        try:
            errs = validation_errors(read_json(path))
        except ValueError as e:
            errs = [f"parse error: {e}"]
        if errs:
            status.invalid += 1
            status.errors[code] = errs
            log.warning("Invalid boundary file %s/%s: %s", lvl.value, code, "; ".join(errs[:3]))
        else:
            status.valid += 1

    present = set(status.files)
    status.missing = [c for c in expected if c not in present]
    return status


def validate_boundaries(root: str | Path, levels: Sequence[DetailLevel | str] = LEVELS,
                        expected: Sequence[str] = EXPECTED_COUNTRIES,
                        write_report: bool = True) -> Dict[str, Any]:
    """
    Status report across levels. `report["ok"]` is False when any file is invalid;
    missing expected countries are reported but do not fail validation.
    """
    statuses = [validate_level(root, l, expected) for l in levels]
    report = {
        "generated": iso_now_ms(),
        "levels": {s.level.value: s.to_dict() for s in statuses},
        "totals": {
            "valid": sum(s.valid for s in statuses),
            "invalid": sum(s.invalid for s in statuses),
        },
        "ok": all(s.invalid == 0 for s in statuses),
    }
    if write_report and Path(root).is_dir():
        write_json(Path(root) / REPORT_FILE, report)
    return report
