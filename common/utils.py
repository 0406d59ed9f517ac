from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict
import time


def iso_now_ms() -> str:
    """UTC ISO-8601 timestamp with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(slots=True)
class RunningStats:
    """Streaming summary of a timing series (Welford update)."""
    n: int = 0
    mean: float = 0.0
    m2: float = 0.0
    peak: float = 0.0

    def add(self, value: float) -> None:
        self.n += 1
        delta = value - self.mean
        self.mean += delta / self.n
        self.m2 += delta * (value - self.mean)
        self.peak = max(self.peak, value)

    @property
    def std(self) -> float:
        if self.n < 2:
            return 0.0
        return (self.m2 / (self.n - 1)) ** 0.5

    def to_dict(self) -> Dict[str, float]:
        return {"count": self.n, "mean": self.mean, "std": self.std, "max": self.peak}


def clamp(v: float, lo: float, hi: float) -> float:
    return float(min(hi, max(lo, v)))


def format_bytes(n: int) -> str:
    """Human readable byte count: 0 Bytes, 512 Bytes, 1.5 KB, 50 MB."""
    if n <= 0:
        return "0 Bytes"
    units = ("Bytes", "KB", "MB", "GB")
    i = 0
    while n >= 1024 ** (i + 1) and i < len(units) - 1:
        i += 1
    value = round(n / (1024 ** i), 2)
    if value == int(value):
        value = int(value)
    return f"{value} {units[i]}"


class Stopwatch:
    """
    Elapsed wall time in milliseconds.

    Usage:
        with Stopwatch() as sw:
            ...
        sw.ms
    """

    def __init__(self) -> None:
        self._t0 = 0.0
        self.ms = 0.0

    def __enter__(self) -> "Stopwatch":
        self._t0 = time.perf_counter()
        return self

    def __exit__(self, *exc) -> None:
        self.ms = (time.perf_counter() - self._t0) * 1e3
