"""Stage timing for the live analysis path.

Live features are refreshed on every pointer move, so the per-sample cost
has to stay well inside one display frame. The profiler keeps a rolling
window of per-stage timings so that budget can be checked.
"""

from __future__ import annotations

import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

FRAME_BUDGET_MS = 5.0


@dataclass
class StageStats:
    name: str
    avg_ms: float
    min_ms: float
    max_ms: float
    p95_ms: float
    call_count: int

    @classmethod
    def from_window(cls, name: str, window: Iterable[float], call_count: int) -> StageStats:
        ordered = sorted(window)
        n = len(ordered)
        return cls(
            name=name,
            avg_ms=sum(ordered) / n,
            min_ms=ordered[0],
            max_ms=ordered[-1],
            p95_ms=ordered[min(n - 1, int(n * 0.95))],
            call_count=call_count,
        )

    @property
    def within_budget(self) -> bool:
        return self.p95_ms <= FRAME_BUDGET_MS

    def to_dict(self) -> dict:
        return {
            "avg_ms": round(self.avg_ms, 4),
            "p95_ms": round(self.p95_ms, 4),
            "max_ms": round(self.max_ms, 4),
            "calls": self.call_count,
            "within_budget": self.within_budget,
        }


class AnalysisProfiler:
    """Times named stages with ``time.perf_counter``.

    Usage:
        profiler = AnalysisProfiler()
        with profiler.stage("analyze"):
            features = accumulator.result()
        print(profiler.summary())
    """

    STAGES = ["ingest", "analyze", "finalize"]

    def __init__(self, window_size: int = 500):
        self._window_size = window_size
        self._timings: dict[str, deque[float]] = {
            s: deque(maxlen=window_size) for s in self.STAGES
        }
        self._counts: dict[str, int] = {s: 0 for s in self.STAGES}
        self._enabled = True

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        if not self._enabled:
            yield
            return

        if name not in self._timings:
            self._timings[name] = deque(maxlen=self._window_size)
            self._counts[name] = 0

        t0 = time.perf_counter()
        try:
            yield
        finally:
            self._timings[name].append((time.perf_counter() - t0) * 1000.0)
            self._counts[name] += 1

    def get_stage_stats(self, name: str) -> Optional[StageStats]:
        """Stats over the rolling window for ``name``, or None if never timed."""
        window = self._timings.get(name)
        if not window:
            return None
        return StageStats.from_window(name, window, self._counts[name])

    def summary(self) -> dict[str, dict]:
        """Per-stage report for every stage that has been timed."""
        stats = (self.get_stage_stats(name) for name in self._timings)
        return {s.name: s.to_dict() for s in stats if s is not None}

    def reset(self):
        self._timings = {s: deque(maxlen=self._window_size) for s in self.STAGES}
        self._counts = {s: 0 for s in self.STAGES}

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool):
        self._enabled = value
