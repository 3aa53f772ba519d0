"""Replay captured pointer traces through an ingestor.

A trace is the raw input stream (engage / move / release with timestamps),
so the same analysis that runs live can run off-line, in tests, or in
benchmarks without a drawing surface.

Trace file (JSON):
    {"version": 1, "events": [
        {"type": "engage", "t": 0, "x": 12.0, "y": 40.5, "pressure": 0.4},
        {"type": "move", "t": 16, "x": 14.0, "y": 41.0},
        {"type": "release", "t": 32}
    ]}

Usage:
    trace = EventTrace.load("attempt.json")
    ingestor = SampleIngestor()
    for live in trace.play(ingestor):
        print(live.shakiness)
    print(ingestor.finalize())
"""

from __future__ import annotations

import json
import math
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Optional

import numpy as np

from pen_kinematics.analyzer import FeatureVector
from pen_kinematics.ingestor import SampleIngestor
from pen_kinematics.samples import (
    DEFAULT_PRESSURE, PointerEvent, PointerSource, Sample, first_present,
)


class EventKind(Enum):
    ENGAGE = "engage"
    MOVE = "move"
    RELEASE = "release"


_KIND_ALIASES = {
    "down": EventKind.ENGAGE,
    "start": EventKind.ENGAGE,
    "up": EventKind.RELEASE,
    "end": EventKind.RELEASE,
}


@dataclass
class TraceEvent:
    kind: EventKind
    t_ms: float
    x: Optional[float] = None
    y: Optional[float] = None
    pressure: Optional[float] = None
    source: PointerSource = PointerSource.MOUSE

    def to_pointer(self) -> PointerEvent:
        return PointerEvent(x=self.x, y=self.y, pressure=self.pressure, source=self.source)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TraceEvent:
        """Parse one trace entry. Raises ValueError on a malformed entry."""
        if not isinstance(data, Mapping):
            raise ValueError(f"trace event must be a mapping, got {type(data).__name__}")

        name = str(data.get("type", "")).lower()
        kind = _KIND_ALIASES.get(name)
        if kind is None:
            kind = EventKind(name)  # ValueError on unknown kinds

        source_name = data.get("source", "mouse")
        try:
            source = PointerSource(source_name)
        except ValueError:
            source = PointerSource.MOUSE

        return cls(
            kind=kind,
            t_ms=_timestamp(data),
            x=data.get("x"),
            y=data.get("y"),
            pressure=first_present(data, "pressure", "force"),
            source=source,
        )


class EventTrace:
    """An ordered pointer event stream."""

    def __init__(self, events: list[TraceEvent]):
        self._events = events

    @classmethod
    def load(cls, path: str | Path) -> EventTrace:
        with open(path) as f:
            data = json.load(f)

        entries = data.get("events") if isinstance(data, dict) else data
        if not isinstance(entries, list):
            raise ValueError(f"{path}: expected a list of events, got {type(entries).__name__}")
        return cls([TraceEvent.from_dict(e) for e in entries])

    @classmethod
    def from_samples(cls, samples: Iterable[Sample], start_ms: float = 0.0) -> EventTrace:
        """Single-stroke trace that reproduces ``samples`` exactly."""
        events: list[TraceEvent] = []
        for s in samples:
            kind = EventKind.MOVE if events else EventKind.ENGAGE
            events.append(TraceEvent(kind, start_ms + s.time_offset_ms, s.x, s.y, s.pressure))
        if events:
            events.append(TraceEvent(EventKind.RELEASE, events[-1].t_ms))
        return cls(events)

    @classmethod
    def from_points(
        cls,
        points: np.ndarray,
        interval_ms: float = 10.0,
        pressure: float = DEFAULT_PRESSURE,
    ) -> EventTrace:
        """Single-stroke trace from an (N, 2) or (N, 3) array.

        A third column is used as per-point pressure.
        """
        pts = np.asarray(points, dtype=np.float64)
        samples = [
            Sample(
                x=float(p[0]),
                y=float(p[1]),
                time_offset_ms=i * interval_ms,
                pressure=float(p[2]) if pts.shape[1] > 2 else pressure,
            )
            for i, p in enumerate(pts)
        ]
        return cls.from_samples(samples)

    @property
    def events(self) -> list[TraceEvent]:
        return list(self._events)

    @property
    def event_count(self) -> int:
        return len(self._events)

    @property
    def duration_ms(self) -> float:
        if not self._events:
            return 0.0
        return self._events[-1].t_ms - self._events[0].t_ms

    def play(self, ingestor: SampleIngestor) -> Iterator[FeatureVector]:
        """Feed every event; yield live features after each accepted move."""
        for event in self._events:
            if self._dispatch(ingestor, event):
                yield ingestor.features

    def play_realtime(self, ingestor: SampleIngestor, speed: float = 1.0) -> Iterator[FeatureVector]:
        """Like play(), sleeping to reproduce the original event timing."""
        if not self._events:
            return

        t0 = self._events[0].t_ms
        start = time.monotonic()
        for event in self._events:
            target = (event.t_ms - t0) / 1000.0 / speed
            elapsed = time.monotonic() - start
            if target > elapsed:
                time.sleep(target - elapsed)
            if self._dispatch(ingestor, event):
                yield ingestor.features

    @staticmethod
    def _dispatch(ingestor: SampleIngestor, event: TraceEvent) -> bool:
        """Route one event. True when it was an accepted move."""
        if event.kind == EventKind.ENGAGE:
            ingestor.on_engage(event.to_pointer(), event.t_ms)
        elif event.kind == EventKind.MOVE:
            return ingestor.on_move(event.to_pointer(), event.t_ms) is not None
        else:
            ingestor.on_release(event.t_ms)
        return False


def _timestamp(data: Mapping[str, Any]) -> float:
    if "t" not in data:
        raise ValueError("trace event is missing its timestamp 't'")
    t = data["t"]
    if isinstance(t, bool):
        raise ValueError(f"trace timestamp must be a number, got {t!r}")
    try:
        t_ms = float(t)
    except (TypeError, ValueError):
        raise ValueError(f"trace timestamp must be a number, got {t!r}") from None
    if not math.isfinite(t_ms):
        raise ValueError(f"trace timestamp must be finite, got {t!r}")
    return t_ms
