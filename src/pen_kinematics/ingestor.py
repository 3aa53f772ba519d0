"""Pointer event ingestion for a drawing surface.

Converts engage / move / release events into canvas-space samples, keeps
stroke and timing bookkeeping for the current session, and refreshes the
live feature vector after every accepted sample.

Usage:
    ingestor = SampleIngestor(origin=(rect.left, rect.top))
    ingestor.on_features(lambda f: print(f.shakiness, f.average_speed))

    ingestor.on_engage(PointerEvent(x, y, pressure=force), now_ms)
    ingestor.on_move(PointerEvent(x2, y2), now_ms + 16)
    ingestor.on_release(now_ms + 32)

    final = ingestor.finalize()
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, Mapping, Optional, Union

from pen_kinematics.analyzer import FeatureVector, KinematicAccumulator, finalize
from pen_kinematics.config import AnalyzerConfig
from pen_kinematics.profiler import AnalysisProfiler
from pen_kinematics.samples import MalformedEventError, PointerEvent, Sample, Session

logger = logging.getLogger("pen_kinematics.ingestor")

RawEvent = Union[PointerEvent, Mapping[str, Any], None]


class SampleIngestor:
    """Owns the session buffer and the running analysis state.

    Malformed events are dropped without raising: live input handling must
    never interrupt the drawing surface.
    """

    def __init__(
        self,
        config: Optional[AnalyzerConfig] = None,
        origin: tuple[float, float] = (0.0, 0.0),
        profiler: Optional[AnalysisProfiler] = None,
    ):
        self.config = config or AnalyzerConfig()
        self.origin = origin
        self.session = Session()

        self.profiler = profiler or AnalysisProfiler()
        self.profiler.enabled = profiler is not None

        self._accumulator = KinematicAccumulator(self.config)
        self._features = FeatureVector.empty()
        self._engaged = False
        self._dropped = 0

        self._sample_callbacks: list[Callable[[Sample], None]] = []
        self._feature_callbacks: list[Callable[[FeatureVector], None]] = []

    def on_sample(self, callback: Callable[[Sample], None]):
        """Register a callback for every accepted sample (e.g. a stroke renderer)."""
        self._sample_callbacks.append(callback)

    def on_features(self, callback: Callable[[FeatureVector], None]):
        """Register a callback for live features after each accepted move."""
        self._feature_callbacks.append(callback)

    def set_origin(self, left: float, top: float):
        """Update the capture surface offset subtracted from client coordinates."""
        self.origin = (left, top)

    # --- Event handlers ---

    def on_engage(self, event: RawEvent, now_ms: float) -> Optional[Sample]:
        """Pointer down: start a new stroke and emit its first sample."""
        pointer = self._resolve(event)
        if pointer is None:
            return None

        if self.session.start_time is None:
            self.session.start_time = now_ms

        self.session.begin_stroke()
        self._engaged = True
        return self._capture(pointer, now_ms)

    def on_move(self, event: RawEvent, now_ms: float) -> Optional[Sample]:
        """Pointer move: append a sample while engaged and refresh live features."""
        if not self._engaged:
            return None

        pointer = self._resolve(event)
        if pointer is None:
            return None

        sample = self._capture(pointer, now_ms)
        for cb in self._feature_callbacks:
            cb(self._features)
        return sample

    def on_release(self, now_ms: float) -> bool:
        """Pointer up. Returns False for a release with no stroke in progress."""
        if not self._engaged:
            logger.debug("Ignoring release at %.1f ms: pointer not engaged", now_ms)
            return False

        self._engaged = False
        self.session.end_time = now_ms
        return True

    def reset(self):
        """Discard the current attempt."""
        self.session.clear()
        self._accumulator.reset()
        self._features = FeatureVector.empty()
        self._engaged = False

    # --- Results ---

    @property
    def features(self) -> FeatureVector:
        """Live features for everything captured so far."""
        return self._features

    def finalize(self) -> Optional[FeatureVector]:
        """Final features for the session, or None before any engage/release."""
        if self.session.start_time is None or self.session.end_time is None:
            return None

        with self.profiler.stage("finalize"):
            return finalize(
                self._features,
                self.session.start_time,
                self.session.end_time,
                self.session.stroke_count,
                self.config,
            )

    # --- State ---

    @property
    def is_engaged(self) -> bool:
        return self._engaged

    @property
    def has_drawn(self) -> bool:
        return self.session.stroke_count > 0

    @property
    def stroke_count(self) -> int:
        return self.session.stroke_count

    @property
    def sample_count(self) -> int:
        return self.session.sample_count

    @property
    def dropped_count(self) -> int:
        """Malformed events dropped since construction."""
        return self._dropped

    def snapshot(self) -> tuple[Sample, ...]:
        return self.session.snapshot()

    # --- Internals ---

    def _resolve(self, event: RawEvent) -> Optional[PointerEvent]:
        try:
            if isinstance(event, PointerEvent):
                return event.validated()
            if isinstance(event, Mapping):
                return PointerEvent.from_dict(event)
            raise MalformedEventError(f"unsupported event: {event!r}")
        except MalformedEventError as e:
            self._dropped += 1
            logger.debug("Dropping pointer event: %s", e)
            return None

    def _capture(self, pointer: PointerEvent, now_ms: float) -> Sample:
        with self.profiler.stage("ingest"):
            sample = Sample(
                x=float(pointer.x) - self.origin[0],
                y=float(pointer.y) - self.origin[1],
                time_offset_ms=max(0.0, now_ms - self.session.start_time),
                pressure=pointer.resolved_pressure(self.config.default_pressure),
            )
            self.session.append(sample)

        with self.profiler.stage("analyze"):
            self._accumulator.add(sample)
            self._features = replace(
                self._accumulator.result(), stroke_count=self.session.stroke_count
            )

        for cb in self._sample_callbacks:
            cb(sample)
        return sample
