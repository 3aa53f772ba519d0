"""Kinematic feature extraction from pointer traces.

Turns an ordered sample sequence into a FeatureVector: shakiness (sharp
direction changes), average speed, pressure variation, tremor frequency,
path length and, once the task is finished, smoothness.

The scan keeps running sums only, so each new sample costs O(1):

    acc = KinematicAccumulator()
    for sample in samples:
        acc.add(sample)
        live = acc.result()

``analyze()`` is the batch form and is defined as replaying the samples
through an accumulator, so live and batch results are identical.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, replace
from typing import Iterable, Optional

import numpy as np

from pen_kinematics.config import AnalyzerConfig
from pen_kinematics.samples import Sample

FEATURE_NAMES = (
    "shakiness",
    "average_speed",
    "pressure_variation",
    "tremor_frequency",
    "path_length",
    "smoothness",
    "total_time",
    "stroke_count",
)


@dataclass(frozen=True)
class FeatureVector:
    """Kinematic summary of a pointer trace.

    ``total_time`` is measured from sample timestamps. ``session_time`` is the
    wall-clock engage → release duration and, like ``smoothness``, is only
    set on finalized vectors.
    """
    shakiness: int = 0
    average_speed: float = 0.0  # px/ms
    pressure_variation: float = 0.0
    tremor_frequency: float = 0.0  # Hz
    path_length: float = 0.0  # px
    total_time: float = 0.0  # s
    stroke_count: int = 0
    sample_count: int = 0
    smoothness: Optional[float] = None
    session_time: Optional[float] = None  # s
    ready: bool = False  # enough samples for the scan

    @classmethod
    def empty(cls, sample_count: int = 0) -> FeatureVector:
        return cls(sample_count=sample_count)

    @property
    def is_empty(self) -> bool:
        return not self.ready

    @property
    def is_final(self) -> bool:
        return self.smoothness is not None

    def to_dict(self) -> dict:
        return asdict(self)

    def as_array(self) -> np.ndarray:
        """Feature values in FEATURE_NAMES order; unset smoothness is NaN."""
        values = [getattr(self, name) for name in FEATURE_NAMES]
        return np.array([np.nan if v is None else v for v in values], dtype=np.float64)


def _turn_cosine(
    dx1: float, dy1: float, mag1: float, dx2: float, dy2: float, mag2: float
) -> Optional[float]:
    """Cosine of the angle between two step vectors, None if either is zero-length."""
    if mag1 <= 0.0 or mag2 <= 0.0:
        return None
    return (dx1 * dx2 + dy1 * dy2) / (mag1 * mag2)


class KinematicAccumulator:
    """Running-sum state for the kinematic scan.

    Holds the last two samples for the triplet angle test, the shakiness
    count, distance total, speed sum/count and a Welford pressure mean and
    sum of squared deviations. Never mutates the samples it is given.
    """

    def __init__(self, config: Optional[AnalyzerConfig] = None):
        self.config = config or AnalyzerConfig()
        self.reset()

    def reset(self):
        self._count = 0
        self._prev: Optional[Sample] = None
        # previous step vector and its length
        self._prev_step: Optional[tuple[float, float, float]] = None
        self._first_time: Optional[float] = None
        self._last_time = 0.0

        self._shakiness = 0
        self._path_length = 0.0
        self._speed_sum = 0.0
        self._speed_count = 0

        self._pressure_mean = 0.0
        self._pressure_m2 = 0.0

    @property
    def sample_count(self) -> int:
        return self._count

    def add(self, sample: Sample):
        """Fold one sample into the running sums."""
        self._count += 1

        delta = sample.pressure - self._pressure_mean
        self._pressure_mean += delta / self._count
        self._pressure_m2 += delta * (sample.pressure - self._pressure_mean)

        if self._first_time is None:
            self._first_time = sample.time_offset_ms
        self._last_time = sample.time_offset_ms

        prev = self._prev
        self._prev = sample
        if prev is None:
            return

        dx = sample.x - prev.x
        dy = sample.y - prev.y
        step = math.hypot(dx, dy)
        self._path_length += step

        dt = sample.time_offset_ms - prev.time_offset_ms
        if step > 0.0 and dt > 0:
            self._speed_sum += step / dt
            self._speed_count += 1

        if self._prev_step is not None:
            cos_angle = _turn_cosine(*self._prev_step, dx, dy, step)
            if cos_angle is not None and cos_angle < self.config.turn_threshold:
                self._shakiness += 1

        self._prev_step = (dx, dy, step)

    def extend(self, samples: Iterable[Sample]):
        for sample in samples:
            self.add(sample)

    def result(self) -> FeatureVector:
        """Current live features, or the empty vector below ``min_samples``."""
        if self._count < self.config.min_samples:
            return FeatureVector.empty(self._count)

        total_time = max(0.0, (self._last_time - self._first_time) / 1000.0)
        tremor_frequency = self._shakiness / total_time if total_time > 0 else 0.0
        average_speed = self._speed_sum / self._speed_count if self._speed_count else 0.0
        pressure_variation = math.sqrt(max(0.0, self._pressure_m2 / self._count))

        return FeatureVector(
            shakiness=self._shakiness,
            average_speed=average_speed,
            pressure_variation=pressure_variation,
            tremor_frequency=tremor_frequency,
            path_length=self._path_length,
            total_time=total_time,
            sample_count=self._count,
            ready=True,
        )


def analyze(samples: Iterable[Sample], config: Optional[AnalyzerConfig] = None) -> FeatureVector:
    """Compute live features for a whole sample sequence."""
    acc = KinematicAccumulator(config)
    acc.extend(samples)
    return acc.result()


def smoothness_score(shakiness: int, config: Optional[AnalyzerConfig] = None) -> float:
    """Linear penalty on shakiness, saturating at zero."""
    config = config or AnalyzerConfig()
    return max(0.0, config.smoothness_ceiling - config.smoothness_penalty * shakiness)


def finalize(
    features: FeatureVector,
    start_time: Optional[float],
    end_time: Optional[float],
    stroke_count: int,
    config: Optional[AnalyzerConfig] = None,
) -> FeatureVector:
    """Attach the task-completion fields to a live feature vector.

    ``start_time`` and ``end_time`` are wall-clock milliseconds of the first
    engage and the completing release.
    """
    session_time = None
    if start_time is not None and end_time is not None:
        session_time = max(0.0, (end_time - start_time) / 1000.0)

    return replace(
        features,
        smoothness=smoothness_score(features.shakiness, config),
        session_time=session_time,
        stroke_count=stroke_count,
    )
