"""Pointer samples, strokes and sessions.

A session is an ordered run of samples captured during one guided task.
Samples are grouped into strokes (engage → release) only for bookkeeping;
analysis always works over the flattened session sequence.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

DEFAULT_PRESSURE = 0.5


class MalformedEventError(ValueError):
    """Raised when a raw pointer event has no usable coordinate."""


class PointerSource(Enum):
    MOUSE = "mouse"
    TOUCH = "touch"
    PEN = "pen"


@dataclass(frozen=True)
class PointerEvent:
    """A raw pointer observation in client coordinates.

    Mouse, touch and pen input share this one shape. ``pressure`` is None
    when the device reports no force reading.
    """
    x: Optional[float]
    y: Optional[float]
    pressure: Optional[float] = None
    source: PointerSource = PointerSource.MOUSE

    def validated(self) -> PointerEvent:
        """Return self, or raise MalformedEventError if the coordinate is unusable."""
        for axis, value in (("x", self.x), ("y", self.y)):
            if not _is_number(value) or not math.isfinite(value):
                raise MalformedEventError(f"pointer event has invalid {axis}: {value!r}")
        return self

    def resolved_pressure(self, default: float = DEFAULT_PRESSURE) -> float:
        """Native pressure clamped to [0, 1], or ``default`` when absent."""
        p = self.pressure
        if not _is_number(p) or not math.isfinite(p):
            return default
        return min(1.0, max(0.0, float(p)))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PointerEvent:
        """Parse a browser-shaped payload.

        Accepts ``clientX``/``clientY`` or ``x``/``y`` for the coordinate and
        ``force`` or ``pressure`` for the pressure reading.
        """
        if not isinstance(data, Mapping):
            raise MalformedEventError(f"expected a mapping, got {type(data).__name__}")

        x = first_present(data, "clientX", "x")
        y = first_present(data, "clientY", "y")
        pressure = first_present(data, "force", "pressure")

        source_name = first_present(data, "source", "pointerType") or "mouse"
        try:
            source = PointerSource(source_name)
        except ValueError:
            source = PointerSource.MOUSE

        return cls(x=x, y=y, pressure=pressure, source=source).validated()


@dataclass(frozen=True)
class Sample:
    """One timestamped, pressure-tagged coordinate in canvas space."""
    x: float
    y: float
    time_offset_ms: float  # ms since the session's first sample
    pressure: float = DEFAULT_PRESSURE

    def to_dict(self) -> dict:
        return {
            "x": self.x,
            "y": self.y,
            "t": self.time_offset_ms,
            "pressure": self.pressure,
        }


@dataclass
class Stroke:
    """Samples captured between one engage and its release."""
    index: int
    samples: list[Sample] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def duration_ms(self) -> float:
        if len(self.samples) < 2:
            return 0.0
        return self.samples[-1].time_offset_ms - self.samples[0].time_offset_ms


@dataclass
class Session:
    """One guided-task attempt: every sample across all of its strokes."""
    samples: list[Sample] = field(default_factory=list)
    strokes: list[Stroke] = field(default_factory=list)
    start_time: Optional[float] = None  # wall-clock ms of first engage
    end_time: Optional[float] = None  # wall-clock ms of completing release

    @property
    def stroke_count(self) -> int:
        return len(self.strokes)

    @property
    def sample_count(self) -> int:
        return len(self.samples)

    def begin_stroke(self) -> Stroke:
        stroke = Stroke(index=len(self.strokes))
        self.strokes.append(stroke)
        return stroke

    def append(self, sample: Sample):
        """Add a sample to the current stroke and the flattened sequence."""
        if not self.strokes:
            self.begin_stroke()
        self.strokes[-1].samples.append(sample)
        self.samples.append(sample)

    def snapshot(self) -> tuple[Sample, ...]:
        """Immutable view of the samples captured so far."""
        return tuple(self.samples)

    def clear(self):
        self.samples.clear()
        self.strokes.clear()
        self.start_time = None
        self.end_time = None


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def first_present(data: Mapping[str, Any], *keys: str) -> Any:
    """Value of the first key in ``keys`` that is present and not None."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None
