"""Analyzer configuration.

Defaults reproduce the fixed constants of the kinematic scan. The turn
threshold is the single most important tunable: a triplet whose turn
cosine falls below it counts as one direction change.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from pen_kinematics.samples import DEFAULT_PRESSURE

logger = logging.getLogger("pen_kinematics.config")

# cos(45.57°); turns sharper than this count toward shakiness
TURN_COSINE_THRESHOLD = 0.7
MIN_SAMPLES = 3
SMOOTHNESS_CEILING = 100.0
SMOOTHNESS_PENALTY = 2.0


@dataclass
class AnalyzerConfig:
    turn_threshold: float = TURN_COSINE_THRESHOLD
    min_samples: int = MIN_SAMPLES
    default_pressure: float = DEFAULT_PRESSURE
    smoothness_ceiling: float = SMOOTHNESS_CEILING
    smoothness_penalty: float = SMOOTHNESS_PENALTY

    def validate(self) -> AnalyzerConfig:
        """Raise ValueError if any field is out of range. Returns self."""
        if not -1.0 <= self.turn_threshold <= 1.0:
            raise ValueError(f"turn_threshold must be a cosine in [-1, 1], got {self.turn_threshold}")
        if self.min_samples < MIN_SAMPLES:
            raise ValueError(f"min_samples must be at least {MIN_SAMPLES}, got {self.min_samples}")
        if not 0.0 <= self.default_pressure <= 1.0:
            raise ValueError(f"default_pressure must be in [0, 1], got {self.default_pressure}")
        if self.smoothness_ceiling < 0 or self.smoothness_penalty < 0:
            raise ValueError("smoothness_ceiling and smoothness_penalty must be non-negative")
        return self

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> AnalyzerConfig:
        data = data or {}
        if not isinstance(data, dict):
            raise ValueError(f"expected a mapping of analyzer settings, got {type(data).__name__}")

        known = {f.name: f.type for f in fields(cls)}
        unknown = sorted(set(data) - set(known))
        if unknown:
            logger.warning("Ignoring unknown analyzer config keys: %s", ", ".join(unknown))

        values = {
            key: _coerce(key, value, integral=known[key] == "int")
            for key, value in data.items()
            if key in known
        }
        return cls(**values).validate()

    @classmethod
    def from_yaml(cls, path: str | Path) -> AnalyzerConfig:
        """Load from a YAML file. An ``analyzer:`` section is used if present."""
        with open(path) as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"{path}: not valid YAML ({e})") from e

        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping at top level")
        section = data.get("analyzer", data)
        return cls.from_dict(section)

    def to_yaml(self, path: str | Path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump({"analyzer": self.to_dict()}, f, sort_keys=False)


def _coerce(key: str, value: Any, integral: bool = False) -> float | int:
    """Convert a YAML scalar to a number, raising ValueError naming the key."""
    if isinstance(value, bool):
        raise ValueError(f"{key}: expected a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key}: expected a number, got {value!r}") from None

    if integral:
        if not number.is_integer():
            raise ValueError(f"{key}: expected an integer, got {value!r}")
        return int(number)
    return number
