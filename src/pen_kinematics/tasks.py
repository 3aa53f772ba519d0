"""Guided drawing tasks and the assessment that walks through them.

The default catalog has three tasks on an 800x500 canvas:
- spiral: draw outward from the centre dot following a three-turn spiral
- lines: connect six numbered dots in order
- text: write your name inside the guide box

Each task is one session. Advancing finalizes the current session's
features and resets the ingestor for the next task.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional

import numpy as np
import yaml

from pen_kinematics.analyzer import FeatureVector
from pen_kinematics.config import AnalyzerConfig
from pen_kinematics.ingestor import SampleIngestor

logger = logging.getLogger("pen_kinematics.tasks")

CANVAS_WIDTH = 800
CANVAS_HEIGHT = 500

SPIRAL_CENTER = (400.0, 250.0)
SPIRAL_TURNS = 3
SPIRAL_GROWTH = 8.0  # px of radius per radian

CONNECT_DOTS = [(150, 120), (300, 180), (500, 120), (650, 200), (550, 350), (250, 380)]
NAME_BOX = (100, 200, 600, 100)  # left, top, width, height


class TaskPattern(Enum):
    SPIRAL = "spiral"
    LINES = "lines"
    TEXT = "text"


@dataclass
class DrawingTask:
    name: str
    title: str
    pattern: TaskPattern
    description: str = ""
    instruction: str = ""
    points: list[tuple[float, float]] = field(default_factory=list)

    def guide_path(self) -> np.ndarray:
        """Guide geometry as an (N, 2) array in canvas coordinates."""
        if self.points:
            return np.array(self.points, dtype=np.float64)
        if self.pattern == TaskPattern.SPIRAL:
            return spiral_guide()
        if self.pattern == TaskPattern.LINES:
            return np.array(CONNECT_DOTS, dtype=np.float64)
        left, top, width, height = NAME_BOX
        return np.array([
            [left, top], [left + width, top], [left + width, top + height],
            [left, top + height], [left, top],
        ], dtype=np.float64)

    def to_dict(self) -> dict:
        data = {
            "name": self.name,
            "title": self.title,
            "pattern": self.pattern.value,
            "description": self.description,
            "instruction": self.instruction,
        }
        if self.points:
            data["points"] = [list(p) for p in self.points]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> DrawingTask:
        if not isinstance(data, dict) or "name" not in data:
            raise ValueError(f"task entry must be a mapping with a name, got {data!r}")
        try:
            points = [(float(p[0]), float(p[1])) for p in data.get("points") or []]
        except (TypeError, ValueError, IndexError):
            raise ValueError(f"task {data['name']!r}: points must be [x, y] pairs") from None

        return cls(
            name=str(data["name"]),
            title=data.get("title", data["name"]),
            pattern=TaskPattern(data.get("pattern", "text")),
            description=data.get("description", ""),
            instruction=data.get("instruction", ""),
            points=points,
        )


def spiral_guide(
    center: tuple[float, float] = SPIRAL_CENTER,
    turns: int = SPIRAL_TURNS,
    growth: float = SPIRAL_GROWTH,
    step: float = 0.1,
) -> np.ndarray:
    """Archimedean spiral r = growth * theta, sampled every ``step`` radians."""
    angles = np.arange(0.0, turns * 2 * math.pi, step)
    radii = angles * growth
    return np.column_stack([
        center[0] + radii * np.cos(angles),
        center[1] + radii * np.sin(angles),
    ])


class TaskCatalog:
    """Ordered collection of drawing tasks."""

    def __init__(self, tasks: Optional[list[DrawingTask]] = None):
        self._tasks: list[DrawingTask] = []
        for task in tasks or []:
            self.add(task)

    def add(self, task: DrawingTask):
        if any(t.name == task.name for t in self._tasks):
            raise ValueError(f"duplicate task name: {task.name}")
        self._tasks.append(task)

    def get(self, name: str) -> DrawingTask:
        for task in self._tasks:
            if task.name == name:
                return task
        raise KeyError(name)

    @property
    def names(self) -> list[str]:
        return [t.name for t in self._tasks]

    def __getitem__(self, index: int) -> DrawingTask:
        return self._tasks[index]

    def __iter__(self) -> Iterator[DrawingTask]:
        return iter(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    @classmethod
    def from_yaml(cls, path: str | Path) -> TaskCatalog:
        """Load tasks from a YAML file with a top-level ``tasks:`` list."""
        with open(path) as f:
            try:
                config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"{path}: not valid YAML ({e})") from e

        entries = config.get("tasks", []) if isinstance(config, dict) else []
        if not isinstance(entries, list):
            raise ValueError(f"{path}: 'tasks' must be a list, got {type(entries).__name__}")
        if not entries:
            raise ValueError(f"{path}: no tasks defined")
        return cls([DrawingTask.from_dict(e) for e in entries])

    def to_yaml(self, path: str | Path):
        with open(path, "w") as f:
            yaml.safe_dump({"tasks": [t.to_dict() for t in self._tasks]}, f, sort_keys=False)

    @classmethod
    def with_defaults(cls) -> TaskCatalog:
        return cls([
            DrawingTask(
                name="spiral",
                title="Draw a Spiral",
                pattern=TaskPattern.SPIRAL,
                description="Starting from the center, draw a spiral moving outward. "
                            "Take your time and draw naturally.",
                instruction="Place your pen/finger at the center dot and draw a spiral outward.",
            ),
            DrawingTask(
                name="lines",
                title="Draw Connecting Lines",
                pattern=TaskPattern.LINES,
                description="Connect the dots by drawing straight lines between them. "
                            "Try to be as accurate as possible.",
                instruction="Draw straight lines to connect each dot in sequence.",
            ),
            DrawingTask(
                name="text",
                title="Write Your Name",
                pattern=TaskPattern.TEXT,
                description="Write your full name in cursive or print letters. "
                            "Write naturally at your normal speed.",
                instruction="Write your name clearly in the designated area.",
            ),
        ])


class GuidedAssessment:
    """Walks a catalog task by task, finalizing features for each.

    Usage:
        assessment = GuidedAssessment()
        ingestor = assessment.ingestor
        # feed pointer events for assessment.current_task ...
        assessment.advance()
        ...
        features = assessment.final_features
    """

    def __init__(
        self,
        catalog: Optional[TaskCatalog] = None,
        ingestor: Optional[SampleIngestor] = None,
        config: Optional[AnalyzerConfig] = None,
    ):
        self.catalog = catalog if catalog is not None else TaskCatalog.with_defaults()
        if not len(self.catalog):
            raise ValueError("assessment needs at least one task")

        self.ingestor = ingestor or SampleIngestor(config=config)
        self._index = 0
        self._results: dict[str, FeatureVector] = {}
        self._last: Optional[FeatureVector] = None

    @property
    def current_task(self) -> Optional[DrawingTask]:
        if self.is_complete:
            return None
        return self.catalog[self._index]

    @property
    def task_index(self) -> int:
        return self._index

    @property
    def is_complete(self) -> bool:
        return self._index >= len(self.catalog)

    @property
    def has_drawn(self) -> bool:
        return self.ingestor.has_drawn

    def clear(self):
        """Discard the current attempt and start the task over."""
        self.ingestor.reset()

    def advance(self) -> Optional[FeatureVector]:
        """Finalize the current task and move to the next one.

        Returns the finalized features, or None (without advancing) if the
        task has no completed stroke yet.
        """
        task = self.current_task
        if task is None:
            raise RuntimeError("assessment is already complete")

        final = self.ingestor.finalize()
        if final is None:
            logger.debug("Task %s has no completed stroke; not advancing", task.name)
            return None

        self._results[task.name] = final
        self._last = final
        self._index += 1

        if self.is_complete:
            logger.info("Assessment complete after %d tasks", len(self.catalog))
        else:
            self.ingestor.reset()
            logger.info("Task %s done; next task: %s", task.name, self.catalog[self._index].name)
        return final

    @property
    def results(self) -> dict[str, FeatureVector]:
        """Finalized features per completed task, in task order."""
        return dict(self._results)

    @property
    def final_features(self) -> Optional[FeatureVector]:
        """Features of the most recently completed task."""
        return self._last
