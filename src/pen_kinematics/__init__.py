"""pen-kinematics - kinematic feature extraction from free-hand pointer input."""

__version__ = "0.1.0"

from pen_kinematics.samples import (
    MalformedEventError, PointerEvent, PointerSource, Sample, Session, Stroke,
)
from pen_kinematics.config import AnalyzerConfig
from pen_kinematics.analyzer import FeatureVector, KinematicAccumulator, analyze, finalize
from pen_kinematics.ingestor import SampleIngestor
from pen_kinematics.profiler import AnalysisProfiler
from pen_kinematics.tasks import DrawingTask, GuidedAssessment, TaskCatalog, TaskPattern
from pen_kinematics.replay import EventTrace, TraceEvent, EventKind
