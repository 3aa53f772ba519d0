"""pen-kinematics CLI.

Usage:
    pen-kinematics analyze TRACE     — Final features for a recorded trace
    pen-kinematics replay TRACE      — Stream live features while replaying
    pen-kinematics benchmark         — Per-sample latency on a synthetic spiral
    pen-kinematics tasks             — List the guided drawing tasks
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Optional

import numpy as np
import typer

from pen_kinematics.analyzer import FeatureVector, analyze
from pen_kinematics.config import AnalyzerConfig
from pen_kinematics.ingestor import SampleIngestor
from pen_kinematics.profiler import FRAME_BUDGET_MS, AnalysisProfiler
from pen_kinematics.replay import EventTrace
from pen_kinematics.tasks import SPIRAL_CENTER, SPIRAL_GROWTH, TaskCatalog

app = typer.Typer(
    name="pen-kinematics",
    help="✍️  Kinematic feature extraction for guided drawing tasks.",
    add_completion=False,
)


@app.callback()
def main_options(
    log_level: str = typer.Option("warning", help="Log level"),
):
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


def _load_config(path: Optional[str]) -> AnalyzerConfig:
    if path is None:
        return AnalyzerConfig()
    try:
        return AnalyzerConfig.from_yaml(path)
    except (OSError, ValueError) as e:
        typer.echo(f"❌ Invalid config {path}: {e}", err=True)
        raise typer.Exit(1)


def _load_trace(path: str) -> EventTrace:
    trace_path = Path(path)
    if not trace_path.exists():
        typer.echo(f"❌ Trace not found: {path}", err=True)
        raise typer.Exit(1)
    try:
        return EventTrace.load(trace_path)
    except (OSError, ValueError) as e:
        typer.echo(f"❌ Could not parse trace {path}: {e}", err=True)
        raise typer.Exit(1)


def _echo_features(features: FeatureVector):
    if features.is_empty:
        typer.echo(f"⚠️  Not enough samples for analysis ({features.sample_count} captured)")

    typer.echo(f"   Shakiness:          {features.shakiness}")
    typer.echo(f"   Tremor frequency:   {features.tremor_frequency:.2f} Hz")
    typer.echo(f"   Average speed:      {features.average_speed:.3f} px/ms")
    typer.echo(f"   Pressure variation: {features.pressure_variation:.3f}")
    typer.echo(f"   Path length:        {features.path_length:.1f} px")
    typer.echo(f"   Scan time:          {features.total_time:.3f} s")
    if features.session_time is not None:
        typer.echo(f"   Session time:       {features.session_time:.3f} s")
    if features.smoothness is not None:
        typer.echo(f"   Smoothness:         {features.smoothness:.0f}")
    typer.echo(f"   Strokes / samples:  {features.stroke_count} / {features.sample_count}")


@app.command("analyze")
def analyze_trace(
    trace: str = typer.Argument(..., help="Path to a JSON event trace"),
    config: Optional[str] = typer.Option(None, help="Analyzer config YAML"),
    as_json: bool = typer.Option(False, "--json", help="Print features as JSON"),
):
    """Replay a trace and print its finalized features."""
    event_trace = _load_trace(trace)
    ingestor = SampleIngestor(config=_load_config(config))
    for _ in event_trace.play(ingestor):
        pass

    features = ingestor.finalize() or ingestor.features

    if as_json:
        typer.echo(json.dumps(features.to_dict(), indent=2))
        return

    typer.echo(f"📈 {Path(trace).name}: {event_trace.event_count} events")
    _echo_features(features)


@app.command()
def replay(
    trace: str = typer.Argument(..., help="Path to a JSON event trace"),
    config: Optional[str] = typer.Option(None, help="Analyzer config YAML"),
    realtime: bool = typer.Option(False, help="Play at original timing"),
    speed: float = typer.Option(1.0, help="Playback speed multiplier"),
    every: int = typer.Option(10, help="Print every Nth live update"),
):
    """Replay a trace, streaming live feature updates."""
    event_trace = _load_trace(trace)
    ingestor = SampleIngestor(config=_load_config(config))

    typer.echo(f"▶️  Replaying {Path(trace).name} ({event_trace.event_count} events, "
               f"{event_trace.duration_ms / 1000:.1f}s)")

    stream = event_trace.play_realtime(ingestor, speed=speed) if realtime else event_trace.play(ingestor)
    updates = 0
    for live in stream:
        updates += 1
        if live.ready and updates % max(1, every) == 0:
            typer.echo(f"   #{live.sample_count:5d}  shakiness={live.shakiness:3d}  "
                       f"tremor={live.tremor_frequency:5.2f}Hz  speed={live.average_speed:.3f}px/ms")

    typer.echo(f"\n✅ Replay complete. {updates} live updates.")
    final = ingestor.finalize()
    if final is not None:
        _echo_features(final)


@app.command()
def benchmark(
    samples: int = typer.Option(2000, help="Samples per synthetic trace"),
    iterations: int = typer.Option(20, help="Number of replays"),
    jitter: float = typer.Option(1.5, help="Std-dev of positional noise in px"),
):
    """Measure per-sample live analysis latency on a noisy spiral."""
    rng = np.random.default_rng(42)
    angles = np.linspace(0.0, 6 * math.pi, samples)
    radii = angles * SPIRAL_GROWTH
    points = np.column_stack([
        SPIRAL_CENTER[0] + radii * np.cos(angles),
        SPIRAL_CENTER[1] + radii * np.sin(angles),
        np.clip(rng.normal(0.5, 0.1, samples), 0.0, 1.0),
    ])
    points[:, :2] += rng.normal(0.0, jitter, (samples, 2))
    trace = EventTrace.from_points(points, interval_ms=8.0)

    typer.echo(f"⚡ Running benchmark: {iterations} replays × {samples} samples")

    profiler = AnalysisProfiler(window_size=samples * iterations)
    ingestor = SampleIngestor(profiler=profiler)
    for _ in range(iterations):
        ingestor.reset()
        for _ in trace.play(ingestor):
            pass

    with profiler.stage("batch"):
        batch = analyze(ingestor.snapshot())

    typer.echo("\n📊 Stage breakdown:")
    for name, stats in profiler.summary().items():
        typer.echo(f"   {name:10s} avg={stats['avg_ms']:.4f}ms  p95={stats['p95_ms']:.4f}ms  "
                   f"calls={stats['calls']}")

    analyze_stats = profiler.get_stage_stats("analyze")
    ok = analyze_stats is not None and analyze_stats.within_budget
    status = "✅ within" if ok else "❌ over"
    typer.echo(f"\n{status} the {FRAME_BUDGET_MS:.0f} ms live budget")
    typer.echo(f"   Batch result: shakiness={batch.shakiness} path={batch.path_length:.0f}px")


@app.command()
def tasks(
    catalog: Optional[str] = typer.Option(None, help="Task catalog YAML"),
):
    """List the guided drawing tasks."""
    try:
        task_catalog = TaskCatalog.from_yaml(catalog) if catalog else TaskCatalog.with_defaults()
    except (OSError, ValueError) as e:
        typer.echo(f"❌ Could not load catalog {catalog}: {e}", err=True)
        raise typer.Exit(1)

    for i, task in enumerate(task_catalog, start=1):
        guide = task.guide_path()
        typer.echo(f"{i}. {task.title} [{task.pattern.value}] — {len(guide)} guide points")
        if task.instruction:
            typer.echo(f"   {task.instruction}")


def main():
    app()


if __name__ == "__main__":
    main()
