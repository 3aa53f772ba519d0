#!/usr/bin/env python3
"""Tremor demo — compare a steady and a shaky spiral.

Synthesizes two traces along the spiral guide, one clean and one with an
oscillating tremor component, and prints the finalized features side by
side. No drawing surface required.

Usage:
    python examples/demo_tremor.py
    python examples/demo_tremor.py --amplitude 3 --frequency 6
"""

from __future__ import annotations

import argparse

import numpy as np

from pen_kinematics import EventTrace, SampleIngestor
from pen_kinematics.tasks import spiral_guide


def tremor_trace(amplitude: float, frequency_hz: float, interval_ms: float, seed: int) -> EventTrace:
    rng = np.random.default_rng(seed)
    guide = spiral_guide(step=0.02)
    t = np.arange(len(guide)) * interval_ms / 1000.0

    # perpendicular oscillation plus a little sensor noise
    offset = amplitude * np.sin(2 * np.pi * frequency_hz * t)
    points = guide + np.column_stack([offset, -offset]) + rng.normal(0, 0.2, guide.shape)
    pressure = np.clip(0.5 + 0.1 * np.sin(2 * np.pi * 0.5 * t), 0.0, 1.0)
    return EventTrace.from_points(np.column_stack([points, pressure]), interval_ms=interval_ms)


def run(trace: EventTrace):
    ingestor = SampleIngestor()
    for _ in trace.play(ingestor):
        pass
    return ingestor.finalize()


def main():
    parser = argparse.ArgumentParser(description="Steady vs. shaky spiral")
    parser.add_argument("--amplitude", type=float, default=2.0, help="Tremor amplitude in px")
    parser.add_argument("--frequency", type=float, default=5.0, help="Tremor frequency in Hz")
    parser.add_argument("--interval", type=float, default=8.0, help="Sample interval in ms")
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    steady = run(tremor_trace(0.0, args.frequency, args.interval, args.seed))
    shaky = run(tremor_trace(args.amplitude, args.frequency, args.interval, args.seed))

    print(f"{'feature':20s} {'steady':>10s} {'shaky':>10s}")
    print("-" * 42)
    for name in ("shakiness", "tremor_frequency", "average_speed",
                 "pressure_variation", "path_length", "smoothness"):
        print(f"{name:20s} {getattr(steady, name):10.2f} {getattr(shaky, name):10.2f}")


if __name__ == "__main__":
    main()
