"""Tests for kinematic feature extraction."""

import math

import numpy as np
import pytest

from pen_kinematics.analyzer import (
    FEATURE_NAMES,
    FeatureVector,
    KinematicAccumulator,
    _turn_cosine,
    analyze,
    finalize,
    smoothness_score,
)
from pen_kinematics.config import AnalyzerConfig
from pen_kinematics.samples import Sample


def make_samples(points, interval_ms=10.0, pressure=0.5):
    return [
        Sample(x=float(x), y=float(y), time_offset_ms=i * interval_ms, pressure=pressure)
        for i, (x, y) in enumerate(points)
    ]


class TestTurnCosine:
    def test_straight(self):
        assert _turn_cosine(1, 0, 1, 2, 0, 2) == pytest.approx(1.0)

    def test_right_angle(self):
        assert _turn_cosine(10, 0, 10, 0, 10, 10) == pytest.approx(0.0)

    def test_reversal(self):
        assert _turn_cosine(1, 0, 1, -1, 0, 1) == pytest.approx(-1.0)

    def test_zero_length_is_undefined(self):
        assert _turn_cosine(0, 0, 0, 1, 0, 1) is None
        assert _turn_cosine(1, 0, 1, 0, 0, 0) is None


class TestInsufficientData:
    @pytest.mark.parametrize("n", [0, 1, 2])
    def test_fewer_than_three_samples_is_empty(self, n):
        result = analyze(make_samples([(i, 0) for i in range(n)]))
        assert result.is_empty
        assert result.sample_count == n
        assert result.shakiness == 0
        assert result.path_length == 0.0
        assert result.average_speed == 0.0

    def test_three_samples_is_ready(self):
        result = analyze(make_samples([(0, 0), (1, 0), (2, 0)]))
        assert result.ready
        assert not result.is_empty


class TestShakiness:
    def test_straight_line(self):
        pts = [(i * 5.0, i * 2.0) for i in range(20)]
        result = analyze(make_samples(pts))
        assert result.shakiness == 0
        expected = math.hypot(19 * 5.0, 19 * 2.0)
        assert result.path_length == pytest.approx(expected)

    def test_single_right_angle(self):
        result = analyze(make_samples([(0, 0), (10, 0), (10, 10)]))
        assert result.shakiness == 1

    def test_gentle_turn_not_counted(self):
        # 30 degree turn: cos ~0.866 stays above the threshold
        turn = math.radians(30)
        pts = [(0, 0), (10, 0), (10 + 10 * math.cos(turn), 10 * math.sin(turn))]
        assert analyze(make_samples(pts)).shakiness == 0

    def test_zigzag_counts_every_reversal(self):
        pts = [(i * 5, 5 if i % 2 else 0) for i in range(12)]
        # each interior point is a sharp turn
        assert analyze(make_samples(pts)).shakiness == 10

    def test_degenerate_steps_skipped(self):
        pts = [(0, 0), (10, 0), (10, 0), (10, 10)]
        result = analyze(make_samples(pts))
        # the repeated point hides the turn from both triplets
        assert result.shakiness == 0
        assert result.path_length == pytest.approx(20.0)

    def test_custom_threshold(self):
        turn = math.radians(30)
        pts = [(0, 0), (10, 0), (10 + 10 * math.cos(turn), 10 * math.sin(turn))]
        config = AnalyzerConfig(turn_threshold=0.95)
        assert analyze(make_samples(pts), config).shakiness == 1


class TestSpeed:
    def test_uniform_speed(self):
        pts = [(i * 3.0, 0) for i in range(10)]
        result = analyze(make_samples(pts, interval_ms=6.0))
        assert result.average_speed == pytest.approx(0.5)

    def test_time_ties_contribute_no_speed(self):
        samples = [
            Sample(0, 0, 0.0),
            Sample(10, 0, 10.0),
            Sample(20, 0, 10.0),  # tie
            Sample(30, 0, 20.0),
        ]
        result = analyze(samples)
        assert math.isfinite(result.average_speed)
        assert result.average_speed == pytest.approx(1.0)
        assert result.path_length == pytest.approx(30.0)

    def test_all_ties_give_zero_speed(self):
        samples = [Sample(i * 10.0, 0, 0.0) for i in range(5)]
        result = analyze(samples)
        assert result.average_speed == 0.0
        assert result.total_time == 0.0
        assert result.tremor_frequency == 0.0

    def test_resting_pen_gives_no_speed_sample(self):
        samples = [Sample(0, 0, 0.0), Sample(10, 0, 10.0), Sample(10, 0, 20.0), Sample(20, 0, 30.0)]
        result = analyze(samples)
        assert result.average_speed == pytest.approx(1.0)


class TestPressure:
    def test_constant_pressure_is_exactly_zero(self):
        for p in (0.5, 0.3, 0.77, 1.0):
            result = analyze(make_samples([(i, 0) for i in range(50)], pressure=p))
            assert result.pressure_variation == 0.0

    def test_population_std(self):
        samples = [
            Sample(0, 0, 0, pressure=0.2),
            Sample(1, 0, 10, pressure=0.8),
            Sample(2, 0, 20, pressure=0.2),
            Sample(3, 0, 30, pressure=0.8),
        ]
        assert analyze(samples).pressure_variation == pytest.approx(0.3)

    def test_matches_numpy(self):
        rng = np.random.default_rng(42)
        pressures = rng.random(200)
        samples = [Sample(i, i % 7, i * 5.0, float(p)) for i, p in enumerate(pressures)]
        assert analyze(samples).pressure_variation == pytest.approx(float(np.std(pressures)))


class TestTremorFrequency:
    def test_rate(self):
        pts = [(0, 0), (10, 0), (10, 10), (20, 10), (20, 20)]
        result = analyze(make_samples(pts, interval_ms=250.0))
        assert result.shakiness == 3
        assert result.total_time == pytest.approx(1.0)
        assert result.tremor_frequency == pytest.approx(3.0)

    def test_zero_elapsed_time(self):
        samples = [Sample(0, 0, 5.0), Sample(10, 0, 5.0), Sample(10, 10, 5.0)]
        result = analyze(samples)
        assert result.shakiness == 1
        assert result.tremor_frequency == 0.0
        assert math.isfinite(result.tremor_frequency)


class TestEndToEnd:
    def test_reference_trace(self):
        samples = [
            Sample(0, 0, 0, 0.5),
            Sample(10, 0, 10, 0.5),
            Sample(20, 0, 20, 0.5),
            Sample(20, 10, 30, 0.5),
        ]
        result = analyze(samples)
        assert result.path_length == pytest.approx(30.0)
        assert result.shakiness == 1
        assert result.average_speed == pytest.approx(1.0)
        assert result.pressure_variation == 0.0
        assert result.total_time == pytest.approx(0.03)
        assert result.tremor_frequency == pytest.approx(33.333, rel=1e-3)


class TestAccumulator:
    def test_incremental_matches_batch(self):
        rng = np.random.default_rng(42)
        pts = rng.random((300, 2)) * 100
        samples = [
            Sample(float(x), float(y), float(i * 7 + (i % 3)), float(rng.random()))
            for i, (x, y) in enumerate(pts)
        ]
        acc = KinematicAccumulator()
        for i, s in enumerate(samples):
            acc.add(s)
            if i in (2, 50, 299):
                assert acc.result() == analyze(samples[: i + 1])

    def test_idempotent(self):
        samples = make_samples([(0, 0), (5, 1), (9, 7), (3, 3), (8, 0)])
        assert analyze(samples) == analyze(samples)

    def test_does_not_mutate_input(self):
        samples = make_samples([(0, 0), (5, 1), (9, 7)])
        before = list(samples)
        analyze(samples)
        assert samples == before

    def test_reset(self):
        acc = KinematicAccumulator()
        acc.extend(make_samples([(0, 0), (10, 0), (10, 10)]))
        acc.reset()
        assert acc.sample_count == 0
        assert acc.result().is_empty

    def test_min_samples_from_config(self):
        acc = KinematicAccumulator(AnalyzerConfig(min_samples=5))
        acc.extend(make_samples([(i, 0) for i in range(4)]))
        assert acc.result().is_empty
        acc.add(Sample(4, 0, 40.0))
        assert acc.result().ready


class TestFinalize:
    def test_smoothness_clamped(self):
        assert smoothness_score(0) == 100.0
        assert smoothness_score(10) == 80.0
        assert smoothness_score(50) == 0.0
        assert smoothness_score(60) == 0.0

    def test_finalize_fields(self):
        live = analyze(make_samples([(0, 0), (10, 0), (10, 10)]))
        assert live.smoothness is None
        assert not live.is_final

        final = finalize(live, start_time=1_000.0, end_time=3_500.0, stroke_count=2)
        assert final.is_final
        assert final.smoothness == 98.0
        assert final.session_time == pytest.approx(2.5)
        assert final.stroke_count == 2
        # scan-basis time is kept separately
        assert final.total_time == pytest.approx(0.02)
        assert final.shakiness == live.shakiness

    def test_finalize_without_times(self):
        final = finalize(FeatureVector.empty(), None, None, 0)
        assert final.session_time is None
        assert final.smoothness == 100.0


class TestFeatureVector:
    def test_as_array_order(self):
        fv = FeatureVector(shakiness=3, average_speed=1.5, path_length=42.0, ready=True)
        arr = fv.as_array()
        assert arr.shape == (len(FEATURE_NAMES),)
        assert arr[FEATURE_NAMES.index("shakiness")] == 3
        assert arr[FEATURE_NAMES.index("path_length")] == 42.0
        assert np.isnan(arr[FEATURE_NAMES.index("smoothness")])

    def test_to_dict(self):
        d = FeatureVector(shakiness=1).to_dict()
        assert d["shakiness"] == 1
        assert d["smoothness"] is None
        assert d["ready"] is False
