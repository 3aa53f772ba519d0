"""Tests for samples, strokes, sessions and pointer events."""

import numpy as np
import pytest

from pen_kinematics.samples import (
    MalformedEventError,
    PointerEvent,
    PointerSource,
    Sample,
    Session,
)


class TestPointerEvent:
    def test_validated_returns_self(self):
        evt = PointerEvent(1.0, 2.0)
        assert evt.validated() is evt

    @pytest.mark.parametrize("x,y", [(None, 1), (1, None), (float("inf"), 0), (True, 1), ("1", 2)])
    def test_invalid_coordinates(self, x, y):
        with pytest.raises(MalformedEventError):
            PointerEvent(x, y).validated()

    def test_numpy_scalars_accepted(self):
        evt = PointerEvent(np.float32(1.5), np.int64(2)).validated()
        assert float(evt.x) == 1.5

    def test_resolved_pressure(self):
        assert PointerEvent(0, 0).resolved_pressure() == 0.5
        assert PointerEvent(0, 0, pressure=0.25).resolved_pressure() == 0.25
        assert PointerEvent(0, 0, pressure=1.7).resolved_pressure() == 1.0
        assert PointerEvent(0, 0, pressure=-0.2).resolved_pressure() == 0.0
        assert PointerEvent(0, 0, pressure=float("nan")).resolved_pressure() == 0.5
        assert PointerEvent(0, 0, pressure="hard").resolved_pressure(default=0.4) == 0.4

    def test_from_dict_client_coords(self):
        evt = PointerEvent.from_dict({"clientX": 10, "clientY": 20, "force": 0.7, "pointerType": "touch"})
        assert (evt.x, evt.y, evt.pressure) == (10, 20, 0.7)
        assert evt.source == PointerSource.TOUCH

    def test_from_dict_plain_coords(self):
        evt = PointerEvent.from_dict({"x": 1, "y": 2, "pressure": 0.1, "source": "pen"})
        assert evt.source == PointerSource.PEN
        assert evt.pressure == 0.1

    def test_from_dict_unknown_source_falls_back(self):
        assert PointerEvent.from_dict({"x": 1, "y": 2, "source": "stylus9000"}).source == PointerSource.MOUSE

    def test_from_dict_null_client_coords_fall_back(self):
        evt = PointerEvent.from_dict({"clientX": None, "clientY": None, "x": 3, "y": 4,
                                      "force": None, "pressure": 0.8, "pointerType": None})
        assert (evt.x, evt.y, evt.pressure) == (3, 4, 0.8)
        assert evt.source == PointerSource.MOUSE

    def test_from_dict_client_coords_take_precedence(self):
        evt = PointerEvent.from_dict({"clientX": 10, "clientY": 20, "x": 3, "y": 4})
        assert (evt.x, evt.y) == (10, 20)

    def test_from_dict_missing_coordinate(self):
        with pytest.raises(MalformedEventError):
            PointerEvent.from_dict({"x": 1})

    def test_from_dict_non_mapping(self):
        with pytest.raises(MalformedEventError):
            PointerEvent.from_dict([1, 2])

    def test_malformed_is_value_error(self):
        assert issubclass(MalformedEventError, ValueError)


class TestSample:
    def test_frozen(self):
        s = Sample(1, 2, 0.0)
        with pytest.raises(AttributeError):
            s.x = 5

    def test_to_dict(self):
        assert Sample(1.0, 2.0, 30.0, 0.6).to_dict() == {"x": 1.0, "y": 2.0, "t": 30.0, "pressure": 0.6}


class TestSession:
    def test_append_groups_by_stroke(self):
        session = Session()
        session.begin_stroke()
        session.append(Sample(0, 0, 0))
        session.append(Sample(1, 0, 10))
        session.begin_stroke()
        session.append(Sample(5, 5, 50))

        assert session.stroke_count == 2
        assert session.sample_count == 3
        assert len(session.strokes[0]) == 2
        assert session.strokes[0].duration_ms == 10
        assert session.strokes[1].duration_ms == 0.0

    def test_append_without_stroke_opens_one(self):
        session = Session()
        session.append(Sample(0, 0, 0))
        assert session.stroke_count == 1

    def test_snapshot_is_immutable_copy(self):
        session = Session()
        session.append(Sample(0, 0, 0))
        snap = session.snapshot()
        session.append(Sample(1, 1, 1))
        assert isinstance(snap, tuple)
        assert len(snap) == 1

    def test_clear(self):
        session = Session(start_time=5.0, end_time=9.0)
        session.append(Sample(0, 0, 0))
        session.clear()
        assert session.sample_count == 0
        assert session.stroke_count == 0
        assert session.start_time is None
        assert session.end_time is None
