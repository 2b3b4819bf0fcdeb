"""Tests for lumina.simplify: RDP trajectory reduction."""

import math

import pytest

from lumina.models import Keyframe, Property
from lumina.simplify import (
    SIMPLIFIED_SEGMENT_EASING,
    perpendicular_distance,
    ramer_douglas_peucker,
    simplify_keyframes,
)


class TestPerpendicularDistance:
    def test_off_segment(self):
        assert perpendicular_distance((1, 1, 0), (0, 0, 0), (2, 0, 0)) == pytest.approx(1.0)

    def test_projection_clamped_to_end(self):
        assert perpendicular_distance((3, 1, 0), (0, 0, 0), (2, 0, 0)) == pytest.approx(math.sqrt(2))

    def test_degenerate_segment(self):
        assert perpendicular_distance((0, 3, 4), (0, 0, 0), (0, 0, 0)) == pytest.approx(5.0)


class TestRamerDouglasPeucker:
    def test_short_inputs_kept(self):
        assert ramer_douglas_peucker([], 0.1) == []
        assert ramer_douglas_peucker([(0, 0, 0), (1, 0, 0)], 0.1) == [0, 1]

    def test_collinear_collapses_to_endpoints(self):
        points = [(float(i), 2.0 * i, 0.0) for i in range(10)]
        assert ramer_douglas_peucker(points, 0.01) == [0, 9]

    def test_spike_survives(self):
        points = [(0, 0, 0), (1, 0, 0), (2, 1, 0), (3, 0, 0), (4, 0, 0)]
        assert ramer_douglas_peucker(points, 0.5) == [0, 2, 4]

    def test_removed_points_within_epsilon(self):
        epsilon = 0.05
        points = [(t / 20, -(t / 20) ** 2 * 4.9, 0.0) for t in range(41)]
        kept = ramer_douglas_peucker(points, epsilon)
        assert kept[0] == 0
        assert kept[-1] == len(points) - 1
        for a, b in zip(kept, kept[1:]):
            for i in range(a + 1, b):
                assert perpendicular_distance(points[i], points[a], points[b]) <= epsilon

    def test_round_trip_path_keeps_turning_point(self):
        # Starts and ends in the same place: the chord has zero length
        points = [(0, 0, 0), (0, 1, 0), (0, 2, 0), (0, 1, 0), (0, 0, 0)]
        kept = ramer_douglas_peucker(points, 5.0)
        assert 2 in kept

    def test_stationary_path_collapses(self):
        points = [(1.0, 1.0, 1.0)] * 6
        assert ramer_douglas_peucker(points, 0.01) == [0, 5]


def _track(points):
    return [
        Keyframe(time=i / 10, values={Property.POSITION: p, Property.ROTATION: (0.0, float(i), 0.0)})
        for i, p in enumerate(points)
    ]


class TestSimplifyKeyframes:
    def test_easings(self):
        track = _track([(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (2.0, 1.0, 0.0), (3.0, 0.0, 0.0), (4.0, 0.0, 0.0)])
        simplified = simplify_keyframes(track, 0.5)
        assert [kf.time for kf in simplified] == [0.0, 0.2, 0.4]
        assert [kf.easing for kf in simplified] == [SIMPLIFIED_SEGMENT_EASING] * 2 + ["none"]

    def test_values_preserved(self):
        track = _track([(float(i), 0.0, 0.0) for i in range(5)])
        simplified = simplify_keyframes(track, 0.1)
        assert simplified[-1].values == track[-1].values
        assert simplified[-1].values[Property.ROTATION] == (0.0, 4.0, 0.0)

    def test_zero_tolerance_keeps_all(self):
        track = _track([(float(i), 0.0, 0.0) for i in range(5)])
        assert simplify_keyframes(track, 0.0) == track

    def test_inputs_untouched(self):
        track = _track([(float(i), 0.0, 0.0) for i in range(5)])
        simplify_keyframes(track, 0.1)
        assert all(kf.easing == "none" for kf in track)
