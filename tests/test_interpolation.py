"""Tests for lumina.interpolation: resolving keyframed values."""

import pytest

from lumina.interpolation import bracket, lerp_value, resolve, resolve_all, sample
from lumina.models import Keyframe, ObjectKind, Property, SceneObject


class TestLerpValue:
    def test_scalar(self):
        assert lerp_value(0.0, 10.0, 0.25) == pytest.approx(2.5)

    def test_vector(self):
        assert lerp_value((0.0, 0.0, 0.0), (2.0, 4.0, 6.0), 0.5) == pytest.approx((1.0, 2.0, 3.0))

    def test_endpoints_exact(self):
        start, end = (0.1, 0.2, 0.3), (7.7, 8.8, 9.9)
        assert lerp_value(start, end, 0) is start
        assert lerp_value(start, end, 1) is end

    def test_color_endpoint_keeps_authored_string(self):
        assert lerp_value("#000000", "#FFAA00", 1) == "#FFAA00"

    def test_color_blends(self):
        assert lerp_value("#000000", "#ffffff", 0.5) == "#bcbcbc"

    def test_overshoot_extrapolates(self):
        assert lerp_value(0.0, 1.0, 1.2) == pytest.approx(1.2)


class TestBracket:
    def test_before_first_uses_base(self):
        track = [Keyframe(time=1.0), Keyframe(time=2.0)]
        departure, arrival = bracket(track, 0.5)
        assert departure.time == 0.0
        assert departure.values == {}
        assert arrival is track[0]

    def test_exact_time_departs_from_keyframe(self):
        track = [Keyframe(time=1.0), Keyframe(time=2.0)]
        departure, arrival = bracket(track, 1.0)
        assert departure is track[0]
        assert arrival is track[1]

    def test_past_last_holds(self):
        track = [Keyframe(time=1.0), Keyframe(time=2.0)]
        departure, arrival = bracket(track, 5.0)
        assert departure is arrival is track[1]


class TestResolve:
    def test_linear_midpoint(self, fading_cube):
        assert resolve(fading_cube, Property.OPACITY, 1.0) == pytest.approx(0.5)

    def test_holds_after_last_keyframe(self, fading_cube):
        assert resolve(fading_cube, Property.OPACITY, 3.0) == 1.0

    def test_keyframe_times_exact(self, fading_cube):
        assert resolve(fading_cube, Property.OPACITY, 0.0) == 0.0
        assert resolve(fading_cube, Property.OPACITY, 2.0) == 1.0

    def test_no_keyframes_returns_base(self, cube):
        cube.position = (1.0, 2.0, 3.0)
        assert resolve(cube, Property.POSITION, 4.2) == (1.0, 2.0, 3.0)

    def test_base_sentinel_before_first_keyframe(self, cube):
        cube.keyframes = [Keyframe(time=2.0, values={Property.OPACITY: 0.0}, easing="linear")]
        assert resolve(cube, Property.OPACITY, 1.0) == pytest.approx(0.5)

    def test_unset_property_uses_base(self, fading_cube):
        fading_cube.position = (0.0, 3.0, 0.0)
        assert resolve(fading_cube, Property.POSITION, 1.0) == pytest.approx((0.0, 3.0, 0.0))

    def test_missing_on_one_side_falls_back_to_base(self, cube):
        cube.keyframes = [
            Keyframe(time=0.0, values={Property.POSITION: (0.0, 0.0, 0.0)}),
            Keyframe(time=1.0, values={Property.OPACITY: 0.0}),
            Keyframe(time=2.0, values={Property.POSITION: (0.0, 4.0, 0.0)}, easing="linear"),
        ]
        cube.position = (0.0, 2.0, 0.0)
        # Segment 1 -> 2 departs from the base position
        assert resolve(cube, Property.POSITION, 1.5) == pytest.approx((0.0, 3.0, 0.0))

    def test_arrival_easing_shapes_segment(self, cube):
        cube.keyframes = [
            Keyframe(time=0.0, values={Property.OPACITY: 0.0}, easing="steps(1)"),
            Keyframe(time=1.0, values={Property.OPACITY: 1.0}, easing="power1.out"),
        ]
        assert resolve(cube, Property.OPACITY, 0.5) == pytest.approx(0.75)

    def test_color_track(self, cube):
        cube.keyframes = [
            Keyframe(time=0.0, values={Property.COLOR: "#000000"}),
            Keyframe(time=1.0, values={Property.COLOR: "#ffffff"}),
        ]
        assert resolve(cube, Property.COLOR, 0.0) == "#000000"
        assert resolve(cube, Property.COLOR, 0.5) == "#bcbcbc"


class TestResolveAll:
    def test_matches_single_resolution(self, fading_cube):
        values = resolve_all(fading_cube, 0.7)
        for prop, value in values.items():
            assert value == resolve(fading_cube, prop, 0.7)

    def test_defaults_to_animatable(self):
        light = SceneObject(id="sun", kind=ObjectKind.LIGHT)
        assert set(resolve_all(light, 0.0)) == {
            Property.POSITION, Property.ROTATION, Property.COLOR, Property.INTENSITY,
        }

    def test_subset(self, fading_cube):
        assert list(resolve_all(fading_cube, 1.0, (Property.OPACITY,))) == [Property.OPACITY]


class TestSample:
    def test_sample_count_and_times(self, fading_cube):
        samples = sample(fading_cube, Property.OPACITY, 0.0, 2.0, 2)
        assert [t for t, _ in samples] == [0.0, 0.5, 1.0, 1.5, 2.0]
        assert [v for _, v in samples] == pytest.approx([0.0, 0.25, 0.5, 0.75, 1.0])

    def test_empty_range(self, fading_cube):
        assert sample(fading_cube, Property.OPACITY, 2.0, 1.0, 10) == []
        assert sample(fading_cube, Property.OPACITY, 0.0, 1.0, 0) == []
