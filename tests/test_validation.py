"""Tests for lumina.validation: dry-run keyframe and scene checks."""

from lumina.models import ObjectKind
from lumina.persistence import dump_scene
from lumina.validation import validate_keyframes, validate_scene


def _codes(entries):
    return [e["code"] for e in entries]


class TestValidateKeyframes:
    def test_valid_list(self):
        result = validate_keyframes("- {time: 0, values: {opacity: 0}}\n- {time: 1, easing: power2.out}\n")
        assert result.valid
        assert result.keyframe_count == 2
        assert result.to_dict()["errors"] == []

    def test_reports_every_problem(self):
        raw = [
            {"time": -1},
            {"time": 1, "values": {"bogus": 1}},
            {"time": 1, "easing": "wobble"},
            {"values": {"opacity": 1}},
        ]
        result = validate_keyframes(raw)
        assert not result.valid
        codes = _codes(result.errors)
        assert "INVALID_KEYFRAME_TIME" in codes
        assert "UNKNOWN_PROPERTY" in codes
        assert "INVALID_EASING" in codes
        assert "DUPLICATE_KEYFRAME_TIME" in codes
        assert "MISSING_FIELD" in codes
        assert result.errors[0]["index"] == 0

    def test_bad_value_shape(self):
        result = validate_keyframes([{"time": 0, "values": {"position": [1, 2]}}])
        assert _codes(result.errors) == ["INVALID_PROPERTY_VALUE"]

    def test_not_a_list(self):
        result = validate_keyframes("time: 1\n")
        assert _codes(result.errors) == ["INVALID_KEYFRAMES"]
        assert result.keyframe_count is None

    def test_unparseable(self):
        result = validate_keyframes("- time: [1\n")
        assert _codes(result.errors) == ["INVALID_DOCUMENT"]

    def test_times_in_one_slot(self):
        result = validate_keyframes([{"time": 1.0}, {"time": 2.0}, {"time": 1.004}])
        assert _codes(result.errors) == ["DUPLICATE_KEYFRAME_TIME"]
        assert result.errors[0]["index"] == 2

    def test_unsorted_warning(self):
        result = validate_keyframes([{"time": 2}, {"time": 1}])
        assert result.valid
        assert _codes(result.warnings) == ["UNSORTED_KEYFRAMES"]

    def test_property_not_animatable_for_kind(self):
        result = validate_keyframes([{"time": 0, "values": {"opacity": 0.5}}], kind=ObjectKind.CAMERA)
        assert result.valid
        assert _codes(result.warnings) == ["PROPERTY_NOT_ANIMATABLE"]
        assert result.warnings[0]["property"] == "opacity"

    def test_past_clip_end(self):
        result = validate_keyframes([{"time": 6}], clip_duration=5.0)
        assert _codes(result.warnings) == ["KEYFRAME_OUTSIDE_CLIP"]


def _scene(*entries):
    return {"projectName": "Test", "timeline": list(entries)}


class TestValidateScene:
    def test_valid_scene(self, sample_scene):
        result = validate_scene(dump_scene(sample_scene))
        assert result.valid
        assert result.object_count == 3
        assert result.warnings == []

    def test_not_a_mapping(self):
        result = validate_scene("- 1\n")
        assert _codes(result.errors) == ["INVALID_DOCUMENT"]

    def test_keyframe_errors_name_object(self):
        result = validate_scene(_scene(
            {"id": "a", "type": "mesh", "keyframes": [{"time": -1}, {"time": 1, "values": {"bogus": 1}}]},
        ))
        assert _codes(result.errors) == ["INVALID_KEYFRAME_TIME", "UNKNOWN_PROPERTY"]
        assert all(e["object"] == "a" for e in result.errors)
        assert result.object_count is None

    def test_duplicate_ids(self):
        result = validate_scene(_scene({"id": "a", "type": "mesh"}, {"id": "a", "type": "plane"}))
        assert _codes(result.errors) == ["DUPLICATE_OBJECT_ID"]

    def test_unknown_kind(self):
        result = validate_scene(_scene({"id": "a", "type": "teapot"}))
        assert _codes(result.errors) == ["INVALID_OBJECT_KIND"]

    def test_transition_longer_than_clip(self):
        result = validate_scene(_scene({
            "id": "a",
            "type": "mesh",
            "timing": {"start": 0, "duration": 0.3},
            "transitions": {"intro": {"type": "custom", "duration": 0.4}},
        }))
        assert result.valid
        assert _codes(result.warnings) == ["TRANSITION_EXCEEDS_CLIP"]

    def test_empty_clip(self):
        result = validate_scene(_scene({"id": "a", "type": "mesh", "timing": {"duration": 0}}))
        assert _codes(result.warnings) == ["EMPTY_CLIP"]

    def test_keyframe_past_clip(self):
        result = validate_scene(_scene({
            "id": "a", "type": "mesh", "timing": {"duration": 1}, "keyframes": [{"time": 2}],
        }))
        assert "KEYFRAME_OUTSIDE_CLIP" in _codes(result.warnings)

    def test_physics_on_camera(self):
        result = validate_scene(_scene({"id": "c", "type": "camera", "physics": {"enabled": True}}))
        assert result.valid
        assert _codes(result.warnings) == ["PHYSICS_ON_NON_PHYSICAL_OBJECT"]

    def test_dynamic_body_needs_mass(self):
        result = validate_scene(_scene({"id": "a", "type": "mesh", "physics": {"enabled": True, "mass": 0}}))
        assert _codes(result.errors) == ["INVALID_MASS"]

    def test_static_body_may_be_massless(self):
        result = validate_scene(_scene({
            "id": "a", "type": "mesh", "physics": {"enabled": True, "type": "static", "mass": 0},
        }))
        assert result.valid
