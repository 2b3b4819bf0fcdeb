"""Tests for lumina.baking: the simulate -> record -> simplify -> merge pipeline."""

import threading

import numpy as np
import pytest

from lumina.baking import (
    BakeState,
    Baker,
    apply_bake,
    bake_scene,
    merge_baked_keyframes,
    preset_impulse,
    source_force,
)
from lumina.errors import LuminaError, BAKE_CANCELLED, INVALID_SIMULATION_SETTINGS
from lumina.models import (
    MAX_BAKE_FPS,
    ForceSettings,
    Keyframe,
    ObjectKind,
    PhysicsSettings,
    Property,
    Scene,
    SceneObject,
    SimulationSettings,
)
from lumina.persistence import dump_scene, load_scene


def _settings(**overrides) -> SimulationSettings:
    values = {"duration": 1.0, "fps": 60, "gravity": -9.81, "simplification_tolerance": 0.0}
    values.update(overrides)
    return SimulationSettings(**values)


class _CancelAfter:
    """Cancel token that fires after a number of checks."""

    def __init__(self, checks: int):
        self.remaining = checks

    def is_set(self) -> bool:
        self.remaining -= 1
        return self.remaining < 0


# ---------------------------------------------------------------------------
# Force presets
# ---------------------------------------------------------------------------

class TestPresets:
    def test_push_up(self):
        assert preset_impulse("push_up", 20.0, np.zeros(3)).tolist() == [0.0, 20.0, 0.0]

    def test_push_forward_is_negative_z(self):
        assert preset_impulse("push_forward", 5.0, np.zeros(3)).tolist() == [0.0, 0.0, -5.0]
        assert preset_impulse("push_backward", 5.0, np.zeros(3)).tolist() == [0.0, 0.0, 5.0]

    def test_radial(self):
        assert preset_impulse("pull_center", 10.0, np.array([2.0, 0.0, 0.0])).tolist() == [-10.0, 0.0, 0.0]
        assert preset_impulse("push_from_center", 10.0, np.array([0.0, 0.0, 3.0])).tolist() == [0.0, 0.0, 10.0]

    def test_radial_at_origin(self):
        assert preset_impulse("pull_center", 10.0, np.zeros(3)) is None

    def test_source_presets_do_not_kick(self):
        assert preset_impulse("pull_in_source", 10.0, np.array([1.0, 0.0, 0.0])) is None
        assert preset_impulse("none", 10.0, np.array([1.0, 0.0, 0.0])) is None

    def test_source_force(self):
        source, target = np.zeros(3), np.array([0.0, 0.0, 3.0])
        assert source_force("pull_in_source", 4.0, source, target).tolist() == [0.0, 0.0, -4.0]
        assert source_force("push_out_source", 4.0, source, target).tolist() == [0.0, 0.0, 4.0]
        assert source_force("push_out_source", 4.0, source, source) is None


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------

class TestSimulate:
    def test_free_fall_records_every_frame(self, falling_box):
        baked = bake_scene([falling_box], 0.0, _settings())
        track = baked["box"]
        assert len(track) == 60
        assert track[0].time == pytest.approx(0.017)
        assert track[-1].time == 1.0
        heights = [kf.values[Property.POSITION][1] for kf in track]
        assert all(b < a for a, b in zip(heights, heights[1:]))
        assert all(kf.easing == "none" for kf in track)
        assert set(track[0].values) == {Property.POSITION, Property.ROTATION}

    def test_only_physics_objects_baked(self, falling_box, cube, ground):
        baked = bake_scene([falling_box, cube, ground], 0.0, _settings())
        assert set(baked) == {"box"}

    def test_disabled_physics_ignored(self, falling_box):
        falling_box.physics.enabled = False
        assert bake_scene([falling_box], 0.0, _settings()) == {}

    def test_lands_on_static_ground(self, ground):
        box = SceneObject(
            id="box",
            kind=ObjectKind.MESH,
            position=(0.0, 3.0, 0.0),
            duration=10.0,
            physics=PhysicsSettings(enabled=True),
        )
        track = bake_scene([ground, box], 0.0, _settings(duration=2.0))["box"]
        heights = [kf.values[Property.POSITION][1] for kf in track]
        assert min(heights) > 0.9
        assert heights[-1] < 3.0

    def test_starts_from_animated_position(self, falling_box):
        falling_box.keyframes = [
            Keyframe(time=0.0, values={Property.POSITION: (0.0, 5.0, 0.0)}),
            Keyframe(time=2.0, values={Property.POSITION: (4.0, 5.0, 0.0)}, easing="linear"),
        ]
        track = bake_scene([falling_box], 1.0, _settings(duration=0.1))["box"]
        assert track[0].values[Property.POSITION][0] == pytest.approx(2.0)

    def test_push_up_impulse(self, falling_box):
        falling_box.physics.force = ForceSettings(preset="push_up", strength=20.0)
        track = bake_scene([falling_box], 0.0, _settings(duration=0.5))["box"]
        assert track[0].values[Property.POSITION][1] > 5.0

    def test_source_pulls_others(self, falling_box):
        source = SceneObject(
            id="magnet",
            kind=ObjectKind.MESH,
            position=(0.0, 5.0, -4.0),
            duration=10.0,
            physics=PhysicsSettings(
                enabled=True,
                body_type="static",
                force=ForceSettings(preset="pull_in_source", strength=50.0),
            ),
        )
        track = bake_scene([falling_box, source], 0.0, _settings(duration=0.5, gravity=0.0))["box"]
        assert track[-1].values[Property.POSITION][2] < 0.0

    def test_time_scale_slows_motion(self, falling_box):
        normal = bake_scene([falling_box], 0.0, _settings())["box"]
        slow = bake_scene([falling_box], 0.0, _settings(time_scale=0.5))["box"]
        assert len(slow) == len(normal)
        assert slow[-1].values[Property.POSITION][1] > normal[-1].values[Property.POSITION][1]

    def test_invalid_settings(self, falling_box):
        with pytest.raises(LuminaError) as exc_info:
            bake_scene([falling_box], 0.0, _settings(fps=0))
        assert exc_info.value.code == INVALID_SIMULATION_SETTINGS


class TestSimplifyAndRetime:
    def test_tolerance_reduces_keyframes(self, falling_box):
        baked = bake_scene([falling_box], 0.0, _settings(simplification_tolerance=0.01))["box"]
        assert 2 <= len(baked) < 60
        assert baked[-1].time == 1.0
        assert baked[-1].easing == "none"
        assert all(kf.easing == "power1.out" for kf in baked[:-1])

    def test_retime_ease_in(self):
        baker = Baker(_settings(duration=2.0, post_easing="ease-in"))
        retimed = baker.retime({"a": [Keyframe(time=1.0), Keyframe(time=2.0)]})
        assert [kf.time for kf in retimed["a"]] == pytest.approx([0.5, 2.0])

    def test_retime_none_is_identity(self):
        baked = {"a": [Keyframe(time=1.0)]}
        assert Baker(_settings()).retime(baked) is baked


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------

class TestMerge:
    def _track(self) -> SceneObject:
        return SceneObject(
            id="obj",
            kind=ObjectKind.MESH,
            start_time=1.0,
            duration=10.0,
            keyframes=[
                Keyframe(time=0.0, values={Property.OPACITY: 0.0}),
                Keyframe(time=2.0, values={Property.OPACITY: 0.5}),
                Keyframe(time=4.0, values={Property.OPACITY: 1.0}),
            ],
        )

    def test_window_replaced(self):
        obj = self._track()
        baked = [
            Keyframe(time=0.5, values={Property.POSITION: (0.0, 1.0, 0.0)}),
            Keyframe(time=1.0, values={Property.POSITION: (0.0, 0.0, 0.0)}),
        ]
        merged = merge_baked_keyframes(obj, baked, start_time=2.5, duration=1.0)
        assert [kf.time for kf in merged] == [0.0, 2.0, 2.5, 4.0]
        assert Property.POSITION in merged[1].values

    def test_no_existing_keyframe_inside_window(self):
        obj = self._track()
        baked = [Keyframe(time=t / 10) for t in range(1, 11)]
        merged = merge_baked_keyframes(obj, baked, start_time=1.5, duration=1.0)
        baked_times = {round(1.5 + kf.time - obj.start_time, 6) for kf in baked}
        for kf in merged:
            absolute = obj.start_time + kf.time
            if 1.5 <= absolute <= 2.5:
                assert round(kf.time, 6) in baked_times

    def test_drops_keyframes_before_clip(self):
        obj = SceneObject(id="late", kind=ObjectKind.MESH, start_time=2.0)
        baked = [Keyframe(time=0.5), Keyframe(time=2.5)]
        merged = merge_baked_keyframes(obj, baked, start_time=0.0, duration=3.0)
        assert [kf.time for kf in merged] == [0.5]

    def test_apply_bake_is_copy_on_write(self, falling_box, cube):
        baked = {"box": [Keyframe(time=0.5, values={Property.POSITION: (0.0, 4.0, 0.0)})]}
        merged = apply_bake([falling_box, cube], baked, 0.0, 1.0)
        assert merged[1] is cube
        assert merged[0] is not falling_box
        assert falling_box.keyframes == []
        assert [kf.time for kf in merged[0].keyframes] == [0.5]


# ---------------------------------------------------------------------------
# Baker state machine
# ---------------------------------------------------------------------------

class TestBaker:
    def test_run_merges(self, falling_box, cube):
        baker = Baker(_settings())
        objects = baker.run([falling_box, cube], 0.0)
        assert baker.state is BakeState.MERGED
        assert len(objects[0].keyframes) == 60
        assert objects[1] is cube
        assert falling_box.keyframes == []

    def test_progress_stages(self, falling_box):
        calls = []
        Baker(_settings(simplification_tolerance=0.01, post_easing="ease-out"),
              progress_callback=lambda *args: calls.append(args)).run([falling_box], 0.0)
        stages = []
        for _, _, stage, _ in calls:
            if not stages or stages[-1] != stage:
                stages.append(stage)
        assert stages == ["simulating", "recording", "simplifying", "retiming", "merged"]
        assert calls[-1][3] == "done"
        recording = [c for c in calls if c[2] == "recording"]
        assert recording[-1][:2] == (60, 60)

    def test_cancel_before_start(self, falling_box):
        cancel = threading.Event()
        cancel.set()
        baker = Baker(_settings(), cancel=cancel)
        with pytest.raises(LuminaError) as exc_info:
            baker.run([falling_box], 0.0)
        assert exc_info.value.code == BAKE_CANCELLED
        assert baker.state is BakeState.IDLE
        assert falling_box.keyframes == []

    def test_cancel_mid_run(self, falling_box):
        baker = Baker(_settings(), cancel=_CancelAfter(10))
        with pytest.raises(LuminaError) as exc_info:
            baker.run([falling_box], 0.0)
        assert exc_info.value.context == {"step": 11, "total": 60}
        assert baker.state is BakeState.IDLE
        assert falling_box.keyframes == []


class TestKeyframeSpacing:
    def test_fps_beyond_keyframe_resolution_rejected(self, falling_box):
        with pytest.raises(LuminaError) as exc_info:
            Baker(_settings(duration=0.01, fps=3000)).run([falling_box], 0.0)
        assert exc_info.value.code == INVALID_SIMULATION_SETTINGS
        assert falling_box.keyframes == []

    def test_highest_fps_bake_reloads(self, falling_box):
        objects = Baker(_settings(duration=0.5, fps=MAX_BAKE_FPS)).run([falling_box], 0.0)
        times = [kf.time for kf in objects[0].keyframes]
        assert len(set(times)) == len(times) == 50
        restored = load_scene(dump_scene(Scene(objects=objects)))
        assert len(restored.get("box").keyframes) == 50

    def test_retime_keeps_last_frame_of_partial_step(self, falling_box):
        raw = bake_scene([falling_box], 0.0, _settings(duration=0.25, fps=30))["box"]
        retimed = bake_scene([falling_box], 0.0, _settings(duration=0.25, fps=30, post_easing="ease-out"))["box"]
        assert raw[-1].time == 0.267
        assert retimed[-1].time == 0.267
        assert retimed[-1].values == raw[-1].values

    def test_retimed_track_has_no_coincident_keyframes(self, falling_box):
        for easing in ("ease-in", "ease-out", "ease-in-out"):
            objects = Baker(_settings(post_easing=easing)).run([falling_box], 0.0)
            track = objects[0].keyframes
            assert track[-1].time == 1.0
            assert all(b.time - a.time > 0.0095 for a, b in zip(track, track[1:]))
            restored = load_scene(dump_scene(Scene(objects=objects)))
            assert len(restored.get("box").keyframes) == len(track)

    def test_run_merges_over_the_recorded_span(self):
        obj = SceneObject(
            id="box",
            kind=ObjectKind.MESH,
            position=(0.0, 5.0, 0.0),
            duration=10.0,
            physics=PhysicsSettings(enabled=True),
            keyframes=[
                Keyframe(time=0.26, values={Property.OPACITY: 1.0}),
                Keyframe(time=0.5, values={Property.OPACITY: 0.5}),
            ],
        )
        objects = Baker(_settings(duration=0.25, fps=30)).run([obj], 0.0)
        times = [kf.time for kf in objects[0].keyframes]
        assert 0.26 not in times
        assert times[-2:] == [0.267, 0.5]

    def test_merge_drops_neighbour_in_same_time_slot(self):
        obj = SceneObject(
            id="obj",
            kind=ObjectKind.MESH,
            keyframes=[Keyframe(time=0.0), Keyframe(time=0.27), Keyframe(time=1.0)],
        )
        baked = [Keyframe(time=0.1), Keyframe(time=0.267)]
        merged = merge_baked_keyframes(obj, baked, start_time=0.0, duration=0.267)
        assert [kf.time for kf in merged] == [0.1, 0.267, 1.0]
