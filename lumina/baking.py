"""Physics baking: simulate, record, simplify, re-time and merge keyframes.

A bake turns the rigid-body motion of every physics-enabled object into
ordinary keyframes. Nothing touches the scene model until every step,
the simplification and the re-timing have completed; a cancelled bake
leaves no trace.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional, Protocol

import numpy as np

from lumina.easing import curve
from lumina.errors import LuminaError, BAKE_CANCELLED, recovery_hints
from lumina.evaluator import evaluate
from lumina.interpolation import resolve_all
from lumina.models import (
    DIRECTIONAL_PRESETS,
    Keyframe,
    Property,
    RADIAL_PRESETS,
    SOURCE_PRESETS,
    SceneObject,
    SimulationSettings,
    TRANSFORM_PROPERTIES,
    times_coincide,
)
from lumina.physics import ContactMaterial, PhysicsConfig, PhysicsWorld, RigidBody
from lumina.simplify import simplify_keyframes

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str, str], None]

# World-axis directions of the directional presets; forward is away from
# the default camera, which looks down -Z
PRESET_DIRECTIONS: dict[str, tuple[float, float, float]] = {
    "push_up": (0.0, 1.0, 0.0),
    "push_down": (0.0, -1.0, 0.0),
    "push_forward": (0.0, 0.0, -1.0),
    "push_backward": (0.0, 0.0, 1.0),
}


class CancelToken(Protocol):
    def is_set(self) -> bool: ...


class BakeState(str, Enum):
    IDLE = "idle"
    SIMULATING = "simulating"
    RECORDING = "recording"
    SIMPLIFYING = "simplifying"
    RETIMING = "retiming"
    MERGED = "merged"


# ---------------------------------------------------------------------------
# Force presets
# ---------------------------------------------------------------------------

def _unit(vector: np.ndarray) -> Optional[np.ndarray]:
    """Normalize a vector, or None for a zero-length one."""
    norm = float(np.linalg.norm(vector))
    if norm == 0.0 or not np.isfinite(norm):
        return None
    return vector / norm


def preset_impulse(preset: str, strength: float, position: np.ndarray) -> Optional[np.ndarray]:
    """One-time impulse of a directional or radial preset at ``position``.

    Returns None for presets that do not kick at t=0 and for radial
    presets on a body sitting exactly at the origin.
    """
    if preset in DIRECTIONAL_PRESETS:
        return np.asarray(PRESET_DIRECTIONS[preset]) * strength
    if preset in RADIAL_PRESETS:
        direction = _unit(np.asarray(position, dtype=float))
        if direction is None:
            return None
        sign = -1.0 if preset == "pull_center" else 1.0
        return direction * sign * strength
    return None


def source_force(
    preset: str,
    strength: float,
    source: np.ndarray,
    target: np.ndarray,
) -> Optional[np.ndarray]:
    """Continuous force a source-relative preset exerts on ``target``."""
    direction = _unit(np.asarray(target, dtype=float) - np.asarray(source, dtype=float))
    if direction is None:
        return None
    sign = -1.0 if preset == "pull_in_source" else 1.0
    return direction * sign * strength


def _drop_coincident(keyframes: list[Keyframe]) -> list[Keyframe]:
    """Thin a sorted track so no two keyframes share a time slot; the last one always survives."""
    kept: list[Keyframe] = []
    for i, kf in enumerate(keyframes):
        if kept and times_coincide(kept[-1].time, kf.time):
            if i == len(keyframes) - 1:
                kept[-1] = kf
            continue
        kept.append(kf)
    return kept


# ---------------------------------------------------------------------------
# Baker
# ---------------------------------------------------------------------------

class Baker:
    """Runs one bake through the Idle → ... → Merged state machine.

    Args:
        settings: Simulation parameters (defaults from lumina.config).
        cancel: Optional token with ``is_set()``, checked before every step.
        progress_callback: Optional callable(step, total, stage, status).
    """

    def __init__(
        self,
        settings: Optional[SimulationSettings] = None,
        cancel: Optional[CancelToken] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        self.settings = settings or SimulationSettings()
        self.cancel = cancel
        self.progress_callback = progress_callback
        self.state = BakeState.IDLE

    def _enter(self, state: BakeState, step: int = 0, total: int = 0):
        self.state = state
        logger.info(f"Bake state: {state.value}")
        if self.progress_callback:
            self.progress_callback(step, total, state.value, "running")

    def _check_cancelled(self, step: int, total: int):
        if self.cancel is not None and self.cancel.is_set():
            self.state = BakeState.IDLE
            logger.info(f"Bake cancelled before step {step}/{total}; discarding recorded keyframes")
            raise LuminaError(
                code=BAKE_CANCELLED,
                message=f"Bake cancelled at step {step} of {total}",
                recovery=recovery_hints(BAKE_CANCELLED),
                context={"step": step, "total": total},
            )

    def _setup(self, objects: list[SceneObject], start_time: float) -> tuple[PhysicsWorld, list[SceneObject]]:
        world = PhysicsWorld(PhysicsConfig(gravity=(0.0, self.settings.gravity, 0.0)))
        participants = [o for o in objects if o.physics is not None and o.physics.enabled]
        for obj in participants:
            state = evaluate(obj, start_time)
            if state.visible:
                position, rotation, scale = state.position, state.rotation, state.scale
            else:
                values = resolve_all(obj, start_time - obj.start_time, TRANSFORM_PROPERTIES)
                position, rotation, scale = (values[p] for p in TRANSFORM_PROPERTIES)
            physics = obj.physics
            world.add_body(RigidBody.box(
                obj.id,
                scale=scale,
                position=position,
                rotation_degrees=rotation,
                mass=0.0 if physics.is_static else physics.mass,
                friction=physics.friction,
                restitution=physics.restitution,
            ))

        bodies = list(world.bodies.values())
        for i, a in enumerate(bodies):
            for b in bodies[i + 1:]:
                world.add_contact_material(a.id, b.id, ContactMaterial(
                    friction=min(a.friction, b.friction),
                    restitution=max(a.restitution, b.restitution),
                ))
        return world, participants

    def _apply_impulses(self, world: PhysicsWorld, participants: list[SceneObject]):
        for obj in participants:
            force = obj.physics.force
            body = world.bodies[obj.id]
            if force is None or body.is_static:
                continue
            impulse = preset_impulse(force.preset, force.strength, body.position)
            if impulse is None:
                if force.preset in RADIAL_PRESETS:
                    logger.debug(f"{obj.id}: at the origin, radial impulse skipped")
                continue
            world.add_impulse(obj.id, impulse)
            logger.debug(f"{obj.id}: impulse {impulse.tolist()} ({force.preset})")

    def _apply_source_forces(self, world: PhysicsWorld, sources: list[SceneObject]):
        for source in sources:
            force = source.physics.force
            origin = world.bodies[source.id].position
            for body in world.bodies.values():
                if body.id == source.id or body.is_static:
                    continue
                vector = source_force(force.preset, force.strength, origin, body.position)
                if vector is not None:
                    world.add_force(body.id, vector)

    def simulate(self, objects: list[SceneObject], start_time: float) -> dict[str, list[Keyframe]]:
        """Step the world and record raw keyframes for every dynamic body.

        Keyframe times are simulation-local: ``step / fps`` rounded to the
        millisecond, for steps 1..N.
        """
        settings = self.settings
        settings.validate()
        total = settings.total_steps
        dt = settings.time_step

        self._enter(BakeState.SIMULATING, 0, total)
        world, participants = self._setup(objects, start_time)
        dynamic = [o.id for o in participants if not world.bodies[o.id].is_static]
        sources = [
            o for o in participants
            if o.physics.force is not None and o.physics.force.preset in SOURCE_PRESETS
        ]
        logger.info(
            f"Simulating {len(participants)} bodies ({len(dynamic)} dynamic) "
            f"for {total} steps at dt={dt:.5f}s"
        )
        self._apply_impulses(world, participants)

        self.state = BakeState.RECORDING
        recorded: dict[str, list[Keyframe]] = {body_id: [] for body_id in dynamic}
        for step in range(1, total + 1):
            self._check_cancelled(step, total)
            self._apply_source_forces(world, sources)
            world.step(dt)
            time = round(step / settings.fps, 3)
            for body_id in dynamic:
                body = world.bodies[body_id]
                recorded[body_id].append(Keyframe(
                    time=time,
                    values={
                        Property.POSITION: body.position_tuple(),
                        Property.ROTATION: body.euler_degrees(),
                    },
                    easing="none",
                ))
            if self.progress_callback:
                self.progress_callback(step, total, BakeState.RECORDING.value, "running")
        return recorded

    def simplify(self, recorded: dict[str, list[Keyframe]]) -> dict[str, list[Keyframe]]:
        tolerance = self.settings.simplification_tolerance
        if tolerance <= 0:
            return recorded
        self._enter(BakeState.SIMPLIFYING)
        out = {}
        for body_id, keyframes in recorded.items():
            out[body_id] = simplify_keyframes(keyframes, tolerance)
            logger.debug(f"{body_id}: {len(keyframes)} -> {len(out[body_id])} keyframes")
        return out

    def retime(self, baked: dict[str, list[Keyframe]]) -> dict[str, list[Keyframe]]:
        """Remap keyframe times through the post-bake easing.

        Times are normalised by the last recorded frame, so the end of the
        bake stays where it was. Interior keyframes squeezed into the time
        slot of a neighbour are dropped.
        """
        easing = self.settings.post_easing
        if easing == "none":
            return baked
        self._enter(BakeState.RETIMING)
        ease = curve(easing)
        span = self.settings.recorded_span
        out = {}
        for body_id, keyframes in baked.items():
            if not keyframes:
                out[body_id] = keyframes
                continue
            retimed = [
                Keyframe(time=round(ease(kf.time / span) * span, 3), values=kf.values, easing=kf.easing, name=kf.name)
                for kf in keyframes[:-1]
            ]
            retimed.append(keyframes[-1])
            out[body_id] = _drop_coincident(retimed)
            if len(out[body_id]) < len(keyframes):
                logger.debug(f"{body_id}: retiming merged {len(keyframes) - len(out[body_id])} keyframes")
        return out

    def bake(self, objects: list[SceneObject], start_time: float) -> dict[str, list[Keyframe]]:
        """Run simulation, simplification and re-timing.

        Returns:
            Simulation-local keyframes per dynamic object id.

        Raises:
            LuminaError: BAKE_CANCELLED if the cancel token fires, or
                INVALID_SIMULATION_SETTINGS for unusable settings.
        """
        recorded = self.simulate(objects, start_time)
        baked = self.retime(self.simplify(recorded))
        logger.info(
            f"Baked {sum(len(k) for k in baked.values())} keyframes "
            f"for {len(baked)} objects"
        )
        return baked

    def run(self, objects: list[SceneObject], start_time: float) -> list[SceneObject]:
        """Bake and merge; returns new objects, leaving the inputs untouched."""
        baked = self.bake(objects, start_time)
        merged = apply_bake(objects, baked, start_time, self.settings.recorded_span)
        self._enter(BakeState.MERGED)
        if self.progress_callback:
            self.progress_callback(1, 1, BakeState.MERGED.value, "done")
        return merged


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def bake_scene(
    objects: list[SceneObject],
    start_time: float,
    settings: Optional[SimulationSettings] = None,
    cancel: Optional[CancelToken] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> dict[str, list[Keyframe]]:
    """Bake physics for every physics-enabled object starting at ``start_time``.

    Args:
        objects: Scene objects; only those with ``physics.enabled`` take part.
        start_time: Global timeline time at which the simulation starts.
        settings: Simulation parameters.
        cancel: Optional cancellation token (e.g. ``threading.Event``).
        progress_callback: Optional callable(step, total, stage, status).

    Returns:
        Simulation-local keyframes per dynamic object id, ready for
        ``apply_bake``.
    """
    return Baker(settings, cancel, progress_callback).bake(objects, start_time)


def merge_baked_keyframes(
    obj: SceneObject,
    baked: list[Keyframe],
    start_time: float,
    duration: float,
) -> list[Keyframe]:
    """Splice simulation-local keyframes into an object's track.

    Existing keyframes whose global time lies in ``[start_time,
    start_time + duration]`` are dropped, and so is any keyframe outside
    that window sharing a time slot with a baked one. Baked keyframes are
    shifted to clip-local time and the result is sorted; baked keyframes
    that would land before the clip starts are discarded.
    """
    end_time = start_time + duration
    shifted = [
        Keyframe(
            time=start_time + kf.time - obj.start_time,
            values=dict(kf.values),
            easing=kf.easing,
            name=kf.name,
        )
        for kf in baked
        if start_time + kf.time >= obj.start_time
    ]
    kept = [
        kf for kf in obj.keyframes
        if (obj.start_time + kf.time < start_time or obj.start_time + kf.time > end_time)
        and not any(times_coincide(kf.time, b.time) for b in shifted)
    ]
    return sorted(kept + shifted, key=lambda k: k.time)


def apply_bake(
    objects: list[SceneObject],
    baked: dict[str, list[Keyframe]],
    start_time: float,
    duration: float,
) -> list[SceneObject]:
    """Return a new object list with baked keyframes merged in.

    Objects without baked keyframes are returned as they are; the others
    are replaced by copies holding the merged track.
    """
    out = []
    for obj in objects:
        keyframes = baked.get(obj.id)
        if not keyframes:
            out.append(obj)
            continue
        out.append(obj.with_keyframes(merge_baked_keyframes(obj, keyframes, start_time, duration)))
    return out
