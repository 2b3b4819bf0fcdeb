"""Temporal evaluation: resolve every object of a scene at one instant.

The evaluator is pure. It reads ``SceneObject`` records and returns
``ResolvedState`` records for the renderer; nothing here mutates the model
except ``record_keyframe``, which authors a keyframe at the playhead.
"""

from __future__ import annotations

from typing import Optional

from lumina.interpolation import resolve_all
from lumina.models import (
    ActiveCamera,
    Keyframe,
    ObjectKind,
    Property,
    PropertyValue,
    ResolvedState,
    SceneFrame,
    SceneObject,
    TRANSFORM_PROPERTIES,
)
from lumina.transitions import apply_intro, apply_outro


def evaluate(
    obj: SceneObject,
    absolute_time: float,
    camera_override_active: bool = False,
) -> ResolvedState:
    """Resolve one object at a global timeline time.

    Args:
        obj: The scene object.
        absolute_time: Seconds on the global timeline.
        camera_override_active: True while the user is orbiting the
            viewport; a camera object then does not drive the active camera.

    Returns:
        The resolved state. Outside ``[start_time, start_time + duration]``
        or with the object's visibility flag off, the state is marked
        invisible and carries no resolved values.
    """
    local_time = absolute_time - obj.start_time
    if not obj.visible or not obj.contains(absolute_time):
        return ResolvedState(object_id=obj.id, kind=obj.kind, visible=False, local_time=local_time)

    animatable = obj.animatable
    values = resolve_all(obj, local_time, animatable)
    transform = [values.get(p, obj.base_value(p)) for p in TRANSFORM_PROPERTIES]
    properties = {p: v for p, v in values.items() if p not in TRANSFORM_PROPERTIES}

    is_camera = obj.kind is ObjectKind.CAMERA
    state = ResolvedState(
        object_id=obj.id,
        kind=obj.kind,
        visible=True,
        local_time=local_time,
        position=transform[0],
        rotation=transform[1],
        scale=transform[2],
        properties=properties,
        fov=obj.camera_fov if is_camera else None,
        drives_camera=is_camera and not camera_override_active,
    )
    state = apply_intro(state, obj, local_time)
    return apply_outro(state, obj, local_time)


def evaluate_scene(
    objects: list[SceneObject],
    absolute_time: float,
    camera_override_active: bool = False,
) -> SceneFrame:
    """Evaluate every object at one time snapshot.

    Invisible objects are left out of the frame. Camera objects that drive
    the camera update the active camera in scene order, so the last visible
    camera wins.
    """
    frame = SceneFrame(time=absolute_time)
    for obj in objects:
        state = evaluate(obj, absolute_time, camera_override_active)
        if not state.visible:
            continue
        frame.states.append(state)
        if state.drives_camera:
            frame.active_camera = ActiveCamera(
                object_id=obj.id,
                position=state.position,
                rotation=state.rotation,
                fov=state.fov,
            )
    return frame


def camera_override_after_seek(active: bool, seeked: bool) -> bool:
    """Next value of the camera override flag; an explicit seek clears it."""
    return active and not seeked


def capture_values(obj: SceneObject, local_time: float) -> dict[Property, PropertyValue]:
    """Interpolated values of every property the object's kind animates.

    Transitions are not applied: the result is what a keyframe placed at
    ``local_time`` should hold to leave the animation unchanged.
    """
    return resolve_all(obj, local_time, obj.animatable)


def record_keyframe(
    obj: SceneObject,
    absolute_time: float,
    easing: str = "none",
    name: Optional[str] = None,
) -> Keyframe:
    """Add a keyframe at the playhead holding the object's current values.

    The clip-local time is clamped to 0 and rounded to milliseconds; an
    existing keyframe at that time absorbs the captured values.
    """
    local_time = round(max(0.0, absolute_time - obj.start_time), 3)
    values = capture_values(obj, local_time)
    return obj.add_keyframe(local_time, values, easing=easing, name=name)
