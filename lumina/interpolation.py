"""Keyframe interpolation: the value of one property at one clip-local time."""

from __future__ import annotations

import bisect
from typing import Optional

from lumina.color import blend
from lumina.easing import curve
from lumina.models import Keyframe, Property, PropertyValue, SceneObject

# Implicit keyframe at the clip start holding the object's base values
_BASE_KEYFRAME = Keyframe(time=0.0, values={}, easing="none")


def lerp_value(start: PropertyValue, end: PropertyValue, t: float) -> PropertyValue:
    """Interpolate scalars, 3-vectors or hex colors at progress ``t``.

    Progress of exactly 0 or 1 returns the matching endpoint unchanged.
    """
    if t == 0:
        return start
    if t == 1:
        return end
    if isinstance(start, str) or isinstance(end, str):
        return blend(start, end, t)
    if isinstance(start, tuple):
        return tuple(a * (1.0 - t) + b * t for a, b in zip(start, end))
    return start * (1.0 - t) + end * t


def bracket(keyframes: list[Keyframe], local_time: float) -> tuple[Keyframe, Keyframe]:
    """Find the departure and arrival keyframes around ``local_time``.

    The departure is the latest keyframe at or before the time (the base
    sentinel when none is); the arrival is the first one after it, or the
    departure itself past the last keyframe.
    """
    times = [kf.time for kf in keyframes]
    idx = bisect.bisect_right(times, local_time)
    departure = keyframes[idx - 1] if idx > 0 else _BASE_KEYFRAME
    arrival = keyframes[idx] if idx < len(keyframes) else departure
    return departure, arrival


def segment_progress(departure: Keyframe, arrival: Keyframe, local_time: float) -> float:
    """Eased progress through a segment, shaped by the arrival keyframe's curve."""
    span = arrival.time - departure.time
    progress = (local_time - departure.time) / span if span > 0 else 1.0
    return curve(arrival.easing)(progress)


def resolve(obj: SceneObject, prop: Property, local_time: float) -> PropertyValue:
    """Resolve a property of ``obj`` at a clip-local time.

    Args:
        obj: The scene object.
        prop: Property to resolve.
        local_time: Seconds since the object's start time.

    Returns:
        The interpolated value; the base value when the object has no
        keyframes or neither bracketing keyframe sets the property.
    """
    base = obj.base_value(prop)
    if not obj.keyframes:
        return base
    departure, arrival = bracket(obj.keyframes, local_time)
    start = departure.values.get(prop, base)
    end = arrival.values.get(prop, base)
    return lerp_value(start, end, segment_progress(departure, arrival, local_time))


def resolve_all(
    obj: SceneObject,
    local_time: float,
    props: Optional[tuple[Property, ...]] = None,
) -> dict[Property, PropertyValue]:
    """Resolve several properties in one pass over the keyframe list."""
    props = obj.animatable if props is None else props
    if not obj.keyframes:
        return {prop: obj.base_value(prop) for prop in props}
    departure, arrival = bracket(obj.keyframes, local_time)
    eased = segment_progress(departure, arrival, local_time)
    out: dict[Property, PropertyValue] = {}
    for prop in props:
        base = obj.base_value(prop)
        out[prop] = lerp_value(
            departure.values.get(prop, base),
            arrival.values.get(prop, base),
            eased,
        )
    return out


def sample(
    obj: SceneObject,
    prop: Property,
    start: float,
    end: float,
    fps: float,
) -> list[tuple[float, PropertyValue]]:
    """Sample a property over ``[start, end]`` clip-local seconds at ``fps``."""
    if fps <= 0 or end < start:
        return []
    count = int(round((end - start) * fps))
    return [
        (round(start + i / fps, 6), resolve(obj, prop, start + i / fps))
        for i in range(count + 1)
    ]
