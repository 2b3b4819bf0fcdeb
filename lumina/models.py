"""Data models for Lumina. All JSON-serializable via to_dict / from_dict."""

from __future__ import annotations

import bisect
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional, Union

from lumina.color import is_color
from lumina.easing import curve
from lumina.config import (
    BAKE_DURATION,
    BAKE_FPS,
    GRAVITY,
    KEYFRAME_TIME_TOLERANCE,
    SIMPLIFY_TOLERANCE,
)
from lumina.errors import (
    LuminaError,
    DUPLICATE_KEYFRAME_TIME,
    INVALID_FORCE_PRESET,
    INVALID_KEYFRAMES,
    INVALID_KEYFRAME_TIME,
    INVALID_OBJECT_KIND,
    INVALID_PROPERTY_VALUE,
    INVALID_SIMULATION_SETTINGS,
    INVALID_TRANSITION,
    KEYFRAME_NOT_FOUND,
    MISSING_FIELD,
    OBJECT_NOT_FOUND,
    UNKNOWN_PROPERTY,
    recovery_hints,
)

Vec3 = tuple[float, float, float]
PropertyValue = Union[float, str, Vec3]


# ---------------------------------------------------------------------------
# Object kinds and properties
# ---------------------------------------------------------------------------

class ObjectKind(str, Enum):
    MESH = "mesh"
    PLANE = "plane"
    VIDEO = "video"
    GLB = "glb"
    SVG = "svg"
    LOTTIE = "lottie"
    AUDIO = "audio"
    CAMERA = "camera"
    LIGHT = "light"


class Property(str, Enum):
    """Animatable properties, valued by their wire names."""
    POSITION = "position"
    ROTATION = "rotation"
    SCALE = "scale"
    OPACITY = "opacity"
    METALNESS = "metalness"
    ROUGHNESS = "roughness"
    TRANSMISSION = "transmission"
    IOR = "ior"
    THICKNESS = "thickness"
    CLEARCOAT = "clearcoat"
    CLEARCOAT_ROUGHNESS = "clearcoatRoughness"
    CURVATURE = "curvature"
    VOLUME = "volume"
    EXTRUSION = "extrusion"
    PATH_LENGTH = "pathLength"
    COLOR = "color"
    INTENSITY = "intensity"


TRANSFORM_PROPERTIES = (Property.POSITION, Property.ROTATION, Property.SCALE)
VECTOR_PROPERTIES = frozenset(TRANSFORM_PROPERTIES)
COLOR_PROPERTIES = frozenset({Property.COLOR})

_MATERIAL = (
    Property.METALNESS,
    Property.ROUGHNESS,
    Property.TRANSMISSION,
    Property.IOR,
    Property.THICKNESS,
    Property.CLEARCOAT,
    Property.CLEARCOAT_ROUGHNESS,
)

_MESH_PROPERTIES = TRANSFORM_PROPERTIES + (Property.OPACITY,) + _MATERIAL + (Property.COLOR,)
_PLANE_PROPERTIES = TRANSFORM_PROPERTIES + (Property.OPACITY, Property.CURVATURE)

# Capability table: which properties each kind resolves and can keyframe
ANIMATABLE_PROPERTIES: dict[ObjectKind, tuple[Property, ...]] = {
    ObjectKind.MESH: _MESH_PROPERTIES,
    ObjectKind.SVG: _MESH_PROPERTIES + (Property.EXTRUSION, Property.PATH_LENGTH),
    ObjectKind.PLANE: _PLANE_PROPERTIES,
    ObjectKind.LOTTIE: TRANSFORM_PROPERTIES + (Property.OPACITY,),
    ObjectKind.VIDEO: _PLANE_PROPERTIES + (Property.VOLUME,),
    ObjectKind.GLB: TRANSFORM_PROPERTIES + (Property.OPACITY,),
    ObjectKind.AUDIO: (Property.POSITION, Property.VOLUME),
    ObjectKind.CAMERA: (Property.POSITION, Property.ROTATION),
    ObjectKind.LIGHT: (Property.POSITION, Property.ROTATION, Property.COLOR, Property.INTENSITY),
}

PROPERTY_DEFAULTS: dict[Property, PropertyValue] = {
    Property.POSITION: (0.0, 0.0, 0.0),
    Property.ROTATION: (0.0, 0.0, 0.0),
    Property.SCALE: (1.0, 1.0, 1.0),
    Property.OPACITY: 1.0,
    Property.METALNESS: 0.2,
    Property.ROUGHNESS: 0.1,
    Property.TRANSMISSION: 0.0,
    Property.IOR: 1.5,
    Property.THICKNESS: 0.5,
    Property.CLEARCOAT: 0.0,
    Property.CLEARCOAT_ROUGHNESS: 0.0,
    Property.CURVATURE: 0.0,
    Property.VOLUME: 1.0,
    Property.EXTRUSION: 0.1,
    Property.PATH_LENGTH: 1.0,
    Property.COLOR: "#ffffff",
    Property.INTENSITY: 1.0,
}

DEFAULT_CAMERA_FOV = 50.0


def default_value(prop: Property) -> PropertyValue:
    """Return the fallback value of a property missing from an object."""
    return PROPERTY_DEFAULTS[prop]


def parse_kind(value: Any) -> ObjectKind:
    """Parse an object kind name, raising LuminaError on unknown kinds."""
    try:
        return ObjectKind(value)
    except ValueError:
        raise LuminaError(
            code=INVALID_OBJECT_KIND,
            message=f"Unknown object kind: {value!r}",
            recovery=recovery_hints(INVALID_OBJECT_KIND),
            context={"kind": value},
        ) from None


def parse_property(value: Any) -> Property:
    """Parse a property wire name, raising LuminaError on unknown names."""
    if isinstance(value, Property):
        return value
    try:
        return Property(value)
    except ValueError:
        raise LuminaError(
            code=UNKNOWN_PROPERTY,
            message=f"Unknown property: {value!r}",
            recovery=recovery_hints(UNKNOWN_PROPERTY),
            context={"property": value},
        ) from None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _bad_value(prop: Property, value: Any, expected: str) -> LuminaError:
    return LuminaError(
        code=INVALID_PROPERTY_VALUE,
        message=f"Invalid value for {prop.value}: {value!r} (expected {expected})",
        recovery=recovery_hints(INVALID_PROPERTY_VALUE),
        context={"property": prop.value, "value": value},
    )


def coerce_vector(value: Any) -> Optional[Vec3]:
    """Coerce ``[x, y, z]`` or ``{x, y, z}`` into a float 3-tuple, or None."""
    if isinstance(value, dict):
        if not all(k in value for k in ("x", "y", "z")):
            return None
        value = [value["x"], value["y"], value["z"]]
    if isinstance(value, (list, tuple)) and len(value) == 3 and all(_is_number(v) for v in value):
        return (float(value[0]), float(value[1]), float(value[2]))
    return None


def coerce_value(prop: Property, value: Any) -> PropertyValue:
    """Validate and normalize a property value.

    Vectors become float 3-tuples, colors stay hex strings and scalars
    become floats.

    Raises:
        LuminaError: If the value does not fit the property's shape.
    """
    if prop in VECTOR_PROPERTIES:
        vec = coerce_vector(value)
        if vec is None:
            raise _bad_value(prop, value, "three numbers [x, y, z]")
        return vec
    if prop in COLOR_PROPERTIES:
        if not is_color(value):
            raise _bad_value(prop, value, "a hex color string")
        return value.strip()
    if not _is_number(value):
        raise _bad_value(prop, value, "a number")
    return float(value)


def coerce_values(values: dict) -> dict[Property, PropertyValue]:
    """Coerce a ``{name: value}`` map into a ``{Property: value}`` map."""
    if not isinstance(values, dict):
        raise LuminaError(
            code=INVALID_KEYFRAMES,
            message=f"Keyframe values must be a mapping, got {type(values).__name__}",
            recovery=recovery_hints(INVALID_KEYFRAMES),
        )
    out: dict[Property, PropertyValue] = {}
    for name, value in values.items():
        prop = parse_property(name)
        out[prop] = coerce_value(prop, value)
    return out


def value_to_wire(value: PropertyValue) -> Any:
    if isinstance(value, tuple):
        return list(value)
    return value


def values_to_wire(values: dict[Property, PropertyValue]) -> dict:
    return {prop.value: value_to_wire(v) for prop, v in values.items()}


def _check_time(time: Any) -> float:
    if not _is_number(time) or time < 0:
        raise LuminaError(
            code=INVALID_KEYFRAME_TIME,
            message=f"Invalid keyframe time: {time!r}",
            recovery=recovery_hints(INVALID_KEYFRAME_TIME),
            context={"time": time},
        )
    return float(time)


def times_coincide(a: float, b: float) -> bool:
    """True when two keyframe times count as the same keyframe."""
    return round(abs(a - b), 6) < KEYFRAME_TIME_TOLERANCE


def _require(data: dict, key: str, where: str) -> Any:
    if key not in data:
        raise LuminaError(
            code=MISSING_FIELD,
            message=f"{where} is missing required field {key!r}",
            recovery=[f"Add '{key}' to the {where}"],
            context={"field": key},
        )
    return data[key]


# ---------------------------------------------------------------------------
# Keyframes
# ---------------------------------------------------------------------------

@dataclass
class Keyframe:
    """A timed, partial set of property values on an object's track.

    ``time`` is clip-local seconds. ``easing`` shapes the segment that
    arrives at this keyframe.
    """
    time: float
    values: dict[Property, PropertyValue] = field(default_factory=dict)
    easing: str = "none"
    name: Optional[str] = None

    def get(self, prop: Property) -> Optional[PropertyValue]:
        return self.values.get(prop)

    def to_dict(self) -> dict:
        d: dict = {"time": self.time}
        if self.name:
            d["name"] = self.name
        d["easing"] = self.easing
        d["values"] = values_to_wire(self.values)
        return d

    @classmethod
    def from_dict(cls, data: dict) -> Keyframe:
        if not isinstance(data, dict):
            raise LuminaError(
                code=INVALID_KEYFRAMES,
                message=f"Keyframe must be a mapping, got {type(data).__name__}",
                recovery=recovery_hints(INVALID_KEYFRAMES),
            )
        time = _check_time(_require(data, "time", "keyframe"))
        easing = data.get("easing") or "none"
        curve(easing)
        name = data.get("name")
        return cls(
            time=time,
            values=coerce_values(data.get("values") or {}),
            easing=easing,
            name=str(name) if name is not None else None,
        )


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------

TRANSITION_TYPES = {"none", "custom"}


@dataclass
class TransitionEffect:
    """Intro/outro effect layered on top of keyframed values."""
    type: str = "none"
    delay: float = 0.0
    duration: float = 0.5
    fade: bool = True
    scale: float = 0.8
    position: Vec3 = (0.0, 0.0, 0.0)
    rotation: Vec3 = (0.0, 0.0, 0.0)
    easing: str = "none"

    @property
    def active(self) -> bool:
        return self.type != "none" and self.duration > 0

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "delay": self.delay,
            "duration": self.duration,
            "fade": self.fade,
            "scale": self.scale,
            "position": list(self.position),
            "rotation": list(self.rotation),
            "easing": self.easing,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> TransitionEffect:
        if not data:
            return cls()
        kind = data.get("type", "none")
        delay = data.get("delay", 0.0)
        duration = data.get("duration", 0.5)
        scale = data.get("scale", 0.8)
        position = coerce_vector(data.get("position", (0, 0, 0)))
        rotation = coerce_vector(data.get("rotation", (0, 0, 0)))
        curve_name = data.get("easing") or "none"
        curve(curve_name)
        problems = []
        if kind not in TRANSITION_TYPES:
            problems.append(f"type must be one of {sorted(TRANSITION_TYPES)}, got {kind!r}")
        if not _is_number(delay) or delay < 0:
            problems.append(f"delay must be a number >= 0, got {delay!r}")
        if not _is_number(duration) or duration < 0:
            problems.append(f"duration must be a number >= 0, got {duration!r}")
        if not _is_number(scale):
            problems.append(f"scale must be a number, got {scale!r}")
        if position is None or rotation is None:
            problems.append("position and rotation offsets must be three numbers")
        if problems:
            raise LuminaError(
                code=INVALID_TRANSITION,
                message="Invalid transition: " + "; ".join(problems),
                recovery=recovery_hints(INVALID_TRANSITION),
                context={"transition": data},
            )
        return cls(
            type=kind,
            delay=float(delay),
            duration=float(duration),
            fade=bool(data.get("fade", True)),
            scale=float(scale),
            position=position,
            rotation=rotation,
            easing=curve_name,
        )


# ---------------------------------------------------------------------------
# Physics
# ---------------------------------------------------------------------------

DIRECTIONAL_PRESETS = {"push_up", "push_down", "push_forward", "push_backward"}
RADIAL_PRESETS = {"pull_center", "push_from_center"}
SOURCE_PRESETS = {"pull_in_source", "push_out_source"}
FORCE_PRESETS = {"none"} | DIRECTIONAL_PRESETS | RADIAL_PRESETS | SOURCE_PRESETS

BODY_TYPES = {"dynamic", "static"}
POST_EASINGS = {"none", "ease-in", "ease-out", "ease-in-out"}
# Recorded frames must stay at least KEYFRAME_TIME_TOLERANCE apart
MAX_BAKE_FPS = round(1 / KEYFRAME_TIME_TOLERANCE)


@dataclass
class ForceSettings:
    preset: str = "none"
    strength: float = 20.0

    def to_dict(self) -> dict:
        return {"preset": self.preset, "strength": self.strength}

    @classmethod
    def from_dict(cls, data: dict) -> ForceSettings:
        preset = data.get("preset", "none")
        if preset not in FORCE_PRESETS:
            raise LuminaError(
                code=INVALID_FORCE_PRESET,
                message=f"Unknown force preset: {preset!r}",
                recovery=recovery_hints(INVALID_FORCE_PRESET),
                context={"preset": preset},
            )
        return cls(preset=preset, strength=float(data.get("strength", 20.0)))


@dataclass
class PhysicsSettings:
    """Per-object rigid-body configuration."""
    enabled: bool = False
    body_type: str = "dynamic"
    mass: float = 1.0
    friction: float = 0.3
    restitution: float = 0.5
    force: Optional[ForceSettings] = None

    @property
    def is_static(self) -> bool:
        return self.body_type == "static"

    def to_dict(self) -> dict:
        d: dict = {
            "enabled": self.enabled,
            "type": self.body_type,
            "mass": self.mass,
            "friction": self.friction,
            "restitution": self.restitution,
        }
        if self.force is not None:
            d["force"] = self.force.to_dict()
        return d

    @classmethod
    def from_dict(cls, data: dict) -> PhysicsSettings:
        body_type = data.get("type", data.get("body_type", "dynamic"))
        if body_type not in BODY_TYPES:
            raise LuminaError(
                code=INVALID_SIMULATION_SETTINGS,
                message=f"Body type must be one of {sorted(BODY_TYPES)}, got {body_type!r}",
                recovery=recovery_hints(INVALID_SIMULATION_SETTINGS),
            )
        force = data.get("force")
        return cls(
            enabled=bool(data.get("enabled", False)),
            body_type=body_type,
            mass=float(data.get("mass", 1.0)),
            friction=float(data.get("friction", 0.3)),
            restitution=float(data.get("restitution", 0.5)),
            force=ForceSettings.from_dict(force) if force else None,
        )


@dataclass
class SimulationSettings:
    """Parameters of one physics bake."""
    duration: float = BAKE_DURATION
    fps: int = BAKE_FPS
    gravity: float = GRAVITY
    time_scale: float = 1.0
    simplification_tolerance: float = SIMPLIFY_TOLERANCE
    post_easing: str = "none"

    @property
    def total_steps(self) -> int:
        return math.ceil(self.duration * self.fps)

    @property
    def recorded_span(self) -> float:
        """Simulation-local time of the last recorded frame."""
        return round(self.total_steps / self.fps, 3)

    @property
    def time_step(self) -> float:
        return (1.0 / self.fps) * self.time_scale

    def validate(self) -> None:
        """Raise LuminaError if the settings cannot drive a bake."""
        problems = []
        if not _is_number(self.duration) or self.duration <= 0:
            problems.append(f"duration must be > 0, got {self.duration!r}")
        if not _is_number(self.fps) or not 0 < self.fps <= MAX_BAKE_FPS:
            problems.append(f"fps must be > 0 and <= {MAX_BAKE_FPS}, got {self.fps!r}")
        if not _is_number(self.gravity):
            problems.append(f"gravity must be a number, got {self.gravity!r}")
        if not _is_number(self.time_scale) or self.time_scale <= 0:
            problems.append(f"time_scale must be > 0, got {self.time_scale!r}")
        if not _is_number(self.simplification_tolerance) or self.simplification_tolerance < 0:
            problems.append(
                f"simplification_tolerance must be >= 0, got {self.simplification_tolerance!r}"
            )
        if self.post_easing not in POST_EASINGS:
            problems.append(f"post_easing must be one of {sorted(POST_EASINGS)}, got {self.post_easing!r}")
        if problems:
            raise LuminaError(
                code=INVALID_SIMULATION_SETTINGS,
                message="Invalid simulation settings: " + "; ".join(problems),
                recovery=recovery_hints(INVALID_SIMULATION_SETTINGS),
                context={"settings": self.to_dict()},
            )

    def to_dict(self) -> dict:
        return {
            "duration": self.duration,
            "fps": self.fps,
            "gravity": self.gravity,
            "time_scale": self.time_scale,
            "simplification_tolerance": self.simplification_tolerance,
            "post_easing": self.post_easing,
        }

    @classmethod
    def from_dict(cls, data: dict) -> SimulationSettings:
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


# ---------------------------------------------------------------------------
# Scene objects
# ---------------------------------------------------------------------------

@dataclass
class SceneObject:
    """A timeline clip: base values, a keyframe track and transitions.

    ``properties`` holds the base values of non-transform properties; a
    property absent from it falls back to the kind's default.
    """
    id: str
    kind: ObjectKind
    name: Optional[str] = None
    position: Vec3 = (0.0, 0.0, 0.0)
    rotation: Vec3 = (0.0, 0.0, 0.0)
    scale: Vec3 = (1.0, 1.0, 1.0)
    properties: dict[Property, PropertyValue] = field(default_factory=dict)
    start_time: float = 0.0
    duration: float = 5.0
    visible: bool = True
    keyframes: list[Keyframe] = field(default_factory=list)
    intro: TransitionEffect = field(default_factory=TransitionEffect)
    outro: TransitionEffect = field(default_factory=TransitionEffect)
    physics: Optional[PhysicsSettings] = None
    fov: Optional[float] = None
    locked: bool = False
    loop: Optional[bool] = None
    url: Optional[str] = None
    width: Optional[float] = None
    height: Optional[float] = None

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration

    @property
    def animatable(self) -> tuple[Property, ...]:
        return ANIMATABLE_PROPERTIES[self.kind]

    @property
    def camera_fov(self) -> float:
        return self.fov if self.fov is not None else DEFAULT_CAMERA_FOV

    def base_value(self, prop: Property) -> PropertyValue:
        """Return the un-animated value of a property."""
        if prop is Property.POSITION:
            return self.position
        if prop is Property.ROTATION:
            return self.rotation
        if prop is Property.SCALE:
            return self.scale
        value = self.properties.get(prop)
        return value if value is not None else default_value(prop)

    def contains(self, absolute_time: float) -> bool:
        return self.start_time <= absolute_time <= self.end_time

    # -- keyframe track -----------------------------------------------------

    def add_keyframe(
        self,
        time: float,
        values: dict,
        easing: str = "none",
        name: Optional[str] = None,
    ) -> Keyframe:
        """Add values at a clip-local time, merging into a coincident keyframe.

        An existing keyframe within KEYFRAME_TIME_TOLERANCE keeps its time,
        easing and name; the new values overwrite its entries for the same
        properties.

        Returns:
            The keyframe that now holds the values.
        """
        time = _check_time(time)
        coerced = coerce_values(values)
        curve(easing)
        for kf in self.keyframes:
            if times_coincide(kf.time, time):
                kf.values = {**kf.values, **coerced}
                return kf
        kf = Keyframe(time=time, values=coerced, easing=easing or "none", name=name)
        times = [k.time for k in self.keyframes]
        self.keyframes.insert(bisect.bisect_right(times, time), kf)
        return kf

    def keyframe(self, index: int) -> Keyframe:
        if not isinstance(index, int) or not 0 <= index < len(self.keyframes):
            raise LuminaError(
                code=KEYFRAME_NOT_FOUND,
                message=f"No keyframe at index {index!r} on {self.id!r}",
                recovery=recovery_hints(KEYFRAME_NOT_FOUND, {"count": len(self.keyframes)}),
                context={"object": self.id, "index": index},
            )
        return self.keyframes[index]

    def remove_keyframe(self, index: int) -> Keyframe:
        kf = self.keyframe(index)
        del self.keyframes[index]
        return kf

    def clear_keyframes(self) -> None:
        self.keyframes = []

    def set_keyframes(self, keyframes: list[Keyframe]) -> None:
        """Replace the whole track; sorts by time and rejects coincident keyframes.

        Two keyframes closer than KEYFRAME_TIME_TOLERANCE are the same
        keyframe, as in add_keyframe.
        """
        ordered = sorted(keyframes, key=lambda k: k.time)
        for kf in ordered:
            _check_time(kf.time)
        for prev, cur in zip(ordered, ordered[1:]):
            if times_coincide(prev.time, cur.time):
                raise LuminaError(
                    code=DUPLICATE_KEYFRAME_TIME,
                    message=f"Keyframes at {prev.time} and {cur.time} share one time slot",
                    recovery=recovery_hints(DUPLICATE_KEYFRAME_TIME),
                    context={"object": self.id, "time": cur.time},
                )
        self.keyframes = ordered

    def with_keyframes(self, keyframes: list[Keyframe]) -> SceneObject:
        """Return a copy of this object holding a different track."""
        return replace(self, keyframes=list(keyframes))

    # -- serialization ------------------------------------------------------

    def to_dict(self) -> dict:
        d: dict = {
            "id": self.id,
            "kind": self.kind.value,
        }
        if self.name is not None:
            d["name"] = self.name
        d.update({
            "position": list(self.position),
            "rotation": list(self.rotation),
            "scale": list(self.scale),
            "start_time": self.start_time,
            "duration": self.duration,
            "visible": self.visible,
            "locked": self.locked,
        })
        if self.properties:
            d["properties"] = values_to_wire(self.properties)
        d["keyframes"] = [kf.to_dict() for kf in self.keyframes]
        d["intro"] = self.intro.to_dict()
        d["outro"] = self.outro.to_dict()
        if self.physics is not None:
            d["physics"] = self.physics.to_dict()
        for key in ("fov", "loop", "url", "width", "height"):
            value = getattr(self, key)
            if value is not None:
                d[key] = value
        return d

    @classmethod
    def from_dict(cls, data: dict) -> SceneObject:
        object_id = _require(data, "id", "scene object")
        kind = parse_kind(data.get("kind", data.get("type")))
        transform = {}
        for prop in TRANSFORM_PROPERTIES:
            raw = data.get(prop.value, PROPERTY_DEFAULTS[prop])
            transform[prop.value] = coerce_value(prop, raw)
        obj = cls(
            id=str(object_id),
            kind=kind,
            name=data.get("name"),
            properties=coerce_values(data.get("properties") or {}),
            start_time=float(data.get("start_time", 0.0)),
            duration=float(data.get("duration", 5.0)),
            visible=bool(data.get("visible", True)),
            intro=TransitionEffect.from_dict(data.get("intro")),
            outro=TransitionEffect.from_dict(data.get("outro")),
            physics=PhysicsSettings.from_dict(data["physics"]) if data.get("physics") else None,
            fov=data.get("fov"),
            locked=bool(data.get("locked", False)),
            loop=data.get("loop"),
            url=data.get("url"),
            width=data.get("width"),
            height=data.get("height"),
            **transform,
        )
        obj.set_keyframes([Keyframe.from_dict(k) for k in data.get("keyframes") or []])
        return obj


# ---------------------------------------------------------------------------
# Evaluation results
# ---------------------------------------------------------------------------

@dataclass
class ResolvedState:
    """Fully resolved values of one object at one instant."""
    object_id: str
    kind: ObjectKind
    visible: bool
    local_time: float
    position: Vec3 = (0.0, 0.0, 0.0)
    rotation: Vec3 = (0.0, 0.0, 0.0)
    scale: Vec3 = (1.0, 1.0, 1.0)
    properties: dict[Property, PropertyValue] = field(default_factory=dict)
    fov: Optional[float] = None
    drives_camera: bool = False

    def get(self, prop: Property) -> Optional[PropertyValue]:
        if prop is Property.POSITION:
            return self.position
        if prop is Property.ROTATION:
            return self.rotation
        if prop is Property.SCALE:
            return self.scale
        return self.properties.get(prop)

    def values(self) -> dict[Property, PropertyValue]:
        """All resolved values, transform included."""
        out: dict[Property, PropertyValue] = {
            Property.POSITION: self.position,
            Property.ROTATION: self.rotation,
            Property.SCALE: self.scale,
        }
        out.update(self.properties)
        return out

    def to_dict(self) -> dict:
        d: dict = {
            "object_id": self.object_id,
            "kind": self.kind.value,
            "visible": self.visible,
            "local_time": self.local_time,
        }
        if self.visible:
            d["position"] = list(self.position)
            d["rotation"] = list(self.rotation)
            d["scale"] = list(self.scale)
            d["properties"] = values_to_wire(self.properties)
            if self.fov is not None:
                d["fov"] = self.fov
                d["drives_camera"] = self.drives_camera
        return d


@dataclass
class ActiveCamera:
    object_id: str
    position: Vec3
    rotation: Vec3
    fov: float

    def to_dict(self) -> dict:
        return {
            "object_id": self.object_id,
            "position": list(self.position),
            "rotation": list(self.rotation),
            "fov": self.fov,
        }


@dataclass
class SceneFrame:
    """One evaluation pass over a scene at a single time."""
    time: float
    states: list[ResolvedState] = field(default_factory=list)
    active_camera: Optional[ActiveCamera] = None

    def state(self, object_id: str) -> Optional[ResolvedState]:
        return next((s for s in self.states if s.object_id == object_id), None)

    def to_dict(self) -> dict:
        return {
            "time": self.time,
            "states": [s.to_dict() for s in self.states],
            "active_camera": self.active_camera.to_dict() if self.active_camera else None,
        }


# ---------------------------------------------------------------------------
# Scene
# ---------------------------------------------------------------------------

@dataclass
class Scene:
    """A project: ordered scene objects plus a free-form settings block."""
    objects: list[SceneObject] = field(default_factory=list)
    settings: dict = field(default_factory=dict)
    project_name: str = "Untitled"

    def get(self, object_id: str) -> SceneObject:
        for obj in self.objects:
            if obj.id == object_id:
                return obj
        raise LuminaError(
            code=OBJECT_NOT_FOUND,
            message=f"No object with id {object_id!r}",
            recovery=recovery_hints(OBJECT_NOT_FOUND, {"available": [o.id for o in self.objects]}),
            context={"object": object_id},
        )

    def replace_objects(self, objects: list[SceneObject]) -> Scene:
        return replace(self, objects=list(objects))

    @property
    def duration(self) -> float:
        return max((o.end_time for o in self.objects), default=0.0)

    def to_dict(self) -> dict:
        return {
            "project_name": self.project_name,
            "settings": self.settings,
            "objects": [o.to_dict() for o in self.objects],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Scene:
        return cls(
            objects=[SceneObject.from_dict(o) for o in data.get("objects") or []],
            settings=dict(data.get("settings") or {}),
            project_name=data.get("project_name", "Untitled"),
        )
