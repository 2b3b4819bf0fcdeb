"""YAML/JSON persistence for keyframe tracks and whole scenes.

Keyframe tracks round-trip as an ordered list of ``{time, name?, easing,
values}`` records. Scenes use the editor's human-friendly layout: every
object groups its fields into ``timing``, ``transform``, ``appearance``,
``material`` and so on, under a commented header. JSON is accepted
wherever YAML is, since every JSON document is also valid YAML.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import yaml

from lumina.errors import (
    LuminaError,
    DUPLICATE_KEYFRAME_TIME,
    FILE_NOT_FOUND,
    INVALID_DOCUMENT,
    INVALID_KEYFRAMES,
    recovery_hints,
)
from lumina.easing import curve
from lumina.evaluator import capture_values
from lumina.models import (
    Keyframe,
    PhysicsSettings,
    Property,
    Scene,
    SceneObject,
    TransitionEffect,
    coerce_values,
    coerce_vector,
    parse_kind,
    times_coincide,
)

logger = logging.getLogger(__name__)

SCENE_FORMAT_VERSION = "1.3-humane-yaml"

SCENE_HEADER = """\
# 👋 Hello! This is a Lumina scene file.
# It's a human-friendly recipe for your animation. You can edit this directly!
#
# --- STRUCTURE ---
#
# settings:       Global styles for the whole scene (background, lighting, effects).
# timeline:       A list of all the objects (actors) in your scene.
#
# --- OBJECTS (in timeline) ---
#
# id:             A unique identifier for the object.
# name:           The friendly name you see in the editor.
# type:           What kind of object it is (mesh, video, camera, etc.).
# timing:         When it appears (start) and for how long (duration), in seconds.
# transform:      Its initial position, rotation (degrees), and scale.
# appearance:     How it looks (color, opacity).
# material:       Surface properties (metal, glass, plastic).
# keyframes:      The animation script for this object over time.
# transitions:    Special intro/outro effects.
# physics:        Rigid-body settings used when baking a simulation.
#
# Enjoy creating!
# --------------------------------------------------------------------------

"""

# Document category -> {document key: property}
_CATEGORIES: dict[str, dict[str, Property]] = {
    "appearance": {"color": Property.COLOR, "opacity": Property.OPACITY},
    "material": {
        "metalness": Property.METALNESS,
        "roughness": Property.ROUGHNESS,
        "transmission": Property.TRANSMISSION,
        "ior": Property.IOR,
        "thickness": Property.THICKNESS,
        "clearcoat": Property.CLEARCOAT,
        "clearcoatRoughness": Property.CLEARCOAT_ROUGHNESS,
    },
    "geometry": {"extrusion": Property.EXTRUSION, "pathLength": Property.PATH_LENGTH},
    "distortion": {"cylinder_wrap": Property.CURVATURE},
    "media": {"volume": Property.VOLUME},
    "light_settings": {"intensity": Property.INTENSITY},
}

_MEDIA_FIELDS = ("url", "width", "height", "loop")


# ---------------------------------------------------------------------------
# Document loading
# ---------------------------------------------------------------------------

def load_document(raw: str | dict | list) -> Any:
    """Parse YAML or JSON text; already-parsed data passes through.

    Raises:
        LuminaError: INVALID_DOCUMENT if the text is not valid YAML.
    """
    if not isinstance(raw, str):
        return raw
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        logger.warning(f"Rejected unparseable document: {exc}")
        raise LuminaError(
            code=INVALID_DOCUMENT,
            message=f"Invalid YAML/JSON: {exc}",
            recovery=recovery_hints(INVALID_DOCUMENT),
            context={"parse_error": str(exc)},
        ) from exc


def _dump(data: Any) -> str:
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=None)


def read_text(path: str | Path) -> str:
    path = Path(path)
    if not path.is_file():
        raise LuminaError(
            code=FILE_NOT_FOUND,
            message=f"File not found: {path}",
            recovery=recovery_hints(FILE_NOT_FOUND, {"path": str(path)}),
            context={"path": str(path)},
        )
    return path.read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# Keyframe tracks
# ---------------------------------------------------------------------------

def parse_keyframes(raw: str | list) -> list[Keyframe]:
    """Parse and fully validate a keyframe list.

    Args:
        raw: YAML/JSON text or an already-parsed list of records.

    Returns:
        Keyframes sorted by time.

    Raises:
        LuminaError: On the first structural problem found; nothing is
            returned for a partially valid list.
    """
    data = load_document(raw)
    if not isinstance(data, list):
        raise LuminaError(
            code=INVALID_KEYFRAMES,
            message=f"A keyframe list must be a sequence, got {type(data).__name__}",
            recovery=recovery_hints(INVALID_KEYFRAMES),
        )
    keyframes = []
    for i, item in enumerate(data):
        try:
            keyframes.append(Keyframe.from_dict(item))
        except LuminaError as exc:
            exc.message = f"Keyframe {i}: {exc.message}"
            exc.context = {"index": i, **exc.context}
            raise
    keyframes.sort(key=lambda k: k.time)
    for prev, cur in zip(keyframes, keyframes[1:]):
        if times_coincide(prev.time, cur.time):
            raise LuminaError(
                code=DUPLICATE_KEYFRAME_TIME,
                message=f"Keyframes at {prev.time} and {cur.time} share one time slot",
                recovery=recovery_hints(DUPLICATE_KEYFRAME_TIME),
                context={"time": cur.time},
            )
    return keyframes


def load_keyframes(text: str) -> list[Keyframe]:
    return parse_keyframes(text)


def dump_keyframes(keyframes: list[Keyframe]) -> str:
    """Serialize a keyframe list as YAML, preserving its order."""
    return _dump([kf.to_dict() for kf in keyframes])


def paste_keyframes(obj: SceneObject, text: str) -> list[Keyframe]:
    """Replace an object's whole track with pasted keyframes.

    The text is parsed and validated before anything changes, so a
    malformed paste leaves the track exactly as it was.
    """
    try:
        keyframes = parse_keyframes(text)
    except LuminaError as exc:
        logger.warning(f"Rejected keyframe paste for {obj.id}: {exc}")
        raise
    obj.set_keyframes(keyframes)
    logger.info(f"Pasted {len(keyframes)} keyframes onto {obj.id}")
    return keyframes


def paste_keyframe_values(obj: SceneObject, index: int, text: str) -> Keyframe:
    """Merge a pasted values block, or a full keyframe record, into one keyframe.

    A mapping with a ``values`` mapping is a keyframe record: its ``name``
    and ``easing`` replace the keyframe's own when present. Any other
    mapping is taken as a bare values block. The keyframe keeps its time.
    """
    kf = obj.keyframe(index)
    data = load_document(text)
    if not isinstance(data, dict):
        logger.warning(f"Rejected values paste for {obj.id}[{index}]: not a mapping")
        raise LuminaError(
            code=INVALID_KEYFRAMES,
            message="Pasted content is not a keyframe record or values block",
            recovery=recovery_hints(INVALID_KEYFRAMES),
        )

    if isinstance(data.get("values"), dict):
        values = coerce_values(data["values"])
        easing = data.get("easing", kf.easing) or "none"
        name = data.get("name", kf.name)
        curve(easing)
    else:
        values = coerce_values(data)
        easing, name = kf.easing, kf.name

    kf.values = {**kf.values, **values}
    kf.easing = easing
    kf.name = name
    return kf


def copy_keyframe(obj: SceneObject, index: int) -> str:
    """YAML for one keyframe with every value the object resolves there."""
    kf = obj.keyframe(index)
    full = Keyframe(time=kf.time, values=capture_values(obj, kf.time), easing=kf.easing, name=kf.name)
    return _dump(full.to_dict())


# ---------------------------------------------------------------------------
# Scenes
# ---------------------------------------------------------------------------

def _xyz(vector) -> dict:
    return {"x": vector[0], "y": vector[1], "z": vector[2]}


def object_to_document(obj: SceneObject) -> dict:
    """Lay out one object in the human-friendly scene format."""
    doc: dict = {
        "id": obj.id,
        "name": obj.name or f"Unnamed {obj.kind.value}",
        "type": obj.kind.value,
    }
    if not obj.visible:
        doc["visible"] = False
    if obj.locked:
        doc["locked"] = True
    doc["timing"] = {"start": obj.start_time, "duration": obj.duration}
    doc["transform"] = {
        "position": _xyz(obj.position),
        "rotation": _xyz(obj.rotation),
        "scale": _xyz(obj.scale),
    }

    for category, fields in _CATEGORIES.items():
        section = {key: obj.properties[prop] for key, prop in fields.items() if prop in obj.properties}
        if category == "media":
            section.update({key: getattr(obj, key) for key in _MEDIA_FIELDS if getattr(obj, key) is not None})
        if section:
            doc[category] = section
    if obj.fov is not None:
        doc["camera_settings"] = {"fov": obj.fov}

    if obj.keyframes:
        doc["keyframes"] = [kf.to_dict() for kf in obj.keyframes]

    transitions = {}
    if obj.intro.type != "none":
        transitions["intro"] = obj.intro.to_dict()
    if obj.outro.type != "none":
        transitions["outro"] = obj.outro.to_dict()
    if transitions:
        doc["transitions"] = transitions

    if obj.physics is not None:
        doc["physics"] = obj.physics.to_dict()
    return doc


def _vector_field(transform: dict, key: str, default: tuple, object_id: str) -> tuple:
    if key not in transform:
        return default
    vec = coerce_vector(transform[key])
    if vec is None:
        raise LuminaError(
            code=INVALID_DOCUMENT,
            message=f"Object {object_id!r}: transform.{key} must be {{x, y, z}} or [x, y, z]",
            recovery=recovery_hints(INVALID_DOCUMENT),
            context={"object": object_id, "field": f"transform.{key}"},
        )
    return vec


def _number(section: dict, key: str, default: float, object_id: str) -> float:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise LuminaError(
            code=INVALID_DOCUMENT,
            message=f"Object {object_id!r}: timing.{key} must be a number >= 0, got {value!r}",
            recovery=recovery_hints(INVALID_DOCUMENT),
            context={"object": object_id, "field": f"timing.{key}"},
        )
    return float(value)


def object_from_document(doc: dict) -> SceneObject:
    """Build a SceneObject from its human-friendly layout."""
    if not isinstance(doc, dict):
        raise LuminaError(
            code=INVALID_DOCUMENT,
            message=f"Timeline entries must be mappings, got {type(doc).__name__}",
            recovery=recovery_hints(INVALID_DOCUMENT),
        )
    object_id = doc.get("id")
    if object_id is None:
        raise LuminaError(
            code=INVALID_DOCUMENT,
            message="Timeline entry is missing 'id'",
            recovery=["Give every timeline object a unique 'id'"],
            context={"field": "id"},
        )
    object_id = str(object_id)
    kind = parse_kind(doc.get("type"))
    timing = doc.get("timing") or {}
    transform = doc.get("transform") or {}

    base: dict[str, Any] = {}
    for category, fields in _CATEGORIES.items():
        section = doc.get(category) or {}
        for key, prop in fields.items():
            if section.get(key) is not None:
                base[prop.value] = section[key]
    media = doc.get("media") or {}
    camera = doc.get("camera_settings") or {}
    transitions = doc.get("transitions") or {}
    physics = doc.get("physics")

    obj = SceneObject(
        id=object_id,
        kind=kind,
        name=doc.get("name"),
        position=_vector_field(transform, "position", (0.0, 0.0, 0.0), object_id),
        rotation=_vector_field(transform, "rotation", (0.0, 0.0, 0.0), object_id),
        scale=_vector_field(transform, "scale", (1.0, 1.0, 1.0), object_id),
        properties=coerce_values(base),
        start_time=_number(timing, "start", 0.0, object_id),
        duration=_number(timing, "duration", 5.0, object_id),
        visible=bool(doc.get("visible", True)),
        locked=bool(doc.get("locked", False)),
        intro=TransitionEffect.from_dict(transitions.get("intro")),
        outro=TransitionEffect.from_dict(transitions.get("outro")),
        physics=PhysicsSettings.from_dict(physics) if physics else None,
        fov=camera.get("fov"),
        **{key: media.get(key) for key in _MEDIA_FIELDS},
    )
    obj.set_keyframes(parse_keyframes(doc.get("keyframes") or []))
    return obj


def scene_to_document(scene: Scene, exported_at: Optional[str] = None) -> dict:
    return {
        "projectName": scene.project_name,
        "version": SCENE_FORMAT_VERSION,
        "exportedAt": exported_at or datetime.now(timezone.utc).isoformat(),
        "settings": scene.settings,
        "timeline": [object_to_document(obj) for obj in scene.objects],
    }


def scene_from_document(data: Any) -> Scene:
    """Build a Scene from a parsed document.

    Accepts the human-friendly layout (``timeline``) and the plain
    ``Scene.to_dict()`` layout (``objects``).
    """
    if not isinstance(data, dict):
        raise LuminaError(
            code=INVALID_DOCUMENT,
            message=f"A scene document must be a mapping, got {type(data).__name__}",
            recovery=recovery_hints(INVALID_DOCUMENT),
        )
    if "timeline" in data:
        return Scene(
            objects=[object_from_document(o) for o in data.get("timeline") or []],
            settings=dict(data.get("settings") or {}),
            project_name=data.get("projectName", "Untitled"),
        )
    if "objects" in data:
        return Scene.from_dict(data)
    raise LuminaError(
        code=INVALID_DOCUMENT,
        message="Scene document has neither 'timeline' nor 'objects'",
        recovery=recovery_hints(INVALID_DOCUMENT),
    )


def dump_scene(scene: Scene, exported_at: Optional[str] = None) -> str:
    """Serialize a scene as a commented, human-editable YAML document."""
    return SCENE_HEADER + _dump(scene_to_document(scene, exported_at))


def load_scene(raw: str | dict) -> Scene:
    return scene_from_document(load_document(raw))


def read_scene(path: str | Path) -> Scene:
    return load_scene(read_text(path))


def write_scene(scene: Scene, path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_scene(scene), encoding="utf-8")
    logger.info(f"Wrote scene with {len(scene.objects)} objects to {path}")
    return path
