"""Dry-run validation for keyframe lists and scenes: reports every problem at once."""

from __future__ import annotations

from typing import Any, Optional

from lumina.easing import is_valid_easing
from lumina.errors import (
    LuminaError,
    DUPLICATE_KEYFRAME_TIME,
    INVALID_DOCUMENT,
    INVALID_EASING,
    INVALID_KEYFRAME_TIME,
    INVALID_KEYFRAMES,
    MISSING_FIELD,
)
from lumina.models import (
    ANIMATABLE_PROPERTIES,
    ObjectKind,
    SceneObject,
    coerce_value,
    parse_kind,
    parse_property,
    times_coincide,
)
from lumina.persistence import load_document, scene_from_document


# ---------------------------------------------------------------------------
# Validation result
# ---------------------------------------------------------------------------

class ValidationResult:
    """Collects errors and warnings from a dry-run validation."""

    def __init__(self) -> None:
        self.errors: list[dict] = []
        self.warnings: list[dict] = []
        self.keyframe_count: Optional[int] = None
        self.object_count: Optional[int] = None

    @property
    def valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, code: str, message: str, **context) -> None:
        self.errors.append({"code": code, "message": message, **context})

    def add_warning(self, code: str, message: str, **context) -> None:
        self.warnings.append({"code": code, "message": message, **context})

    def to_dict(self) -> dict:
        d = {
            "valid": self.valid,
            "errors": self.errors,
            "warnings": self.warnings,
        }
        if self.keyframe_count is not None:
            d["keyframe_count"] = self.keyframe_count
        if self.object_count is not None:
            d["object_count"] = self.object_count
        return d


# ---------------------------------------------------------------------------
# Keyframe lists
# ---------------------------------------------------------------------------

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_keyframes(
    raw: str | list,
    kind: Optional[ObjectKind] = None,
    clip_duration: Optional[float] = None,
) -> ValidationResult:
    """Validate a keyframe list without applying it.

    Checks:
        - The document parses and is a list of mappings
        - Every keyframe has a numeric, non-negative time
        - Times are unique
        - Every property name is known and its value has the right shape
        - Every easing name parses

    With ``kind`` set, properties the kind does not animate are reported
    as warnings; with ``clip_duration`` set, keyframes past the end of the
    clip are too.

    Args:
        raw: YAML/JSON text or an already-parsed list.
        kind: Object kind the track belongs to.
        clip_duration: Duration of the owning clip, in seconds.

    Returns:
        ValidationResult with errors, warnings and keyframe_count.
    """
    result = ValidationResult()
    try:
        data = load_document(raw)
    except LuminaError as exc:
        result.add_error(exc.code, exc.message, **exc.context)
        return result

    if not isinstance(data, list):
        result.add_error(
            INVALID_KEYFRAMES,
            f"A keyframe list must be a sequence, got {type(data).__name__}",
        )
        return result

    result.keyframe_count = len(data)
    allowed = ANIMATABLE_PROPERTIES.get(kind) if kind is not None else None
    seen_times: list[tuple[float, int]] = []
    previous_time: Optional[float] = None

    for i, item in enumerate(data):
        if not isinstance(item, dict):
            result.add_error(INVALID_KEYFRAMES, f"Keyframe {i}: must be a mapping", index=i)
            continue

        time = item.get("time")
        if time is None:
            result.add_error(MISSING_FIELD, f"Keyframe {i}: missing 'time'", index=i)
        elif not _is_number(time) or time < 0:
            result.add_error(
                INVALID_KEYFRAME_TIME,
                f"Keyframe {i}: time must be a number >= 0, got {time!r}",
                index=i,
            )
        else:
            clash = next((j for t, j in seen_times if times_coincide(t, time)), None)
            if clash is not None:
                result.add_error(
                    DUPLICATE_KEYFRAME_TIME,
                    f"Keyframe {i}: time {time} falls on the time slot of keyframe {clash}",
                    index=i,
                )
            seen_times.append((time, i))
            if previous_time is not None and time < previous_time:
                result.add_warning(
                    "UNSORTED_KEYFRAMES",
                    f"Keyframe {i}: time {time} comes before keyframe {i - 1} ({previous_time}); "
                    f"the list will be sorted",
                    index=i,
                )
            previous_time = time
            if clip_duration is not None and time > clip_duration:
                result.add_warning(
                    "KEYFRAME_OUTSIDE_CLIP",
                    f"Keyframe {i}: time {time} is past the clip duration ({clip_duration})",
                    index=i,
                )

        easing = item.get("easing")
        if easing is not None and not is_valid_easing(easing):
            result.add_error(INVALID_EASING, f"Keyframe {i}: unknown easing {easing!r}", index=i)

        values = item.get("values")
        if values is None:
            continue
        if not isinstance(values, dict):
            result.add_error(INVALID_KEYFRAMES, f"Keyframe {i}: 'values' must be a mapping", index=i)
            continue
        for name, value in values.items():
            try:
                prop = parse_property(name)
                coerce_value(prop, value)
            except LuminaError as exc:
                result.add_error(exc.code, f"Keyframe {i}: {exc.message}", index=i)
                continue
            if allowed is not None and prop not in allowed:
                result.add_warning(
                    "PROPERTY_NOT_ANIMATABLE",
                    f"Keyframe {i}: {kind.value} objects do not animate {prop.value!r}",
                    index=i,
                    property=prop.value,
                )

    return result


# ---------------------------------------------------------------------------
# Scenes
# ---------------------------------------------------------------------------

_NON_PHYSICAL_KINDS = {ObjectKind.CAMERA, ObjectKind.LIGHT, ObjectKind.AUDIO}


def validate_scene(raw: str | dict) -> ValidationResult:
    """Validate a scene document without loading it into the editor.

    Keyframe tracks are checked in full, so every malformed keyframe is
    reported rather than only the first. Once the document loads, the
    objects are checked for duplicate ids, transitions that cannot fit
    their clip and physics on kinds that do not collide.
    """
    result = ValidationResult()
    try:
        data = load_document(raw)
    except LuminaError as exc:
        result.add_error(exc.code, exc.message, **exc.context)
        return result

    if not isinstance(data, dict):
        result.add_error(INVALID_DOCUMENT, "A scene document must be a mapping")
        return result

    entries = data.get("timeline", data.get("objects"))
    if isinstance(entries, list):
        for entry in entries:
            if not isinstance(entry, dict) or "keyframes" not in entry:
                continue
            object_id = entry.get("id")
            try:
                kind = parse_kind(entry.get("type", entry.get("kind")))
            except LuminaError:
                kind = None
            track = validate_keyframes(entry.get("keyframes") or [], kind=kind)
            for error in track.errors:
                result.add_error(error["code"], f"Object {object_id!r}: {error['message']}", object=object_id)
            for warning in track.warnings:
                result.add_warning(warning["code"], f"Object {object_id!r}: {warning['message']}", object=object_id)
        if not result.valid:
            return result

    try:
        scene = scene_from_document(data)
    except LuminaError as exc:
        result.add_error(exc.code, exc.message, **exc.context)
        return result

    result.object_count = len(scene.objects)
    seen: set[str] = set()
    for obj in scene.objects:
        if obj.id in seen:
            result.add_error("DUPLICATE_OBJECT_ID", f"Object id {obj.id!r} is used more than once", object=obj.id)
        seen.add(obj.id)
        _check_object(obj, result)
    return result


def _check_object(obj: SceneObject, result: ValidationResult) -> None:
    if obj.duration <= 0:
        result.add_warning("EMPTY_CLIP", f"Object {obj.id!r}: duration is 0, it is never visible", object=obj.id)

    for label, effect in (("intro", obj.intro), ("outro", obj.outro)):
        if effect.active and effect.delay + effect.duration > obj.duration:
            result.add_warning(
                "TRANSITION_EXCEEDS_CLIP",
                f"Object {obj.id!r}: {label} delay + duration ({effect.delay + effect.duration}s) "
                f"exceeds the clip ({obj.duration}s)",
                object=obj.id,
            )

    for kf in obj.keyframes:
        if kf.time > obj.duration:
            result.add_warning(
                "KEYFRAME_OUTSIDE_CLIP",
                f"Object {obj.id!r}: keyframe at {kf.time}s is past the clip duration ({obj.duration}s)",
                object=obj.id,
            )

    if obj.physics is not None and obj.physics.enabled:
        if obj.kind in _NON_PHYSICAL_KINDS:
            result.add_warning(
                "PHYSICS_ON_NON_PHYSICAL_OBJECT",
                f"Object {obj.id!r}: physics on a {obj.kind.value} object bakes a box collider "
                f"sized to its scale",
                object=obj.id,
            )
        if not obj.physics.is_static and obj.physics.mass <= 0:
            result.add_error(
                "INVALID_MASS",
                f"Object {obj.id!r}: dynamic bodies need mass > 0, got {obj.physics.mass}",
                object=obj.id,
            )
