"""Structured error handling with error codes and recovery suggestions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


# ---------------------------------------------------------------------------
# Error codes
# ---------------------------------------------------------------------------

# Input documents
FILE_NOT_FOUND = "FILE_NOT_FOUND"
INVALID_DOCUMENT = "INVALID_DOCUMENT"
MISSING_FIELD = "MISSING_FIELD"

# Keyframes
INVALID_KEYFRAMES = "INVALID_KEYFRAMES"
INVALID_KEYFRAME_TIME = "INVALID_KEYFRAME_TIME"
DUPLICATE_KEYFRAME_TIME = "DUPLICATE_KEYFRAME_TIME"
KEYFRAME_NOT_FOUND = "KEYFRAME_NOT_FOUND"
UNKNOWN_PROPERTY = "UNKNOWN_PROPERTY"
INVALID_PROPERTY_VALUE = "INVALID_PROPERTY_VALUE"
INVALID_EASING = "INVALID_EASING"

# Scene objects
INVALID_OBJECT_KIND = "INVALID_OBJECT_KIND"
OBJECT_NOT_FOUND = "OBJECT_NOT_FOUND"
INVALID_TRANSITION = "INVALID_TRANSITION"

# Physics baking
INVALID_SIMULATION_SETTINGS = "INVALID_SIMULATION_SETTINGS"
INVALID_FORCE_PRESET = "INVALID_FORCE_PRESET"
BAKE_CANCELLED = "BAKE_CANCELLED"

# Exit codes for CLI
EXIT_SUCCESS = 0
EXIT_VALIDATION = 1
EXIT_EXECUTION = 2
EXIT_SYSTEM = 3


# ---------------------------------------------------------------------------
# LuminaError exception
# ---------------------------------------------------------------------------

@dataclass
class LuminaError(Exception):
    """Structured error with code, message, recovery hints, and context."""
    code: str
    message: str
    recovery: list[str] = field(default_factory=list)
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict:
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "recovery": self.recovery,
            "context": self.context,
        }


# ---------------------------------------------------------------------------
# Recovery hint factory
# ---------------------------------------------------------------------------

_RECOVERY_MAP: dict[str, list[str]] = {
    FILE_NOT_FOUND: [
        "Check the file path for typos",
        "Use an absolute path to avoid working-directory issues",
    ],
    INVALID_DOCUMENT: [
        "Check YAML/JSON syntax: indentation, missing colons, unbalanced brackets",
        "Export a scene with 'lumina' to see a known-good document",
    ],
    INVALID_KEYFRAMES: [
        "A keyframe list is a sequence of records: {time, name?, easing?, values}",
        "'time' must be a number and 'values' must be a mapping",
    ],
    INVALID_KEYFRAME_TIME: [
        "Keyframe times are seconds relative to the object's start and must be >= 0",
    ],
    DUPLICATE_KEYFRAME_TIME: [
        "Each time may appear only once in a keyframe list",
        "Merge the value maps of keyframes that share a time",
    ],
    KEYFRAME_NOT_FOUND: [
        "Keyframe indices are 0-based positions in the time-sorted list",
    ],
    UNKNOWN_PROPERTY: [
        "Animatable properties: position, rotation, scale, opacity, metalness, roughness, "
        "transmission, ior, thickness, clearcoat, clearcoatRoughness, curvature, volume, "
        "extrusion, pathLength, color, intensity",
        "Run 'lumina capabilities' to see which properties each object kind animates",
    ],
    INVALID_PROPERTY_VALUE: [
        "position, rotation and scale take three numbers [x, y, z]",
        "color takes a hex string such as '#ff8800'",
        "all other properties take a single number",
    ],
    INVALID_EASING: [
        "Use a curve such as: none, linear, power2.out, sine.inOut, back.out(1.7), "
        "elastic.out(1, 0.3), bounce.out, steps(4)",
        "CSS-style aliases ease-in, ease-out and ease-in-out are also accepted",
    ],
    INVALID_OBJECT_KIND: [
        "Use one of: mesh, plane, video, glb, svg, lottie, audio, camera, light",
    ],
    OBJECT_NOT_FOUND: [
        "Run 'lumina evaluate <scene> --at 0' to list the objects in the scene",
    ],
    INVALID_TRANSITION: [
        "Transitions need type 'none' or 'custom' and non-negative delay/duration",
    ],
    INVALID_SIMULATION_SETTINGS: [
        "duration and fps must be positive, time_scale must be positive",
        "simplification_tolerance must be >= 0",
        "post_easing must be one of: none, ease-in, ease-out, ease-in-out",
    ],
    INVALID_FORCE_PRESET: [
        "Use one of: none, push_up, push_down, push_forward, push_backward, pull_center, "
        "push_from_center, pull_in_source, push_out_source",
    ],
    BAKE_CANCELLED: [
        "The bake was cancelled before completion; no keyframes were written",
        "Run the bake again to completion to apply it",
    ],
}


def recovery_hints(code: str, context: dict[str, Any] | None = None) -> list[str]:
    """Return recovery suggestions for a given error code."""
    hints = list(_RECOVERY_MAP.get(code, []))
    context = context or {}

    # Add context-specific hints
    if code == FILE_NOT_FOUND and "path" in context:
        hints.insert(0, f"File not found: {context['path']}")

    if code == KEYFRAME_NOT_FOUND and "count" in context:
        count = context["count"]
        if count:
            hints.insert(0, f"The track has {count} keyframes: use an index from 0 to {count - 1}")
        else:
            hints.insert(0, "The track has no keyframes")

    if code == OBJECT_NOT_FOUND and context.get("available"):
        hints.insert(0, f"Known object ids: {', '.join(context['available'])}")

    return hints
