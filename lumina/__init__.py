"""Lumina: temporal evaluation and physics baking for timeline-driven 3D scenes.

Public API:
    resolve, sample                                   -> keyframe interpolation
    apply_intro, apply_outro                          -> transitions
    evaluate, evaluate_scene, capture_values,
    record_keyframe, camera_override_after_seek       -> temporal evaluation
    bake_scene, merge_baked_keyframes, apply_bake,
    Baker, BakeState                                  -> physics baking
    ramer_douglas_peucker, simplify_keyframes         -> trajectory simplification
    dump_keyframes, load_keyframes, paste_keyframes,
    paste_keyframe_values, copy_keyframe,
    dump_scene, load_scene, read_scene, write_scene   -> persistence
    validate_keyframes, validate_scene                -> dry-run validation
    curve, blend                                      -> easing and color
    LuminaError                                       -> structured errors
"""

from lumina.easing import curve, is_valid_easing
from lumina.color import blend
from lumina.interpolation import resolve, sample
from lumina.transitions import apply_intro, apply_outro
from lumina.evaluator import (
    evaluate,
    evaluate_scene,
    capture_values,
    record_keyframe,
    camera_override_after_seek,
)
from lumina.baking import Baker, BakeState, bake_scene, merge_baked_keyframes, apply_bake
from lumina.simplify import ramer_douglas_peucker, simplify_keyframes
from lumina.persistence import (
    dump_keyframes,
    load_keyframes,
    paste_keyframes,
    paste_keyframe_values,
    copy_keyframe,
    dump_scene,
    load_scene,
    read_scene,
    write_scene,
)
from lumina.validation import validate_keyframes, validate_scene, ValidationResult
from lumina.errors import LuminaError
from lumina.models import (
    ObjectKind,
    Property,
    Keyframe,
    TransitionEffect,
    ForceSettings,
    PhysicsSettings,
    SimulationSettings,
    SceneObject,
    ResolvedState,
    ActiveCamera,
    SceneFrame,
    Scene,
)

__version__ = "0.1.0"

__all__ = [
    # Interpolation and transitions
    "resolve",
    "sample",
    "apply_intro",
    "apply_outro",
    # Evaluation
    "evaluate",
    "evaluate_scene",
    "capture_values",
    "record_keyframe",
    "camera_override_after_seek",
    # Baking
    "Baker",
    "BakeState",
    "bake_scene",
    "merge_baked_keyframes",
    "apply_bake",
    "ramer_douglas_peucker",
    "simplify_keyframes",
    # Persistence
    "dump_keyframes",
    "load_keyframes",
    "paste_keyframes",
    "paste_keyframe_values",
    "copy_keyframe",
    "dump_scene",
    "load_scene",
    "read_scene",
    "write_scene",
    # Validation
    "validate_keyframes",
    "validate_scene",
    "ValidationResult",
    # Collaborators
    "curve",
    "is_valid_easing",
    "blend",
    # Errors
    "LuminaError",
    # Models
    "ObjectKind",
    "Property",
    "Keyframe",
    "TransitionEffect",
    "ForceSettings",
    "PhysicsSettings",
    "SimulationSettings",
    "SceneObject",
    "ResolvedState",
    "ActiveCamera",
    "SceneFrame",
    "Scene",
]
