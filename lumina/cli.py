"""Scene CLI: every command outputs JSON to stdout."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Optional

from lumina.errors import LuminaError, EXIT_SUCCESS, EXIT_VALIDATION, EXIT_EXECUTION, EXIT_SYSTEM


def _json_out(data: dict, exit_code: int = EXIT_SUCCESS) -> int:
    """Print JSON to stdout and return exit code."""
    print(json.dumps(data, indent=2))
    return exit_code


def _json_error(exc: LuminaError, exit_code: int = EXIT_EXECUTION) -> int:
    """Print a LuminaError as JSON and return the appropriate exit code."""
    return _json_out(exc.to_dict(), exit_code)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------

def cmd_capabilities(_args) -> int:
    """Output machine-readable description of kinds, properties and presets."""
    from lumina import __version__
    from lumina.easing import EASING_ALIASES, EASING_FAMILIES
    from lumina.models import (
        ANIMATABLE_PROPERTIES,
        FORCE_PRESETS,
        MAX_BAKE_FPS,
        POST_EASINGS,
        PROPERTY_DEFAULTS,
        value_to_wire,
    )

    caps = {
        "version": __version__,
        "object_kinds": {
            kind.value: [prop.value for prop in props]
            for kind, props in ANIMATABLE_PROPERTIES.items()
        },
        "property_defaults": {prop.value: value_to_wire(v) for prop, v in PROPERTY_DEFAULTS.items()},
        "easing": {
            "families": sorted(EASING_FAMILIES),
            "directions": ["in", "out", "inOut"],
            "aliases": EASING_ALIASES,
            "examples": ["power2.out", "sine.inOut", "back.out(1.7)", "elastic.out(1, 0.3)", "steps(4)"],
        },
        "force_presets": sorted(FORCE_PRESETS),
        "post_easings": sorted(POST_EASINGS),
        "max_bake_fps": MAX_BAKE_FPS,
        "keyframe_record": {
            "time": "float (seconds from the object's start, >= 0)",
            "name": "str (optional)",
            "easing": "str (shapes the segment arriving at this keyframe)",
            "values": "{property: number | [x, y, z] | '#rrggbb'}",
        },
        "commands": {
            "evaluate": "Resolve every object (or one) at a global time",
            "sample": "Sample one property over a clip-local range",
            "bake": "Bake physics into keyframes and optionally write the scene",
            "validate": "Dry-run validation of a keyframe list or scene",
            "easing": "Sample an easing curve",
        },
    }
    return _json_out(caps)


def cmd_evaluate(args) -> int:
    """Evaluate a scene at one time."""
    from lumina.evaluator import evaluate, evaluate_scene
    from lumina.persistence import read_scene
    try:
        scene = read_scene(args.scene)
        if args.object:
            state = evaluate(scene.get(args.object), args.at, args.camera_override)
            return _json_out(state.to_dict())
        frame = evaluate_scene(scene.objects, args.at, args.camera_override)
        return _json_out(frame.to_dict())
    except LuminaError as exc:
        return _json_error(exc, EXIT_EXECUTION)


def cmd_sample(args) -> int:
    """Sample one property of one object over a clip-local time range."""
    from lumina.interpolation import sample
    from lumina.models import parse_property, value_to_wire
    from lumina.persistence import read_scene
    try:
        scene = read_scene(args.scene)
        obj = scene.get(args.object)
        prop = parse_property(args.property)
        end = obj.duration if args.end is None else args.end
        samples = sample(obj, prop, args.start, end, args.fps)
        return _json_out({
            "object": obj.id,
            "property": prop.value,
            "samples": [{"time": t, "value": value_to_wire(v)} for t, v in samples],
            "count": len(samples),
        })
    except LuminaError as exc:
        return _json_error(exc, EXIT_EXECUTION)


def _make_progress_callback(quiet: bool):
    """Return a progress callback that writes JSONL to stderr, or None if quiet."""
    if quiet:
        return None

    def _progress(step: int, total: int, stage: str, status: str) -> None:
        # Per-step recording updates are reported every tenth of the run
        if stage == "recording" and total and step != total and step % max(1, total // 10):
            return
        line = json.dumps({"progress": {"step": step, "total": total, "stage": stage, "status": status}})
        print(line, file=sys.stderr, flush=True)

    return _progress


def cmd_bake(args) -> int:
    """Bake physics for a scene starting at a global time."""
    from lumina.baking import Baker
    from lumina.models import SimulationSettings
    from lumina.persistence import read_scene, write_scene
    try:
        scene = read_scene(args.scene)
        defaults = SimulationSettings()
        settings = SimulationSettings(
            duration=args.duration if args.duration is not None else defaults.duration,
            fps=args.fps if args.fps is not None else defaults.fps,
            gravity=args.gravity if args.gravity is not None else defaults.gravity,
            time_scale=args.time_scale,
            simplification_tolerance=(
                args.tolerance if args.tolerance is not None else defaults.simplification_tolerance
            ),
            post_easing=args.post_easing,
        )
        baker = Baker(settings, progress_callback=_make_progress_callback(args.quiet))
        objects = baker.run(scene.objects, args.at)
        baked = scene.replace_objects(objects)

        changed = {
            new.id: len(new.keyframes)
            for old, new in zip(scene.objects, objects)
            if new is not old
        }
        out = {
            "state": baker.state.value,
            "start_time": args.at,
            "settings": settings.to_dict(),
            "keyframes": changed,
        }
        if args.output:
            out["output"] = str(write_scene(baked, args.output))
        return _json_out(out)
    except LuminaError as exc:
        return _json_error(exc, EXIT_EXECUTION)


def cmd_validate(args) -> int:
    """Validate a keyframe list or a scene without applying it."""
    from lumina.models import parse_kind
    from lumina.persistence import read_text
    from lumina.validation import validate_keyframes, validate_scene
    try:
        text = sys.stdin.read() if args.file == "-" else read_text(args.file)
        if args.scene:
            result = validate_scene(text)
        else:
            kind = parse_kind(args.kind) if args.kind else None
            result = validate_keyframes(text, kind=kind)
        code = EXIT_SUCCESS if result.valid else EXIT_VALIDATION
        return _json_out(result.to_dict(), code)
    except LuminaError as exc:
        return _json_error(exc, EXIT_VALIDATION)


def cmd_easing(args) -> int:
    """Sample an easing curve at evenly spaced progress values."""
    from lumina.easing import curve
    try:
        fn = curve(args.name)
        count = max(2, args.samples)
        points = [i / (count - 1) for i in range(count)]
        return _json_out({
            "easing": args.name,
            "samples": [{"progress": round(p, 6), "value": round(fn(p), 6)} for p in points],
        })
    except LuminaError as exc:
        return _json_error(exc, EXIT_VALIDATION)


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="lumina",
        description="Scene evaluation and physics baking; all output is JSON",
    )
    parser.add_argument("--log-level", default=None,
                        help="Log level for stderr logging (default: LUMINA_LOG_LEVEL or INFO)")
    sub = parser.add_subparsers(dest="command")

    # capabilities
    sub.add_parser("capabilities", help="List object kinds, properties, easings and presets")

    # evaluate
    p = sub.add_parser("evaluate", help="Resolve scene objects at a global time")
    p.add_argument("scene", help="Path to the scene YAML/JSON file")
    p.add_argument("--at", type=float, required=True, help="Global timeline time in seconds")
    p.add_argument("--object", help="Only evaluate the object with this id")
    p.add_argument("--camera-override", action="store_true", default=False,
                   help="The user is orbiting the viewport; cameras do not drive the view")

    # sample
    p = sub.add_parser("sample", help="Sample one property over a clip-local range")
    p.add_argument("scene", help="Path to the scene YAML/JSON file")
    p.add_argument("--object", required=True, help="Object id")
    p.add_argument("--property", required=True, help="Property name (e.g. position, opacity)")
    p.add_argument("--from", dest="start", type=float, default=0.0, help="Start, clip-local seconds")
    p.add_argument("--to", dest="end", type=float, default=None,
                   help="End, clip-local seconds (default: clip duration)")
    p.add_argument("--fps", type=float, default=10.0, help="Samples per second (default: 10)")

    # bake
    p = sub.add_parser("bake", help="Bake physics into keyframes")
    p.add_argument("scene", help="Path to the scene YAML/JSON file")
    p.add_argument("--at", type=float, default=0.0, help="Global time the simulation starts at")
    p.add_argument("--duration", type=float, default=None, help="Simulated seconds (default: 3)")
    p.add_argument("--fps", type=int, default=None, help="Recorded frames per second (default: 60)")
    p.add_argument("--gravity", type=float, default=None, help="Gravity along Y (default: -9.81)")
    p.add_argument("--time-scale", type=float, default=1.0, help="Simulation speed multiplier")
    p.add_argument("--tolerance", type=float, default=None,
                   help="Simplification tolerance; 0 keeps every frame (default: 0.01)")
    p.add_argument("--post-easing", default="none",
                   choices=["none", "ease-in", "ease-out", "ease-in-out"],
                   help="Re-time baked keyframes with this curve")
    p.add_argument("-o", "--output", help="Write the baked scene to this path")
    p.add_argument("-q", "--quiet", action="store_true", default=False,
                   help="Suppress progress output on stderr")

    # validate
    p = sub.add_parser("validate", help="Validate a keyframe list or scene (dry-run)")
    p.add_argument("file", help="Path to the YAML/JSON file (or '-' for stdin)")
    p.add_argument("--scene", action="store_true", default=False,
                   help="The file is a scene rather than a keyframe list")
    p.add_argument("--kind", default=None,
                   help="Object kind the keyframe list belongs to (warns on properties it does not animate)")

    # easing
    p = sub.add_parser("easing", help="Sample an easing curve")
    p.add_argument("name", help="Curve name, e.g. 'power2.out' or 'elastic.out(1, 0.3)'")
    p.add_argument("--samples", type=int, default=11, help="Number of samples (default: 11)")

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point."""
    from lumina.logging_config import setup_logging

    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(EXIT_VALIDATION)

    setup_logging(level=args.log_level)

    handlers = {
        "capabilities": cmd_capabilities,
        "evaluate": cmd_evaluate,
        "sample": cmd_sample,
        "bake": cmd_bake,
        "validate": cmd_validate,
        "easing": cmd_easing,
    }

    try:
        exit_code = handlers[args.command](args)
    except LuminaError as exc:
        exit_code = _json_error(exc, EXIT_SYSTEM)
    except Exception as exc:
        exit_code = _json_out({
            "error": True,
            "code": "UNEXPECTED_ERROR",
            "message": str(exc),
            "recovery": ["This is an unexpected error, please report it"],
        }, EXIT_SYSTEM)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
