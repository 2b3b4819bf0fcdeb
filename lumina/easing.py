"""Easing curves: parses curve names into pure functions on [0, 1].

Curve names follow the ``family.direction(args)`` convention used by the
editor's keyframe and transition controls:

    none, linear, power0..power4, quad, cubic, quart, quint, strong,
    sine, expo, circ, back, elastic, bounce, steps(n), spring

``direction`` is one of ``in``, ``out`` or ``inOut`` (``out`` when omitted)
and numeric arguments are embedded in the name, e.g. ``"back.out(2.5)"`` or
``"elastic.out(1, 0.75)"``. The CSS-style aliases ``ease-in``, ``ease-out``
and ``ease-in-out`` map to the power1 family.

Every curve maps 0 to 0 and 1 to 1 exactly; values in between may leave
[0, 1] for overshooting families (back, elastic, spring).
"""

from __future__ import annotations

import math
import re
from functools import lru_cache
from typing import Callable

from lumina.errors import LuminaError, INVALID_EASING, recovery_hints

EasingFunction = Callable[[float], float]

# ---------------------------------------------------------------------------
# Valid names
# ---------------------------------------------------------------------------

_POWER_FAMILIES = {
    "power0": 0,
    "power1": 1,
    "quad": 1,
    "power2": 2,
    "cubic": 2,
    "power3": 3,
    "quart": 3,
    "power4": 4,
    "quint": 4,
    "strong": 4,
}

EASING_FAMILIES = set(_POWER_FAMILIES) | {
    "none", "linear", "sine", "expo", "circ", "back", "elastic", "bounce", "steps", "spring",
}

EASING_ALIASES = {
    "ease-in": "power1.in",
    "ease-out": "power1.out",
    "ease-in-out": "power1.inOut",
}

_DIRECTIONS = {
    "": "out",
    "in": "in",
    "out": "out",
    "inout": "inOut",
    "easein": "in",
    "easeout": "out",
    "easeinout": "inOut",
}

_NAME_RE = re.compile(
    r"^\s*([a-z0-9]+)(?:\.([a-z]+))?\s*(?:\(([^)]*)\))?\s*$",
    re.IGNORECASE,
)

_HALF_PI = math.pi / 2
_TWO_PI = math.pi * 2


# ---------------------------------------------------------------------------
# Curve builders
# ---------------------------------------------------------------------------

def _linear(p: float) -> float:
    return p


def _in_out_from_in(ease_in: EasingFunction) -> EasingFunction:
    def ease(p: float) -> float:
        if p < 0.5:
            return ease_in(p * 2) / 2
        return 1 - ease_in((1 - p) * 2) / 2
    return ease


def _in_out_from_out(ease_out: EasingFunction) -> EasingFunction:
    def ease(p: float) -> float:
        if p < 0.5:
            return (1 - ease_out(1 - p * 2)) / 2
        return 0.5 + ease_out((p - 0.5) * 2) / 2
    return ease


def _directional(ease_in: EasingFunction, direction: str) -> EasingFunction:
    """Derive the requested direction from an ease-in curve."""
    if direction == "in":
        return ease_in
    if direction == "out":
        return lambda p: 1 - ease_in(1 - p)
    return _in_out_from_in(ease_in)


def _power(exponent: int) -> EasingFunction:
    return lambda p: p ** exponent


def _sine_in(p: float) -> float:
    return 1 - math.cos(p * _HALF_PI)


def _expo_in(p: float) -> float:
    return 2 ** (10 * (p - 1)) if p else 0.0


def _circ_in(p: float) -> float:
    return 1 - math.sqrt(max(0.0, 1 - p * p))


def _back(overshoot: float, direction: str) -> EasingFunction:
    def ease_in(p: float) -> float:
        return p * p * ((overshoot + 1) * p - overshoot)
    return _directional(ease_in, direction)


def _bounce_out(p: float) -> float:
    n1 = 7.5625
    d1 = 2.75
    if p < 1 / d1:
        return n1 * p * p
    if p < 2 / d1:
        p -= 1.5 / d1
        return n1 * p * p + 0.75
    if p < 2.5 / d1:
        p -= 2.25 / d1
        return n1 * p * p + 0.9375
    p -= 2.625 / d1
    return n1 * p * p + 0.984375


def _bounce(direction: str) -> EasingFunction:
    if direction == "out":
        return _bounce_out
    if direction == "in":
        return lambda p: 1 - _bounce_out(1 - p)
    return _in_out_from_out(_bounce_out)


def _elastic(amplitude: float | None, period: float | None, direction: str) -> EasingFunction:
    amplitude = 1.0 if amplitude is None else amplitude
    if period is None:
        period = 0.45 if direction == "inOut" else 0.3
    p1 = amplitude if amplitude >= 1 else 1.0
    p2 = period / (amplitude if amplitude < 1 else 1.0)
    p3 = p2 / _TWO_PI * (math.asin(1 / p1) if p1 else 0.0)
    frequency = _TWO_PI / p2

    def ease_out(p: float) -> float:
        if p == 1:
            return 1.0
        return p1 * 2 ** (-10 * p) * math.sin((p - p3) * frequency) + 1

    if direction == "out":
        return ease_out
    if direction == "in":
        return lambda p: 1 - ease_out(1 - p)
    return _in_out_from_out(ease_out)


def _steps(count: int) -> EasingFunction:
    count = max(1, count)

    def ease(p: float) -> float:
        if p >= 1:
            return 1.0
        return math.floor(p * count) / count
    return ease


def _spring(p: float) -> float:
    return 1.0 - math.exp(-4.0 * p) * math.cos(12.0 * p)


def _pinned(fn: EasingFunction) -> EasingFunction:
    """Clamp the input to [0, 1] and pin both endpoints exactly."""
    def ease(p: float) -> float:
        if p <= 0:
            return 0.0
        if p >= 1:
            return 1.0
        return fn(p)
    return ease


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _invalid(name: object, reason: str) -> LuminaError:
    return LuminaError(
        code=INVALID_EASING,
        message=f"Unknown easing: {name!r} ({reason})",
        recovery=recovery_hints(INVALID_EASING),
        context={"easing": name},
    )


def _parse_args(raw: str | None, name: str) -> list[float]:
    if raw is None or not raw.strip():
        return []
    try:
        return [float(part) for part in raw.split(",")]
    except ValueError as exc:
        raise _invalid(name, f"arguments must be numbers, got {raw!r}") from exc


@lru_cache(maxsize=256)
def _build(name: str) -> EasingFunction:
    key = name.strip()
    key = EASING_ALIASES.get(key.lower(), key)

    m = _NAME_RE.match(key)
    if not m:
        raise _invalid(name, "expected 'family', 'family.direction' or 'family.direction(args)'")
    family = m.group(1).lower()
    raw_direction = (m.group(2) or "").lower()
    args = _parse_args(m.group(3), name)

    if family not in EASING_FAMILIES:
        raise _invalid(name, f"family must be one of {sorted(EASING_FAMILIES)}")
    if raw_direction not in _DIRECTIONS:
        raise _invalid(name, "direction must be one of: in, out, inOut")
    direction = _DIRECTIONS[raw_direction]

    if family in ("none", "linear", "power0"):
        return _pinned(_linear)
    if family in _POWER_FAMILIES:
        return _pinned(_directional(_power(_POWER_FAMILIES[family] + 1), direction))
    if family == "sine":
        return _pinned(_directional(_sine_in, direction))
    if family == "expo":
        return _pinned(_directional(_expo_in, direction))
    if family == "circ":
        return _pinned(_directional(_circ_in, direction))
    if family == "back":
        overshoot = args[0] if args else 1.70158
        return _pinned(_back(overshoot, direction))
    if family == "elastic":
        amplitude = args[0] if len(args) > 0 else None
        period = args[1] if len(args) > 1 else None
        return _pinned(_elastic(amplitude, period, direction))
    if family == "bounce":
        return _pinned(_bounce(direction))
    if family == "steps":
        return _pinned(_steps(int(args[0]) if args else 1))
    return _pinned(_spring)


def curve(name: str | None) -> EasingFunction:
    """Return the easing function for a curve name.

    Args:
        name: Curve name such as ``"power2.out"`` or ``"elastic.out(1, 0.75)"``.
            ``None`` and the empty string mean ``"none"`` (linear).

    Returns:
        A pure function mapping progress in [0, 1] to eased progress.

    Raises:
        LuminaError: If the name cannot be parsed.
    """
    if name is None or (isinstance(name, str) and not name.strip()):
        return _build("none")
    if not isinstance(name, str):
        raise _invalid(name, "easing must be a string")
    return _build(name)


def is_valid_easing(name: str | None) -> bool:
    """Check whether a curve name parses, without raising."""
    try:
        curve(name)
    except LuminaError:
        return False
    return True
