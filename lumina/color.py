"""Hex color parsing and perceptual blending.

Colors travel through the model as hex strings (``#rgb`` or ``#rrggbb``).
Blending happens in linear-light sRGB so that a mid-point between two
saturated colors does not dip into the muddy band a naive per-channel lerp
of the encoded values produces.
"""

from __future__ import annotations

import re

import numpy as np

from lumina.errors import LuminaError, INVALID_PROPERTY_VALUE, recovery_hints

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def is_color(value: object) -> bool:
    """Check whether a value is a parseable hex color string."""
    return isinstance(value, str) and bool(_HEX_RE.match(value.strip()))


def parse_hex(color: str) -> np.ndarray:
    """Parse a hex color into an array of sRGB channels in [0, 1]."""
    m = _HEX_RE.match(color.strip()) if isinstance(color, str) else None
    if not m:
        raise LuminaError(
            code=INVALID_PROPERTY_VALUE,
            message=f"Invalid color: {color!r}",
            recovery=recovery_hints(INVALID_PROPERTY_VALUE),
            context={"value": color},
        )
    digits = m.group(1)
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)
    channels = [int(digits[i:i + 2], 16) for i in (0, 2, 4)]
    return np.array(channels, dtype=float) / 255.0


def to_hex(rgb: np.ndarray) -> str:
    """Encode sRGB channels in [0, 1] as ``#rrggbb``."""
    channels = np.clip(np.rint(np.asarray(rgb, dtype=float) * 255.0), 0, 255).astype(int)
    return "#" + "".join(f"{c:02x}" for c in channels)


def srgb_to_linear(rgb: np.ndarray) -> np.ndarray:
    rgb = np.asarray(rgb, dtype=float)
    return np.where(rgb <= 0.04045, rgb / 12.92, ((rgb + 0.055) / 1.055) ** 2.4)


def linear_to_srgb(linear: np.ndarray) -> np.ndarray:
    linear = np.clip(np.asarray(linear, dtype=float), 0.0, 1.0)
    return np.where(linear <= 0.0031308, linear * 12.92, 1.055 * linear ** (1 / 2.4) - 0.055)


def blend(color_a: str, color_b: str, t: float) -> str:
    """Blend two hex colors at progress ``t``.

    ``t`` of exactly 0 or 1 returns the corresponding input unchanged, so
    keyframe endpoints resolve to the authored string. Overshooting
    progress (back/elastic curves) extrapolates and is clipped to gamut.

    Args:
        color_a: Start color.
        color_b: End color.
        t: Blend progress.

    Returns:
        Blended color as ``#rrggbb``.
    """
    if t == 0:
        return color_a
    if t == 1:
        return color_b
    a = srgb_to_linear(parse_hex(color_a))
    b = srgb_to_linear(parse_hex(color_b))
    return to_hex(linear_to_srgb(a * (1.0 - t) + b * t))


def adjust_color(color: str, amount: int) -> str:
    """Shift every channel of a hex color by ``amount`` (0-255 scale), clamped."""
    channels = np.rint(parse_hex(color) * 255.0).astype(int) + int(amount)
    return to_hex(np.clip(channels, 0, 255) / 255.0)
