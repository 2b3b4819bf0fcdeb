"""Intro/outro transitions layered on top of a resolved state.

Both blenders are pure: they return a new ``ResolvedState`` and leave the
input untouched. Rotation offsets are degrees, like the resolved rotation.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from lumina.easing import curve
from lumina.models import Property, ResolvedState, SceneObject, TransitionEffect


def _eased(effect: TransitionEffect, elapsed: float) -> Optional[float]:
    """Eased progress of a transition, or None outside its active window."""
    if not effect.active:
        return None
    if 0 <= elapsed < effect.duration:
        return curve(effect.easing)(elapsed / effect.duration)
    return None


def _offset(base: tuple, offset: tuple, weight: float) -> tuple:
    return tuple(b + o * weight for b, o in zip(base, offset))


def _apply(
    state: ResolvedState,
    effect: TransitionEffect,
    weight: float,
    scale_factor: float,
    opacity_factor: float,
) -> ResolvedState:
    properties = dict(state.properties)
    if effect.fade and Property.OPACITY in properties:
        properties[Property.OPACITY] = properties[Property.OPACITY] * opacity_factor
    return replace(
        state,
        position=_offset(state.position, effect.position, weight),
        rotation=_offset(state.rotation, effect.rotation, weight),
        scale=tuple(s * scale_factor for s in state.scale),
        properties=properties,
    )


def apply_intro(state: ResolvedState, obj: SceneObject, local_time: float) -> ResolvedState:
    """Apply the object's intro transition if ``local_time`` is inside it.

    The window opens ``delay`` seconds into the clip. Offsets fade out as
    the eased progress ``e`` rises, the scale factor goes from ``scale`` to
    1 and opacity is multiplied by ``e``.
    """
    effect = obj.intro
    e = _eased(effect, local_time - effect.delay)
    if e is None:
        return state
    inv = 1.0 - e
    return _apply(state, effect, weight=inv, scale_factor=inv * effect.scale + e, opacity_factor=e)


def apply_outro(state: ResolvedState, obj: SceneObject, local_time: float) -> ResolvedState:
    """Apply the object's outro transition if ``local_time`` is inside it.

    The window ends ``delay`` seconds before the clip does. This mirrors
    the intro: offsets grow with ``e``, the scale factor goes from 1 to
    ``scale`` and opacity is multiplied by ``1 - e``.
    """
    effect = obj.outro
    e = _eased(effect, local_time - (obj.duration - effect.duration - effect.delay))
    if e is None:
        return state
    inv = 1.0 - e
    return _apply(state, effect, weight=e, scale_factor=e * effect.scale + inv, opacity_factor=inv)
