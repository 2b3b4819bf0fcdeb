"""Ramer-Douglas-Peucker reduction of baked trajectories."""

from __future__ import annotations

from dataclasses import replace

import numpy as np

from lumina.models import Keyframe, Property

# Easing given to the segments between surviving keyframes
SIMPLIFIED_SEGMENT_EASING = "power1.out"


def perpendicular_distance(point, start, end) -> float:
    """Distance from ``point`` to the segment ``start -> end``.

    The projection is clamped to the segment. A zero-length segment
    measures the distance to ``start``.
    """
    point = np.asarray(point, dtype=float)
    start = np.asarray(start, dtype=float)
    end = np.asarray(end, dtype=float)
    chord = end - start
    length_sq = float(np.dot(chord, chord))
    if length_sq == 0.0:
        return float(np.linalg.norm(point - start))
    t = min(1.0, max(0.0, float(np.dot(point - start, chord)) / length_sq))
    return float(np.linalg.norm(point - (start + chord * t)))


def ramer_douglas_peucker(points, epsilon: float) -> list[int]:
    """Indices of the points kept by RDP simplification.

    The first and last points always survive. A point farther than
    ``epsilon`` from the chord of its current span splits the span. When a
    span's endpoints coincide, any point not on top of them splits it.

    Args:
        points: Sequence of 3D points.
        epsilon: Maximum allowed deviation of a removed point.

    Returns:
        Ascending indices into ``points``.
    """
    pts = np.asarray(points, dtype=float)
    n = len(pts)
    if n < 3:
        return list(range(n))

    keep = np.zeros(n, dtype=bool)
    keep[0] = keep[-1] = True
    stack = [(0, n - 1)]
    while stack:
        first, last = stack.pop()
        if last - first < 2:
            continue
        start, end = pts[first], pts[last]
        degenerate = not np.any(end - start)
        dmax = 0.0
        index = first
        for i in range(first + 1, last):
            d = perpendicular_distance(pts[i], start, end)
            if d > dmax:
                dmax = d
                index = i
        if dmax > epsilon or (degenerate and dmax > 0):
            keep[index] = True
            stack.append((first, index))
            stack.append((index, last))
    return [int(i) for i in np.flatnonzero(keep)]


def simplify_keyframes(keyframes: list[Keyframe], epsilon: float) -> list[Keyframe]:
    """Drop keyframes whose positions RDP deems redundant.

    Survivors keep their original value maps. Every surviving segment is
    eased with ``power1.out`` and the final keyframe with ``none``. Lists
    of fewer than three keyframes, or ``epsilon <= 0``, come back as-is.
    """
    if epsilon <= 0 or len(keyframes) < 3:
        return list(keyframes)
    positions = [kf.values[Property.POSITION] for kf in keyframes]
    indices = ramer_douglas_peucker(positions, epsilon)
    last = len(indices) - 1
    return [
        replace(keyframes[idx], easing=SIMPLIFIED_SEGMENT_EASING if i < last else "none")
        for i, idx in enumerate(indices)
    ]
