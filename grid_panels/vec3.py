"""3-component vector helpers used by the mesh builder.

All functions operate on ``Vector3 = Tuple[float, float, float]`` values.
"""

from __future__ import annotations

import math
from typing import Tuple

__all__ = [
    "Vector3",
    "ZERO",
    "norm",
    "normalize",
    "cross",
    "sub",
    "on_circle",
]

Vector3 = Tuple[float, float, float]

ZERO: Vector3 = (0.0, 0.0, 0.0)


def norm(v: Vector3) -> float:
    """Euclidean length of *v*."""
    return math.sqrt(v[0] * v[0] + v[1] * v[1] + v[2] * v[2])


def normalize(v: Vector3) -> Vector3:
    """Unit vector in the direction of *v*, or (0,0,0) if degenerate."""
    n = norm(v)
    if n <= 1e-12:
        return ZERO
    return (v[0] / n, v[1] / n, v[2] / n)


def cross(a: Vector3, b: Vector3) -> Vector3:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def sub(a: Vector3, b: Vector3) -> Vector3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def on_circle(cx: float, cy: float, z: float, radius: float, index: int, segments: int) -> Vector3:
    """Point *index* of a regular ``segments``-gon around (cx, cy) at height *z*."""
    angle = 2.0 * math.pi * index / segments
    return (cx + radius * math.cos(angle), cy + radius * math.sin(angle), z)
