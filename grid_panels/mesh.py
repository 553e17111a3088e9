"""Triangle-soup mesh accumulator and additive primitives.

The output format (ASCII STL) has no notion of boolean subtraction, so every
solid is assembled from closed boxes and prisms.  Openings such as windows,
notches and holes are produced by *not* emitting material there; drilled
holes are represented by uncapped ring walls that mark the hole position.

Usage::

    from grid_panels.mesh import MeshBuilder

    mesh = MeshBuilder()
    mesh.add_box(0, 0, 0, 10, 10, 3)
    text = mesh.to_stl("plate")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .vec3 import ZERO, Vector3, cross, norm, normalize, on_circle, sub

__all__ = [
    "MIN_FEATURE_SIZE",
    "DEGENERATE_AREA",
    "Box",
    "Triangle",
    "MeshBuilder",
]

log = logging.getLogger(__name__)

# Smallest box dimension (mm) worth emitting.  Strips and flanks at or below
# this size are skipped by the layout engines.
MIN_FEATURE_SIZE = 0.01

# Triangles with a smaller area (mm^2) are dropped instead of being written
# with a zero normal.
DEGENERATE_AREA = 1e-9


def _fmt(value: float) -> str:
    return f"{value:.6e}"


@dataclass(frozen=True, slots=True)
class Box:
    """Axis-aligned solid from (x, y, z) extending by (width, depth, height)."""

    x: float
    y: float
    z: float
    width: float
    depth: float
    height: float

    @property
    def is_emittable(self) -> bool:
        return min(self.width, self.depth, self.height) > MIN_FEATURE_SIZE

    def lifted(self, dz: float) -> "Box":
        return Box(self.x, self.y, self.z + dz, self.width, self.depth, self.height)


@dataclass(frozen=True, slots=True)
class Triangle:
    """One facet: three vertices in outward (counter-clockwise) order."""

    v1: Vector3
    v2: Vector3
    v3: Vector3
    normal: Vector3
    area: float

    @classmethod
    def from_vertices(cls, v1: Vector3, v2: Vector3, v3: Vector3) -> "Triangle":
        n = cross(sub(v2, v1), sub(v3, v1))
        area = 0.5 * norm(n)
        return cls(v1=v1, v2=v2, v3=v3, normal=normalize(n), area=area)

    @property
    def is_degenerate(self) -> bool:
        return self.area < DEGENERATE_AREA

    def to_stl(self) -> str:
        lines = [f"  facet normal {' '.join(_fmt(c) for c in self.normal)}", "    outer loop"]
        for v in (self.v1, self.v2, self.v3):
            lines.append(f"      vertex {' '.join(_fmt(c) for c in v)}")
        lines.append("    endloop")
        lines.append("  endfacet")
        return "\n".join(lines)


class MeshBuilder:
    """Accumulates triangles for a single solid body."""

    def __init__(self) -> None:
        self.triangles: List[Triangle] = []
        self.degenerate_count = 0

    def __len__(self) -> int:
        return len(self.triangles)

    # -- facets ------------------------------------------------------------

    def add_triangle(self, v1: Vector3, v2: Vector3, v3: Vector3) -> Optional[Triangle]:
        """Append a triangle and return it, or ``None`` if it had no area."""
        tri = Triangle.from_vertices(tuple(v1), tuple(v2), tuple(v3))
        if tri.is_degenerate:
            self.degenerate_count += 1
            log.debug("Dropped degenerate triangle %s %s %s", v1, v2, v3)
            return None
        self.triangles.append(tri)
        return tri

    def add_quad(self, a: Vector3, b: Vector3, c: Vector3, d: Vector3) -> None:
        """Planar quad a-b-c-d, wound counter-clockwise seen from outside."""
        self.add_triangle(a, b, c)
        self.add_triangle(a, c, d)

    # -- primitives --------------------------------------------------------

    def add_box(self, x: float, y: float, z: float, width: float, depth: float, height: float) -> None:
        """Closed prism from (x, y, z) to (x + width, y + depth, z + height).

        Callers are expected to skip boxes with any dimension at or below
        ``MIN_FEATURE_SIZE``.
        """
        x2, y2, z2 = x + width, y + depth, z + height
        self.add_quad((x, y2, z), (x2, y2, z), (x2, y, z), (x, y, z))  # bottom -Z
        self.add_quad((x, y, z2), (x2, y, z2), (x2, y2, z2), (x, y2, z2))  # top +Z
        self.add_quad((x, y, z), (x2, y, z), (x2, y, z2), (x, y, z2))  # front -Y
        self.add_quad((x2, y2, z), (x, y2, z), (x, y2, z2), (x2, y2, z2))  # back +Y
        self.add_quad((x, y2, z), (x, y, z), (x, y, z2), (x, y2, z2))  # left -X
        self.add_quad((x2, y, z), (x2, y2, z), (x2, y2, z2), (x2, y, z2))  # right +X

    def add_boxes(self, boxes: Iterable[Box]) -> int:
        """Add every emittable box; returns how many were added."""
        added = 0
        for box in boxes:
            if not box.is_emittable:
                log.debug("Skipped sub-minimum box %s", box)
                continue
            self.add_box(box.x, box.y, box.z, box.width, box.depth, box.height)
            added += 1
        return added

    def add_hollow_ring(
        self,
        cx: float,
        cy: float,
        z: float,
        radius: float,
        height: float,
        segments: int = 24,
    ) -> None:
        """Inner wall of a vertical hole, facing the hole axis; no caps."""
        z2 = z + height
        for i in range(segments):
            x1, y1, _ = on_circle(cx, cy, z, radius, i, segments)
            x2, y2, _ = on_circle(cx, cy, z, radius, (i + 1) % segments, segments)
            self.add_quad((x2, y2, z), (x1, y1, z), (x1, y1, z2), (x2, y2, z2))

    def add_cylinder(
        self,
        cx: float,
        cy: float,
        z: float,
        radius: float,
        height: float,
        segments: int = 16,
    ) -> None:
        """Closed vertical prism approximating a cylinder."""
        z2 = z + height
        for i in range(segments):
            x1, y1, _ = on_circle(cx, cy, z, radius, i, segments)
            x2, y2, _ = on_circle(cx, cy, z, radius, (i + 1) % segments, segments)
            self.add_quad((x1, y1, z), (x2, y2, z), (x2, y2, z2), (x1, y1, z2))
            self.add_triangle((cx, cy, z2), (x1, y1, z2), (x2, y2, z2))
            self.add_triangle((cx, cy, z), (x2, y2, z), (x1, y1, z))

    # -- output ------------------------------------------------------------

    def bounds(self) -> Tuple[Vector3, Vector3]:
        """Axis-aligned (min, max) corners of all emitted vertices."""
        if not self.triangles:
            return ZERO, ZERO
        xs: List[float] = []
        ys: List[float] = []
        zs: List[float] = []
        for tri in self.triangles:
            for v in (tri.v1, tri.v2, tri.v3):
                xs.append(v[0])
                ys.append(v[1])
                zs.append(v[2])
        return (min(xs), min(ys), min(zs)), (max(xs), max(ys), max(zs))

    def to_stl(self, name: str = "panel") -> str:
        """Serialize as an ASCII STL body."""
        parts = [f"solid {name}"]
        parts.extend(tri.to_stl() for tri in self.triangles)
        parts.append(f"endsolid {name}")
        return "\n".join(parts) + "\n"
