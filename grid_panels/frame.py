"""Front panel: a solid sheet pierced by square windows, built additively.

The sheet is the inverse of a punch pattern.  One full-width horizontal strip
runs above, between and below every window row; within each window row,
vertical strips fill the gaps between windows.  The vertical strips only span
the window height so the margins covered by horizontal strips are never
filled twice.

Per row (and, analogously, per column) the strip sizes are::

    first strip     margin = (pitch - cutout) / 2
    interior strip  pitch - cutout
    last strip      from its nominal start to the section edge

A strip whose thickness collapses to ``MIN_FEATURE_SIZE`` or less is dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Tuple

from .mesh import MIN_FEATURE_SIZE, Box, MeshBuilder
from .parameters import GridSpec
from .sections import Section

__all__ = [
    "Strip",
    "strip_span",
    "frame_strips",
    "border_boxes",
    "marker_positions",
    "section_markers",
    "build_front_section",
]

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Strip:
    """Planar rectangle of solid panel material."""

    x: float
    y: float
    width: float
    depth: float
    kind: str  # "row" (full width) or "column" (between windows)

    def to_box(self, z: float, height: float) -> Box:
        return Box(self.x, self.y, z, self.width, self.depth, height)


def strip_span(index: int, count: int, spec: GridSpec, extent: float) -> Tuple[float, float]:
    """Start and size of the strip before window *index* along one axis.

    *index* runs 0..count inclusive; the last strip fills to *extent*.
    """
    margin = spec.margin
    if index == 0:
        return 0.0, margin
    start = index * spec.pitch - margin
    if index == count:
        return start, extent - start
    return start, spec.pitch - spec.cutout


def frame_strips(
    spec: GridSpec,
    col_count: int,
    row_count: int,
    width: float,
    depth: float,
) -> List[Strip]:
    """All strips for a block of ``col_count`` x ``row_count`` windows."""
    strips: List[Strip] = []

    for r in range(row_count + 1):
        y, d = strip_span(r, row_count, spec, depth)
        if d > MIN_FEATURE_SIZE:
            strips.append(Strip(0.0, y, width, d, "row"))
        else:
            log.debug("Skipped collapsed row strip %d (%.4f)", r, d)

    for r in range(row_count):
        win_y = r * spec.pitch + spec.margin
        for c in range(col_count + 1):
            x, w = strip_span(c, col_count, spec, width)
            if w > MIN_FEATURE_SIZE:
                strips.append(Strip(x, win_y, w, spec.cutout, "column"))
            else:
                log.debug("Skipped collapsed column strip %d in row %d (%.4f)", c, r, w)

    return strips


def border_boxes(section: Section, spec: GridSpec, z: float, height: float) -> List[Box]:
    """Bezel extensions on the section's outer panel edges.

    Side boxes also run over the top/bottom border where present, so the four
    panel corners are covered.
    """
    b = spec.frame_border
    if b <= MIN_FEATURE_SIZE:
        return []
    boxes: List[Box] = []
    side_y = 0.0 - section.border_top
    side_d = section.depth + section.border_top + section.border_bottom
    if section.is_leftmost:
        boxes.append(Box(-b, side_y, z, b, side_d, height))
    if section.is_rightmost:
        boxes.append(Box(section.width, side_y, z, b, side_d, height))
    if section.is_topmost:
        boxes.append(Box(0.0, -b, z, section.width, b, height))
    if section.is_bottommost:
        boxes.append(Box(0.0, section.depth, z, section.width, b, height))
    return boxes


def marker_positions(spec: GridSpec, corner_dots: bool = True) -> List[Tuple[float, float, float]]:
    """Corner dots and mounting holes as (x, y, radius) in panel coordinates."""
    w, d = spec.panel_width, spec.panel_depth
    markers: List[Tuple[float, float, float]] = []
    if corner_dots and spec.corner_dot_diameter > 0 and spec.frame_border > 0:
        inset = spec.frame_border / 2
        r = spec.corner_dot_diameter / 2
        markers.extend((x, y, r) for x, y in _corners(w, d, inset))
    if spec.mount_hole_diameter > 0:
        r = spec.mount_hole_diameter / 2
        markers.extend((x, y, r) for x, y in _corners(w, d, spec.mount_inset))
    return markers


def _corners(w: float, d: float, inset: float) -> List[Tuple[float, float]]:
    return [(inset, inset), (w - inset, inset), (inset, d - inset), (w - inset, d - inset)]


def section_markers(
    section: Section, spec: GridSpec, corner_dots: bool = True
) -> List[Tuple[float, float, float]]:
    """Markers that fall on *section*, in its local coordinates."""
    local: List[Tuple[float, float, float]] = []
    for x, y, r in marker_positions(spec, corner_dots):
        lx, ly = section.to_local(x, y)
        if section.contains_local(lx, ly):
            local.append((lx, ly, r))
    return local


def build_front_section(section: Section, spec: GridSpec) -> MeshBuilder:
    mesh = MeshBuilder()
    h = spec.panel_thickness

    strips = frame_strips(spec, section.col_count, section.row_count, section.width, section.depth)
    mesh.add_boxes(s.to_box(0.0, h) for s in strips)
    mesh.add_boxes(border_boxes(section, spec, 0.0, h))

    # Hole positions are marked with ring walls; the slicer cannot cut them.
    for x, y, r in section_markers(section, spec):
        mesh.add_hollow_ring(x, y, 0.0, r, h, spec.hole_segments)

    log.debug("%s: %d strips, %d triangles", section.name("front"), len(strips), len(mesh))
    return mesh
