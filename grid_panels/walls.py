"""Backplate: a base plate with divider walls around every LED cell.

Interior dividers carry a rectangular wiring notch at their base, centred on
the wall segment.  The notch is never cut; each notched segment is assembled
from three boxes::

    +-----------------------------+   <- wall height
    |          upper box          |
    +----------+     +------------+   <- notch height
    |  flank   |notch|   flank    |
    +----------+-----+------------+   <- top of base plate

Edge dividers (first and last line of the section) stay solid.  Pillars fill
every divider intersection for the full wall height.

Divider ``c`` occupies ``[c * pitch, c * pitch + wall_thickness)``, so the
closing line of a section would overlap the first divider of the section
after it.  It is only built on the panel's far edges, where it lands on the
border slab.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Tuple

from .frame import border_boxes, section_markers
from .mesh import MIN_FEATURE_SIZE, Box, MeshBuilder
from .parameters import GridSpec
from .sections import Section, tab_boxes

__all__ = [
    "WallLayout",
    "notch_flanks",
    "notched_segment",
    "wall_boxes",
    "build_backplate_section",
    "backplate_tabs",
]

log = logging.getLogger(__name__)


@dataclass(slots=True)
class WallLayout:
    """Wall boxes of one section, z measured from the top of the base plate."""

    vertical: List[Box] = field(default_factory=list)
    horizontal: List[Box] = field(default_factory=list)
    pillars: List[Box] = field(default_factory=list)

    def boxes(self) -> List[Box]:
        return [*self.vertical, *self.horizontal, *self.pillars]


def notch_flanks(wall_length: float, notch_width: float) -> Tuple[float, float]:
    """Lengths of the two wall pieces either side of a centred notch."""
    flank = (wall_length - notch_width) / 2
    return flank, flank


def notched_segment(
    spec: GridSpec,
    start: float,
    line: float,
    along_y: bool,
) -> List[Box]:
    """Three boxes forming one notched wall segment.

    *start* is where the segment begins along the wall, *line* the divider
    position across it; *along_y* selects a wall running in +Y.
    """
    height = spec.wall_height
    t = spec.wall_thickness
    length = spec.cell_inner
    nw, nh = spec.wire_notch_width, spec.wire_notch_height
    left, right = notch_flanks(length, nw)
    right_start = start + left + nw

    if along_y:
        return [
            Box(line, start, nh, t, length, height - nh),
            Box(line, start, 0.0, t, left, nh),
            Box(line, right_start, 0.0, t, right, nh),
        ]
    return [
        Box(start, line, nh, length, t, height - nh),
        Box(start, line, 0.0, left, t, nh),
        Box(right_start, line, 0.0, right, t, nh),
    ]


def wall_boxes(
    spec: GridSpec,
    col_count: int,
    row_count: int,
    close_right: bool = True,
    close_bottom: bool = True,
) -> WallLayout:
    """Divider walls and pillars for a block of ``col_count`` x ``row_count`` cells.

    With ``close_right`` / ``close_bottom`` unset the last divider line on
    that axis (and its pillars) is left to the following section.
    """
    if spec.wall_height is None:
        raise ValueError("Wall height is required to build divider walls")
    height = spec.wall_height
    t = spec.wall_thickness
    length = spec.cell_inner
    layout = WallLayout()
    last_col = col_count if close_right else col_count - 1
    last_row = row_count if close_bottom else row_count - 1

    for c in range(last_col + 1):
        wx = c * spec.pitch
        interior = 0 < c < col_count
        for r in range(row_count):
            wy = r * spec.pitch + t
            if interior:
                layout.vertical.extend(notched_segment(spec, wy, wx, along_y=True))
            else:
                layout.vertical.append(Box(wx, wy, 0.0, t, length, height))
        for r in range(last_row + 1):
            layout.pillars.append(Box(wx, r * spec.pitch, 0.0, t, t, height))

    for r in range(last_row + 1):
        wy = r * spec.pitch
        interior = 0 < r < row_count
        for c in range(col_count):
            wx = c * spec.pitch + t
            if interior:
                layout.horizontal.extend(notched_segment(spec, wx, wy, along_y=False))
            else:
                layout.horizontal.append(Box(wx, wy, 0.0, length, t, height))

    return layout


def build_backplate_section(section: Section, spec: GridSpec) -> MeshBuilder:
    if not spec.has_enclosure:
        raise ValueError("Backplate requires a wall height")
    mesh = MeshBuilder()
    base = spec.base_thickness
    t = spec.wall_thickness
    # Closing walls on the panel's far edges sit one wall thickness past the cells.
    extent_w = section.width + (t if section.is_rightmost else 0.0)
    extent_d = section.depth + (t if section.is_bottommost else 0.0)

    mesh.add_box(0.0, 0.0, 0.0, extent_w, extent_d, base)
    layout = wall_boxes(
        spec,
        section.col_count,
        section.row_count,
        close_right=section.is_rightmost,
        close_bottom=section.is_bottommost,
    )
    mesh.add_boxes(b.lifted(base) for b in layout.boxes())

    ring_r = spec.led_hole_diameter / 2 + 1
    if spec.led_hole_diameter > 0 and spec.led_ring_height > MIN_FEATURE_SIZE:
        for r in range(section.row_count):
            for c in range(section.col_count):
                cx = c * spec.pitch + t + spec.cell_inner / 2
                cy = r * spec.pitch + t + spec.cell_inner / 2
                mesh.add_cylinder(cx, cy, base, ring_r, spec.led_ring_height, spec.led_ring_segments)

    mesh.add_boxes(border_boxes(section, spec, 0.0, base))
    for x, y, r in section_markers(section, spec, corner_dots=False):
        mesh.add_hollow_ring(x, y, 0.0, r, base, spec.hole_segments)

    log.debug(
        "%s: %d wall boxes, %d triangles",
        section.name("backplate"),
        len(layout.boxes()),
        len(mesh),
    )
    return mesh


def backplate_tabs(section: Section, spec: GridSpec) -> List[Box]:
    """Mating tabs standing on the base plate."""
    return tab_boxes(section, spec, spec.base_thickness)
