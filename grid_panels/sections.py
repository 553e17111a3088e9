"""Partition of the cell grid into bed-sized printable sections.

Sections are created in row-major order (outer loop over row groups, inner
loop over column groups).  All geometry inside a section is built in local
coordinates with the section's first cell corner at (0, 0); rows run along
+Y, so row group 0 is the top edge of the finished panel.

Usage::

    from grid_panels.sections import plan_sections, check_tiling

    sections = plan_sections(spec, plan)
    check_tiling(spec, sections)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from .mesh import Box, MeshBuilder
from .parameters import GridSpec, SplitPlan
from .vec3 import Vector3

__all__ = [
    "Section",
    "SectionBuild",
    "SectionBuildError",
    "PanelVariant",
    "plan_sections",
    "check_tiling",
    "tab_boxes",
    "build_section",
    "iter_section_builds",
]

log = logging.getLogger(__name__)

_TILING_TOL = 1e-6


@dataclass(frozen=True, slots=True)
class Section:
    """One independently printable rectangular block of cells."""

    sec_col: int
    sec_row: int
    col_start: int
    col_count: int
    row_start: int
    row_count: int
    col_groups: int
    row_groups: int
    pitch: float
    frame_border: float

    # -- nominal (cell) extent, local coordinates --------------------------

    @property
    def width(self) -> float:
        return self.col_count * self.pitch

    @property
    def depth(self) -> float:
        return self.row_count * self.pitch

    # -- edge flags ------------------------------------------------------

    @property
    def is_leftmost(self) -> bool:
        return self.sec_col == 0

    @property
    def is_rightmost(self) -> bool:
        return self.sec_col == self.col_groups - 1

    @property
    def is_topmost(self) -> bool:
        return self.sec_row == 0

    @property
    def is_bottommost(self) -> bool:
        return self.sec_row == self.row_groups - 1

    @property
    def has_right_neighbor(self) -> bool:
        return not self.is_rightmost

    @property
    def has_next_row_neighbor(self) -> bool:
        return not self.is_bottommost

    # -- footprint including borders on true panel edges -------------------

    @property
    def border_left(self) -> float:
        return self.frame_border if self.is_leftmost else 0.0

    @property
    def border_right(self) -> float:
        return self.frame_border if self.is_rightmost else 0.0

    @property
    def border_top(self) -> float:
        return self.frame_border if self.is_topmost else 0.0

    @property
    def border_bottom(self) -> float:
        return self.frame_border if self.is_bottommost else 0.0

    @property
    def outer_width(self) -> float:
        return self.width + self.border_left + self.border_right

    @property
    def outer_depth(self) -> float:
        return self.depth + self.border_top + self.border_bottom

    @property
    def origin(self) -> Tuple[float, float]:
        """Panel coordinates of the local (0, 0) corner."""
        return (
            self.frame_border + self.col_start * self.pitch,
            self.frame_border + self.row_start * self.pitch,
        )

    def outer_rect(self) -> Tuple[float, float, float, float]:
        """Footprint as (x0, y0, x1, y1) in panel coordinates."""
        ox, oy = self.origin
        x0 = ox - self.border_left
        y0 = oy - self.border_top
        return (x0, y0, x0 + self.outer_width, y0 + self.outer_depth)

    def to_local(self, x: float, y: float) -> Tuple[float, float]:
        ox, oy = self.origin
        return (x - ox, y - oy)

    def contains_local(self, x: float, y: float) -> bool:
        """True if the local point lies within this section's footprint."""
        return (
            -self.border_left <= x < self.width + self.border_right
            and -self.border_top <= y < self.depth + self.border_bottom
        )

    def name(self, prefix: str) -> str:
        return f"{prefix}_{self.sec_col}_{self.sec_row}"

    def summary(self) -> str:
        return (
            f"[{self.sec_col},{self.sec_row}] {self.col_count}x{self.row_count} cells "
            f"~{self.outer_width:.0f}x{self.outer_depth:.0f}mm"
        )


@dataclass(frozen=True, slots=True)
class SectionBuild:
    """Serialized mesh of one section plus its reported footprint.

    ``bounds`` is the local (min, max) corner of the body before tabs were
    attached; ``width`` and ``depth`` are measured from it.
    """

    section: Section
    variant: str
    name: str
    stl: str
    bounds: Tuple[Vector3, Vector3]
    triangle_count: int

    @property
    def width(self) -> float:
        return self.bounds[1][0] - self.bounds[0][0]

    @property
    def depth(self) -> float:
        return self.bounds[1][1] - self.bounds[0][1]

    def to_dict(self) -> Dict[str, object]:
        s = self.section
        return {
            "name": self.name,
            "variant": self.variant,
            "section": [s.sec_col, s.sec_row],
            "columns": [s.col_start, s.col_start + s.col_count],
            "rows": [s.row_start, s.row_start + s.row_count],
            "width_mm": round(self.width, 3),
            "depth_mm": round(self.depth, 3),
            "triangles": self.triangle_count,
        }


class SectionBuildError(RuntimeError):
    """Building a section's mesh failed; the run is aborted."""

    def __init__(self, section: Section, variant: str, reason: str) -> None:
        super().__init__(
            f"Failed to build {variant} section [{section.sec_col},{section.sec_row}]: {reason}"
        )
        self.section = section
        self.variant = variant


@dataclass(frozen=True, slots=True)
class PanelVariant:
    """A printable product built once per section (front panel, backplate).

    ``build_tabs`` returns the mating tabs attached after the body; variants
    without it carry no tabs.
    """

    name: str
    build_body: Callable[[Section, GridSpec], MeshBuilder]
    build_tabs: Optional[Callable[[Section, GridSpec], List[Box]]] = None


def plan_sections(spec: GridSpec, plan: SplitPlan) -> List[Section]:
    """Validate *plan* against *spec* and lay out its sections row-major."""
    spec.validate()
    plan.validate(spec)

    sections: List[Section] = []
    row_start = 0
    for sec_row, rows in enumerate(plan.rows):
        col_start = 0
        for sec_col, cols in enumerate(plan.columns):
            sections.append(
                Section(
                    sec_col=sec_col,
                    sec_row=sec_row,
                    col_start=col_start,
                    col_count=cols,
                    row_start=row_start,
                    row_count=rows,
                    col_groups=len(plan.columns),
                    row_groups=len(plan.rows),
                    pitch=spec.pitch,
                    frame_border=spec.frame_border,
                )
            )
            col_start += cols
        row_start += rows
    return sections


def check_tiling(spec: GridSpec, sections: Sequence[Section]) -> None:
    """Raise ``ValueError`` unless the footprints tile the panel exactly."""
    if not sections:
        raise ValueError("No sections to tile")

    area = 0.0
    for s in sections:
        x0, y0, x1, y1 = s.outer_rect()
        area += (x1 - x0) * (y1 - y0)
        if x0 < -_TILING_TOL or y0 < -_TILING_TOL:
            raise ValueError(f"Section {s.summary()} starts outside the panel")
        if x1 > spec.panel_width + _TILING_TOL or y1 > spec.panel_depth + _TILING_TOL:
            raise ValueError(f"Section {s.summary()} ends outside the panel")

    by_pos = {(s.sec_col, s.sec_row): s for s in sections}
    for s in sections:
        right = by_pos.get((s.sec_col + 1, s.sec_row))
        if right is not None and not math.isclose(
            s.outer_rect()[2], right.outer_rect()[0], abs_tol=_TILING_TOL
        ):
            raise ValueError(f"Gap or overlap between {s.summary()} and {right.summary()}")
        below = by_pos.get((s.sec_col, s.sec_row + 1))
        if below is not None and not math.isclose(
            s.outer_rect()[3], below.outer_rect()[1], abs_tol=_TILING_TOL
        ):
            raise ValueError(f"Gap or overlap between {s.summary()} and {below.summary()}")

    panel_area = spec.panel_width * spec.panel_depth
    if not math.isclose(area, panel_area, rel_tol=1e-9, abs_tol=_TILING_TOL):
        raise ValueError(f"Section footprints cover {area:.3f}mm^2, panel is {panel_area:.3f}mm^2")


def tab_boxes(section: Section, spec: GridSpec, z: float) -> List[Box]:
    """Mating tabs on the +X / +Y edges that face a following section.

    Two tabs per shared edge, centred at 1/3 and 2/3 of its length, starting
    at the section boundary and protruding ``tab_depth`` over the neighbour.
    The neighbouring section carries no matching slot.
    """
    boxes: List[Box] = []
    if section.has_right_neighbor:
        for t in (1, 2):
            ty = section.depth * t / 3 - spec.tab_width / 2
            boxes.append(Box(section.width, ty, z, spec.tab_depth, spec.tab_width, spec.tab_height))
    if section.has_next_row_neighbor:
        for t in (1, 2):
            tx = section.width * t / 3 - spec.tab_width / 2
            boxes.append(Box(tx, section.depth, z, spec.tab_width, spec.tab_depth, spec.tab_height))
    return boxes


def build_section(section: Section, spec: GridSpec, variant: PanelVariant) -> SectionBuild:
    """Build, serialize and discard the mesh for one section."""
    try:
        mesh = variant.build_body(section, spec)
        bounds = mesh.bounds()
        if variant.build_tabs is not None:
            mesh.add_boxes(variant.build_tabs(section, spec))
    except Exception as exc:
        raise SectionBuildError(section, variant.name, str(exc)) from exc

    name = section.name(variant.name)
    if mesh.degenerate_count:
        log.warning("%s: dropped %d degenerate triangles", name, mesh.degenerate_count)
    return SectionBuild(
        section=section,
        variant=variant.name,
        name=name,
        stl=mesh.to_stl(name),
        bounds=bounds,
        triangle_count=len(mesh),
    )


def iter_section_builds(
    spec: GridSpec,
    plan: SplitPlan,
    variant: PanelVariant,
) -> Iterator[SectionBuild]:
    """Yield one finished build per section, strictly in sequence."""
    sections = plan_sections(spec, plan)
    check_tiling(spec, sections)
    for section in sections:
        yield build_section(section, spec, variant)
