"""Configuration stack and parameter management for the panel generator.

Grid geometry lives in an immutable :class:`GridSpec`; the partition of the
grid into printable sections lives in a :class:`SplitPlan`.  Both are passed
explicitly to every engine, so no configuration state survives between runs.

The loader operates in three layers ordered from lowest to highest precedence:

1. Size preset (``S``, ``M`` or ``L``): pitch, cutout and hole sizes.
2. JSON file: persistent project configuration.
3. CLI overrides: runtime tweaks for automation/headless workflows.

All lengths are millimetres.
"""

from __future__ import annotations

import logging
import json
import math
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple

__all__ = [
    "GridSpec",
    "SplitPlan",
    "SIZE_PRESETS",
    "DEFAULT_BED_SIZE",
    "split_evenly",
    "plan_for_bed",
    "load_json_config",
    "apply_overrides",
    "parse_cli_overrides",
    "load_parameters",
]

log = logging.getLogger(__name__)

# Square print bed edge (mm) used when no explicit split plan is given.
DEFAULT_BED_SIZE = 220.0

SIZE_PRESETS: Dict[str, Dict[str, Any]] = {
    "S": {"label": "Small (desktop)", "pitch": 25.0, "cutout": 20.0, "corner_dot_diameter": 8.0, "mount_hole_diameter": 4.0},
    "M": {"label": "Medium (wall)", "pitch": 35.0, "cutout": 28.0, "corner_dot_diameter": 8.0, "mount_hole_diameter": 4.0},
    "L": {"label": "Large (wall)", "pitch": 45.0, "cutout": 37.0, "corner_dot_diameter": 8.0, "mount_hole_diameter": 4.2},
}

# GridSpec fields used as counts (loop bounds, segment counts).
_INT_FIELDS = ("columns", "rows", "hole_segments", "led_ring_segments")


@dataclass(frozen=True, slots=True)
class GridSpec:
    """Canonical, read-only description of the cell grid."""

    columns: int = 11
    rows: int = 10
    pitch: float = 45.0  # cell centre-to-centre spacing
    cutout: float = 37.0  # square window edge in the front panel
    wall_thickness: float = 3.0
    panel_thickness: float = 3.0  # front panel
    base_thickness: float = 2.0  # backplate floor
    wall_height: Optional[float] = 20.0  # LED-to-diffuser depth; None disables the backplate
    frame_border: float = 15.0
    mount_inset: float = 8.0  # from panel edge
    mount_hole_diameter: float = 4.2  # M4 clearance
    corner_dot_diameter: float = 8.0

    # Backplate wiring and LED features.
    wire_notch_width: float = 4.0
    wire_notch_height: float = 5.0
    led_hole_diameter: float = 6.0
    led_ring_height: float = 0.5

    # Interlocking tabs between backplate sections.
    tab_width: float = 10.0
    tab_depth: float = 3.0  # protrusion from the section edge
    tab_height: float = 10.0

    hole_segments: int = 24
    led_ring_segments: int = 12

    @property
    def margin(self) -> float:
        """Solid margin on each side of a window within its cell."""
        return (self.pitch - self.cutout) / 2.0

    @property
    def cell_inner(self) -> float:
        """Clear span between two backplate divider walls."""
        return self.pitch - self.wall_thickness

    @property
    def grid_width(self) -> float:
        return self.columns * self.pitch

    @property
    def grid_depth(self) -> float:
        return self.rows * self.pitch

    @property
    def panel_width(self) -> float:
        return self.grid_width + 2.0 * self.frame_border

    @property
    def panel_depth(self) -> float:
        return self.grid_depth + 2.0 * self.frame_border

    @property
    def has_enclosure(self) -> bool:
        return self.wall_height is not None

    def validate(self) -> None:
        for name in _INT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
        if self.columns < 1 or self.rows < 1:
            raise ValueError("Grid must have at least one column and one row")
        if self.pitch <= 0:
            raise ValueError("Pitch must be positive")
        if not 0 < self.cutout < self.pitch:
            raise ValueError(
                f"Cutout must be within (0, pitch): cutout={self.cutout} pitch={self.pitch}"
            )
        if self.wall_thickness <= 0:
            raise ValueError("Wall thickness must be positive")
        if self.wall_thickness >= self.pitch:
            raise ValueError("Wall thickness must be smaller than the pitch")
        if self.panel_thickness <= 0 or self.base_thickness <= 0:
            raise ValueError("Panel and base thickness must be positive")
        if self.frame_border < 0:
            raise ValueError("Frame border cannot be negative")
        if min(self.mount_inset, self.mount_hole_diameter, self.corner_dot_diameter) < 0:
            raise ValueError("Mount and corner-dot dimensions cannot be negative")
        if min(self.tab_width, self.tab_depth, self.tab_height) <= 0:
            raise ValueError("Tab dimensions must be positive")
        if self.hole_segments < 3 or self.led_ring_segments < 3:
            raise ValueError("Ring segment counts must be at least 3")
        if self.wall_height is not None:
            if self.wall_height <= 0:
                raise ValueError("Wall height must be positive")
            if self.wire_notch_width <= 0 or self.wire_notch_height <= 0:
                raise ValueError("Wire notch dimensions must be positive")
            if self.wire_notch_width >= self.cell_inner:
                raise ValueError(
                    f"Wire notch ({self.wire_notch_width}) must be narrower than the "
                    f"cell interior ({self.cell_inner})"
                )
            if self.wire_notch_height >= self.wall_height:
                raise ValueError(
                    f"Wire notch height ({self.wire_notch_height}) must be below the "
                    f"wall height ({self.wall_height})"
                )
            if self.led_hole_diameter < 0 or self.led_ring_height < 0:
                raise ValueError("LED guide ring dimensions cannot be negative")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GridSpec":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise KeyError(f"Unknown parameter(s): {', '.join(unknown)}")
        merged = {**asdict(cls()), **data}
        for name in _INT_FIELDS:
            # integral floats from JSON (24.0) become ints
            value = merged[name]
            if isinstance(value, float) and value.is_integer():
                merged[name] = int(value)
        spec = cls(**merged)
        spec.validate()
        return spec

    @classmethod
    def from_preset(cls, size: str, **overrides: Any) -> "GridSpec":
        try:
            preset = SIZE_PRESETS[size.upper()]
        except KeyError:
            raise ValueError(f"Unknown size preset '{size}'") from None
        values = {k: v for k, v in preset.items() if k != "label"}
        values.update(overrides)
        return cls.from_dict(values)


@dataclass(frozen=True, slots=True)
class SplitPlan:
    """Column-group and row-group sizes partitioning the grid into sections."""

    columns: Tuple[int, ...]
    rows: Tuple[int, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "columns", tuple(int(c) for c in self.columns))
        object.__setattr__(self, "rows", tuple(int(r) for r in self.rows))

    @property
    def section_count(self) -> int:
        return len(self.columns) * len(self.rows)

    def validate(self, spec: GridSpec) -> None:
        if not self.columns or not self.rows:
            raise ValueError("Split plan needs at least one column group and one row group")
        if min(self.columns) < 1 or min(self.rows) < 1:
            raise ValueError(f"Split groups must hold at least one cell: {self}")
        if sum(self.columns) != spec.columns:
            raise ValueError(
                f"Column splits {list(self.columns)} sum to {sum(self.columns)}, "
                f"grid has {spec.columns} columns"
            )
        if sum(self.rows) != spec.rows:
            raise ValueError(
                f"Row splits {list(self.rows)} sum to {sum(self.rows)}, "
                f"grid has {spec.rows} rows"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {"col_splits": list(self.columns), "row_splits": list(self.rows)}


def split_evenly(count: int, groups: int) -> Tuple[int, ...]:
    """Split *count* cells into *groups* near-equal groups, larger ones first."""
    if groups < 1 or groups > count:
        raise ValueError(f"Cannot split {count} cells into {groups} groups")
    base, extra = divmod(count, groups)
    return tuple(base + 1 if i < extra else base for i in range(groups))


def _groups_for_bed(count: int, spec: GridSpec, bed_size: float) -> Tuple[int, ...]:
    for groups in range(1, count + 1):
        largest = math.ceil(count / groups)
        extent = largest * spec.pitch + spec.wall_thickness + spec.frame_border
        if extent <= bed_size:
            return split_evenly(count, groups)
    raise ValueError(
        f"A single {spec.pitch}mm cell plus border does not fit a {bed_size}mm print bed"
    )


def plan_for_bed(spec: GridSpec, bed_size: float = DEFAULT_BED_SIZE) -> SplitPlan:
    """Fewest sections per axis whose largest member fits the print bed."""
    plan = SplitPlan(
        columns=_groups_for_bed(spec.columns, spec, bed_size),
        rows=_groups_for_bed(spec.rows, spec, bed_size),
    )
    log.debug("Bed %.0fmm split plan: %s", bed_size, plan)
    return plan


def load_json_config(path: Path | str | None) -> Dict[str, Any]:
    """Load the JSON config file or return an empty dict if missing."""

    if path is None:
        return {}
    json_path = Path(path)
    if not json_path.exists():
        raise FileNotFoundError(f"Config file not found: {json_path}")
    data = json.loads(json_path.read_text(encoding="utf-8"))
    if not isinstance(data, Mapping):
        raise ValueError("Top-level JSON config must be an object")
    return dict(data)


def apply_overrides(base: GridSpec, overrides: Mapping[str, Any]) -> GridSpec:
    """Return a copy of ``base`` with overrides applied."""

    merged = base.to_dict()
    for key, value in overrides.items():
        if key not in merged:
            raise KeyError(f"Unknown parameter '{key}'")
        merged[key] = value
    return GridSpec.from_dict(merged)


def parse_cli_overrides(
    args: Optional[Iterable[str]] = None,
) -> Tuple[Dict[str, Any], Any]:
    """Parse CLI-style overrides using argparse conventions."""

    import argparse

    parser = argparse.ArgumentParser(description="Grid panel STL generator")
    parser.add_argument("--config", type=str, help="Path to JSON config", default=None)
    parser.add_argument("--out-dir", type=str, default="exports", help="Export folder")
    parser.add_argument("--manifest-name", type=str, default="panel_manifest.json")
    parser.add_argument(
        "--size",
        type=str.upper,
        choices=sorted(SIZE_PRESETS),
        default="L",
        help="Size preset for pitch, cutout and holes",
    )
    parser.add_argument("--skip-front", action="store_true", help="Disable front panel STL export")
    parser.add_argument("--skip-backplate", action="store_true", help="Disable backplate STL export")
    parser.add_argument(
        "--grid",
        type=int,
        nargs=2,
        metavar=("COLUMNS", "ROWS"),
        help="Cell count per axis",
    )
    parser.add_argument("--pitch", type=float, help="Cell pitch in mm")
    parser.add_argument("--cutout", type=float, help="Window size in mm")
    parser.add_argument("--wall-thickness", type=float, help="Divider wall thickness in mm")
    parser.add_argument("--wall-height", type=float, help="Backplate wall height in mm")
    parser.add_argument("--border", type=float, help="Frame border width in mm")
    parser.add_argument(
        "--notch",
        type=float,
        nargs=2,
        metavar=("WIDTH", "HEIGHT"),
        help="Wire notch width/height in mm",
    )
    parser.add_argument("--col-splits", type=int, nargs="+", help="Column group sizes")
    parser.add_argument("--row-splits", type=int, nargs="+", help="Row group sizes")
    parser.add_argument(
        "--bed-size",
        type=float,
        default=None,
        help="Print bed edge in mm used to derive splits when none are given",
    )

    parsed, unknown = parser.parse_known_args(args=args)
    if unknown:
        logging.info("Ignoring unknown CLI args: %s", " ".join(unknown))
    overrides: Dict[str, Any] = {}
    if parsed.grid is not None:
        overrides["columns"], overrides["rows"] = parsed.grid
    if parsed.pitch is not None:
        overrides["pitch"] = parsed.pitch
    if parsed.cutout is not None:
        overrides["cutout"] = parsed.cutout
    if parsed.wall_thickness is not None:
        overrides["wall_thickness"] = parsed.wall_thickness
    if parsed.wall_height is not None:
        overrides["wall_height"] = parsed.wall_height
    if parsed.border is not None:
        overrides["frame_border"] = parsed.border
    if parsed.notch is not None:
        overrides["wire_notch_width"], overrides["wire_notch_height"] = parsed.notch
    if parsed.col_splits is not None:
        overrides["col_splits"] = parsed.col_splits
    if parsed.row_splits is not None:
        overrides["row_splits"] = parsed.row_splits

    return overrides, parsed


def _pop_splits(data: Dict[str, Any]) -> Tuple[Optional[Sequence[int]], Optional[Sequence[int]]]:
    return data.pop("col_splits", None), data.pop("row_splits", None)


def load_parameters(
    config_path: Path | str | None,
    cli_overrides: Mapping[str, Any] | None = None,
    size: str = "L",
    bed_size: float | None = None,
) -> Tuple[GridSpec, SplitPlan]:
    """Load grid and split plan using the preset → JSON → CLI precedence chain.

    Split groups may be given as ``col_splits`` / ``row_splits`` in either
    layer; an axis left unspecified is derived from the print bed size.
    """

    data = load_json_config(config_path)
    col_splits, row_splits = _pop_splits(data)
    spec = GridSpec.from_preset(size, **data)
    if cli_overrides:
        overrides = dict(cli_overrides)
        cli_cols, cli_rows = _pop_splits(overrides)
        col_splits = cli_cols if cli_cols is not None else col_splits
        row_splits = cli_rows if cli_rows is not None else row_splits
        spec = apply_overrides(spec, overrides)

    if col_splits is None or row_splits is None:
        derived = plan_for_bed(spec, bed_size if bed_size is not None else DEFAULT_BED_SIZE)
    plan = SplitPlan(
        columns=tuple(col_splits) if col_splits is not None else derived.columns,
        rows=tuple(row_splits) if row_splits is not None else derived.rows,
    )
    plan.validate(spec)
    return spec, plan
