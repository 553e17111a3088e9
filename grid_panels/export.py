"""Export utilities: per-section STL files and the JSON run manifest."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Sequence

from .parameters import GridSpec, SplitPlan
from .sections import SectionBuild

__all__ = [
    "SectionExportError",
    "export_stl",
    "export_manifest",
]


class SectionExportError(RuntimeError):
    """Writing a section's output failed; the run is aborted."""

    def __init__(self, build: SectionBuild, path: Path, reason: str) -> None:
        s = build.section
        super().__init__(
            f"Failed to write {build.variant} section [{s.sec_col},{s.sec_row}] to {path}: {reason}"
        )
        self.build = build
        self.path = path


def export_stl(build: SectionBuild, directory: Path) -> Path:
    """Write one section's ASCII STL into *directory*."""
    destination = directory / f"{build.name}.stl"
    try:
        directory.mkdir(parents=True, exist_ok=True)
        destination.write_text(build.stl, encoding="utf-8")
    except OSError as exc:
        raise SectionExportError(build, destination, str(exc)) from exc
    logging.info(
        "Wrote %s  %s  %d triangles",
        destination.name,
        build.section.summary(),
        build.triangle_count,
    )
    return destination


def export_manifest(
    records: Sequence[Dict[str, Any]],
    spec: GridSpec,
    plan: SplitPlan,
    destination: Path,
) -> None:
    """Write grid parameters and per-section records as a JSON manifest."""
    manifest: Dict[str, Any] = {
        "grid": spec.to_dict(),
        "split": plan.to_dict(),
        "panel_mm": [round(spec.panel_width, 3), round(spec.panel_depth, 3)],
        "sections": list(records),
    }
    destination.write_text(json.dumps(manifest, indent=2), encoding="utf-8")
    logging.info("Wrote manifest %s", destination)
