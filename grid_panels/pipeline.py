"""Pipeline architecture for the panel generator.

Each step receives a shared ``PipelineContext`` and can read/write its fields.
Steps declare their own ``should_run`` predicate so the pipeline runner
automatically skips irrelevant stages.  Sections are built one at a time: a
section's mesh is serialized, written and dropped before the next begins.

Usage::

    from grid_panels.pipeline import PanelPipeline, PipelineContext

    ctx = PipelineContext(spec=spec, plan=plan, out_dir=Path("exports"))
    PanelPipeline().run(ctx)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from .frame import build_front_section
from .parameters import GridSpec, SplitPlan
from .sections import PanelVariant, Section, check_tiling, iter_section_builds, plan_sections
from .walls import backplate_tabs, build_backplate_section

__all__ = [
    "FRONT_PANEL",
    "BACKPLATE",
    "PipelineContext",
    "PipelineStep",
    "PanelPipeline",
    "ValidationStep",
    "SectionPlanningStep",
    "SectionExportStep",
    "ManifestExportStep",
    "default_steps",
]

FRONT_PANEL = PanelVariant(name="front", build_body=build_front_section)
BACKPLATE = PanelVariant(
    name="backplate",
    build_body=build_backplate_section,
    build_tabs=backplate_tabs,
)


# ---------------------------------------------------------------------------
# Pipeline context: shared state between steps
# ---------------------------------------------------------------------------


@dataclass
class PipelineContext:
    """Mutable state bag passed through every pipeline step."""

    spec: GridSpec
    plan: SplitPlan
    out_dir: Path = field(default_factory=lambda: Path("exports"))

    # Export control flags (typically populated from CLI).
    skip_front: bool = False
    skip_backplate: bool = False
    manifest_name: str = "panel_manifest.json"

    # Populated by SectionPlanningStep.
    sections: List[Section] = field(default_factory=list)

    # One record per written section file (see SectionBuild.to_dict).
    records: List[Dict[str, Any]] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Step base class
# ---------------------------------------------------------------------------


class PipelineStep(ABC):
    """A single composable stage of the panel generation pipeline."""

    name: str = "unnamed"

    def should_run(self, ctx: PipelineContext) -> bool:
        """Return ``False`` to skip this step for the current context."""
        return True

    @abstractmethod
    def execute(self, ctx: PipelineContext) -> None:
        """Perform the step's work, mutating *ctx* as needed."""
        ...


# ---------------------------------------------------------------------------
# Concrete steps
# ---------------------------------------------------------------------------


class ValidationStep(PipelineStep):
    """Reject bad configuration before any geometry is built."""

    name = "validation"

    def execute(self, ctx: PipelineContext) -> None:
        ctx.spec.validate()
        ctx.plan.validate(ctx.spec)
        logging.info(
            "Panel: %dx%d cells, %.1fmm pitch, %.1fmm windows, %.1fmm border",
            ctx.spec.columns,
            ctx.spec.rows,
            ctx.spec.pitch,
            ctx.spec.cutout,
            ctx.spec.frame_border,
        )


class SectionPlanningStep(PipelineStep):
    name = "section_planning"

    def execute(self, ctx: PipelineContext) -> None:
        ctx.sections = plan_sections(ctx.spec, ctx.plan)
        check_tiling(ctx.spec, ctx.sections)
        logging.info(
            "Split into %dx%d = %d printable sections",
            len(ctx.plan.columns),
            len(ctx.plan.rows),
            len(ctx.sections),
        )


class SectionExportStep(PipelineStep):
    """Build and write every section of one panel variant."""

    def __init__(self, variant: PanelVariant) -> None:
        self.variant = variant
        self.name = f"{variant.name}_sections"

    def should_run(self, ctx: PipelineContext) -> bool:
        if self.variant is FRONT_PANEL and ctx.skip_front:
            return False
        if self.variant is BACKPLATE:
            if ctx.skip_backplate:
                return False
            if not ctx.spec.has_enclosure:
                logging.info("No wall height configured; skipping backplate")
                return False
        return True

    def execute(self, ctx: PipelineContext) -> None:
        from .export import export_stl

        directory = ctx.out_dir / self.variant.name
        for build in iter_section_builds(ctx.spec, ctx.plan, self.variant):
            path = export_stl(build, directory)
            record = build.to_dict()
            record["file"] = path.relative_to(ctx.out_dir).as_posix()
            ctx.records.append(record)


class ManifestExportStep(PipelineStep):
    name = "manifest_export"

    def should_run(self, ctx: PipelineContext) -> bool:
        return bool(ctx.records)

    def execute(self, ctx: PipelineContext) -> None:
        from .export import export_manifest

        export_manifest(ctx.records, ctx.spec, ctx.plan, ctx.out_dir / ctx.manifest_name)


# ---------------------------------------------------------------------------
# Pipeline orchestrator
# ---------------------------------------------------------------------------


def default_steps() -> List[PipelineStep]:
    """Return the standard ordered list of pipeline steps."""
    return [
        ValidationStep(),
        SectionPlanningStep(),
        SectionExportStep(FRONT_PANEL),
        SectionExportStep(BACKPLATE),
        ManifestExportStep(),
    ]


class PanelPipeline:
    """Orchestrates the full generation run.

    Any exception aborts the run; files already written stay on disk.
    """

    def __init__(self, steps: List[PipelineStep] | None = None) -> None:
        self.steps = steps if steps is not None else default_steps()

    def run(self, ctx: PipelineContext) -> None:
        """Execute all enabled steps in order."""
        ctx.out_dir.mkdir(parents=True, exist_ok=True)
        for step in self.steps:
            if step.should_run(ctx):
                logging.info("[pipeline] %s", step.name)
                step.execute(ctx)
