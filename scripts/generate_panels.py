#!/usr/bin/env python3
"""Headless entry point for the grid panel generator."""

from __future__ import annotations

import logging
from pathlib import Path
import sys
from typing import List, Sequence

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from grid_panels.parameters import SIZE_PRESETS, load_parameters, parse_cli_overrides
from grid_panels.pipeline import PanelPipeline, PipelineContext


def configure_logging() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


def main(argv: Sequence[str] | None = None) -> int:
    configure_logging()
    overrides, cli = parse_cli_overrides(_sanitized_args() if argv is None else list(argv))
    spec, plan = load_parameters(cli.config, overrides, size=cli.size, bed_size=cli.bed_size)
    logging.info(
        "Size %s (%s): cols=%s rows=%s",
        cli.size,
        SIZE_PRESETS[cli.size]["label"],
        list(plan.columns),
        list(plan.rows),
    )

    ctx = PipelineContext(
        spec=spec,
        plan=plan,
        out_dir=Path(cli.out_dir),
        skip_front=cli.skip_front,
        skip_backplate=cli.skip_backplate,
        manifest_name=cli.manifest_name,
    )
    PanelPipeline().run(ctx)

    for section in ctx.sections:
        logging.info("  %s", section.summary())
    logging.info("Wrote %d section files to %s", len(ctx.records), ctx.out_dir)
    return 0


def _sanitized_args() -> List[str]:
    return [arg for arg in sys.argv[1:] if arg not in {"--", "-"}]


if __name__ == "__main__":
    sys.exit(main())
