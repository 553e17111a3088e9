import dataclasses

import pytest

from grid_panels.frame import build_front_section
from grid_panels.mesh import MeshBuilder
from grid_panels.parameters import GridSpec, SplitPlan, plan_for_bed, split_evenly
from grid_panels.pipeline import BACKPLATE, FRONT_PANEL
from grid_panels.sections import (
    PanelVariant,
    SectionBuildError,
    build_section,
    check_tiling,
    iter_section_builds,
    plan_sections,
    tab_boxes,
)


def _by_pos(sections):
    return {(s.sec_col, s.sec_row): s for s in sections}


def test_sections_are_row_major(spec, plan):
    sections = plan_sections(spec, plan)

    assert len(sections) == 9
    assert [(s.sec_col, s.sec_row) for s in sections[:4]] == [(0, 0), (1, 0), (2, 0), (0, 1)]
    counts = [(s.col_count, s.row_count) for s in sections]
    assert counts[:3] == [(4, 4), (4, 4), (3, 4)]
    assert counts[-1] == (3, 3)
    assert sections[-1].col_start == 8 and sections[-1].row_start == 7


def test_border_flags(spec, plan):
    sections = _by_pos(plan_sections(spec, plan))

    first = sections[(0, 0)]
    assert first.is_leftmost and first.is_topmost
    assert not first.is_rightmost and not first.is_bottommost
    assert first.has_right_neighbor and first.has_next_row_neighbor

    last = sections[(2, 2)]
    assert last.is_rightmost and last.is_bottommost
    assert not last.has_right_neighbor and not last.has_next_row_neighbor

    middle = sections[(1, 1)]
    assert (middle.border_left, middle.border_right, middle.border_top, middle.border_bottom) == (
        0.0,
        0.0,
        0.0,
        0.0,
    )


def test_footprints_tile_the_panel(spec, plan):
    sections = plan_sections(spec, plan)
    check_tiling(spec, sections)

    by_pos = _by_pos(sections)
    for row in range(3):
        assert sum(by_pos[(c, row)].outer_width for c in range(3)) == pytest.approx(525.0)
    for col in range(3):
        assert sum(by_pos[(col, r)].outer_depth for r in range(3)) == pytest.approx(480.0)

    assert by_pos[(0, 0)].outer_rect() == pytest.approx((0.0, 0.0, 195.0, 195.0))
    assert by_pos[(2, 2)].outer_rect() == pytest.approx((375.0, 330.0, 525.0, 480.0))


def test_single_section_carries_all_borders():
    spec = GridSpec(columns=3, rows=2)
    (only,) = plan_sections(spec, SplitPlan((3,), (2,)))

    assert only.outer_width == pytest.approx(spec.panel_width)
    assert only.outer_depth == pytest.approx(spec.panel_depth)
    assert not only.has_right_neighbor and not only.has_next_row_neighbor


@pytest.mark.parametrize(
    "columns, rows, message",
    [
        ((4, 4, 4), (4, 3, 3), "Column splits"),
        ((4, 4, 3), (4, 4, 3), "Row splits"),
        ((11,), (), "at least one"),
        ((11, 0), (10,), "at least one cell"),
    ],
)
def test_bad_split_plans_are_rejected(spec, columns, rows, message):
    with pytest.raises(ValueError, match=message):
        plan_sections(spec, SplitPlan(columns, rows))


def test_check_tiling_rejects_missing_section(spec, plan):
    sections = plan_sections(spec, plan)
    with pytest.raises(ValueError):
        check_tiling(spec, sections[:-1])


def test_split_evenly_puts_larger_groups_first():
    assert split_evenly(11, 3) == (4, 4, 3)
    assert split_evenly(10, 3) == (4, 3, 3)
    assert split_evenly(6, 2) == (3, 3)
    with pytest.raises(ValueError):
        split_evenly(2, 3)


def test_plan_for_bed_matches_default_layout(spec):
    plan = plan_for_bed(spec, 220.0)
    assert plan.columns == (4, 4, 3)
    assert plan.rows == (4, 3, 3)

    wide = plan_for_bed(spec, 600.0)
    assert wide.section_count == 1

    with pytest.raises(ValueError):
        plan_for_bed(spec, 40.0)


def test_tabs_sit_at_thirds_of_the_shared_edges(spec, plan):
    sections = _by_pos(plan_sections(spec, plan))

    tabs = tab_boxes(sections[(0, 0)], spec, 2.0)
    assert len(tabs) == 4
    right = [t for t in tabs if t.x == 180.0]
    assert [t.y for t in right] == pytest.approx([55.0, 115.0])
    assert all((t.width, t.depth, t.height) == (3.0, 10.0, 10.0) for t in right)
    below = [t for t in tabs if t.y == 180.0]
    assert [t.x for t in below] == pytest.approx([55.0, 115.0])
    assert all(t.z == 2.0 for t in tabs)


def test_tabs_only_towards_following_sections(spec, plan):
    sections = _by_pos(plan_sections(spec, plan))

    right_column = tab_boxes(sections[(2, 0)], spec, 2.0)
    assert [t.x for t in right_column] == pytest.approx([40.0, 85.0])
    assert all(t.y == 180.0 for t in right_column)

    bottom_row = tab_boxes(sections[(0, 2)], spec, 2.0)
    assert [t.y for t in bottom_row] == pytest.approx([40.0, 85.0])
    assert all(t.x == 180.0 for t in bottom_row)

    assert tab_boxes(sections[(2, 2)], spec, 2.0) == []


@pytest.mark.parametrize("variant", [FRONT_PANEL, BACKPLATE], ids=lambda v: v.name)
def test_section_bodies_reassemble_the_panel(spec, plan, variant):
    placed = {}
    for section in plan_sections(spec, plan):
        build = build_section(section, spec, variant)
        assert build.width == pytest.approx(section.outer_width)
        assert build.depth == pytest.approx(section.outer_depth)

        (x0, y0, _), (x1, y1, _) = build.bounds
        ox, oy = section.origin
        placed[(section.sec_col, section.sec_row)] = (ox + x0, oy + y0, ox + x1, oy + y1)

    for (col, row), rect in placed.items():
        right = placed.get((col + 1, row))
        if right is not None:
            assert rect[2] == pytest.approx(right[0])
        below = placed.get((col, row + 1))
        if below is not None:
            assert rect[3] == pytest.approx(below[1])

    assert min(r[0] for r in placed.values()) == pytest.approx(0.0)
    assert min(r[1] for r in placed.values()) == pytest.approx(0.0)
    assert max(r[2] for r in placed.values()) == pytest.approx(spec.panel_width)
    assert max(r[3] for r in placed.values()) == pytest.approx(spec.panel_depth)


def test_build_failure_names_the_section(spec, plan):
    def body(section, spec):
        raise ZeroDivisionError("float division by zero")

    section = _by_pos(plan_sections(spec, plan))[(1, 0)]
    with pytest.raises(SectionBuildError, match=r"broken section \[1,0\]") as excinfo:
        build_section(section, spec, PanelVariant("broken", body))
    assert isinstance(excinfo.value.__cause__, ZeroDivisionError)
    assert excinfo.value.section is section


def test_grid_spec_is_immutable(spec):
    with pytest.raises(dataclasses.FrozenInstanceError):
        spec.pitch = 30.0


def test_build_section_names_and_reports(spec, plan):
    section = _by_pos(plan_sections(spec, plan))[(2, 1)]
    build = build_section(section, spec, PanelVariant("front", build_front_section))

    assert build.name == "front_2_1"
    assert build.stl.startswith("solid front_2_1\n")
    assert build.stl.endswith("endsolid front_2_1\n")
    assert build.stl.count("facet normal") == build.triangle_count

    record = build.to_dict()
    assert record["section"] == [2, 1]
    assert record["columns"] == [8, 11]
    assert record["rows"] == [4, 7]
    assert record["width_mm"] == pytest.approx(150.0)
    assert record["depth_mm"] == pytest.approx(135.0)


def test_sections_are_built_one_at_a_time(spec, plan):
    built = []

    def body(section, spec):
        built.append(section.name("dummy"))
        mesh = MeshBuilder()
        mesh.add_box(0.0, 0.0, 0.0, section.width, section.depth, 1.0)
        return mesh

    builds = iter_section_builds(spec, plan, PanelVariant("dummy", body))
    first = next(builds)
    assert first.name == "dummy_0_0"
    assert built == ["dummy_0_0"]

    names = [first.name] + [b.name for b in builds]
    assert names == built
    assert len(names) == 9
