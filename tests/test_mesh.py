import math

from grid_panels.mesh import Box, MeshBuilder, Triangle
from grid_panels.vec3 import norm


def _centroid(tri):
    return tuple((tri.v1[i] + tri.v2[i] + tri.v3[i]) / 3 for i in range(3))


def test_box_has_twelve_outward_unit_normals():
    mesh = MeshBuilder()
    mesh.add_box(1.0, 2.0, 3.0, 10.0, 20.0, 5.0)
    assert len(mesh) == 12

    center = (6.0, 12.0, 5.5)
    for tri in mesh.triangles:
        assert math.isclose(norm(tri.normal), 1.0, abs_tol=1e-9)
        c = _centroid(tri)
        outward = sum((c[i] - center[i]) * tri.normal[i] for i in range(3))
        assert outward > 0


def test_box_bounds_match_requested_extent():
    mesh = MeshBuilder()
    mesh.add_box(-15.0, 0.0, 0.0, 15.0, 45.0, 3.0)
    lo, hi = mesh.bounds()
    assert lo == (-15.0, 0.0, 0.0)
    assert hi == (0.0, 45.0, 3.0)


def test_degenerate_triangle_is_dropped_and_counted():
    mesh = MeshBuilder()
    result = mesh.add_triangle((0, 0, 0), (1, 1, 1), (2, 2, 2))
    assert result is None
    assert len(mesh) == 0
    assert mesh.degenerate_count == 1


def test_zero_area_triangle_has_zero_normal():
    tri = Triangle.from_vertices((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (2.0, 0.0, 0.0))
    assert tri.normal == (0.0, 0.0, 0.0)
    assert tri.is_degenerate


def test_add_boxes_skips_sub_minimum_boxes():
    mesh = MeshBuilder()
    added = mesh.add_boxes(
        [
            Box(0, 0, 0, 5, 5, 5),
            Box(0, 0, 0, 0.005, 5, 5),
            Box(0, 0, 0, 5, -1, 5),
        ]
    )
    assert added == 1
    assert len(mesh) == 12


def test_hollow_ring_faces_the_hole_axis():
    mesh = MeshBuilder()
    mesh.add_hollow_ring(10.0, 10.0, 0.0, 2.0, 3.0, segments=24)
    assert len(mesh) == 48
    for tri in mesh.triangles:
        cx, cy, _ = _centroid(tri)
        radial = (cx - 10.0) * tri.normal[0] + (cy - 10.0) * tri.normal[1]
        assert radial < 0
        assert math.isclose(tri.normal[2], 0.0, abs_tol=1e-9)


def test_cylinder_is_capped():
    mesh = MeshBuilder()
    mesh.add_cylinder(0.0, 0.0, 2.0, 4.0, 0.5, segments=12)
    # side quad + top and bottom fan triangle per segment
    assert len(mesh) == 12 * 4
    up = [t for t in mesh.triangles if math.isclose(t.normal[2], 1.0)]
    down = [t for t in mesh.triangles if math.isclose(t.normal[2], -1.0)]
    assert len(up) == len(down) == 12


def test_stl_text_layout():
    mesh = MeshBuilder()
    mesh.add_box(0.0, 0.0, 0.0, 45.0, 4.0, 3.0)
    text = mesh.to_stl("front_0_0")
    lines = text.splitlines()

    assert lines[0] == "solid front_0_0"
    assert lines[-1] == "endsolid front_0_0"
    assert text.endswith("\n")
    assert text.count("facet normal") == 12
    assert len(lines) == 2 + 12 * 7

    facet = lines[1:8]
    assert facet[0].startswith("  facet normal ")
    assert facet[1] == "    outer loop"
    assert all(line.startswith("      vertex ") for line in facet[2:5])
    assert facet[5] == "    endloop"
    assert facet[6] == "  endfacet"
    assert "4.500000e+01" in text


def test_serialization_is_deterministic():
    def build():
        mesh = MeshBuilder()
        mesh.add_box(0.5, 1.5, 0.0, 3.0, 4.0, 2.0)
        mesh.add_hollow_ring(1.0, 1.0, 0.0, 2.1, 3.0)
        return mesh.to_stl("x")

    assert build() == build()
