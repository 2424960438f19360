"""Unit tests for the bounded triangle primitive.

Tests cover:
- Precomputed local frame, bounding sphere, normal and depth scale
- Rejection of degenerate triangles
- Exact distance near the triangle: vertices, edges, interior, slab
- Bounding-sphere distance far from the triangle and the exact-path cutoff
- Flat face normal
"""

import math

import numpy as np
import pytest

UNIT_TRIANGLE = ((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0))


class TestTrianglePrecompute:
    """Tests for the Python-side Triangle and its derived state."""

    def test_local_frame_maps_vertices_to_unit_simplex(self):
        """Test that the vertices land on (0,0,0), (1,0,0) and (0,1,0) locally."""
        from sdfmarch.geometry.triangle import Triangle

        tri = Triangle((1.0, 2.0, 3.0), (4.0, 2.0, 3.0), (1.0, 5.0, 7.0))
        expected = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)]
        for vertex, local in zip(tri.vertices, expected):
            h = tri.to_local @ np.array([*vertex, 1.0])
            assert np.allclose(h[:3] / h[3], local, atol=1e-9)

    def test_to_world_inverts_to_local(self):
        """Test that the two transforms are inverse to each other."""
        from sdfmarch.geometry.triangle import Triangle

        tri = Triangle((0.5, -1.0, 2.0), (3.0, 0.0, 1.0), (-1.0, 2.0, 0.0))
        assert np.allclose(tri.to_world @ tri.to_local, np.eye(4), atol=1e-9)

    def test_bounding_sphere(self):
        """Test that the bound is the centroid and the farthest vertex."""
        from sdfmarch.geometry.triangle import Triangle

        tri = Triangle(*UNIT_TRIANGLE)
        assert np.allclose(tri.bound_center, (1.0 / 3.0, 1.0 / 3.0, 0.0))
        assert abs(tri.bound_radius - math.sqrt(5.0) / 3.0) < 1e-12

    def test_normal_follows_winding(self):
        """Test that the normal is (v1 - v0) x (v2 - v0) normalized."""
        from sdfmarch.geometry.triangle import Triangle

        assert np.allclose(Triangle(*UNIT_TRIANGLE).normal, (0.0, 0.0, 1.0))
        flipped = Triangle(UNIT_TRIANGLE[0], UNIT_TRIANGLE[2], UNIT_TRIANGLE[1])
        assert np.allclose(flipped.normal, (0.0, 0.0, -1.0))

    def test_depth_scale_is_inverse_area(self):
        """Test that the depth scale is 1 / |e1 x e2|."""
        from sdfmarch.geometry.triangle import Triangle

        tri = Triangle((0.0, 0.0, 0.0), (2.0, 0.0, 0.0), (0.0, 2.0, 0.0))
        assert abs(tri.depth_scale - 0.25) < 1e-12

    def test_derived_state_is_read_only(self):
        """Test that the precomputed arrays cannot be modified."""
        from sdfmarch.geometry.triangle import Triangle

        tri = Triangle(*UNIT_TRIANGLE)
        with pytest.raises(ValueError):
            tri.to_local[0, 0] = 2.0

    @pytest.mark.parametrize(
        "vertices",
        [
            ((0.0, 0.0, 0.0), (1.0, 1.0, 1.0), (2.0, 2.0, 2.0)),
            ((1.0, 1.0, 1.0), (1.0, 1.0, 1.0), (0.0, 1.0, 0.0)),
            ((0.0, 0.0, 0.0), (0.0, 0.0, 0.0), (0.0, 0.0, 0.0)),
        ],
    )
    def test_degenerate_triangle_rejected(self, vertices):
        """Test that collinear or coincident vertices are rejected."""
        from sdfmarch.geometry.triangle import DegenerateTriangleError, Triangle

        with pytest.raises(DegenerateTriangleError):
            Triangle(*vertices)

    def test_degenerate_error_is_value_error(self):
        """Test that DegenerateTriangleError is a ValueError."""
        from sdfmarch.geometry.triangle import DegenerateTriangleError

        assert issubclass(DegenerateTriangleError, ValueError)


@pytest.fixture
def unit_triangle_scene():
    """Store the unit triangle as the only leaf of the scene."""
    from sdfmarch.geometry.triangle import Triangle
    from sdfmarch.scene.distance import add_triangle, set_triangle_depth

    set_triangle_depth(1e-4)
    tri = Triangle(*UNIT_TRIANGLE)
    add_triangle(tri)
    return tri


class TestTriangleDistance:
    """Tests for the bounded triangle distance."""

    @pytest.mark.parametrize("vertex", UNIT_TRIANGLE)
    def test_vertices_are_on_surface(self, unit_triangle_scene, vertex):
        """Test that every vertex is at distance zero."""
        from sdfmarch.scene.distance import query_distance

        _, d = query_distance(vertex)
        assert abs(d) < 1e-5

    def test_point_on_hypotenuse_is_on_surface(self, unit_triangle_scene):
        """Test the midpoint of the hypotenuse (a point of the bounded triangle)."""
        from sdfmarch.scene.distance import query_distance

        _, d = query_distance((0.5, 0.5, 0.0))
        assert abs(d) < 1e-5

    def test_point_beyond_hypotenuse(self, unit_triangle_scene):
        """Test a coplanar point past the hypotenuse, projected onto it."""
        from sdfmarch.scene.distance import query_distance

        _, d = query_distance((0.6, 0.6, 0.0))
        assert abs(d - 0.1 * math.sqrt(2.0)) < 1e-5

    def test_point_beyond_leg(self, unit_triangle_scene):
        """Test a coplanar point past the x = 0 edge."""
        from sdfmarch.scene.distance import query_distance

        _, d = query_distance((-0.2, 0.5, 0.0))
        assert abs(d - 0.2) < 1e-5

    def test_point_above_interior_is_plane_distance(self, unit_triangle_scene):
        """Test that above the interior the distance is the height minus the slab."""
        from sdfmarch.scene.distance import query_distance

        _, d = query_distance((0.25, 0.25, 0.3))
        assert abs(d - (0.3 - 1e-4)) < 1e-5

    def test_point_below_interior_is_plane_distance(self, unit_triangle_scene):
        """Test that the slab only extends on the normal side."""
        from sdfmarch.scene.distance import query_distance

        _, d = query_distance((0.25, 0.25, -0.3))
        assert abs(d - 0.3) < 1e-5

    def test_far_point_uses_bounding_sphere(self, unit_triangle_scene):
        """Test that far away the bounding-sphere distance is returned."""
        from sdfmarch.scene.distance import query_distance

        point = (0.0, 0.0, 5.0)
        _, d = query_distance(point)
        centroid = np.array([1.0 / 3.0, 1.0 / 3.0, 0.0])
        expected = np.linalg.norm(np.array(point) - centroid) - math.sqrt(5.0) / 3.0
        assert abs(d - expected) < 1e-4
        # A lower bound on the true distance
        assert d <= 5.0

    def test_cutoff_switches_to_exact_path(self):
        """Test that within the cutoff of the bounding sphere the exact distance is used."""
        from sdfmarch.geometry.triangle import Triangle
        from sdfmarch.scene.distance import add_triangle, query_distance, set_triangle_depth

        tri = Triangle(*UNIT_TRIANGLE)
        add_triangle(tri)
        # Just outside the bounding sphere, past the hypotenuse
        outward = np.array([1.0, 1.0, 0.0]) / math.sqrt(2.0)
        point = tri.bound_center + (tri.bound_radius + 5e-4) * outward
        exact = float(np.linalg.norm(point - np.array([0.5, 0.5, 0.0])))

        set_triangle_depth(1e-4)
        _, d = query_distance(tuple(point))
        assert abs(d - 5e-4) < 1e-5

        set_triangle_depth(1e-4, cutoff=1e-3)
        _, d = query_distance(tuple(point))
        assert abs(d - exact) < 1e-4
        assert d > 0.5

    def test_cutoff_never_below_depth(self):
        """Test that a cutoff smaller than the slab is raised to the slab."""
        from sdfmarch.scene.distance import set_triangle_depth, triangle_cutoff

        set_triangle_depth(1e-2, cutoff=1e-3)
        assert abs(triangle_cutoff[None] - 1e-2) < 1e-8

    def test_negative_cutoff_rejected(self):
        """Test that a negative cutoff is rejected."""
        from sdfmarch.scene.distance import set_triangle_depth

        with pytest.raises(ValueError, match="cutoff"):
            set_triangle_depth(1e-4, cutoff=-1.0)

    def test_slab_thickness_is_in_world_units(self):
        """Test that the slab has the same thickness for a larger triangle."""
        from sdfmarch.geometry.triangle import Triangle
        from sdfmarch.scene.distance import add_triangle, query_distance, set_triangle_depth

        set_triangle_depth(1e-3)
        add_triangle(Triangle((0.0, 0.0, 0.0), (2.0, 0.0, 0.0), (0.0, 2.0, 0.0)))

        _, d = query_distance((0.5, 0.5, 0.3))
        assert abs(d - (0.3 - 1e-3)) < 1e-5

    def test_zero_depth_gives_plane_distance(self):
        """Test that a zero slab gives the plain distance to the triangle."""
        from sdfmarch.geometry.triangle import Triangle
        from sdfmarch.scene.distance import add_triangle, query_distance, set_triangle_depth

        set_triangle_depth(0.0)
        add_triangle(Triangle(*UNIT_TRIANGLE))

        _, d = query_distance((0.2, 0.2, 0.1))
        assert abs(d - 0.1) < 1e-5

    def test_negative_depth_rejected(self):
        """Test that a negative slab thickness is rejected."""
        from sdfmarch.scene.distance import set_triangle_depth

        with pytest.raises(ValueError, match="non-negative"):
            set_triangle_depth(-1.0)


class TestTriangleNormal:
    """Tests for the flat triangle normal."""

    def test_normal_is_face_normal_everywhere(self):
        """Test that the normal does not depend on the query point."""
        from sdfmarch.geometry.triangle import Triangle
        from sdfmarch.scene.distance import add_triangle, query_normal

        leaf = add_triangle(Triangle((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0)))

        for point in [(0.0, 0.2, 0.2), (5.0, 5.0, 5.0), (-1.0, 0.0, 0.0)]:
            n = query_normal(leaf, point)
            assert abs(n[0] - 1.0) < 1e-6
            assert abs(n[1]) < 1e-6
            assert abs(n[2]) < 1e-6

    def test_normal_of_unknown_leaf_rejected(self):
        """Test that a leaf index outside the scene raises IndexError."""
        from sdfmarch.scene.distance import query_normal

        with pytest.raises(IndexError):
            query_normal(0, (0.0, 0.0, 0.0))
