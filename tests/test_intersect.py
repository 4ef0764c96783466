"""Tests for plane-triangle intersection."""

import logging

import numpy as np
import pytest
from numpy.testing import assert_allclose

from maskslicer.mesh.triangles import MergedGeometry
from maskslicer.slicing.intersect import collect_segments, intersect_triangle
from maskslicer.slicing.tolerances import Tolerances


class TestIntersectTriangle:
    """Tests for single-triangle intersection."""

    def test_above_plane(self):
        points = intersect_triangle([[0, 0, 1], [1, 0, 2], [0, 1, 3]], 0.0)
        assert points.shape == (0, 3)

    def test_below_plane(self):
        points = intersect_triangle([[0, 0, -1], [1, 0, -2], [0, 1, -3]], 0.0)
        assert points.shape == (0, 3)

    def test_crossing_gives_segment(self):
        points = intersect_triangle([[0, 0, -1], [2, 0, 1], [0, 2, 1]], 0.0)

        assert points.shape == (2, 3)
        # Lexicographically sorted
        assert_allclose(points, [[0, 1, 0], [1, 0, 0]])

    def test_interpolation(self):
        points = intersect_triangle([[0, 0, 0], [4, 0, 4], [0, 4, 4]], 1.0)
        assert_allclose(points, [[0, 1, 1], [1, 0, 1]])

    def test_vertex_touch_gives_single_point(self):
        points = intersect_triangle([[0, 0, 0], [1, 0, 1], [0, 1, 1]], 0.0)
        assert_allclose(points, [[0, 0, 0]])

    def test_edge_on_plane(self):
        points = intersect_triangle([[0, 0, 0], [1, 0, 0], [0, 1, 1]], 0.0)
        assert_allclose(points, [[0, 0, 0], [1, 0, 0]])

    def test_vertex_on_plane_with_crossing(self):
        """One vertex on the plane, the opposite edge crosses it."""
        points = intersect_triangle([[0, 0, 0], [2, 0, -1], [2, 2, 1]], 0.0)

        assert points.shape == (2, 3)
        assert_allclose(points, [[0, 0, 0], [2, 1, 0]])

    def test_coplanar_triangle_is_degenerate(self):
        points = intersect_triangle([[0, 0, 0], [1, 0, 0], [0, 1, 0]], 0.0)
        assert len(points) == 3

    def test_vertex_within_epsilon_counts_as_on_plane(self):
        points = intersect_triangle([[0, 0, 1e-8], [1, 0, 1], [0, 1, 1]], 0.0)
        assert len(points) == 1

    def test_custom_epsilon(self):
        vertices = [[0, 0, 0.01], [1, 0, 0.01], [0, 1, 1]]
        assert len(intersect_triangle(vertices, 0.0)) == 0
        assert len(intersect_triangle(vertices, 0.0, epsilon=0.05)) == 2


class TestCollectSegments:
    """Tests for collecting a plane's segments from a geometry."""

    def test_mid_plane(self, cube_geometry):
        result = collect_segments(cube_geometry, 0.0)

        assert len(result) == 8
        assert result.segments.shape == (8, 2, 3)
        assert result.degenerate_count == 0
        assert_allclose(result.segments[:, :, 2], 0.0)

    def test_bottom_face_is_skipped(self, cube_geometry, caplog):
        """Coplanar bottom triangles are degenerate, side edges still close the outline."""
        caplog.set_level(logging.DEBUG, logger="maskslicer.slicing.intersect")
        result = collect_segments(cube_geometry, -5.0)

        assert result.degenerate_count == 2
        assert len(result) == 4
        skipped = [r for r in caplog.records if "Skipped triangle" in r.getMessage()]
        assert len(skipped) == 2
        assert all(r.levelno == logging.DEBUG for r in skipped)
        assert "z=-5" in skipped[0].getMessage()

    def test_outside_z_extent(self, cube_geometry):
        result = collect_segments(cube_geometry, 100.0)
        assert result.is_empty
        assert result.segments.shape == (0, 2, 3)

    def test_empty_geometry(self):
        result = collect_segments(MergedGeometry.empty(), 0.0)
        assert result.is_empty
        assert result.degenerate_count == 0

    def test_tolerances_are_used(self, cube_geometry):
        # Within a wide plane tolerance the top face counts as coplanar
        result = collect_segments(cube_geometry, 4.99, Tolerances(plane=0.1))
        assert result.degenerate_count == 2

    @pytest.mark.parametrize("z", [-4.0, -1.3, 2.2, 4.9])
    def test_segments_lie_on_plane(self, cube_geometry, z):
        result = collect_segments(cube_geometry, z)
        assert len(result) == 8
        assert np.all(np.abs(result.segments[:, :, 2] - z) < 1e-12)

    @pytest.mark.parametrize("plane_z", [0.1, 0.3, 2.7, 1000.1])
    def test_agrees_with_per_triangle_result_at_tolerance_edge(self, plane_z):
        """Edges sitting one tolerance from the plane give the same answer either way."""
        eps = Tolerances().plane
        edge_heights = []
        for base in (plane_z + eps, plane_z - eps):
            value = base
            for _ in range(4):
                edge_heights.extend(
                    [value, np.nextafter(value, np.inf), np.nextafter(value, -np.inf)]
                )
                value = np.nextafter(value, np.inf)

        triangles = []
        for i, z in enumerate(edge_heights):
            x = float(i)
            far = z + 1.0 if z > plane_z else z - 1.0
            triangles.append([[x, 0.0, z], [x + 0.5, 0.0, z], [x, 0.5, far]])
        geometry = MergedGeometry(
            vertices=np.array(triangles), normals=np.zeros((len(triangles), 3))
        )

        dedup = Tolerances().dedup
        expected = sum(
            len(intersect_triangle(t, plane_z, eps, dedup)) == 2 for t in geometry.vertices
        )
        assert len(collect_segments(geometry, plane_z)) == expected
