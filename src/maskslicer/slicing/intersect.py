"""
Plane-triangle intersection.

Each triangle is cut by a horizontal plane ``z = plane_z``. A well formed cut
yields exactly two points (a segment); degenerate cases, where the triangle
lies in or very near the plane, yield more and are skipped for that plane.

Functions:
    intersect_triangle: Intersection points of one triangle with a plane
    collect_segments: All segments of a geometry at one plane height
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from maskslicer.slicing.tolerances import DEDUP_EPSILON, PLANE_EPSILON, Tolerances

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

    from maskslicer.mesh.triangles import MergedGeometry

logger = logging.getLogger(__name__)

# Directed edges of a triangle in cyclic order
_EDGES = ((0, 1), (1, 2), (2, 0))


@dataclass
class SegmentSet:
    """
    Intersection segments of one plane.

    Attributes:
        plane_z: Height of the slicing plane
        segments: (M, 2, 3) array, one row per segment
        degenerate_count: Triangles skipped because they produced >2 points
    """

    plane_z: float
    segments: NDArray[np.float64]
    degenerate_count: int = 0

    def __len__(self) -> int:
        return len(self.segments)

    @property
    def is_empty(self) -> bool:
        return len(self.segments) == 0


def _dedup_sorted(points: list[NDArray[np.float64]], epsilon: float) -> NDArray[np.float64]:
    """Sort points lexicographically by (x, y, z) and drop near-duplicates."""
    points = sorted(points, key=lambda p: (p[0], p[1], p[2]))
    unique = [points[0]]
    for p in points[1:]:
        if np.linalg.norm(p - unique[-1]) >= epsilon:
            unique.append(p)
    return np.array(unique)


def intersect_triangle(
    vertices: ArrayLike,
    plane_z: float,
    epsilon: float = PLANE_EPSILON,
    dedup_epsilon: float = DEDUP_EPSILON,
) -> NDArray[np.float64]:
    """
    Intersect one triangle with the horizontal plane ``z = plane_z``.

    Vertices within ``epsilon`` of the plane count as on-plane. Edges whose
    endpoints lie strictly on opposite sides contribute their interpolated
    crossing point, on-plane endpoints contribute themselves, and the result
    is deduplicated.

    Args:
        vertices: (3, 3) triangle vertices
        plane_z: Plane height
        epsilon: On-plane tolerance
        dedup_epsilon: Merge distance for coincident result points

    Returns:
        (K, 3) array of intersection points. K == 2 is a regular segment,
        K == 0 means no intersection, K == 1 a single touching vertex and
        K > 2 a degenerate (in-plane) triangle.
    """
    points = np.asarray(vertices, dtype=np.float64)
    distances = points[:, 2] - plane_z

    above = distances > epsilon
    below = distances < -epsilon
    on_plane = ~(above | below)

    # Entirely on one side with nothing touching the plane
    if not on_plane.any() and (above.all() or below.all()):
        return np.zeros((0, 3))

    intersections = []
    for i, j in _EDGES:
        p1, p2 = points[i], points[j]
        d1, d2 = distances[i], distances[j]

        if (above[i] and below[j]) or (below[i] and above[j]):
            t = d1 / (d1 - d2)
            intersections.append(p1 + (p2 - p1) * t)
        elif on_plane[i] and on_plane[j]:
            intersections.append(p1)
            intersections.append(p2)
        elif on_plane[i]:
            intersections.append(p1)
        elif on_plane[j]:
            intersections.append(p2)

    if not intersections:
        return np.zeros((0, 3))

    return _dedup_sorted(intersections, dedup_epsilon)


def _candidate_indices(geometry: MergedGeometry, plane_z: float, epsilon: float) -> NDArray[np.intp]:
    """Indices of triangles not wholly above or wholly below the plane."""
    distances = geometry.vertices[:, :, 2] - plane_z
    reaches = (distances.min(axis=1) <= epsilon) & (distances.max(axis=1) >= -epsilon)
    return np.flatnonzero(reaches)


def collect_segments(
    geometry: MergedGeometry,
    plane_z: float,
    tolerances: Tolerances | None = None,
) -> SegmentSet:
    """
    Collect the intersection segments of every triangle at one plane.

    Triangles producing more than two points are logged and skipped; single
    touching vertices contribute nothing.

    Args:
        geometry: World-space triangles
        plane_z: Plane height
        tolerances: Epsilon settings (defaults if None)

    Returns:
        SegmentSet for the plane
    """
    tol = tolerances or Tolerances()

    segments = []
    degenerate = 0

    if not geometry.is_empty:
        for index in _candidate_indices(geometry, plane_z, tol.plane):
            points = intersect_triangle(geometry.vertices[index], plane_z, tol.plane, tol.dedup)

            if len(points) == 2:
                segments.append(points)
            elif len(points) > 2:
                degenerate += 1
                logger.debug(
                    "Skipped triangle %d intersecting the plane in %d points at z=%g",
                    index,
                    len(points),
                    plane_z,
                )

    if segments:
        segment_array = np.stack(segments)
    else:
        segment_array = np.zeros((0, 2, 3))

    return SegmentSet(plane_z=plane_z, segments=segment_array, degenerate_count=degenerate)


__all__ = ["SegmentSet", "intersect_triangle", "collect_segments"]
