"""
Triangle soups and the transform stage that merges them into world space.

Solids arrive as flat triangle lists in their own local frame together with a
4x4 model matrix. :func:`transform_solids` applies each matrix and returns a
single :class:`MergedGeometry` whose arrays are read-only, so every slicing
plane can share it without copying or locking.

Classes:
    Triangle: One immutable world-space triangle
    Solid: Local-frame triangles plus a model matrix
    MergedGeometry: Read-only world-space triangles of all solids
    BoundingBox: Axis-aligned extent of a MergedGeometry

Functions:
    transform_solids: Apply model matrices and merge solids
    compute_bounding_box: Axis-aligned extent of a geometry
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

from maskslicer.mesh.transforms import as_model_matrix

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray


def _frozen(array: NDArray) -> NDArray:
    array.setflags(write=False)
    return array


@dataclass(frozen=True)
class Triangle:
    """
    A single triangle: three vertices and a unit face normal.

    Attributes:
        vertices: (3, 3) array, one row per vertex
        normal: (3,) face normal
    """

    vertices: NDArray[np.float64]
    normal: NDArray[np.float64]

    def __post_init__(self) -> None:
        vertices = np.array(self.vertices, dtype=np.float64)
        normal = np.array(self.normal, dtype=np.float64)
        if vertices.shape != (3, 3):
            raise ValueError(f"Triangle vertices must have shape (3, 3), got {vertices.shape}")
        if normal.shape != (3,):
            raise ValueError(f"Triangle normal must have shape (3,), got {normal.shape}")
        object.__setattr__(self, "vertices", _frozen(vertices))
        object.__setattr__(self, "normal", _frozen(normal))

    @property
    def z_extent(self) -> tuple[float, float]:
        """Return (min_z, max_z) of the three vertices."""
        z = self.vertices[:, 2]
        return float(z.min()), float(z.max())


@dataclass
class Solid:
    """
    A triangulated solid in its local frame together with its placement.

    Attributes:
        vertices: (N, 3, 3) array of triangle vertices
        normals: (N, 3) array of face normals
        model_matrix: (4, 4) local-to-world placement (default identity)
        name: Optional label used in logs and reports
    """

    vertices: NDArray[np.float64]
    normals: NDArray[np.float64]
    model_matrix: NDArray[np.float64] = field(default_factory=lambda: np.eye(4))
    name: str | None = None

    def __post_init__(self) -> None:
        """Validate array shapes."""
        self.vertices = np.asarray(self.vertices, dtype=np.float64).reshape(-1, 3, 3)
        self.normals = np.asarray(self.normals, dtype=np.float64).reshape(-1, 3)
        self.model_matrix = as_model_matrix(self.model_matrix)

        if len(self.normals) != len(self.vertices):
            raise ValueError(
                f"Solid has {len(self.vertices)} triangles but {len(self.normals)} normals"
            )

    @property
    def num_triangles(self) -> int:
        return len(self.vertices)

    def with_matrix(self, model_matrix: ArrayLike) -> Solid:
        """Return the same triangles placed with a different model matrix."""
        return Solid(
            vertices=self.vertices,
            normals=self.normals,
            model_matrix=as_model_matrix(model_matrix),
            name=self.name,
        )

    @classmethod
    def from_triangles(
        cls,
        triangles: Iterable[Triangle],
        model_matrix: ArrayLike | None = None,
        name: str | None = None,
    ) -> Solid:
        """Build a solid from Triangle objects."""
        triangles = list(triangles)
        if triangles:
            vertices = np.stack([t.vertices for t in triangles])
            normals = np.stack([t.normal for t in triangles])
        else:
            vertices = np.zeros((0, 3, 3))
            normals = np.zeros((0, 3))
        return cls(
            vertices=vertices,
            normals=normals,
            model_matrix=as_model_matrix(model_matrix),
            name=name,
        )


@dataclass(frozen=True)
class BoundingBox:
    """
    Axis-aligned bounding box.

    An empty geometry produces ``min_corner = +inf`` and
    ``max_corner = -inf`` on every axis.
    """

    min_corner: NDArray[np.float64]
    max_corner: NDArray[np.float64]

    @property
    def is_empty(self) -> bool:
        return bool(np.any(self.min_corner > self.max_corner))

    @property
    def size(self) -> NDArray[np.float64]:
        """Return (dx, dy, dz), zeros for an empty box."""
        if self.is_empty:
            return np.zeros(3)
        return self.max_corner - self.min_corner

    @property
    def center(self) -> NDArray[np.float64]:
        return (self.min_corner + self.max_corner) / 2


@dataclass(frozen=True)
class MergedGeometry:
    """
    World-space triangles of every solid being sliced together.

    The arrays are read-only snapshots; nothing downstream can mutate them,
    which is what makes concurrent per-plane processing safe.

    Attributes:
        vertices: (N, 3, 3) triangle vertices
        normals: (N, 3) unit face normals
    """

    vertices: NDArray[np.float64]
    normals: NDArray[np.float64]

    def __post_init__(self) -> None:
        vertices = np.array(self.vertices, dtype=np.float64).reshape(-1, 3, 3)
        normals = np.array(self.normals, dtype=np.float64).reshape(-1, 3)
        if len(vertices) != len(normals):
            raise ValueError(
                f"Geometry has {len(vertices)} triangles but {len(normals)} normals"
            )
        object.__setattr__(self, "vertices", _frozen(vertices))
        object.__setattr__(self, "normals", _frozen(normals))

    @classmethod
    def empty(cls) -> MergedGeometry:
        return cls(vertices=np.zeros((0, 3, 3)), normals=np.zeros((0, 3)))

    @property
    def num_triangles(self) -> int:
        return len(self.vertices)

    @property
    def is_empty(self) -> bool:
        return self.num_triangles == 0

    def __len__(self) -> int:
        return self.num_triangles

    def __iter__(self) -> Iterator[Triangle]:
        for i in range(self.num_triangles):
            yield self.triangle(i)

    def triangle(self, index: int) -> Triangle:
        return Triangle(vertices=self.vertices[index], normal=self.normals[index])

    @property
    def bounding_box(self) -> BoundingBox:
        return compute_bounding_box(self)


def _transform_normals(normals: NDArray[np.float64], matrix: NDArray[np.float64]) -> NDArray[np.float64]:
    """Transform directions by the linear part of ``matrix`` and renormalize.

    Zero-length results (degenerate matrices) stay zero instead of becoming NaN.
    """
    transformed = normals @ matrix[:3, :3].T
    lengths = np.linalg.norm(transformed, axis=1, keepdims=True)
    return np.divide(
        transformed,
        lengths,
        out=np.zeros_like(transformed),
        where=lengths > 0,
    )


def transform_solids(solids: Iterable[Solid]) -> MergedGeometry:
    """
    Apply each solid's model matrix and merge all triangles.

    Vertices are transformed as points (translation applies); normals as
    directions (translation ignored) and renormalized, since non-uniform
    scale breaks their unit length. Degenerate matrices are accepted as-is.

    Args:
        solids: Solids to place in the shared world frame

    Returns:
        Read-only MergedGeometry containing every triangle in input order
    """
    vertex_blocks = []
    normal_blocks = []

    for solid in solids:
        if solid.num_triangles == 0:
            continue

        matrix = solid.model_matrix
        points = solid.vertices.reshape(-1, 3)
        homogeneous = np.hstack([points, np.ones((len(points), 1))])
        world = homogeneous @ matrix.T

        vertex_blocks.append(world[:, :3].reshape(-1, 3, 3))
        normal_blocks.append(_transform_normals(solid.normals, matrix))

    if not vertex_blocks:
        return MergedGeometry.empty()

    return MergedGeometry(
        vertices=np.concatenate(vertex_blocks),
        normals=np.concatenate(normal_blocks),
    )


def compute_bounding_box(geometry: MergedGeometry) -> BoundingBox:
    """
    Compute the axis-aligned bounding box of a geometry.

    Returns:
        BoundingBox with +inf/-inf sentinels when the geometry is empty
    """
    if geometry.is_empty:
        return BoundingBox(
            min_corner=np.full(3, np.inf),
            max_corner=np.full(3, -np.inf),
        )

    points = geometry.vertices.reshape(-1, 3)
    return BoundingBox(min_corner=points.min(axis=0), max_corner=points.max(axis=0))


__all__ = [
    "Triangle",
    "Solid",
    "BoundingBox",
    "MergedGeometry",
    "transform_solids",
    "compute_bounding_box",
]
