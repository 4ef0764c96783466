"""Shared fixtures for the maskslicer test suite.

Most tests slice the same small model: an axis-aligned box triangulated into
12 outward-facing triangles. The default box is a 10 mm cube centred on the
origin, rendered on a 100 x 100 px canvas covering 20 x 20 mm (5 px/mm).
"""

import numpy as np
import pytest

from maskslicer.mesh.triangles import Solid, transform_solids
from maskslicer.slicing.raster import CanvasSpec
from maskslicer.slicing.slicer import SliceConfig

# Corner order: bottom ring (z-) then top ring (z+), counter-clockwise from above
_BOX_CORNERS = np.array(
    [
        [-1, -1, -1],
        [1, -1, -1],
        [1, 1, -1],
        [-1, 1, -1],
        [-1, -1, 1],
        [1, -1, 1],
        [1, 1, 1],
        [-1, 1, 1],
    ],
    dtype=np.float64,
)

# Two triangles per face, wound counter-clockwise seen from outside
_BOX_FACES = [
    (0, 2, 1), (0, 3, 2),  # bottom
    (4, 5, 6), (4, 6, 7),  # top
    (0, 1, 5), (0, 5, 4),  # y-
    (1, 2, 6), (1, 6, 5),  # x+
    (2, 3, 7), (2, 7, 6),  # y+
    (3, 0, 4), (3, 4, 7),  # x-
]


def box_vertices(size=(10.0, 10.0, 10.0), center=(0.0, 0.0, 0.0)):
    """Return (12, 3, 3) triangle vertices of an axis-aligned box."""
    half = np.asarray(size, dtype=np.float64) / 2.0
    corners = _BOX_CORNERS * half + np.asarray(center, dtype=np.float64)
    return np.array([[corners[i] for i in face] for face in _BOX_FACES])


def face_normals(vertices):
    """Unit normals from triangle winding."""
    normals = np.cross(vertices[:, 1] - vertices[:, 0], vertices[:, 2] - vertices[:, 0])
    return normals / np.linalg.norm(normals, axis=1, keepdims=True)


@pytest.fixture
def make_box():
    """Factory fixture building box Solids of any size and position."""

    def _make(size=(10.0, 10.0, 10.0), center=(0.0, 0.0, 0.0), model_matrix=None, name="box"):
        vertices = box_vertices(size, center)
        return Solid(
            vertices=vertices,
            normals=face_normals(vertices),
            model_matrix=model_matrix,
            name=name,
        )

    return _make


@pytest.fixture
def cube(make_box):
    """10 mm cube centred on the origin."""
    return make_box()


@pytest.fixture
def cube_geometry(cube):
    """World-space geometry of the cube fixture."""
    return transform_solids([cube])


@pytest.fixture
def canvas():
    """100 x 100 px canvas over 20 x 20 mm."""
    return CanvasSpec(pixel_x=100, pixel_y=100, physical_x=20.0, physical_y=20.0)


@pytest.fixture
def config(canvas):
    """Single-threaded config slicing every 2.5 mm."""
    return SliceConfig(canvas=canvas, thickness=2.5, workers=1)
