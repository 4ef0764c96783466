"""Triangle meshes, model matrices and the world-space transform stage."""

from maskslicer.mesh.transforms import (
    compose,
    identity_matrix,
    rotation_matrix,
    scale_matrix,
    translation_matrix,
)
from maskslicer.mesh.triangles import (
    BoundingBox,
    MergedGeometry,
    Solid,
    Triangle,
    compute_bounding_box,
    transform_solids,
)

__all__ = [
    # Triangles
    "Triangle",
    "Solid",
    "MergedGeometry",
    "BoundingBox",
    "transform_solids",
    "compute_bounding_box",
    # Matrices
    "identity_matrix",
    "translation_matrix",
    "scale_matrix",
    "rotation_matrix",
    "compose",
]
