"""
STL reading and writing through numpy-stl.

The slicing core only consumes triangle arrays; this module adapts STL files
(ASCII or binary) into :class:`~maskslicer.mesh.triangles.Solid` objects.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
from stl import mesh as stl_mesh

from maskslicer.mesh.transforms import as_model_matrix
from maskslicer.mesh.triangles import Solid

if TYPE_CHECKING:
    from numpy.typing import ArrayLike

logger = logging.getLogger(__name__)


def _unit_normals(normals: np.ndarray) -> np.ndarray:
    lengths = np.linalg.norm(normals, axis=1, keepdims=True)
    return np.divide(normals, lengths, out=np.zeros_like(normals), where=lengths > 0)


def load_stl(
    path: str | Path,
    model_matrix: ArrayLike | None = None,
    name: str | None = None,
) -> Solid:
    """
    Load an STL file as a Solid.

    Face normals are recomputed from the vertex winding and normalized, so
    files with missing or zeroed normals load correctly.

    Args:
        path: Path to an ASCII or binary STL file
        model_matrix: Optional 4x4 placement (identity if None)
        name: Label for the solid (defaults to the file stem)

    Returns:
        Solid in the file's coordinate frame

    Raises:
        FileNotFoundError: If ``path`` does not exist
        ValueError: If the file contains no triangles
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"STL file not found: {path}")

    data = stl_mesh.Mesh.from_file(str(path))
    if len(data.vectors) == 0:
        raise ValueError(f"STL file contains no triangles: {path}")

    vertices = np.asarray(data.vectors, dtype=np.float64)
    normals = _unit_normals(np.asarray(data.normals, dtype=np.float64))

    logger.debug("Loaded %d triangles from %s", len(vertices), path)

    return Solid(
        vertices=vertices,
        normals=normals,
        model_matrix=as_model_matrix(model_matrix),
        name=name or path.stem,
    )


def save_stl(solid: Solid, path: str | Path) -> Path:
    """
    Write a solid's local-frame triangles to a binary STL file.

    The model matrix is not applied; use ``transform_solids`` first to
    export world-space geometry.

    Args:
        solid: Solid to write
        path: Output file path

    Returns:
        Path to the written file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = stl_mesh.Mesh(np.zeros(solid.num_triangles, dtype=stl_mesh.Mesh.dtype))
    if solid.num_triangles:
        data.vectors[:] = solid.vertices
    data.save(str(path))
    return path


__all__ = ["load_stl", "save_stl"]
