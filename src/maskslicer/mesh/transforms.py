"""
Builders for 4x4 affine model matrices.

A solid is placed in the build volume by a single homogeneous model matrix.
These helpers construct the common placements so callers do not have to
assemble matrices by hand.

Example:
    >>> import numpy as np
    >>> from maskslicer.mesh.transforms import compose, rotation_matrix, translation_matrix
    >>> # Rotate 90 degrees about Z, then lift 5 mm off the plate
    >>> M = compose(rotation_matrix((0, 0, 1), np.pi / 2), translation_matrix((0, 0, 5)))
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray


def identity_matrix() -> NDArray[np.float64]:
    """Return the 4x4 identity placement."""
    return np.eye(4, dtype=np.float64)


def as_model_matrix(matrix: ArrayLike | None) -> NDArray[np.float64]:
    """Coerce a matrix-like value into a 4x4 float64 array.

    Args:
        matrix: 4x4 array-like, or None for the identity

    Returns:
        (4, 4) float64 array (always a fresh copy)
    """
    if matrix is None:
        return identity_matrix()
    result = np.array(matrix, dtype=np.float64)
    if result.shape != (4, 4):
        raise ValueError(f"model matrix must be 4x4, got shape {result.shape}")
    return result


def translation_matrix(offset: ArrayLike) -> NDArray[np.float64]:
    """Create a 4x4 translation matrix.

    Args:
        offset: (x, y, z) translation vector

    Returns:
        (4, 4) homogeneous matrix
    """
    offset = np.asarray(offset, dtype=np.float64)
    if offset.shape != (3,):
        raise ValueError(f"offset must be a 3-element vector, got shape {offset.shape}")

    M = identity_matrix()
    M[:3, 3] = offset
    return M


def scale_matrix(factor: float | ArrayLike) -> NDArray[np.float64]:
    """Create a 4x4 scale matrix.

    Negative factors mirror the model, which is allowed. Zero factors would
    flatten it and are rejected.

    Args:
        factor: Uniform scale (float) or per-axis (sx, sy, sz)

    Returns:
        (4, 4) homogeneous matrix
    """
    if np.isscalar(factor):
        scale = np.full(3, float(factor))
    else:
        scale = np.asarray(factor, dtype=np.float64)

    if scale.shape != (3,):
        raise ValueError(f"scale must be scalar or 3-element vector, got shape {scale.shape}")
    if np.any(scale == 0):
        raise ValueError(f"scale factors must be non-zero, got {scale}")

    M = identity_matrix()
    M[0, 0], M[1, 1], M[2, 2] = scale
    return M


def rotation_matrix(axis: ArrayLike, angle: float) -> NDArray[np.float64]:
    """Create a 4x4 rotation matrix about an axis through the origin.

    Uses Rodrigues' rotation formula.

    Args:
        axis: (3,) rotation axis (normalized internally)
        angle: Rotation angle in radians, counter-clockwise looking down the axis

    Returns:
        (4, 4) homogeneous matrix
    """
    axis = np.asarray(axis, dtype=np.float64)
    norm = np.linalg.norm(axis)
    if axis.shape != (3,) or norm == 0:
        raise ValueError(f"axis must be a non-zero 3-element vector, got {axis}")
    axis = axis / norm

    # R = I + sin(θ)K + (1 - cos(θ))K²
    K = np.array(
        [
            [0, -axis[2], axis[1]],
            [axis[2], 0, -axis[0]],
            [-axis[1], axis[0], 0],
        ]
    )
    R = np.eye(3) + np.sin(angle) * K + (1 - np.cos(angle)) * (K @ K)

    M = identity_matrix()
    M[:3, :3] = R
    return M


def compose(*matrices: ArrayLike) -> NDArray[np.float64]:
    """Chain placements in application order.

    ``compose(A, B)`` applies ``A`` first and then ``B``, i.e. returns
    ``B @ A``.

    Args:
        *matrices: 4x4 matrices in the order they should be applied

    Returns:
        (4, 4) combined matrix
    """
    result = identity_matrix()
    for matrix in matrices:
        result = as_model_matrix(matrix) @ result
    return result


__all__ = [
    "identity_matrix",
    "as_model_matrix",
    "translation_matrix",
    "scale_matrix",
    "rotation_matrix",
    "compose",
]
