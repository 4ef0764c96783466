"""
Plane schedule: the ordered Z heights at which a geometry is sliced.

Example:
    >>> plane_heights(0.0, 10.0, 2.5)
    array([ 0. ,  2.5,  5. ,  7.5, 10. ])
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from maskslicer.mesh.triangles import MergedGeometry


def z_range(geometry: MergedGeometry) -> tuple[float, float]:
    """
    Return (min_z, max_z) over all vertices.

    Empty geometry gives ``(inf, -inf)``.
    """
    if geometry.is_empty:
        return (math.inf, -math.inf)
    z = geometry.vertices[:, :, 2]
    return (float(z.min()), float(z.max()))


def plane_heights(min_z: float, max_z: float, thickness: float) -> NDArray[np.float64]:
    """
    Compute slicing heights ``min_z, min_z + t, min_z + 2t, ...`` up to ``max_z``.

    Each height is ``min_z + k * t`` rather than an accumulated sum, so exact
    multiples land exactly on ``max_z``. The schedule always starts at
    ``min_z``; there is no extra partial layer at the top.

    Args:
        min_z: Lowest vertex height
        max_z: Highest vertex height
        thickness: Layer thickness, must be positive

    Returns:
        1D array of heights in ascending order (empty for non-finite bounds)
    """
    if not thickness > 0:
        raise ValueError(f"thickness must be positive, got {thickness}")

    if not (math.isfinite(min_z) and math.isfinite(max_z)) or min_z > max_z:
        return np.zeros(0, dtype=np.float64)

    heights = []
    k = 0
    while True:
        z = min_z + k * thickness
        if z > max_z:
            break
        heights.append(z)
        k += 1

    return np.array(heights, dtype=np.float64)


def schedule_for(geometry: MergedGeometry, thickness: float) -> NDArray[np.float64]:
    """Plane heights spanning the Z extent of ``geometry``."""
    min_z, max_z = z_range(geometry)
    return plane_heights(min_z, max_z, thickness)


__all__ = ["z_range", "plane_heights", "schedule_for"]
