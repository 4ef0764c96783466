"""
Printability checks for sliced layer stacks.

Provides functions to flag geometry that will not print as intended on a
masked resin printer: parts clipped by the canvas, islands with nothing
underneath them, and holes in the layer sequence.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from scipy import ndimage

if TYPE_CHECKING:
    from maskslicer.layers.stack import Layer, LayerStack
    from maskslicer.mesh.triangles import MergedGeometry
    from maskslicer.slicing.raster import CanvasSpec


@dataclass
class Violation:
    """
    Represents a failed printability check.

    Attributes:
        check: Name of the failed check (e.g., "build_area")
        layer_index: Layer the problem was found on (-1 for whole-model checks)
        location: (x, y) position in model units where the problem occurs
        measured: The measured value that fails the check
        limit: The value the check requires
    """

    check: str
    layer_index: int
    location: tuple[float, float]
    measured: float
    limit: float

    def __str__(self) -> str:
        where = "model" if self.layer_index < 0 else f"layer {self.layer_index}"
        return (
            f"Violation({self.check}): {where} at "
            f"({self.location[0]:.2f}, {self.location[1]:.2f}) - "
            f"measured {self.measured:.3f}, limit {self.limit:.3f}"
        )


def _pixel_to_model(canvas: CanvasSpec, col: float, row: float) -> tuple[float, float]:
    """Inverse of CanvasSpec.to_pixels (without rounding)."""
    return (
        (col - canvas.pixel_x / 2.0) / canvas.ppm,
        (row - canvas.pixel_y / 2.0) / canvas.ppm,
    )


def check_build_area(geometry: MergedGeometry, canvas: CanvasSpec) -> list[Violation]:
    """
    Report geometry that extends past the canvas and would be clipped.

    The canvas is centred on the model origin, so the printable region is
    ``[-w/2, w/2] x [-h/2, h/2]`` in model units.

    Args:
        geometry: World-space triangles
        canvas: Target canvas

    Returns:
        One violation per overhanging side (empty if everything fits)
    """
    if geometry.is_empty:
        return []

    box = geometry.bounding_box
    half_w, half_h = (extent / 2.0 for extent in canvas.printable_extent)

    violations = []
    sides = (
        ("build_area_x_min", box.min_corner[0], -half_w, (box.min_corner[0], box.center[1])),
        ("build_area_x_max", box.max_corner[0], half_w, (box.max_corner[0], box.center[1])),
        ("build_area_y_min", box.min_corner[1], -half_h, (box.center[0], box.min_corner[1])),
        ("build_area_y_max", box.max_corner[1], half_h, (box.center[0], box.max_corner[1])),
    )
    for name, measured, limit, location in sides:
        overhang = measured < limit if limit < 0 else measured > limit
        if overhang:
            violations.append(
                Violation(
                    check=name,
                    layer_index=-1,
                    location=(float(location[0]), float(location[1])),
                    measured=float(measured),
                    limit=float(limit),
                )
            )
    return violations


def check_unsupported_islands(
    layer: Layer,
    below: Layer | None,
    canvas: CanvasSpec,
) -> list[Violation]:
    """
    Find islands of a layer that do not touch anything on the layer below.

    Uses 4-connectivity. The first layer rests on the build plate and is
    always supported, so pass ``below=None`` for it.

    Args:
        layer: The layer to check
        below: The previous layer in the stack, or None
        canvas: Canvas the masks were rendered on

    Returns:
        One violation per unsupported island, located at its centroid
    """
    if below is None:
        return []

    solid = layer.solid
    if not solid.any():
        return []

    structure = ndimage.generate_binary_structure(2, 1)
    labeled, num_features = ndimage.label(solid, structure=structure)
    if num_features == 0:
        return []

    # Filled pixels of the layer below, per island label
    support = ndimage.sum(below.solid, labeled, range(1, num_features + 1))
    sizes = ndimage.sum(solid, labeled, range(1, num_features + 1))

    violations = []
    for label, (supported_px, size_px) in enumerate(zip(support, sizes), start=1):
        if supported_px > 0:
            continue
        rows, cols = np.where(labeled == label)
        x, y = _pixel_to_model(canvas, float(np.mean(cols)), float(np.mean(rows)))
        violations.append(
            Violation(
                check="unsupported_island",
                layer_index=layer.index,
                location=(x, y),
                measured=float(size_px) / canvas.ppm**2,
                limit=0.0,
            )
        )
    return violations


def check_layer_gaps(stack: LayerStack) -> list[Violation]:
    """
    Report scheduled planes skipped between two produced layers.

    A skipped plane inside the stack means the printer would move up twice
    without exposing anything, usually caused by non-manifold input.

    Returns:
        One violation per gap
    """
    violations = []
    for lower, upper in zip(stack.layers, stack.layers[1:]):
        missing = upper.plane_index - lower.plane_index - 1
        if missing > 0:
            violations.append(
                Violation(
                    check="layer_gap",
                    layer_index=upper.index,
                    location=(0.0, 0.0),
                    measured=float(missing),
                    limit=0.0,
                )
            )
    return violations


def check_stack(stack: LayerStack, geometry: MergedGeometry | None = None) -> list[Violation]:
    """
    Run all printability checks on a stack.

    Args:
        stack: Sliced layers (must carry its canvas)
        geometry: Source geometry, enables the build area check

    Returns:
        List of Violation objects (empty if everything passes)
    """
    if stack.canvas is None:
        raise ValueError("LayerStack has no canvas; cannot run checks")

    violations = []
    if geometry is not None:
        violations.extend(check_build_area(geometry, stack.canvas))

    below = None
    for layer in stack.layers:
        violations.extend(check_unsupported_islands(layer, below, stack.canvas))
        below = layer

    violations.extend(check_layer_gaps(stack))
    return violations


__all__ = [
    "Violation",
    "check_build_area",
    "check_unsupported_islands",
    "check_layer_gaps",
    "check_stack",
]
