"""
Rasterization of polygon loops into binary layer masks.

Model coordinates are mapped onto the pixel canvas with one uniform scale,
the smaller of the two axis scales, so the model is never distorted and
always fits. The model origin maps to the canvas centre.

Fill rules:
    - "union": every loop is filled and OR-ed onto the canvas. A loop nested
      inside another does not cut a hole.
    - "evenodd": loop interiors are XOR-ed, so nested loops alternate between
      solid and hole.

Boundary pixels of every loop are always set, whatever the fill rule.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

import numpy as np
from skimage.draw import line, polygon

from maskslicer.errors import ConfigurationError
from maskslicer.layers.stack import FILL_VALUE

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

FillRule = Literal["union", "evenodd"]
FILL_RULES = ("union", "evenodd")


@dataclass(frozen=True)
class CanvasSpec:
    """
    Output canvas: pixel dimensions and the physical area they cover.

    Attributes:
        pixel_x: Canvas width in pixels
        pixel_y: Canvas height in pixels
        physical_x: Width covered by the canvas in model units (e.g. mm)
        physical_y: Height covered by the canvas in model units
    """

    pixel_x: int
    pixel_y: int
    physical_x: float
    physical_y: float

    def __post_init__(self) -> None:
        for name in ("pixel_x", "pixel_y"):
            value = getattr(self, name)
            if isinstance(value, bool) or int(value) != value or value <= 0:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
            object.__setattr__(self, name, int(value))

        for name in ("physical_x", "physical_y"):
            value = getattr(self, name)
            if not np.isfinite(value) or not value > 0:
                raise ConfigurationError(f"{name} must be positive, got {value!r}")
            object.__setattr__(self, name, float(value))

    @property
    def shape(self) -> tuple[int, int]:
        """Array shape of a mask on this canvas: (rows, cols)."""
        return (self.pixel_y, self.pixel_x)

    @property
    def ppm(self) -> float:
        """Pixels per model unit, shared by both axes."""
        return min(self.pixel_x / self.physical_x, self.pixel_y / self.physical_y)

    @property
    def printable_extent(self) -> tuple[float, float]:
        """Model-space (width, height) that maps onto the canvas."""
        return (self.pixel_x / self.ppm, self.pixel_y / self.ppm)

    def to_pixels(self, points: ArrayLike) -> NDArray[np.int64]:
        """
        Map model-space points to integer pixel coordinates.

        ``pixel = round(model * ppm + size / 2)`` per axis, rounding halves
        away from zero.

        Args:
            points: (N, 2) or (N, 3) array; only x and y are used

        Returns:
            (N, 2) int array of (column, row) pixel coordinates
        """
        xy = np.atleast_2d(np.asarray(points, dtype=np.float64))[:, :2]
        centre = np.array([self.pixel_x / 2.0, self.pixel_y / 2.0])
        scaled = xy * self.ppm + centre
        rounded = np.sign(scaled) * np.floor(np.abs(scaled) + 0.5)
        return rounded.astype(np.int64)

    def blank(self) -> NDArray[np.uint8]:
        return np.zeros(self.shape, dtype=np.uint8)


def distinct_pixels(pixels: NDArray[np.int64]) -> NDArray[np.int64]:
    """Drop repeated pixel points, keeping first occurrences in order."""
    seen = set()
    keep = []
    for i, (x, y) in enumerate(pixels.tolist()):
        if (x, y) not in seen:
            seen.add((x, y))
            keep.append(i)
    return pixels[keep]


def _draw_outline(
    boundary: NDArray[np.bool_], rows: NDArray[np.int64], cols: NDArray[np.int64]
) -> None:
    """Set the pixels of every edge of a closed ring, clipped to ``boundary``."""
    height, width = boundary.shape
    for i in range(len(rows)):
        j = (i + 1) % len(rows)
        rr, cc = line(int(rows[i]), int(cols[i]), int(rows[j]), int(cols[j]))
        inside = (rr >= 0) & (rr < height) & (cc >= 0) & (cc < width)
        boundary[rr[inside], cc[inside]] = True


def rasterize(
    loops: Sequence[ArrayLike],
    canvas: CanvasSpec,
    fill_rule: FillRule = "union",
) -> NDArray[np.uint8]:
    """
    Fill polygon loops onto a blank canvas.

    Loops that collapse to fewer than three distinct pixels are skipped
    without error. Parts of a loop outside the canvas are clipped.

    Args:
        loops: Polygon loops, each an (N, 2) or (N, 3) array in model units
        canvas: Target canvas
        fill_rule: "union" or "evenodd"

    Returns:
        (pixel_y, pixel_x) uint8 mask with 0 background and FILL_VALUE fill
    """
    if fill_rule not in FILL_RULES:
        raise ValueError(f"Invalid fill_rule '{fill_rule}', must be one of {FILL_RULES}")

    interior = np.zeros(canvas.shape, dtype=np.bool_)
    boundary = np.zeros(canvas.shape, dtype=np.bool_)

    for loop in loops:
        if len(loop) < 3:
            continue
        pixels = distinct_pixels(canvas.to_pixels(loop))
        if len(pixels) < 3:
            continue

        cols = pixels[:, 0]
        rows = pixels[:, 1]

        rr, cc = polygon(rows, cols, shape=canvas.shape)
        if fill_rule == "evenodd":
            filled = np.zeros(canvas.shape, dtype=np.bool_)
            filled[rr, cc] = True
            interior ^= filled
        else:
            interior[rr, cc] = True

        _draw_outline(boundary, rows, cols)

    mask = canvas.blank()
    mask[interior | boundary] = FILL_VALUE
    return mask


__all__ = [
    "FILL_VALUE",
    "FILL_RULES",
    "FillRule",
    "CanvasSpec",
    "distinct_pixels",
    "rasterize",
]
