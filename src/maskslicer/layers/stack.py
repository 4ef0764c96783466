"""
Layer masks and the ordered stack produced by a slicing run.

Provides Layer (one 2D exposure mask) and LayerStack (all layers of a run in
ascending Z order) together with simple inspection helpers.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np
from scipy import ndimage

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from maskslicer.slicing.raster import CanvasSpec

# Pixel value for solid (exposed) regions; background is 0
FILL_VALUE = 255


@dataclass
class Layer:
    """
    One printed layer represented as a single-channel mask image.

    The mask convention is:
    - FILL_VALUE (255) = inside the cross-section (exposed)
    - 0 = background

    Attributes:
        mask: 2D uint8 array of shape (pixel_y, pixel_x)
        index: Position of this layer in the output sequence (0, 1, 2, ...)
        plane_index: Position of the source plane in the schedule
        z: Height of the slicing plane in model units
        polygons: Closed loops the mask was filled from
    """

    mask: NDArray[np.uint8]
    index: int
    plane_index: int
    z: float
    polygons: list[NDArray[np.float64]] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate mask is 2D and coerce boolean masks to 0/255."""
        self.mask = np.asarray(self.mask)
        if self.mask.ndim != 2:
            raise ValueError(f"Mask must be 2D, got {self.mask.ndim}D")
        if self.mask.dtype == np.bool_:
            self.mask = np.where(self.mask, FILL_VALUE, 0).astype(np.uint8)
        elif self.mask.dtype != np.uint8:
            self.mask = self.mask.astype(np.uint8)

    @property
    def shape(self) -> tuple[int, int]:
        """Return (rows, cols) of the mask."""
        return self.mask.shape

    @property
    def solid(self) -> NDArray[np.bool_]:
        """Boolean view: True where the layer is filled."""
        return self.mask > 0

    @property
    def filled_pixels(self) -> int:
        return int(np.count_nonzero(self.mask))

    @property
    def fill_fraction(self) -> float:
        """Fraction of the canvas that is filled."""
        return self.filled_pixels / self.mask.size

    @property
    def is_blank(self) -> bool:
        return self.filled_pixels == 0

    def island_count(self) -> int:
        """
        Count disconnected filled regions.

        Uses 4-connectivity (no diagonal connections), matching how cured
        resin actually holds together.

        Returns:
            Number of connected filled components
        """
        solid = self.solid
        if not solid.any():
            return 0

        structure = ndimage.generate_binary_structure(2, 1)
        _, num_features = ndimage.label(solid, structure=structure)
        return int(num_features)


@dataclass
class LayerStack:
    """
    All layers of one slicing run in ascending Z order.

    Planes that did not intersect the geometry have no layer, so ``z`` values
    are not necessarily evenly spaced.

    Attributes:
        layers: Layer objects ordered by height
        thickness: Layer thickness used for the run
        canvas: Canvas the masks were rendered on
        num_planes: Number of planes in the schedule (including skipped ones)
    """

    layers: list[Layer] = field(default_factory=list)
    thickness: float = 0.0
    canvas: CanvasSpec | None = None
    num_planes: int = 0

    def __post_init__(self) -> None:
        """Sort layers by height."""
        self.layers = sorted(self.layers, key=lambda layer: layer.z)

    @property
    def num_layers(self) -> int:
        return len(self.layers)

    def __len__(self) -> int:
        return len(self.layers)

    def __iter__(self) -> Iterator[Layer]:
        return iter(self.layers)

    def __getitem__(self, position: int) -> Layer:
        return self.layers[position]

    @property
    def heights(self) -> list[float]:
        """Plane heights of the layers, ascending."""
        return [layer.z for layer in self.layers]

    @property
    def height_range(self) -> tuple[float, float] | None:
        """Return (lowest z, highest z), or None for an empty stack."""
        if not self.layers:
            return None
        return (self.layers[0].z, self.layers[-1].z)

    @property
    def skipped_planes(self) -> int:
        """Scheduled planes that produced no layer."""
        return max(self.num_planes - self.num_layers, 0)

    def get_layer(self, index: int) -> Layer | None:
        """Get layer by output index, or None if not found."""
        for layer in self.layers:
            if layer.index == index:
                return layer
        return None

    def masks(self) -> list[NDArray[np.uint8]]:
        """Layer masks in ascending Z order."""
        return [layer.mask for layer in self.layers]

    def to_volume(self) -> NDArray[np.uint8]:
        """
        Stack all masks into one 3D array.

        Returns:
            uint8 array with shape (num_layers, pixel_y, pixel_x)
        """
        if not self.layers:
            raise ValueError("Cannot create a volume from an empty stack")

        shape = self.layers[0].shape
        for layer in self.layers:
            if layer.shape != shape:
                raise ValueError(
                    f"Layer {layer.index} has shape {layer.shape}, expected {shape}"
                )

        return np.stack(self.masks())


__all__ = ["FILL_VALUE", "Layer", "LayerStack"]
