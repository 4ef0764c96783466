"""Floating point tolerances used throughout the slicing pipeline."""

from __future__ import annotations

from dataclasses import dataclass

from maskslicer.errors import ConfigurationError

# Distance within which a vertex counts as lying on the slicing plane
PLANE_EPSILON = 1e-6
# Distance below which two intersection points of one triangle are merged
DEDUP_EPSILON = 1e-6
# Grid size used to quantize segment endpoints into graph keys
KEY_EPSILON = 1e-6


@dataclass(frozen=True)
class Tolerances:
    """
    Epsilon values for plane classification, point deduplication and
    endpoint quantization.

    Attributes:
        plane: On-plane distance threshold for vertex classification
        dedup: Merge distance for a triangle's own intersection points
        key: Quantization grid for matching endpoints across triangles
    """

    plane: float = PLANE_EPSILON
    dedup: float = DEDUP_EPSILON
    key: float = KEY_EPSILON

    def __post_init__(self) -> None:
        for name in ("plane", "dedup", "key"):
            value = getattr(self, name)
            if not value > 0:
                raise ConfigurationError(f"{name} tolerance must be positive, got {value}")


__all__ = ["PLANE_EPSILON", "DEDUP_EPSILON", "KEY_EPSILON", "Tolerances"]
