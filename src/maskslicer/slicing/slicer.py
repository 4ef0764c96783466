"""
Mesh-to-mask slicing pipeline.

Ties the stages together: solids are merged into world space, the Z extent
is divided into planes, and each plane is intersected, assembled into loops
and rasterized. Planes only read the shared read-only geometry and write
their own result slot, so they are dispatched over a thread pool and
collected back in ascending Z order.

Example:
    >>> from maskslicer import MeshSlicer, SliceConfig
    >>> config = SliceConfig.create(
    ...     pixel_x=2560, pixel_y=1440,
    ...     physical_x=120.96, physical_y=68.04,
    ...     thickness=0.05,
    ... )
    >>> stack = MeshSlicer(config).slice_solids([solid])
    >>> for layer in stack:
    ...     print(layer.index, layer.z, layer.filled_pixels)
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

from maskslicer.errors import ConfigurationError, SliceCancelled
from maskslicer.layers.stack import Layer, LayerStack
from maskslicer.mesh.triangles import transform_solids
from maskslicer.slicing.assembly import assemble_polygons
from maskslicer.slicing.intersect import collect_segments
from maskslicer.slicing.raster import FILL_RULES, CanvasSpec, rasterize
from maskslicer.slicing.schedule import schedule_for
from maskslicer.slicing.tolerances import Tolerances

if TYPE_CHECKING:
    import threading

    from numpy.typing import NDArray

    from maskslicer.mesh.triangles import MergedGeometry, Solid

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class SliceConfig:
    """
    Validated parameters for a slicing run.

    Attributes:
        canvas: Output canvas size in pixels and model units
        thickness: Layer thickness in model units
        tolerances: Epsilon settings for intersection and assembly
        fill_rule: "union" or "evenodd" (see maskslicer.slicing.raster)
        workers: Worker threads for plane processing (None = CPU count)
    """

    canvas: CanvasSpec
    thickness: float
    tolerances: Tolerances = field(default_factory=Tolerances)
    fill_rule: str = "union"
    workers: int | None = 1

    def __post_init__(self) -> None:
        if not isinstance(self.canvas, CanvasSpec):
            raise ConfigurationError(f"canvas must be a CanvasSpec, got {type(self.canvas).__name__}")
        if not np.isfinite(self.thickness) or not self.thickness > 0:
            raise ConfigurationError(f"thickness must be positive, got {self.thickness!r}")
        if self.fill_rule not in FILL_RULES:
            raise ConfigurationError(
                f"fill_rule must be one of {FILL_RULES}, got {self.fill_rule!r}"
            )
        if self.workers is not None and self.workers < 1:
            raise ConfigurationError(f"workers must be >= 1, got {self.workers}")

    @classmethod
    def create(
        cls,
        pixel_x: int,
        pixel_y: int,
        physical_x: float,
        physical_y: float,
        thickness: float,
        **kwargs,
    ) -> SliceConfig:
        """Build a config from plain numbers."""
        canvas = CanvasSpec(
            pixel_x=pixel_x,
            pixel_y=pixel_y,
            physical_x=physical_x,
            physical_y=physical_y,
        )
        return cls(canvas=canvas, thickness=thickness, **kwargs)

    @property
    def num_workers(self) -> int:
        return self.workers if self.workers is not None else (os.cpu_count() or 1)


@dataclass
class PlaneResult:
    """
    Everything computed for a single plane.

    Attributes:
        plane_index: Position in the plane schedule
        z: Plane height
        segment_count: Number of 2-point intersection segments
        degenerate_count: Triangles skipped for producing >2 points
        open_chains: Walks discarded during assembly
        loops: Closed polygon loops
        mask: Rasterized mask, or None if the plane produced no layer
    """

    plane_index: int
    z: float
    segment_count: int = 0
    degenerate_count: int = 0
    open_chains: int = 0
    loops: list[NDArray[np.float64]] = field(default_factory=list)
    mask: NDArray[np.uint8] | None = None

    @property
    def has_layer(self) -> bool:
        return self.mask is not None


class MeshSlicer:
    """
    Slices merged triangle geometry into a stack of layer masks.

    Args:
        config: Validated slicing parameters
    """

    def __init__(self, config: SliceConfig):
        if not isinstance(config, SliceConfig):
            raise ConfigurationError(f"Expected SliceConfig, got {type(config).__name__}")
        self.config = config

    def slice_solids(
        self,
        solids: Iterable[Solid],
        cancel: threading.Event | None = None,
        callback: ProgressCallback | None = None,
    ) -> LayerStack:
        """Place solids with their model matrices and slice them together."""
        geometry = transform_solids(solids)
        return self.slice_geometry(geometry, cancel=cancel, callback=callback)

    def slice_plane(self, geometry: MergedGeometry, z: float, plane_index: int = 0) -> PlaneResult:
        """
        Run intersection, assembly and rasterization for one plane.

        Args:
            geometry: World-space triangles
            z: Plane height
            plane_index: Position of the plane in the schedule

        Returns:
            PlaneResult; ``mask`` is None when nothing closed on this plane
        """
        tol = self.config.tolerances
        result = PlaneResult(plane_index=plane_index, z=float(z))

        segments = collect_segments(geometry, z, tol)
        result.segment_count = len(segments)
        result.degenerate_count = segments.degenerate_count
        if segments.is_empty:
            return result

        assembly = assemble_polygons(segments.segments, tol.key)
        result.open_chains = assembly.open_chains
        result.loops = assembly.loops
        if not assembly.loops:
            logger.debug("Plane %d at z=%g produced no closed loops", plane_index, z)
            return result

        result.mask = rasterize(assembly.loops, self.config.canvas, self.config.fill_rule)
        logger.debug(
            "Plane %d at z=%g: %d segments, %d loops, %d skipped triangles",
            plane_index,
            z,
            result.segment_count,
            len(result.loops),
            result.degenerate_count,
        )
        return result

    def _run_plane(
        self,
        geometry: MergedGeometry,
        plane_index: int,
        z: float,
        cancel: threading.Event | None,
    ) -> PlaneResult | None:
        if cancel is not None and cancel.is_set():
            return None
        return self.slice_plane(geometry, z, plane_index)

    def slice_geometry(
        self,
        geometry: MergedGeometry,
        cancel: threading.Event | None = None,
        callback: ProgressCallback | None = None,
    ) -> LayerStack:
        """
        Slice already merged geometry.

        Args:
            geometry: Read-only world-space triangles
            cancel: Event checked before each plane; when set the run stops
            callback: Called as ``callback(done, total)`` after each plane

        Returns:
            LayerStack with one Layer per plane that produced geometry

        Raises:
            SliceCancelled: If ``cancel`` was set before all planes finished
        """
        heights = schedule_for(geometry, self.config.thickness)
        total = len(heights)
        results: list[PlaneResult | None] = [None] * total
        workers = min(self.config.num_workers, max(total, 1))

        start_time = time.perf_counter()
        done = 0

        if workers <= 1:
            for i, z in enumerate(heights):
                result = self._run_plane(geometry, i, z, cancel)
                if result is None:
                    break
                results[i] = result
                done += 1
                if callback is not None:
                    callback(done, total)
        else:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="maskslicer") as pool:
                futures = {
                    pool.submit(self._run_plane, geometry, i, z, cancel): i
                    for i, z in enumerate(heights)
                }
                try:
                    for future in as_completed(futures):
                        result = future.result()
                        if result is None:
                            continue
                        results[futures[future]] = result
                        done += 1
                        if callback is not None:
                            callback(done, total)
                        if cancel is not None and cancel.is_set():
                            break
                finally:
                    for future in futures:
                        future.cancel()

        if done < total:
            raise SliceCancelled(done, total)

        layers = []
        for result in results:
            if result is None or not result.has_layer:
                continue
            layers.append(
                Layer(
                    mask=result.mask,
                    index=len(layers),
                    plane_index=result.plane_index,
                    z=result.z,
                    polygons=result.loops,
                )
            )

        degenerate = sum(r.degenerate_count for r in results if r is not None)
        logger.info(
            "Sliced %d triangles into %d layers (%d planes, %d skipped triangle cuts) in %.2fs",
            geometry.num_triangles,
            len(layers),
            total,
            degenerate,
            time.perf_counter() - start_time,
        )

        return LayerStack(
            layers=layers,
            thickness=self.config.thickness,
            canvas=self.config.canvas,
            num_planes=total,
        )


def slice_solids(solids: Iterable[Solid], config: SliceConfig, **kwargs) -> LayerStack:
    """Functional shortcut for ``MeshSlicer(config).slice_solids(solids)``."""
    return MeshSlicer(config).slice_solids(solids, **kwargs)


__all__ = ["SliceConfig", "PlaneResult", "MeshSlicer", "slice_solids"]
