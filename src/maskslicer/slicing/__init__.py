"""Plane schedule, intersection, polygon assembly, rasterization and the pipeline."""

from maskslicer.slicing.assembly import (
    AssemblyResult,
    SegmentGraph,
    assemble_polygons,
    polygon_area,
    quantize,
    signed_area,
)
from maskslicer.slicing.intersect import SegmentSet, collect_segments, intersect_triangle
from maskslicer.slicing.raster import FILL_VALUE, CanvasSpec, rasterize
from maskslicer.slicing.schedule import plane_heights, schedule_for, z_range
from maskslicer.slicing.slicer import MeshSlicer, PlaneResult, SliceConfig, slice_solids
from maskslicer.slicing.tolerances import (
    DEDUP_EPSILON,
    KEY_EPSILON,
    PLANE_EPSILON,
    Tolerances,
)

__all__ = [
    # Schedule
    "z_range",
    "plane_heights",
    "schedule_for",
    # Intersection
    "SegmentSet",
    "intersect_triangle",
    "collect_segments",
    # Assembly
    "SegmentGraph",
    "AssemblyResult",
    "quantize",
    "assemble_polygons",
    "polygon_area",
    "signed_area",
    # Raster
    "FILL_VALUE",
    "CanvasSpec",
    "rasterize",
    # Pipeline
    "Tolerances",
    "PLANE_EPSILON",
    "DEDUP_EPSILON",
    "KEY_EPSILON",
    "SliceConfig",
    "PlaneResult",
    "MeshSlicer",
    "slice_solids",
]
