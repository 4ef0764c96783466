"""
maskslicer - mesh-to-mask slicing for masked-LCD resin printing.

Main exports:
- Solid, MergedGeometry: Triangle meshes and their merged world-space form
- transform_solids: Apply model matrices and merge solids
- SliceConfig, CanvasSpec, Tolerances: Validated slicing parameters
- MeshSlicer: Plane schedule, intersection, loop assembly and rasterization
- Layer, LayerStack: Mask images produced by a run
- load_stl, export_png: File adapters around the core
"""

__version__ = "0.1.0"

from maskslicer.errors import ConfigurationError, SliceCancelled, SlicerError
from maskslicer.io import export_json, export_layer_svg, export_png, load_stl, save_stl
from maskslicer.layers import Layer, LayerStack, Violation, check_stack
from maskslicer.mesh import (
    BoundingBox,
    MergedGeometry,
    Solid,
    Triangle,
    compose,
    compute_bounding_box,
    rotation_matrix,
    scale_matrix,
    transform_solids,
    translation_matrix,
)
from maskslicer.slicing import (
    FILL_VALUE,
    CanvasSpec,
    MeshSlicer,
    PlaneResult,
    SliceConfig,
    Tolerances,
    assemble_polygons,
    collect_segments,
    intersect_triangle,
    plane_heights,
    polygon_area,
    quantize,
    rasterize,
    slice_solids,
)

# Submodules for more specific imports
from . import io, layers, mesh, slicing

__all__ = [
    "__version__",
    # Errors
    "SlicerError",
    "ConfigurationError",
    "SliceCancelled",
    # Mesh
    "Triangle",
    "Solid",
    "MergedGeometry",
    "BoundingBox",
    "transform_solids",
    "compute_bounding_box",
    "translation_matrix",
    "scale_matrix",
    "rotation_matrix",
    "compose",
    # Slicing
    "CanvasSpec",
    "Tolerances",
    "SliceConfig",
    "MeshSlicer",
    "PlaneResult",
    "slice_solids",
    "plane_heights",
    "intersect_triangle",
    "collect_segments",
    "quantize",
    "assemble_polygons",
    "polygon_area",
    "rasterize",
    "FILL_VALUE",
    # Layers
    "Layer",
    "LayerStack",
    "Violation",
    "check_stack",
    # I/O
    "load_stl",
    "save_stl",
    "export_png",
    "export_json",
    "export_layer_svg",
    # Submodules
    "io",
    "layers",
    "mesh",
    "slicing",
]
