"""Input/output: STL meshes in, layer images and metadata out."""

from maskslicer.io.export import export_json, export_layer_svg, export_png
from maskslicer.io.stl import load_stl, save_stl

__all__ = [
    "load_stl",
    "save_stl",
    "export_png",
    "export_json",
    "export_layer_svg",
]
