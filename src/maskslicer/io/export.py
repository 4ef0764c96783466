"""
Export functionality for sliced layer stacks.

Provides PNG (one mask image per layer, the format masked-LCD printers
consume), JSON (layer metadata and loop polygons for visualization) and SVG
(per-layer outline preview) export.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
from skimage import io as skio

if TYPE_CHECKING:
    from maskslicer.layers.stack import Layer, LayerStack

# Mask fill rule to the SVG fill-rule that draws the same region
SVG_FILL_RULES = {"union": "nonzero", "evenodd": "evenodd"}


def export_png(
    stack: LayerStack,
    output_dir: str | Path,
    prefix: str = "layer",
) -> list[Path]:
    """
    Export each layer mask as an 8-bit greyscale PNG.

    Files are named ``{prefix}_{index:05d}.png`` in ascending Z order.

    Args:
        stack: The LayerStack to export
        output_dir: Directory to write PNG files (created if missing)
        prefix: File name prefix

    Returns:
        List of paths to created PNG files
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    created_files = []
    for layer in stack.layers:
        filepath = output_dir / f"{prefix}_{layer.index:05d}.png"
        skio.imsave(filepath, layer.mask, check_contrast=False)
        created_files.append(filepath)

    return created_files


def export_json(stack: LayerStack, path: str | Path) -> Path:
    """
    Export stack metadata and loop polygons as JSON.

    Creates a JSON file with:
    - Canvas and thickness information
    - Per-layer height, fill statistics and polygon loops (model units)

    Args:
        stack: The LayerStack to export
        path: Path to output JSON file

    Returns:
        Path to the written file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    canvas = stack.canvas
    data = {
        "thickness": stack.thickness,
        "num_planes": stack.num_planes,
        "canvas": None,
        "layers": [],
        "metadata": {
            "num_layers": stack.num_layers,
            "height_range": list(stack.height_range) if stack.height_range else None,
        },
    }
    if canvas is not None:
        data["canvas"] = {
            "pixel_x": canvas.pixel_x,
            "pixel_y": canvas.pixel_y,
            "physical_x": canvas.physical_x,
            "physical_y": canvas.physical_y,
            "ppm": canvas.ppm,
        }

    for layer in stack.layers:
        polygons = []
        for loop in layer.polygons:
            polygon_list = np.asarray(loop)[:, :2].tolist()
            # Close polygon for consumers that expect it
            if polygon_list and polygon_list[0] != polygon_list[-1]:
                polygon_list.append(polygon_list[0])
            polygons.append(polygon_list)

        data["layers"].append(
            {
                "index": layer.index,
                "plane_index": layer.plane_index,
                "z": layer.z,
                "filled_pixels": layer.filled_pixels,
                "polygons": polygons,
            }
        )

    with open(path, "w") as f:
        json.dump(data, f, indent=2)

    return path


def export_layer_svg(
    layer: Layer,
    path: str | Path,
    stroke_width: float = 0.1,
    stroke_color: str = "#000000",
    fill_color: str = "none",
    fill_rule: str = "union",
) -> Path:
    """
    Export the loop outlines of a single layer as SVG for preview.

    The view box is the bounding rectangle of the loops, in model units.

    Under "union" every loop is its own path; under "evenodd" all loops share
    one path so nested loops show as holes.

    Args:
        layer: The Layer to export
        path: Path to output SVG file
        stroke_width: Line width in model units
        stroke_color: CSS color for stroke
        fill_color: CSS color for fill (or "none")
        fill_rule: Mask fill rule the layer was rasterized with, "union"
            (written as SVG "nonzero") or "evenodd"

    Returns:
        Path to the written file
    """
    if fill_rule not in SVG_FILL_RULES:
        raise ValueError(
            f"Invalid fill_rule '{fill_rule}', must be one of {tuple(SVG_FILL_RULES)}"
        )

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    loops = [np.asarray(loop)[:, :2] for loop in layer.polygons if len(loop) >= 2]
    if loops:
        points = np.vstack(loops)
        x_min, y_min = points.min(axis=0)
        x_max, y_max = points.max(axis=0)
    else:
        x_min = y_min = 0.0
        x_max = y_max = 1.0
    width = max(x_max - x_min, 1e-9)
    height = max(y_max - y_min, 1e-9)

    svg_parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" '
        f'viewBox="{x_min:.4f} {y_min:.4f} {width:.4f} {height:.4f}">',
    ]

    subpaths = []
    for loop in loops:
        path_data = f"M {loop[0, 0]:.4f} {loop[0, 1]:.4f}"
        for pt in loop[1:]:
            path_data += f" L {pt[0]:.4f} {pt[1]:.4f}"
        path_data += " Z"
        subpaths.append(path_data)

    # Separate paths always union; evenodd holes need the loops in one path
    if fill_rule == "evenodd" and subpaths:
        subpaths = [" ".join(subpaths)]

    for path_data in subpaths:
        svg_parts.append(
            f'  <path d="{path_data}" '
            f'stroke="{stroke_color}" '
            f'stroke-width="{stroke_width}" '
            f'fill="{fill_color}" '
            f'fill-rule="{SVG_FILL_RULES[fill_rule]}"/>'
        )

    svg_parts.append("</svg>")

    with open(path, "w") as f:
        f.write("\n".join(svg_parts))

    return path


__all__ = ["export_png", "export_json", "export_layer_svg"]
