"""Tests for printability checks."""

import numpy as np
import pytest

from maskslicer.layers.constraints import (
    Violation,
    check_build_area,
    check_layer_gaps,
    check_stack,
    check_unsupported_islands,
)
from maskslicer.layers.stack import FILL_VALUE, Layer, LayerStack
from maskslicer.mesh.triangles import MergedGeometry, transform_solids
from maskslicer.slicing.raster import CanvasSpec
from maskslicer.slicing.slicer import MeshSlicer


def layer_with_blocks(index, *blocks, plane_index=None):
    mask = np.zeros((100, 100), dtype=np.uint8)
    for rows, cols in blocks:
        mask[rows, cols] = FILL_VALUE
    return Layer(
        mask=mask,
        index=index,
        plane_index=index if plane_index is None else plane_index,
        z=float(index),
    )


class TestCheckBuildArea:
    """Tests for canvas overhang detection."""

    def test_fits(self, cube_geometry, canvas):
        assert check_build_area(cube_geometry, canvas) == []

    def test_overhangs_every_side(self, cube_geometry):
        small = CanvasSpec(pixel_x=80, pixel_y=80, physical_x=8.0, physical_y=8.0)
        violations = check_build_area(cube_geometry, small)

        checks = sorted(v.check for v in violations)
        assert checks == [
            "build_area_x_max",
            "build_area_x_min",
            "build_area_y_max",
            "build_area_y_min",
        ]
        assert all(v.layer_index == -1 for v in violations)

    def test_overhang_one_side(self, make_box, canvas):
        geometry = transform_solids([make_box(center=(8.0, 0.0, 0.0))])
        violations = check_build_area(geometry, canvas)

        assert len(violations) == 1
        assert violations[0].check == "build_area_x_max"
        assert violations[0].measured == pytest.approx(13.0)
        assert violations[0].limit == pytest.approx(10.0)

    def test_empty_geometry(self, canvas):
        assert check_build_area(MergedGeometry.empty(), canvas) == []


class TestCheckUnsupportedIslands:
    """Tests for floating island detection."""

    def test_first_layer_always_supported(self, canvas):
        layer = layer_with_blocks(0, (slice(10, 20), slice(10, 20)))
        assert check_unsupported_islands(layer, None, canvas) == []

    def test_supported_island(self, canvas):
        below = layer_with_blocks(0, (slice(10, 20), slice(10, 20)))
        layer = layer_with_blocks(1, (slice(15, 25), slice(15, 25)))
        assert check_unsupported_islands(layer, below, canvas) == []

    def test_floating_island(self, canvas):
        below = layer_with_blocks(0, (slice(10, 20), slice(10, 20)))
        layer = layer_with_blocks(
            1,
            (slice(10, 20), slice(10, 20)),
            (slice(60, 70), slice(60, 70)),
        )
        violations = check_unsupported_islands(layer, below, canvas)

        assert len(violations) == 1
        violation = violations[0]
        assert violation.check == "unsupported_island"
        assert violation.layer_index == 1
        # Centroid pixel (64.5, 64.5) at 5 px/mm around centre 50
        assert violation.location == pytest.approx((2.9, 2.9))
        assert violation.measured == pytest.approx(100 / 25)

    def test_blank_layer(self, canvas):
        below = layer_with_blocks(0, (slice(10, 20), slice(10, 20)))
        assert check_unsupported_islands(layer_with_blocks(1), below, canvas) == []


class TestCheckLayerGaps:
    """Tests for skipped planes inside a stack."""

    def test_contiguous(self):
        stack = LayerStack(layers=[layer_with_blocks(i) for i in range(3)], num_planes=3)
        assert check_layer_gaps(stack) == []

    def test_gap(self):
        layers = [
            layer_with_blocks(0, plane_index=0),
            layer_with_blocks(1, plane_index=4),
        ]
        violations = check_layer_gaps(LayerStack(layers=layers, num_planes=5))

        assert len(violations) == 1
        assert violations[0].measured == 3.0
        assert violations[0].layer_index == 1


class TestCheckStack:
    """Tests for running every check."""

    def test_clean_cube(self, cube, cube_geometry, config):
        stack = MeshSlicer(config).slice_solids([cube])
        assert check_stack(stack, cube_geometry) == []

    def test_stacked_gap_reported(self, make_box, config):
        solids = [make_box(center=(0, 0, 0)), make_box(center=(0, 0, 25))]
        geometry = transform_solids(solids)
        stack = MeshSlicer(config).slice_geometry(geometry)

        checks = [v.check for v in check_stack(stack, geometry)]
        assert checks == ["layer_gap"]

    def test_requires_canvas(self):
        with pytest.raises(ValueError, match="canvas"):
            check_stack(LayerStack())

    def test_violation_str(self):
        violation = Violation(
            check="unsupported_island",
            layer_index=3,
            location=(1.0, 2.0),
            measured=4.0,
            limit=0.0,
        )
        text = str(violation)
        assert "unsupported_island" in text
        assert "layer 3" in text
