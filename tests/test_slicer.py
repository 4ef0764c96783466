"""Tests for the slicing pipeline."""

import threading

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from maskslicer.errors import ConfigurationError, SliceCancelled
from maskslicer.layers.stack import FILL_VALUE
from maskslicer.mesh.triangles import MergedGeometry
from maskslicer.slicing.slicer import MeshSlicer, SliceConfig, slice_solids
from maskslicer.slicing.tolerances import Tolerances


class TestSliceConfig:
    """Tests for configuration validation."""

    def test_create(self):
        config = SliceConfig.create(
            pixel_x=2560, pixel_y=1440, physical_x=120.96, physical_y=68.04, thickness=0.05
        )
        assert config.canvas.shape == (1440, 2560)
        assert config.tolerances == Tolerances()
        assert config.fill_rule == "union"

    @pytest.mark.parametrize("thickness", [0.0, -1.0, float("nan"), float("inf")])
    def test_bad_thickness(self, canvas, thickness):
        with pytest.raises(ConfigurationError, match="thickness"):
            SliceConfig(canvas=canvas, thickness=thickness)

    def test_bad_fill_rule(self, canvas):
        with pytest.raises(ConfigurationError, match="fill_rule"):
            SliceConfig(canvas=canvas, thickness=0.1, fill_rule="nonzero")

    def test_bad_workers(self, canvas):
        with pytest.raises(ConfigurationError, match="workers"):
            SliceConfig(canvas=canvas, thickness=0.1, workers=0)

    def test_bad_canvas(self):
        with pytest.raises(ConfigurationError):
            SliceConfig.create(pixel_x=0, pixel_y=10, physical_x=1, physical_y=1, thickness=0.1)

    def test_bad_tolerance(self):
        with pytest.raises(ConfigurationError, match="tolerance"):
            Tolerances(key=0.0)

    def test_configuration_error_is_value_error(self, canvas):
        with pytest.raises(ValueError):
            SliceConfig(canvas=canvas, thickness=-1)

    def test_default_workers_is_cpu_count(self, canvas):
        config = SliceConfig(canvas=canvas, thickness=0.1, workers=None)
        assert config.num_workers >= 1

    def test_slicer_requires_config(self):
        with pytest.raises(ConfigurationError):
            MeshSlicer({"thickness": 0.1})


class TestSliceCube:
    """Tests slicing the reference cube."""

    def test_layer_count_and_heights(self, cube, config):
        stack = MeshSlicer(config).slice_solids([cube])

        assert stack.num_planes == 5
        assert stack.num_layers == 5
        assert_allclose(stack.heights, [-5.0, -2.5, 0.0, 2.5, 5.0])
        assert [layer.index for layer in stack] == [0, 1, 2, 3, 4]

    def test_masks(self, cube, config):
        stack = MeshSlicer(config).slice_solids([cube])

        for layer in stack:
            assert layer.mask.shape == (100, 100)
            assert layer.mask.dtype == np.uint8
            assert layer.mask[50, 50] == FILL_VALUE
            assert layer.mask[10, 10] == 0
            assert layer.filled_pixels == 51 * 51

    def test_layers_keep_polygons(self, cube, config):
        stack = MeshSlicer(config).slice_solids([cube])
        assert len(stack[2].polygons) == 1
        assert len(stack[2].polygons[0]) == 8

    def test_idempotent(self, cube, config):
        slicer = MeshSlicer(config)
        first = slicer.slice_solids([cube])
        second = slicer.slice_solids([cube])

        assert first.heights == second.heights
        for a, b in zip(first, second):
            assert_array_equal(a.mask, b.mask)

    def test_functional_shortcut(self, cube, config):
        stack = slice_solids([cube], config)
        assert stack.num_layers == 5

    def test_progress_callback(self, cube, config):
        calls = []
        MeshSlicer(config).slice_solids([cube], callback=lambda done, total: calls.append((done, total)))

        assert calls == [(1, 5), (2, 5), (3, 5), (4, 5), (5, 5)]


class TestWorkerPool:
    """Tests for multi-threaded plane processing."""

    def test_matches_single_thread(self, make_box, canvas):
        solids = [make_box(size=(6, 4, 9)), make_box(size=(2, 2, 3), center=(5, 5, 1))]
        single = MeshSlicer(SliceConfig(canvas=canvas, thickness=0.5, workers=1)).slice_solids(solids)
        pooled = MeshSlicer(SliceConfig(canvas=canvas, thickness=0.5, workers=4)).slice_solids(solids)

        assert single.heights == pooled.heights
        assert [layer.plane_index for layer in single] == [layer.plane_index for layer in pooled]
        for a, b in zip(single, pooled):
            assert_array_equal(a.mask, b.mask)

    def test_callback_reaches_total(self, cube, canvas):
        config = SliceConfig(canvas=canvas, thickness=0.5, workers=3)
        calls = []
        stack = MeshSlicer(config).slice_solids([cube], callback=lambda d, t: calls.append((d, t)))

        assert len(calls) == stack.num_planes
        assert calls[-1] == (21, 21)
        assert [d for d, _ in calls] == list(range(1, 22))


class TestEmptyPlanes:
    """Tests for planes that produce no layer."""

    def test_gap_between_solids(self, make_box, config):
        solids = [make_box(center=(0, 0, 0)), make_box(center=(0, 0, 25))]
        stack = MeshSlicer(config).slice_solids(solids)

        assert stack.num_planes == 15
        assert stack.num_layers == 10
        assert stack.skipped_planes == 5
        assert [layer.index for layer in stack] == list(range(10))
        assert stack[5].plane_index == 10
        assert stack[5].z == pytest.approx(20.0)

    def test_empty_geometry(self, config):
        stack = MeshSlicer(config).slice_geometry(MergedGeometry.empty())
        assert stack.num_planes == 0
        assert stack.num_layers == 0

    def test_no_solids(self, config):
        assert len(slice_solids([], config)) == 0

    def test_slice_plane_reports_counts(self, cube_geometry, config):
        result = MeshSlicer(config).slice_plane(cube_geometry, -5.0, plane_index=0)

        assert result.has_layer
        assert result.segment_count == 4
        assert result.degenerate_count == 2
        assert result.open_chains == 0

    def test_slice_plane_outside(self, cube_geometry, config):
        result = MeshSlicer(config).slice_plane(cube_geometry, 50.0, plane_index=3)
        assert not result.has_layer
        assert result.plane_index == 3
        assert result.loops == []


class TestFillRules:
    """Tests for hollow models under each fill rule."""

    @pytest.fixture
    def hollow_box(self, make_box):
        """Outer 10 mm box with an inward-facing 4 mm cavity."""
        outer = make_box()
        inner = make_box(size=(4, 4, 4))
        inner.vertices = inner.vertices[:, ::-1].copy()
        inner.normals = -inner.normals
        return [outer, inner]

    def test_union_fills_cavity(self, hollow_box, canvas):
        config = SliceConfig(canvas=canvas, thickness=2.5, fill_rule="union")
        layer = MeshSlicer(config).slice_solids(hollow_box).get_layer(2)
        assert layer.z == 0.0
        assert len(layer.polygons) == 2
        assert layer.mask[50, 50] == FILL_VALUE

    def test_evenodd_keeps_cavity(self, hollow_box, canvas):
        config = SliceConfig(canvas=canvas, thickness=2.5, fill_rule="evenodd")
        layer = MeshSlicer(config).slice_solids(hollow_box).get_layer(2)
        assert layer.mask[50, 50] == 0
        assert layer.mask[30, 30] == FILL_VALUE


class TestCancellation:
    """Tests for cooperative cancellation."""

    def test_cancel_before_start(self, cube, config):
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(SliceCancelled) as exc_info:
            MeshSlicer(config).slice_solids([cube], cancel=cancel)

        assert exc_info.value.completed == 0
        assert exc_info.value.total == 5

    def test_cancel_mid_run(self, cube, config):
        cancel = threading.Event()

        def stop_after_two(done, total):
            if done == 2:
                cancel.set()

        with pytest.raises(SliceCancelled) as exc_info:
            MeshSlicer(config).slice_solids([cube], cancel=cancel, callback=stop_after_two)

        assert exc_info.value.completed == 2
        assert "2 of 5" in str(exc_info.value)

    def test_cancel_with_pool(self, cube, canvas):
        config = SliceConfig(canvas=canvas, thickness=0.1, workers=2)
        cancel = threading.Event()

        def stop_early(done, total):
            if done == 3:
                cancel.set()

        with pytest.raises(SliceCancelled) as exc_info:
            MeshSlicer(config).slice_solids([cube], cancel=cancel, callback=stop_early)

        assert exc_info.value.completed < exc_info.value.total

    def test_unset_event_does_not_cancel(self, cube, config):
        stack = MeshSlicer(config).slice_solids([cube], cancel=threading.Event())
        assert stack.num_layers == 5
