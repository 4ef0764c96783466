"""Layer masks, layer stacks and printability checks."""

# Layer / LayerStack
from maskslicer.layers.stack import Layer, LayerStack

# Printability checks
from maskslicer.layers.constraints import (
    Violation,
    check_build_area,
    check_layer_gaps,
    check_stack,
    check_unsupported_islands,
)

__all__ = [
    # Stack
    "Layer",
    "LayerStack",
    # Checks
    "Violation",
    "check_build_area",
    "check_unsupported_islands",
    "check_layer_gaps",
    "check_stack",
]
