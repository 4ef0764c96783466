"""
Assembly of unordered intersection segments into closed polygon loops.

Segment endpoints computed independently by neighbouring triangles differ by
floating point noise, so endpoints are snapped to an epsilon grid and the
snapped keys become the nodes of an undirected graph. Loops are then found by
a greedy walk over unvisited edges. On a manifold mesh every node has exactly
two edges, so each walk traces one closed boundary; walks that cannot close
are dropped.

Functions:
    quantize: Snap a point to its graph key
    assemble_polygons: Stitch segments into closed loops
    polygon_area: Unsigned shoelace area of a loop
    signed_area: Signed shoelace area (positive = counter-clockwise)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

from maskslicer.slicing.tolerances import KEY_EPSILON

if TYPE_CHECKING:
    from collections.abc import Iterable

    from numpy.typing import ArrayLike, NDArray

logger = logging.getLogger(__name__)

PointKey = tuple[int, int]


def quantize(point: ArrayLike, epsilon: float = KEY_EPSILON) -> PointKey:
    """
    Snap the (x, y) of a point to the epsilon grid.

    Python's ``round`` is used, so a coordinate exactly half a grid step away
    rounds to the even neighbour. The result is deterministic either way.

    Args:
        point: Point with at least two coordinates
        epsilon: Grid size

    Returns:
        Hashable (ix, iy) key
    """
    scale = 1.0 / epsilon
    return (round(float(point[0]) * scale), round(float(point[1]) * scale))


class SegmentGraph:
    """
    Undirected adjacency over quantized endpoint keys.

    Dict insertion order is preserved, so traversal order depends only on the
    order segments were added.
    """

    def __init__(self, epsilon: float = KEY_EPSILON):
        self.epsilon = epsilon
        self.adjacency: dict[PointKey, list[PointKey]] = {}
        self.coordinates: dict[PointKey, NDArray[np.float64]] = {}

    def add_segment(self, start: ArrayLike, end: ArrayLike) -> bool:
        """Add one segment. Returns False if it collapses to a single key."""
        start_key = quantize(start, self.epsilon)
        end_key = quantize(end, self.epsilon)
        if start_key == end_key:
            return False

        # First coordinate seen for a key represents it
        self.coordinates.setdefault(start_key, np.asarray(start, dtype=np.float64))
        self.coordinates.setdefault(end_key, np.asarray(end, dtype=np.float64))

        self.adjacency.setdefault(start_key, []).append(end_key)
        self.adjacency.setdefault(end_key, []).append(start_key)
        return True

    @property
    def num_nodes(self) -> int:
        return len(self.adjacency)

    def degree(self, key: PointKey) -> int:
        return len(self.adjacency.get(key, ()))

    def resolve(self, keys: Iterable[PointKey]) -> NDArray[np.float64]:
        """Map keys back to their representative coordinates."""
        return np.array([self.coordinates[k] for k in keys])


@dataclass
class AssemblyResult:
    """
    Output of polygon assembly for one plane.

    Attributes:
        loops: Closed loops, each an (N, 3) array without a repeated end point
        open_chains: Number of walks discarded because they did not close
    """

    loops: list[NDArray[np.float64]] = field(default_factory=list)
    open_chains: int = 0

    def __len__(self) -> int:
        return len(self.loops)


def _edge(a: PointKey, b: PointKey) -> frozenset[PointKey]:
    return frozenset((a, b))


def trace_loops(graph: SegmentGraph) -> AssemblyResult:
    """
    Walk every unvisited edge of ``graph`` and collect the closed loops.

    Args:
        graph: Populated segment graph

    Returns:
        AssemblyResult with loops in discovery order
    """
    result = AssemblyResult()
    visited: set[frozenset[PointKey]] = set()

    for start_key, start_neighbors in graph.adjacency.items():
        for next_key in start_neighbors:
            edge = _edge(start_key, next_key)
            if edge in visited:
                continue

            visited.add(edge)
            loop_keys = [start_key]
            current_key = next_key

            while True:
                loop_keys.append(current_key)
                previous_key = loop_keys[-2]

                found = False
                for neighbor_key in graph.adjacency[current_key]:
                    candidate = _edge(current_key, neighbor_key)
                    if neighbor_key != previous_key and candidate not in visited:
                        visited.add(candidate)
                        current_key = neighbor_key
                        found = True
                        break

                if not found or current_key == start_key:
                    break

            if current_key == start_key and len(set(loop_keys)) >= 3:
                result.loops.append(graph.resolve(loop_keys))
            else:
                result.open_chains += 1

    return result


def assemble_polygons(
    segments: ArrayLike,
    epsilon: float = KEY_EPSILON,
) -> AssemblyResult:
    """
    Stitch unordered segments of one plane into closed polygon loops.

    Args:
        segments: (M, 2, 3) array of segment endpoints
        epsilon: Quantization grid for matching endpoints

    Returns:
        AssemblyResult; open chains are counted and discarded
    """
    graph = SegmentGraph(epsilon)
    for start, end in np.asarray(segments, dtype=np.float64).reshape(-1, 2, 3):
        graph.add_segment(start, end)

    result = trace_loops(graph)
    if result.open_chains:
        logger.debug(
            "Discarded %d open chain(s) while assembling %d loop(s)",
            result.open_chains,
            len(result.loops),
        )
    return result


def signed_area(loop: ArrayLike) -> float:
    """
    Signed shoelace area of a loop's XY projection.

    Positive for counter-clockwise loops, negative for clockwise ones.
    """
    points = np.asarray(loop, dtype=np.float64)
    if len(points) < 3:
        return 0.0
    x = points[:, 0]
    y = points[:, 1]
    return float(0.5 * (np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y)))


def polygon_area(loop: ArrayLike) -> float:
    """Unsigned shoelace area of a loop's XY projection."""
    return abs(signed_area(loop))


__all__ = [
    "PointKey",
    "quantize",
    "SegmentGraph",
    "AssemblyResult",
    "trace_loops",
    "assemble_polygons",
    "signed_area",
    "polygon_area",
]
