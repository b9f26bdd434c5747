"""
Single-source shortest paths over a CoordinateGraph.

The assignment graphs built today are fully connected, so mathematically
the shortest distance from the origin to any node is the direct edge weight
(great-circle distance obeys the triangle inequality and the road factor
is a constant multiplier). In floating point that only holds to within
rounding: for collinear points the two-hop sum O→A→B can come out a few
ulps below the direct O→B weight, and the solver then takes the two-hop
path. The services therefore always call ``dijkstra``; it also keeps them
correct for sparse graphs such as real road networks.

``direct_distances`` is the O(n) shortcut for the fully-connected case. It
matches ``dijkstra`` to within rounding, never bit-for-bit in general, so
it is not a drop-in replacement where exact output matters.
"""

from __future__ import annotations

import heapq
import itertools
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from src.routing.errors import InternalError

if TYPE_CHECKING:
    from src.routing.graph import CoordinateGraph


class PriorityFrontier:
    """Min-priority queue keyed by tentative distance.

    Entries with equal priority pop in insertion order. Stale entries are
    not removed on decrease-key; the solver skips already-visited nodes.
    """

    def __init__(self) -> None:
        self._heap: list[tuple[float, int, str]] = []
        self._counter = itertools.count()

    def push(self, node_id: str, priority: float) -> None:
        heapq.heappush(self._heap, (priority, next(self._counter), node_id))

    def pop(self) -> tuple[str, float]:
        """Remove and return ``(node_id, priority)`` with the lowest priority."""
        if not self._heap:
            raise IndexError("pop from an empty frontier")
        priority, _, node_id = heapq.heappop(self._heap)
        return node_id, priority

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)


@dataclass
class ShortestPaths:
    """Solver output.

    Attributes:
        source: Node the search started from.
        distances: node → shortest distance (``math.inf`` if unreachable).
        predecessors: node → previous node on its shortest path.
        visited: Nodes whose distance was finalised.
    """

    source: str
    distances: dict[str, float]
    predecessors: dict[str, str] = field(default_factory=dict)
    visited: set[str] = field(default_factory=set)

    def distance_to(self, node_id: str) -> float:
        return self.distances.get(node_id, math.inf)

    def path_to(self, target: str) -> list[str]:
        """Reconstruct the node sequence from source to ``target``.

        Returns an empty list when ``target`` is unreachable.
        """
        if self.distance_to(target) == math.inf:
            return []
        path = [target]
        while path[-1] != self.source:
            prev = self.predecessors.get(path[-1])
            if prev is None:
                raise InternalError(f"Broken predecessor chain at {path[-1]!r}")
            path.append(prev)
        path.reverse()
        return path


def dijkstra(graph: CoordinateGraph, source: str) -> ShortestPaths:
    """Dijkstra's algorithm from ``source`` over non-negative edge weights.

    Raises:
        InternalError: If ``source`` is not in the graph, or a negative
            distance is ever produced.
    """
    if not graph.has_node(source):
        raise InternalError(f"Source node {source!r} not in graph")

    distances = {node_id: math.inf for node_id in graph.node_ids()}
    distances[source] = 0.0
    predecessors: dict[str, str] = {}
    visited: set[str] = set()

    frontier = PriorityFrontier()
    frontier.push(source, 0.0)

    while frontier:
        current, _ = frontier.pop()
        if current in visited:
            continue
        visited.add(current)

        for target, weight in graph.neighbors(current):
            if target in visited:
                continue
            candidate = distances[current] + weight
            if candidate < 0:
                raise InternalError(f"Negative distance {candidate} reached at {target!r}")
            if candidate < distances[target]:
                distances[target] = candidate
                predecessors[target] = current
                frontier.push(target, candidate)

    return ShortestPaths(source=source, distances=distances, predecessors=predecessors, visited=visited)


def direct_distances(graph: CoordinateGraph, source: str) -> dict[str, float]:
    """Distances taken straight from ``source``'s outgoing edges.

    On fully-connected graphs this agrees with :func:`dijkstra` to within
    floating-point rounding; the solver's value is never larger.
    """
    if not graph.has_node(source):
        raise InternalError(f"Source node {source!r} not in graph")
    distances = {node_id: math.inf for node_id in graph.node_ids()}
    distances[source] = 0.0
    for target, weight in graph.neighbors(source):
        distances[target] = weight
    return distances
