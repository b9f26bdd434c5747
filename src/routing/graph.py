"""Coordinate graph representation.

One graph is built per assignment call:
- Nodes are the request origin plus every candidate that survived the
  radius prefilter
- Edges carry an estimated road distance in kilometers
- Every logical connection is stored as two directed edges of equal weight

The graph is discarded once the call returns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto

import networkx as nx

from src.routing.errors import DuplicateNodeError, InternalError
from src.routing.geo import Coordinate, haversine_km, road_distance_estimate


class NodeKind(Enum):
    """Roles a node can play in an assignment graph."""

    ORIGIN = auto()  # Request source (e.g. donation pickup point)
    RESOURCE = auto()  # Assignable candidate (e.g. an NGO)


@dataclass(frozen=True)
class GraphNode:
    """Input record for :meth:`CoordinateGraph.build_fully_connected`."""

    node_id: str
    coordinate: Coordinate
    kind: NodeKind
    attrs: dict = field(default_factory=dict)


class CoordinateGraph:
    """Directed, weighted graph over geographic coordinates.

    Wraps a NetworkX DiGraph with typed nodes, while keeping the raw graph
    accessible so reference algorithms can run against it in tests.

    Attributes:
        graph: The underlying NetworkX DiGraph. Edge weights live under
            the ``weight`` key, in kilometers.
    """

    def __init__(self) -> None:
        self.graph = nx.DiGraph()

    # ── Node management ──────────────────────────────────────────────

    def add_node(
        self,
        node_id: str,
        coordinate: Coordinate,
        kind: NodeKind,
        **attrs,
    ) -> None:
        """Add a node at a coordinate.

        Raises:
            DuplicateNodeError: If ``node_id`` is already present.
        """
        if node_id in self.graph:
            raise DuplicateNodeError(node_id)
        self.graph.add_node(node_id, coordinate=coordinate, kind=kind, **attrs)

    def get_node(self, node_id: str) -> dict:
        """Get all attributes of a node."""
        return self.graph.nodes[node_id]

    def has_node(self, node_id: str) -> bool:
        return node_id in self.graph

    def nodes_by_kind(self, kind: NodeKind) -> list[str]:
        """Return all node IDs of a given kind, in insertion order."""
        return [n for n, d in self.graph.nodes(data=True) if d.get("kind") == kind]

    # ── Edge management ──────────────────────────────────────────────

    def add_edge(self, from_node: str, to_node: str, weight: float) -> None:
        """Add a single directed edge.

        Callers that want symmetry add the reverse edge themselves, or use
        :meth:`add_bidirectional_edge`.
        """
        if from_node not in self.graph or to_node not in self.graph:
            raise InternalError(f"Edge {from_node!r} -> {to_node!r} references an unknown node")
        if weight < 0:
            raise InternalError(f"Negative edge weight {weight} on {from_node!r} -> {to_node!r}")
        self.graph.add_edge(from_node, to_node, weight=weight)

    def add_bidirectional_edge(self, node_a: str, node_b: str, weight: float) -> None:
        """Add edges in both directions with the same weight."""
        self.add_edge(node_a, node_b, weight)
        self.add_edge(node_b, node_a, weight)

    def build_fully_connected(self, nodes: list[GraphNode]) -> None:
        """Add ``nodes`` and connect every unordered pair.

        Edge weight is the estimated road distance between the pair. This
        creates n·(n-1) directed edges, so ``nodes`` should already be
        radius-filtered.
        """
        for node in nodes:
            self.add_node(node.node_id, node.coordinate, node.kind, **node.attrs)

        for i, a in enumerate(nodes):
            for b in nodes[i + 1 :]:
                road_km = road_distance_estimate(haversine_km(a.coordinate, b.coordinate))
                self.add_bidirectional_edge(a.node_id, b.node_id, road_km)

    # ── Queries ──────────────────────────────────────────────────────

    @property
    def n_nodes(self) -> int:
        return self.graph.number_of_nodes()

    @property
    def n_edges(self) -> int:
        return self.graph.number_of_edges()

    def node_ids(self) -> list[str]:
        return list(self.graph.nodes)

    def neighbors(self, node_id: str) -> list[tuple[str, float]]:
        """Return ``(target, weight)`` for each outgoing edge."""
        return [(target, data["weight"]) for target, data in self.graph.adj[node_id].items()]

    def edge_weight(self, from_node: str, to_node: str) -> float:
        """Get weight of a specific edge. Raises KeyError if edge doesn't exist."""
        return self.graph.edges[from_node, to_node]["weight"]

    def validate(self) -> list[str]:
        """Run sanity checks on the graph.

        Returns:
            List of issues found (empty = all good).
        """
        issues = []

        origins = self.nodes_by_kind(NodeKind.ORIGIN)
        if len(origins) != 1:
            issues.append(f"Expected exactly one origin node, found {len(origins)}")

        for u, v, w in self.graph.edges(data="weight"):
            if not self.graph.has_edge(v, u):
                issues.append(f"Edge {u} -> {v} has no reverse edge")
            elif self.graph.edges[v, u]["weight"] != w:
                issues.append(f"Edge {u} <-> {v} has asymmetric weights")

        return issues
