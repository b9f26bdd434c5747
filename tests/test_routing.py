"""Tests for geographic distances, the coordinate graph and the solver.

Run with: pytest tests/test_routing.py -v
"""

import math

import networkx as nx
import numpy as np
import pytest

from src.routing.dijkstra import PriorityFrontier, ShortestPaths, dijkstra, direct_distances
from src.routing.errors import DuplicateNodeError, InputError, InternalError
from src.routing.geo import (
    EARTH_RADIUS_KM,
    Coordinate,
    haversine_km,
    road_distance_estimate,
)
from src.routing.graph import CoordinateGraph, GraphNode, NodeKind


DONOR = Coordinate(28.6139, 77.2090)


@pytest.fixture
def delhi_nodes() -> list[GraphNode]:
    """Donor plus three NGOs around central Delhi."""
    return [
        GraphNode("donor", DONOR, NodeKind.ORIGIN),
        GraphNode("ngo_a", Coordinate(28.6200, 77.2200), NodeKind.RESOURCE),
        GraphNode("ngo_b", Coordinate(28.6500, 77.2500), NodeKind.RESOURCE),
        GraphNode("ngo_c", Coordinate(28.5800, 77.1800), NodeKind.RESOURCE),
    ]


@pytest.fixture
def delhi_graph(delhi_nodes) -> CoordinateGraph:
    g = CoordinateGraph()
    g.build_fully_connected(delhi_nodes)
    return g


# ── GeoDistance ───────────────────────────────────────────────────


class TestGeoDistance:
    """Haversine and road-distance estimates."""

    def test_zero_for_identical_points(self):
        assert haversine_km(DONOR, DONOR) == 0.0

    def test_symmetric(self):
        points = [
            DONOR,
            Coordinate(28.65, 77.25),
            Coordinate(-33.8688, 151.2093),
            Coordinate(51.5074, -0.1278),
            Coordinate(0.0, 180.0),
        ]
        for a in points:
            for b in points:
                assert haversine_km(a, b) == haversine_km(b, a)

    def test_one_degree_of_latitude(self):
        d = haversine_km(Coordinate(0.0, 0.0), Coordinate(1.0, 0.0))
        assert d == pytest.approx(EARTH_RADIUS_KM * math.pi / 180, rel=1e-9)

    def test_known_city_pair(self):
        """London → Paris is roughly 344 km great-circle."""
        d = haversine_km(Coordinate(51.5074, -0.1278), Coordinate(48.8566, 2.3522))
        assert 340 < d < 348

    def test_road_estimate_is_exact_factor(self):
        for d in [0.0, 0.5, 1.0, 12.345, 1000.0]:
            assert road_distance_estimate(d) == 1.3 * d

    def test_road_estimate_rejects_negative(self):
        with pytest.raises(InputError):
            road_distance_estimate(-1.0)


class TestCoordinate:
    """Coordinate validation."""

    @pytest.mark.parametrize("lat,lng", [(90.1, 0.0), (-90.1, 0.0), (0.0, 180.5), (0.0, -181.0)])
    def test_out_of_range_rejected(self, lat, lng):
        with pytest.raises(InputError):
            Coordinate(lat, lng)

    def test_bounds_inclusive(self):
        Coordinate(90.0, 180.0)
        Coordinate(-90.0, -180.0)

    def test_non_numeric_rejected(self):
        with pytest.raises(InputError):
            Coordinate("28.6", 77.2)
        with pytest.raises(InputError):
            Coordinate(True, 77.2)
        with pytest.raises(InputError):
            Coordinate(float("nan"), 77.2)

    def test_from_mapping(self):
        c = Coordinate.from_mapping({"lat": 28.6, "lng": 77.2})
        assert c == Coordinate(28.6, 77.2)

    def test_from_mapping_missing_key(self):
        with pytest.raises(InputError):
            Coordinate.from_mapping({"lat": 28.6})


# ── CoordinateGraph ───────────────────────────────────────────────


class TestCoordinateGraph:
    """Unit tests for the CoordinateGraph data structure."""

    def test_add_and_retrieve_node(self):
        g = CoordinateGraph()
        g.add_node("N1", DONOR, NodeKind.ORIGIN, label="pickup")
        assert g.n_nodes == 1
        attrs = g.get_node("N1")
        assert attrs["kind"] == NodeKind.ORIGIN
        assert attrs["coordinate"] == DONOR
        assert attrs["label"] == "pickup"

    def test_duplicate_node_rejected(self):
        g = CoordinateGraph()
        g.add_node("N1", DONOR, NodeKind.ORIGIN)
        with pytest.raises(DuplicateNodeError) as excinfo:
            g.add_node("N1", Coordinate(0, 0), NodeKind.RESOURCE)
        assert isinstance(excinfo.value, InternalError)
        assert g.get_node("N1")["coordinate"] == DONOR

    def test_add_edge_is_directed(self):
        g = CoordinateGraph()
        g.add_node("A", DONOR, NodeKind.ORIGIN)
        g.add_node("B", DONOR, NodeKind.RESOURCE)
        g.add_edge("A", "B", 3.0)
        assert g.n_edges == 1
        assert g.edge_weight("A", "B") == 3.0
        with pytest.raises(KeyError):
            g.edge_weight("B", "A")

    def test_bidirectional_edge(self):
        g = CoordinateGraph()
        g.add_node("A", DONOR, NodeKind.ORIGIN)
        g.add_node("B", DONOR, NodeKind.RESOURCE)
        g.add_bidirectional_edge("A", "B", 3.0)
        assert g.n_edges == 2
        assert g.edge_weight("B", "A") == 3.0

    def test_edge_to_unknown_node(self):
        g = CoordinateGraph()
        g.add_node("A", DONOR, NodeKind.ORIGIN)
        with pytest.raises(InternalError):
            g.add_edge("A", "missing", 1.0)

    def test_negative_weight_rejected(self):
        g = CoordinateGraph()
        g.add_node("A", DONOR, NodeKind.ORIGIN)
        g.add_node("B", DONOR, NodeKind.RESOURCE)
        with pytest.raises(InternalError):
            g.add_edge("A", "B", -0.1)

    def test_fully_connected_edge_count(self, delhi_graph):
        assert delhi_graph.n_nodes == 4
        assert delhi_graph.n_edges == 4 * 3

    def test_fully_connected_weights(self, delhi_graph, delhi_nodes):
        for a in delhi_nodes:
            for b in delhi_nodes:
                if a.node_id == b.node_id:
                    continue
                expected = road_distance_estimate(haversine_km(a.coordinate, b.coordinate))
                assert delhi_graph.edge_weight(a.node_id, b.node_id) == pytest.approx(expected)
                assert delhi_graph.edge_weight(a.node_id, b.node_id) == delhi_graph.edge_weight(
                    b.node_id, a.node_id
                )

    def test_fully_connected_validates(self, delhi_graph):
        assert delhi_graph.validate() == []

    def test_validate_flags_missing_reverse_edge(self):
        g = CoordinateGraph()
        g.add_node("A", DONOR, NodeKind.ORIGIN)
        g.add_node("B", DONOR, NodeKind.RESOURCE)
        g.add_edge("A", "B", 1.0)
        issues = g.validate()
        assert any("reverse" in issue for issue in issues)

    def test_nodes_by_kind(self, delhi_graph):
        assert delhi_graph.nodes_by_kind(NodeKind.ORIGIN) == ["donor"]
        assert delhi_graph.nodes_by_kind(NodeKind.RESOURCE) == ["ngo_a", "ngo_b", "ngo_c"]


# ── ShortestPathSolver ────────────────────────────────────────────


class TestPriorityFrontier:
    def test_pops_in_priority_order(self):
        pq = PriorityFrontier()
        pq.push("c", 3.0)
        pq.push("a", 1.0)
        pq.push("b", 2.0)
        assert [pq.pop()[0] for _ in range(3)] == ["a", "b", "c"]
        assert not pq

    def test_equal_priorities_are_fifo(self):
        pq = PriorityFrontier()
        for node in ["x", "y", "z"]:
            pq.push(node, 1.0)
        assert len(pq) == 3
        assert [pq.pop()[0] for _ in range(3)] == ["x", "y", "z"]

    def test_pop_empty_raises(self):
        with pytest.raises(IndexError):
            PriorityFrontier().pop()


def _line_graph() -> CoordinateGraph:
    """A → B → C with a long direct A → C shortcut, plus isolated D."""
    g = CoordinateGraph()
    for node_id in "ABCD":
        g.add_node(node_id, DONOR, NodeKind.RESOURCE)
    g.add_bidirectional_edge("A", "B", 1.0)
    g.add_bidirectional_edge("B", "C", 1.0)
    g.add_bidirectional_edge("A", "C", 5.0)
    return g


class TestDijkstra:
    """Solver correctness on sparse and fully-connected graphs."""

    def test_two_hop_beats_direct_edge(self):
        paths = dijkstra(_line_graph(), "A")
        assert paths.distances["C"] == 2.0
        assert paths.path_to("C") == ["A", "B", "C"]
        assert paths.predecessors["C"] == "B"

    def test_unreachable_node(self):
        paths = dijkstra(_line_graph(), "A")
        assert paths.distances["D"] == math.inf
        assert paths.path_to("D") == []
        assert "D" not in paths.visited

    def test_source_distance_zero(self):
        paths = dijkstra(_line_graph(), "A")
        assert paths.distances["A"] == 0.0
        assert paths.path_to("A") == ["A"]
        assert paths.visited == {"A", "B", "C"}

    def test_unknown_source(self):
        with pytest.raises(InternalError):
            dijkstra(_line_graph(), "missing")

    def test_matches_networkx_reference(self, delhi_graph):
        paths = dijkstra(delhi_graph, "donor")
        reference = nx.single_source_dijkstra_path_length(delhi_graph.graph, "donor", weight="weight")
        for node_id, dist in reference.items():
            assert paths.distances[node_id] == pytest.approx(dist, rel=1e-12)

    def test_fully_connected_equals_direct_edge(self, delhi_graph):
        """On a fully-connected graph the solver returns the direct edge weight."""
        paths = dijkstra(delhi_graph, "donor")
        for node_id in ["ngo_a", "ngo_b", "ngo_c"]:
            assert paths.distances[node_id] == delhi_graph.edge_weight("donor", node_id)
            assert paths.path_to(node_id) == ["donor", node_id]

    def test_direct_distances_agree_with_solver(self, delhi_graph):
        direct = direct_distances(delhi_graph, "donor")
        solved = dijkstra(delhi_graph, "donor").distances
        assert direct.keys() == solved.keys()
        for node_id, dist in solved.items():
            assert dist == pytest.approx(direct[node_id], rel=1e-12)

    def test_direct_distances_agree_on_random_graphs(self):
        rng = np.random.default_rng(7)
        for trial in range(10):
            nodes = [GraphNode("origin", DONOR, NodeKind.ORIGIN)]
            for i in range(8):
                lat = float(DONOR.lat + rng.uniform(-0.3, 0.3))
                lng = float(DONOR.lng + rng.uniform(-0.3, 0.3))
                nodes.append(GraphNode(f"r{trial}_{i}", Coordinate(lat, lng), NodeKind.RESOURCE))
            g = CoordinateGraph()
            g.build_fully_connected(nodes)
            direct = direct_distances(g, "origin")
            for node_id, dist in dijkstra(g, "origin").distances.items():
                assert dist <= direct[node_id]
                assert dist == pytest.approx(direct[node_id], rel=1e-12)

    def test_collinear_points_within_rounding(self):
        """Points on one meridian: O→A→B may sum a few ulps below O→B.

        The solver then prefers the two-hop path, so the fast path is only
        checked to within rounding and never below the solver.
        """
        for k in range(1, 400):
            nodes = [
                GraphNode("origin", Coordinate(0.0, 10.0), NodeKind.ORIGIN),
                GraphNode("a", Coordinate(k * 0.001, 10.0), NodeKind.RESOURCE),
                GraphNode("b", Coordinate(k * 0.0023, 10.0), NodeKind.RESOURCE),
            ]
            g = CoordinateGraph()
            g.build_fully_connected(nodes)
            direct = direct_distances(g, "origin")
            paths = dijkstra(g, "origin")
            assert paths.distances["b"] <= direct["b"]
            assert paths.distances["b"] == pytest.approx(direct["b"], rel=1e-12)
            assert paths.path_to("b") in (["origin", "b"], ["origin", "a", "b"])

    def test_broken_predecessor_chain(self):
        paths = ShortestPaths(source="A", distances={"A": 0.0, "B": 1.0})
        with pytest.raises(InternalError):
            paths.path_to("B")
