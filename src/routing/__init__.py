from src.routing.errors import DuplicateNodeError, InputError, InternalError, MatchingError
from src.routing.geo import Coordinate, haversine_km, road_distance_estimate
from src.routing.graph import CoordinateGraph, GraphNode, NodeKind
from src.routing.dijkstra import PriorityFrontier, ShortestPaths, dijkstra, direct_distances

__all__ = [
    "MatchingError",
    "InputError",
    "InternalError",
    "DuplicateNodeError",
    "Coordinate",
    "haversine_km",
    "road_distance_estimate",
    "CoordinateGraph",
    "GraphNode",
    "NodeKind",
    "PriorityFrontier",
    "ShortestPaths",
    "dijkstra",
    "direct_distances",
]
