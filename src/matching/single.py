"""
Single-request assignment.

Pipeline for one origin:
  radius prefilter  →  graph build (origin + survivors)  →  Dijkstra  →  score

Degenerate cases skip the expensive steps:
  0 survivors  →  NotFound(no_candidates_in_radius)
  1 survivor   →  returned directly from its haversine distance; the
                  road distance is the same estimate the graph edges
                  carry, so it matches the general path to within rounding
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping

from src.matching.config import AssignmentOptions, NearbyConfig
from src.matching.logging import StructuredLogger, get_logger
from src.matching.models import (
    AlgorithmTag,
    AssignmentOutcome,
    AssignmentReason,
    AssignmentResult,
    Candidate,
    NotFound,
    validate_candidates,
)
from src.matching.scorer import ScoredCandidate, score, select_best
from src.routing.dijkstra import dijkstra
from src.routing.errors import InputError, InternalError
from src.routing.geo import Coordinate, haversine_km, road_distance_estimate
from src.routing.graph import CoordinateGraph, GraphNode, NodeKind

ORIGIN_NODE_ID = "__origin__"


def check_origin(origin) -> Coordinate:
    """Reject anything but a :class:`Coordinate` as a request origin."""
    if not isinstance(origin, Coordinate):
        raise InputError(f"Origin must be a Coordinate, got {origin!r}")
    return origin


def find_nearby(
    origin: Coordinate,
    candidates: list[Candidate],
    max_distance_km: float | None = None,
) -> list[tuple[Candidate, float]]:
    """List active candidates within ``max_distance_km``, closest first.

    The radius defaults to :class:`NearbyConfig`'s. Equal distances keep
    input order. No scoring is applied.
    """
    check_origin(origin)
    if max_distance_km is None:
        max_distance_km = NearbyConfig().max_distance_km
    if max_distance_km <= 0:
        raise InputError(f"max_distance_km must be > 0, got {max_distance_km}")
    nearby = []
    for c in candidates:
        if not c.active:
            continue
        d = haversine_km(origin, c.coordinate)
        if d <= max_distance_km:
            nearby.append((c, d))
    nearby.sort(key=lambda pair: pair[1])
    return nearby


class SingleAssignmentService:
    """Picks the best resource for one origin.

    Usage:
        service = SingleAssignmentService(logger=get_logger())
        outcome = service.assign_one(origin, candidates)
        if outcome.found:
            ...

    Attributes:
        options: Defaults used when a call passes no options.
        nearby: Radius used by :meth:`list_nearby`.
        total_calls: Number of ``assign_one`` calls served.
        total_not_found: How many of those returned ``NotFound``.
    """

    def __init__(
        self,
        options: AssignmentOptions | None = None,
        logger: StructuredLogger | None = None,
        nearby: NearbyConfig | None = None,
    ) -> None:
        self.options = options or AssignmentOptions()
        self.nearby = nearby or NearbyConfig()
        self.logger = logger or get_logger()
        self.total_calls: int = 0
        self.total_not_found: int = 0
        self.total_solve_time_ms: float = 0.0

    def assign_one(
        self,
        origin: Coordinate,
        candidates: list[Candidate],
        options: AssignmentOptions | None = None,
        workloads: Mapping[str, float] | None = None,
    ) -> AssignmentOutcome:
        """Assign one origin to its best candidate.

        Args:
            origin: Request location.
            candidates: Resources to choose from. Not modified.
            options: Overrides ``self.options`` for this call.
            workloads: Optional resource id → workload view that replaces
                each candidate's own workload when scoring.

        Returns:
            ``AssignmentResult`` or ``NotFound``.

        Raises:
            InputError: Malformed origin or candidate list.
            InternalError: The graph or solver reached an impossible state.
        """
        opts = options or self.options
        check_origin(origin)
        validate_candidates(candidates)
        if any(c.id == ORIGIN_NODE_ID for c in candidates):
            raise InputError(f"Candidate id {ORIGIN_NODE_ID!r} is reserved")

        t0 = time.perf_counter()
        self.total_calls += 1

        survivors: list[tuple[Candidate, float]] = []
        for c in candidates:
            if not c.active:
                continue
            d = haversine_km(origin, c.coordinate)
            if d <= opts.max_distance_km:
                survivors.append((c, d))

        def load_of(c: Candidate) -> float:
            if workloads is None:
                return c.workload
            return workloads.get(c.id, c.workload)

        if not survivors:
            return self._not_found(AssignmentReason.NO_CANDIDATES_IN_RADIUS, opts, len(candidates))

        if len(survivors) == 1:
            c, d = survivors[0]
            road_km = road_distance_estimate(d)
            result = AssignmentResult(
                resource_id=c.id,
                distance_km=d,
                road_distance_km=road_km,
                score=score(road_km, c, opts, load_of(c)),
                reason=AssignmentReason.ONLY_CANDIDATE,
                algorithm_tag=AlgorithmTag.HAVERSINE,
            )
            self._record(result, t0)
            return result

        try:
            best, straight_km = self._solve(origin, survivors, opts, load_of)
        except InternalError as exc:
            self.logger.log(logging.ERROR, "assignment aborted on invariant violation", error=str(exc))
            raise

        if best is None:
            return self._not_found(AssignmentReason.UNREACHABLE, opts, len(candidates))

        result = AssignmentResult(
            resource_id=best.candidate.id,
            distance_km=straight_km[best.candidate.id],
            road_distance_km=best.road_distance_km,
            score=best.score,
            reason=AssignmentReason.OPTIMAL,
            algorithm_tag=AlgorithmTag.DIJKSTRA,
        )
        self._record(result, t0, n_survivors=len(survivors))
        return result

    def list_nearby(self, origin: Coordinate, candidates: list[Candidate]) -> list[tuple[Candidate, float]]:
        """:func:`find_nearby` with the radius from ``self.nearby``."""
        return find_nearby(origin, candidates, self.nearby.max_distance_km)

    # ── Internals ────────────────────────────────────────────────────

    def _solve(self, origin, survivors, opts, load_of):
        """Build the graph, run the solver and score every survivor."""
        nodes = [GraphNode(ORIGIN_NODE_ID, origin, NodeKind.ORIGIN)]
        nodes.extend(GraphNode(c.id, c.coordinate, NodeKind.RESOURCE) for c, _ in survivors)

        graph = CoordinateGraph()
        graph.build_fully_connected(nodes)
        paths = dijkstra(graph, ORIGIN_NODE_ID)

        scored = []
        for c, _ in survivors:
            road_km = paths.distance_to(c.id)
            if road_km < 0:
                raise InternalError(f"Negative distance {road_km} to {c.id!r}")
            scored.append(ScoredCandidate(c, road_km, score(road_km, c, opts, load_of(c))))

        straight_km = {c.id: d for c, d in survivors}
        return select_best(scored), straight_km

    def _not_found(self, reason: AssignmentReason, opts: AssignmentOptions, n_candidates: int) -> NotFound:
        self.total_not_found += 1
        self.logger.log(
            logging.INFO,
            "no resource assigned",
            reason=reason.value,
            max_distance_km=opts.max_distance_km,
            n_candidates=n_candidates,
        )
        return NotFound(reason)

    def _record(self, result: AssignmentResult, t0: float, n_survivors: int = 1) -> None:
        ms = (time.perf_counter() - t0) * 1e3
        self.total_solve_time_ms += ms
        self.logger.log(
            logging.DEBUG,
            "resource assigned",
            resource_id=result.resource_id,
            distance_km=result.distance_km,
            score=result.score,
            reason=result.reason.value,
            algorithm=result.algorithm_tag.value,
            n_survivors=n_survivors,
            solve_ms=ms,
        )
