"""
Diagnostic comparison: naive closest vs. scored optimal selection.

Not on the assignment hot path. Used for monitoring and regression checks:
with both penalties disabled the scored path degenerates to pure distance
and must agree with the naive pick.

Usage:
    comparator = AlgorithmComparator(logger=NullLogger())
    cmp = comparator.compare(origin, candidates)

    rng = np.random.default_rng(42)
    summary = comparator.agreement_rate(random_scenarios(100, rng))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from src.matching.config import AssignmentOptions
from src.matching.logging import StructuredLogger, get_logger
from src.matching.models import Candidate, Comparison, Recommendation, validate_candidates
from src.matching.single import SingleAssignmentService, check_origin
from src.routing.geo import Coordinate, haversine_km

_KM_PER_DEG_LAT = 111.32


@dataclass
class Scenario:
    """One origin with its candidate set."""

    origin: Coordinate
    candidates: list[Candidate]


@dataclass
class AgreementSummary:
    """How often the naive and scored picks matched."""

    n_scenarios: int = 0
    n_agree: int = 0
    n_both_not_found: int = 0
    mean_extra_distance_km: float = 0.0  # optimal minus naive, when they differ

    @property
    def rate(self) -> float:
        return self.n_agree / self.n_scenarios if self.n_scenarios else 0.0


def random_scenarios(
    n: int,
    rng: np.random.Generator,
    center: Coordinate = Coordinate(28.6139, 77.2090),
    n_candidates: int = 8,
    spread_km: float = 30.0,
    inactive_fraction: float = 0.1,
) -> list[Scenario]:
    """Generate synthetic scenarios scattered around ``center``.

    Origins and candidates are drawn uniformly within ``spread_km`` of the
    centre; workloads and capacities are random so the penalties matter.
    """
    deg_lat = spread_km / _KM_PER_DEG_LAT
    deg_lng = spread_km / (_KM_PER_DEG_LAT * max(np.cos(np.radians(center.lat)), 1e-6))

    def _point() -> Coordinate:
        lat = float(np.clip(center.lat + rng.uniform(-deg_lat, deg_lat), -90.0, 90.0))
        lng = float(np.clip(center.lng + rng.uniform(-deg_lng, deg_lng), -180.0, 180.0))
        return Coordinate(lat, lng)

    scenarios = []
    for s in range(n):
        candidates = []
        for i in range(n_candidates):
            capacity = int(rng.integers(20, 151))
            candidates.append(
                Candidate(
                    id=f"S{s:03d}_R{i:02d}",
                    coordinate=_point(),
                    workload=int(rng.integers(0, capacity + 1)),
                    capacity=capacity,
                    active=bool(rng.random() >= inactive_fraction),
                )
            )
        scenarios.append(Scenario(origin=_point(), candidates=candidates))
    return scenarios


class AlgorithmComparator:
    """Runs naive closest selection alongside the scored assignment."""

    def __init__(
        self,
        single: SingleAssignmentService | None = None,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.logger = logger or get_logger()
        self.single = single or SingleAssignmentService(logger=self.logger)

    def naive_closest(
        self,
        origin: Coordinate,
        candidates: list[Candidate],
        options: AssignmentOptions,
    ) -> tuple[str, float] | None:
        """Smallest straight-line distance among eligible candidates.

        Eligibility matches the scored path (active, within radius) so the
        two picks are comparable. First seen wins on ties.
        """
        best: tuple[str, float] | None = None
        for c in candidates:
            if not c.active:
                continue
            d = haversine_km(origin, c.coordinate)
            if d > options.max_distance_km:
                continue
            if best is None or d < best[1]:
                best = (c.id, d)
        return best

    def compare(
        self,
        origin: Coordinate,
        candidates: list[Candidate],
        options: AssignmentOptions | None = None,
    ) -> Comparison:
        check_origin(origin)
        opts = options or self.single.options
        validate_candidates(candidates)
        naive = self.naive_closest(origin, candidates, opts)
        optimal = self.single.assign_one(origin, candidates, opts)

        if naive is None or not optimal.found:
            agree = naive is None and not optimal.found
        else:
            agree = naive[0] == optimal.resource_id

        if not agree:
            self.logger.log(
                logging.DEBUG,
                "naive and scored picks differ",
                naive=naive[0] if naive else None,
                optimal=optimal.resource_id if optimal.found else None,
            )
        recommendation = Recommendation.DIJKSTRA if optimal.found else Recommendation.CLOSEST
        return Comparison(naive_closest=naive, optimal=optimal, agree=agree, recommendation=recommendation)

    def agreement_rate(
        self,
        scenarios: list[Scenario],
        options: AssignmentOptions | None = None,
    ) -> AgreementSummary:
        """Compare over many scenarios and summarise."""
        summary = AgreementSummary()
        extra: list[float] = []
        for sc in scenarios:
            cmp = self.compare(sc.origin, sc.candidates, options)
            summary.n_scenarios += 1
            if cmp.agree:
                summary.n_agree += 1
                if not cmp.optimal.found:
                    summary.n_both_not_found += 1
            elif cmp.naive_closest is not None and cmp.optimal.found:
                extra.append(cmp.optimal.distance_km - cmp.naive_closest[1])

        summary.mean_extra_distance_km = float(np.mean(extra)) if extra else 0.0
        self.logger.log(
            logging.INFO,
            "algorithm comparison finished",
            scenarios=summary.n_scenarios,
            agree=summary.n_agree,
            rate=summary.rate,
        )
        return summary
