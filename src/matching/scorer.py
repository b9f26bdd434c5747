"""Assignment scoring policy.

score = distance
      + workload / max(capacity, 1) * 10     (if consider_workload)
      + (1 - capacity / 100) * 5             (if consider_capacity)

Lower is better. A fully loaded resource pays up to a 10 km penalty; a
resource with capacity below 100 pays up to 5 km, and one above 100 earns a
small bonus.

Tie-breaking is load-bearing: among equal scores the candidate seen first
in input order wins, so identical inputs always give identical outputs.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.matching.config import AssignmentOptions
    from src.matching.models import Candidate

WORKLOAD_PENALTY_KM = 10.0
CAPACITY_PENALTY_KM = 5.0
REFERENCE_CAPACITY = 100.0


@dataclass(frozen=True)
class ScoredCandidate:
    """A candidate with its solver distance and final score."""

    candidate: Candidate
    road_distance_km: float
    score: float


def workload_penalty(workload: float, capacity: float) -> float:
    return (workload / max(capacity, 1)) * WORKLOAD_PENALTY_KM


def capacity_penalty(capacity: float) -> float:
    return (1 - capacity / REFERENCE_CAPACITY) * CAPACITY_PENALTY_KM


def score(
    distance_km: float,
    candidate: Candidate,
    options: AssignmentOptions,
    workload: float | None = None,
) -> float:
    """Combine distance with load penalties into one comparable number.

    Args:
        distance_km: Distance origin → candidate.
        candidate: Resource being scored.
        options: Which penalties apply.
        workload: Overrides ``candidate.workload`` (batch ledgers pass
            their simulated value here).
    """
    load = candidate.workload if workload is None else workload
    total = distance_km
    if options.consider_workload:
        total += workload_penalty(load, candidate.capacity)
    if options.consider_capacity:
        total += capacity_penalty(candidate.capacity)
    return total


def select_best(scored: list[ScoredCandidate]) -> ScoredCandidate | None:
    """Return the minimum-score entry; first seen wins on ties.

    Unreachable (infinite distance) and inactive entries are skipped.
    """
    best: ScoredCandidate | None = None
    for entry in scored:
        if entry.road_distance_km == math.inf or not entry.candidate.active:
            continue
        if best is None or entry.score < best.score:
            best = entry
    return best
