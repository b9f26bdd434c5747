"""
Input and output records for the matching services.

Design decisions:
- Candidates are owned by the caller and never mutated. Workload changes
  during a batch live in a separate ledger (see ``batch.WorkloadLedger``).
- "No eligible resource" is a normal outcome, returned as ``NotFound``
  rather than raised. Callers branch on ``isinstance(result, NotFound)``
  or on the ``found`` property both types expose.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Union

from src.routing.errors import InputError
from src.routing.geo import Coordinate


class AssignmentReason(str, Enum):
    """Why a result came out the way it did."""

    OPTIMAL = "optimal"  # minimum score across 2+ survivors
    ONLY_CANDIDATE = "only_candidate"  # single survivor, solver skipped
    NO_CANDIDATES_IN_RADIUS = "no_candidates_in_radius"
    UNREACHABLE = "unreachable"  # survivors exist but none reachable in the graph


class AlgorithmTag(str, Enum):
    """Which selection path produced a result."""

    DIJKSTRA = "dijkstra"
    HAVERSINE = "haversine"


class Recommendation(str, Enum):
    """Which pick a comparison suggests acting on."""

    DIJKSTRA = "dijkstra"
    CLOSEST = "closest"


@dataclass(frozen=True)
class Candidate:
    """An assignable resource (e.g. an NGO).

    Attributes:
        id: Unique resource identifier.
        coordinate: Resource location.
        workload: Current number of active assignments (>= 0).
        capacity: Maximum concurrent assignments (> 0).
        active: Inactive candidates are never considered.
        name: Display name, carried through for logging only.
    """

    id: str
    coordinate: Coordinate
    workload: float = 0
    capacity: float = 100
    active: bool = True
    name: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.coordinate, Coordinate):
            raise InputError(f"Candidate {self.id!r} has no valid coordinate")
        for attr in ("workload", "capacity"):
            value = getattr(self, attr)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
                raise InputError(f"Candidate {self.id!r} {attr} must be numeric, got {value!r}")
        if self.workload < 0:
            raise InputError(f"Candidate {self.id!r} has negative workload {self.workload}")
        if self.capacity <= 0:
            raise InputError(f"Candidate {self.id!r} has non-positive capacity {self.capacity}")
        if not isinstance(self.active, bool):
            raise InputError(f"Candidate {self.id!r} active must be a bool, got {self.active!r}")

    @classmethod
    def from_mapping(cls, raw: dict) -> Candidate:
        """Build from ``{id, coordinate: {lat, lng}, workload, capacity, active}``."""
        try:
            return cls(
                id=str(raw["id"]),
                coordinate=Coordinate.from_mapping(raw["coordinate"]),
                workload=raw.get("workload", 0),
                capacity=raw.get("capacity", 100),
                active=raw.get("active", True),
                name=raw.get("name", ""),
            )
        except (KeyError, TypeError) as exc:
            raise InputError(f"Malformed candidate {raw!r}") from exc


@dataclass(frozen=True)
class AssignmentRequest:
    """One request in a batch."""

    request_id: str
    origin: Coordinate | None


@dataclass(frozen=True)
class AssignmentResult:
    """A successful match.

    Attributes:
        resource_id: Chosen candidate id.
        distance_km: Straight-line (haversine) distance origin → resource.
        road_distance_km: Shortest estimated road distance found.
        score: Distance plus load penalties; lower is better.
        reason: How the choice was made.
        algorithm_tag: Which selection path was taken.
    """

    resource_id: str
    distance_km: float
    road_distance_km: float
    score: float
    reason: AssignmentReason
    algorithm_tag: AlgorithmTag

    @property
    def found(self) -> bool:
        return True


@dataclass(frozen=True)
class NotFound:
    """No candidate could be assigned under the given constraints."""

    reason: AssignmentReason

    @property
    def found(self) -> bool:
        return False


AssignmentOutcome = Union[AssignmentResult, NotFound]


@dataclass(frozen=True)
class BatchItemResult:
    """Outcome for one request of a batch, in request order."""

    request_id: str
    outcome: AssignmentOutcome


@dataclass
class BatchResult:
    """Summary of a batch assignment."""

    results: list[BatchItemResult] = field(default_factory=list)
    assigned_count: int = 0
    total: int = 0

    @property
    def unassigned_ids(self) -> list[str]:
        return [r.request_id for r in self.results if not r.outcome.found]


@dataclass(frozen=True)
class StaleItem:
    """An assignment picked for recovery by the caller's staleness policy."""

    id: str
    origin: Coordinate | None
    prior_resource_id: str | None = None


@dataclass(frozen=True)
class ReassignedItem:
    """A stale item that found a new resource during a sweep."""

    item_id: str
    prior_resource_id: str | None
    result: AssignmentResult
    assigned_at: datetime


@dataclass
class SweepResult:
    """Summary of a reassignment sweep."""

    reassigned_count: int = 0
    results: list[ReassignedItem] = field(default_factory=list)
    expired_ids: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.reassigned_count + len(self.expired_ids)


@dataclass(frozen=True)
class Comparison:
    """Naive closest-resource pick next to the scored optimal pick.

    Attributes:
        naive_closest: Eligible candidate with the smallest straight-line
            distance and that distance, or None if nothing is eligible.
        optimal: Result of the full scored assignment.
        agree: Both picks name the same resource (or both found nothing).
        recommendation: ``dijkstra`` when the scored path found a resource,
            otherwise ``closest``.
    """

    naive_closest: tuple[str, float] | None
    optimal: AssignmentOutcome
    agree: bool
    recommendation: Recommendation = Recommendation.DIJKSTRA


def validate_candidates(candidates: list[Candidate]) -> None:
    """Reject an empty list, non-Candidate entries and duplicate ids."""
    if not candidates:
        raise InputError("Candidate list is empty")
    seen: set[str] = set()
    for c in candidates:
        if not isinstance(c, Candidate):
            raise InputError(f"Expected Candidate, got {type(c).__name__}")
        if c.id in seen:
            raise InputError(f"Duplicate candidate id {c.id!r}")
        seen.add(c.id)


class AssignmentStatus(str, Enum):
    """Lifecycle status of a stored assignment, as reported by the caller."""

    PENDING = "pending"
    ASSIGNED = "assigned"
    PICKED = "picked"
    DELIVERED = "delivered"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class AssignmentRecord:
    """Caller-side view of an existing assignment.

    Used by staleness selection and statistics; the core never stores these.
    """

    id: str
    origin: Coordinate | None
    status: AssignmentStatus
    resource_id: str | None = None
    assigned_at: datetime | None = None
    distance_km: float | None = None
