"""Per-resource assignment statistics over caller-supplied records."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from src.matching.models import AssignmentRecord, AssignmentStatus

_OPEN_STATUSES = (AssignmentStatus.ASSIGNED, AssignmentStatus.PENDING)


@dataclass
class StatusBreakdown:
    """Count and mean distance for one status."""

    status: AssignmentStatus
    count: int = 0
    avg_distance_km: float | None = None  # None when no record carries a distance


@dataclass
class AssignmentStats:
    """Summary for one resource.

    Attributes:
        total_assignments: Records attributed to the resource.
        pending_assignments: Records still open (assigned or pending).
        breakdown: One entry per status present, in first-seen order.
        efficiency_pct: Share of records no longer open, 0–100, 2 decimals.
    """

    total_assignments: int = 0
    pending_assignments: int = 0
    breakdown: list[StatusBreakdown] = field(default_factory=list)
    efficiency_pct: float = 0.0


def assignment_stats(records: list[AssignmentRecord], resource_id: str | None = None) -> AssignmentStats:
    """Summarise assignment records, optionally for a single resource."""
    if resource_id is not None:
        records = [r for r in records if r.resource_id == resource_id]

    total = len(records)
    pending = sum(1 for r in records if r.status in _OPEN_STATUSES)

    distances: dict[AssignmentStatus, list[float]] = {}
    counts: dict[AssignmentStatus, int] = {}
    for r in records:
        counts[r.status] = counts.get(r.status, 0) + 1
        bucket = distances.setdefault(r.status, [])
        if r.distance_km is not None:
            bucket.append(r.distance_km)

    breakdown = [
        StatusBreakdown(
            status=status,
            count=count,
            avg_distance_km=float(np.mean(distances[status])) if distances[status] else None,
        )
        for status, count in counts.items()
    ]

    efficiency = round((total - pending) / total * 100, 2) if total else 0.0
    return AssignmentStats(
        total_assignments=total,
        pending_assignments=pending,
        breakdown=breakdown,
        efficiency_pct=efficiency,
    )
