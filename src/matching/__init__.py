"""
Resource matching services.

Assigns request origins (e.g. donation pickups) to candidate resources
(e.g. NGOs) by road distance plus workload and capacity penalties.

Quick start:
    from src.matching import SingleAssignmentService, Candidate
    from src.routing import Coordinate
    service = SingleAssignmentService()
    outcome = service.assign_one(Coordinate(28.61, 77.21), candidates)
"""

from src.matching.config import AssignmentOptions, MatchingConfig, load_config
from src.matching.models import (
    AssignmentRequest,
    AssignmentResult,
    Candidate,
    NotFound,
    StaleItem,
)
from src.matching.single import SingleAssignmentService, find_nearby
from src.matching.batch import BatchAssignmentService, WorkloadLedger
from src.matching.sweep import ReassignmentSweep, select_stale
from src.matching.comparator import AlgorithmComparator

__all__ = [
    "AssignmentOptions",
    "MatchingConfig",
    "load_config",
    "AssignmentRequest",
    "AssignmentResult",
    "Candidate",
    "NotFound",
    "StaleItem",
    "SingleAssignmentService",
    "find_nearby",
    "BatchAssignmentService",
    "WorkloadLedger",
    "ReassignmentSweep",
    "select_stale",
    "AlgorithmComparator",
]
