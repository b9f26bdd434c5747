"""
Batch assignment with a call-scoped workload ledger.

Requests are assigned strictly in input order. Each success bumps the
chosen resource's simulated workload by one, so later requests in the same
batch see the extra load. Reordering the requests can therefore change the
outcome; that is expected behaviour.

The ledger is created per call and never aliases caller data: candidates
are only read.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping

from src.matching.config import AssignmentOptions
from src.matching.logging import StructuredLogger, get_logger
from src.matching.models import (
    AssignmentRequest,
    BatchItemResult,
    BatchResult,
    Candidate,
    validate_candidates,
)
from src.matching.single import SingleAssignmentService
from src.routing.errors import InputError, InternalError
from src.routing.geo import Coordinate


class WorkloadLedger(Mapping):
    """Mutable resource id → simulated workload view.

    Read access follows the ``Mapping`` protocol so the ledger can be
    handed straight to ``SingleAssignmentService.assign_one``.
    """

    def __init__(self, candidates: list[Candidate] | None = None) -> None:
        self._loads: dict[str, float] = {}
        if candidates:
            self.seed(candidates)

    def seed(self, candidates: list[Candidate]) -> None:
        """Copy each candidate's current workload into the ledger."""
        for c in candidates:
            self._loads[c.id] = c.workload

    def increment(self, resource_id: str, by: float = 1) -> float:
        """Add ``by`` to a resource's workload and return the new value."""
        if resource_id not in self._loads:
            raise InternalError(f"Resource {resource_id!r} not in ledger")
        new_value = self._loads[resource_id] + by
        if new_value < 0:
            raise InternalError(f"Ledger workload for {resource_id!r} would go negative ({new_value})")
        self._loads[resource_id] = new_value
        return new_value

    def snapshot(self) -> dict[str, float]:
        """Independent copy of the current loads."""
        return dict(self._loads)

    def __getitem__(self, resource_id: str) -> float:
        return self._loads[resource_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._loads)

    def __len__(self) -> int:
        return len(self._loads)


def _check_requests(requests: list[AssignmentRequest]) -> None:
    seen: set[str] = set()
    for req in requests:
        if not isinstance(req, AssignmentRequest):
            raise InputError(f"Expected AssignmentRequest, got {type(req).__name__}")
        if not isinstance(req.origin, Coordinate):
            raise InputError(f"Request {req.request_id!r} has no location")
        if req.request_id in seen:
            raise InputError(f"Duplicate request id {req.request_id!r}")
        seen.add(req.request_id)


class BatchAssignmentService:
    """Assigns many requests against one candidate set.

    Usage:
        service = BatchAssignmentService(logger=get_logger())
        result = service.assign_batch(requests, candidates)
    """

    def __init__(
        self,
        single: SingleAssignmentService | None = None,
        options: AssignmentOptions | None = None,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.logger = logger or get_logger()
        self.single = single or SingleAssignmentService(options=options, logger=self.logger)
        self.options = options or self.single.options

    def assign_batch(
        self,
        requests: list[AssignmentRequest],
        candidates: list[Candidate],
        options: AssignmentOptions | None = None,
    ) -> BatchResult:
        """Assign every request in order, updating a private ledger.

        Raises:
            InputError: A request lacks a location, ids repeat, or the
                candidate list is malformed. Nothing is assigned in that case.
        """
        opts = options or self.options
        _check_requests(requests)
        validate_candidates(candidates)

        ledger = WorkloadLedger(candidates)
        batch = BatchResult(total=len(requests))

        for req in requests:
            outcome = self.single.assign_one(req.origin, candidates, opts, workloads=ledger)
            batch.results.append(BatchItemResult(req.request_id, outcome))
            if outcome.found:
                ledger.increment(outcome.resource_id)
                batch.assigned_count += 1

        self.logger.log(
            logging.INFO,
            "batch assignment finished",
            assigned=batch.assigned_count,
            total=batch.total,
            unassigned=batch.total - batch.assigned_count,
        )
        return batch
