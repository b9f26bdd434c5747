"""
Reassignment sweep for stale or failed assignments.

The caller decides what is stale (``select_stale`` implements the default
policy: expired, or assigned more than two hours ago). The sweep then
clears each item's prior assignment and runs single assignment again:

  success  →  ReassignedItem, ledger +1 on the new resource
  NotFound →  expired_ids (terminal, no retry within this call)

One item failing never stops the sweep. Malformed input aborts the whole
call before any item is processed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from src.matching.batch import WorkloadLedger
from src.matching.config import AssignmentOptions, SweepConfig
from src.matching.logging import StructuredLogger, get_logger
from src.matching.models import (
    AssignmentRecord,
    AssignmentStatus,
    Candidate,
    ReassignedItem,
    StaleItem,
    SweepResult,
    validate_candidates,
)
from src.matching.single import SingleAssignmentService
from src.routing.errors import InputError
from src.routing.geo import Coordinate


def select_stale(
    records: list[AssignmentRecord],
    now: datetime,
    max_age: timedelta | None = None,
) -> list[StaleItem]:
    """Pick records needing reassignment.

    A record is stale when it is ``EXPIRED``, or ``ASSIGNED`` with an
    ``assigned_at`` strictly older than ``now - max_age``. ``max_age``
    defaults to :class:`SweepConfig`'s threshold. Input order is kept.
    """
    if max_age is None:
        max_age = SweepConfig().max_age
    cutoff = now - max_age
    stale = []
    for rec in records:
        if rec.status == AssignmentStatus.EXPIRED:
            stale.append(StaleItem(rec.id, rec.origin, rec.resource_id))
        elif rec.status == AssignmentStatus.ASSIGNED and rec.assigned_at is not None and rec.assigned_at < cutoff:
            stale.append(StaleItem(rec.id, rec.origin, rec.resource_id))
    return stale


def _check_items(items: list[StaleItem]) -> None:
    seen: set[str] = set()
    for item in items:
        if not isinstance(item, StaleItem):
            raise InputError(f"Expected StaleItem, got {type(item).__name__}")
        if not isinstance(item.origin, Coordinate):
            raise InputError(f"Stale item {item.id!r} has no location")
        if item.id in seen:
            raise InputError(f"Duplicate stale item id {item.id!r}")
        seen.add(item.id)


class ReassignmentSweep:
    """Re-runs single assignment over stale items.

    Usage:
        sweeper = ReassignmentSweep(logger=get_logger())
        stale = sweeper.select_stale(records, now)
        result = sweeper.sweep(stale, candidates, now=now)
    """

    def __init__(
        self,
        single: SingleAssignmentService | None = None,
        options: AssignmentOptions | None = None,
        logger: StructuredLogger | None = None,
        sweep_config: SweepConfig | None = None,
    ) -> None:
        self.logger = logger or get_logger()
        self.single = single or SingleAssignmentService(options=options, logger=self.logger)
        self.options = options or self.single.options
        self.sweep_config = sweep_config or SweepConfig()

    def select_stale(self, records: list[AssignmentRecord], now: datetime) -> list[StaleItem]:
        """:func:`select_stale` with the threshold from ``self.sweep_config``."""
        return select_stale(records, now, self.sweep_config.max_age)

    def sweep(
        self,
        stale_items: list[StaleItem],
        candidates: list[Candidate],
        options: AssignmentOptions | None = None,
        now: datetime | None = None,
    ) -> SweepResult:
        """Try to reassign every stale item, expiring the ones that fail.

        Clearing an item's prior assignment releases one unit of load on
        the prior resource in the sweep's ledger (never below zero), so
        that resource competes fairly for the item again.

        Args:
            stale_items: Items selected by the caller's staleness policy.
            candidates: Resources to choose from. Not modified.
            options: Overrides the service defaults.
            now: Timestamp stamped on each reassignment.

        Raises:
            InputError: An item lacks a location, ids repeat, or the
                candidate list is malformed.
        """
        opts = options or self.options
        now = now or datetime.now()
        _check_items(stale_items)
        validate_candidates(candidates)

        ledger = WorkloadLedger(candidates)
        result = SweepResult()

        for item in stale_items:
            prior = item.prior_resource_id
            if prior is not None and ledger.get(prior, 0) >= 1:
                ledger.increment(prior, by=-1)

            outcome = self.single.assign_one(item.origin, candidates, opts, workloads=ledger)
            if outcome.found:
                ledger.increment(outcome.resource_id)
                result.results.append(ReassignedItem(item.id, prior, outcome, now))
                result.reassigned_count += 1
            else:
                result.expired_ids.append(item.id)
                self.logger.log(
                    logging.WARNING,
                    "stale item expired",
                    item_id=item.id,
                    prior_resource_id=prior,
                    reason=outcome.reason.value,
                )

        self.logger.log(
            logging.INFO,
            "reassignment sweep finished",
            reassigned=result.reassigned_count,
            expired=len(result.expired_ids),
            total=len(stale_items),
        )
        return result
