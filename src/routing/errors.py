"""Error taxonomy shared by the routing and matching packages.

Two kinds of failure are raised:

- ``InputError``: the caller passed something malformed (out-of-range
  coordinate, empty candidate list, non-positive capacity, ...).
- ``InternalError``: an invariant was violated inside the core (duplicate
  graph node, negative distance, impossible solver state). These indicate
  a logic defect and must propagate.

"Nothing eligible" is not an error; see ``src.matching.models.NotFound``.
"""

from __future__ import annotations


class MatchingError(Exception):
    """Base class for all errors raised by the matching core."""


class InputError(MatchingError, ValueError):
    """Malformed or out-of-range caller input."""


class InternalError(MatchingError, RuntimeError):
    """An internal invariant was violated."""


class DuplicateNodeError(InternalError):
    """A node id was added to a graph twice."""

    def __init__(self, node_id: str) -> None:
        super().__init__(f"Node {node_id!r} already exists in the graph")
        self.node_id = node_id
