"""
Matching configuration dataclasses and YAML loader.

All tunable options live here as typed, validated dataclasses.
Load from YAML with `load_config()` or construct directly for tests.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from datetime import timedelta
from pathlib import Path

import yaml

from src.routing.errors import InputError


def _require_positive(owner: str, name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InputError(f"{owner}.{name} must be numeric, got {value!r}")
    if math.isnan(value) or value <= 0:
        raise InputError(f"{owner}.{name} must be > 0, got {value}")


def _require_bool(owner: str, name: str, value) -> None:
    if not isinstance(value, bool):
        raise InputError(f"{owner}.{name} must be a boolean, got {value!r}")


@dataclass(frozen=True)
class AssignmentOptions:
    """Options for a single assignment.

    Attributes:
        max_distance_km: Radius prefilter; candidates farther than this
            (straight-line) are never considered.
        consider_workload: Add the workload saturation penalty to the score.
        consider_capacity: Add the small-capacity penalty to the score.
    """

    max_distance_km: float = 50.0
    consider_workload: bool = True
    consider_capacity: bool = True

    def __post_init__(self) -> None:
        _require_positive("AssignmentOptions", "max_distance_km", self.max_distance_km)
        _require_bool("AssignmentOptions", "consider_workload", self.consider_workload)
        _require_bool("AssignmentOptions", "consider_capacity", self.consider_capacity)


@dataclass(frozen=True)
class SweepConfig:
    """Staleness policy used to pick items for a reassignment sweep."""

    max_age_hours: float = 2.0  # assignments older than this are stale

    def __post_init__(self) -> None:
        _require_positive("SweepConfig", "max_age_hours", self.max_age_hours)

    @property
    def max_age(self) -> timedelta:
        """Returns the staleness threshold as a timedelta"""

        return timedelta(hours=self.max_age_hours)


@dataclass(frozen=True)
class NearbyConfig:
    """Radius for plain nearby-resource listings."""

    max_distance_km: float = 20.0

    def __post_init__(self) -> None:
        _require_positive("NearbyConfig", "max_distance_km", self.max_distance_km)


@dataclass(frozen=True)
class MatchingConfig:
    """Top-level configuration aggregating all sub-configs."""

    assignment: AssignmentOptions = field(default_factory=AssignmentOptions)
    sweep: SweepConfig = field(default_factory=SweepConfig)
    nearby: NearbyConfig = field(default_factory=NearbyConfig)


def _build(cls, section: str, raw: dict | None):
    raw = raw or {}
    if not isinstance(raw, dict):
        raise InputError(f"Config section '{section}' must be a mapping")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise InputError(f"Unknown keys in '{section}': {', '.join(unknown)}")
    return cls(**raw)


def load_config(path: str | Path) -> MatchingConfig:
    """Load a MatchingConfig from a YAML file.

    Args:
        path: Path to a YAML config file. Missing sections use defaults.

    Returns:
        Fully constructed MatchingConfig with all sub-configs.

    Raises:
        InputError: On unknown sections/keys or invalid values.
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise InputError(f"Config file {path} must contain a mapping")
    unknown = sorted(set(raw) - {"assignment", "sweep", "nearby"})
    if unknown:
        raise InputError(f"Unknown config sections: {', '.join(unknown)}")

    return MatchingConfig(
        assignment=_build(AssignmentOptions, "assignment", raw.get("assignment")),
        sweep=_build(SweepConfig, "sweep", raw.get("sweep")),
        nearby=_build(NearbyConfig, "nearby", raw.get("nearby")),
    )
