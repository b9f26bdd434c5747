"""Geographic distance functions.

Straight-line distances use the haversine great-circle formula on a
spherical Earth. Road distances are a fixed-factor estimate on top of the
straight-line distance; there is no road network lookup.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from src.routing.errors import InputError

EARTH_RADIUS_KM = 6371.0
ROAD_DISTANCE_FACTOR = 1.3  # urban average of road vs. straight-line travel


@dataclass(frozen=True)
class Coordinate:
    """A point on Earth in decimal degrees.

    Attributes:
        lat: Latitude, -90 to 90.
        lng: Longitude, -180 to 180.
    """

    lat: float
    lng: float

    def __post_init__(self) -> None:
        for name in ("lat", "lng"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InputError(f"Coordinate {name} must be numeric, got {value!r}")
            if math.isnan(value):
                raise InputError(f"Coordinate {name} is NaN")
        if not -90.0 <= self.lat <= 90.0:
            raise InputError(f"Latitude {self.lat} out of range [-90, 90]")
        if not -180.0 <= self.lng <= 180.0:
            raise InputError(f"Longitude {self.lng} out of range [-180, 180]")

    @classmethod
    def from_mapping(cls, raw: dict) -> Coordinate:
        """Build from a ``{"lat": ..., "lng": ...}`` mapping."""
        try:
            return cls(lat=raw["lat"], lng=raw["lng"])
        except (KeyError, TypeError) as exc:
            raise InputError(f"Malformed coordinate {raw!r}") from exc


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two coordinates in kilometers."""
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def road_distance_estimate(straight_line_km: float) -> float:
    """Estimate road travel distance from a straight-line distance."""
    if straight_line_km < 0:
        raise InputError(f"Distance must be non-negative, got {straight_line_km}")
    return straight_line_km * ROAD_DISTANCE_FACTOR
