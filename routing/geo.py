"""
Purpose: Great-circle math and coordinate validation.
What it does:
- Defines Coordinate (lat, lng in degrees) and the only ways to build one
  from untrusted input (parse / coordinate_or_none).
- distance_km: haversine distance on a spherical Earth.

Rule: pure functions only. No state, no I/O.
Absent coordinates are None, never (0, 0). Callers filter them out before
asking for a distance.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional

EARTH_RADIUS_KM = 6371.0


class InvalidCoordinate(ValueError):
    """Raised when a latitude/longitude pair is missing, non-finite or out of range."""
    code = "invalid_coordinate"


def _as_degrees(value: Any, name: str) -> float:
    # bool is an int subclass; "true" is not a latitude
    if value is None or isinstance(value, bool):
        raise InvalidCoordinate(f"{name} is required")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidCoordinate(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(number):
        raise InvalidCoordinate(f"{name} must be finite, got {value!r}")
    return number


@dataclass(frozen=True)
class Coordinate:
    """
    A validated (lat, lng) pair in degrees.
    latitude in [-90, 90], longitude in [-180, 180].
    """
    lat: float
    lng: float

    @classmethod
    def parse(cls, lat: Any, lng: Any) -> Coordinate:
        latitude = _as_degrees(lat, "lat")
        longitude = _as_degrees(lng, "lng")

        if not -90.0 <= latitude <= 90.0:
            raise InvalidCoordinate(f"lat must be within [-90, 90], got {latitude}")
        if not -180.0 <= longitude <= 180.0:
            raise InvalidCoordinate(f"lng must be within [-180, 180], got {longitude}")

        return cls(lat=latitude, lng=longitude)

    def to_tuple(self) -> tuple:
        return (self.lat, self.lng)

    def to_wire(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}


def coordinate_or_none(lat: Any, lng: Any) -> Optional[Coordinate]:
    """
    Lenient variant of Coordinate.parse for persisted rows:
    anything missing or invalid becomes "absent" (None).
    """
    try:
        return Coordinate.parse(lat, lng)
    except InvalidCoordinate:
        return None


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """
    Haversine great-circle distance in kilometres.

    Symmetric, and distance_km(a, a) == 0.0.
    Both arguments must be real coordinates; filtering absent ones is the caller's job.
    """
    lat1, lng1 = math.radians(a.lat), math.radians(a.lng)
    lat2, lng2 = math.radians(b.lat), math.radians(b.lng)

    dlat = lat2 - lat1
    dlng = lng2 - lng1

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    # float error can push h a hair past 1.0 for antipodal points
    h = min(1.0, max(0.0, h))

    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))
