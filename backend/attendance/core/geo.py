"""Geofence Verification — haversine great-circle distance against an allowed radius.

Invariants:
    - verify() is PURE: no state, no IO, deterministic for the same inputs
    - Coordinates are degrees; arithmetic in Python float (IEEE 754 double)
    - EARTH_RADIUS_M (6,371,000 m) is single source of truth for the sphere
    - Boundary is inclusive: distance == radius counts as inside

Design Decisions:
    - Plain haversine, no antimeridian or pole handling: geofences are local-scale
      (sub-kilometer)
    - Location-source failures (permission, unavailable, timeout) are not produced here;
      they arrive from the client as LocationErrorKind and bypass this module
"""

import math
from dataclasses import dataclass


EARTH_RADIUS_M: float = 6_371_000.0


@dataclass(frozen=True)
class Coordinate:
    """A (latitude, longitude) pair in degrees."""
    latitude: float
    longitude: float


@dataclass(frozen=True)
class GeoVerdict:
    within_radius: bool
    distance_meters: float

    @property
    def rounded_distance(self) -> int:
        """Distance in whole meters, for display only."""
        return round(self.distance_meters)


def haversine_meters(origin: Coordinate, target: Coordinate) -> float:
    """Great-circle distance between two coordinates, in meters."""
    lat1 = math.radians(origin.latitude)
    lat2 = math.radians(target.latitude)
    dlat = math.radians(target.latitude - origin.latitude)
    dlon = math.radians(target.longitude - origin.longitude)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    )
    c = 2 * math.asin(math.sqrt(min(1.0, a)))
    return EARTH_RADIUS_M * c


def verify(
    origin: Coordinate, target: Coordinate, radius_meters: float,
) -> GeoVerdict:
    """Check whether origin lies within radius_meters of target."""
    if not radius_meters > 0:
        raise ValueError(f"radius_meters must be > 0, got {radius_meters}")
    distance = haversine_meters(origin, target)
    return GeoVerdict(
        within_radius=distance <= radius_meters,
        distance_meters=distance,
    )
