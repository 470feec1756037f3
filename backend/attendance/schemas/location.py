"""Location Schemas — a client-reported position fix.

Invariants:
    - latitude in [-90, 90], longitude in [-180, 180], degrees
    - accuracy (meters) is informational only and never widens the geofence
"""

from pydantic import BaseModel, Field

from attendance.core.geo import Coordinate


class LocationFix(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy: float | None = Field(None, ge=0)

    def to_coordinate(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)
