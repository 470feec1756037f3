"""Check-in Schemas — the check-in request and its typed response.

Invariants:
    - A request carries EITHER a location fix OR a location-source error kind, never both
    - CheckInResponse.code is one of the stable caller-facing codes
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from attendance.core.domain_types import CheckInStage, LocationErrorKind
from attendance.schemas.location import LocationFix


class CheckInRequest(BaseModel):
    identity_id: str = Field(min_length=1, max_length=128)
    handle: str = Field(min_length=1, max_length=320)
    location: LocationFix | None = None
    location_error: LocationErrorKind | None = None

    @field_validator("identity_id", "handle")
    @classmethod
    def strip_value(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("value cannot be empty or whitespace")
        return v

    @model_validator(mode="after")
    def validate_location_fields(self):
        if (self.location is None) == (self.location_error is None):
            raise ValueError("provide exactly one of location or location_error")
        return self


class CheckInResponse(BaseModel):
    stage: CheckInStage
    code: str
    message: str
    activity_id: str
    identity_id: str
    distance_meters: int | None = None
    current_count: int | None = None
    submitted_at: datetime | None = None
    remaining_minutes: int | None = None
