"""Activity Schemas — admin upsert of activity metadata and read-back views.

Invariants:
    - radius_meters > 0, capacity >= 0 (0 = unlimited), closes_at >= opens_at
    - current_count is read-only: never accepted from a client
    - Naive datetimes are interpreted as UTC
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from attendance.core.domain_types import ActivityStatus
from attendance.core.timekeeping import ensure_utc


class ActivityUpsert(BaseModel):
    title: str = Field("", max_length=200)
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    radius_meters: float = Field(gt=0, le=100_000)
    opens_at: datetime
    closes_at: datetime
    active: bool = True
    capacity: int = Field(0, ge=0)
    exclusive: bool = False

    @field_validator("opens_at", "closes_at")
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode="after")
    def validate_window(self):
        if self.closes_at < self.opens_at:
            raise ValueError("closes_at must not be before opens_at")
        return self


class ActivityResponse(BaseModel):
    id: str
    title: str
    latitude: float
    longitude: float
    radius_meters: float
    opens_at: datetime
    closes_at: datetime
    active: bool
    capacity: int
    current_count: int
    exclusive: bool
    status: ActivityStatus
    registration_count: int | None = None


class RegistrationItem(BaseModel):
    activity_id: str
    identity_id: str
    requester_handle: str
    latitude: float
    longitude: float
    submitted_at: datetime


class RegistrationList(BaseModel):
    activity_id: str
    registrations: list[RegistrationItem]
    limit: int
    offset: int
