"""Session Schemas — login request and session status responses.

Invariants:
    - identity_id and handle are stripped and non-empty
    - SessionResponse always carries code + message; numeric fields only where meaningful
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from attendance.core.domain_types import SessionCode, SessionState


class SessionCreate(BaseModel):
    """Login — the identity was authenticated upstream; this opens its session."""
    identity_id: str = Field(min_length=1, max_length=128)
    handle: str = Field(min_length=1, max_length=320)

    @field_validator("identity_id", "handle")
    @classmethod
    def strip_value(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("value cannot be empty or whitespace")
        return v


class SessionResponse(BaseModel):
    identity_id: str
    code: SessionCode
    state: SessionState
    message: str
    remaining_minutes: int | None = None
    remaining_text: str | None = None
    expires_at: datetime | None = None
    wait_minutes: int | None = None
    near_expiry: bool = False
    degraded: bool = False
    throttled: bool = False
