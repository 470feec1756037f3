"""Typed Outcomes — the values every check-in and session operation returns.

Invariants:
    - Rejections are values, not exceptions: call sites branch on .code
    - Outcomes are immutable (frozen dataclasses)
    - RegistrationOutcome.code == OK iff a RegistrationRecord was committed

Design Decisions:
    - One outcome type per component; CheckInOutcome wraps whichever stage decided
"""

from dataclasses import dataclass
from datetime import datetime

from attendance.core.domain_types import (
    CheckInStage,
    GeofenceCode,
    LocationErrorKind,
    RegistrationCode,
    SessionCode,
    SessionState,
)


@dataclass(frozen=True)
class RegistrationOutcome:
    code: RegistrationCode
    activity_id: str
    identity_id: str
    current_count: int | None = None
    submitted_at: datetime | None = None

    @property
    def ok(self) -> bool:
        return self.code == RegistrationCode.OK


@dataclass(frozen=True)
class SessionOutcome:
    """Result of a session operation.

    remaining_minutes is set for VALID, wait_minutes for BLOCKED_BY_COOLDOWN.
    degraded marks a VALID that was assumed because the store could not be read.
    """
    code: SessionCode
    identity_id: str
    state: SessionState
    remaining_minutes: int | None = None
    expires_at: datetime | None = None
    wait_minutes: int | None = None
    near_expiry: bool = False
    degraded: bool = False

    @property
    def valid(self) -> bool:
        return self.code == SessionCode.VALID


CheckInCode = RegistrationCode | SessionCode | LocationErrorKind | GeofenceCode


@dataclass(frozen=True)
class CheckInOutcome:
    stage: CheckInStage
    code: CheckInCode
    message: str
    distance_meters: int | None = None
    registration: RegistrationOutcome | None = None
    session: SessionOutcome | None = None

    @property
    def ok(self) -> bool:
        return self.code == RegistrationCode.OK
