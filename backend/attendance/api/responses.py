"""Outcome → HTTP Mapping — status codes and response bodies for typed outcomes.

Invariants:
    - Every SessionCode, RegistrationCode, GeofenceCode and LocationErrorKind has a status
    - Rejections are 4xx with the same body shape as successes (stage, code, message)

Design Decisions:
    - 409 for state conflicts the user cannot fix by retrying immediately (closed, full,
      duplicate, claimed); 401 for session problems so clients re-authenticate
"""

from fastapi import status

from attendance.core.domain_types import (
    GeofenceCode,
    LocationErrorKind,
    RegistrationCode,
    SessionCode,
)
from attendance.core.format_messages import describe
from attendance.core.outcomes import CheckInOutcome, SessionOutcome
from attendance.core.session_rules import format_remaining_time
from attendance.schemas.check_in import CheckInResponse
from attendance.schemas.session import SessionResponse

SESSION_HTTP_STATUS: dict[SessionCode, int] = {
    SessionCode.VALID: status.HTTP_200_OK,
    SessionCode.NO_SESSION: status.HTTP_401_UNAUTHORIZED,
    SessionCode.EXPIRED: status.HTTP_401_UNAUTHORIZED,
    SessionCode.BLOCKED_BY_COOLDOWN: status.HTTP_429_TOO_MANY_REQUESTS,
}

CHECK_IN_HTTP_STATUS: dict = {
    RegistrationCode.OK: status.HTTP_201_CREATED,
    RegistrationCode.ACT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    RegistrationCode.FORM_CLOSED: status.HTTP_409_CONFLICT,
    RegistrationCode.FULL: status.HTTP_409_CONFLICT,
    RegistrationCode.ALREADY_REGISTERED: status.HTTP_409_CONFLICT,
    RegistrationCode.SINGLE_USER_TAKEN: status.HTTP_409_CONFLICT,
    GeofenceCode.OUT_OF_RADIUS: status.HTTP_403_FORBIDDEN,
    LocationErrorKind.PERMISSION_DENIED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    LocationErrorKind.POSITION_UNAVAILABLE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    LocationErrorKind.TIMEOUT: status.HTTP_422_UNPROCESSABLE_ENTITY,
    **SESSION_HTTP_STATUS,
}


def session_response(
    outcome: SessionOutcome, *, throttled: bool = False,
) -> SessionResponse:
    remaining = outcome.remaining_minutes
    return SessionResponse(
        identity_id=outcome.identity_id,
        code=outcome.code,
        state=outcome.state,
        message=describe(
            outcome.code,
            remaining_minutes=remaining,
            wait_minutes=outcome.wait_minutes,
        ),
        remaining_minutes=remaining,
        remaining_text=format_remaining_time(remaining) if remaining is not None else None,
        expires_at=outcome.expires_at,
        wait_minutes=outcome.wait_minutes,
        near_expiry=outcome.near_expiry,
        degraded=outcome.degraded,
        throttled=throttled,
    )


def check_in_response(
    outcome: CheckInOutcome, activity_id: str, identity_id: str,
) -> CheckInResponse:
    registration = outcome.registration
    session = outcome.session
    return CheckInResponse(
        stage=outcome.stage,
        code=outcome.code.value,
        message=outcome.message,
        activity_id=activity_id,
        identity_id=identity_id,
        distance_meters=outcome.distance_meters,
        current_count=registration.current_count if registration else None,
        submitted_at=registration.submitted_at if registration else None,
        remaining_minutes=session.remaining_minutes if session else None,
    )
