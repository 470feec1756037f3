"""Outcome Messages — one human-readable message per caller-facing code.

Invariants:
    - Mapping is TOTAL: every member of RegistrationCode, SessionCode, LocationErrorKind
      and GeofenceCode has exactly one template (tests/core/test_format_messages.py)
    - Templates take only named parameters supplied by the caller (wait_minutes, ...)
    - Pure: no IO, no clock

Design Decisions:
    - One dict per enum instead of one big dict: a new enum member shows up as a missing
      key in exactly one place
    - Location messages give kind-specific guidance (grant permission / move outdoors /
      retry) instead of a generic failure
"""

from attendance.core.domain_types import (
    GeofenceCode,
    LocationErrorKind,
    RegistrationCode,
    SessionCode,
)
from attendance.core.outcomes import CheckInCode
from attendance.core.session_rules import format_remaining_time


REGISTRATION_MESSAGES: dict[RegistrationCode, str] = {
    RegistrationCode.OK: "Check-in recorded. You are registered for this activity.",
    RegistrationCode.ACT_NOT_FOUND: "This activity does not exist or has been removed.",
    RegistrationCode.FORM_CLOSED: "Registration for this activity is not open right now.",
    RegistrationCode.FULL: "This activity has reached its participant limit.",
    RegistrationCode.ALREADY_REGISTERED: "This account has already registered for this activity.",
    RegistrationCode.SINGLE_USER_TAKEN: (
        "This activity accepts a single registrant and another user has already claimed it."
    ),
}

SESSION_MESSAGES: dict[SessionCode, str] = {
    SessionCode.VALID: "Session active ({remaining} left).",
    SessionCode.NO_SESSION: "No login session found. Please sign in again.",
    SessionCode.EXPIRED: "Your session has expired. Please sign in again.",
    SessionCode.BLOCKED_BY_COOLDOWN: (
        "This network was recently used to sign in with a different account. "
        "Please wait {wait_minutes} minute(s) and try again."
    ),
}

LOCATION_ERROR_MESSAGES: dict[LocationErrorKind, str] = {
    LocationErrorKind.PERMISSION_DENIED: (
        "Location access was denied. Allow location access to confirm you are at the activity."
    ),
    LocationErrorKind.POSITION_UNAVAILABLE: (
        "Your position could not be determined. Move to an open area and try again."
    ),
    LocationErrorKind.TIMEOUT: "Locating your device took too long. Please try again.",
}

GEOFENCE_MESSAGES: dict[GeofenceCode, str] = {
    GeofenceCode.WITHIN_RADIUS: "You are inside the activity area ({distance} m from the center).",
    GeofenceCode.OUT_OF_RADIUS: (
        "You are {distance} m from the activity; check-in is allowed within {radius} m."
    ),
}

_TABLES: tuple[dict, ...] = (
    REGISTRATION_MESSAGES,
    SESSION_MESSAGES,
    LOCATION_ERROR_MESSAGES,
    GEOFENCE_MESSAGES,
)


def describe(code: CheckInCode, **params: object) -> str:
    """Render the message for any caller-facing code."""
    for table in _TABLES:
        if code in table:
            template = table[code]
            break
    else:
        raise KeyError(f"No message for code {code!r}")
    if code == SessionCode.VALID:
        params.setdefault(
            "remaining", format_remaining_time(int(params.get("remaining_minutes") or 0)),
        )
    return template.format(**params)
