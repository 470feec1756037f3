"""Domain Types — the stable, caller-facing code enums and display states.

Invariants:
    - Every caller-facing result is a member of one of the code enums below
    - Enum values are the wire values (serialized verbatim in API responses)

Design Decisions:
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum


# ─── Result Codes ────────────────────────────────────────────────

class RegistrationCode(str, Enum):
    """Coordinator result codes."""
    OK = "OK"
    ACT_NOT_FOUND = "ACT_NOT_FOUND"
    FORM_CLOSED = "FORM_CLOSED"
    FULL = "FULL"
    ALREADY_REGISTERED = "ALREADY_REGISTERED"
    SINGLE_USER_TAKEN = "SINGLE_USER_TAKEN"


class SessionCode(str, Enum):
    """Session manager result codes."""
    VALID = "VALID"
    NO_SESSION = "NO_SESSION"
    EXPIRED = "EXPIRED"
    BLOCKED_BY_COOLDOWN = "BLOCKED_BY_COOLDOWN"


class LocationErrorKind(str, Enum):
    """Errors produced by the client's location source, passed through unmodified."""
    PERMISSION_DENIED = "PERMISSION_DENIED"
    POSITION_UNAVAILABLE = "POSITION_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"


class GeofenceCode(str, Enum):
    """Geofence gate result."""
    WITHIN_RADIUS = "WITHIN_RADIUS"
    OUT_OF_RADIUS = "OUT_OF_RADIUS"


# ─── States ──────────────────────────────────────────────────────

class SessionState(str, Enum):
    """Per-identity session lifecycle. EXPIRED is derived at read time."""
    NONE = "none"
    ACTIVE = "active"
    EXPIRED = "expired"
    DESTROYED = "destroyed"


class ActivityStatus(str, Enum):
    """Display status of an activity window, in precedence order."""
    INACTIVE = "inactive"
    UPCOMING = "upcoming"
    ENDED = "ended"
    FULL = "full"
    ACTIVE = "active"


class CheckInStage(str, Enum):
    """Where in the check-in pipeline a result was decided."""
    LOCATION = "location"
    GEOFENCE = "geofence"
    SESSION = "session"
    REGISTRATION = "registration"
