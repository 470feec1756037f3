"""Session Rules — pure expiry, cool-down and throttle arithmetic for the session lifecycle.

Invariants:
    - A session is EXPIRED for any now >= expires_at
    - remaining_minutes = ceil((expires_at - now) / 60s), always >= 1 while unexpired
    - Cool-down blocks a DIFFERENT identity only; the occupying identity may always re-login
    - Fixed-duration sessions: only an explicit extension moves expires_at
    - TouchThrottle is the only stateful object here (in-memory, per process)

Design Decisions:
    - Time is always an argument: the shell owns the clock
    - TouchThrottle lives here rather than in services/: it is caller-side bookkeeping,
      no IO
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from attendance.core.timekeeping import ceil_minutes, ensure_utc

SESSION_TTL = timedelta(minutes=30)
NETWORK_COOLDOWN = timedelta(minutes=30)
NEAR_EXPIRY_MINUTES = 5


def compute_expiry(now: datetime, ttl: timedelta = SESSION_TTL) -> datetime:
    return now + ttl


def is_expired(expires_at: datetime, now: datetime) -> bool:
    return now >= ensure_utc(expires_at)


def remaining_minutes(expires_at: datetime, now: datetime) -> int:
    return ceil_minutes(ensure_utc(expires_at) - now)


def is_near_expiry(
    remaining: int, warning_threshold: int = NEAR_EXPIRY_MINUTES,
) -> bool:
    return 0 < remaining <= warning_threshold


def cooldown_wait_minutes(
    occupant_identity: str | None,
    blocked_until: datetime | None,
    identity_id: str,
    now: datetime,
) -> int | None:
    """Minutes identity_id must wait before using an occupied address, or None if free."""
    if occupant_identity is None or blocked_until is None:
        return None
    if occupant_identity == identity_id:
        return None
    until = ensure_utc(blocked_until)
    if now >= until:
        return None
    return ceil_minutes(until - now)


def format_remaining_time(minutes: int) -> str:
    """Human-readable remaining time: '0 minutes', '45 minutes', '1 hour 5 minutes'."""
    if minutes <= 0:
        return "0 minutes"
    if minutes >= 60:
        hours, mins = divmod(minutes, 60)
        hour_label = "hour" if hours == 1 else "hours"
        minute_label = "minute" if mins == 1 else "minutes"
        return f"{hours} {hour_label} {mins} {minute_label}"
    return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"


@dataclass
class TouchThrottle:
    """Allows at most one activity touch per identity per interval."""
    interval: timedelta = timedelta(seconds=60)
    _last_touch: dict[str, datetime] = field(default_factory=dict)

    def should_touch(self, identity_id: str, now: datetime) -> bool:
        """True (and records now) if the identity is due for a touch."""
        last = self._last_touch.get(identity_id)
        if last is not None and now - last < self.interval:
            return False
        self._last_touch[identity_id] = now
        return True

    def forget(self, identity_id: str) -> None:
        self._last_touch.pop(identity_id, None)
