"""Registration Enforcement — pure gate checks evaluated inside the check-in transaction.

Invariants:
    - Every function is PURE: returns a rejection code (or None), never mutates
    - Gate order is fixed: window → capacity → duplicate → exclusivity
    - The shell (RegistrationCoordinator) performs reads and writes; this module decides
    - capacity == 0 means unlimited

Design Decisions:
    - Separate from the coordinator so the rules are testable without a database
    - activity_status() mirrors the registration gates for display, with the same
      precedence, so a banner never says "open" when register() would reject
"""

from datetime import datetime

from attendance.core.domain_types import ActivityStatus, RegistrationCode
from attendance.core.repository_protocols import ActivityLike
from attendance.core.timekeeping import ensure_utc


def is_window_open(activity: ActivityLike, now: datetime) -> bool:
    """active && opens_at <= now <= closes_at."""
    if not activity.active:
        return False
    opens_at = ensure_utc(activity.opens_at)
    closes_at = ensure_utc(activity.closes_at)
    return opens_at <= now <= closes_at


def is_full(activity: ActivityLike) -> bool:
    return activity.capacity > 0 and activity.current_count >= activity.capacity


def check_activity_gates(
    activity: ActivityLike | None, now: datetime,
) -> RegistrationCode | None:
    """Steps 1-3: existence, open window, capacity."""
    if activity is None:
        return RegistrationCode.ACT_NOT_FOUND
    if not is_window_open(activity, now):
        return RegistrationCode.FORM_CLOSED
    if is_full(activity):
        return RegistrationCode.FULL
    return None


def check_duplicate(already_registered: bool) -> RegistrationCode | None:
    """Step 4: one registration per identity per activity."""
    if already_registered:
        return RegistrationCode.ALREADY_REGISTERED
    return None


def check_exclusivity(
    exclusive: bool, claimant_handle: str | None, requester_handle: str,
) -> RegistrationCode | None:
    """Step 5: single-claimant activities accept only the first claimant's handle.

    claimant_handle is None when no claim exists yet.
    """
    if not exclusive or claimant_handle is None:
        return None
    if claimant_handle != requester_handle:
        return RegistrationCode.SINGLE_USER_TAKEN
    return None


def needs_claim_write(exclusive: bool, claimant_handle: str | None) -> bool:
    """A claim is written only once per activity; same-handle repeats are no-ops."""
    return exclusive and claimant_handle is None


def activity_status(activity: ActivityLike, now: datetime) -> ActivityStatus:
    """Display status for an activity window."""
    if not activity.active:
        return ActivityStatus.INACTIVE
    if now < ensure_utc(activity.opens_at):
        return ActivityStatus.UPCOMING
    if now > ensure_utc(activity.closes_at):
        return ActivityStatus.ENDED
    if is_full(activity):
        return ActivityStatus.FULL
    return ActivityStatus.ACTIVE
