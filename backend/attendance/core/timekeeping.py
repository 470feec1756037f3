"""Timekeeping — UTC clock and normalization of stored timestamps.

Invariants:
    - Every datetime compared in core/ is timezone-aware UTC
    - Clock is a plain callable so services can be driven by a fake in tests

Design Decisions:
    - ensure_utc() treats naive values as UTC: SQLite drops tzinfo on read,
      PostgreSQL does not
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def ceil_minutes(delta: timedelta) -> int:
    """Whole minutes, rounded up. Non-positive deltas give 0."""
    seconds = delta.total_seconds()
    if seconds <= 0:
        return 0
    return math.ceil(seconds / 60)
