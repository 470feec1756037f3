"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - ORM models satisfy these protocols structurally (no inheritance)

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - ActivityCatalog is async because implementations do IO; core functions that
      consume ActivityLike stay sync and pure
"""

from datetime import datetime
from typing import Protocol


class ActivityLike(Protocol):
    """Structural contract for an activity window (ORM row or snapshot)."""
    id: str
    latitude: float
    longitude: float
    radius_meters: float
    opens_at: datetime
    closes_at: datetime
    active: bool
    capacity: int
    current_count: int
    exclusive: bool


class ActivityCatalog(Protocol):
    """Supplies activity metadata to the check-in flow — implemented by shell."""
    async def get(self, activity_id: str) -> ActivityLike | None: ...
