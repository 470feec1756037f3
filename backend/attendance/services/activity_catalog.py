"""Activity Catalog — admin-side reads and writes of activity metadata and read-back.

Invariants:
    - get() returns a detached snapshot; callers cannot mutate the stored row through it
    - save() never writes current_count of an existing activity: the counter belongs
      to the registration transaction
    - New activities start with current_count == 0
    - save() rejects a non-zero capacity below the stored current_count with
      CapacityConflictError and writes nothing; capacity 0 (unlimited) is always accepted

Design Decisions:
    - Same TransactionRunner as the coordinator: metadata edits conflict-check against
      concurrent check-ins through the version column instead of overwriting the counter
    - count_registrations() is a live count of records, exposed so drift between it and
      the denormalized counter can be observed (deletions are not decremented here)
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from attendance.core.errors import CapacityConflictError
from attendance.core.timekeeping import ensure_utc
from attendance.infrastructure.transaction_runner import TransactionRunner
from attendance.models.activity_window import ActivityWindow
from attendance.models.registration_record import RegistrationRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActivitySnapshot:
    """Detached copy of an ActivityWindow row (satisfies ActivityLike)."""
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

    @classmethod
    def from_row(cls, row: ActivityWindow) -> "ActivitySnapshot":
        return cls(
            id=row.id,
            title=row.title,
            latitude=row.latitude,
            longitude=row.longitude,
            radius_meters=row.radius_meters,
            opens_at=ensure_utc(row.opens_at),
            closes_at=ensure_utc(row.closes_at),
            active=row.active,
            capacity=row.capacity,
            current_count=row.current_count,
            exclusive=row.exclusive,
        )


@dataclass(frozen=True)
class RegistrationView:
    activity_id: str
    identity_id: str
    requester_handle: str
    latitude: float
    longitude: float
    submitted_at: datetime


class SqlActivityCatalog:
    """ActivityCatalog backed by the activity_windows table."""

    def __init__(self, runner: TransactionRunner):
        self._runner = runner

    async def get(self, activity_id: str) -> ActivitySnapshot | None:
        async def work(db: AsyncSession) -> ActivitySnapshot | None:
            row = await db.get(ActivityWindow, activity_id)
            return ActivitySnapshot.from_row(row) if row else None

        return await self._runner.run(work)

    async def save(
        self,
        activity_id: str,
        *,
        title: str,
        latitude: float,
        longitude: float,
        radius_meters: float,
        opens_at: datetime,
        closes_at: datetime,
        active: bool,
        capacity: int,
        exclusive: bool,
    ) -> tuple[ActivitySnapshot, bool]:
        """Create or update activity metadata. Returns (snapshot, created)."""
        async def work(db: AsyncSession) -> tuple[ActivitySnapshot, bool]:
            row = await db.get(ActivityWindow, activity_id)
            created = row is None
            if created:
                row = ActivityWindow(id=activity_id, current_count=0)
                db.add(row)
            elif 0 < capacity < row.current_count:
                raise CapacityConflictError(activity_id, capacity, row.current_count)
            row.title = title
            row.latitude = latitude
            row.longitude = longitude
            row.radius_meters = radius_meters
            row.opens_at = opens_at
            row.closes_at = closes_at
            row.active = active
            row.capacity = capacity
            row.exclusive = exclusive
            await db.flush()
            return ActivitySnapshot.from_row(row), created

        snapshot, created = await self._runner.run(work)
        logger.info(
            f"Activity {'created' if created else 'updated'}",
            extra={"activity_id": activity_id},
        )
        return snapshot, created

    async def list_registrations(
        self, activity_id: str, limit: int = 100, offset: int = 0,
    ) -> list[RegistrationView]:
        async def work(db: AsyncSession) -> list[RegistrationView]:
            result = await db.execute(
                select(RegistrationRecord)
                .where(RegistrationRecord.activity_id == activity_id)
                .order_by(RegistrationRecord.submitted_at)
                .limit(limit)
                .offset(offset),
            )
            return [
                RegistrationView(
                    activity_id=r.activity_id,
                    identity_id=r.identity_id,
                    requester_handle=r.requester_handle,
                    latitude=r.latitude,
                    longitude=r.longitude,
                    submitted_at=ensure_utc(r.submitted_at),
                )
                for r in result.scalars().all()
            ]

        return await self._runner.run(work)

    async def count_registrations(self, activity_id: str) -> int:
        async def work(db: AsyncSession) -> int:
            result = await db.execute(
                select(func.count())
                .select_from(RegistrationRecord)
                .where(RegistrationRecord.activity_id == activity_id),
            )
            return int(result.scalar_one())

        return await self._runner.run(work)
