"""ActivityWindow ORM — the geofenced, time-boxed activity a participant checks into.

Invariants:
    - id is the activity code (string primary key, supplied by the admin collaborator)
    - 0 <= current_count <= capacity whenever capacity > 0 (capacity 0 = unlimited)
    - current_count is written ONLY by the registration transaction
    - version is bumped on every UPDATE; a stale version aborts the flush (StaleDataError)

Design Decisions:
    - version_id_col gives optimistic concurrency on the counter: two check-ins that
      read the same snapshot cannot both increment it
    - Geofence center stored as two Float columns (double precision on PostgreSQL)
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from attendance.db.base import Base


class ActivityWindow(Base):
    """Activity metadata plus the denormalized participant counter."""
    __tablename__ = "activity_windows"
    __table_args__ = (
        CheckConstraint("current_count >= 0", name="ck_activity_windows_count_nonnegative"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    latitude: Mapped[float] = mapped_column(Float(precision=53), nullable=False)
    longitude: Mapped[float] = mapped_column(Float(precision=53), nullable=False)
    radius_meters: Mapped[float] = mapped_column(Float, nullable=False)
    opens_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    closes_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    exclusive: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __mapper_args__ = {"version_id_col": version}
