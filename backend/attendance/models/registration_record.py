"""RegistrationRecord ORM — one attendance record per identity per activity.

Invariants:
    - Composite primary key (activity_id, identity_id): a second insert for the same pair
      raises IntegrityError, which the transaction runner treats as a conflict
    - Created exactly once; never updated or deleted by the check-in engine
    - submitted_at is assigned by the server inside the transaction

Design Decisions:
    - Deterministic key instead of a surrogate id: duplicate prevention is enforced by
      the database, not by a read-then-write check alone
"""

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from attendance.db.base import Base


class RegistrationRecord(Base):
    """Attendance record keyed by (activity_id, identity_id)."""
    __tablename__ = "registration_records"
    __table_args__ = (
        Index("ix_registration_records_activity_submitted", "activity_id", "submitted_at"),
    )

    activity_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("activity_windows.id", ondelete="CASCADE"),
        primary_key=True,
    )
    identity_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    requester_handle: Mapped[str] = mapped_column(String(320), nullable=False)
    latitude: Mapped[float] = mapped_column(Float(precision=53), nullable=False)
    longitude: Mapped[float] = mapped_column(Float(precision=53), nullable=False)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
