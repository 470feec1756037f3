"""ExclusivityClaim ORM — single-winner lock for activities in single-claimant mode.

Invariants:
    - Primary key activity_id: at most one claimant ever recorded per activity
    - Only written for activities with exclusive == True
    - Never overwritten: a repeat from the same handle is a no-op, a different handle is
      rejected (SINGLE_USER_TAKEN)
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from attendance.db.base import Base


class ExclusivityClaim(Base):
    __tablename__ = "exclusivity_claims"

    activity_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("activity_windows.id", ondelete="CASCADE"),
        primary_key=True,
    )
    claimant_handle: Mapped[str] = mapped_column(String(320), nullable=False)
    claimed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
