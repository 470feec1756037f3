"""LoginSession ORM — the one session an identity may hold.

Invariants:
    - Primary key identity_id: exactly one session per identity, a new login overwrites
    - expires_at is fixed at creation; only an explicit extension moves it
    - last_activity moves on touch/validate and never affects expiry
    - Rows are deleted (not flagged) on logout or observed expiry
    - version is bumped on every UPDATE so concurrent touch/extend/login writes on the
      same identity conflict instead of overwriting each other

Design Decisions:
    - `active` kept as a column for read-back consumers even though absence of the row
      is what the session manager checks
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from attendance.db.base import Base


class LoginSession(Base):
    """Session record keyed by identity."""
    __tablename__ = "login_sessions"

    identity_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    handle: Mapped[str] = mapped_column(String(320), nullable=False)
    network_address: Mapped[str] = mapped_column(String(64), nullable=False)
    login_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    last_activity: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
