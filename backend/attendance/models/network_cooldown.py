"""NetworkCooldown ORM — time-windowed map from network address to its occupying identity.

Invariants:
    - Primary key network_address: one occupant per address, looked up by key
      (no scan over sessions)
    - A different identity may not create a session from the address while
      now < blocked_until
    - Rewritten on every successful login from the address
    - version is bumped on every UPDATE: two logins that read the same lapsed occupant
      cannot both claim the address (the second flush raises StaleDataError and retries)
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from attendance.db.base import Base


class NetworkCooldown(Base):
    __tablename__ = "network_cooldowns"

    network_address: Mapped[str] = mapped_column(String(64), primary_key=True)
    identity_id: Mapped[str] = mapped_column(String(128), nullable=False)
    claimed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    blocked_until: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
