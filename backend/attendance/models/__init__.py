"""ORM Models — SQLAlchemy declarative models for all persisted entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - ActivityWindow is the transactional subject of a check-in; RegistrationRecord and
      ExclusivityClaim hang off it by activity_id

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all/autogenerate
"""

from attendance.models.activity_window import ActivityWindow  # noqa: F401
from attendance.models.registration_record import RegistrationRecord  # noqa: F401
from attendance.models.exclusivity_claim import ExclusivityClaim  # noqa: F401
from attendance.models.login_session import LoginSession  # noqa: F401
from attendance.models.network_cooldown import NetworkCooldown  # noqa: F401
