"""Registration Coordinator — turns a verified location into one durable attendance record.

Invariants:
    - Steps 1-8 run inside ONE transaction attempt; any rejection writes nothing
    - On success exactly one RegistrationRecord insert, at most one ExclusivityClaim insert,
      and one current_count increment commit together
    - _attempt() is safe to re-execute from step 1: all state it produces lives in the
      session, which is discarded on conflict
    - Concurrent races are decided by the store (version column, primary keys), never by
      an in-process lock
    - Preconditions enforced by the caller: valid session, location inside the geofence

Design Decisions:
    - Gate rules live in core/enforce_registration.py (pure); this module only reads,
      writes, and sequences them
    - Counter increments here but deletions are owned elsewhere and do not decrement in
      the same transaction (see DESIGN.md, counter drift)
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from attendance.core.domain_types import RegistrationCode
from attendance.core.enforce_registration import (
    check_activity_gates,
    check_duplicate,
    check_exclusivity,
    needs_claim_write,
)
from attendance.core.errors import ErrorContext
from attendance.core.geo import Coordinate
from attendance.core.outcomes import RegistrationOutcome
from attendance.core.timekeeping import Clock, utc_now
from attendance.infrastructure.transaction_runner import TransactionRunner
from attendance.models.activity_window import ActivityWindow
from attendance.models.exclusivity_claim import ExclusivityClaim
from attendance.models.registration_record import RegistrationRecord

logger = logging.getLogger(__name__)


class RegistrationCoordinator:
    """Atomic check-in transaction over activity, claim, and registration records."""

    def __init__(self, runner: TransactionRunner, clock: Clock = utc_now):
        self._runner = runner
        self._clock = clock

    async def register(
        self,
        activity_id: str,
        identity_id: str,
        location: Coordinate,
        requester_handle: str,
    ) -> RegistrationOutcome:
        """Register identity_id for activity_id. Returns a typed outcome, never raises
        for rejections (only for exhausted retries or store failures)."""

        async def work(db: AsyncSession) -> RegistrationOutcome:
            return await self._attempt(
                db, activity_id, identity_id, location, requester_handle,
            )

        outcome = await self._runner.run(
            work,
            ErrorContext(activity_id=activity_id, identity_id=identity_id),
        )
        log = logger.info if outcome.ok else logger.warning
        log(
            f"Registration {outcome.code.value}",
            extra={
                "activity_id": activity_id,
                "identity_id": identity_id,
                "error_code": None if outcome.ok else outcome.code.value,
            },
        )
        return outcome

    async def _attempt(
        self,
        db: AsyncSession,
        activity_id: str,
        identity_id: str,
        location: Coordinate,
        requester_handle: str,
    ) -> RegistrationOutcome:
        now = self._clock()

        def reject(code: RegistrationCode) -> RegistrationOutcome:
            return RegistrationOutcome(code, activity_id, identity_id)

        # 1-3: activity exists, window open, capacity left
        activity = await db.get(ActivityWindow, activity_id)
        rejection = check_activity_gates(activity, now)
        if rejection:
            return reject(rejection)

        # 4: duplicate
        existing = await db.get(RegistrationRecord, (activity_id, identity_id))
        rejection = check_duplicate(existing is not None)
        if rejection:
            return reject(rejection)

        # 5: exclusivity claim
        claim = None
        if activity.exclusive:
            claim = await db.get(ExclusivityClaim, activity_id)
        claimant = claim.claimant_handle if claim else None
        rejection = check_exclusivity(activity.exclusive, claimant, requester_handle)
        if rejection:
            return reject(rejection)
        if needs_claim_write(activity.exclusive, claimant):
            db.add(ExclusivityClaim(
                activity_id=activity_id,
                claimant_handle=requester_handle,
                claimed_at=now,
            ))

        # 6: the record
        db.add(RegistrationRecord(
            activity_id=activity_id,
            identity_id=identity_id,
            requester_handle=requester_handle,
            latitude=location.latitude,
            longitude=location.longitude,
            submitted_at=now,
        ))

        # 7: counter (version-checked UPDATE)
        activity.current_count += 1
        await db.flush()

        return RegistrationOutcome(
            RegistrationCode.OK,
            activity_id,
            identity_id,
            current_count=activity.current_count,
            submitted_at=now,
        )
