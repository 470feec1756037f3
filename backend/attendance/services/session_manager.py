"""Session Manager — creates, validates, touches, extends, and destroys login sessions.

Invariants:
    - One session per identity; create_session writes the session and the cool-down row
      in one transaction (never partially written)
    - Both rows are version-checked: concurrent logins from one address, or concurrent
      writes to one session, conflict and are retried by the runner instead of both
      committing
    - Network cool-down: a different identity may not log in from an address occupied
      within the last NETWORK_COOLDOWN; the cool-down row and the session are written in
      the same transaction
    - Fixed-duration sessions: touch() moves last_activity only; extend_session() is the
      only operation that moves expires_at
    - validate_session() on an expired session deletes it (EXPIRED → DESTROYED)
    - create_session / destroy_session propagate store errors; validate_session degrades
      to VALID with a fallback remaining time when the store cannot be read

Design Decisions:
    - Availability over strict expiry on read failures: a flaky store must not log
      everybody out
    - last_activity write after validation is best-effort and runs in its own transaction
      so its failure cannot turn a VALID read into an error
"""

import logging
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from attendance.core.domain_types import SessionCode, SessionState
from attendance.core.errors import AttendanceError, ErrorContext
from attendance.core.outcomes import SessionOutcome
from attendance.core.session_rules import (
    NEAR_EXPIRY_MINUTES,
    NETWORK_COOLDOWN,
    SESSION_TTL,
    compute_expiry,
    cooldown_wait_minutes,
    is_expired,
    is_near_expiry,
    remaining_minutes,
)
from attendance.core.timekeeping import Clock, ensure_utc, utc_now
from attendance.infrastructure.transaction_runner import TransactionRunner
from attendance.models.login_session import LoginSession
from attendance.models.network_cooldown import NetworkCooldown

logger = logging.getLogger(__name__)


class SessionManager:
    """Session lifecycle over the login_sessions and network_cooldowns tables."""

    def __init__(
        self,
        runner: TransactionRunner,
        clock: Clock = utc_now,
        ttl: timedelta = SESSION_TTL,
        cooldown: timedelta = NETWORK_COOLDOWN,
        fallback_minutes: int = 15,
        warning_minutes: int = NEAR_EXPIRY_MINUTES,
    ):
        self._runner = runner
        self._clock = clock
        self.ttl = ttl
        self.cooldown = cooldown
        self.fallback_minutes = fallback_minutes
        self.warning_minutes = warning_minutes

    # ─── create ──────────────────────────────────────────────────

    async def create_session(
        self, identity_id: str, handle: str, network_address: str,
    ) -> SessionOutcome:
        """Log identity_id in from network_address, unless the address is cooling down."""

        async def work(db: AsyncSession) -> SessionOutcome:
            now = self._clock()
            occupant = await db.get(NetworkCooldown, network_address)
            wait = cooldown_wait_minutes(
                occupant.identity_id if occupant else None,
                occupant.blocked_until if occupant else None,
                identity_id,
                now,
            )
            if wait is not None:
                return SessionOutcome(
                    SessionCode.BLOCKED_BY_COOLDOWN, identity_id,
                    SessionState.NONE, wait_minutes=wait,
                )

            if occupant is None:
                db.add(NetworkCooldown(
                    network_address=network_address,
                    identity_id=identity_id,
                    claimed_at=now,
                    blocked_until=now + self.cooldown,
                ))
            else:
                occupant.identity_id = identity_id
                occupant.claimed_at = now
                occupant.blocked_until = now + self.cooldown

            expires_at = compute_expiry(now, self.ttl)
            row = await db.get(LoginSession, identity_id)
            if row is None:
                row = LoginSession(identity_id=identity_id)
                db.add(row)
            row.handle = handle
            row.network_address = network_address
            row.login_at = now
            row.expires_at = expires_at
            row.last_activity = now
            row.active = True
            await db.flush()
            return self._valid(identity_id, expires_at, now)

        outcome = await self._runner.run(
            work, ErrorContext(identity_id=identity_id),
        )
        if outcome.code == SessionCode.BLOCKED_BY_COOLDOWN:
            logger.warning(
                f"Login blocked by network cool-down ({outcome.wait_minutes} min)",
                extra={
                    "identity_id": identity_id,
                    "network_address": network_address,
                    "error_code": outcome.code.value,
                },
            )
        else:
            logger.info(
                "Session created",
                extra={"identity_id": identity_id, "network_address": network_address},
            )
        return outcome

    # ─── validate ────────────────────────────────────────────────

    async def validate_session(
        self, identity_id: str, record_activity: bool = True,
    ) -> SessionOutcome:
        """Check the session; expired sessions are destroyed on observation.

        record_activity=False skips the last_activity write (background polls).
        """

        async def work(db: AsyncSession) -> SessionOutcome:
            return await self._read_or_expire(db, identity_id)

        try:
            outcome = await self._runner.run(
                work, ErrorContext(identity_id=identity_id),
            )
        except AttendanceError as e:
            logger.warning(
                f"Session validation degraded: {e.message}",
                extra={"identity_id": identity_id, "error_code": e.code},
            )
            return SessionOutcome(
                SessionCode.VALID, identity_id, SessionState.ACTIVE,
                remaining_minutes=self.fallback_minutes, degraded=True,
            )

        if outcome.valid and record_activity:
            await self._record_activity(identity_id)
        return outcome

    # ─── touch ───────────────────────────────────────────────────

    async def touch(
        self, identity_id: str, network_address: str | None = None,
    ) -> SessionOutcome:
        """Record user activity. Does NOT move expires_at."""

        async def work(db: AsyncSession) -> SessionOutcome:
            outcome = await self._read_or_expire(db, identity_id)
            if outcome.valid:
                row = await db.get(LoginSession, identity_id)
                row.last_activity = self._clock()
                if network_address:
                    row.network_address = network_address
            return outcome

        return await self._runner.run(work, ErrorContext(identity_id=identity_id))

    # ─── extend ──────────────────────────────────────────────────

    async def extend_session(self, identity_id: str) -> SessionOutcome:
        """Restart the TTL from now. Only allowed while the session is unexpired."""

        async def work(db: AsyncSession) -> SessionOutcome:
            outcome = await self._read_or_expire(db, identity_id)
            if not outcome.valid:
                return outcome
            now = self._clock()
            row = await db.get(LoginSession, identity_id)
            row.expires_at = compute_expiry(now, self.ttl)
            row.last_activity = now
            return self._valid(identity_id, row.expires_at, now)

        outcome = await self._runner.run(work, ErrorContext(identity_id=identity_id))
        if outcome.valid:
            logger.info("Session extended", extra={"identity_id": identity_id})
        return outcome

    # ─── destroy ─────────────────────────────────────────────────

    async def destroy_session(self, identity_id: str) -> None:
        """Delete the session. Idempotent; store errors propagate."""

        async def work(db: AsyncSession) -> bool:
            row = await db.get(LoginSession, identity_id)
            if row is None:
                return False
            await db.delete(row)
            return True

        deleted = await self._runner.run(work, ErrorContext(identity_id=identity_id))
        if deleted:
            logger.info("Session destroyed", extra={"identity_id": identity_id})

    # ─── read-only state ─────────────────────────────────────────

    async def inspect_session(self, identity_id: str) -> SessionOutcome:
        """Like validate_session, but writes nothing: expired rows are reported, not deleted."""

        async def work(db: AsyncSession) -> SessionOutcome:
            now = self._clock()
            row = await db.get(LoginSession, identity_id)
            if row is None:
                return SessionOutcome(
                    SessionCode.NO_SESSION, identity_id, SessionState.NONE,
                )
            if is_expired(row.expires_at, now):
                return SessionOutcome(
                    SessionCode.EXPIRED, identity_id, SessionState.EXPIRED,
                    expires_at=ensure_utc(row.expires_at),
                )
            return self._valid(identity_id, row.expires_at, now)

        return await self._runner.run(work)

    async def session_state(self, identity_id: str) -> SessionState:
        """NONE / ACTIVE / EXPIRED, without side effects."""
        return (await self.inspect_session(identity_id)).state

    # ─── helpers ─────────────────────────────────────────────────

    async def _read_or_expire(
        self, db: AsyncSession, identity_id: str,
    ) -> SessionOutcome:
        now = self._clock()
        row = await db.get(LoginSession, identity_id)
        if row is None:
            return SessionOutcome(
                SessionCode.NO_SESSION, identity_id, SessionState.NONE,
            )
        if is_expired(row.expires_at, now):
            await db.delete(row)
            logger.info(
                "Expired session destroyed", extra={"identity_id": identity_id},
            )
            return SessionOutcome(
                SessionCode.EXPIRED, identity_id, SessionState.DESTROYED,
                expires_at=ensure_utc(row.expires_at),
            )
        return self._valid(identity_id, row.expires_at, now)

    def _valid(self, identity_id, expires_at, now) -> SessionOutcome:
        remaining = remaining_minutes(expires_at, now)
        return SessionOutcome(
            SessionCode.VALID, identity_id, SessionState.ACTIVE,
            remaining_minutes=remaining,
            expires_at=ensure_utc(expires_at),
            near_expiry=is_near_expiry(remaining, self.warning_minutes),
        )

    async def _record_activity(self, identity_id: str) -> None:
        """Best-effort last_activity update; failures are logged, never raised."""

        async def work(db: AsyncSession) -> None:
            row = await db.get(LoginSession, identity_id)
            if row is None:
                return
            row.last_activity = self._clock()

        try:
            await self._runner.run(work)
        except AttendanceError as e:
            logger.warning(
                f"last_activity update failed: {e.message}",
                extra={"identity_id": identity_id, "error_code": e.code},
            )
