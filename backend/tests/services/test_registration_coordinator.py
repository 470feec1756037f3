"""Registration Coordinator — atomic check-in transaction against a real SQLite store.

Tests cover:
    - OK writes one record and increments the counter
    - Every rejection code, each leaving the store unchanged
    - Concurrent duplicate submissions → exactly one OK, one ALREADY_REGISTERED
    - Concurrent exclusive claims from two handles → one OK, one SINGLE_USER_TAKEN
    - Same handle from a second identity passes an exclusive activity (idempotent claim)
    - Capacity is never exceeded under concurrent submissions

Design Decisions:
    - Races use asyncio.gather on a WAL-mode file database: each coroutine gets its
      own connection, so conflicts surface exactly as they would in production
"""

import asyncio
from datetime import timedelta

from sqlalchemy import select

from attendance.core.domain_types import RegistrationCode
from attendance.models.activity_window import ActivityWindow
from attendance.models.exclusivity_claim import ExclusivityClaim
from attendance.models.registration_record import RegistrationRecord


async def _counter(session_factory, activity_id="ACT-1") -> int:
    async with session_factory() as db:
        activity = await db.get(ActivityWindow, activity_id)
        return activity.current_count


async def _records(session_factory, activity_id="ACT-1") -> list[RegistrationRecord]:
    async with session_factory() as db:
        result = await db.execute(
            select(RegistrationRecord).where(RegistrationRecord.activity_id == activity_id),
        )
        return list(result.scalars().all())


# ─── single submissions ──────────────────────────────────────────

async def test_ok_writes_record_and_increments_counter(
    services, seed_activity, session_factory, inside, clock,
):
    await seed_activity()

    outcome = await services.coordinator.register("ACT-1", "alice", inside, "alice@uni.edu")

    assert outcome.code == RegistrationCode.OK
    assert outcome.current_count == 1
    assert outcome.submitted_at == clock()
    records = await _records(session_factory)
    assert [(r.identity_id, r.requester_handle) for r in records] == [("alice", "alice@uni.edu")]
    assert records[0].latitude == inside.latitude
    assert await _counter(session_factory) == 1


async def test_unknown_activity(services, inside):
    outcome = await services.coordinator.register("NOPE", "alice", inside, "alice@uni.edu")
    assert outcome.code == RegistrationCode.ACT_NOT_FOUND


async def test_closed_window_rejects_without_writes(
    services, seed_activity, session_factory, inside, clock,
):
    await seed_activity(closes_at=clock() - timedelta(minutes=1), opens_at=clock() - timedelta(hours=2))

    outcome = await services.coordinator.register("ACT-1", "alice", inside, "alice@uni.edu")

    assert outcome.code == RegistrationCode.FORM_CLOSED
    assert await _records(session_factory) == []
    assert await _counter(session_factory) == 0


async def test_inactive_activity_is_closed(services, seed_activity, inside):
    await seed_activity(active=False)
    outcome = await services.coordinator.register("ACT-1", "alice", inside, "alice@uni.edu")
    assert outcome.code == RegistrationCode.FORM_CLOSED


async def test_full_activity_rejects(services, seed_activity, session_factory, inside):
    await seed_activity(capacity=1)
    first = await services.coordinator.register("ACT-1", "alice", inside, "alice@uni.edu")
    second = await services.coordinator.register("ACT-1", "bob", inside, "bob@uni.edu")

    assert first.code == RegistrationCode.OK
    assert second.code == RegistrationCode.FULL
    assert await _counter(session_factory) == 1


async def test_second_submission_is_already_registered(
    services, seed_activity, session_factory, inside,
):
    await seed_activity()
    await services.coordinator.register("ACT-1", "alice", inside, "alice@uni.edu")

    outcome = await services.coordinator.register("ACT-1", "alice", inside, "alice@uni.edu")

    assert outcome.code == RegistrationCode.ALREADY_REGISTERED
    assert len(await _records(session_factory)) == 1
    assert await _counter(session_factory) == 1


async def test_exclusive_activity_rejects_other_handle(
    services, seed_activity, session_factory, inside,
):
    await seed_activity(exclusive=True)
    first = await services.coordinator.register("ACT-1", "alice", inside, "alice@uni.edu")
    second = await services.coordinator.register("ACT-1", "bob", inside, "bob@uni.edu")

    assert first.code == RegistrationCode.OK
    assert second.code == RegistrationCode.SINGLE_USER_TAKEN
    async with session_factory() as db:
        claim = await db.get(ExclusivityClaim, "ACT-1")
    assert claim.claimant_handle == "alice@uni.edu"
    assert await _counter(session_factory) == 1


async def test_exclusive_claim_is_idempotent_for_same_handle(
    services, seed_activity, session_factory, inside,
):
    await seed_activity(exclusive=True)
    first = await services.coordinator.register("ACT-1", "alice", inside, "shared@uni.edu")
    second = await services.coordinator.register("ACT-1", "alice-2", inside, "shared@uni.edu")

    assert first.code == RegistrationCode.OK
    assert second.code == RegistrationCode.OK
    assert second.current_count == 2


# ─── races ───────────────────────────────────────────────────────

async def test_concurrent_duplicate_submissions_register_once(
    services, seed_activity, session_factory, inside,
):
    await seed_activity()

    outcomes = await asyncio.gather(
        services.coordinator.register("ACT-1", "alice", inside, "alice@uni.edu"),
        services.coordinator.register("ACT-1", "alice", inside, "alice@uni.edu"),
    )

    codes = sorted(o.code.value for o in outcomes)
    assert codes == ["ALREADY_REGISTERED", "OK"]
    assert len(await _records(session_factory)) == 1
    assert await _counter(session_factory) == 1


async def test_concurrent_exclusive_claims_have_one_winner(
    services, seed_activity, session_factory, inside,
):
    await seed_activity(exclusive=True)

    outcomes = await asyncio.gather(
        services.coordinator.register("ACT-1", "alice", inside, "alice@uni.edu"),
        services.coordinator.register("ACT-1", "bob", inside, "bob@uni.edu"),
    )

    codes = sorted(o.code.value for o in outcomes)
    assert codes == ["OK", "SINGLE_USER_TAKEN"]
    winner = next(o for o in outcomes if o.ok)
    async with session_factory() as db:
        claim = await db.get(ExclusivityClaim, "ACT-1")
    assert claim.claimant_handle == f"{winner.identity_id}@uni.edu"
    assert await _counter(session_factory) == 1


async def test_last_seat_race_has_one_winner(
    services, seed_activity, session_factory, inside,
):
    await seed_activity(capacity=1)

    outcomes = await asyncio.gather(
        services.coordinator.register("ACT-1", "alice", inside, "alice@uni.edu"),
        services.coordinator.register("ACT-1", "bob", inside, "bob@uni.edu"),
    )

    codes = sorted(o.code.value for o in outcomes)
    assert codes == ["FULL", "OK"]
    assert len(await _records(session_factory)) == 1
    assert await _counter(session_factory) == 1


async def test_capacity_never_exceeded_under_contention(
    services, seed_activity, session_factory, inside,
):
    await seed_activity(capacity=3)

    outcomes = await asyncio.gather(*(
        services.coordinator.register("ACT-1", f"user-{i}", inside, f"user-{i}@uni.edu")
        for i in range(6)
    ))

    ok = [o for o in outcomes if o.ok]
    assert len(ok) == 3
    assert all(o.code == RegistrationCode.FULL for o in outcomes if not o.ok)
    assert sorted(o.current_count for o in ok) == [1, 2, 3]
    assert len(await _records(session_factory)) == 3
    assert await _counter(session_factory) == 3
