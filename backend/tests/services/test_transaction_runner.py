"""Transaction Runner — bounded retry on conflicts, no retry on other failures.

Tests cover:
    - Conflict classification (StaleDataError, IntegrityError, SQLSTATE 40001/40P01)
    - A conflict followed by success returns the successful result
    - Exhaustion raises TransactionAbortedError after exactly max_attempts
    - Non-conflict SQLAlchemy errors map to DatabaseError without retry
    - Writes from a failed attempt are rolled back
    - Unwrapped connectivity errors (OSError, timeouts) are retried, then DatabaseError
"""

import asyncio

import pytest
from sqlalchemy.exc import ArgumentError, DBAPIError, IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from attendance.core.errors import DatabaseError, ErrorContext, TransactionAbortedError
from attendance.infrastructure.transaction_runner import (
    TransactionRunner, is_conflict, is_unreachable,
)
from attendance.models.login_session import LoginSession


class _DriverError(Exception):
    def __init__(self, sqlstate):
        super().__init__(f"sqlstate {sqlstate}")
        self.sqlstate = sqlstate


def test_conflict_classification():
    assert is_conflict(StaleDataError("stale"))
    assert is_conflict(IntegrityError("INSERT", {}, Exception("dup")))
    assert is_conflict(DBAPIError("UPDATE", {}, _DriverError("40001")))
    assert is_conflict(DBAPIError("UPDATE", {}, _DriverError("40P01")))
    assert not is_conflict(DBAPIError("UPDATE", {}, _DriverError("23502")))
    assert not is_conflict(ArgumentError("bad"))


async def test_retries_conflict_then_succeeds(session_factory):
    runner = TransactionRunner(session_factory, max_attempts=3, base_delay_ms=0)
    calls = []

    async def work(db):
        calls.append(1)
        if len(calls) == 1:
            raise StaleDataError("stale")
        return "done"

    assert await runner.run(work) == "done"
    assert len(calls) == 2


async def test_exhaustion_raises_transaction_aborted(session_factory):
    runner = TransactionRunner(session_factory, max_attempts=3, base_delay_ms=0)
    calls = []

    async def work(db):
        calls.append(1)
        raise StaleDataError("stale")

    with pytest.raises(TransactionAbortedError) as exc_info:
        await runner.run(work, ErrorContext(activity_id="ACT-1"))

    assert len(calls) == 3
    assert exc_info.value.attempts == 3
    assert exc_info.value.http_status == 503
    assert exc_info.value.to_response()["error"]["context"]["activity_id"] == "ACT-1"


async def test_non_conflict_error_is_not_retried(session_factory):
    runner = TransactionRunner(session_factory, max_attempts=5, base_delay_ms=0)
    calls = []

    async def work(db):
        calls.append(1)
        raise ArgumentError("bad")

    with pytest.raises(DatabaseError):
        await runner.run(work)
    assert len(calls) == 1


async def test_failed_attempt_writes_nothing(session_factory, clock):
    runner = TransactionRunner(session_factory, max_attempts=1, base_delay_ms=0)

    async def work(db):
        db.add(LoginSession(
            identity_id="alice", handle="alice@uni.edu", network_address="10.0.0.1",
            login_at=clock(), expires_at=clock(), last_activity=clock(), active=True,
        ))
        await db.flush()
        raise StaleDataError("stale")

    with pytest.raises(TransactionAbortedError):
        await runner.run(work)

    async with session_factory() as db:
        assert await db.get(LoginSession, "alice") is None


def test_max_attempts_must_be_positive(session_factory):
    with pytest.raises(ValueError):
        TransactionRunner(session_factory, max_attempts=0)


def test_connectivity_errors_are_retryable():
    refused = ConnectionRefusedError(111, "Connect call failed")

    assert is_unreachable(refused)
    assert is_unreachable(asyncio.TimeoutError())
    assert is_conflict(refused)
    assert not is_unreachable(StaleDataError("stale"))


async def test_unreachable_store_retries_then_raises_database_error(session_factory):
    runner = TransactionRunner(session_factory, max_attempts=3, base_delay_ms=0)
    calls = []

    async def work(db):
        calls.append(1)
        raise ConnectionRefusedError(111, "Connect call failed")

    with pytest.raises(DatabaseError) as exc_info:
        await runner.run(work, ErrorContext(identity_id="alice"))

    assert len(calls) == 3
    assert exc_info.value.operation == "connect"
    assert exc_info.value.http_status == 503
    assert isinstance(exc_info.value.__cause__, ConnectionRefusedError)


async def test_store_recovering_mid_retry_succeeds(session_factory):
    runner = TransactionRunner(session_factory, max_attempts=3, base_delay_ms=0)
    calls = []

    async def work(db):
        calls.append(1)
        if len(calls) == 1:
            raise ConnectionResetError(104, "Connection reset by peer")
        return "done"

    assert await runner.run(work) == "done"
    assert len(calls) == 2
