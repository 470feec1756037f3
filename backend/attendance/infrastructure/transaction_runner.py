"""Transaction Runner — optimistic, bounded-retry execution of a unit of work.

Invariants:
    - Each attempt runs in a FRESH AsyncSession inside session.begin(): commit on normal
      return, rollback on any exception (zero observable writes from a failed attempt)
    - The unit of work is re-executed from the start on conflict; it must not mutate
      anything outside the session before returning
    - Conflicts: version mismatch (StaleDataError), key race (IntegrityError), locked or
      unreachable store (OperationalError), serialization failure / deadlock (SQLSTATE
      40001 / 40P01)
    - Unreachable store: driver-level OSError / TimeoutError that SQLAlchemy does not
      wrap (asyncpg connect failures) is retried like a conflict
    - Attempts are bounded by max_attempts, then TransactionAbortedError (contention) or
      DatabaseError (store still unreachable)
    - Any other SQLAlchemy error maps to DatabaseError without retry

Design Decisions:
    - Exponential backoff with ±25% jitter: two clients that collided once should not
      collide again on the next attempt
    - Retry lives here, not in the coordinator: the coordinator reads as a single
      straight-line transaction
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from attendance.core.errors import (
    DatabaseError, ErrorContext, TransactionAbortedError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RETRYABLE_SQLSTATES = frozenset({"40001", "40P01"})

_UNREACHABLE = (OSError, asyncio.TimeoutError)


def is_unreachable(exc: BaseException) -> bool:
    """True for driver-level connectivity failures SQLAlchemy does not wrap."""
    return isinstance(exc, _UNREACHABLE)


def is_conflict(exc: BaseException) -> bool:
    """True if the failed attempt may succeed when re-executed."""
    if is_unreachable(exc):
        return True
    if isinstance(exc, (StaleDataError, IntegrityError, OperationalError)):
        return True
    if isinstance(exc, DBAPIError):
        orig = getattr(exc, "orig", None)
        sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
        return sqlstate in _RETRYABLE_SQLSTATES
    return False


class TransactionRunner:
    """Runs async units of work atomically, retrying on conflicts."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        max_attempts: int = 5,
        base_delay_ms: int = 20,
        max_delay_ms: int = 500,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._session_factory = session_factory
        self.max_attempts = max_attempts
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms

    async def run(
        self,
        work: Callable[[AsyncSession], Awaitable[T]],
        context: ErrorContext | None = None,
    ) -> T:
        """Execute work(session) in one transaction, retrying on conflicts."""
        last_error: BaseException | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                async with self._session_factory() as session:
                    async with session.begin():
                        return await work(session)
            except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
                if not is_conflict(e):
                    logger.error(
                        f"Transaction failed: {e}", exc_info=True,
                        extra={"attempt": attempt},
                    )
                    raise DatabaseError(
                        "Database operation failed", "transaction", context,
                    ) from e
                last_error = e
                if attempt == self.max_attempts:
                    break
                logger.warning(
                    f"Transaction conflict ({type(e).__name__}), retrying",
                    extra={"attempt": attempt},
                )
                await asyncio.sleep(self._backoff_seconds(attempt))

        if is_unreachable(last_error):
            logger.error(
                f"Database unreachable after {self.max_attempts} attempt(s): {last_error}",
                extra={"attempt": self.max_attempts, "error_code": "DATABASE_ERROR"},
            )
            raise DatabaseError(
                "Database unreachable", "connect", context,
            ) from last_error

        logger.error(
            "Transaction retries exhausted",
            extra={"attempt": self.max_attempts, "error_code": "TRANSACTION_ABORTED"},
        )
        raise TransactionAbortedError(self.max_attempts, context) from last_error

    def _backoff_seconds(self, attempt: int) -> float:
        delay = min(self.base_delay_ms * (2 ** (attempt - 1)), self.max_delay_ms)
        jitter = delay * 0.25 * (2 * random.random() - 1)
        return max(0.0, delay + jitter) / 1000
