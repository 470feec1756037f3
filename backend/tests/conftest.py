"""Root conftest — shared test configuration and fixtures.

Invariants:
    - Every test gets a fresh file-backed SQLite database in WAL mode (tmp_path)
    - All time-dependent behavior reads the FakeClock fixture, never the wall clock
    - The client fixture overrides get_services and patches db_manager (ASGITransport
      does not run the lifespan)

Design Decisions:
    - File database instead of :memory: so concurrent transactions get separate
      connections and the store decides races the way it would in production
    - Higher retry budget and tiny backoff than production: SQLite serializes writers,
      so contended tests need more attempts but should not sleep
"""

import os
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)

os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)

from attendance.api.dependencies import build_services, get_services  # noqa: E402
from attendance.config import Settings  # noqa: E402
from attendance.core.geo import Coordinate  # noqa: E402
from attendance.db.base import Base  # noqa: E402
from attendance.infrastructure.database import DatabaseSessionManager  # noqa: E402
from attendance.infrastructure.transaction_runner import TransactionRunner  # noqa: E402
import attendance.infrastructure.database as db_module  # noqa: E402
import attendance.models  # noqa: E402,F401

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
CENTER = Coordinate(-23.5505, -46.6333)
INSIDE = Coordinate(-23.5507, -46.6334)     # ~25 m from CENTER
OUTSIDE = Coordinate(-23.5600, -46.6333)    # ~1 km from CENTER


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def inside():
    return INSIDE


@pytest.fixture
def outside():
    return OUTSIDE


@pytest.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'attendance.db'}",
        echo=False,
        connect_args={"timeout": 30},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_wal(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
def test_settings():
    return Settings(
        database_url="sqlite+aiosqlite:///unused.db",
        transaction_max_attempts=10,
        transaction_base_delay_ms=1,
        transaction_max_delay_ms=20,
        session_revalidate_seconds=3600.0,
    )


@pytest.fixture
def runner(session_factory, test_settings):
    return TransactionRunner(
        session_factory,
        max_attempts=test_settings.transaction_max_attempts,
        base_delay_ms=test_settings.transaction_base_delay_ms,
        max_delay_ms=test_settings.transaction_max_delay_ms,
    )


@pytest.fixture
async def services(session_factory, test_settings, clock):
    svc = build_services(session_factory, test_settings, clock=clock)
    yield svc
    await svc.monitor.shutdown()


@pytest.fixture
def seed_activity(services, clock):
    """Factory: create an activity centered on CENTER, open around the fake clock."""

    async def _seed(
        activity_id: str = "ACT-1",
        *,
        radius_meters: float = 100.0,
        capacity: int = 0,
        exclusive: bool = False,
        active: bool = True,
        opens_at: datetime | None = None,
        closes_at: datetime | None = None,
    ):
        snapshot, _ = await services.catalog.save(
            activity_id,
            title=f"Activity {activity_id}",
            latitude=CENTER.latitude,
            longitude=CENTER.longitude,
            radius_meters=radius_meters,
            opens_at=opens_at or clock() - timedelta(hours=1),
            closes_at=closes_at or clock() + timedelta(hours=2),
            active=active,
            capacity=capacity,
            exclusive=exclusive,
        )
        return snapshot

    return _seed


@pytest.fixture
async def client(test_engine, session_factory, services):
    """FastAPI test client with the service graph overridden."""
    from attendance.main import app

    app.dependency_overrides[get_services] = lambda: services

    # Patch db_manager for the readiness probe, which reads it directly
    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
