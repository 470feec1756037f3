"""Service Wiring — builds the service graph once and hands it to routes via Depends.

Invariants:
    - One Services instance per process (initialized in the lifespan via init_services)
    - All services share one TransactionRunner, one clock, one monitor, one throttle
    - get_services raises if called before startup

Design Decisions:
    - Plain dataclass over a DI container: every dependency visible in build_services()
    - Tests override get_services with a graph built on the test engine and a fake clock
"""

from dataclasses import dataclass
from datetime import timedelta

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from attendance.config import Settings
from attendance.core.outcomes import SessionOutcome
from attendance.core.session_rules import TouchThrottle
from attendance.core.timekeeping import Clock, utc_now
from attendance.infrastructure.transaction_runner import TransactionRunner
from attendance.services.activity_catalog import SqlActivityCatalog
from attendance.services.check_in_flow import CheckInFlow
from attendance.services.registration_coordinator import RegistrationCoordinator
from attendance.services.session_manager import SessionManager
from attendance.services.session_monitor import SessionMonitor


@dataclass
class Services:
    clock: Clock
    runner: TransactionRunner
    catalog: SqlActivityCatalog
    sessions: SessionManager
    coordinator: RegistrationCoordinator
    monitor: SessionMonitor
    throttle: TouchThrottle
    flow: CheckInFlow

    def on_session_expired(self, outcome: SessionOutcome) -> None:
        """Monitor callback: the identity must authenticate again before its next touch."""
        self.throttle.forget(outcome.identity_id)


def build_services(
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings,
    clock: Clock = utc_now,
) -> Services:
    runner = TransactionRunner(
        session_factory,
        max_attempts=settings.transaction_max_attempts,
        base_delay_ms=settings.transaction_base_delay_ms,
        max_delay_ms=settings.transaction_max_delay_ms,
    )
    catalog = SqlActivityCatalog(runner)
    sessions = SessionManager(
        runner,
        clock=clock,
        ttl=timedelta(minutes=settings.session_ttl_minutes),
        cooldown=timedelta(minutes=settings.network_cooldown_minutes),
        fallback_minutes=settings.session_fallback_minutes,
        warning_minutes=settings.session_warning_minutes,
    )
    coordinator = RegistrationCoordinator(runner, clock=clock)
    monitor = SessionMonitor(sessions, interval=settings.session_revalidate_seconds)
    throttle = TouchThrottle(interval=timedelta(seconds=settings.touch_throttle_seconds))
    flow = CheckInFlow(catalog, sessions, coordinator, monitor, throttle)
    return Services(
        clock=clock,
        runner=runner,
        catalog=catalog,
        sessions=sessions,
        coordinator=coordinator,
        monitor=monitor,
        throttle=throttle,
        flow=flow,
    )


# Singleton (initialized on startup)
services: Services | None = None


def init_services(
    session_factory: async_sessionmaker[AsyncSession], settings: Settings,
) -> Services:
    global services
    services = build_services(session_factory, settings)
    return services


def get_services() -> Services:
    """FastAPI dependency for the service graph."""
    if not services:
        raise RuntimeError("Services not initialized")
    return services


def client_address(request: Request) -> str:
    """Network address of the caller: first X-Forwarded-For hop, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
