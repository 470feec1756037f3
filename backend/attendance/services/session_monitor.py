"""Session Monitor — one cancellable re-validation task per active session.

Invariants:
    - At most one task per identity; start() on a watched identity replaces the old task
    - A task re-validates every `interval` seconds and ends after the first non-VALID
      outcome, invoking on_expired exactly once
    - stop() cancels and awaits the task (logout); shutdown() does it for every identity
    - The monitor never writes sessions itself: validate_session() owns expiry cleanup
    - Polls never move last_activity: it reflects user requests only, and write volume
      stays bounded by the touch throttle

Design Decisions:
    - Explicit per-session asyncio task instead of a process-wide interval: logout cancels
      exactly one task
    - Callback errors are logged and end the task; they never propagate into the loop
"""

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Union

from attendance.core.outcomes import SessionOutcome
from attendance.services.session_manager import SessionManager

logger = logging.getLogger(__name__)

ExpiryCallback = Callable[[SessionOutcome], Union[Awaitable[None], None]]


class SessionMonitor:
    """Schedules periodic session re-validation per identity."""

    def __init__(self, manager: SessionManager, interval: float = 60.0):
        self._manager = manager
        self.interval = interval
        self._tasks: dict[str, asyncio.Task] = {}

    def is_watching(self, identity_id: str) -> bool:
        task = self._tasks.get(identity_id)
        return task is not None and not task.done()

    async def start(self, identity_id: str, on_expired: ExpiryCallback) -> None:
        await self.stop(identity_id)
        self._tasks[identity_id] = asyncio.create_task(
            self._watch(identity_id, on_expired),
            name=f"session-monitor:{identity_id}",
        )
        logger.debug("Session monitor started", extra={"identity_id": identity_id})

    async def stop(self, identity_id: str) -> None:
        task = self._tasks.pop(identity_id, None)
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("Session monitor stopped", extra={"identity_id": identity_id})

    async def shutdown(self) -> None:
        for identity_id in list(self._tasks):
            await self.stop(identity_id)

    async def _watch(self, identity_id: str, on_expired: ExpiryCallback) -> None:
        while True:
            await asyncio.sleep(self.interval)
            outcome = await self._manager.validate_session(
                identity_id, record_activity=False,
            )
            if outcome.valid:
                continue
            logger.info(
                f"Session monitor observed {outcome.code.value}",
                extra={"identity_id": identity_id, "error_code": outcome.code.value},
            )
            try:
                result = on_expired(outcome)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.error(
                    "Session expiry callback failed", exc_info=True,
                    extra={"identity_id": identity_id},
                )
            break
        if self._tasks.get(identity_id) is asyncio.current_task():
            self._tasks.pop(identity_id, None)
