"""Check-in Flow — location report → geofence → session → atomic registration.

Invariants:
    - Location-source errors are returned with their own kind, never retried, never
      converted into a geofence or registration code
    - The geofence gate runs before the session check and before any write
    - A non-VALID session stops the flow, stops the identity's monitor, and forgets its
      touch throttle: the caller must re-authenticate
    - Every outcome carries exactly one message from core/format_messages.py

Design Decisions:
    - Flow is a thin shell: each stage delegates to its component and maps the result
    - Activity is read once here for its geofence; the coordinator re-reads it inside the
      transaction, so a stale read here can only cause an extra rejection, never a bad write
"""

import logging

from attendance.core.domain_types import (
    CheckInStage,
    GeofenceCode,
    LocationErrorKind,
    RegistrationCode,
)
from attendance.core.format_messages import describe
from attendance.core.geo import Coordinate, verify
from attendance.core.outcomes import CheckInOutcome
from attendance.core.repository_protocols import ActivityCatalog
from attendance.core.session_rules import TouchThrottle
from attendance.services.registration_coordinator import RegistrationCoordinator
from attendance.services.session_manager import SessionManager
from attendance.services.session_monitor import SessionMonitor

logger = logging.getLogger(__name__)


class CheckInFlow:
    """Orchestrates one check-in request across the three core components."""

    def __init__(
        self,
        catalog: ActivityCatalog,
        sessions: SessionManager,
        coordinator: RegistrationCoordinator,
        monitor: SessionMonitor | None = None,
        throttle: TouchThrottle | None = None,
    ):
        self._catalog = catalog
        self._sessions = sessions
        self._coordinator = coordinator
        self._monitor = monitor
        self._throttle = throttle

    async def check_in(
        self,
        activity_id: str,
        identity_id: str,
        requester_handle: str,
        location: Coordinate | None,
        location_error: LocationErrorKind | None = None,
    ) -> CheckInOutcome:
        if location_error is not None or location is None:
            kind = location_error or LocationErrorKind.POSITION_UNAVAILABLE
            return CheckInOutcome(CheckInStage.LOCATION, kind, describe(kind))

        activity = await self._catalog.get(activity_id)
        if activity is None:
            code = RegistrationCode.ACT_NOT_FOUND
            return CheckInOutcome(CheckInStage.REGISTRATION, code, describe(code))

        verdict = verify(
            location,
            Coordinate(activity.latitude, activity.longitude),
            activity.radius_meters,
        )
        distance = verdict.rounded_distance
        if not verdict.within_radius:
            code = GeofenceCode.OUT_OF_RADIUS
            return CheckInOutcome(
                CheckInStage.GEOFENCE, code,
                describe(code, distance=distance, radius=round(activity.radius_meters)),
                distance_meters=distance,
            )

        session = await self._sessions.validate_session(identity_id)
        if not session.valid:
            await self._force_reauthentication(identity_id)
            return CheckInOutcome(
                CheckInStage.SESSION, session.code,
                describe(session.code, wait_minutes=session.wait_minutes),
                distance_meters=distance,
                session=session,
            )

        registration = await self._coordinator.register(
            activity_id, identity_id, location, requester_handle,
        )
        return CheckInOutcome(
            CheckInStage.REGISTRATION, registration.code,
            describe(registration.code),
            distance_meters=distance,
            registration=registration,
            session=session,
        )

    async def _force_reauthentication(self, identity_id: str) -> None:
        if self._monitor is not None:
            await self._monitor.stop(identity_id)
        if self._throttle is not None:
            self._throttle.forget(identity_id)
        logger.info(
            "Check-in requires re-authentication",
            extra={"identity_id": identity_id, "stage": CheckInStage.SESSION.value},
        )
