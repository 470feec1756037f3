"""Session Routes — login, validation, activity touch, extension, and logout.

Invariants:
    - Network address comes from the request (X-Forwarded-For first hop or peer address),
      never from the body
    - Login starts the identity's SessionMonitor; logout stops it before deleting the row
    - touch is throttled per identity (TouchThrottle); a throttled touch performs a
      read-only state check and writes nothing
    - Non-VALID outcomes answer with the mapped 4xx and the same body shape

Design Decisions:
    - The identity was authenticated upstream (identity provider); these routes only manage
      the session record that gates check-ins
"""

import logging

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from attendance.api.dependencies import Services, client_address, get_services
from attendance.api.responses import SESSION_HTTP_STATUS, session_response
from attendance.core.outcomes import SessionOutcome
from attendance.schemas.session import SessionCreate, SessionResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/sessions", tags=["sessions"])


def _respond(
    outcome: SessionOutcome, *, success_status: int = status.HTTP_200_OK,
    throttled: bool = False,
) -> JSONResponse:
    body = session_response(outcome, throttled=throttled)
    code = success_status if outcome.valid else SESSION_HTTP_STATUS[outcome.code]
    return JSONResponse(status_code=code, content=body.model_dump(mode="json"))


@router.post(
    "", response_model=SessionResponse, status_code=status.HTTP_201_CREATED,
)
async def create_session(
    body: SessionCreate,
    request: Request,
    svc: Services = Depends(get_services),
):
    """Open (or replace) the session for an authenticated identity."""
    address = client_address(request)
    outcome = await svc.sessions.create_session(
        body.identity_id, body.handle, address,
    )
    if outcome.valid:
        svc.throttle.forget(body.identity_id)
        await svc.monitor.start(body.identity_id, svc.on_session_expired)
    return _respond(outcome, success_status=status.HTTP_201_CREATED)


@router.get("/{identity_id}", response_model=SessionResponse)
async def validate_session(
    identity_id: str, svc: Services = Depends(get_services),
):
    """Validate the session; an expired session is destroyed on observation."""
    outcome = await svc.sessions.validate_session(identity_id)
    if not outcome.valid:
        await svc.monitor.stop(identity_id)
    return _respond(outcome)


@router.post("/{identity_id}/touch", response_model=SessionResponse)
async def touch_session(
    identity_id: str,
    request: Request,
    svc: Services = Depends(get_services),
):
    """Record user activity. Never extends the session."""
    if not svc.throttle.should_touch(identity_id, svc.clock()):
        current = await svc.sessions.inspect_session(identity_id)
        if current.valid:
            return _respond(current, throttled=True)
    outcome = await svc.sessions.touch(identity_id, client_address(request))
    if not outcome.valid:
        svc.throttle.forget(identity_id)
        await svc.monitor.stop(identity_id)
    return _respond(outcome)


@router.post("/{identity_id}/extend", response_model=SessionResponse)
async def extend_session(
    identity_id: str, svc: Services = Depends(get_services),
):
    """Restart the session TTL. Fails once the session has expired."""
    outcome = await svc.sessions.extend_session(identity_id)
    if not outcome.valid:
        await svc.monitor.stop(identity_id)
    return _respond(outcome)


@router.delete("/{identity_id}", status_code=status.HTTP_204_NO_CONTENT)
async def destroy_session(
    identity_id: str, svc: Services = Depends(get_services),
):
    """Logout. Idempotent."""
    await svc.monitor.stop(identity_id)
    svc.throttle.forget(identity_id)
    await svc.sessions.destroy_session(identity_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
