"""Check-in Route — the single write path for attendance records.

Invariants:
    - Every request ends in exactly one CheckInResponse with a stable code
    - Location-source errors are echoed with their kind (422), never retried here
    - Exhausted transaction retries surface as 503 TRANSACTION_ABORTED (global handler)
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from attendance.api.dependencies import Services, get_services
from attendance.api.responses import CHECK_IN_HTTP_STATUS, check_in_response
from attendance.schemas.check_in import CheckInRequest, CheckInResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/activities", tags=["check-ins"])


@router.post("/{activity_id}/check-ins", response_model=CheckInResponse)
async def check_in(
    activity_id: str,
    body: CheckInRequest,
    svc: Services = Depends(get_services),
):
    """Check the caller into an activity."""
    outcome = await svc.flow.check_in(
        activity_id,
        body.identity_id,
        body.handle,
        body.location.to_coordinate() if body.location else None,
        body.location_error,
    )
    payload = check_in_response(outcome, activity_id, body.identity_id)
    return JSONResponse(
        status_code=CHECK_IN_HTTP_STATUS[outcome.code],
        content=payload.model_dump(mode="json"),
    )
