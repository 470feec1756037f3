"""Activity Routes — admin upsert of activity metadata and read-back of registrations.

Invariants:
    - PUT never sets current_count; it is owned by the check-in transaction
    - GET reports the display status with the same precedence as the registration gates
    - Unknown activity → 404 via ResourceNotFoundError (global handler)
    - Capacity below the stored current_count → 409 via CapacityConflictError
"""

import logging

from fastapi import APIRouter, Depends, Query, Response, status

from attendance.api.dependencies import Services, get_services
from attendance.core.enforce_registration import activity_status
from attendance.core.errors import ErrorContext, ResourceNotFoundError
from attendance.schemas.activity import (
    ActivityResponse,
    ActivityUpsert,
    RegistrationItem,
    RegistrationList,
)
from attendance.services.activity_catalog import ActivitySnapshot

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/activities", tags=["activities"])


def _to_response(
    snapshot: ActivitySnapshot, svc: Services, registration_count: int | None = None,
) -> ActivityResponse:
    return ActivityResponse(
        id=snapshot.id,
        title=snapshot.title,
        latitude=snapshot.latitude,
        longitude=snapshot.longitude,
        radius_meters=snapshot.radius_meters,
        opens_at=snapshot.opens_at,
        closes_at=snapshot.closes_at,
        active=snapshot.active,
        capacity=snapshot.capacity,
        current_count=snapshot.current_count,
        exclusive=snapshot.exclusive,
        status=activity_status(snapshot, svc.clock()),
        registration_count=registration_count,
    )


@router.put("/{activity_id}", response_model=ActivityResponse)
async def upsert_activity(
    activity_id: str,
    body: ActivityUpsert,
    response: Response,
    svc: Services = Depends(get_services),
):
    """Create or update an activity window (admin collaborator)."""
    snapshot, created = await svc.catalog.save(activity_id, **body.model_dump())
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return _to_response(snapshot, svc)


@router.get("/{activity_id}", response_model=ActivityResponse)
async def get_activity(
    activity_id: str, svc: Services = Depends(get_services),
):
    """Activity window with display status and live registration count."""
    snapshot = await svc.catalog.get(activity_id)
    if snapshot is None:
        raise ResourceNotFoundError(
            "Activity", activity_id, ErrorContext(activity_id=activity_id),
        )
    count = await svc.catalog.count_registrations(activity_id)
    return _to_response(snapshot, svc, registration_count=count)


@router.get("/{activity_id}/registrations", response_model=RegistrationList)
async def list_registrations(
    activity_id: str,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    svc: Services = Depends(get_services),
):
    """Registrations for an activity, oldest first (display/export read-back)."""
    if await svc.catalog.get(activity_id) is None:
        raise ResourceNotFoundError(
            "Activity", activity_id, ErrorContext(activity_id=activity_id),
        )
    views = await svc.catalog.list_registrations(activity_id, limit=limit, offset=offset)
    return RegistrationList(
        activity_id=activity_id,
        registrations=[
            RegistrationItem(
                activity_id=v.activity_id,
                identity_id=v.identity_id,
                requester_handle=v.requester_handle,
                latitude=v.latitude,
                longitude=v.longitude,
                submitted_at=v.submitted_at,
            )
            for v in views
        ],
        limit=limit,
        offset=offset,
    )
