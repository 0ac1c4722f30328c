"""Driver-only endpoints for reporting shipment progress."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool

from ...auth import DRIVER_ROLE
from ...errors import ShipmentNotFound
from ...models.domain import LocationUpdateEvent, Principal
from ...persistence.shipments import ShipmentRepository
from ...schemas.shipments import LocationUpdateRequest, LocationUpdateResponse
from ...services.catalog import parse_status
from ...services.tracking import TrackingService
from ..dependencies import get_repository, get_tracking_service, require_roles

router = APIRouter(prefix="/drivers", tags=["drivers"])


@router.post(
    "/shipments/{shipment_id}/location",
    response_model=LocationUpdateResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def report_location(
    shipment_id: str,
    payload: LocationUpdateRequest,
    principal: Annotated[Principal, Depends(require_roles(DRIVER_ROLE))],
    repository: Annotated[ShipmentRepository, Depends(get_repository)],
    tracking: Annotated[TrackingService, Depends(get_tracking_service)],
) -> LocationUpdateResponse:
    """Record the driver's position/status and push it to live observers.

    Notifications are sent in the background; the response does not wait
    for them.
    """
    shipment = await run_in_threadpool(repository.find_by_id, shipment_id)
    if shipment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Shipment '{shipment_id}' not found")
    if shipment.driver_id and shipment.driver_id != principal.subject:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Shipment is assigned to another driver",
        )

    changes: dict = {"last_location": payload.location}
    known_status = parse_status(payload.status)
    if known_status is not None:
        changes["status"] = known_status.value
    try:
        await run_in_threadpool(repository.update, shipment_id, changes)
    except ShipmentNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    event = LocationUpdateEvent(
        shipment_id=shipment_id,
        location=payload.location,
        status=payload.status,
        device_token=payload.device_token or None,
    )
    delivered = await tracking.submit(event)
    return LocationUpdateResponse(
        shipment_id=shipment_id,
        status=payload.status,
        subscribers_notified=delivered,
    )
