"""Unauthenticated tracking lookup."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from ...persistence.shipments import ShipmentRepository
from ...schemas.shipments import TrackingResponse
from ...services.catalog import status_message
from ..dependencies import get_repository

router = APIRouter(prefix="/public", tags=["public"])


@router.get("/track/{shipment_id}", response_model=TrackingResponse)
def track_shipment(
    shipment_id: str, repository: Annotated[ShipmentRepository, Depends(get_repository)]
) -> TrackingResponse:
    shipment = repository.find_by_id(shipment_id)
    if shipment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No shipment found for tracking id {shipment_id}",
        )
    return TrackingResponse(
        shipment_id=shipment.shipment_id,
        status=shipment.status,
        status_message=status_message(shipment.status),
        origin=shipment.origin,
        destination=shipment.destination,
        last_location=shipment.last_location,
        updated_at=shipment.updated_at,
    )
