"""Shipment and tracking API schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from ..models.domain import Shipment, ShipmentStatus


class ShipmentCreate(BaseModel):
    shipment_id: Optional[str] = Field(default=None, min_length=1)
    status: ShipmentStatus = ShipmentStatus.PENDING
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    origin: Optional[str] = None
    destination: Optional[str] = None
    driver_id: Optional[str] = None


class ShipmentUpdate(BaseModel):
    status: Optional[ShipmentStatus] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    origin: Optional[str] = None
    destination: Optional[str] = None
    driver_id: Optional[str] = None


class ShipmentModel(BaseModel):
    shipment_id: str
    status: str
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    origin: Optional[str] = None
    destination: Optional[str] = None
    driver_id: Optional[str] = None
    last_location: Any = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, shipment: Shipment) -> "ShipmentModel":
        return cls(
            shipment_id=shipment.shipment_id,
            status=shipment.status,
            customer_name=shipment.customer_name,
            customer_email=shipment.customer_email,
            customer_phone=shipment.customer_phone,
            origin=shipment.origin,
            destination=shipment.destination,
            driver_id=shipment.driver_id,
            last_location=shipment.last_location,
            created_at=shipment.created_at,
            updated_at=shipment.updated_at,
        )


class ShipmentListResponse(BaseModel):
    items: List[ShipmentModel]
    limit: int
    offset: int


class TrackingResponse(BaseModel):
    """Public view of a shipment; contact details are never exposed."""

    shipment_id: str
    status: str
    status_message: str
    origin: Optional[str] = None
    destination: Optional[str] = None
    last_location: Any = None
    updated_at: Optional[datetime] = None


class LocationUpdateRequest(BaseModel):
    location: Any
    status: str
    device_token: Optional[str] = None


class LocationUpdateResponse(BaseModel):
    shipment_id: str
    status: str
    subscribers_notified: int
