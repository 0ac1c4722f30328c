"""Domain models for shipments, realtime updates and notification outcomes."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class ShipmentStatus(str, Enum):
    PENDING = "pending"
    DISPATCHED = "dispatched"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"


class Channel(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"


@dataclass(slots=True)
class Shipment:
    """Shipment record as stored by the persistence layer."""

    shipment_id: str
    status: str = ShipmentStatus.PENDING.value
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    origin: Optional[str] = None
    destination: Optional[str] = None
    driver_id: Optional[str] = None
    last_location: Optional[Any] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class ShipmentContact:
    """Read-only view of the contact fields the notification stage needs."""

    shipment_id: str
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None

    @classmethod
    def from_shipment(cls, shipment: Shipment) -> "ShipmentContact":
        return cls(
            shipment_id=shipment.shipment_id,
            customer_phone=shipment.customer_phone or None,
            customer_email=shipment.customer_email or None,
        )


@dataclass(frozen=True, slots=True)
class LocationUpdateEvent:
    """A live location/status update for one shipment.

    ``status`` is kept as the raw string sent by the producer so that
    unknown values still flow through to the fallback message.
    """

    shipment_id: str
    location: Any
    status: str
    device_token: Optional[str] = None

    def broadcast_payload(self) -> dict[str, Any]:
        return {
            "type": "locationUpdate",
            "shipmentId": self.shipment_id,
            "location": self.location,
            "status": self.status,
        }


@dataclass(frozen=True, slots=True)
class NotificationOutcome:
    channel: Channel
    recipient: str
    success: bool
    error: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Principal:
    """Claims decoded from a verified bearer token."""

    subject: str
    role: str
    claims: dict[str, Any] = field(default_factory=dict)
