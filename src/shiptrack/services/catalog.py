"""Human-readable text for shipment statuses, shared by every channel."""

from __future__ import annotations

from ..models.domain import ShipmentStatus

NOTIFICATION_TITLE = "Shipment update"
GENERIC_STATUS_MESSAGE = "Your shipment status has been updated."

STATUS_MESSAGES: dict[ShipmentStatus, str] = {
    ShipmentStatus.PENDING: "Your shipment has been created and is awaiting dispatch.",
    ShipmentStatus.DISPATCHED: "Your shipment has been dispatched.",
    ShipmentStatus.IN_TRANSIT: "Your shipment is in transit.",
    ShipmentStatus.OUT_FOR_DELIVERY: "Your shipment is out for delivery.",
    ShipmentStatus.DELIVERED: "Your shipment has been delivered.",
}


def parse_status(value: str | ShipmentStatus | None) -> ShipmentStatus | None:
    """Return the matching status, or None for anything outside the known set."""
    if isinstance(value, ShipmentStatus):
        return value
    try:
        return ShipmentStatus(value)
    except ValueError:
        return None


def status_message(value: str | ShipmentStatus | None) -> str:
    status = parse_status(value)
    if status is None:
        return GENERIC_STATUS_MESSAGE
    return STATUS_MESSAGES[status]
