"""Exception types raised across the tracking pipeline."""

from __future__ import annotations


class TrackingError(Exception):
    """Base class for tracking service errors."""


class Unauthenticated(TrackingError):
    """Missing, malformed, expired or badly signed bearer credential."""


class Forbidden(TrackingError):
    """Valid credential whose role is not allowed on the requested path."""


class ShipmentNotFound(TrackingError):
    def __init__(self, shipment_id: str) -> None:
        super().__init__(f"Shipment '{shipment_id}' not found")
        self.shipment_id = shipment_id


class MalformedEvent(TrackingError):
    """Realtime update that cannot be processed (e.g. no shipment id)."""


class ChannelDeliveryError(TrackingError):
    """A notification transport failed to deliver a message."""

    def __init__(self, channel: str, message: str) -> None:
        super().__init__(f"{channel}: {message}")
        self.channel = channel
