"""Resolve a shipment id to the contact fields used for notifications."""

from __future__ import annotations

import asyncio
import logging

from ..models.domain import ShipmentContact
from ..persistence.shipments import ShipmentRepository

logger = logging.getLogger(__name__)


class ShipmentLookup:
    def __init__(self, repository: ShipmentRepository) -> None:
        self.repository = repository

    async def resolve(self, shipment_id: str) -> ShipmentContact | None:
        """Return the contact view, or None when the shipment cannot be found.

        Backend errors are logged and reported as a miss; the repository call
        is blocking and runs in a worker thread.
        """
        try:
            shipment = await asyncio.to_thread(self.repository.find_by_id, shipment_id)
        except Exception as exc:
            logger.warning(f"Shipment lookup failed for {shipment_id}: {exc}")
            return None
        if shipment is None:
            return None
        return ShipmentContact.from_shipment(shipment)
