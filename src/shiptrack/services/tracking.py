"""Realtime update pipeline: broadcast first, then notify in the background."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Mapping

from ..errors import MalformedEvent
from ..models.domain import LocationUpdateEvent, NotificationOutcome
from .lookup import ShipmentLookup
from .notifications.fanout import NotificationOrchestrator
from .realtime.hub import BroadcastHub

logger = logging.getLogger(__name__)


def parse_update(message: Mapping[str, Any]) -> LocationUpdateEvent:
    """Build an event from an ``updateLocation`` message.

    Accepts camelCase keys as sent by clients, or snake_case. The status is
    kept as given; unknown values are handled by the message catalog.
    """
    shipment_id = message.get("shipmentId", message.get("shipment_id"))
    if not isinstance(shipment_id, str) or not shipment_id.strip():
        raise MalformedEvent("updateLocation requires a non-empty shipmentId")

    status = message.get("status")
    device_token = message.get("deviceToken", message.get("device_token"))
    return LocationUpdateEvent(
        shipment_id=shipment_id.strip(),
        location=message.get("location"),
        status="" if status is None else str(status),
        device_token=device_token if isinstance(device_token, str) and device_token else None,
    )


class TrackingService:
    """Publishes updates to the hub and fans notifications out afterwards.

    The notification stage of each update runs as its own task so that
    neither the producer nor later updates wait on it.
    """

    def __init__(
        self,
        hub: BroadcastHub,
        lookup: ShipmentLookup,
        orchestrator: NotificationOrchestrator,
        max_concurrent_notifications: int = 0,
    ) -> None:
        self.hub = hub
        self.lookup = lookup
        self.orchestrator = orchestrator
        self._limiter = (
            asyncio.Semaphore(max_concurrent_notifications)
            if max_concurrent_notifications > 0
            else None
        )
        self._tasks: set[asyncio.Task] = set()

    async def handle_update(self, message: Mapping[str, Any]) -> asyncio.Task | None:
        """Process a raw update message.

        Returns the scheduled notification task, whose result is the list of
        outcomes, or None when the message was malformed and dropped.
        """
        try:
            event = parse_update(message)
        except MalformedEvent as exc:
            logger.warning(f"Dropping malformed update: {exc}")
            return None
        _, task = await self.dispatch(event)
        return task

    async def submit(self, event: LocationUpdateEvent) -> int:
        """Broadcast a parsed event and return the number of subscribers reached."""
        delivered, _ = await self.dispatch(event)
        return delivered

    async def dispatch(self, event: LocationUpdateEvent) -> tuple[int, asyncio.Task]:
        """Broadcast the event, then schedule its notification stage."""
        delivered = await self.hub.publish(event.shipment_id, event.broadcast_payload())
        logger.info(
            f"Broadcast update for shipment {event.shipment_id} "
            f"(status={event.status!r}) to {delivered} subscriber(s)"
        )
        task = asyncio.create_task(
            self._notify(event), name=f"notify-{event.shipment_id}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return delivered, task

    async def _notify(self, event: LocationUpdateEvent) -> list[NotificationOutcome]:
        limiter = self._limiter or contextlib.nullcontext()
        async with limiter:
            try:
                contact = await self.lookup.resolve(event.shipment_id)
                if contact is None:
                    logger.info(
                        f"Shipment {event.shipment_id} not found; skipping notifications"
                    )
                    return []
                return await self.orchestrator.notify(contact, event.status, event.device_token)
            except Exception:
                logger.exception(f"Notification stage failed for shipment {event.shipment_id}")
                return []

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait until every scheduled notification stage has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
