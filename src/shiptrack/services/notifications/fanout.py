"""Concurrent notification fan-out across eligible channels."""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping, Sequence

from ...models.domain import Channel, NotificationOutcome, ShipmentContact, ShipmentStatus
from .base import NotificationChannel

logger = logging.getLogger(__name__)


class NotificationOrchestrator:
    """Invokes every eligible channel at once and collects the outcomes.

    Channels share no state, so there is no locking; a channel that fails (or
    raises unexpectedly) yields a failed outcome and never affects the others.
    """

    def __init__(self, channels: Mapping[Channel, NotificationChannel]) -> None:
        self.channels = dict(channels)

    @staticmethod
    def eligible_channels(
        contact: ShipmentContact, device_token: str | None = None
    ) -> list[tuple[Channel, str]]:
        """Pair each eligible channel with the recipient it would address."""
        eligible: list[tuple[Channel, str]] = []
        if contact.customer_email:
            eligible.append((Channel.EMAIL, contact.customer_email))
        if contact.customer_phone:
            eligible.append((Channel.SMS, contact.customer_phone))
        if device_token:
            eligible.append((Channel.PUSH, device_token))
        return eligible

    async def notify(
        self,
        contact: ShipmentContact,
        status: str | ShipmentStatus,
        device_token: str | None = None,
    ) -> list[NotificationOutcome]:
        targets = [
            (channel, recipient)
            for channel, recipient in self.eligible_channels(contact, device_token)
            if channel in self.channels
        ]
        if not targets:
            logger.info(f"No eligible notification channels for shipment {contact.shipment_id}")
            return []

        results = await asyncio.gather(
            *(self.channels[channel].send(recipient, status) for channel, recipient in targets),
            return_exceptions=True,
        )
        outcomes = self._collect(targets, results)
        for outcome in outcomes:
            self._log_outcome(contact.shipment_id, outcome)
        return outcomes

    @staticmethod
    def _collect(
        targets: Sequence[tuple[Channel, str]], results: Sequence[object]
    ) -> list[NotificationOutcome]:
        outcomes: list[NotificationOutcome] = []
        for (channel, recipient), result in zip(targets, results):
            if isinstance(result, NotificationOutcome):
                outcomes.append(result)
            elif isinstance(result, BaseException):
                outcomes.append(
                    NotificationOutcome(
                        channel=channel,
                        recipient=recipient,
                        success=False,
                        error=f"{type(result).__name__}: {result}",
                    )
                )
            else:
                outcomes.append(
                    NotificationOutcome(
                        channel=channel,
                        recipient=recipient,
                        success=False,
                        error=f"unexpected result {result!r}",
                    )
                )
        return outcomes

    @staticmethod
    def _log_outcome(shipment_id: str, outcome: NotificationOutcome) -> None:
        if outcome.success:
            logger.info(
                f"Notification sent: shipment={shipment_id} channel={outcome.channel.value} "
                f"recipient={outcome.recipient}"
            )
        else:
            logger.warning(
                f"Notification failed: shipment={shipment_id} channel={outcome.channel.value} "
                f"recipient={outcome.recipient} error={outcome.error}"
            )
