"""Base class for notification channel adapters."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import httpx

from ...errors import ChannelDeliveryError
from ...models.domain import Channel, NotificationOutcome, ShipmentStatus
from ..catalog import status_message

logger = logging.getLogger(__name__)


class NotificationChannel(ABC):
    """Contract for one outbound delivery mechanism.

    ``send`` never raises for transport problems: network, credential and
    quota errors come back as a failed ``NotificationOutcome``.
    """

    channel: Channel

    async def send(self, recipient: str, status: str | ShipmentStatus) -> NotificationOutcome:
        message = status_message(status)
        try:
            await self.deliver(recipient, message)
        except (httpx.HTTPError, ChannelDeliveryError, OSError) as exc:
            logger.debug(f"{self.channel.value} delivery to {recipient} failed: {exc}")
            return NotificationOutcome(
                channel=self.channel, recipient=recipient, success=False, error=str(exc)
            )
        return NotificationOutcome(channel=self.channel, recipient=recipient, success=True)

    @abstractmethod
    async def deliver(self, recipient: str, message: str) -> None:
        raise NotImplementedError
