"""Email, SMS and push adapters over their transports."""

from __future__ import annotations

from ...errors import ChannelDeliveryError
from ...models.domain import Channel
from ..catalog import NOTIFICATION_TITLE
from .base import NotificationChannel
from .transports import EmailTransport, PushTransport, SmsTransport


class EmailChannel(NotificationChannel):
    channel = Channel.EMAIL

    def __init__(self, transport: EmailTransport, subject: str = NOTIFICATION_TITLE) -> None:
        self.transport = transport
        self.subject = subject

    async def deliver(self, recipient: str, message: str) -> None:
        await self.transport.send_email(recipient, self.subject, message)


class SmsChannel(NotificationChannel):
    channel = Channel.SMS

    def __init__(self, transport: SmsTransport, from_number: str | None) -> None:
        self.transport = transport
        self.from_number = from_number

    async def deliver(self, recipient: str, message: str) -> None:
        if not self.from_number:
            raise ChannelDeliveryError("sms", "no sender number configured")
        await self.transport.send_sms(recipient, self.from_number, message)


class PushChannel(NotificationChannel):
    channel = Channel.PUSH

    def __init__(self, transport: PushTransport, title: str = NOTIFICATION_TITLE) -> None:
        self.transport = transport
        self.title = title

    async def deliver(self, recipient: str, message: str) -> None:
        await self.transport.send_push(recipient, self.title, message)
