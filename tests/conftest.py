"""Shared fakes for notification transports and realtime observers."""

from typing import Any

import httpx
import pytest

from src.shiptrack.models.domain import Channel
from src.shiptrack.services.notifications import EmailChannel, PushChannel, SmsChannel


class RecordingEmailTransport:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []

    async def send_email(self, to: str, subject: str, body: str) -> None:
        self.sent.append((to, subject, body))


class RecordingSmsTransport:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []

    async def send_sms(self, to: str, from_: str, body: str) -> None:
        self.sent.append((to, from_, body))


class FailingSmsTransport:
    def __init__(self) -> None:
        self.attempts = 0

    async def send_sms(self, to: str, from_: str, body: str) -> None:
        self.attempts += 1
        raise httpx.ConnectError("sms gateway unreachable")


class RecordingPushTransport:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []

    async def send_push(self, device_token: str, title: str, body: str) -> None:
        self.sent.append((device_token, title, body))


class RecordingObserver:
    def __init__(self) -> None:
        self.messages: list[Any] = []

    async def send_json(self, data: Any) -> None:
        self.messages.append(data)


class BrokenObserver:
    async def send_json(self, data: Any) -> None:
        raise RuntimeError("socket closed")


@pytest.fixture
def email_transport() -> RecordingEmailTransport:
    return RecordingEmailTransport()


@pytest.fixture
def sms_transport() -> RecordingSmsTransport:
    return RecordingSmsTransport()


@pytest.fixture
def push_transport() -> RecordingPushTransport:
    return RecordingPushTransport()


@pytest.fixture
def channels(email_transport, sms_transport, push_transport):
    return {
        Channel.EMAIL: EmailChannel(email_transport),
        Channel.SMS: SmsChannel(sms_transport, from_number="+15550000000"),
        Channel.PUSH: PushChannel(push_transport),
    }
