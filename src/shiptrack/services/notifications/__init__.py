"""Notification channels and fan-out."""

from .base import NotificationChannel
from .channels import EmailChannel, PushChannel, SmsChannel
from .fanout import NotificationOrchestrator
from .registry import build_channels, close_notification_channels, get_notification_channels

__all__ = [
    "NotificationChannel",
    "EmailChannel",
    "SmsChannel",
    "PushChannel",
    "NotificationOrchestrator",
    "build_channels",
    "get_notification_channels",
    "close_notification_channels",
]
