"""Process-wide notification channel instances built from settings."""

from __future__ import annotations

import logging
from functools import lru_cache

from ...config import Settings, settings
from ...models.domain import Channel
from .base import NotificationChannel
from .channels import EmailChannel, PushChannel, SmsChannel
from .transports import (
    FcmPushTransport,
    ResendEmailTransport,
    ServiceAccountTokenSource,
    TwilioSmsTransport,
)

logger = logging.getLogger(__name__)


def _fcm_token_source(config: Settings) -> ServiceAccountTokenSource | None:
    if not config.fcm_credentials_file:
        return None
    try:
        return ServiceAccountTokenSource.from_file(
            config.fcm_credentials_file, timeout=config.notification_timeout_seconds
        )
    except (OSError, ValueError, KeyError) as exc:
        logger.error(f"Cannot load FCM credentials from {config.fcm_credentials_file}: {exc}")
        return None


def build_channels(config: Settings) -> dict[Channel, NotificationChannel]:
    """Construct one adapter per channel.

    Unconfigured transports are still built; their sends report a failed
    outcome instead of being skipped silently.
    """
    timeout = config.notification_timeout_seconds
    channels: dict[Channel, NotificationChannel] = {
        Channel.EMAIL: EmailChannel(
            ResendEmailTransport(
                api_key=config.email_api_key,
                sender=config.email_from,
                base_url=config.email_base_url,
                timeout=timeout,
            )
        ),
        Channel.SMS: SmsChannel(
            TwilioSmsTransport(
                account_sid=config.twilio_account_sid,
                auth_token=config.twilio_auth_token,
                base_url=config.twilio_base_url,
                timeout=timeout,
            ),
            from_number=config.twilio_from_number,
        ),
        Channel.PUSH: PushChannel(
            FcmPushTransport(
                project_id=config.fcm_project_id,
                token_source=_fcm_token_source(config),
                base_url=config.fcm_base_url,
                timeout=timeout,
            )
        ),
    }
    missing = [
        name
        for name, configured in (
            ("email", config.email_api_key),
            ("sms", config.twilio_account_sid and config.twilio_auth_token),
            ("push", config.fcm_project_id and config.fcm_credentials_file),
        )
        if not configured
    ]
    if missing:
        logger.warning(f"Notification transports not configured: {', '.join(missing)}")
    return channels


@lru_cache()
def get_notification_channels() -> dict[Channel, NotificationChannel]:
    return build_channels(settings)


async def close_notification_channels() -> None:
    if get_notification_channels.cache_info().currsize == 0:
        return
    for channel in get_notification_channels().values():
        aclose = getattr(getattr(channel, "transport", None), "aclose", None)
        if aclose is not None:
            await aclose()
    get_notification_channels.cache_clear()
