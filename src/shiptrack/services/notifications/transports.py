"""HTTP clients for the external email, SMS and push delivery services."""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Callable, Protocol

import httpx
import jwt

from ...errors import ChannelDeliveryError


class EmailTransport(Protocol):
    async def send_email(self, to: str, subject: str, body: str) -> None: ...


class SmsTransport(Protocol):
    async def send_sms(self, to: str, from_: str, body: str) -> None: ...


class PushTransport(Protocol):
    async def send_push(self, device_token: str, title: str, body: str) -> None: ...


def _raise_for_status(channel: str, response: httpx.Response) -> None:
    if response.is_success:
        return
    # 401/403 are credential problems, 429 is quota; all are reported the same way
    raise ChannelDeliveryError(
        channel, f"HTTP {response.status_code} from provider: {response.text[:200]}"
    )


class ResendEmailTransport:
    """Sends plain-text email through the Resend HTTP API."""

    def __init__(
        self,
        api_key: str | None,
        sender: str,
        base_url: str = "https://api.resend.com",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key
        self.sender = sender
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bearer {api_key or ''}"},
            timeout=timeout,
        )

    async def send_email(self, to: str, subject: str, body: str) -> None:
        if not self.api_key:
            raise ChannelDeliveryError("email", "email transport is not configured")
        response = await self._client.post(
            "/emails",
            json={"from": self.sender, "to": [to], "subject": subject, "text": body},
        )
        _raise_for_status("email", response)

    async def aclose(self) -> None:
        await self._client.aclose()


class TwilioSmsTransport:
    """Sends SMS through the Twilio Messages REST endpoint."""

    def __init__(
        self,
        account_sid: str | None,
        auth_token: str | None,
        base_url: str = "https://api.twilio.com",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.account_sid = account_sid
        self.auth_token = auth_token
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def send_sms(self, to: str, from_: str, body: str) -> None:
        if not self.account_sid or not self.auth_token:
            raise ChannelDeliveryError("sms", "SMS transport is not configured")
        response = await self._client.post(
            f"/2010-04-01/Accounts/{self.account_sid}/Messages.json",
            data={"To": to, "From": from_, "Body": body},
            auth=(self.account_sid, self.auth_token),
        )
        _raise_for_status("sms", response)

    async def aclose(self) -> None:
        await self._client.aclose()


FCM_SCOPE = "https://www.googleapis.com/auth/firebase.messaging"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"


def _json_body(channel: str, response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError as exc:
        raise ChannelDeliveryError(channel, "unreadable provider response") from exc
    if not isinstance(data, dict):
        raise ChannelDeliveryError(channel, "unreadable provider response")
    return data


class AccessTokenSource(Protocol):
    async def token(self) -> str: ...


class ServiceAccountTokenSource:
    """Exchanges a Google service-account key for OAuth2 access tokens.

    Uses the JWT bearer grant: an RS256 assertion signed with the account's
    private key is posted to the token endpoint. Tokens are reused until a
    minute before they expire.
    """

    def __init__(
        self,
        client_email: str,
        private_key: str,
        token_url: str = "https://oauth2.googleapis.com/token",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client_email = client_email
        self.private_key = private_key
        self.token_url = token_url
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._clock = clock
        self._access_token: str | None = None
        self._expires_at = 0.0

    @classmethod
    def from_file(cls, path: str | Path, **kwargs: Any) -> "ServiceAccountTokenSource":
        info = json.loads(Path(path).read_text(encoding="utf-8"))
        kwargs.setdefault("token_url", info.get("token_uri") or "https://oauth2.googleapis.com/token")
        return cls(info["client_email"], info["private_key"], **kwargs)

    async def token(self) -> str:
        now = self._clock()
        if self._access_token and now < self._expires_at - 60:
            return self._access_token

        claims = {
            "iss": self.client_email,
            "scope": FCM_SCOPE,
            "aud": self.token_url,
            "iat": int(now),
            "exp": int(now) + 3600,
        }
        try:
            assertion = jwt.encode(claims, self.private_key, algorithm="RS256")
        except (ValueError, TypeError, jwt.PyJWTError) as exc:
            raise ChannelDeliveryError("push", f"cannot sign token request: {exc}") from exc

        response = await self._client.post(
            self.token_url, data={"grant_type": JWT_BEARER_GRANT, "assertion": assertion}
        )
        _raise_for_status("push", response)
        data = _json_body("push", response)
        access_token = data.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise ChannelDeliveryError("push", "token endpoint returned no access_token")
        self._access_token = access_token
        self._expires_at = now + float(data.get("expires_in") or 3600)
        return access_token

    async def aclose(self) -> None:
        await self._client.aclose()


class FcmPushTransport:
    """Sends push notifications through the FCM HTTP v1 API."""

    def __init__(
        self,
        project_id: str | None,
        token_source: AccessTokenSource | None,
        base_url: str = "https://fcm.googleapis.com",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.project_id = project_id
        self.token_source = token_source
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def send_push(self, device_token: str, title: str, body: str) -> None:
        if not self.project_id or self.token_source is None:
            raise ChannelDeliveryError("push", "push transport is not configured")
        access_token = await self.token_source.token()
        response = await self._client.post(
            f"/v1/projects/{self.project_id}/messages:send",
            headers={"Authorization": f"Bearer {access_token}"},
            json={
                "message": {
                    "token": device_token,
                    "notification": {"title": title, "body": body},
                }
            },
        )
        # Rejected device tokens come back as 404 UNREGISTERED or 400 INVALID_ARGUMENT
        _raise_for_status("push", response)
        if "name" not in _json_body("push", response):
            raise ChannelDeliveryError("push", "unreadable provider response")

    async def aclose(self) -> None:
        await self._client.aclose()
        aclose = getattr(self.token_source, "aclose", None)
        if aclose is not None:
            await aclose()
