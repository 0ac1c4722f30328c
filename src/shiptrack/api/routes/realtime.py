"""WebSocket endpoints for live shipment updates.

Message protocol on ``/ws``:

    Client -> Server:
    - {"type": "subscribe", "shipmentId": "..."}
    - {"type": "unsubscribe", "shipmentId": "..."}
    - {"type": "updateLocation", "shipmentId": "...", "location": ..., "status": "...", "deviceToken": "..."}
    - {"type": "ping"}

    Server -> Client:
    - {"type": "connected", "connectionId": "..."}
    - {"type": "subscribed" | "unsubscribed", "shipmentId": "..."}
    - {"type": "locationUpdate", "shipmentId": "...", "location": ..., "status": "..."}
    - {"type": "accepted", "shipmentId": "...", "delivered": n}
    - {"type": "pong"}
    - {"type": "error", "code": "...", "message": "..."}

Every accepted ``updateLocation`` triggers customer email, SMS and push, so
by default it needs a driver token (``?token=...``). Turning off
``SHIPTRACK_REALTIME_REQUIRE_AUTH`` lets any anonymous client send those
notifications; do that only behind a trusted network boundary.
"""

from __future__ import annotations

import json
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from ...auth import DRIVER_ROLE, authorize, verify_token
from ...config import settings
from ...errors import Forbidden, MalformedEvent, Unauthenticated
from ...models.domain import Principal
from ...services.realtime.hub import BroadcastHub, Subscriber
from ...services.tracking import TrackingService, parse_update

logger = logging.getLogger(__name__)
router = APIRouter(tags=["realtime"])


def _error(code: str, message: str) -> dict[str, Any]:
    return {"type": "error", "code": code, "message": message}


def _shipment_id(message: dict[str, Any]) -> str | None:
    value = message.get("shipmentId", message.get("shipment_id"))
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _check_producer(principal: Principal | None) -> dict[str, Any] | None:
    """Return an error frame if this connection may not send updates."""
    if not settings.realtime_require_auth:
        return None
    if principal is None:
        return _error("unauthenticated", "A driver token is required to send updates")
    try:
        authorize(principal, {DRIVER_ROLE})
    except Forbidden as exc:
        return _error("forbidden", str(exc))
    return None


@router.websocket("/ws")
async def realtime_endpoint(
    websocket: WebSocket,
    token: Annotated[str | None, Query(description="Bearer token for producers")] = None,
) -> None:
    if not settings.websocket_enabled:
        await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER, reason="WebSocket disabled")
        return

    hub: BroadcastHub = websocket.app.state.hub
    tracking: TrackingService = websocket.app.state.tracking

    await websocket.accept()
    principal: Principal | None = None
    if token:
        try:
            principal = verify_token(token)
        except Unauthenticated as exc:
            await websocket.send_json(_error("unauthenticated", str(exc)))
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return

    subscriber = hub.connect(websocket)
    try:
        await websocket.send_json({"type": "connected", "connectionId": subscriber.subscriber_id})
        await _handle_messages(websocket, subscriber, hub, tracking, principal)
    except WebSocketDisconnect:
        logger.debug(f"WebSocket {subscriber.subscriber_id} disconnected")
    finally:
        hub.disconnect(subscriber)


async def _handle_messages(
    websocket: WebSocket,
    subscriber: Subscriber,
    hub: BroadcastHub,
    tracking: TrackingService,
    principal: Principal | None,
) -> None:
    async for raw_message in websocket.iter_text():
        try:
            message = json.loads(raw_message)
        except json.JSONDecodeError:
            await websocket.send_json(_error("invalid_json", "Messages must be JSON objects"))
            continue
        if not isinstance(message, dict):
            await websocket.send_json(_error("invalid_json", "Messages must be JSON objects"))
            continue

        msg_type = message.get("type")
        if msg_type == "ping":
            await websocket.send_json({"type": "pong"})

        elif msg_type in ("subscribe", "unsubscribe"):
            shipment_id = _shipment_id(message)
            if shipment_id is None:
                await websocket.send_json(_error("invalid_message", f"{msg_type} requires shipmentId"))
                continue
            if msg_type == "subscribe":
                hub.subscribe(subscriber, shipment_id)
                await websocket.send_json({"type": "subscribed", "shipmentId": shipment_id})
            else:
                hub.unsubscribe(subscriber, shipment_id)
                await websocket.send_json({"type": "unsubscribed", "shipmentId": shipment_id})

        elif msg_type == "updateLocation":
            rejection = _check_producer(principal)
            if rejection is not None:
                await websocket.send_json(rejection)
                continue
            try:
                event = parse_update(message)
            except MalformedEvent as exc:
                logger.warning(f"Dropping malformed update from {subscriber.subscriber_id}: {exc}")
                await websocket.send_json(_error("malformed_event", str(exc)))
                continue
            delivered = await tracking.submit(event)
            await websocket.send_json(
                {"type": "accepted", "shipmentId": event.shipment_id, "delivered": delivered}
            )

        else:
            await websocket.send_json(_error("unknown_type", f"Unknown message type: {msg_type!r}"))


@router.websocket("/ws/shipments/{shipment_id}")
async def shipment_feed(websocket: WebSocket, shipment_id: str) -> None:
    """Observe one shipment for the lifetime of the connection."""
    if not settings.websocket_enabled:
        await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER, reason="WebSocket disabled")
        return

    hub: BroadcastHub = websocket.app.state.hub
    await websocket.accept()
    subscriber = hub.connect(websocket)
    hub.subscribe(subscriber, shipment_id)
    try:
        await websocket.send_json({"type": "subscribed", "shipmentId": shipment_id})
        # Read-only feed: anything other than a ping is ignored
        async for raw_message in websocket.iter_text():
            try:
                message = json.loads(raw_message)
            except json.JSONDecodeError:
                continue
            if isinstance(message, dict) and message.get("type") == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        logger.debug(f"Observer {subscriber.subscriber_id} of {shipment_id} disconnected")
    finally:
        hub.disconnect(subscriber)
