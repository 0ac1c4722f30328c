"""In-process broadcast hub keyed by shipment id."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Protocol
from uuid import uuid4

logger = logging.getLogger(__name__)


class Observer(Protocol):
    async def send_json(self, data: Any) -> None: ...


@dataclass(eq=False)
class Subscriber:
    """Handle for one connected observer and the topics it listens to."""

    observer: Observer
    subscriber_id: str = field(default_factory=lambda: uuid4().hex)
    topics: set[str] = field(default_factory=set)


class BroadcastHub:
    """Maps each shipment topic to the set of subscribers listening to it.

    Delivery is live only: nothing is buffered for observers that subscribe
    after a publish. A subscriber whose send fails is dropped from the hub.
    """

    def __init__(self) -> None:
        self._topics: dict[str, set[Subscriber]] = defaultdict(set)
        self._subscribers: dict[str, Subscriber] = {}

    def connect(self, observer: Observer) -> Subscriber:
        subscriber = Subscriber(observer=observer)
        self._subscribers[subscriber.subscriber_id] = subscriber
        return subscriber

    def subscribe(self, subscriber: Subscriber, shipment_id: str) -> bool:
        """Add the subscriber to a topic. Returns False if it was already there."""
        if subscriber.subscriber_id not in self._subscribers:
            self._subscribers[subscriber.subscriber_id] = subscriber
        if shipment_id in subscriber.topics:
            return False
        subscriber.topics.add(shipment_id)
        self._topics[shipment_id].add(subscriber)
        logger.debug(f"Subscriber {subscriber.subscriber_id} joined topic {shipment_id}")
        return True

    def unsubscribe(self, subscriber: Subscriber, shipment_id: str) -> bool:
        if shipment_id not in subscriber.topics:
            return False
        subscriber.topics.discard(shipment_id)
        members = self._topics.get(shipment_id)
        if members is not None:
            members.discard(subscriber)
            if not members:
                del self._topics[shipment_id]
        return True

    def disconnect(self, subscriber: Subscriber) -> None:
        for shipment_id in list(subscriber.topics):
            self.unsubscribe(subscriber, shipment_id)
        self._subscribers.pop(subscriber.subscriber_id, None)

    async def publish(self, shipment_id: str, payload: dict[str, Any]) -> int:
        """Send ``payload`` to every subscriber of ``shipment_id``.

        Returns the number of subscribers that received it.
        """
        members = list(self._topics.get(shipment_id, ()))
        if not members:
            return 0

        results = await asyncio.gather(
            *(member.observer.send_json(payload) for member in members),
            return_exceptions=True,
        )
        delivered = 0
        for member, result in zip(members, results):
            if isinstance(result, BaseException):
                logger.warning(
                    f"Dropping subscriber {member.subscriber_id} after failed send "
                    f"on topic {shipment_id}: {result}"
                )
                self.disconnect(member)
            else:
                delivered += 1
        logger.debug(f"Published to topic {shipment_id}: {delivered}/{len(members)} delivered")
        return delivered

    def subscriber_count(self, shipment_id: str) -> int:
        return len(self._topics.get(shipment_id, ()))

    def topic_count(self) -> int:
        return len(self._topics)

    def connection_count(self) -> int:
        return len(self._subscribers)
