"""Publish/subscribe channel for refresh completion signals."""

import asyncio
from typing import Optional

import structlog

from swipenews.models import RefreshEvent

logger = structlog.get_logger(__name__)


class Subscription:
    """One subscriber's ordered stream of refresh events."""

    def __init__(self, bus: "RefreshBus", category: Optional[str]):
        self.category = category
        self._bus = bus
        self._queue: asyncio.Queue[RefreshEvent] = asyncio.Queue()

    def matches(self, event: RefreshEvent) -> bool:
        return self.category is None or self.category == event.category

    def deliver(self, event: RefreshEvent) -> None:
        self._queue.put_nowait(event)

    async def get(self) -> RefreshEvent:
        return await self._queue.get()

    def get_nowait(self) -> Optional[RefreshEvent]:
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None

    def close(self) -> None:
        self._bus.unsubscribe(self)

    def __aiter__(self):
        return self

    async def __anext__(self) -> RefreshEvent:
        return await self.get()


class RefreshBus:
    """Fan-out of refresh events to any number of independent subscribers.

    Events are delivered synchronously on publish, so every subscriber sees
    them in completion order.
    """

    def __init__(self):
        self._subscriptions: list[Subscription] = []

    def subscribe(self, category: Optional[str] = None) -> Subscription:
        """Subscribe to one category, or to all when category is None."""
        subscription = Subscription(self, category)
        self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def publish(self, event: RefreshEvent) -> int:
        """Deliver an event. Returns the number of subscribers reached."""
        delivered = 0
        for subscription in list(self._subscriptions):
            if subscription.matches(event):
                subscription.deliver(event)
                delivered += 1
        logger.debug(
            "refresh.event_published",
            category=event.category,
            ok=event.ok,
            subscribers=delivered,
        )
        return delivered

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)
