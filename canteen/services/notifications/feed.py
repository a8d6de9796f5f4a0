"""In-process change feed for new orders.

Events only say that something changed. Subscribers re-fetch orders from the
database instead of trusting the event, and must tolerate duplicates.
"""
import asyncio
import logging
from datetime import datetime
from typing import Optional, Set

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class OrderEvent(BaseModel):
    """Order change signal."""

    kind: str = "insert"
    order_id: int
    at: datetime = Field(default_factory=datetime.utcnow)


class OrderSubscription:
    """Async iterator over order events for one subscriber.

    Iteration never ends on its own; ``close()`` stops it. Use
    ``OrderEventFeed.subscribe()`` again to restart.
    """

    _CLOSED = object()

    def __init__(self, feed: "OrderEventFeed"):
        self._feed = feed
        self._queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def _push(self, event: OrderEvent) -> None:
        if not self.closed:
            self._queue.put_nowait(event)

    def close(self) -> None:
        """Stop iteration and detach from the feed."""
        if self.closed:
            return
        self.closed = True
        self._feed._detach(self)
        self._queue.put_nowait(self._CLOSED)

    def pending(self) -> int:
        """Number of undelivered events."""
        return self._queue.qsize()

    def __aiter__(self) -> "OrderSubscription":
        return self

    async def __anext__(self) -> OrderEvent:
        item = await self._queue.get()
        if item is self._CLOSED:
            raise StopAsyncIteration
        return item

    async def __aenter__(self) -> "OrderSubscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()


class OrderEventFeed:
    """Fan-out publisher of order events."""

    def __init__(self):
        self._subscribers: Set[OrderSubscription] = set()

    def subscribe(self) -> OrderSubscription:
        subscription = OrderSubscription(self)
        self._subscribers.add(subscription)
        logger.debug(f"[FEED] Subscriber added ({len(self._subscribers)} active)")
        return subscription

    def _detach(self, subscription: OrderSubscription) -> None:
        self._subscribers.discard(subscription)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event: OrderEvent) -> None:
        """Deliver an event to every current subscriber."""
        for subscription in list(self._subscribers):
            subscription._push(event)
        logger.info(
            f"[FEED] Published {event.kind} for order {event.order_id} "
            f"to {len(self._subscribers)} subscriber(s)"
        )

    def order_inserted(self, order_id: int, at: Optional[datetime] = None) -> OrderEvent:
        """Publish an insert event for a new order."""
        event = OrderEvent(kind="insert", order_id=order_id, at=at or datetime.utcnow())
        self.publish(event)
        return event
