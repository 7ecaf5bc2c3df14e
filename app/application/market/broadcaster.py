"""
Fan-out of market updates to connected subscribers.

Architecture:
    RatePoller ──▶ Broadcaster.broadcast(update)
                        │
                  ┌─────┴──────┐
                  │ Subscription│  one per connected client
                  │  latest slot│  (latest-value-wins)
                  │  control q  │  (errors, replies, pongs)
                  └─────┬──────┘
                        │ next()
                        ▼
                WebSocket / SSE sender

Each subscriber drains its own Subscription at its own pace: a slow
consumer skips intermediate updates but never receives an older update
after a newer one. A newly connected subscriber is primed with the last
known update, if any.
"""

import asyncio
import json
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from itertools import count
from typing import Any, AsyncGenerator

from app.domain.market.entities import MarketUpdate
from app.domain.market.state import MarketState

logger = logging.getLogger(__name__)

LATEST_RATES_UPDATE = "latest_rates_update"
HISTORICAL_DATA_UPDATE = "historical_data_update"
ERROR = "error"
CONNECTED = "connected"
PONG = "pong"

DEFAULT_CONTROL_BUFFER = 16


@dataclass
class StreamEvent:
    """A single message pushed to a subscriber."""

    event_type: str
    data: Any
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_json(self) -> str:
        return json.dumps({
            "event": self.event_type,
            "data": self.data,
            "timestamp": self.timestamp,
        }, default=str)

    def to_sse(self) -> str:
        """Format as Server-Sent Event."""
        return f"event: {self.event_type}\ndata: {self.to_json()}\n\n"

    @classmethod
    def for_update(cls, update: MarketUpdate) -> "StreamEvent":
        return cls(event_type=LATEST_RATES_UPDATE, data=update.to_dict())

    @classmethod
    def error(cls, message: str) -> "StreamEvent":
        return cls(event_type=ERROR, data={"message": message})


class Subscription:
    """Per-subscriber channel with bounded buffering.

    Market updates go to a single slot that is overwritten by newer ones.
    Control messages go to a small FIFO that drops its oldest entry when
    full. `next()` returns pending control messages before the update.
    """

    def __init__(self, subscriber_id: int, control_buffer: int = DEFAULT_CONTROL_BUFFER) -> None:
        self.id = subscriber_id
        self._latest: MarketUpdate | None = None
        self._newest: datetime | None = None
        self._control: deque[StreamEvent] = deque(maxlen=control_buffer)
        self._ready = asyncio.Event()
        self.dropped_updates = 0

    def offer_update(self, update: MarketUpdate) -> None:
        """Store `update` as the next one to deliver, replacing any undelivered one.

        Updates older than one already offered are ignored.
        """
        if self._newest is not None and update.generated_at < self._newest:
            return
        if self._latest is not None:
            self.dropped_updates += 1
        self._newest = update.generated_at
        self._latest = update
        self._ready.set()

    def offer(self, event: StreamEvent) -> None:
        self._control.append(event)
        self._ready.set()

    def pending(self) -> bool:
        return self._latest is not None or bool(self._control)

    def poll(self) -> StreamEvent | None:
        """Return the next event without waiting, or None."""
        if self._control:
            event = self._control.popleft()
        elif self._latest is not None:
            event = StreamEvent.for_update(self._latest)
            self._latest = None
        else:
            event = None
        if not self.pending():
            self._ready.clear()
        return event

    async def next(self) -> StreamEvent:
        """Wait for and return the next event."""
        while True:
            await self._ready.wait()
            event = self.poll()
            if event is not None:
                return event


class Broadcaster:
    """Maintains the live subscriber set and delivers updates to all of it.

    Args:
        state: Shared market state; its latest update primes new subscribers.
        control_buffer: Capacity of each subscriber's control FIFO.
    """

    def __init__(self, state: MarketState, control_buffer: int = DEFAULT_CONTROL_BUFFER) -> None:
        self._state = state
        self._control_buffer = control_buffer
        self._subscriptions: dict[int, Subscription] = {}
        self._ids = count(1)
        self._stats = {
            "total_connections": 0,
            "total_updates_broadcast": 0,
            "total_errors_broadcast": 0,
        }

    @property
    def active_connections(self) -> int:
        return len(self._subscriptions)

    @property
    def stats(self) -> dict:
        return {**self._stats, "active_connections": self.active_connections}

    # ------------------------------------------------------------------
    # Subscriber lifecycle
    # ------------------------------------------------------------------

    def subscribe(self) -> Subscription:
        """Register a subscriber, primed with the last known update."""
        subscription = Subscription(next(self._ids), control_buffer=self._control_buffer)
        self._subscriptions[subscription.id] = subscription
        self._stats["total_connections"] += 1

        subscription.offer(StreamEvent(
            event_type=CONNECTED,
            data={"subscriber_id": subscription.id, "active_clients": self.active_connections},
        ))
        latest = self._state.latest_update
        if latest is not None:
            subscription.offer_update(latest)

        logger.info("Subscriber %d connected. Active: %d", subscription.id, self.active_connections)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if self._subscriptions.pop(subscription.id, None) is not None:
            logger.info(
                "Subscriber %d disconnected. Active: %d",
                subscription.id,
                self.active_connections,
            )

    # ------------------------------------------------------------------
    # Broadcasting
    # ------------------------------------------------------------------

    def broadcast(self, update: MarketUpdate) -> int:
        """Deliver an update to every connected subscriber.

        Returns the number of subscribers it was offered to.
        """
        self._stats["total_updates_broadcast"] += 1
        for subscription in list(self._subscriptions.values()):
            subscription.offer_update(update)
        return len(self._subscriptions)

    def broadcast_error(self, message: str) -> int:
        """Deliver an error event to every connected subscriber."""
        self._stats["total_errors_broadcast"] += 1
        event = StreamEvent.error(message)
        for subscription in list(self._subscriptions.values()):
            subscription.offer(event)
        return len(self._subscriptions)

    # ------------------------------------------------------------------
    # SSE Generator
    # ------------------------------------------------------------------

    async def sse_generator(self) -> AsyncGenerator[str, None]:
        """Async generator that yields Server-Sent Events for one subscriber."""
        subscription = self.subscribe()
        try:
            yield ": connected\n\n"
            while True:
                event = await subscription.next()
                yield event.to_sse()
        finally:
            self.unsubscribe(subscription)
