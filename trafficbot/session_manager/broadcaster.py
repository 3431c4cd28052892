"""Publish/subscribe fan-out of session events to connected observers.

Publishing never blocks: each subscriber owns a bounded queue and a
message is dropped for any subscriber whose queue is full. Observers only
see messages published after they subscribed.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import dataclass
from typing import Any

from ..config import BROADCAST_QUEUE_SIZE
from ..models.session import BotStatusEvent

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

BOT_STATUS = "bot-status"
BOT_UPDATE = "bot-update"
BOT_COMMAND = "bot-command"


@dataclass(frozen=True)
class BroadcastMessage:
    event: str
    data: Any

    def to_json(self) -> str:
        return json.dumps({"event": self.event, "data": self.data})


class Subscription:
    """One observer's view of the broadcast stream."""

    def __init__(self, broadcaster: StatusBroadcaster, max_size: int):
        self._broadcaster = broadcaster
        self._queue: asyncio.Queue[BroadcastMessage] = asyncio.Queue(maxsize=max_size)
        self.closed = False

    def _offer(self, message: BroadcastMessage) -> bool:
        try:
            self._queue.put_nowait(message)
            return True
        except asyncio.QueueFull:
            return False

    async def get(self) -> BroadcastMessage:
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self):
        if not self.closed:
            self.closed = True
            self._broadcaster.unsubscribe(self)

    def __aiter__(self):
        return self

    async def __anext__(self) -> BroadcastMessage:
        if self.closed:
            raise StopAsyncIteration
        return await self.get()


class StatusBroadcaster:
    """Fire-and-forget broadcast to every current subscriber."""

    def __init__(self, max_queue_size: int = BROADCAST_QUEUE_SIZE):
        self._max_queue_size = max_queue_size
        self._subscribers: set[Subscription] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> Subscription:
        subscription = Subscription(self, self._max_queue_size)
        self._subscribers.add(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription):
        self._subscribers.discard(subscription)

    def publish(self, event: str, data: Any) -> int:
        """Send a message to all subscribers. Returns how many received it."""
        message = BroadcastMessage(event, data)
        delivered = 0
        for subscription in list(self._subscribers):
            if subscription._offer(message):
                delivered += 1
            else:
                logger.warning(f"Subscriber queue full, dropping '{event}' message")
        return delivered

    def publish_status(self, status: BotStatusEvent) -> int:
        return self.publish(BOT_STATUS, status.to_payload())

    def relay_command(self, data: Any) -> int:
        """Re-broadcast an observer's command verbatim as a bot update."""
        logger.info(f"Bot command received: {data}")
        return self.publish(BOT_UPDATE, data)
