"""
In-Process Queue Channel

Each subscribed consumer gets its own asyncio.Queue. Publishing to a
consumer with no subscription is reported as unreachable, mirroring a
server-sent-events client map.
"""

from __future__ import annotations

import asyncio
import logging

from ontology_agent.channels.base import NotificationChannel
from ontology_agent.types.notifications import NotificationEvent, PublishAck

logger = logging.getLogger(__name__)


class QueueNotificationChannel(NotificationChannel):
    """
    Fan-out of events to per-consumer asyncio queues.

    Example:
        >>> channel = QueueNotificationChannel()
        >>> queue = channel.subscribe("session-1")
        >>> await channel.publish("session-1", event)
        >>> (await queue.get()).type
        <NotificationType.PROGRESS: 'progress'>
    """

    def __init__(self, maxsize: int = 0) -> None:
        self._maxsize = maxsize
        self._queues: dict[str, asyncio.Queue[NotificationEvent]] = {}

    def subscribe(self, consumer_id: str) -> asyncio.Queue[NotificationEvent]:
        """Register a consumer (idempotent) and return its queue."""
        if consumer_id not in self._queues:
            self._queues[consumer_id] = asyncio.Queue(maxsize=self._maxsize)
        return self._queues[consumer_id]

    def unsubscribe(self, consumer_id: str) -> None:
        self._queues.pop(consumer_id, None)

    @property
    def consumers(self) -> list[str]:
        return list(self._queues)

    async def publish(self, consumer_id: str, event: NotificationEvent) -> PublishAck:
        queue = self._queues.get(consumer_id)
        if queue is None:
            logger.debug(f"No subscriber for consumer {consumer_id}")
            return PublishAck(acked=False, consumer_reachable=False)
        try:
            queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.debug(f"Queue full for consumer {consumer_id}")
            return PublishAck(acked=False, consumer_reachable=True)
        return PublishAck(acked=True, consumer_reachable=True)
