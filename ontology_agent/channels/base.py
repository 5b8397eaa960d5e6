"""
Notification Channel Interface

A channel delivers one NotificationEvent to one consumer and reports
whether it was acknowledged. Retry policy lives in NotificationDispatcher,
not in channels.
"""

from abc import ABC, abstractmethod

from ontology_agent.types.notifications import NotificationEvent, PublishAck


class NotificationChannel(ABC):
    """Abstract interface for UI notification transports."""

    @abstractmethod
    async def publish(self, consumer_id: str, event: NotificationEvent) -> PublishAck:
        """
        Publish one event.

        Raises on transport failure; returns acked=False when the transport
        worked but the consumer did not take the event.
        """
        ...

    async def close(self) -> None:
        """Release resources. Default: nothing to do."""
