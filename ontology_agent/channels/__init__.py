"""
Notification Channels

    - NotificationChannel: publish(consumer_id, event) -> PublishAck
    - QueueNotificationChannel: in-process per-consumer asyncio queues
    - HttpNotificationChannel: POST to a UI backend with httpx
"""

from ontology_agent.channels.base import NotificationChannel
from ontology_agent.channels.queue import QueueNotificationChannel

__all__ = [
    "NotificationChannel",
    "QueueNotificationChannel",
    "HttpNotificationChannel",
]


def __getattr__(name: str):
    if name == "HttpNotificationChannel":
        from ontology_agent.channels.http import HttpNotificationChannel

        return HttpNotificationChannel
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
