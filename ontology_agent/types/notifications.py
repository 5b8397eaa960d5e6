"""
Notification Types

Events pushed to a UI consumer, channel acknowledgements, and the outcome
of a bounded-retry delivery.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from ontology_agent.errors import ErrorKind


class NotificationType(str, Enum):
    PROGRESS = "progress"
    COMPLETE = "complete"
    ERROR = "error"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationEvent(BaseModel):
    """
    A progress/result event for one consumer.

    Delivery is at-least-once; consumers must tolerate duplicates.
    """

    consumer_id: str
    type: NotificationType
    payload: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_utcnow)


class PublishAck(BaseModel):
    """
    Channel response to a single publish.

    Attributes:
        acked: The consumer received the event
        consumer_reachable: Whether the consumer was subscribed (None if unknown)
    """

    acked: bool
    consumer_reachable: bool | None = None


class DeliveryOutcome(BaseModel):
    """Result of NotificationDispatcher.deliver()."""

    delivered: bool
    attempts: int
    error_kind: ErrorKind | None = None
    last_error: str | None = None
