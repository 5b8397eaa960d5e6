"""
Notification Delivery

NotificationDispatcher:
    At-least-once delivery of one event with bounded retry. An attempt
    fails when the channel raises or does not acknowledge (including a
    reachable consumer that did not ack). With the defaults an event gets
    5 attempts with a fixed 1 s pause between them (4 pauses). After the
    last attempt the failure is logged and reported as
    NotificationUndeliverable; it is raised only when fail_on_undeliverable
    is set.

RunNotifier:
    Binds a dispatcher to one run and consumer. Every notification is its
    own durable step (notify-...), so replaying a run never resends.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from ontology_agent.errors import ErrorKind, NotificationUndeliverableError
from ontology_agent.types.notifications import (
    DeliveryOutcome,
    NotificationEvent,
    NotificationType,
)

if TYPE_CHECKING:
    from ontology_agent.agent.steps import StepExecutor
    from ontology_agent.channels.base import NotificationChannel
    from ontology_agent.config.settings import AgentConfig

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


class NotificationDispatcher:
    """
    Bounded-retry delivery over a NotificationChannel.

    Args:
        channel: Transport
        max_attempts: Attempts per event (>= 1)
        retry_delay: Fixed pause between attempts, seconds
        fail_on_undeliverable: Raise NotificationUndeliverableError on exhaustion
        sleep: Awaitable sleep, injectable for tests
    """

    def __init__(
        self,
        channel: "NotificationChannel",
        *,
        max_attempts: int = 5,
        retry_delay: float = 1.0,
        fail_on_undeliverable: bool = False,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self.channel = channel
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.fail_on_undeliverable = fail_on_undeliverable
        self._sleep = sleep

    @classmethod
    def from_config(
        cls,
        channel: "NotificationChannel",
        config: "AgentConfig",
    ) -> "NotificationDispatcher":
        return cls(
            channel,
            max_attempts=config.notification_max_attempts,
            retry_delay=config.notification_retry_delay,
            fail_on_undeliverable=config.notification_fail_on_undeliverable,
        )

    async def deliver(self, event: NotificationEvent) -> DeliveryOutcome:
        """
        Deliver one event.

        Returns:
            DeliveryOutcome; delivered=False after exhaustion

        Raises:
            NotificationUndeliverableError: only if fail_on_undeliverable
        """
        last_error: str | None = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                ack = await self.channel.publish(event.consumer_id, event)
            except Exception as e:
                last_error = f"{type(e).__name__}: {e}"
            else:
                if ack.acked:
                    if attempt > 1:
                        logger.debug(
                            f"Notification to {event.consumer_id} delivered on attempt {attempt}"
                        )
                    return DeliveryOutcome(delivered=True, attempts=attempt)
                last_error = (
                    "consumer not reachable"
                    if ack.consumer_reachable is False
                    else "not acknowledged"
                )

            if attempt < self.max_attempts:
                await self._sleep(self.retry_delay)

        message = (
            f"Notification to {event.consumer_id} undeliverable after "
            f"{self.max_attempts} attempts: {last_error}"
        )
        logger.warning(message)
        if self.fail_on_undeliverable:
            raise NotificationUndeliverableError(message, attempts=self.max_attempts)

        return DeliveryOutcome(
            delivered=False,
            attempts=self.max_attempts,
            error_kind=ErrorKind.NOTIFICATION_UNDELIVERABLE,
            last_error=last_error,
        )


class RunNotifier:
    """
    Per-run notifier. A no-op without a dispatcher or consumer.

    Args:
        dispatcher: Delivery policy (None disables notifications)
        steps: The run's step executor
        consumer_id: UI consumer (None disables notifications)
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher | None,
        steps: "StepExecutor",
        consumer_id: str | None,
    ) -> None:
        self.dispatcher = dispatcher
        self.steps = steps
        self.consumer_id = consumer_id
        self.outcomes: list[DeliveryOutcome] = []

    @property
    def enabled(self) -> bool:
        return self.dispatcher is not None and self.consumer_id is not None

    async def notify(
        self,
        step_suffix: str,
        type: NotificationType,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> DeliveryOutcome | None:
        """
        Send one notification as step "notify-{step_suffix}".

        Returns:
            The (possibly replayed) outcome, or None when disabled
        """
        dispatcher, consumer_id = self.dispatcher, self.consumer_id
        if dispatcher is None or consumer_id is None:
            return None

        async def _send() -> DeliveryOutcome:
            payload: dict[str, Any] = {"message": message}
            if data is not None:
                payload["data"] = data
            event = NotificationEvent(consumer_id=consumer_id, type=type, payload=payload)
            return await dispatcher.deliver(event)

        outcome = await self.steps.run(
            f"notify-{step_suffix}", _send, result_type=DeliveryOutcome
        )
        self.outcomes.append(outcome)
        return outcome
