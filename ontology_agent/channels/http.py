"""
HTTP Channel

Pushes events to a UI backend:

    POST {base_url}/api/v1/chat/updates?sessionId={consumer_id}
    body: NotificationEvent JSON

Response body keys:
    success      -> PublishAck.acked
    clientFound  -> PublishAck.consumer_reachable
"""

from __future__ import annotations

import logging

import httpx

from ontology_agent.channels.base import NotificationChannel
from ontology_agent.types.notifications import NotificationEvent, PublishAck

logger = logging.getLogger(__name__)

UPDATES_PATH = "/api/v1/chat/updates"


class HttpNotificationChannel(NotificationChannel):
    """
    httpx-based channel.

    Args:
        base_url: Base URL of the UI backend
        timeout: Per-request timeout in seconds
        client: Optional pre-built AsyncClient (not closed by close())
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def publish(self, consumer_id: str, event: NotificationEvent) -> PublishAck:
        response = await self._get_client().post(
            f"{self.base_url}{UPDATES_PATH}",
            params={"sessionId": consumer_id},
            json=event.model_dump(mode="json"),
        )
        response.raise_for_status()

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        reachable = body.get("clientFound")
        return PublishAck(
            acked=bool(body.get("success", False)),
            consumer_reachable=bool(reachable) if reachable is not None else None,
        )

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
