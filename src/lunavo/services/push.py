"""Push delivery through the Expo push service.

``PushClient`` implements the ``Notifier`` port: one HTTP request per message,
a ticket id on success and ``PushDeliveryError`` for anything else.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from lunavo.core.enums import Priority
from lunavo.core.settings import settings
from lunavo.services.ports import PushDeliveryError, PushMessage

logger = logging.getLogger(__name__)

HTTP_BAD_REQUEST = 400
TICKET_OK = "ok"


@dataclass(frozen=True)
class PushConfig:
    """Immutable configuration for push delivery."""

    enabled: bool
    api_url: str
    access_token: str | None
    timeout_seconds: float


def load_push_config() -> PushConfig:
    """Build configuration object from global settings."""
    return PushConfig(
        enabled=settings.push_enabled,
        api_url=settings.push_api_url,
        access_token=settings.push_access_token,
        timeout_seconds=settings.push_http_timeout_seconds,
    )


def build_payload(message: PushMessage) -> dict[str, Any]:
    """Translate a message into the Expo push request body."""
    return {
        "to": message.token,
        "title": message.title,
        "body": message.body,
        "data": dict(message.data),
        "sound": "default",
        "priority": "high" if message.priority.weight >= Priority.HIGH.weight else "default",
    }


class PushClient:
    """HTTP client wrapper for the push provider."""

    def __init__(
        self,
        config: PushConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or load_push_config()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self.config.enabled and bool(self.config.api_url)

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                    transport=self._transport,
                )
        return self._client

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "Content-Type": "application/json",
        }
        if self.config.access_token:
            headers["Authorization"] = f"Bearer {self.config.access_token}"
        return headers

    async def push(self, message: PushMessage) -> str | None:
        """Send one push message.

        Returns:
            The provider ticket id (empty string if the provider sent none).

        Raises:
            PushDeliveryError: If push is disabled, the request fails or the
                provider returns an error ticket.
        """
        if not self.enabled:
            raise PushDeliveryError("Push delivery is not enabled")

        client = await self._ensure_client()
        try:
            response = await client.post(
                self.config.api_url,
                json=build_payload(message),
                headers=self._headers(),
            )
        except httpx.HTTPError as exc:
            raise PushDeliveryError(f"Push request failed: {exc}") from exc

        if response.status_code >= HTTP_BAD_REQUEST:
            raise PushDeliveryError(f"Push provider responded with {response.status_code}")

        try:
            body = response.json()
        except ValueError as exc:
            raise PushDeliveryError("Push provider returned a non-JSON body") from exc

        ticket = body.get("data") if isinstance(body, dict) else None
        if isinstance(ticket, list):
            ticket = ticket[0] if ticket else None
        if not isinstance(ticket, dict) or ticket.get("status") != TICKET_OK:
            details = ticket.get("message") if isinstance(ticket, dict) else body
            raise PushDeliveryError(f"Push rejected: {details}")

        ticket_id = str(ticket.get("id") or "")
        logger.debug("Push ticket %s issued for %s", ticket_id or "<none>", message.title)
        return ticket_id

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""
        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None


class _PushClientSingleton:
    """Singleton wrapper for PushClient."""

    _instance: PushClient | None = None

    @classmethod
    def get_instance(cls) -> PushClient:
        if cls._instance is None:
            cls._instance = PushClient()
        return cls._instance


def get_push_client() -> PushClient:
    """Return a singleton push client instance."""
    return _PushClientSingleton.get_instance()
