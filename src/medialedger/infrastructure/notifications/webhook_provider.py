"""Webhook notification provider.

Hey future me - this posts catalog events to an external HTTP endpoint (a companion app,
n8n, a home server). The payload is deliberately tiny: observers are expected to re-query
the catalog, not to diff it from the event.

    POST <notifications.webhook_url>
    {"event": "catalog_changed", "timestamp": "...", "data": {...}}
"""

import logging
from typing import Any

import httpx

from medialedger import __version__
from medialedger.domain.ports.notification import (
    INotificationProvider,
    Notification,
    NotificationResult,
    NotificationType,
)

logger = logging.getLogger(__name__)


class WebhookNotificationProvider(INotificationProvider):
    """Generic JSON webhook."""

    def __init__(
        self,
        url: str | None,
        timeout: float = 10.0,
    ) -> None:
        """Initialize the provider.

        Args:
            url: Webhook URL; None or blank disables the provider
            timeout: Request timeout in seconds
        """
        self._url = url.strip() if url else ""
        self._timeout = timeout

    @property
    def name(self) -> str:
        """Provider name."""
        return "webhook"

    @property
    def supported_types(self) -> list[NotificationType]:
        """Webhook supports all notification types."""
        return []

    async def is_configured(self) -> bool:
        """Check if a webhook URL is set."""
        return bool(self._url)

    async def send(self, notification: Notification) -> NotificationResult:
        """Send notification via webhook.

        Args:
            notification: Notification to send

        Returns:
            NotificationResult with success status
        """
        if not await self.is_configured():
            return NotificationResult(
                success=False,
                provider_name=self.name,
                notification_type=notification.type,
                error="Webhook provider not configured",
            )

        try:
            await self._send_request(self._build_payload(notification))
            logger.info("Webhook sent: %s", notification.type.value)
            return NotificationResult(
                success=True,
                provider_name=self.name,
                notification_type=notification.type,
            )
        except httpx.HTTPError as e:
            logger.error("Webhook failed: %s", e)
            return NotificationResult(
                success=False,
                provider_name=self.name,
                notification_type=notification.type,
                error=str(e),
            )

    def _build_payload(self, notification: Notification) -> dict[str, Any]:
        payload: dict[str, Any] = {"event": notification.type.value}
        if notification.timestamp is not None:
            payload["timestamp"] = notification.timestamp.isoformat()
        if notification.data:
            payload["data"] = notification.data
        return payload

    async def _send_request(self, payload: dict[str, Any]) -> None:
        """POST the payload, raising httpx.HTTPError on transport or HTTP errors."""
        headers = {
            "Content-Type": "application/json",
            "User-Agent": f"medialedger/{__version__}",
        }
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(self._url, json=payload, headers=headers)
            response.raise_for_status()


__all__ = ["WebhookNotificationProvider"]
