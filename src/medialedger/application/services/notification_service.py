"""Notification service for the catalog-changed event.

Hey future me - this is the ONLY way the engine tells the outside world something changed.
The reconciler calls notify_catalog_changed() at most once per sweep (and only if something
was removed); the user-delete path calls it once per delete. It sends to ALL configured
providers in parallel and NEVER raises - a dead webhook must not turn a successful sweep
into a failed one.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from medialedger.domain.ports.notification import (
    INotificationProvider,
    Notification,
    NotificationResult,
    NotificationType,
)

logger = logging.getLogger(__name__)


class NotificationService:
    """Fan-out of notifications to every configured provider."""

    def __init__(self, providers: Sequence[INotificationProvider] = ()) -> None:
        """Initialize notification service.

        Args:
            providers: All known providers; unconfigured ones are skipped per send
        """
        self._providers = list(providers)

    @property
    def providers(self) -> list[INotificationProvider]:
        return list(self._providers)

    async def _configured_providers(self) -> list[INotificationProvider]:
        configured: list[INotificationProvider] = []
        for provider in self._providers:
            try:
                if await provider.is_configured():
                    configured.append(provider)
            except Exception as e:
                logger.warning("Failed to check provider %s: %s", provider.name, e)
        return configured

    async def send_notification(
        self,
        notification_type: NotificationType,
        data: dict[str, Any] | None = None,
    ) -> bool:
        """Send a notification to all configured providers.

        Args:
            notification_type: Type of notification
            data: Optional payload for providers that forward it

        Returns:
            True if at least one provider succeeded, or none is configured
        """
        notification = Notification(type=notification_type, data=data or {})
        logger.info("Notification: %s", notification_type.value)

        providers = [
            p for p in await self._configured_providers() if p.supports(notification_type)
        ]
        if not providers:
            logger.debug("No notification providers configured, logged only")
            return True

        results = await asyncio.gather(
            *(self._send_to_provider(p, notification) for p in providers)
        )

        successes = sum(1 for r in results if r.success)
        if successes < len(results):
            failed = [r.provider_name for r in results if not r.success]
            logger.warning(
                "%d/%d notification providers succeeded, failed: %s",
                successes,
                len(results),
                failed,
            )
        return successes > 0

    async def _send_to_provider(
        self, provider: INotificationProvider, notification: Notification
    ) -> NotificationResult:
        """Send to a single provider; provider errors become failed results."""
        try:
            return await provider.send(notification)
        except Exception as e:
            logger.error("Notification provider %s error: %s", provider.name, e)
            return NotificationResult(
                success=False,
                provider_name=provider.name,
                notification_type=notification.type,
                error=str(e),
            )

    async def notify_catalog_changed(self, **data: Any) -> bool:
        """Announce that catalog rows were removed. Never raises."""
        try:
            return await self.send_notification(NotificationType.CATALOG_CHANGED, data)
        except Exception:
            logger.exception("Failed to send catalog-changed notification")
            return False
