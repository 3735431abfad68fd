"""In-process notification provider delivering events to registered subscribers.

Hey future me - this is how the UI side learns "the catalog changed, re-query"! Views (or
tests) subscribe a callback; on CATALOG_CHANGED every subscriber is called once. Callbacks may
be plain functions or coroutine functions. A broken subscriber is logged and skipped - it
must never stop the others from hearing about the change.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable

from medialedger.domain.ports.notification import (
    INotificationProvider,
    Notification,
    NotificationResult,
    NotificationType,
)

logger = logging.getLogger(__name__)

Subscriber = Callable[[Notification], Awaitable[None] | None]


class InAppNotificationProvider(INotificationProvider):
    """Fan-out to in-process subscribers."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    @property
    def name(self) -> str:
        """Provider name."""
        return "inapp"

    @property
    def supported_types(self) -> list[NotificationType]:
        """In-app supports all notification types."""
        return []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a subscriber.

        Args:
            callback: Called with the Notification (sync or async)

        Returns:
            A function that removes the subscription again
        """
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            self.unsubscribe(callback)

        return _unsubscribe

    def unsubscribe(self, callback: Subscriber) -> None:
        """Remove a subscriber (no-op if it was never registered)."""
        try:
            self._subscribers.remove(callback)
        except ValueError:
            pass

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def is_configured(self) -> bool:
        """Configured as soon as somebody listens."""
        return bool(self._subscribers)

    async def send(self, notification: Notification) -> NotificationResult:
        """Deliver the notification to every subscriber.

        Returns:
            NotificationResult, failed only if every subscriber raised
        """
        # snapshot: subscribers may unsubscribe while being called
        subscribers = list(self._subscribers)
        errors: list[str] = []

        for callback in subscribers:
            try:
                result = callback(notification)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.exception("In-app subscriber failed for %s", notification.type.value)
                errors.append(str(e))

        if subscribers and len(errors) == len(subscribers):
            return NotificationResult(
                success=False,
                provider_name=self.name,
                notification_type=notification.type,
                error="; ".join(errors),
            )

        logger.debug(
            "Delivered %s to %d in-app subscriber(s)",
            notification.type.value,
            len(subscribers) - len(errors),
        )
        return NotificationResult(
            success=True,
            provider_name=self.name,
            notification_type=notification.type,
        )


__all__ = ["InAppNotificationProvider", "Subscriber"]
