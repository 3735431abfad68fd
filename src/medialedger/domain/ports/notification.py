"""Notification provider interfaces for the notification service.

Hey future me - this is the PORT for "something changed" events! The reconciler doesn't know
who listens (UI process, webhook, tests). NotificationService fans out to every configured
provider implementing INotificationProvider.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class NotificationType(str, Enum):
    """Types of notifications that can be sent."""

    # Fired once per sweep / user delete that removed at least one track. No payload -
    # observers re-query the catalog.
    CATALOG_CHANGED = "catalog_changed"


@dataclass
class Notification:
    """Notification data object passed to providers."""

    type: NotificationType
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime | None = None

    def __post_init__(self) -> None:
        """Set timestamp if not provided."""
        if self.timestamp is None:
            self.timestamp = datetime.now(UTC)


@dataclass
class NotificationResult:
    """Result of sending a notification."""

    success: bool
    provider_name: str
    notification_type: NotificationType
    error: str | None = None


class INotificationProvider(ABC):
    """Interface for notification providers.

    Each provider must:
    1. Have a unique name
    2. Declare which notification types it supports (empty list = all)
    3. Implement send() to deliver the notification
    4. Implement is_configured() so the service can skip unconfigured channels
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name for this provider (e.g., 'inapp', 'webhook')."""
        pass

    @property
    @abstractmethod
    def supported_types(self) -> list[NotificationType]:
        """List of notification types this provider can handle.

        Return empty list to support ALL types.
        """
        pass

    @abstractmethod
    async def send(self, notification: Notification) -> NotificationResult:
        """Send a notification through this provider."""
        pass

    @abstractmethod
    async def is_configured(self) -> bool:
        """Check if this provider is properly configured."""
        pass

    def supports(self, notification_type: NotificationType) -> bool:
        """Check if this provider supports a notification type."""
        supported = self.supported_types
        return len(supported) == 0 or notification_type in supported


__all__ = [
    "NotificationType",
    "Notification",
    "NotificationResult",
    "INotificationProvider",
]
