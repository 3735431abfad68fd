"""Notification providers for the catalog-changed event."""

from .inapp_provider import InAppNotificationProvider
from .webhook_provider import WebhookNotificationProvider

__all__ = ["InAppNotificationProvider", "WebhookNotificationProvider"]
