"""Configuration module for MediaLedger."""

from .settings import (
    DatabaseSettings,
    NotificationSettings,
    ObservabilitySettings,
    ReconcileSettings,
    Settings,
    StorageSettings,
    get_settings,
)

__all__ = [
    "Settings",
    "DatabaseSettings",
    "StorageSettings",
    "ReconcileSettings",
    "NotificationSettings",
    "ObservabilitySettings",
    "get_settings",
]
