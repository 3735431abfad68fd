"""Tests for the composition root (build_engine, lifespan, SQLite path checks)."""

import asyncio
import logging
from pathlib import Path

import pytest

from medialedger.config import (
    DatabaseSettings,
    NotificationSettings,
    Settings,
    StorageSettings,
)
from medialedger.domain.exceptions import ConfigurationError
from medialedger.domain.ports.notification import Notification
from medialedger.infrastructure.bookmarks import (
    DocumentPickerBookmarkStore,
    ShareExtensionBookmarkStore,
)
from medialedger.infrastructure.lifecycle import (
    _validate_sqlite_path,
    build_bookmark_stores,
    build_engine,
    lifespan,
)
from medialedger.infrastructure.notifications import (
    InAppNotificationProvider,
    WebhookNotificationProvider,
)


@pytest.fixture
def restore_root_logger():
    """lifespan() configures logging; put the root handlers back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestValidateSqlitePath:
    def test_memory_database_is_ignored(self, settings: Settings) -> None:
        _validate_sqlite_path(settings)

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        db_file = tmp_path / "data" / "catalog.db"
        settings = Settings(database=DatabaseSettings(url=f"sqlite+aiosqlite:///{db_file}"))

        _validate_sqlite_path(settings)

        assert db_file.parent.is_dir()
        assert not db_file.exists()
        assert list(db_file.parent.iterdir()) == []

    def test_unusable_directory_raises(self, tmp_path: Path) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")
        settings = Settings(
            database=DatabaseSettings(url=f"sqlite+aiosqlite:///{blocker}/catalog.db")
        )

        with pytest.raises(ConfigurationError, match="database directory"):
            _validate_sqlite_path(settings)


class TestBuildEngine:
    def test_bookmark_stores_in_source_order(self, settings: Settings) -> None:
        stores = build_bookmark_stores(settings)

        assert [type(s) for s in stores] == [
            DocumentPickerBookmarkStore,
            ShareExtensionBookmarkStore,
        ]

    def test_share_store_is_optional(self, tmp_path: Path) -> None:
        settings = Settings(storage=StorageSettings(documents_path=tmp_path))

        stores = build_bookmark_stores(settings)

        assert [type(s) for s in stores] == [DocumentPickerBookmarkStore]

    def test_wires_every_component(self, settings: Settings) -> None:
        engine = build_engine(settings)

        providers = engine.notification_service.providers
        assert providers[0] is engine.inapp_notifications
        assert isinstance(providers[0], InAppNotificationProvider)
        assert isinstance(providers[1], WebhookNotificationProvider)
        assert engine.reconciler.in_progress is False
        assert engine.worker.is_running is False
        assert engine.worker.get_stats()["interval_seconds"] == settings.reconcile.interval_seconds

    async def test_webhook_unconfigured_by_default(self, settings: Settings) -> None:
        engine = build_engine(settings)

        webhook = engine.notification_service.providers[1]
        assert await webhook.is_configured() is False

    async def test_webhook_configured_from_settings(self, tmp_path: Path) -> None:
        settings = Settings(
            storage=StorageSettings(documents_path=tmp_path),
            notifications=NotificationSettings(webhook_url="http://localhost:9/hook"),
        )
        engine = build_engine(settings)

        webhook = engine.notification_service.providers[1]
        assert await webhook.is_configured() is True
        await engine.database.close()

    async def test_uses_given_database(self, settings: Settings, database) -> None:
        engine = build_engine(settings, database=database)

        assert engine.database is database


class TestLifespan:
    async def test_sweeps_and_shuts_down(
        self, settings: Settings, restore_root_logger
    ) -> None:
        events: list[Notification] = []

        async with lifespan(settings, start_worker=True, create_schema=True) as engine:
            engine.inapp_notifications.subscribe(events.append)
            for _ in range(200):
                if engine.worker.get_stats()["sweeps_completed"] >= 1:
                    break
                await asyncio.sleep(0.01)

            stats = engine.worker.get_stats()
            assert stats["sweeps_completed"] == 1
            assert stats["tracks_removed"] == 0
            assert engine.reconciler.last_report is not None
            worker = engine.worker

        assert worker.is_running is False
        assert events == []

    async def test_without_worker(self, settings: Settings, restore_root_logger) -> None:
        async with lifespan(settings, start_worker=False, create_schema=True) as engine:
            report = await engine.reconciler.sweep()

        assert report is not None
        assert report.checked == 0
        assert engine.worker.is_running is False
