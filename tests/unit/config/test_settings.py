"""Tests for Settings."""

from pathlib import Path

from medialedger.config import (
    DatabaseSettings,
    NotificationSettings,
    ReconcileSettings,
    Settings,
    StorageSettings,
)


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings()
        assert settings.reconcile.max_concurrent_checks == 8
        assert settings.reconcile.probe_bytes == 1024
        assert settings.reconcile.skip_when_container_unavailable is True
        assert settings.storage.icloud_container is None

    def test_nested_env_vars(self, monkeypatch) -> None:
        monkeypatch.setenv("RECONCILE__MAX_CONCURRENT_CHECKS", "3")
        monkeypatch.setenv("STORAGE__ICLOUD_CONTAINER", "/icloud/Documents")
        monkeypatch.setenv("NOTIFICATIONS__WEBHOOK_URL", "https://example.com/hook")

        settings = Settings()

        assert settings.reconcile.max_concurrent_checks == 3
        assert settings.storage.icloud_container == Path("/icloud/Documents")
        assert settings.notifications.webhook_url == "https://example.com/hook"

    def test_document_picker_bookmarks_default_into_documents(self) -> None:
        storage = StorageSettings(documents_path=Path("/app/Documents"))
        assert storage.document_picker_bookmarks_path == Path(
            "/app/Documents/ExternalFileBookmarks.plist"
        )
        explicit = StorageSettings(document_picker_bookmarks=Path("/other/b.plist"))
        assert explicit.document_picker_bookmarks_path == Path("/other/b.plist")

    def test_blank_webhook_url_is_none(self) -> None:
        assert NotificationSettings(webhook_url="   ").webhook_url is None

    def test_reconcile_values_are_validated(self) -> None:
        import pydantic
        import pytest

        with pytest.raises(pydantic.ValidationError):
            ReconcileSettings(max_concurrent_checks=0)

    def test_sqlite_db_path(self) -> None:
        file_settings = Settings(database=DatabaseSettings(url="sqlite+aiosqlite:///./data/lib.db"))
        assert file_settings._get_sqlite_db_path() == Path("./data/lib.db")

        memory = Settings(database=DatabaseSettings(url="sqlite+aiosqlite:///:memory:"))
        assert memory._get_sqlite_db_path() is None
