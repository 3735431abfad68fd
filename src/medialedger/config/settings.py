"""Application settings loaded from environment variables and .env files."""

from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseModel):
    """Catalog database connection settings."""

    url: str = "sqlite+aiosqlite:///./medialedger.db"
    echo: bool = False
    pool_pre_ping: bool = True


# Hey future me - these paths mirror the app's storage layout! "Internal" means anything under
# icloud_container or documents_path. Everything else came from the document picker or the share
# extension and is only reachable through a bookmark. Bookmark files are READ-ONLY for us - the
# importer and the share extension write them.
class StorageSettings(BaseModel):
    """Locations of managed storage and of the two bookmark stores."""

    icloud_container: Path | None = None
    documents_path: Path = Path("./Documents")
    document_picker_bookmarks: Path | None = None
    share_extension_bookmarks: Path | None = None

    @property
    def document_picker_bookmarks_path(self) -> Path:
        """Path of the document-picker bookmark plist (defaults into Documents)."""
        if self.document_picker_bookmarks is not None:
            return self.document_picker_bookmarks
        return self.documents_path / "ExternalFileBookmarks.plist"


class ReconcileSettings(BaseModel):
    """Tuning for reconciliation sweeps."""

    interval_seconds: int = Field(default=300, ge=1)
    max_concurrent_checks: int = Field(default=8, ge=1)
    probe_bytes: int = Field(default=1024, ge=1)
    skip_when_container_unavailable: bool = True
    verify_relationships: bool = True


class NotificationSettings(BaseModel):
    """Delivery of the "catalog changed" event."""

    webhook_url: str | None = None
    webhook_timeout: float = 10.0

    @field_validator("webhook_url")
    @classmethod
    def _blank_url_is_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value


class ObservabilitySettings(BaseModel):
    """Logging configuration."""

    log_level: str = "INFO"
    log_json_format: bool = False


class Settings(BaseSettings):
    """Root settings object.

    Nested values come from env vars with ``__`` as delimiter, e.g.
    ``STORAGE__ICLOUD_CONTAINER=/var/mobile/...`` or
    ``RECONCILE__MAX_CONCURRENT_CHECKS=4``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    app_name: str = "medialedger"
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    reconcile: ReconcileSettings = Field(default_factory=ReconcileSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    def _get_sqlite_db_path(self) -> Path | None:
        """Return the SQLite file path, or None for in-memory / non-SQLite URLs."""
        url = self.database.url
        if not url.startswith("sqlite"):
            return None
        _, _, raw_path = url.partition(":///")
        if not raw_path or raw_path == ":memory:" or ":memory:" in url:
            return None
        return Path(raw_path)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings (cached after first call)."""
    return Settings()
