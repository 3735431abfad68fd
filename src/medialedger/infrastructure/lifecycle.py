"""Composition root and startup/shutdown handling.

Hey future me - this is the ONLY place that knows how the pieces fit together. Every service
gets its collaborators through its constructor, there are no module-level singletons. Tests
build their own graph with fakes; the host app calls lifespan() (or build_engine()) once.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass

from medialedger.application.services import (
    BookmarkResolver,
    CatalogReconciler,
    ExistenceVerifier,
    LibraryCleanupService,
    NotificationService,
    SecurityScopedAccessor,
)
from medialedger.application.workers import LibraryReconcileWorker
from medialedger.config import Settings, get_settings
from medialedger.domain.exceptions import ConfigurationError
from medialedger.domain.ports import IBookmarkDecoder, IBookmarkStore, IScopedResourceGrant
from medialedger.domain.value_objects import ProvenanceClassifier
from medialedger.infrastructure.bookmarks import (
    DocumentPickerBookmarkStore,
    PortableBookmarkCodec,
    ShareExtensionBookmarkStore,
)
from medialedger.infrastructure.filesystem import PosixScopedGrant
from medialedger.infrastructure.notifications import (
    InAppNotificationProvider,
    WebhookNotificationProvider,
)
from medialedger.infrastructure.observability import configure_logging
from medialedger.infrastructure.persistence import Database

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationEngine:
    """Everything a host application needs, fully wired."""

    settings: Settings
    database: Database
    inapp_notifications: InAppNotificationProvider
    notification_service: NotificationService
    cleanup_service: LibraryCleanupService
    reconciler: CatalogReconciler
    worker: LibraryReconcileWorker


# Hey future me, this validates SQLite paths BEFORE we try creating the DB engine! SQLite needs
# to create -journal/-wal/-shm files next to the .db file, so we check the directory is
# writable. We DON'T pre-create the .db file - SQLite initializes it on first connection.
def _validate_sqlite_path(settings: Settings) -> None:
    """Validate SQLite database path accessibility before engine creation."""
    db_path = settings._get_sqlite_db_path()
    if db_path is None:
        return

    try:
        if db_path.parent and str(db_path.parent) != ".":
            db_path.parent.mkdir(parents=True, exist_ok=True)
            logger.debug("Ensured SQLite parent directory exists: %s", db_path.parent)
    except OSError as exc:
        raise ConfigurationError(
            f"Unable to create SQLite database directory '{db_path.parent}': {exc}. "
            "Update DATABASE__URL or adjust directory permissions."
        ) from exc

    try:
        test_file = db_path.parent / f".{db_path.stem}_write_test"
        test_file.write_bytes(b"test")
        test_file.unlink()
    except OSError as exc:
        raise ConfigurationError(
            f"Unable to write files in database directory '{db_path.parent}': {exc}. "
            "SQLite requires write permissions to create database and journal files."
        ) from exc


def build_bookmark_stores(settings: Settings) -> list[IBookmarkStore]:
    """Bookmark stores configured in settings (document picker always, share optional)."""
    stores: list[IBookmarkStore] = [
        DocumentPickerBookmarkStore(settings.storage.document_picker_bookmarks_path)
    ]
    if settings.storage.share_extension_bookmarks is not None:
        stores.append(ShareExtensionBookmarkStore(settings.storage.share_extension_bookmarks))
    return stores


def build_engine(
    settings: Settings,
    database: Database | None = None,
    grant: IScopedResourceGrant | None = None,
    decoder: IBookmarkDecoder | None = None,
) -> ReconciliationEngine:
    """Wire the reconciliation engine from settings.

    Args:
        settings: Application settings
        database: Existing Database (default: a new one from settings)
        grant: Platform grant adapter (default: PosixScopedGrant)
        decoder: Platform bookmark decoder (default: PortableBookmarkCodec)

    Returns:
        The wired engine (worker not started)
    """
    db = database or Database(settings)

    inapp = InAppNotificationProvider()
    notification_service = NotificationService(
        [
            inapp,
            WebhookNotificationProvider(
                settings.notifications.webhook_url,
                timeout=settings.notifications.webhook_timeout,
            ),
        ]
    )

    classifier = ProvenanceClassifier(
        documents_path=settings.storage.documents_path,
        icloud_container=settings.storage.icloud_container,
    )
    resolver = BookmarkResolver(
        build_bookmark_stores(settings), decoder or PortableBookmarkCodec()
    )
    accessor = SecurityScopedAccessor(
        grant or PosixScopedGrant(), probe_bytes=settings.reconcile.probe_bytes
    )
    verifier = ExistenceVerifier(classifier, resolver, accessor)

    cleanup = LibraryCleanupService(db, notification_service)
    reconciler = CatalogReconciler(
        db,
        verifier,
        cleanup,
        notification_service,
        max_concurrent_checks=settings.reconcile.max_concurrent_checks,
        icloud_container=settings.storage.icloud_container,
        skip_when_container_unavailable=settings.reconcile.skip_when_container_unavailable,
        verify_relationships=settings.reconcile.verify_relationships,
    )
    worker = LibraryReconcileWorker(
        reconciler, interval_seconds=settings.reconcile.interval_seconds
    )

    return ReconciliationEngine(
        settings=settings,
        database=db,
        inapp_notifications=inapp,
        notification_service=notification_service,
        cleanup_service=cleanup,
        reconciler=reconciler,
        worker=worker,
    )


@asynccontextmanager
async def lifespan(
    settings: Settings | None = None,
    start_worker: bool = True,
    create_schema: bool = False,
) -> AsyncGenerator[ReconciliationEngine, None]:
    """Start the engine, yield it, and shut everything down on exit.

    Args:
        settings: Settings (default: get_settings())
        start_worker: Run the periodic sweep worker in the background
        create_schema: Create tables directly instead of relying on Alembic
    """
    settings = settings or get_settings()

    configure_logging(
        log_level=settings.observability.log_level,
        json_format=settings.observability.log_json_format,
        app_name=settings.app_name,
    )
    logger.info("Starting %s", settings.app_name)

    _validate_sqlite_path(settings)
    engine = build_engine(settings)
    worker_task: asyncio.Task[None] | None = None
    try:
        if create_schema:
            await engine.database.create_tables()
            logger.info("Database schema created")

        if start_worker:
            worker_task = asyncio.create_task(engine.worker.start())
            logger.info("Library reconcile worker started")

        yield engine
    finally:
        logger.info("Shutting down %s", settings.app_name)
        if worker_task is not None:
            engine.worker.stop()
            worker_task.cancel()
            with suppress(asyncio.CancelledError):
                await worker_task
        await engine.database.close()
        logger.info("Shutdown complete")
