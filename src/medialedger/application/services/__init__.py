"""Application services."""

from .bookmark_resolver import BookmarkResolver
from .catalog_reconciler import CatalogReconciler
from .existence_verifier import ExistenceVerifier
from .library_cleanup_service import LibraryCleanupService
from .notification_service import NotificationService
from .scoped_access import SecurityScopedAccessor

__all__ = [
    "BookmarkResolver",
    "CatalogReconciler",
    "ExistenceVerifier",
    "LibraryCleanupService",
    "NotificationService",
    "SecurityScopedAccessor",
]
