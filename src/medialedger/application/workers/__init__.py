"""Background workers."""

from .library_reconcile_worker import LibraryReconcileWorker

__all__ = ["LibraryReconcileWorker"]
