"""Library Reconcile Worker - runs reconciliation sweeps on a timer.

Hey future me - the reconciler itself never decides WHEN to sweep; this worker does.
It calls sweep() every interval_seconds, and trigger() wakes it early (manual "sync"
button, app coming to the foreground). A trigger that lands while a sweep runs is absorbed
by that sweep (run_once clears the wake flag when it returns), never queued as a second one.

A sweep that raises is logged and retried next cycle - the worker loop never dies.
"""

import asyncio
import contextlib
import logging
from datetime import UTC, datetime
from typing import Any

from medialedger.application.services.catalog_reconciler import CatalogReconciler

logger = logging.getLogger(__name__)


class LibraryReconcileWorker:
    """Periodic driver of CatalogReconciler.sweep().

    Lifecycle:
    - Created in lifecycle.py from Settings.reconcile
    - Runs as asyncio task via start()
    - Stopped via stop() during shutdown
    """

    def __init__(self, reconciler: CatalogReconciler, interval_seconds: int = 300) -> None:
        """Initialize the worker.

        Args:
            reconciler: The reconciler to drive
            interval_seconds: Seconds between sweeps (default: 300)
        """
        self._reconciler = reconciler
        self._interval = interval_seconds
        self._running = False
        self._wake = asyncio.Event()
        self._stats: dict[str, Any] = {
            "sweeps_completed": 0,
            "sweeps_failed": 0,
            "tracks_removed": 0,
            "last_sweep_at": None,
        }

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Run sweeps until stop() is called. The first sweep runs immediately."""
        self._running = True
        logger.info("LibraryReconcileWorker started (interval=%ds)", self._interval)

        while self._running:
            await self.run_once()
            if not self._running:
                break
            await self._sleep()

        logger.info("LibraryReconcileWorker stopped")

    async def run_once(self) -> None:
        """Run a single sweep, swallowing and logging failures."""
        try:
            report = await self._reconciler.sweep()
        except Exception as e:
            # Log but don't crash - we'll try again next cycle
            self._stats["sweeps_failed"] += 1
            logger.exception("LibraryReconcileWorker sweep error: %s", e)
            return
        finally:
            # triggers that arrived while sweeping are covered by this sweep
            self._wake.clear()

        if report is not None:
            self._stats["sweeps_completed"] += 1
            self._stats["tracks_removed"] += len(report.removed)
            self._stats["last_sweep_at"] = datetime.now(UTC)

    async def _sleep(self) -> None:
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._wake.wait(), timeout=self._interval)
        self._wake.clear()

    def trigger(self) -> None:
        """Request an immediate sweep (no-op effect if one is already running)."""
        logger.debug("Immediate sweep requested")
        self._wake.set()

    def stop(self) -> None:
        """Signal the worker to stop (and cancel a running sweep cooperatively)."""
        self._running = False
        self._reconciler.cancel()
        self._wake.set()
        logger.info("LibraryReconcileWorker stopping...")

    def get_stats(self) -> dict[str, Any]:
        """Get worker statistics."""
        return {
            **self._stats,
            "running": self._running,
            "interval_seconds": self._interval,
            "sweep_in_progress": self._reconciler.in_progress,
        }
