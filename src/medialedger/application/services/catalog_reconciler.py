"""Catalog reconciliation: prove every track still exists, remove the ones that don't.

Hey future me - a sweep is TWO phases and the order is sacred:

1. SCANNING (read-only): load every track, verify them with bounded fan-out, and collect the
   gone ones. Nothing is written here, so cancelling or crashing mid-scan costs nothing.
2. CASCADE_DELETING (sequential): one writer transaction per gone track
   (favorites -> playlist items -> track -> orphaned album -> orphaned artists). One failing
   track is logged and skipped; the others still go. It stays in the catalog and the next
   sweep retries it.

Then exactly ONE catalog-changed notification if anything was removed. A second sweep with
no file-system change removes nothing and notifies nothing.

Sweeps are not reentrant: calling sweep() while one runs returns None immediately (not queued).
"""

import asyncio
import logging
import os
from datetime import UTC, datetime

from medialedger.application.services.existence_verifier import ExistenceVerifier
from medialedger.application.services.library_cleanup_service import LibraryCleanupService
from medialedger.application.services.notification_service import NotificationService
from medialedger.domain.entities import (
    CascadeResult,
    Existence,
    SweepReport,
    SweepState,
    Track,
)
from medialedger.domain.exceptions import CascadeWriteFailedError
from medialedger.infrastructure.observability.logging import set_sweep_id, sweep_id_var
from medialedger.infrastructure.persistence import Database, TrackRepository

logger = logging.getLogger(__name__)


class CatalogReconciler:
    """Orchestrates reconciliation sweeps over the whole catalog."""

    def __init__(
        self,
        database: Database,
        verifier: ExistenceVerifier,
        cleanup_service: LibraryCleanupService,
        notification_service: NotificationService,
        max_concurrent_checks: int = 8,
        icloud_container: str | os.PathLike[str] | None = None,
        skip_when_container_unavailable: bool = True,
        verify_relationships: bool = False,
    ) -> None:
        """Initialize reconciler.

        Args:
            database: Catalog database
            verifier: Per-track existence checks
            cleanup_service: Per-track cascade delete
            notification_service: Receives the single catalog-changed event
            max_concurrent_checks: Upper bound of verifications in flight
            icloud_container: Managed cloud container, if the user has one
            skip_when_container_unavailable: Skip sweeps while the container is missing
            verify_relationships: Log a relationship report after each sweep
        """
        if max_concurrent_checks < 1:
            raise ValueError("max_concurrent_checks must be positive")
        self._db = database
        self._verifier = verifier
        self._cleanup = cleanup_service
        self._notifications = notification_service
        self._max_concurrent_checks = max_concurrent_checks
        self._icloud_container = (
            os.fspath(icloud_container) if icloud_container is not None else None
        )
        self._skip_when_container_unavailable = skip_when_container_unavailable
        self._verify_relationships = verify_relationships

        self._state = SweepState.IDLE
        self._cancel_requested = False
        self._last_report: SweepReport | None = None

    @property
    def state(self) -> SweepState:
        return self._state

    @property
    def in_progress(self) -> bool:
        """True while a sweep is running."""
        return self._state is not SweepState.IDLE

    @property
    def last_report(self) -> SweepReport | None:
        """Report of the most recent completed (or cancelled) sweep."""
        return self._last_report

    def cancel(self) -> None:
        """Ask the running sweep to stop at the next track boundary.

        During scanning nothing has been written, so the sweep just ends. During
        deletion the current track's cascade completes first. No-op when idle.
        """
        if self.in_progress:
            logger.info("Sweep cancellation requested")
            self._cancel_requested = True

    def _container_unavailable(self) -> bool:
        if self._icloud_container is None or not self._skip_when_container_unavailable:
            return False
        return not os.path.isdir(self._icloud_container)

    async def sweep(self) -> SweepReport | None:
        """Run one reconciliation sweep.

        Returns:
            SweepReport, or None if a sweep was already running or the sweep was
            skipped because the cloud container is unavailable
        """
        if self.in_progress:
            logger.debug("Sweep already in progress, ignoring trigger")
            return None

        # Claim the flag before the first await so a concurrent call sees it
        self._state = SweepState.SCANNING
        self._cancel_requested = False
        token = sweep_id_var.set("")
        try:
            report = SweepReport(sweep_id=set_sweep_id())

            if await asyncio.to_thread(self._container_unavailable):
                logger.warning(
                    "Cloud container %s unavailable, skipping sweep", self._icloud_container
                )
                return None

            gone = await self._scan(report)
            if gone is None:
                report.cancelled = True
                logger.info("Sweep cancelled during scan after %d checks", report.checked)
                return self._finish(report)

            self._state = SweepState.COLLECTING
            report.gone = [track.stable_id for track in gone]
            logger.info(
                "Scan complete: %d tracks checked, %d gone", report.checked, len(gone)
            )

            self._state = SweepState.CASCADE_DELETING
            try:
                await self._cascade_delete(gone, report)
            except asyncio.CancelledError:
                report.cancelled = True
                if report.removed:
                    report.notified = await self._notifications.notify_catalog_changed()
                self._finish(report)
                raise

            if report.removed:
                report.notified = await self._notifications.notify_catalog_changed()

            if self._verify_relationships:
                try:
                    await self._cleanup.verify_relationships()
                except Exception:
                    logger.exception("Relationship verification failed")

            return self._finish(report)
        finally:
            self._state = SweepState.IDLE
            self._cancel_requested = False
            sweep_id_var.reset(token)

    def _finish(self, report: SweepReport) -> SweepReport:
        report.finished_at = datetime.now(UTC)
        self._last_report = report
        logger.info(
            "Sweep finished in %.2fs: checked=%d gone=%d removed=%d failed=%d "
            "albums_deleted=%d artists_deleted=%d cancelled=%s notified=%s",
            report.duration_seconds,
            report.checked,
            len(report.gone),
            len(report.removed),
            len(report.failed),
            report.albums_deleted,
            report.artists_deleted,
            report.cancelled,
            report.notified,
        )
        return report

    async def _scan(self, report: SweepReport) -> list[Track] | None:
        """Verify every track. Returns the gone tracks, or None if cancelled."""
        async with self._db.session_scope() as session:
            tracks = await TrackRepository(session).list_all()

        semaphore = asyncio.Semaphore(self._max_concurrent_checks)

        async def check(track: Track) -> Existence | None:
            async with semaphore:
                if self._cancel_requested:
                    return None
                report.checked += 1
                try:
                    existence = await self._verifier.verify(track)
                except Exception:
                    # unexpected bug, not a verdict: keep the track
                    logger.exception("Verification crashed for %s", track.path)
                    return Existence.EXISTS
                logger.debug("%s -> %s", track.path, existence.value)
                return existence

        results = await asyncio.gather(*(check(track) for track in tracks))
        if self._cancel_requested:
            return None
        return [
            track
            for track, existence in zip(tracks, results, strict=True)
            if existence is Existence.GONE
        ]

    async def _cascade_delete(self, gone: list[Track], report: SweepReport) -> None:
        for track in gone:
            if self._cancel_requested:
                report.cancelled = True
                logger.info(
                    "Sweep cancelled, %d gone track(s) left for the next sweep",
                    len(gone) - len(report.removed) - len(report.failed),
                )
                return

            logger.info("Removing track %s (%s)", track.stable_id, track.path)
            # shield: a cancelled sweep still finishes the cascade of the current track
            task = asyncio.ensure_future(
                self._cleanup.remove_track(track.stable_id, expected_path=track.path)
            )
            try:
                result = await asyncio.shield(task)
            except asyncio.CancelledError:
                self._record(report, track, await self._settle(task, track))
                raise
            except CascadeWriteFailedError as e:
                logger.error("%s (path: %s)", e.message, track.path, exc_info=e)
                report.failed.append(track.stable_id)
                continue
            except Exception:
                logger.exception("Cascade delete crashed for %s", track.path)
                report.failed.append(track.stable_id)
                continue
            self._record(report, track, result)

    async def _settle(
        self, task: "asyncio.Future[CascadeResult]", track: Track
    ) -> CascadeResult | None:
        """Wait for a shielded cascade to finish; None if it failed."""
        try:
            return await task
        except CascadeWriteFailedError as e:
            logger.error("%s (path: %s)", e.message, track.path, exc_info=e)
            return None
        except Exception:
            logger.exception("Cascade delete crashed for %s", track.path)
            return None

    @staticmethod
    def _record(report: SweepReport, track: Track, result: CascadeResult | None) -> None:
        if result is None:
            report.failed.append(track.stable_id)
            return
        if result.track_deleted:
            report.removed.append(track.stable_id)
            report.albums_deleted += int(result.album_deleted)
            report.artists_deleted += result.artists_deleted
