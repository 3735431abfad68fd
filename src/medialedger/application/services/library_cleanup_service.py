"""Library cleanup service: the per-track cascade delete and catalog integrity checks.

Hey future me - this service handles DESTRUCTIVE operations! Both the reconciler and the
user "delete file" action go through remove_track(), so the catalog invariants hold no
matter who deletes:
- no Favorite / PlaylistItem points at a missing track
- no Album without tracks
- no Artist without tracks AND without albums
Playlists themselves are never collected, an empty playlist stays visible.
"""

import asyncio
import logging
import os
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from medialedger.application.services.notification_service import NotificationService
from medialedger.domain.entities import CascadeResult, RelationshipReport
from medialedger.domain.exceptions import CascadeWriteFailedError, EntityNotFoundException
from medialedger.domain.value_objects import compute_stable_id
from medialedger.infrastructure.persistence import (
    AlbumModel,
    AlbumRepository,
    ArtistModel,
    ArtistRepository,
    Database,
    FavoriteModel,
    FavoriteRepository,
    PlaylistItemModel,
    PlaylistRepository,
    TrackModel,
    TrackRepository,
    with_db_retry,
)

logger = logging.getLogger(__name__)


class LibraryCleanupService:
    """Cascade deletes and relationship verification over the catalog."""

    def __init__(
        self,
        database: Database,
        notification_service: NotificationService | None = None,
    ) -> None:
        """Initialize cleanup service.

        Args:
            database: Catalog database (writes go through its writer())
            notification_service: Used by delete_track() to announce the change
        """
        self._db = database
        self._notifications = notification_service

    async def remove_track(
        self, stable_id: str, expected_path: str | None = None
    ) -> CascadeResult:
        """Delete one track and everything that only existed because of it.

        Runs as ONE transaction under the catalog writer lock. The track is re-read
        inside the transaction; if it is already gone, or ``expected_path`` is given
        and the row now points elsewhere (re-imported meanwhile), nothing is deleted.

        Args:
            stable_id: Track to remove
            expected_path: Path the caller judged; None skips the path re-check

        Returns:
            CascadeResult describing what was removed

        Raises:
            CascadeWriteFailedError: the transaction failed (after lock retries)
        """
        try:
            return await self._remove_track_with_retry(stable_id, expected_path)
        except SQLAlchemyError as e:
            raise CascadeWriteFailedError(stable_id, str(e)) from e
        except Exception as e:
            # driver errors SQLAlchemy does not wrap (aiosqlite "no active connection")
            raise CascadeWriteFailedError(stable_id, f"{type(e).__name__}: {e}") from e

    @with_db_retry(max_attempts=3)
    async def _remove_track_with_retry(
        self, stable_id: str, expected_path: str | None
    ) -> CascadeResult:
        async with self._db.writer() as session:
            return await self._cascade(session, stable_id, expected_path)

    async def _cascade(
        self, session: AsyncSession, stable_id: str, expected_path: str | None
    ) -> CascadeResult:
        result = CascadeResult(stable_id=stable_id)
        tracks = TrackRepository(session)
        albums = AlbumRepository(session)
        artists = ArtistRepository(session)

        track = await tracks.get_by_stable_id(stable_id)
        if track is None:
            logger.debug("Track %s already removed, skipping cascade", stable_id)
            return result
        if expected_path is not None and os.path.normpath(track.path) != os.path.normpath(
            expected_path
        ):
            logger.info(
                "Track %s was re-imported at %s, keeping it", stable_id, track.path
            )
            return result

        # Step 1: dependents, then the track itself
        result.favorites_removed = await FavoriteRepository(session).delete_for_track(stable_id)
        result.playlist_items_removed = await PlaylistRepository(
            session
        ).delete_items_for_track(stable_id)
        await tracks.delete_by_stable_id(stable_id)
        result.track_deleted = True

        # Step 2: album without tracks
        artist_candidates: list[int] = []
        if track.artist_id is not None:
            artist_candidates.append(track.artist_id)

        if track.album_id is not None and await tracks.count_by_album(track.album_id) == 0:
            album = await albums.get_by_id(track.album_id)
            if album is not None and album.id is not None:
                await albums.delete(album.id)
                result.album_deleted = True
                logger.debug("Deleted orphaned album %r (id=%s)", album.title, album.id)
                if album.artist_id is not None and album.artist_id not in artist_candidates:
                    artist_candidates.append(album.artist_id)

        # Step 3: artists without tracks AND albums
        for artist_id in artist_candidates:
            if await tracks.count_by_artist(artist_id):
                continue
            if await albums.count_by_artist(artist_id):
                continue
            deleted = await artists.delete(artist_id)
            if deleted:
                logger.debug("Deleted orphaned artist id=%s", artist_id)
            result.artists_deleted += deleted

        logger.info(
            "Removed track %s (%s): favorites=%d playlist_items=%d album_deleted=%s "
            "artists_deleted=%d",
            stable_id,
            track.path,
            result.favorites_removed,
            result.playlist_items_removed,
            result.album_deleted,
            result.artists_deleted,
        )
        return result

    @staticmethod
    def _remove_file(path: str) -> None:
        try:
            os.remove(path)
            logger.info("Deleted file from storage: %s", path)
        except FileNotFoundError:
            logger.debug("File already gone: %s", path)
        except OSError as e:
            # catalog row goes anyway, the next sweep would remove it otherwise
            logger.warning("Could not delete file %s: %s", path, e)

    async def delete_track(self, stable_id: str, remove_file: bool = True) -> CascadeResult:
        """User-initiated delete of a track (and optionally its file).

        Args:
            stable_id: Track to delete
            remove_file: Also delete the file from storage (best-effort)

        Returns:
            CascadeResult of the catalog removal

        Raises:
            EntityNotFoundException: no track with this stable id
            CascadeWriteFailedError: the catalog transaction failed
        """
        async with self._db.session_scope() as session:
            track = await TrackRepository(session).get_by_stable_id(stable_id)
        if track is None:
            raise EntityNotFoundException("Track", stable_id)

        if remove_file:
            await asyncio.to_thread(self._remove_file, track.path)

        result = await self.remove_track(stable_id)
        if result.track_deleted and self._notifications is not None:
            await self._notifications.notify_catalog_changed()
        return result

    async def verify_relationships(self) -> RelationshipReport:
        """Count integrity problems in the catalog. Read-only.

        Hey future me - this is a DIAGNOSTIC, it never repairs anything. With SQLite
        foreign keys on, the invalid_*_refs counters should stay 0; a non-zero value
        means someone wrote with foreign keys off.
        """
        report = RelationshipReport()
        async with self._db.session_scope() as session:

            async def count(stmt: Select[Any]) -> int:
                return (await session.execute(stmt)).scalar() or 0

            report.tracks = await count(select(func.count(TrackModel.id)))
            report.albums = await count(select(func.count(AlbumModel.id)))
            report.artists = await count(select(func.count(ArtistModel.id)))
            report.tracks_without_artist = await count(
                select(func.count(TrackModel.id)).where(TrackModel.artist_id.is_(None))
            )
            report.tracks_without_album = await count(
                select(func.count(TrackModel.id)).where(TrackModel.album_id.is_(None))
            )
            report.invalid_artist_refs = await count(
                select(func.count(TrackModel.id))
                .outerjoin(ArtistModel, TrackModel.artist_id == ArtistModel.id)
                .where(TrackModel.artist_id.is_not(None), ArtistModel.id.is_(None))
            )
            report.invalid_album_refs = await count(
                select(func.count(TrackModel.id))
                .outerjoin(AlbumModel, TrackModel.album_id == AlbumModel.id)
                .where(TrackModel.album_id.is_not(None), AlbumModel.id.is_(None))
            )
            report.dangling_favorites = await count(
                select(func.count(FavoriteModel.track_stable_id))
                .outerjoin(TrackModel, FavoriteModel.track_stable_id == TrackModel.stable_id)
                .where(TrackModel.id.is_(None))
            )
            report.dangling_playlist_items = await count(
                select(func.count(PlaylistItemModel.position))
                .outerjoin(
                    TrackModel, PlaylistItemModel.track_stable_id == TrackModel.stable_id
                )
                .where(TrackModel.id.is_(None))
            )

            rows = await session.execute(select(TrackModel.stable_id, TrackModel.path))
            report.identity_mismatches = sum(
                1 for stable_id, path in rows.all() if compute_stable_id(path) != stable_id
            )

        log = logger.info if report.is_consistent else logger.warning
        log(
            "Relationship check: tracks=%d albums=%d artists=%d without_artist=%d "
            "without_album=%d invalid_artist_refs=%d invalid_album_refs=%d "
            "dangling_favorites=%d dangling_playlist_items=%d identity_mismatches=%d",
            report.tracks,
            report.albums,
            report.artists,
            report.tracks_without_artist,
            report.tracks_without_album,
            report.invalid_artist_refs,
            report.invalid_album_refs,
            report.dangling_favorites,
            report.dangling_playlist_items,
            report.identity_mismatches,
        )
        return report
