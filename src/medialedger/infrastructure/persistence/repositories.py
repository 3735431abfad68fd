"""Repository implementations for catalog entities."""

from __future__ import annotations

import re

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from medialedger.domain.entities import Album, Artist, Playlist, PlaylistItem, Track
from medialedger.domain.ports import (
    IAlbumRepository,
    IArtistRepository,
    IFavoriteRepository,
    IPlaylistRepository,
    ITrackRepository,
)

from .models import (
    AlbumModel,
    ArtistModel,
    FavoriteModel,
    PlaylistItemModel,
    PlaylistModel,
    TrackModel,
    epoch_now,
)


def _track_from_model(model: TrackModel) -> Track:
    return Track(
        id=model.id,
        stable_id=model.stable_id,
        path=model.path,
        title=model.title,
        album_id=model.album_id,
        artist_id=model.artist_id,
        track_no=model.track_no,
        disc_no=model.disc_no,
        duration_ms=model.duration_ms,
        file_size=model.file_size,
    )


class TrackRepository(ITrackRepository):
    """SQLAlchemy implementation of Track repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    async def add(self, track: Track) -> None:
        """Add a new track."""
        model = TrackModel(
            stable_id=track.stable_id,
            path=track.path,
            title=track.title,
            album_id=track.album_id,
            artist_id=track.artist_id,
            track_no=track.track_no,
            disc_no=track.disc_no,
            duration_ms=track.duration_ms,
            file_size=track.file_size,
        )
        self.session.add(model)
        await self.session.flush()
        track.id = model.id

    async def get_by_stable_id(self, stable_id: str) -> Track | None:
        """Get a track by stable id."""
        stmt = select(TrackModel).where(TrackModel.stable_id == stable_id)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return _track_from_model(model) if model else None

    async def list_all(self) -> list[Track]:
        """List every track, ordered by id for deterministic sweeps."""
        result = await self.session.execute(select(TrackModel).order_by(TrackModel.id))
        return [_track_from_model(model) for model in result.scalars().all()]

    async def delete_by_stable_id(self, stable_id: str) -> int:
        """Delete a track by stable id."""
        stmt = delete(TrackModel).where(TrackModel.stable_id == stable_id)
        result = await self.session.execute(stmt)
        return result.rowcount or 0  # type: ignore[attr-defined]

    async def count_by_album(self, album_id: int) -> int:
        """Count tracks referencing an album."""
        stmt = select(func.count(TrackModel.id)).where(TrackModel.album_id == album_id)
        return (await self.session.execute(stmt)).scalar() or 0

    async def count_by_artist(self, artist_id: int) -> int:
        """Count tracks referencing an artist."""
        stmt = select(func.count(TrackModel.id)).where(TrackModel.artist_id == artist_id)
        return (await self.session.execute(stmt)).scalar() or 0


class AlbumRepository(IAlbumRepository):
    """SQLAlchemy implementation of Album repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    async def add(self, album: Album) -> Album:
        """Add an album."""
        model = AlbumModel(
            title=album.title,
            artist_id=album.artist_id,
            year=album.year,
            album_artist=album.album_artist,
        )
        self.session.add(model)
        await self.session.flush()
        album.id = model.id
        return album

    async def get_by_id(self, album_id: int) -> Album | None:
        """Get an album by id."""
        model = await self.session.get(AlbumModel, album_id)
        if model is None:
            return None
        return Album(
            id=model.id,
            title=model.title,
            artist_id=model.artist_id,
            year=model.year,
            album_artist=model.album_artist,
        )

    async def list_all(self) -> list[Album]:
        """List all albums ordered by title."""
        result = await self.session.execute(select(AlbumModel).order_by(AlbumModel.title))
        return [
            Album(
                id=model.id,
                title=model.title,
                artist_id=model.artist_id,
                year=model.year,
                album_artist=model.album_artist,
            )
            for model in result.scalars().all()
        ]

    async def delete(self, album_id: int) -> int:
        """Delete an album."""
        result = await self.session.execute(delete(AlbumModel).where(AlbumModel.id == album_id))
        return result.rowcount or 0  # type: ignore[attr-defined]

    async def count_by_artist(self, artist_id: int) -> int:
        """Count albums referencing an artist."""
        stmt = select(func.count(AlbumModel.id)).where(AlbumModel.artist_id == artist_id)
        return (await self.session.execute(stmt)).scalar() or 0


class ArtistRepository(IArtistRepository):
    """SQLAlchemy implementation of Artist repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    async def add(self, artist: Artist) -> Artist:
        """Add an artist."""
        model = ArtistModel(name=artist.name)
        self.session.add(model)
        await self.session.flush()
        artist.id = model.id
        return artist

    async def get_by_id(self, artist_id: int) -> Artist | None:
        """Get an artist by id."""
        model = await self.session.get(ArtistModel, artist_id)
        return Artist(id=model.id, name=model.name) if model else None

    async def list_all(self) -> list[Artist]:
        """List all artists ordered by name."""
        result = await self.session.execute(select(ArtistModel).order_by(ArtistModel.name))
        return [Artist(id=model.id, name=model.name) for model in result.scalars().all()]

    async def delete(self, artist_id: int) -> int:
        """Delete an artist."""
        result = await self.session.execute(
            delete(ArtistModel).where(ArtistModel.id == artist_id)
        )
        return result.rowcount or 0  # type: ignore[attr-defined]


class FavoriteRepository(IFavoriteRepository):
    """SQLAlchemy implementation of favorites."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    async def add(self, track_stable_id: str) -> None:
        """Mark a track as favorite."""
        if await self.session.get(FavoriteModel, track_stable_id) is None:
            self.session.add(FavoriteModel(track_stable_id=track_stable_id))
            await self.session.flush()

    async def list_all(self) -> list[str]:
        """List favorite stable ids."""
        result = await self.session.execute(select(FavoriteModel.track_stable_id))
        return list(result.scalars().all())

    async def delete_for_track(self, track_stable_id: str) -> int:
        """Remove favorite rows of a track."""
        result = await self.session.execute(
            delete(FavoriteModel).where(FavoriteModel.track_stable_id == track_stable_id)
        )
        return result.rowcount or 0  # type: ignore[attr-defined]


def slugify(title: str) -> str:
    """Playlist slug: lowercase, whitespace runs become dashes."""
    return re.sub(r"\s+", "-", title.strip().lower())


class PlaylistRepository(IPlaylistRepository):
    """SQLAlchemy implementation of playlists and playlist items."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    async def add(self, playlist: Playlist) -> Playlist:
        """Create a playlist."""
        now = epoch_now()
        model = PlaylistModel(
            title=playlist.title,
            slug=playlist.slug or slugify(playlist.title),
            created_at=playlist.created_at or now,
            updated_at=playlist.updated_at or now,
            last_played_at=playlist.last_played_at,
        )
        self.session.add(model)
        await self.session.flush()
        playlist.id = model.id
        playlist.slug = model.slug
        playlist.created_at = model.created_at
        playlist.updated_at = model.updated_at
        return playlist

    # Hey future me - positions are 1-based and append-only (max + 1). Removing a track leaves
    # a gap; ordering by position still works so we don't renumber.
    async def add_track(self, playlist_id: int, track_stable_id: str) -> PlaylistItem | None:
        """Append a track to a playlist unless it is already there."""
        existing = await self.session.execute(
            select(PlaylistItemModel).where(
                PlaylistItemModel.playlist_id == playlist_id,
                PlaylistItemModel.track_stable_id == track_stable_id,
            )
        )
        if existing.scalar_one_or_none() is not None:
            return None

        max_position = (
            await self.session.execute(
                select(func.max(PlaylistItemModel.position)).where(
                    PlaylistItemModel.playlist_id == playlist_id
                )
            )
        ).scalar() or 0

        model = PlaylistItemModel(
            playlist_id=playlist_id,
            position=max_position + 1,
            track_stable_id=track_stable_id,
        )
        self.session.add(model)
        await self.session.flush()
        return PlaylistItem(
            playlist_id=playlist_id,
            position=model.position,
            track_stable_id=track_stable_id,
        )

    async def get_items(self, playlist_id: int) -> list[PlaylistItem]:
        """Items of a playlist ordered by position."""
        result = await self.session.execute(
            select(PlaylistItemModel)
            .where(PlaylistItemModel.playlist_id == playlist_id)
            .order_by(PlaylistItemModel.position)
        )
        return [
            PlaylistItem(
                playlist_id=model.playlist_id,
                position=model.position,
                track_stable_id=model.track_stable_id,
            )
            for model in result.scalars().all()
        ]

    async def list_all(self) -> list[Playlist]:
        """List playlists, most recently played first."""
        result = await self.session.execute(
            select(PlaylistModel).order_by(
                PlaylistModel.last_played_at.desc(), PlaylistModel.updated_at.desc()
            )
        )
        return [
            Playlist(
                id=model.id,
                title=model.title,
                slug=model.slug,
                created_at=model.created_at,
                updated_at=model.updated_at,
                last_played_at=model.last_played_at,
            )
            for model in result.scalars().all()
        ]

    async def delete_items_for_track(self, track_stable_id: str) -> int:
        """Remove a track from every playlist."""
        result = await self.session.execute(
            delete(PlaylistItemModel).where(
                PlaylistItemModel.track_stable_id == track_stable_id
            )
        )
        return result.rowcount or 0  # type: ignore[attr-defined]
