"""Shared fixtures: settings, an in-memory catalog and a seeding helper.

Hey future me - every test gets a FRESH in-memory SQLite database (one engine per Database,
StaticPool keeps the single connection alive). Files are real files under tmp_path so the
verifier, codec and probe run against a real filesystem.
"""

from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy import func, select

from medialedger.config import (
    DatabaseSettings,
    ReconcileSettings,
    Settings,
    StorageSettings,
)
from medialedger.domain.entities import Album, Artist, Playlist, Track
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
    PlaylistModel,
    PlaylistRepository,
    TrackModel,
    TrackRepository,
)


def write_audio(path: Path, payload: bytes = b"fLaC\x00\x00\x00\x22audio-data") -> Path:
    """Create a small fake audio file (parents included)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(payload)
    return path


@pytest.fixture
def storage_root(tmp_path: Path) -> Path:
    """Root of the fake device filesystem."""
    return tmp_path


@pytest.fixture
def documents_path(storage_root: Path) -> Path:
    path = storage_root / "Documents"
    path.mkdir()
    return path


@pytest.fixture
def settings(storage_root: Path, documents_path: Path) -> Settings:
    """Settings pointing at tmp_path and an in-memory database."""
    return Settings(
        database=DatabaseSettings(url="sqlite+aiosqlite:///:memory:"),
        storage=StorageSettings(
            documents_path=documents_path,
            document_picker_bookmarks=storage_root / "ExternalFileBookmarks.plist",
            share_extension_bookmarks=storage_root / "AppGroup" / "SharedAudioFiles.plist",
        ),
        reconcile=ReconcileSettings(max_concurrent_checks=4, verify_relationships=False),
    )


@pytest.fixture
async def database(settings: Settings) -> AsyncGenerator[Database, None]:
    """Fresh catalog with all tables created."""
    db = Database(settings)
    await db.create_tables()
    yield db
    await db.close()


class CatalogSeeder:
    """Writes catalog rows the way the importer would."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def artist(self, name: str) -> int:
        async with self._db.writer() as session:
            artist = await ArtistRepository(session).add(Artist(name=name))
        assert artist.id is not None
        return artist.id

    async def album(self, title: str, artist_id: int | None = None) -> int:
        async with self._db.writer() as session:
            album = await AlbumRepository(session).add(Album(title=title, artist_id=artist_id))
        assert album.id is not None
        return album.id

    async def track(
        self,
        path: str | Path,
        album_id: int | None = None,
        artist_id: int | None = None,
        title: str | None = None,
    ) -> Track:
        path_str = str(path)
        track = Track(
            stable_id=compute_stable_id(path_str),
            path=path_str,
            title=title or Path(path_str).stem,
            album_id=album_id,
            artist_id=artist_id,
        )
        async with self._db.writer() as session:
            await TrackRepository(session).add(track)
        return track

    async def favorite(self, stable_id: str) -> None:
        async with self._db.writer() as session:
            await FavoriteRepository(session).add(stable_id)

    async def playlist(self, title: str) -> int:
        async with self._db.writer() as session:
            playlist = await PlaylistRepository(session).add(Playlist(title=title, slug=""))
        assert playlist.id is not None
        return playlist.id

    async def add_to_playlist(self, playlist_id: int, stable_id: str) -> None:
        async with self._db.writer() as session:
            await PlaylistRepository(session).add_track(playlist_id, stable_id)

    async def counts(self) -> dict[str, int]:
        """Row counts of every catalog table."""
        models: dict[str, Any] = {
            "artists": ArtistModel.id,
            "albums": AlbumModel.id,
            "tracks": TrackModel.id,
            "favorites": FavoriteModel.track_stable_id,
            "playlists": PlaylistModel.id,
            "playlist_items": PlaylistItemModel.position,
        }
        result: dict[str, int] = {}
        async with self._db.session_scope() as session:
            for name, column in models.items():
                result[name] = (await session.execute(select(func.count(column)))).scalar() or 0
        return result

    async def stable_ids(self) -> set[str]:
        async with self._db.session_scope() as session:
            return {t.stable_id for t in await TrackRepository(session).list_all()}


@pytest.fixture
def seed(database: Database) -> CatalogSeeder:
    """Catalog seeding helper bound to the test database."""
    return CatalogSeeder(database)


@pytest.fixture
def make_audio():
    """Factory creating small fake audio files."""
    return write_audio
