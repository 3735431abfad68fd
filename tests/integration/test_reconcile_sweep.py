"""End-to-end sweep: real files, real bookmark plists, real catalog.

Hey future me - nothing is mocked here. The engine is wired by build_engine() exactly like
the host app does it, the files live under tmp_path and bookmarks are produced by the
portable codec the way the importer would.
"""

import plistlib
from pathlib import Path

import pytest

from medialedger.config import Settings
from medialedger.domain.exceptions import EntityNotFoundException
from medialedger.domain.ports.notification import Notification, NotificationType
from medialedger.infrastructure.bookmarks import PortableBookmarkCodec
from medialedger.infrastructure.lifecycle import ReconciliationEngine, build_engine


@pytest.fixture
def external_dir(storage_root: Path) -> Path:
    path = storage_root / "FileProvider" / "Downloads"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def engine(settings: Settings, database) -> ReconciliationEngine:
    return build_engine(settings, database=database)


@pytest.fixture
def events(engine: ReconciliationEngine) -> list[Notification]:
    received: list[Notification] = []
    engine.inapp_notifications.subscribe(received.append)
    return received


def _write_picker_bookmarks(settings: Settings, *paths: Path) -> None:
    plist = settings.storage.document_picker_bookmarks_path
    plist.write_bytes(
        plistlib.dumps(
            {str(p): PortableBookmarkCodec.create(p) for p in paths},
            fmt=plistlib.FMT_BINARY,
        )
    )


def _write_share_bookmarks(settings: Settings, *paths: Path) -> None:
    plist = settings.storage.share_extension_bookmarks
    assert plist is not None
    plist.parent.mkdir(parents=True, exist_ok=True)
    plist.write_bytes(
        plistlib.dumps(
            [
                {
                    "url": p.as_uri(),
                    "bookmark": PortableBookmarkCodec.create(p),
                    "filename": p.name,
                }
                for p in paths
            ]
        )
    )


class TestReconcileSweep:
    async def test_mixed_library(
        self,
        engine,
        events,
        settings,
        seed,
        documents_path,
        external_dir,
        make_audio,
    ) -> None:
        # internal: one kept, one deleted from Documents
        kept_internal = make_audio(documents_path / "Music" / "keep.flac")
        lost_internal = make_audio(documents_path / "Music" / "lost.flac")
        # external: one kept, one deleted, one renamed behind our back, one shared + deleted
        kept_external = make_audio(external_dir / "picked.flac")
        lost_external = make_audio(external_dir / "gone.flac")
        renamed = make_audio(external_dir / "renamed.flac")
        shared = make_audio(external_dir / "shared.flac")
        _write_picker_bookmarks(settings, kept_external, lost_external, renamed)
        _write_share_bookmarks(settings, shared)

        lost_internal.unlink()
        lost_external.unlink()
        renamed.rename(external_dir / "renamed-by-user.flac")
        shared.unlink()

        # catalog: "Solo" only has lost tracks, "Band" keeps one track
        solo = await seed.artist("Solo")
        solo_album = await seed.album("Solo Album", solo)
        band = await seed.artist("Band")
        band_album = await seed.album("Band Album", band)

        keep_a = await seed.track(kept_internal, band_album, band)
        lost_a = await seed.track(lost_internal, band_album, band)
        keep_b = await seed.track(kept_external)
        lost_b = await seed.track(lost_external, solo_album, solo)
        lost_c = await seed.track(renamed, solo_album, solo)
        lost_d = await seed.track(shared)

        await seed.favorite(lost_a.stable_id)
        await seed.favorite(keep_a.stable_id)
        playlist = await seed.playlist("Mix")
        for track in (keep_a, lost_b, keep_b, lost_d):
            await seed.add_to_playlist(playlist, track.stable_id)

        report = await engine.reconciler.sweep()

        assert report is not None
        assert report.checked == 6
        gone = {lost_a.stable_id, lost_b.stable_id, lost_c.stable_id, lost_d.stable_id}
        assert set(report.gone) == gone
        assert set(report.removed) == gone
        assert report.failed == []
        assert report.albums_deleted == 1
        assert report.artists_deleted == 1
        assert report.notified is True

        assert await seed.stable_ids() == {keep_a.stable_id, keep_b.stable_id}
        counts = await seed.counts()
        assert counts == {
            "artists": 1,
            "albums": 1,
            "tracks": 2,
            "favorites": 1,
            "playlists": 1,
            "playlist_items": 2,
        }

        assert len(events) == 1
        assert events[0].type is NotificationType.CATALOG_CHANGED

        relationships = await engine.cleanup_service.verify_relationships()
        assert relationships.is_consistent

    async def test_second_sweep_changes_nothing(
        self, engine, events, seed, documents_path, make_audio
    ) -> None:
        song = make_audio(documents_path / "a.flac")
        lost = make_audio(documents_path / "b.flac")
        await seed.track(song)
        await seed.track(lost)
        lost.unlink()

        first = await engine.reconciler.sweep()
        second = await engine.reconciler.sweep()

        assert first is not None and len(first.removed) == 1
        assert second is not None
        assert second.removed == []
        assert second.notified is False
        assert len(events) == 1

    async def test_present_file_survives(
        self, engine, seed, documents_path, make_audio
    ) -> None:
        song = make_audio(documents_path / "a.flac")
        track = await seed.track(song)

        report = await engine.reconciler.sweep()

        assert report is not None and report.gone == []
        assert await seed.stable_ids() == {track.stable_id}


class TestUserDelete:
    async def test_delete_track_removes_file_and_rows(
        self, engine, events, seed, documents_path, make_audio
    ) -> None:
        song = make_audio(documents_path / "a.flac")
        artist = await seed.artist("A")
        album = await seed.album("B", artist)
        track = await seed.track(song, album, artist)
        await seed.favorite(track.stable_id)

        result = await engine.cleanup_service.delete_track(track.stable_id)

        assert result.track_deleted is True
        assert result.album_deleted is True
        assert result.artists_deleted == 1
        assert not song.exists()
        assert await seed.counts() == {
            "artists": 0,
            "albums": 0,
            "tracks": 0,
            "favorites": 0,
            "playlists": 0,
            "playlist_items": 0,
        }
        assert len(events) == 1

    async def test_delete_unknown_track(self, engine) -> None:
        with pytest.raises(EntityNotFoundException):
            await engine.cleanup_service.delete_track("does-not-exist")
