"""Tests for PortableBookmarkCodec against real files."""

import os
import plistlib

import pytest

from medialedger.domain.exceptions import BookmarkResolutionError
from medialedger.infrastructure.bookmarks import PortableBookmarkCodec


class TestPortableBookmarkCodec:
    """Staleness and moves are detected through the file id (device + inode)."""

    @pytest.fixture
    def codec(self) -> PortableBookmarkCodec:
        return PortableBookmarkCodec()

    def test_unchanged_file_resolves_to_same_path(self, codec, tmp_path, make_audio) -> None:
        song = make_audio(tmp_path / "picked" / "song.flac")
        blob = PortableBookmarkCodec.create(song)

        decoded = codec.resolve(blob)

        assert decoded.path == str(song)
        assert decoded.is_stale is False

    def test_replaced_file_is_stale(self, codec, tmp_path, make_audio) -> None:
        """A different file at the recorded path is reported, flagged stale."""
        song = make_audio(tmp_path / "song.flac")
        blob = PortableBookmarkCodec.create(song)
        # hold the old inode so the new file can't reuse its number
        keep = tmp_path / "old.flac"
        os.rename(song, keep)
        make_audio(song, b"different content")

        decoded = codec.resolve(blob)

        assert decoded.path == str(song)
        assert decoded.is_stale is True

    def test_renamed_file_resolves_to_new_path(self, codec, tmp_path, make_audio) -> None:
        song = make_audio(tmp_path / "song.flac")
        blob = PortableBookmarkCodec.create(song)
        renamed = tmp_path / "renamed.flac"
        os.rename(song, renamed)

        decoded = codec.resolve(blob)

        assert decoded.path == str(renamed)
        assert decoded.is_stale is False

    def test_deleted_file_raises(self, codec, tmp_path, make_audio) -> None:
        song = make_audio(tmp_path / "song.flac")
        blob = PortableBookmarkCodec.create(song)
        song.unlink()

        with pytest.raises(BookmarkResolutionError) as exc_info:
            codec.resolve(blob)
        assert exc_info.value.path == str(song)

    def test_garbage_blob_raises(self, codec) -> None:
        with pytest.raises(BookmarkResolutionError):
            codec.resolve(b"\x00not a plist at all")

    def test_unknown_layout_raises(self, codec) -> None:
        blob = plistlib.dumps({"version": 99, "path": "/x"}, fmt=plistlib.FMT_BINARY)
        with pytest.raises(BookmarkResolutionError, match="unknown layout"):
            codec.resolve(blob)

    def test_create_requires_existing_file(self, tmp_path) -> None:
        with pytest.raises(OSError):
            PortableBookmarkCodec.create(tmp_path / "missing.flac")
