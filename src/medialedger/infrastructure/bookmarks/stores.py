"""Plist-backed bookmark stores written by the document picker and the share extension.

Hey future me - we NEVER write these files! The importer owns ExternalFileBookmarks.plist
(absolute path -> bookmark blob) and the share extension owns SharedAudioFiles.plist (ordered
list of {url, bookmark, filename}, all values stored as data). We read them fresh on every
lookup because the other side can rewrite them at any time.

Absence and corruption are NORMAL states here (first launch, half-written file). Both
degrade to "no bookmark" and the track is judged unresolved - never a crash.
"""

import logging
import os
import plistlib
from pathlib import Path
from typing import Any
from xml.parsers.expat import ExpatError

from medialedger.domain.entities import BookmarkSource, ShareExtensionEntry
from medialedger.domain.ports import IBookmarkStore

logger = logging.getLogger(__name__)


def _load_plist(path: Path) -> Any | None:
    """Load a plist file, returning None if it is missing or unreadable."""
    try:
        with path.open("rb") as fh:
            return plistlib.load(fh)
    except FileNotFoundError:
        logger.debug("Bookmark store not found: %s", path)
        return None
    except (plistlib.InvalidFileException, ExpatError, OSError, ValueError) as e:
        logger.warning("Bookmark store unreadable, ignoring: %s (%s)", path, e)
        return None


def _as_text(value: Any) -> str | None:
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError:
            return None
    if isinstance(value, str):
        return value
    return None


class DocumentPickerBookmarkStore(IBookmarkStore):
    """Document-picker store: absolute path -> bookmark blob."""

    def __init__(self, plist_path: str | os.PathLike[str]) -> None:
        self._path = Path(plist_path)

    @property
    def source(self) -> BookmarkSource:
        return BookmarkSource.DOCUMENT_PICKER

    def load(self) -> dict[str, bytes]:
        """All well-formed entries of the store."""
        raw = _load_plist(self._path)
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            logger.warning("Invalid document picker bookmarks format in %s", self._path)
            return {}
        return {
            key: value
            for key, value in raw.items()
            if isinstance(key, str) and isinstance(value, bytes)
        }

    def lookup(self, original_path: str) -> bytes | None:
        blob = self.load().get(original_path)
        if blob is None:
            logger.debug("No document picker bookmark for %s", original_path)
        return blob


class ShareExtensionBookmarkStore(IBookmarkStore):
    """Share-extension store: ordered list of hand-off records."""

    def __init__(self, plist_path: str | os.PathLike[str]) -> None:
        self._path = Path(plist_path)

    @property
    def source(self) -> BookmarkSource:
        return BookmarkSource.SHARE_EXTENSION

    def entries(self) -> list[ShareExtensionEntry]:
        """Well-formed records in recorded order; malformed ones are skipped."""
        raw = _load_plist(self._path)
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("Invalid share extension bookmarks format in %s", self._path)
            return []

        entries: list[ShareExtensionEntry] = []
        for item in raw:
            if not isinstance(item, dict):
                continue
            url = _as_text(item.get("url"))
            bookmark = item.get("bookmark")
            if url is None or not isinstance(bookmark, bytes):
                continue
            entries.append(
                ShareExtensionEntry(
                    original_url=url,
                    bookmark=bookmark,
                    file_name=_as_text(item.get("filename")),
                )
            )
        return entries

    def lookup(self, original_path: str) -> bytes | None:
        wanted = os.path.normpath(original_path)
        for entry in self.entries():
            entry_path = entry.original_path
            if entry_path is not None and os.path.normpath(entry_path) == wanted:
                return entry.bookmark
        logger.debug("No share extension bookmark for %s", original_path)
        return None
