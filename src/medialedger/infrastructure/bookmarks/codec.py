"""Portable bookmark codec.

Hey future me - real security-scoped bookmarks are opaque OS blobs that only the platform can
resolve. This codec gives the same SEMANTICS on any POSIX system so the engine runs (and is
tested) without the platform resolver:

- blob = binary plist {"version": 1, "path": str, "device": int, "inode": int}
- same file id still at the recorded path     -> that path, not stale
- a DIFFERENT file now sits at the path        -> that path, stale (replaced behind our back)
- path gone, same file id in the same folder   -> the new path (a rename; the resolver
                                                  reports it as moved)
- anything else                                -> BookmarkResolutionError

A platform-native resolver plugs in through IBookmarkDecoder instead.
"""

import logging
import os
import plistlib
from typing import Any
from xml.parsers.expat import ExpatError

from medialedger.domain.entities import DecodedBookmark
from medialedger.domain.exceptions import BookmarkResolutionError
from medialedger.domain.ports import IBookmarkDecoder

logger = logging.getLogger(__name__)

BOOKMARK_VERSION = 1


class PortableBookmarkCodec(IBookmarkDecoder):
    """File-id based bookmark encoder/decoder."""

    @staticmethod
    def create(path: str | os.PathLike[str]) -> bytes:
        """Create a bookmark blob for an existing file (importer side).

        Raises:
            OSError: the file cannot be stat'ed
        """
        path_str = os.path.abspath(os.fspath(path))
        st = os.stat(path_str)
        payload = {
            "version": BOOKMARK_VERSION,
            "path": path_str,
            "device": st.st_dev,
            "inode": st.st_ino,
        }
        return plistlib.dumps(payload, fmt=plistlib.FMT_BINARY)

    def _decode(self, blob: bytes) -> dict[str, Any]:
        try:
            payload = plistlib.loads(blob)
        except (plistlib.InvalidFileException, ExpatError, ValueError, TypeError) as e:
            raise BookmarkResolutionError(f"Undecodable bookmark data: {e}") from e

        if (
            not isinstance(payload, dict)
            or payload.get("version") != BOOKMARK_VERSION
            or not isinstance(payload.get("path"), str)
            or not isinstance(payload.get("device"), int)
            or not isinstance(payload.get("inode"), int)
        ):
            raise BookmarkResolutionError("Bookmark data has an unknown layout")
        return payload

    def resolve(self, blob: bytes) -> DecodedBookmark:
        payload = self._decode(blob)
        path: str = payload["path"]
        file_id = (payload["device"], payload["inode"])

        try:
            st = os.stat(path)
        except FileNotFoundError:
            relocated = self._find_by_file_id(path, file_id)
            if relocated is None:
                raise BookmarkResolutionError(
                    f"Bookmark target no longer exists: {path}", path=path
                ) from None
            return DecodedBookmark(path=relocated, is_stale=False)
        except OSError as e:
            raise BookmarkResolutionError(
                f"Bookmark target not reachable: {path} ({e})", path=path
            ) from e

        if (st.st_dev, st.st_ino) != file_id:
            logger.debug("Bookmark target replaced by another file: %s", path)
            return DecodedBookmark(path=path, is_stale=True)
        return DecodedBookmark(path=path, is_stale=False)

    @staticmethod
    def _find_by_file_id(path: str, file_id: tuple[int, int]) -> str | None:
        """Look for the same file id among the siblings of ``path``."""
        parent = os.path.dirname(path) or "."
        try:
            with os.scandir(parent) as it:
                for entry in it:
                    try:
                        if entry.inode() != file_id[1]:
                            continue
                        if entry.stat(follow_symlinks=False).st_dev == file_id[0]:
                            return entry.path
                    except OSError:
                        continue
        except OSError:
            return None
        return None
