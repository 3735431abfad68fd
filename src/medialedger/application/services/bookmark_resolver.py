"""Resolve persisted bookmarks back to file paths.

Hey future me - resolution order is FIXED: document picker first, share extension second
(the order of BookmarkSource members). The first store that yields a decodable, non-stale
bookmark wins. An undecodable or stale blob does not end the search; the other store may
still hold a good bookmark for the same file.

The resolver only REPORTS staleness and moves. Judging them (both mean "inaccessible") is
ExistenceVerifier's job.
"""

import logging
import os
from collections.abc import Sequence

from medialedger.domain.entities import BookmarkSource, ResolvedBookmark
from medialedger.domain.exceptions import BookmarkResolutionError
from medialedger.domain.ports import IBookmarkDecoder, IBookmarkStore

logger = logging.getLogger(__name__)

_PRIORITY = {source: index for index, source in enumerate(BookmarkSource)}


class BookmarkResolver:
    """Walks the bookmark stores in priority order."""

    def __init__(self, stores: Sequence[IBookmarkStore], decoder: IBookmarkDecoder) -> None:
        """Initialize resolver.

        Args:
            stores: Bookmark stores (any order; sorted by source priority)
            decoder: Turns blobs into paths
        """
        self._stores = sorted(stores, key=lambda store: _PRIORITY[store.source])
        self._decoder = decoder

    @property
    def stores(self) -> list[IBookmarkStore]:
        return list(self._stores)

    def resolve(self, original_path: str) -> ResolvedBookmark | None:
        """Resolve the bookmark recorded for ``original_path``.

        Blocking (reads plist files, stats the target). Call it off the event loop.

        A stale resolution does not end the search: the next store may hold a fresh
        bookmark for the same file. It is only returned when no store does better.

        Args:
            original_path: Track path as stored in the catalog

        Returns:
            ResolvedBookmark, or None when no store yields a usable bookmark
        """
        stale: ResolvedBookmark | None = None
        for store in self._stores:
            blob = store.lookup(original_path)
            if blob is None:
                continue
            try:
                decoded = self._decoder.resolve(blob)
            except BookmarkResolutionError as e:
                logger.debug(
                    "Bookmark from %s did not resolve for %s: %s",
                    store.source.value,
                    original_path,
                    e.message,
                )
                continue

            moved = os.path.normpath(decoded.path) != os.path.normpath(original_path)
            resolved = ResolvedBookmark(
                url=decoded.path,
                is_stale=decoded.is_stale,
                moved_from_original=moved,
                source=store.source,
            )
            if resolved.is_stale:
                logger.debug(
                    "Stale bookmark from %s for %s, trying next store",
                    store.source.value,
                    original_path,
                )
                if stale is None:
                    stale = resolved
                continue
            return resolved

        if stale is None:
            logger.debug("No bookmark resolved for %s", original_path)
        return stale
