"""Per-provenance existence checks for catalog tracks."""

import asyncio
import logging
import os

from medialedger.application.services.bookmark_resolver import BookmarkResolver
from medialedger.application.services.scoped_access import SecurityScopedAccessor
from medialedger.domain.entities import Existence, Provenance, Track
from medialedger.domain.exceptions import (
    BookmarkMovedError,
    BookmarkResolutionError,
    BookmarkStaleError,
    ProbeFailedError,
    VerificationError,
)
from medialedger.domain.value_objects import ProvenanceClassifier

logger = logging.getLogger(__name__)


def _exists_with_attributes(path: str) -> bool:
    try:
        os.stat(path)
    except OSError:
        return False
    return True


class ExistenceVerifier:
    """Answers "is this track's file still genuinely accessible?".

    Hey future me - two algorithms on purpose:
    - INTERNAL: os.path.exists() and nothing else. These files are under our direct control,
      so the bookmark stores are never opened for them (tests assert zero lookups).
    - EXTERNAL: cheap stat first; if that fails, bookmark -> reject stale -> reject moved ->
      scoped read probe. We never follow a move. If the user moved the file, the importer
      re-imports it from the new place; the old row goes.
    Any failure along the chain is GONE. Failure details are logged at DEBUG, never raised.
    """

    def __init__(
        self,
        classifier: ProvenanceClassifier,
        resolver: BookmarkResolver,
        accessor: SecurityScopedAccessor,
    ) -> None:
        self._classifier = classifier
        self._resolver = resolver
        self._accessor = accessor

    async def verify(self, track: Track) -> Existence:
        """Verify one track.

        Args:
            track: Catalog track

        Returns:
            Existence.EXISTS or Existence.GONE
        """
        provenance = self._classifier.classify(track.path)
        if provenance is Provenance.INTERNAL:
            exists = await asyncio.to_thread(os.path.exists, track.path)
            if not exists:
                logger.debug("Internal file missing: %s", track.path)
            return Existence.EXISTS if exists else Existence.GONE

        try:
            await self._verify_external(track.path)
        except VerificationError as e:
            logger.debug("External track judged gone (%s): %s", type(e).__name__, e.message)
            return Existence.GONE
        return Existence.EXISTS

    async def _verify_external(self, path: str) -> None:
        """Raise a VerificationError subclass unless the external file is accessible."""
        if await asyncio.to_thread(_exists_with_attributes, path):
            return

        resolved = await asyncio.to_thread(self._resolver.resolve, path)
        if resolved is None:
            raise BookmarkResolutionError(f"No usable bookmark for {path}", path=path)
        if resolved.is_stale:
            raise BookmarkStaleError(path)
        if resolved.moved_from_original:
            raise BookmarkMovedError(path, resolved.url)
        if not await self._accessor.probe_accessibility(resolved.url):
            raise ProbeFailedError(f"Resolved file is not readable: {resolved.url}", path=path)
