"""POSIX stand-in for OS security-scoped resource grants."""

import logging
import os
import threading
from collections import Counter

from medialedger.domain.ports import IScopedResourceGrant

logger = logging.getLogger(__name__)


class PosixScopedGrant(IScopedResourceGrant):
    """Grant adapter for platforms without security-scoped resources.

    Hey future me - on a sandboxed platform start_accessing() asks the OS for a
    time-limited grant. Plain POSIX has no such thing, so "acquiring" means the
    containing directory is searchable and readable for us. Grants are reference
    counted so tests (and debug logs) can prove every start had a matching stop.
    """

    def __init__(self) -> None:
        self._active: Counter[str] = Counter()
        # probes run in worker threads via asyncio.to_thread
        self._lock = threading.Lock()

    def start_accessing(self, path: str) -> bool:
        parent = os.path.dirname(path) or "."
        if not os.access(parent, os.R_OK | os.X_OK):
            logger.debug("Scoped access refused for %s", path)
            return False
        with self._lock:
            self._active[path] += 1
        return True

    def stop_accessing(self, path: str) -> None:
        with self._lock:
            if self._active[path] <= 0:
                logger.warning("stop_accessing without matching start: %s", path)
                self._active.pop(path, None)
                return
            self._active[path] -= 1
            if self._active[path] == 0:
                del self._active[path]

    @property
    def active_grants(self) -> int:
        """Number of grants currently held."""
        with self._lock:
            return sum(self._active.values())
