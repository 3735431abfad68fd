"""Security-scoped access around externally granted files."""

import asyncio
import inspect
import logging
import os
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TypeVar

from medialedger.domain.exceptions import (
    AccessDeniedError,
    ProbeFailedError,
    VerificationError,
)
from medialedger.domain.ports import IScopedResourceGrant

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PROBE_BYTES = 1024


class SecurityScopedAccessor:
    """Acquire/release wrapper around the OS security-scoped grant.

    Hey future me - the grant MUST be released on every exit path, including exceptions and
    cancellation. Everything that touches an external file goes through scoped_access() so
    there is exactly one place where start/stop are paired. Never call start_accessing()
    directly from a service.
    """

    def __init__(
        self, grant: IScopedResourceGrant, probe_bytes: int = DEFAULT_PROBE_BYTES
    ) -> None:
        """Initialize accessor.

        Args:
            grant: Platform grant adapter
            probe_bytes: Upper bound of the read probe in probe_accessibility()
        """
        if probe_bytes < 1:
            raise ValueError("probe_bytes must be positive")
        self._grant = grant
        self._probe_bytes = probe_bytes

    @asynccontextmanager
    async def scoped_access(self, path: str) -> AsyncIterator[str]:
        """Hold the grant for ``path`` for the duration of the block.

        Raises:
            AccessDeniedError: the grant could not be acquired (block is not entered)
        """
        if not self._grant.start_accessing(path):
            raise AccessDeniedError(path)
        try:
            yield path
        finally:
            self._grant.stop_accessing(path)

    async def with_scoped_access(
        self, path: str, body: Callable[[str], Awaitable[T] | T]
    ) -> T:
        """Run ``body(path)`` while holding the grant.

        ``body`` may be a plain function or a coroutine function.

        Returns:
            Whatever ``body`` returns

        Raises:
            AccessDeniedError: grant refused; ``body`` was not called
        """
        async with self.scoped_access(path) as granted:
            result = body(granted)
            if inspect.isawaitable(result):
                return await result
            return result

    def _probe(self, path: str) -> None:
        # existence, then attributes, then a bounded read
        if not os.path.exists(path):
            raise ProbeFailedError(f"File does not exist: {path}", path=path)
        try:
            os.stat(path)
        except OSError as e:
            raise ProbeFailedError(f"Cannot read attributes of {path}: {e}", path=path) from e
        try:
            with open(path, "rb") as fh:
                data = fh.read(self._probe_bytes)
        except OSError as e:
            raise ProbeFailedError(f"Cannot read {path}: {e}", path=path) from e
        if not data:
            raise ProbeFailedError(f"Read probe returned no data: {path}", path=path)

    async def probe_accessibility(self, path: str) -> bool:
        """Check that ``path`` is genuinely readable under a scoped grant.

        An existing cloud placeholder that cannot be downloaded passes exists()
        but fails the read, which is the point of reading at all.

        Returns:
            True only if existence, attributes and a non-empty read all succeed
        """
        try:
            async with self.scoped_access(path):
                await asyncio.to_thread(self._probe, path)
        except VerificationError as e:
            logger.debug("Accessibility probe failed: %s", e.message)
            return False
        return True
