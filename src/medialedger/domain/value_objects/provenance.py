"""Provenance classification of track paths."""

import os
from collections.abc import Iterable
from pathlib import Path

from medialedger.domain.entities import Provenance


def _normalize(path: str | os.PathLike[str]) -> str:
    # normpath only - no resolve(), classification must not touch the disk
    return os.path.normpath(os.fspath(path))


def is_under(path: str, root: str) -> bool:
    """Check whether normalized ``path`` equals or lies below normalized ``root``.

    Component-aware: ``/Documents2/x`` is NOT under ``/Documents``.
    """
    if path == root:
        return True
    prefix = root if root.endswith(os.sep) else root + os.sep
    return path.startswith(prefix)


class ProvenanceClassifier:
    """Sorts track paths into INTERNAL (app-managed) and EXTERNAL (picker / share).

    Hey future me - this is a pure string test, NO I/O! Internal roots are the iCloud
    container (optional - the user may not have iCloud) and the private Documents tree.
    Anything else is external, wherever the OS granted access.
    """

    def __init__(
        self,
        documents_path: str | os.PathLike[str],
        icloud_container: str | os.PathLike[str] | None = None,
        extra_internal_roots: Iterable[str | os.PathLike[str]] = (),
    ) -> None:
        roots = [documents_path, *extra_internal_roots]
        if icloud_container is not None:
            roots.insert(0, icloud_container)
        self._roots = tuple(_normalize(root) for root in roots)

    @property
    def internal_roots(self) -> tuple[str, ...]:
        """Normalized internal root paths."""
        return self._roots

    def classify(self, path: str | Path) -> Provenance:
        """Classify a track path.

        Args:
            path: Absolute track path as stored in the catalog

        Returns:
            Provenance.INTERNAL if under a managed root, else Provenance.EXTERNAL
        """
        normalized = _normalize(path)
        for root in self._roots:
            if is_under(normalized, root):
                return Provenance.INTERNAL
        return Provenance.EXTERNAL
