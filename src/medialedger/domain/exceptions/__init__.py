"""Domain exceptions."""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, message is stored as an attribute so code can inspect it without parsing
    # str(exception). Don't raise this directly - pick a subclass so callers can catch precisely.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class EntityNotFoundException(DomainException):
    """Raised when an entity is not found."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(f"{entity_type} with id {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class ConfigurationError(DomainException):
    """Raised when settings make the engine unusable (bad paths, bad DB URL)."""

    pass


# =============================================================================
# Verification failures
# Hey future me - everything below is LOCAL to one track! The verifier converts these
# into Existence.GONE and the sweep keeps going. They exist so the logs say WHY a
# track was judged gone, not to bubble up to users.
# =============================================================================


class VerificationError(DomainException):
    """Base for failures that make one track count as gone."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class AccessDeniedError(VerificationError):
    """The OS security-scoped grant for a path could not be acquired."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Security-scoped access denied for {path}", path=path)


class BookmarkResolutionError(VerificationError):
    """A bookmark blob could not be decoded or its target no longer exists."""

    pass


class BookmarkStaleError(VerificationError):
    """The bookmark resolved, but the OS flagged it as stale."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Bookmark is stale for {path}", path=path)


class BookmarkMovedError(VerificationError):
    """The bookmark resolved to a different path than the one in the catalog.

    Moves are never followed - the importer has to re-import from the new location.
    """

    def __init__(self, path: str, resolved_path: str) -> None:
        super().__init__(
            f"File moved from {path} to {resolved_path}", path=path
        )
        self.resolved_path = resolved_path


class ProbeFailedError(VerificationError):
    """Existence, attribute or read probe failed on a resolved file."""

    pass


class CascadeWriteFailedError(DomainException):
    """Deleting one track (and its dependents) failed.

    The track stays in the catalog and is retried on the next sweep. The
    original database/IO error is chained as ``__cause__``.
    """

    def __init__(self, stable_id: str, reason: str) -> None:
        super().__init__(f"Cascade delete failed for track {stable_id}: {reason}")
        self.stable_id = stable_id


__all__ = [
    "DomainException",
    "EntityNotFoundException",
    "ConfigurationError",
    "VerificationError",
    "AccessDeniedError",
    "BookmarkResolutionError",
    "BookmarkStaleError",
    "BookmarkMovedError",
    "ProbeFailedError",
    "CascadeWriteFailedError",
]
