"""Domain entities."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import PurePath
from urllib.parse import unquote, urlparse


# Hey future me, Provenance decides WHICH existence algorithm a track gets! INTERNAL files live
# in the app-managed iCloud container or the private Documents tree - a plain exists() check is
# the whole truth for them. EXTERNAL files came in through the document picker or the share
# extension and are only reachable through a bookmark + security-scoped grant.
class Provenance(str, Enum):
    """Where a track's file is stored."""

    INTERNAL = "internal"
    EXTERNAL = "external"


class Existence(str, Enum):
    """Outcome of verifying one track."""

    EXISTS = "exists"
    GONE = "gone"


# Yo, the order of members here is the RESOLUTION PRIORITY! Document picker bookmarks are
# consulted first, share-extension hand-offs second. BookmarkResolver walks stores in this order.
class BookmarkSource(str, Enum):
    """The two independent bookmark stores."""

    DOCUMENT_PICKER = "document_picker"
    SHARE_EXTENSION = "share_extension"


class SweepState(str, Enum):
    """Reconciler state machine."""

    IDLE = "idle"
    SCANNING = "scanning"
    COLLECTING = "collecting"
    CASCADE_DELETING = "cascade_deleting"


@dataclass
class Artist:
    """Artist row."""

    name: str
    id: int | None = None


@dataclass
class Album:
    """Album row. Deleted by the reconciler once no track references it."""

    title: str
    artist_id: int | None = None
    year: int | None = None
    album_artist: str | None = None
    id: int | None = None


@dataclass
class Track:
    """Catalog track.

    stable_id is derived from the file name once at import time (see
    ``compute_stable_id``) and never recomputed from content.
    """

    stable_id: str
    path: str
    title: str
    album_id: int | None = None
    artist_id: int | None = None
    track_no: int | None = None
    disc_no: int | None = None
    duration_ms: int | None = None
    file_size: int | None = None
    id: int | None = None

    @property
    def file_name(self) -> str:
        """Base name of the track's file."""
        return PurePath(self.path).name


@dataclass
class Favorite:
    """Favorite membership."""

    track_stable_id: str


@dataclass
class Playlist:
    """User playlist. Never orphan-collected, even when empty."""

    title: str
    slug: str
    created_at: int = 0
    updated_at: int = 0
    last_played_at: int = 0
    id: int | None = None


@dataclass
class PlaylistItem:
    """Track membership in a playlist."""

    playlist_id: int
    position: int
    track_stable_id: str


@dataclass(frozen=True)
class DecodedBookmark:
    """What a bookmark decoder hands back: a path and the OS staleness flag."""

    path: str
    is_stale: bool = False


@dataclass(frozen=True)
class ResolvedBookmark:
    """Result of BookmarkResolver.resolve()."""

    url: str
    is_stale: bool
    moved_from_original: bool
    source: BookmarkSource


# Hey future me - the share extension records the ORIGINAL URL as a string, usually
# "file:///private/var/.../Song.flac" with percent-escapes. Some older entries are bare paths.
# original_path normalizes both to a filesystem path so we can compare against Track.path.
@dataclass(frozen=True)
class ShareExtensionEntry:
    """One share-extension hand-off record."""

    original_url: str
    bookmark: bytes
    file_name: str | None = None

    @property
    def original_path(self) -> str | None:
        """Filesystem path encoded in original_url, or None if it is not a file URL."""
        parsed = urlparse(self.original_url)
        if parsed.scheme == "file":
            return unquote(parsed.path) or None
        if not parsed.scheme and self.original_url.startswith("/"):
            return self.original_url
        return None


@dataclass
class CascadeResult:
    """What one per-track cascade removed."""

    stable_id: str
    track_deleted: bool = False
    favorites_removed: int = 0
    playlist_items_removed: int = 0
    album_deleted: bool = False
    artists_deleted: int = 0

    @property
    def skipped(self) -> bool:
        """True when the track was already gone or re-imported elsewhere."""
        return not self.track_deleted


@dataclass
class SweepReport:
    """Summary of one reconciliation sweep (for logs and callers that care)."""

    sweep_id: str
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    finished_at: datetime | None = None
    checked: int = 0
    gone: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    albums_deleted: int = 0
    artists_deleted: int = 0
    cancelled: bool = False
    notified: bool = False

    @property
    def duration_seconds(self) -> float:
        """Wall time of the sweep (0 while still running)."""
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()


@dataclass
class RelationshipReport:
    """Read-only integrity report over the catalog."""

    tracks: int = 0
    albums: int = 0
    artists: int = 0
    tracks_without_artist: int = 0
    tracks_without_album: int = 0
    invalid_artist_refs: int = 0
    invalid_album_refs: int = 0
    dangling_favorites: int = 0
    dangling_playlist_items: int = 0
    identity_mismatches: int = 0

    @property
    def is_consistent(self) -> bool:
        """True when no row points at something that doesn't exist."""
        return not (
            self.invalid_artist_refs
            or self.invalid_album_refs
            or self.dangling_favorites
            or self.dangling_playlist_items
        )


__all__ = [
    "Provenance",
    "Existence",
    "BookmarkSource",
    "SweepState",
    "Artist",
    "Album",
    "Track",
    "Favorite",
    "Playlist",
    "PlaylistItem",
    "DecodedBookmark",
    "ResolvedBookmark",
    "ShareExtensionEntry",
    "CascadeResult",
    "SweepReport",
    "RelationshipReport",
]
