"""Domain ports (interfaces) for dependency inversion."""

from abc import ABC, abstractmethod

from medialedger.domain.entities import (
    Album,
    Artist,
    BookmarkSource,
    DecodedBookmark,
    Playlist,
    PlaylistItem,
    Track,
)
from medialedger.domain.ports.notification import (
    INotificationProvider,
    Notification,
    NotificationResult,
    NotificationType,
)


class ITrackRepository(ABC):
    """Repository interface for Track entities."""

    @abstractmethod
    async def add(self, track: Track) -> None:
        """Add a new track."""
        pass

    @abstractmethod
    async def get_by_stable_id(self, stable_id: str) -> Track | None:
        """Get a track by its stable id."""
        pass

    @abstractmethod
    async def list_all(self) -> list[Track]:
        """List every track in the catalog."""
        pass

    @abstractmethod
    async def delete_by_stable_id(self, stable_id: str) -> int:
        """Delete a track, returning the number of rows removed."""
        pass

    @abstractmethod
    async def count_by_album(self, album_id: int) -> int:
        """Count tracks referencing an album."""
        pass

    @abstractmethod
    async def count_by_artist(self, artist_id: int) -> int:
        """Count tracks referencing an artist."""
        pass


class IAlbumRepository(ABC):
    """Repository interface for Album entities."""

    @abstractmethod
    async def add(self, album: Album) -> Album:
        """Add an album and return it with its id populated."""
        pass

    @abstractmethod
    async def get_by_id(self, album_id: int) -> Album | None:
        """Get an album by id."""
        pass

    @abstractmethod
    async def list_all(self) -> list[Album]:
        """List all albums."""
        pass

    @abstractmethod
    async def delete(self, album_id: int) -> int:
        """Delete an album, returning the number of rows removed."""
        pass

    @abstractmethod
    async def count_by_artist(self, artist_id: int) -> int:
        """Count albums referencing an artist."""
        pass


class IArtistRepository(ABC):
    """Repository interface for Artist entities."""

    @abstractmethod
    async def add(self, artist: Artist) -> Artist:
        """Add an artist and return it with its id populated."""
        pass

    @abstractmethod
    async def get_by_id(self, artist_id: int) -> Artist | None:
        """Get an artist by id."""
        pass

    @abstractmethod
    async def list_all(self) -> list[Artist]:
        """List all artists."""
        pass

    @abstractmethod
    async def delete(self, artist_id: int) -> int:
        """Delete an artist, returning the number of rows removed."""
        pass


class IFavoriteRepository(ABC):
    """Repository interface for favorites."""

    @abstractmethod
    async def add(self, track_stable_id: str) -> None:
        """Mark a track as favorite (no-op if already favorite)."""
        pass

    @abstractmethod
    async def list_all(self) -> list[str]:
        """List favorite track stable ids."""
        pass

    @abstractmethod
    async def delete_for_track(self, track_stable_id: str) -> int:
        """Remove favorite rows of a track."""
        pass


class IPlaylistRepository(ABC):
    """Repository interface for playlists and their items."""

    @abstractmethod
    async def add(self, playlist: Playlist) -> Playlist:
        """Create a playlist and return it with its id populated."""
        pass

    @abstractmethod
    async def add_track(self, playlist_id: int, track_stable_id: str) -> PlaylistItem | None:
        """Append a track to a playlist (None if it was already in it)."""
        pass

    @abstractmethod
    async def get_items(self, playlist_id: int) -> list[PlaylistItem]:
        """Items of a playlist ordered by position."""
        pass

    @abstractmethod
    async def list_all(self) -> list[Playlist]:
        """List all playlists."""
        pass

    @abstractmethod
    async def delete_items_for_track(self, track_stable_id: str) -> int:
        """Remove a track from every playlist."""
        pass


# Hey future me - the two bookmark stores are a SUM TYPE in disguise! Both answer the same
# question ("do you have a bookmark blob for this original path?") so the resolver can walk
# them in priority order without knowing their file formats. Stores are READ-ONLY here.
class IBookmarkStore(ABC):
    """A persisted bookmark store."""

    @property
    @abstractmethod
    def source(self) -> BookmarkSource:
        """Which store this is (also its resolution priority)."""
        pass

    @abstractmethod
    def lookup(self, original_path: str) -> bytes | None:
        """Return the bookmark blob recorded for ``original_path``, if any.

        Must never raise for missing or corrupt stores - return None instead.
        """
        pass


class IBookmarkDecoder(ABC):
    """Turns an opaque bookmark blob back into a path (OS bookmark resolution)."""

    @abstractmethod
    def resolve(self, blob: bytes) -> DecodedBookmark:
        """Resolve a blob.

        Raises:
            BookmarkResolutionError: blob is corrupt or its target is unreachable
        """
        pass


class IScopedResourceGrant(ABC):
    """OS security-scoped resource grant (start/stop accessing)."""

    @abstractmethod
    def start_accessing(self, path: str) -> bool:
        """Try to acquire the grant for ``path``. False means access denied."""
        pass

    @abstractmethod
    def stop_accessing(self, path: str) -> None:
        """Release a grant previously acquired for ``path``."""
        pass


__all__ = [
    "ITrackRepository",
    "IAlbumRepository",
    "IArtistRepository",
    "IFavoriteRepository",
    "IPlaylistRepository",
    "IBookmarkStore",
    "IBookmarkDecoder",
    "IScopedResourceGrant",
    "INotificationProvider",
    "Notification",
    "NotificationResult",
    "NotificationType",
]
