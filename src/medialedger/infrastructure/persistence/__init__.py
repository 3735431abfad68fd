"""Infrastructure persistence layer."""

from .database import Database
from .models import (
    AlbumModel,
    ArtistModel,
    Base,
    FavoriteModel,
    PlaylistItemModel,
    PlaylistModel,
    TrackModel,
)
from .repositories import (
    AlbumRepository,
    ArtistRepository,
    FavoriteRepository,
    PlaylistRepository,
    TrackRepository,
)
from .retry import is_lock_error, with_db_retry

__all__ = [
    # Database
    "Database",
    "Base",
    # Models
    "ArtistModel",
    "AlbumModel",
    "TrackModel",
    "FavoriteModel",
    "PlaylistModel",
    "PlaylistItemModel",
    # Repositories
    "ArtistRepository",
    "AlbumRepository",
    "TrackRepository",
    "FavoriteRepository",
    "PlaylistRepository",
    # Retry utilities
    "with_db_retry",
    "is_lock_error",
]
