"""SQLAlchemy ORM models for the music catalog."""

import time

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def epoch_now() -> int:
    """Current time as integer epoch seconds (playlist timestamps)."""
    return int(time.time())


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# Listen up, albums CASCADE with their artist at the DB level, but the reconciler never relies
# on that - it only deletes an artist once no album or track points at it. The FK cascade is a
# backstop for manual edits.
class ArtistModel(Base):
    """Artist row."""

    __tablename__ = "artists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    albums: Mapped[list["AlbumModel"]] = relationship(
        "AlbumModel", back_populates="artist", passive_deletes=True
    )


class AlbumModel(Base):
    """Album row."""

    __tablename__ = "albums"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    artist_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("artists.id", ondelete="CASCADE"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    album_artist: Mapped[str | None] = mapped_column(String(255), nullable=True)

    artist: Mapped[ArtistModel | None] = relationship("ArtistModel", back_populates="albums")


# Hey future me - stable_id is the REAL key for everything outside this table! Favorites and
# playlist items point at stable_id, not at the integer id, and they have NO foreign key
# (favorites can be restored from the cloud before the importer has seen the file). Keeping
# them consistent is the cleanup service's job, not SQLite's.
class TrackModel(Base):
    """Track row."""

    __tablename__ = "tracks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    stable_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    album_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("albums.id", ondelete="SET NULL"), nullable=True
    )
    artist_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("artists.id", ondelete="SET NULL"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    track_no: Mapped[int | None] = mapped_column(Integer, nullable=True)
    disc_no: Mapped[int | None] = mapped_column(Integer, nullable=True)
    duration_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    path: Mapped[str] = mapped_column(String(4096), nullable=False)
    file_size: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        Index("idx_track_album", "album_id"),
        Index("idx_track_artist", "artist_id"),
    )


class FavoriteModel(Base):
    """Favorite membership keyed by track stable id."""

    __tablename__ = "favorites"

    track_stable_id: Mapped[str] = mapped_column(String(64), primary_key=True)


class PlaylistModel(Base):
    """User playlist."""

    __tablename__ = "playlists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[int] = mapped_column(Integer, nullable=False, default=epoch_now)
    updated_at: Mapped[int] = mapped_column(Integer, nullable=False, default=epoch_now)
    last_played_at: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    items: Mapped[list["PlaylistItemModel"]] = relationship(
        "PlaylistItemModel",
        back_populates="playlist",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class PlaylistItemModel(Base):
    """Track membership in a playlist."""

    __tablename__ = "playlist_items"

    playlist_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("playlists.id", ondelete="CASCADE"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    track_stable_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    playlist: Mapped[PlaylistModel] = relationship("PlaylistModel", back_populates="items")
