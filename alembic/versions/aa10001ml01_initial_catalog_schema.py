"""initial catalog schema

Revision ID: aa10001ml01
Revises:
Create Date: 2026-01-12 10:00:00.000000

Hey future me - this is the whole catalog the reconciler works on:
- artists, albums (album -> artist CASCADE), tracks (-> album/artist SET NULL)
- favorites and playlist_items point at tracks.stable_id WITHOUT a foreign key
  (the cleanup service keeps them consistent)
- playlists are never orphan-collected; items CASCADE with their playlist

Indexes:
- idx_track_album / idx_track_artist: orphan checks after each track delete
- ix_playlist_items_track_stable_id: "remove this track from every playlist"
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic
revision: str = "aa10001ml01"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create catalog tables and indexes."""
    op.create_table(
        "artists",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
    )
    op.create_index("ix_artists_name", "artists", ["name"])

    op.create_table(
        "albums",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "artist_id",
            sa.Integer,
            sa.ForeignKey("artists.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("year", sa.Integer, nullable=True),
        sa.Column("album_artist", sa.String(255), nullable=True),
    )
    op.create_index("ix_albums_artist_id", "albums", ["artist_id"])

    op.create_table(
        "tracks",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("stable_id", sa.String(64), nullable=False, unique=True),
        sa.Column(
            "album_id",
            sa.Integer,
            sa.ForeignKey("albums.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "artist_id",
            sa.Integer,
            sa.ForeignKey("artists.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("title", sa.String(512), nullable=False),
        sa.Column("track_no", sa.Integer, nullable=True),
        sa.Column("disc_no", sa.Integer, nullable=True),
        sa.Column("duration_ms", sa.Integer, nullable=True),
        sa.Column("path", sa.String(4096), nullable=False),
        sa.Column("file_size", sa.Integer, nullable=True),
    )
    op.create_index("idx_track_album", "tracks", ["album_id"])
    op.create_index("idx_track_artist", "tracks", ["artist_id"])

    op.create_table(
        "favorites",
        sa.Column("track_stable_id", sa.String(64), primary_key=True),
    )

    op.create_table(
        "playlists",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("slug", sa.String(255), nullable=False, unique=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("created_at", sa.Integer, nullable=False),
        sa.Column("updated_at", sa.Integer, nullable=False),
        sa.Column("last_played_at", sa.Integer, nullable=False, server_default="0"),
    )

    op.create_table(
        "playlist_items",
        sa.Column(
            "playlist_id",
            sa.Integer,
            sa.ForeignKey("playlists.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("position", sa.Integer, primary_key=True),
        sa.Column("track_stable_id", sa.String(64), nullable=False),
    )
    op.create_index(
        "ix_playlist_items_track_stable_id", "playlist_items", ["track_stable_id"]
    )


def downgrade() -> None:
    """Drop catalog tables."""
    op.drop_index("ix_playlist_items_track_stable_id", table_name="playlist_items")
    op.drop_table("playlist_items")
    op.drop_table("playlists")
    op.drop_table("favorites")
    op.drop_index("idx_track_artist", table_name="tracks")
    op.drop_index("idx_track_album", table_name="tracks")
    op.drop_table("tracks")
    op.drop_index("ix_albums_artist_id", table_name="albums")
    op.drop_table("albums")
    op.drop_index("ix_artists_name", table_name="artists")
    op.drop_table("artists")
