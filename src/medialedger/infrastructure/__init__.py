"""Infrastructure adapters (database, bookmarks, filesystem, notifications, logging)."""
