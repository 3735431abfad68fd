"""Bookmark stores and bookmark decoding."""

from .codec import PortableBookmarkCodec
from .stores import DocumentPickerBookmarkStore, ShareExtensionBookmarkStore

__all__ = [
    "DocumentPickerBookmarkStore",
    "ShareExtensionBookmarkStore",
    "PortableBookmarkCodec",
]
