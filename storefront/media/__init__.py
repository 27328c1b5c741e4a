from storefront.media.base import BaseMediaStore
from storefront.media.models import MediaCreate, MediaItem, MediaStatus
from storefront.media.postgres import PostgresMediaStore
from storefront.media.sqlite import SQLiteMediaStore

__all__ = [
    "BaseMediaStore",
    "MediaCreate",
    "MediaItem",
    "MediaStatus",
    "PostgresMediaStore",
    "SQLiteMediaStore",
]
