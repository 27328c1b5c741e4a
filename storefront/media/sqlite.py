"""
SQLite media store (aiosqlite).

Every operation is a single statement, so no explicit transactions.
"""

from pathlib import Path
from typing import List, Optional, Union

import aiosqlite

from storefront.media.base import (
    MEDIA_COLUMNS,
    BaseMediaStore,
    media_from_row,
    media_insert_values,
)
from storefront.media.models import MediaItem, MediaStatus

CREATE_TABLES = """
CREATE TABLE IF NOT EXISTS media (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    order_id TEXT,
    file_name TEXT NOT NULL,
    original_name TEXT,
    file_type TEXT NOT NULL,
    file_size INTEGER NOT NULL CHECK (file_size >= 0),
    path TEXT NOT NULL,
    object_key TEXT,
    storage_type TEXT NOT NULL DEFAULT 'local',
    status TEXT NOT NULL DEFAULT 'pending'
        CHECK (status IN ('approved', 'pending', 'rejected', 'flagged')),
    uploaded_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_media_user ON media (user_id, uploaded_at);
CREATE INDEX IF NOT EXISTS idx_media_status ON media (status, uploaded_at);
"""

MEDIA_SELECT = f"SELECT {', '.join(MEDIA_COLUMNS)} FROM media"


class SQLiteMediaStore(BaseMediaStore):
    def __init__(self, db_path: Union[str, Path]):
        self.db_path = str(db_path)
        self._db: Optional[aiosqlite.Connection] = None

    async def init(self) -> None:
        self._db = await aiosqlite.connect(self.db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(CREATE_TABLES)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    async def _conn(self) -> aiosqlite.Connection:
        if not self._db:
            await self.init()
        return self._db

    async def _fetch_media(
        self, status: Optional[MediaStatus], user_id: Optional[str]
    ) -> List[MediaItem]:
        where_parts = []
        params = []
        if status is not None:
            where_parts.append("status = ?")
            params.append(MediaStatus(status).value)
        if user_id:
            where_parts.append("user_id = ?")
            params.append(user_id)
        where_clause = " WHERE " + " AND ".join(where_parts) if where_parts else ""

        db = await self._conn()
        async with db.execute(
            f"{MEDIA_SELECT}{where_clause} ORDER BY uploaded_at DESC, rowid DESC", params
        ) as cursor:
            rows = await cursor.fetchall()
        return [media_from_row(row) for row in rows]

    async def _fetch_media_item(self, media_id: str) -> Optional[MediaItem]:
        db = await self._conn()
        async with db.execute(f"{MEDIA_SELECT} WHERE id = ?", (media_id,)) as cursor:
            row = await cursor.fetchone()
        return media_from_row(row) if row else None

    async def _insert_media(self, item: MediaItem) -> None:
        values = media_insert_values(item)
        # Stored as ISO-8601 text
        values[-1] = item.uploaded_at.isoformat(timespec="microseconds")
        markers = ", ".join("?" for _ in MEDIA_COLUMNS)
        db = await self._conn()
        await db.execute(
            f"INSERT INTO media ({', '.join(MEDIA_COLUMNS)}) VALUES ({markers})", values
        )
        await db.commit()

    async def _set_status(self, media_id: str, status: MediaStatus) -> bool:
        db = await self._conn()
        cursor = await db.execute(
            "UPDATE media SET status = ? WHERE id = ?", (status.value, media_id)
        )
        await db.commit()
        return cursor.rowcount > 0

    async def _delete_media(self, media_id: str) -> bool:
        db = await self._conn()
        cursor = await db.execute("DELETE FROM media WHERE id = ?", (media_id,))
        await db.commit()
        return cursor.rowcount > 0
