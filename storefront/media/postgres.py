"""
PostgreSQL media store (asyncpg).

The media table comes from migrations/001_media.sql.
"""

from typing import List, Optional

from storefront.catalog.postgres import affected_rows
from storefront.media.base import (
    MEDIA_COLUMNS,
    BaseMediaStore,
    media_from_row,
    media_insert_values,
)
from storefront.media.models import MediaItem, MediaStatus

MEDIA_SELECT = f"SELECT {', '.join(MEDIA_COLUMNS)} FROM media"


class PostgresMediaStore(BaseMediaStore):
    def __init__(self, pool):
        """Takes an existing asyncpg.Pool instance."""
        self._pool = pool

    async def init(self) -> None:
        pass  # Schema handled by migrations

    async def close(self) -> None:
        pass  # Pool lifecycle managed externally

    async def _fetch_media(
        self, status: Optional[MediaStatus], user_id: Optional[str]
    ) -> List[MediaItem]:
        where_parts = []
        params = []
        if status is not None:
            params.append(MediaStatus(status).value)
            where_parts.append(f"status = ${len(params)}")
        if user_id:
            params.append(user_id)
            where_parts.append(f"user_id = ${len(params)}")
        where_clause = " WHERE " + " AND ".join(where_parts) if where_parts else ""

        async with self._pool.acquire() as conn:
            rows = await conn.fetch(f"{MEDIA_SELECT}{where_clause} ORDER BY uploaded_at DESC", *params)
        return [media_from_row(row) for row in rows]

    async def _fetch_media_item(self, media_id: str) -> Optional[MediaItem]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(f"{MEDIA_SELECT} WHERE id = $1", media_id)
        return media_from_row(row) if row else None

    async def _insert_media(self, item: MediaItem) -> None:
        markers = ", ".join(f"${i}" for i in range(1, len(MEDIA_COLUMNS) + 1))
        async with self._pool.acquire() as conn:
            await conn.execute(
                f"INSERT INTO media ({', '.join(MEDIA_COLUMNS)}) VALUES ({markers})",
                *media_insert_values(item),
            )

    async def _set_status(self, media_id: str, status: MediaStatus) -> bool:
        async with self._pool.acquire() as conn:
            result = await conn.execute(
                "UPDATE media SET status = $1 WHERE id = $2", status.value, media_id
            )
        return affected_rows(result) > 0

    async def _delete_media(self, media_id: str) -> bool:
        async with self._pool.acquire() as conn:
            result = await conn.execute("DELETE FROM media WHERE id = $1", media_id)
        return affected_rows(result) > 0
