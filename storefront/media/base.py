"""
Media Store Interface
=====================

Same contract as the plan store: reads log and degrade to an empty list
or None, writes log and re-raise.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Union

from storefront.catalog.base import as_datetime, new_id
from storefront.media.models import MediaCreate, MediaItem, MediaStatus

logger = logging.getLogger(__name__)

MEDIA_COLUMNS = (
    "id", "user_id", "order_id", "file_name", "original_name", "file_type",
    "file_size", "path", "object_key", "storage_type", "status", "uploaded_at",
)


def media_from_row(row: Mapping[str, Any]) -> MediaItem:
    return MediaItem(
        id=row["id"],
        user_id=row["user_id"],
        order_id=row["order_id"],
        file_name=row["file_name"],
        original_name=row["original_name"],
        file_type=row["file_type"],
        file_size=int(row["file_size"]),
        path=row["path"],
        object_key=row["object_key"],
        storage_type=row["storage_type"],
        status=MediaStatus(row["status"]),
        uploaded_at=as_datetime(row["uploaded_at"]),
    )


def media_insert_values(item: MediaItem) -> List[Any]:
    """Values in MEDIA_COLUMNS order."""
    return [
        item.id,
        item.user_id,
        item.order_id,
        item.file_name,
        item.original_name,
        item.file_type,
        item.file_size,
        item.path,
        item.object_key,
        item.storage_type,
        item.status.value,
        item.uploaded_at,
    ]


class BaseMediaStore(ABC):

    @abstractmethod
    async def init(self) -> None:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...

    # =========================================
    # READS (failures are masked)
    # =========================================

    async def list_media(
        self,
        status: Optional[MediaStatus] = None,
        user_id: Optional[str] = None,
    ) -> List[MediaItem]:
        """Newest first, optionally filtered by status and/or owner."""
        try:
            return await self._fetch_media(status, user_id)
        except Exception:
            logger.exception("Failed to fetch media", extra={"user_id": user_id})
            return []

    async def get_media(self, media_id: str) -> Optional[MediaItem]:
        try:
            return await self._fetch_media_item(media_id)
        except Exception:
            logger.exception("Failed to fetch media item", extra={"media_id": media_id})
            return None

    # =========================================
    # WRITES (failures propagate)
    # =========================================

    async def save_media(self, data: MediaCreate) -> MediaItem:
        item = MediaItem(
            id=new_id(),
            uploaded_at=datetime.now(timezone.utc),
            **data.model_dump(),
        )
        try:
            await self._insert_media(item)
        except Exception:
            logger.exception(
                "Failed to save media record",
                extra={"user_id": data.user_id, "order_id": data.order_id},
            )
            raise
        logger.info(
            f"Recorded media {item.id} ({item.file_name})",
            extra={"media_id": item.id, "user_id": item.user_id, "storage_type": item.storage_type},
        )
        return item

    async def update_media_status(
        self, media_id: str, status: Union[MediaStatus, str]
    ) -> Optional[MediaItem]:
        status = MediaStatus(status)
        try:
            found = await self._set_status(media_id, status)
        except Exception:
            logger.exception("Failed to update media status", extra={"media_id": media_id})
            raise
        if not found:
            return None
        logger.info(f"Media {media_id} marked {status.value}", extra={"media_id": media_id})
        return await self._fetch_media_item(media_id)

    async def delete_media(self, media_id: str) -> Optional[MediaItem]:
        """Remove the record; returns what was deleted so the file can be discarded."""
        try:
            item = await self._fetch_media_item(media_id)
            if item is None or not await self._delete_media(media_id):
                return None
        except Exception:
            logger.exception("Failed to delete media", extra={"media_id": media_id})
            raise
        logger.info(f"Deleted media {media_id}", extra={"media_id": media_id})
        return item

    # =========================================
    # BACKEND PRIMITIVES
    # =========================================

    @abstractmethod
    async def _fetch_media(
        self, status: Optional[MediaStatus], user_id: Optional[str]
    ) -> List[MediaItem]:
        ...

    @abstractmethod
    async def _fetch_media_item(self, media_id: str) -> Optional[MediaItem]:
        ...

    @abstractmethod
    async def _insert_media(self, item: MediaItem) -> None:
        ...

    @abstractmethod
    async def _set_status(self, media_id: str, status: MediaStatus) -> bool:
        ...

    @abstractmethod
    async def _delete_media(self, media_id: str) -> bool:
        ...
