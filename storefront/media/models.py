"""
Media Records
=============

One record per stored upload (payment proofs and other customer files).
New records start out pending and are moderated from the back-office.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class MediaStatus(str, Enum):
    APPROVED = "approved"
    PENDING = "pending"
    REJECTED = "rejected"
    FLAGGED = "flagged"

    @classmethod
    def parse(cls, value: str) -> "MediaStatus":
        try:
            return cls(value.strip().lower())
        except ValueError:
            allowed = ", ".join(status.value for status in cls)
            raise ValueError(f"Invalid media status '{value}'. Allowed: {allowed}") from None


@dataclass
class MediaItem:
    id: str
    user_id: str
    file_name: str
    file_type: str
    file_size: int
    path: str
    storage_type: str
    status: MediaStatus = MediaStatus.PENDING
    object_key: Optional[str] = None
    original_name: Optional[str] = None
    order_id: Optional[str] = None
    uploaded_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "orderId": self.order_id,
            "fileName": self.file_name,
            "originalName": self.original_name,
            "fileType": self.file_type,
            "fileSize": self.file_size,
            "path": self.path,
            "thumbnailPath": self.path,
            "storageType": self.storage_type,
            "status": self.status.value,
            "uploadDate": self.uploaded_at.isoformat() if self.uploaded_at else None,
        }


class MediaCreate(BaseModel):
    """Payload for MediaStore.save_media."""
    user_id: str = Field(..., min_length=1)
    file_name: str = Field(..., min_length=1)
    file_type: str
    file_size: int = Field(..., ge=0)
    path: str = Field(..., min_length=1)
    storage_type: str = "local"
    object_key: Optional[str] = None
    original_name: Optional[str] = None
    order_id: Optional[str] = None
    status: MediaStatus = MediaStatus.PENDING
