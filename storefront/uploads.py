"""
Payment-Proof Upload Storage
============================

Stores uploaded files on an ordered list of storage backends. The first
backend that succeeds wins; when every backend fails the combined error
is raised.

Backends:
- CloudinaryStorage: hosted blob storage
- LocalDiskStorage: files under a local upload directory
"""

import asyncio
import io
import logging
import os
import re
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import aiofiles
import aiofiles.os
import cloudinary
import cloudinary.uploader

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = [
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "application/pdf",
]
MAX_UPLOAD_BYTES = 5 * 1024 * 1024

SAFE_EXTENSION = re.compile(r"[a-z0-9]{1,10}")
ORDER_SCREENSHOT_FOLDER = "order-screenshots"
DEFAULT_FOLDER = "uploads"


class UploadRejected(Exception):
    """The upload failed validation; carries the HTTP status to answer with."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class StorageUnavailable(Exception):
    """Every storage backend failed for this upload."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = errors
        detail = "; ".join(f"{name}: {err}" for name, err in errors.items()) or "no storage backend configured"
        super().__init__(f"All storage backends failed ({detail})")


@dataclass
class StoredFile:
    url: str
    file_name: str
    storage_type: str


def validate_upload(content_type: str, size: int, max_bytes: int = MAX_UPLOAD_BYTES) -> None:
    if size > max_bytes:
        raise UploadRejected(f"File is too large (max {max_bytes // (1024 * 1024)}MB).", status_code=413)
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise UploadRejected(
            f"Invalid file type. Allowed: {', '.join(ALLOWED_CONTENT_TYPES)}",
            status_code=415,
        )


def build_object_key(original_name: str, is_order_screenshot: bool = False) -> str:
    """<folder>/<uuid>/<uuid>.<ext>"""
    extension = original_name.rsplit(".", 1)[-1].lower() if "." in original_name else ""
    # Anything but a short alphanumeric suffix is dropped; keys never gain path segments
    if not SAFE_EXTENSION.fullmatch(extension):
        extension = ""
    file_name = f"{uuid.uuid4()}.{extension}" if extension else str(uuid.uuid4())
    folder = ORDER_SCREENSHOT_FOLDER if is_order_screenshot else DEFAULT_FOLDER
    return f"{folder}/{uuid.uuid4()}/{file_name}"


class StorageBackend(ABC):
    name: str = ""

    @abstractmethod
    async def save(self, key: str, content: bytes, content_type: str) -> StoredFile:
        ...

    async def delete(self, key: str) -> None:
        raise NotImplementedError(f"{self.name} storage cannot remove files")


class CloudinaryStorage(StorageBackend):
    name = "cloudinary"

    def __init__(self, cloud_name: str, api_key: str, api_secret: str):
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True,
        )

    async def save(self, key: str, content: bytes, content_type: str) -> StoredFile:
        public_id = key.rsplit(".", 1)[0]
        # The SDK is blocking
        result = await asyncio.to_thread(
            cloudinary.uploader.upload,
            io.BytesIO(content),
            public_id=public_id,
            resource_type="auto",
        )
        return StoredFile(
            url=result.get("secure_url"),
            file_name=key.rsplit("/", 1)[-1],
            storage_type=self.name,
        )

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(cloudinary.uploader.destroy, key.rsplit(".", 1)[0])


class LocalDiskStorage(StorageBackend):
    name = "local"

    def __init__(self, upload_dir: str, public_url_prefix: str = "/uploads"):
        self.upload_dir = Path(upload_dir)
        self.public_url_prefix = public_url_prefix.rstrip("/")

    async def save(self, key: str, content: bytes, content_type: str) -> StoredFile:
        target = self.upload_dir / key
        os.makedirs(target.parent, exist_ok=True)
        async with aiofiles.open(target, "wb") as f:
            await f.write(content)
        return StoredFile(
            url=f"{self.public_url_prefix}/{key}",
            file_name=target.name,
            storage_type=self.name,
        )

    async def delete(self, key: str) -> None:
        await aiofiles.os.remove(self.upload_dir / key)


def backend_order(
    use_cloud_storage: bool,
    cloud: Optional[StorageBackend],
    local: Optional[StorageBackend],
) -> List[StorageBackend]:
    """Primary first; unconfigured backends are dropped."""
    ordered = [cloud, local] if use_cloud_storage else [local, cloud]
    return [b for b in ordered if b is not None]


async def store_with_fallback(
    backends: Sequence[StorageBackend],
    key: str,
    content: bytes,
    content_type: str,
) -> StoredFile:
    """
    Try each backend in order and return the first success.

    Raises:
        StorageUnavailable: every backend failed (or none configured)
    """
    errors: Dict[str, str] = {}
    for backend in backends:
        try:
            stored = await backend.save(key, content, content_type)
        except Exception as e:
            logger.warning(
                f"Upload to {backend.name} failed: {e}",
                extra={"storage_type": backend.name},
            )
            errors[backend.name] = str(e)
            continue
        if errors:
            logger.info(
                f"Stored {key} on fallback backend {backend.name}",
                extra={"storage_type": backend.name},
            )
        return stored

    logger.error(f"All storage backends failed for {key}: {errors}")
    raise StorageUnavailable(errors)


async def discard_stored_file(
    backends: Sequence[Optional[StorageBackend]],
    storage_type: str,
    key: Optional[str],
) -> bool:
    """
    Remove a stored object from the backend named storage_type.

    Returns False, after logging why, when the file could not be removed.
    """
    backend = next((b for b in backends if b is not None and b.name == storage_type), None)
    if backend is None or not key:
        logger.warning(
            f"Cannot remove {key or 'unknown file'}: no {storage_type} backend",
            extra={"storage_type": storage_type},
        )
        return False
    try:
        await backend.delete(key)
    except Exception as e:
        logger.warning(
            f"Failed to remove {key} from {backend.name}: {e}",
            extra={"storage_type": backend.name},
        )
        return False
    return True
