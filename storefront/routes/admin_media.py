"""
Admin Media Moderation
======================

Back-office review of uploaded files. Every endpoint requires an admin
session cookie.

- GET    /api/admin/media[?status=<status>&userId=<id>]
- GET    /api/admin/media/{media_id}
- PATCH  /api/admin/media          ({"id": ..., "status": ...})
- DELETE /api/admin/media?id=<id>
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel

from storefront.auth import StoreUser, require_admin
from storefront.media import MediaStatus
from storefront.uploads import discard_stored_file

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/media", tags=["Admin Media"])


class MediaStatusPayload(BaseModel):
    id: Optional[str] = None
    status: Optional[str] = None


def _status(value: str) -> MediaStatus:
    try:
        return MediaStatus.parse(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("")
async def list_media(
    request: Request,
    status: Optional[str] = Query(None),
    user_id: Optional[str] = Query(None, alias="userId"),
    admin: StoreUser = Depends(require_admin),
):
    """Newest first."""
    media_status = _status(status) if status else None
    items = await request.app.state.media_store.list_media(media_status, user_id)
    return [item.to_dict() for item in items]


@router.get("/{media_id}")
async def get_media(
    media_id: str,
    request: Request,
    admin: StoreUser = Depends(require_admin),
):
    item = await request.app.state.media_store.get_media(media_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Media not found")
    return item.to_dict()


@router.patch("")
async def update_media_status(
    body: MediaStatusPayload,
    request: Request,
    admin: StoreUser = Depends(require_admin),
):
    if not body.id or not body.status:
        raise HTTPException(status_code=400, detail="Missing media ID or status")
    status = _status(body.status)
    try:
        item = await request.app.state.media_store.update_media_status(body.id, status)
    except Exception as e:
        logger.error(f"Error updating media status: {e}", extra={"media_id": body.id})
        raise HTTPException(status_code=500, detail="Failed to update media")
    if item is None:
        raise HTTPException(status_code=404, detail="Media not found")
    logger.info(
        f"Media {item.id} set to {status.value} by {admin.id}",
        extra={"media_id": item.id, "user_id": admin.id},
    )
    return item.to_dict()


@router.delete("")
async def delete_media(
    request: Request,
    media_id: Optional[str] = Query(None, alias="id"),
    admin: StoreUser = Depends(require_admin),
):
    """Deletes the record, then the stored file. fileRemoved reports the second step."""
    if not media_id:
        raise HTTPException(status_code=400, detail="Missing media ID")
    try:
        item = await request.app.state.media_store.delete_media(media_id)
    except Exception as e:
        logger.error(f"Error deleting media: {e}", extra={"media_id": media_id})
        raise HTTPException(status_code=500, detail="Failed to delete media")
    if item is None:
        raise HTTPException(status_code=404, detail="Media not found")

    file_removed = await discard_stored_file(
        (request.app.state.cloud_storage, request.app.state.local_storage),
        item.storage_type,
        item.object_key,
    )
    return {"success": True, "fileRemoved": file_removed}
