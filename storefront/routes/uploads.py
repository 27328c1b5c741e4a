"""Payment-proof upload endpoint."""

import logging
from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile

from storefront.media import MediaCreate
from storefront.routes import limiter
from storefront.uploads import (
    StorageUnavailable,
    UploadRejected,
    backend_order,
    build_object_key,
    store_with_fallback,
    validate_upload,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/upload", tags=["Uploads"])


def _flag(value: Optional[str]) -> Optional[bool]:
    if value is None or value == "":
        return None
    return value.strip().lower() in ("1", "true", "yes", "on")


@router.post("", status_code=201)
@limiter.limit("10/minute")
async def upload_file(
    request: Request,
    file: Optional[UploadFile] = File(None),
    user_id: Optional[str] = Form(None, alias="userId"),
    order_id: Optional[str] = Form(None, alias="orderId"),
    is_order_screenshot: Optional[str] = Form(None, alias="isOrderScreenshot"),
    use_cloud_storage: Optional[str] = Form(None, alias="useCloudStorage"),
    use_azure_storage: Optional[str] = Form(None, alias="useAzureStorage"),
):
    """
    Store an uploaded file on the primary backend, falling back to the
    secondary one when the primary fails, and record it as pending media.
    """
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided.")
    if not user_id:
        raise HTTPException(status_code=400, detail="No userId provided.")

    config = request.app.state.config
    content = await file.read()
    content_type = file.content_type or "application/octet-stream"
    try:
        validate_upload(content_type, len(content), config.upload_max_bytes)
    except UploadRejected as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    cloud_flag = _flag(use_cloud_storage)
    if cloud_flag is None:
        cloud_flag = _flag(use_azure_storage)
    backends = backend_order(
        True if cloud_flag is None else cloud_flag,
        request.app.state.cloud_storage,
        request.app.state.local_storage,
    )

    key = build_object_key(file.filename or "upload", bool(_flag(is_order_screenshot)))
    try:
        stored = await store_with_fallback(backends, key, content, content_type)
    except StorageUnavailable as e:
        raise HTTPException(status_code=500, detail=f"Failed to upload file to storage. {e}")

    try:
        record = await request.app.state.media_store.save_media(MediaCreate(
            user_id=user_id,
            order_id=order_id or None,
            file_name=stored.file_name,
            original_name=file.filename,
            file_type=content_type,
            file_size=len(content),
            path=stored.url,
            storage_type=stored.storage_type,
            object_key=key,
        ))
    except Exception:
        raise HTTPException(status_code=500, detail="Failed to save media record.")

    logger.info(
        f"Stored upload {stored.file_name} for user {user_id}",
        extra={
            "media_id": record.id,
            "user_id": user_id,
            "order_id": order_id,
            "storage_type": stored.storage_type,
        },
    )
    return {
        "success": True,
        "url": stored.url,
        "fileName": stored.file_name,
        "originalName": file.filename,
        "size": len(content),
        "type": content_type,
        "storageType": stored.storage_type,
        "media": record.to_dict(),
    }
