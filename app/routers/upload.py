from __future__ import annotations

import logging
import time
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from app.auth.dependencies import AuthContext, get_current_user
from app.config import settings
from app.db.deps import get_session
from app.routers.projects import require_project
from app.services.media_storage import ALLOWED_IMAGE_TYPES, MediaStorage, MediaStorageError, build_upload_key

router = APIRouter(tags=["upload"])
logger = logging.getLogger(__name__)


@router.post("/upload")
async def upload_image(
    file: Optional[UploadFile] = File(default=None),
    projectId: Optional[UUID] = Form(default=None),
    purpose: str = Form(default="reference"),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if file is None or not projectId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File and projectId required")
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid file type. Allowed: jpeg, png, gif, webp",
        )
    data = await file.read()
    if len(data) > settings.UPLOAD_MAX_BYTES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File too large. Maximum size is 10MB")
    require_project(session, auth.user_id, projectId)

    storage = MediaStorage()
    key = build_upload_key(
        user_id=auth.user_id,
        project_id=str(projectId),
        filename=file.filename or "upload",
        timestamp_ms=int(time.time() * 1000),
    )
    try:
        storage.upload_bytes(key=key, data=data, content_type=file.content_type)
    except MediaStorageError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Upload failed") from exc
    logger.info("Chat image uploaded", extra={"key": key, "size": len(data)})
    return {
        "success": True,
        "url": storage.public_url(key),
        "filename": file.filename,
        "size": len(data),
        "type": file.content_type,
        "purpose": purpose,
    }
