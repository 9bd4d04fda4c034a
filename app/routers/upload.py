# =============================================================================
# app/routers/upload.py - Listing Image Upload
# =============================================================================
# Agents upload listing photos to Supabase Storage and get back the public
# URL to store in the property's `images` list.
# =============================================================================

import logging

from fastapi import APIRouter, Depends, File, UploadFile

from app.auth import AuthContext, require_agent
from app.responses import created_response
from core.services.storage_service import StorageService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", status_code=201)
async def upload_image(
    file: UploadFile = File(..., description="Image file (JPEG, PNG, WebP or GIF)"),
    auth: AuthContext = Depends(require_agent),
):
    """
    Upload a listing image.

    Validates type and size before anything is sent to storage.
    Returns the public URL and the storage path.
    """
    content = await file.read()
    logger.info(f"Image upload from agent {auth.agent.id}: {file.filename} ({len(content)} bytes)")

    uploaded = StorageService.upload_image(auth.agent.id, content, file.content_type)
    return created_response({
        "url": uploaded.url,
        "path": uploaded.path,
        "size": uploaded.size,
        "contentType": uploaded.content_type,
    })
