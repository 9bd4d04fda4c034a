# =============================================================================
# core/services/storage_service.py - Supabase Storage Operations
# =============================================================================
# Handles listing image uploads to Supabase Storage.
# =============================================================================

import logging
from dataclasses import dataclass
from uuid import uuid4

from app.config import settings
from app.exceptions import FileTooLargeError, InvalidFileTypeError, StorageUploadError
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)

# File extension per accepted content type
IMAGE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


@dataclass(frozen=True)
class UploadedImage:
    url: str
    path: str
    size: int
    content_type: str


class StorageService:
    """
    Service for Supabase Storage operations.

    Handles validating and uploading listing images.
    """

    @staticmethod
    def validate_image(content_type: str | None, size: int) -> str:
        """
        Check an image against the upload settings.

        Returns:
            Normalized content type

        Raises:
            InvalidFileTypeError: Content type not allowed
            FileTooLargeError: File exceeds MAX_UPLOAD_SIZE_MB
        """
        content_type = (content_type or "").lower()
        allowed = settings.allowed_image_types_list
        if content_type not in allowed:
            raise InvalidFileTypeError(content_type or "unknown", allowed)

        if size > settings.max_upload_size_bytes:
            raise FileTooLargeError(size / (1024 * 1024), settings.MAX_UPLOAD_SIZE_MB)

        return content_type

    @staticmethod
    def build_image_path(agent_id: str, content_type: str) -> str:
        """Storage path: properties/{agent_id}/{random}{ext}"""
        extension = IMAGE_EXTENSIONS.get(content_type, "")
        return f"properties/{agent_id}/{uuid4().hex}{extension}"

    @staticmethod
    def upload_image(agent_id: str, content: bytes, content_type: str | None) -> UploadedImage:
        """
        Validate and upload a listing image.

        Args:
            agent_id: Uploading agent (used in the storage path)
            content: File bytes
            content_type: MIME type reported by the client

        Returns:
            UploadedImage with the public URL and storage path

        Raises:
            InvalidFileTypeError, FileTooLargeError: Validation failed
            StorageUploadError: Supabase rejected the upload
        """
        content_type = StorageService.validate_image(content_type, len(content))
        path = StorageService.build_image_path(agent_id, content_type)

        try:
            url = SupabaseClient.upload_public_file(
                settings.STORAGE_BUCKET, path, content, content_type
            )
        except SupabaseClientError as e:
            logger.error(f"Storage upload failed: {e}")
            raise StorageUploadError(str(e))

        logger.info(f"Uploaded image to storage: {path} ({len(content)} bytes)")
        return UploadedImage(url=url, path=path, size=len(content), content_type=content_type)

