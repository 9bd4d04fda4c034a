# =============================================================================
# tests/test_storage.py - Image Upload Tests
# =============================================================================
# Supabase Storage is mocked; validation happens before any upload.
# =============================================================================

from unittest.mock import patch

import pytest

from app.config import settings
from app.exceptions import FileTooLargeError, InvalidFileTypeError, StorageUploadError
from core.services.storage_service import StorageService
from lib.supabase_client import SupabaseClientError
from tests.conftest import auth_headers

UPLOAD_TARGET = "core.services.storage_service.SupabaseClient.upload_public_file"
PUBLIC_URL = "https://test-project.supabase.co/storage/v1/object/public/property-images/x.png"


class TestValidation:

    def test_accepts_configured_types(self):
        assert StorageService.validate_image("IMAGE/PNG", 1024) == "image/png"

    def test_rejects_other_types(self):
        with pytest.raises(InvalidFileTypeError):
            StorageService.validate_image("application/pdf", 1024)

    def test_rejects_missing_type(self):
        with pytest.raises(InvalidFileTypeError):
            StorageService.validate_image(None, 1024)

    def test_rejects_large_files(self):
        with pytest.raises(FileTooLargeError):
            StorageService.validate_image("image/jpeg", settings.max_upload_size_bytes + 1)

    def test_path_layout(self):
        path = StorageService.build_image_path("agent-1", "image/webp")
        assert path.startswith("properties/agent-1/")
        assert path.endswith(".webp")


class TestUploadImage:

    def test_uploads_and_returns_url(self):
        with patch(UPLOAD_TARGET, return_value=PUBLIC_URL) as upload:
            result = StorageService.upload_image("agent-1", b"\x89PNG data", "image/png")

        bucket, path, content, content_type = upload.call_args.args
        assert bucket == settings.STORAGE_BUCKET
        assert path == result.path
        assert content == b"\x89PNG data"
        assert content_type == "image/png"
        assert result.url == PUBLIC_URL
        assert result.size == len(b"\x89PNG data")

    def test_invalid_file_never_uploaded(self):
        with patch(UPLOAD_TARGET) as upload:
            with pytest.raises(InvalidFileTypeError):
                StorageService.upload_image("agent-1", b"%PDF", "application/pdf")
        upload.assert_not_called()

    def test_storage_failure_maps_to_upload_error(self):
        with patch(UPLOAD_TARGET, side_effect=SupabaseClientError("bucket missing")):
            with pytest.raises(StorageUploadError):
                StorageService.upload_image("agent-1", b"img", "image/jpeg")


class TestUploadEndpoint:

    def test_agent_upload(self, client, make_agent):
        agent = make_agent()

        with patch(UPLOAD_TARGET, return_value=PUBLIC_URL):
            response = client.post(
                "/api/upload",
                files={"file": ("villa.png", b"\x89PNG data", "image/png")},
                headers=auth_headers(agent),
            )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["url"] == PUBLIC_URL
        assert data["path"].startswith(f"properties/{agent.id}/")
        assert data["contentType"] == "image/png"

    def test_rejects_wrong_type(self, client, make_agent):
        response = client.post(
            "/api/upload",
            files={"file": ("doc.pdf", b"%PDF", "application/pdf")},
            headers=auth_headers(make_agent()),
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_FILE_TYPE"

    def test_requires_agent(self, client):
        response = client.post("/api/upload", files={"file": ("a.png", b"x", "image/png")})
        assert response.status_code == 401
