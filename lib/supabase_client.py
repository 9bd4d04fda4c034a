# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for the Supabase services the API
# consumes:
# - Storage: listing images (upload, public URL)
# - Auth: looking up a user when a token cannot be verified locally
#
# Listings, enquiries and deals are stored through SQLAlchemy (see
# core/database.py) because their writes need multi-statement transactions.
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   url = SupabaseClient.upload_public_file("property-images", path, data, "image/png")
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

from supabase import create_client, Client

from app.config import settings

# Set up logging for this module
logger = logging.getLogger(__name__)


class SupabaseClientError(Exception):
    """
    Error during Supabase operations.

    Provides actionable error messages:
    "Errors should tell HOW to fix, not just WHAT failed."
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


class SupabaseClient:
    """
    Typed wrapper for Supabase operations.

    Implements singleton pattern - one client instance is shared across
    the application. All methods are class methods for easy access without
    instantiation.
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS).
        This is appropriate for server-side operations.

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    # -------------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_user(cls, access_token: str) -> dict[str, Any] | None:
        """
        Ask Supabase Auth who owns a session token.

        Used as a fallback when the token's signing key is not available
        locally.

        Returns:
            Dict with "id" and "email", or None if Supabase rejects the token
        """
        client = cls.get_client()

        try:
            response = client.auth.get_user(access_token)
        except Exception as e:
            logger.warning(f"Supabase rejected session token: {e}")
            return None

        user = getattr(response, "user", None)
        if user is None:
            return None

        return {"id": str(user.id), "email": user.email}

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------

    @classmethod
    def upload_public_file(
        cls,
        bucket: str,
        path: str,
        content: bytes,
        content_type: str,
    ) -> str:
        """
        Upload bytes to a storage bucket and return the file's public URL.

        Raises:
            SupabaseClientError: If the upload fails
        """
        client = cls.get_client()

        try:
            client.storage.from_(bucket).upload(
                path=path,
                file=content,
                file_options={"content-type": content_type, "upsert": "false"},
            )
            public_url = client.storage.from_(bucket).get_public_url(path)
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to upload {path}: {e}",
                code="STORAGE_UPLOAD_FAILED",
                suggestion=f"Check that the '{bucket}' bucket exists and is public",
                details={"bucket": bucket, "path": path},
            )

        logger.debug(f"Uploaded {path} to bucket {bucket}")
        return public_url
