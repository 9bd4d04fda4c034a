# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.SUPABASE_URL)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
#
# The Settings class validates all values at startup, catching configuration
# errors early rather than at runtime.
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses pydantic-settings to:
    - Automatically load from .env file
    - Validate types and constraints
    - Provide sensible defaults for development

    All settings are accessed via the global `settings` instance.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------
    # Auth (session tokens) and Storage (listing images) live in Supabase

    SUPABASE_URL: str = Field(
        ...,  # ... means required (no default)
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_ANON_KEY: str = Field(
        ...,
        description="Supabase anon/public API key"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS)"
    )

    SUPABASE_JWT_SECRET: str = Field(
        default="",
        description="Legacy HS256 JWT secret used to verify Supabase session tokens"
    )

    STORAGE_BUCKET: str = Field(
        default="property-images",
        description="Supabase Storage bucket for uploaded listing images"
    )

    # -------------------------------------------------------------------------
    # Database
    # -------------------------------------------------------------------------

    DATABASE_URL: str = Field(
        default="sqlite:///./estateascent.db",
        description="SQLAlchemy database URL (Postgres in production)"
    )

    # -------------------------------------------------------------------------
    # Redis Configuration (rate limit counters)
    # -------------------------------------------------------------------------
    # Empty means counters are kept in-process

    REDIS_URL: str = Field(
        default="",
        description="Redis connection URL for shared rate limit counters"
    )

    # -------------------------------------------------------------------------
    # External Services
    # -------------------------------------------------------------------------

    N8N_API_KEY: str = Field(
        default="",
        description="Shared secret expected in the X-N8N-API-Key header"
    )

    MAPBOX_TOKEN: str = Field(
        default="",
        description="Mapbox access token for geocoding"
    )

    SITE_URL: str = Field(
        default="https://estateascent.com",
        description="Public site URL used to build links in responses"
    )

    # -------------------------------------------------------------------------
    # Listing Rules
    # -------------------------------------------------------------------------

    FRESHNESS_WINDOW_DAYS: int = Field(
        default=14,
        ge=1,
        le=365,
        description="A listing verified within this many days counts as fresh"
    )

    PAGINATION_DEFAULT_LIMIT: int = Field(
        default=50,
        ge=1,
        description="Page size used when the client sends none"
    )

    PAGINATION_MAX_LIMIT: int = Field(
        default=100,
        ge=1,
        description="Largest page size a client may request"
    )

    # -------------------------------------------------------------------------
    # Rate Limit Policies
    # -------------------------------------------------------------------------

    # Anonymous reads (listing search/detail, projects, geocoding), per client IP
    RATE_LIMIT_API_MAX: int = Field(default=100, ge=1)
    RATE_LIMIT_API_WINDOW_MS: int = Field(default=60_000, ge=1)

    RATE_LIMIT_AGENT_MAX: int = Field(default=300, ge=1)
    RATE_LIMIT_AGENT_WINDOW_MS: int = Field(default=60_000, ge=1)

    RATE_LIMIT_AUTOMATION_MAX: int = Field(default=60, ge=1)
    RATE_LIMIT_AUTOMATION_WINDOW_MS: int = Field(default=60_000, ge=1)

    RATE_LIMIT_ENQUIRY_MAX: int = Field(default=5, ge=1)
    RATE_LIMIT_ENQUIRY_WINDOW_MS: int = Field(default=60 * 60 * 1000, ge=1)

    RATE_LIMIT_CONTACT_MAX: int = Field(default=3, ge=1)
    RATE_LIMIT_CONTACT_WINDOW_MS: int = Field(default=60 * 60 * 1000, ge=1)

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging, SQL echo)"
    )

    API_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to"
    )

    API_PORT: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for the API server"
    )

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # Upload Settings
    # -------------------------------------------------------------------------

    MAX_UPLOAD_SIZE_MB: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum image upload size in MB"
    )

    ALLOWED_IMAGE_TYPES: str = Field(
        default="image/jpeg,image/png,image/webp",
        description="Allowed image content types (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        # Load from .env file in project root
        env_file=".env",
        env_file_encoding="utf-8",
        # Don't fail if .env doesn't exist (useful for production where
        # env vars are set directly)
        env_ignore_empty=True,
        # Case-sensitive environment variable names
        case_sensitive=True,
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Example: "http://localhost:3000, https://myapp.com" -> ["http://localhost:3000", "https://myapp.com"]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def allowed_image_types_list(self) -> list[str]:
        """Parse ALLOWED_IMAGE_TYPES string into a list."""
        return [t.strip().lower() for t in self.ALLOWED_IMAGE_TYPES.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        """
        Convert MB to bytes for file size validation.
        """
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once,
    not on every access. This is the recommended pattern for
    pydantic-settings.

    Returns:
        Settings: The application settings instance
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()
