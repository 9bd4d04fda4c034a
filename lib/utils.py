# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common utilities used across the application.
# =============================================================================

import re
from datetime import datetime, timezone


# =============================================================================
# Time Utilities
# =============================================================================

def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """
    Attach UTC to naive datetimes.

    Some database drivers (SQLite) hand timestamps back without tzinfo even
    though they were written as UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# =============================================================================
# Slug Utilities
# =============================================================================

_NON_WORD = re.compile(r"[^\w\s-]", re.ASCII)
_SEPARATORS = re.compile(r"[\s_-]+")
_EDGE_HYPHENS = re.compile(r"^-+|-+$")

SLUG_MAX_LENGTH = 60


def slugify(text: str, max_length: int = SLUG_MAX_LENGTH) -> str:
    """
    Build a URL-safe slug from free text.

    Lowercases, drops punctuation, joins words with single hyphens and
    truncates.

    Example:
        slugify("Luxury Pool Villa, Jomtien!")  # "luxury-pool-villa-jomtien"
    """
    slug = text.lower().strip()
    slug = _NON_WORD.sub("", slug)
    slug = _SEPARATORS.sub("-", slug)
    slug = _EDGE_HYPHENS.sub("", slug)
    return slug[:max_length].rstrip("-")
