# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - rate_limiter.py: Fixed window rate limiter with memory/Redis counter stores
# - supabase_client.py: Typed Supabase wrapper (auth lookup, storage)
# - geocoding.py: Mapbox forward/reverse geocoding client
# - utils.py: Shared utilities (UTC time, slugs)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.rate_limiter import (
    InMemoryRateLimitStore,
    RateLimiter,
    RateLimitPolicy,
    RateLimitResult,
    RedisRateLimitStore,
    check_rate_limit,
)
from lib.utils import ensure_utc, slugify, utcnow

__all__ = [
    # Rate limiting
    "InMemoryRateLimitStore",
    "RateLimiter",
    "RateLimitPolicy",
    "RateLimitResult",
    "RedisRateLimitStore",
    "check_rate_limit",
    # Utils
    "ensure_utc",
    "slugify",
    "utcnow",
]
