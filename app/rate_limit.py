# =============================================================================
# app/rate_limit.py - Rate Limit Policies & Request Glue
# =============================================================================
# Connects lib.rate_limiter to FastAPI:
# - named policies built from settings
# - the limiter instance kept on app.state (overridable in tests)
# - `enforce_rate_limit` which raises RateLimitExceededError
#
# Usage:
#   limiter: RateLimiter = Depends(get_rate_limiter)
#   enforce_rate_limit(limiter, f"agent:{agent.id}", POLICIES["AGENT"])
# =============================================================================

import logging

from fastapi import Request

from app.config import Settings, settings
from app.exceptions import RateLimitExceededError
from lib.rate_limiter import (
    InMemoryRateLimitStore,
    RateLimiter,
    RateLimitPolicy,
    RateLimitResult,
    RedisRateLimitStore,
)

logger = logging.getLogger(__name__)


def build_policies(config: Settings) -> dict[str, RateLimitPolicy]:
    """Named policies per caller class."""
    return {
        "API": RateLimitPolicy(config.RATE_LIMIT_API_MAX, config.RATE_LIMIT_API_WINDOW_MS),
        "AGENT": RateLimitPolicy(config.RATE_LIMIT_AGENT_MAX, config.RATE_LIMIT_AGENT_WINDOW_MS),
        "AUTOMATION": RateLimitPolicy(
            config.RATE_LIMIT_AUTOMATION_MAX, config.RATE_LIMIT_AUTOMATION_WINDOW_MS
        ),
        "CONTACT": RateLimitPolicy(config.RATE_LIMIT_CONTACT_MAX, config.RATE_LIMIT_CONTACT_WINDOW_MS),
        "ENQUIRY": RateLimitPolicy(config.RATE_LIMIT_ENQUIRY_MAX, config.RATE_LIMIT_ENQUIRY_WINDOW_MS),
    }


POLICIES = build_policies(settings)


def create_rate_limiter(config: Settings) -> RateLimiter:
    """Redis-backed limiter when REDIS_URL is set, otherwise in-process."""
    if config.REDIS_URL:
        logger.info("Rate limit counters stored in Redis")
        return RateLimiter(RedisRateLimitStore.from_url(config.REDIS_URL))
    logger.info("Rate limit counters stored in memory")
    return RateLimiter(InMemoryRateLimitStore())


def get_rate_limiter(request: Request) -> RateLimiter:
    """Dependency returning the application's limiter."""
    limiter = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        limiter = create_rate_limiter(settings)
        request.app.state.rate_limiter = limiter
    return limiter


def enforce_rate_limit(
    limiter: RateLimiter,
    identifier: str,
    policy: RateLimitPolicy,
) -> RateLimitResult:
    """
    Count a call and raise if it is over the limit.

    Raises:
        RateLimitExceededError: 429 with Retry-After and reset time
    """
    result = limiter.check(identifier, policy)
    if not result.allowed:
        raise RateLimitExceededError(reset_time=result.reset_time, now=limiter.clock())
    return result


def client_identifier(request: Request, action: str) -> str:
    """Identifier for anonymous callers: `<action>:<client ip>`."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip = forwarded.split(",")[0].strip()
    else:
        ip = request.headers.get("x-real-ip") or (request.client.host if request.client else "unknown")
    return f"{action}:{ip}"
