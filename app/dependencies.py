# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# These are injected into route handlers using Depends().
# =============================================================================

import hmac
import logging
from functools import lru_cache
from typing import Annotated, Callable, Optional

from fastapi import Depends, Header, Request, Response
from fastapi.routing import APIRoute
from sqlalchemy.orm import Session

from app.auth.dependencies import get_optional_agent
from app.config import settings
from app.exceptions import UnauthorizedError
from app.rate_limit import POLICIES, client_identifier, enforce_rate_limit, get_rate_limiter
from core.database import get_db
from core.tables import AgentProfile
from lib.geocoding import MapboxGeocoder
from lib.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

AUTOMATION_KEY_HEADER = "X-N8N-API-Key"

# Only this many characters of the automation key are ever used as an identifier
API_KEY_PREFIX_LENGTH = 8


@lru_cache
def get_geocoder() -> MapboxGeocoder:
    """
    Get the Mapbox client.

    Returns one shared client; disabled when MAPBOX_TOKEN is empty.
    """
    return MapboxGeocoder(token=settings.MAPBOX_TOKEN)


def verify_automation_key(provided: Optional[str]) -> str:
    """
    Compare an automation key with N8N_API_KEY in constant time.

    Raises:
        UnauthorizedError: Missing key, wrong key, or no key configured
    """
    expected = settings.N8N_API_KEY
    if not expected or not provided or not hmac.compare_digest(provided.encode(), expected.encode()):
        logger.warning("Rejected automation request with missing or invalid API key")
        raise UnauthorizedError("Invalid or missing API key")
    return provided


class AutomationRoute(APIRoute):
    """
    Route class for the automation gateway.

    FastAPI reads and decodes the JSON body before any dependency runs, so
    the key is checked here first: a caller without the key gets 401 even
    when the body is malformed.
    """

    def get_route_handler(self) -> Callable:
        handler = super().get_route_handler()

        async def gated_handler(request: Request) -> Response:
            verify_automation_key(request.headers.get(AUTOMATION_KEY_HEADER))
            return await handler(request)

        return gated_handler


def require_automation_key(
    x_n8n_api_key: Annotated[Optional[str], Header(alias=AUTOMATION_KEY_HEADER)] = None,
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> str:
    """
    Gate for /api/n8n/* routes.

    The key is checked before anything else; only then is the call counted
    against the AUTOMATION policy under `n8n:<key prefix>`.

    Returns:
        The rate limit identifier for this caller

    Raises:
        UnauthorizedError: Missing key, wrong key, or no key configured
        RateLimitExceededError: Caller exceeded the AUTOMATION policy
    """
    x_n8n_api_key = verify_automation_key(x_n8n_api_key)

    identifier = f"n8n:{x_n8n_api_key[:API_KEY_PREFIX_LENGTH]}"
    enforce_rate_limit(limiter, identifier, POLICIES["AUTOMATION"])
    return identifier


def limit_public_reads(
    request: Request,
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> None:
    """Count a read on a public endpoint against the API policy, per client IP."""
    enforce_rate_limit(limiter, client_identifier(request, "api"), POLICIES["API"])


# Type aliases for dependency injection
DbDep = Annotated[Session, Depends(get_db)]
LimiterDep = Annotated[RateLimiter, Depends(get_rate_limiter)]
GeocoderDep = Annotated[MapboxGeocoder, Depends(get_geocoder)]
OptionalAgentDep = Annotated[Optional[AgentProfile], Depends(get_optional_agent)]
AutomationKeyDep = Annotated[str, Depends(require_automation_key)]
PublicReadLimit = Depends(limit_public_reads)
