# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# Provides health check endpoints for monitoring and load balancers.
# Both use the standard success envelope; the envelope carries the timestamp.
# =============================================================================

import logging

from fastapi import APIRouter

from app.config import settings
from app.responses import success_response
from core.database import check_db_connection
from core.models.base import APIModel

logger = logging.getLogger(__name__)

router = APIRouter()

API_VERSION = "1.0.0"


# =============================================================================
# Response Models
# =============================================================================

class HealthResponse(APIModel):
    """Basic health check response."""
    status: str
    environment: str
    version: str


class ChecksResponse(APIModel):
    """Individual service checks."""
    database: str
    rate_limiter: str


class ReadinessResponse(APIModel):
    """Readiness check response."""
    status: str
    checks: ChecksResponse


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/health")
async def health_check():
    """
    Health check endpoint.

    Returns basic health status for load balancers and monitoring.
    """
    return success_response(
        HealthResponse(status="healthy", environment=settings.ENVIRONMENT, version=API_VERSION)
    )


@router.get("/health/ready")
def readiness_check():
    """
    Readiness check endpoint.

    Reports database connectivity and which rate limit store is in use.
    """
    checks = ChecksResponse(
        database="healthy" if check_db_connection() else "unhealthy",
        rate_limiter="redis" if settings.REDIS_URL else "memory",
    )
    if checks.database != "healthy":
        logger.warning("Readiness check: database unreachable")

    return success_response(
        ReadinessResponse(
            status="ready" if checks.database == "healthy" else "degraded",
            checks=checks,
        )
    )
