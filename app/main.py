# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the EstateAscent API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.exceptions import register_exception_handlers
from app.rate_limit import create_rate_limiter
from app.responses import success_response
from app.routers import (
    agents,
    deals,
    enquiries,
    geocode,
    health,
    n8n,
    price_history,
    projects,
    properties,
    submissions,
    upload,
    verify,
)
from core.database import init_db

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs on startup and shutdown:
    - Startup: Ensure tables exist, create the rate limiter
    - Shutdown: Log only; connections are pooled by SQLAlchemy
    """
    logger.info(f"Starting EstateAscent API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")

    init_db()
    if getattr(app.state, "rate_limiter", None) is None:
        app.state.rate_limiter = create_rate_limiter(settings)

    yield

    logger.info("Shutting down EstateAscent API")


# Create FastAPI application
app = FastAPI(
    title="EstateAscent API",
    description="""
## Property Listing API

Listings, enquiries and deals for the EstateAscent agent platform.

### Key Features

- **Listing lifecycle**: status transitions with verification tracking
- **Freshness**: listings not verified within the window are flagged NEEDS_CHECK
- **Price history**: every price change is recorded with the listing update
- **Owner verification**: one-click confirmation links for property owners
- **Automation gateway**: API-key protected endpoints for n8n workflows

### Authentication

Agent endpoints expect `Authorization: Bearer <supabase session token>`.
Automation endpoints expect `X-N8N-API-Key`.
""",
    version=health.API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Properties", "description": "Listing search, CRUD and lifecycle"},
        {"name": "Verification", "description": "Owner verification links"},
        {"name": "Price History", "description": "Listing price audit trail"},
        {"name": "Enquiries", "description": "Buyer and tenant enquiries"},
        {"name": "Deals", "description": "Deal pipeline"},
        {"name": "Submissions", "description": "Owner property submissions"},
        {"name": "Projects", "description": "Condominium and development search"},
        {"name": "Agents", "description": "Agent profiles"},
        {"name": "Upload", "description": "Listing image upload"},
        {"name": "Geocoding", "description": "Address lookup"},
        {"name": "Automation", "description": "n8n workflow endpoints"},
        {"name": "Health", "description": "API health and readiness checks"},
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# CORS middleware - allows cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

register_exception_handlers(app)


# =============================================================================
# Routers
# =============================================================================

app.include_router(health.router, prefix="/api", tags=["Health"])
app.include_router(properties.router, prefix="/api/properties", tags=["Properties"])
app.include_router(verify.router, prefix="/api/verify", tags=["Verification"])
app.include_router(price_history.router, prefix="/api/price-history", tags=["Price History"])
app.include_router(enquiries.router, prefix="/api/enquiries", tags=["Enquiries"])
app.include_router(deals.router, prefix="/api/deals", tags=["Deals"])
app.include_router(submissions.router, prefix="/api/submissions", tags=["Submissions"])
app.include_router(projects.router, prefix="/api/projects", tags=["Projects"])
app.include_router(agents.router, prefix="/api", tags=["Agents"])
app.include_router(upload.router, prefix="/api/upload", tags=["Upload"])
app.include_router(geocode.router, prefix="/api/geocode", tags=["Geocoding"])
app.include_router(n8n.router, prefix="/api/n8n", tags=["Automation"])


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return success_response({
        "name": "EstateAscent API",
        "version": health.API_VERSION,
        "docs": "/docs",
        "health": "/api/health",
    })
