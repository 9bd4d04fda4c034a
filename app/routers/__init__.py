# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - properties.py: Listing search, CRUD and lifecycle actions
# - verify.py: Owner verification link (HTML responses)
# - price_history.py: Read-only price audit trail
# - enquiries.py: Public enquiry form and agent follow-up
# - deals.py: Deal pipeline
# - submissions.py: Owner property submissions
# - projects.py: Project search
# - agents.py: Current agent and agent management
# - upload.py: Listing image upload
# - geocode.py: Address lookup
# - n8n.py: Automation gateway (API key protected)
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import agents
from . import deals
from . import enquiries
from . import geocode
from . import health
from . import n8n
from . import price_history
from . import projects
from . import properties
from . import submissions
from . import upload
from . import verify

__all__ = [
    "agents",
    "deals",
    "enquiries",
    "geocode",
    "health",
    "n8n",
    "price_history",
    "projects",
    "properties",
    "submissions",
    "upload",
    "verify",
]
