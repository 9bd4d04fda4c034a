# =============================================================================
# core/models/agent.py - Agent Profile Schemas
# =============================================================================

from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import EMAIL_PATTERN, PHONE_PATTERN, APIModel
from .enums import EnquiryChannel, EnquiryStatus, UserRole


class AgentCreate(APIModel):
    """
    Input for creating an agent profile (SUPER_ADMIN only).

    Example:
        {"name": "Somchai P.", "email": "somchai@example.com", "role": "AGENT"}
    """

    name: str = Field(..., min_length=2, max_length=200)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN)
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    line_id: Optional[str] = None
    whatsapp: Optional[str] = None
    image_url: Optional[str] = None
    languages: list[str] = Field(default_factory=list)
    role: UserRole = UserRole.AGENT
    company_name: Optional[str] = None
    is_active: bool = True


class AgentUpdate(APIModel):
    """Partial update of an agent profile."""

    name: Optional[str] = Field(default=None, min_length=2, max_length=200)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN)
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    line_id: Optional[str] = None
    whatsapp: Optional[str] = None
    image_url: Optional[str] = None
    languages: Optional[list[str]] = None
    role: Optional[UserRole] = None
    company_name: Optional[str] = None
    is_active: Optional[bool] = None


class AgentResponse(APIModel):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    line_id: Optional[str] = None
    whatsapp: Optional[str] = None
    image_url: Optional[str] = None
    languages: list[str] = Field(default_factory=list)
    role: UserRole
    company_name: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class AgentSummary(APIModel):
    """Agent reference embedded in other resources."""

    id: str
    name: str
    email: Optional[str] = None


class CurrentAgentResponse(APIModel):
    """Body of GET /api/agent/me."""

    authenticated: bool = True
    agent: AgentResponse
    auto_created: bool = False


class RecentEnquiry(APIModel):
    """Enquiry line on the agent dashboard."""

    id: str
    property_id: Optional[str] = None
    name: str
    channel: EnquiryChannel
    message: str
    status: EnquiryStatus
    created_at: datetime


class AgentStatsResponse(APIModel):
    """
    Body of GET /api/agent/stats.

    Listing counts cover AVAILABLE listings only; fresh and needs-check
    always add up to the active count.
    """

    active_listings: int
    fresh_listings: int
    needs_check_listings: int
    pending_submissions: int
    total_enquiries: int
    new_enquiries: int
    recent_enquiries: list[RecentEnquiry] = Field(default_factory=list)
