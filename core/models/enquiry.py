# =============================================================================
# core/models/enquiry.py - Enquiry Schemas
# =============================================================================
# Leads come from the public site (EnquiryCreate) or from automation
# (see automation.py). Agents move them through NEW -> CONTACTED ->
# CONVERTED | CLOSED.
# =============================================================================

from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from .agent import AgentSummary
from .base import EMAIL_PATTERN, APIModel
from .enums import EnquiryChannel, EnquiryStatus


class EnquiryCreate(APIModel):
    """
    Public enquiry about a listing.

    Example:
        {
            "propertyId": "550e8400-e29b-41d4-a716-446655440000",
            "channel": "WEBSITE_FORM",
            "name": "Jane",
            "email": "jane@example.com",
            "message": "Is the villa still available in March?"
        }
    """

    property_id: str
    channel: EnquiryChannel
    name: str = Field(..., min_length=1, max_length=200)
    phone: Optional[str] = Field(default=None, max_length=50)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    message: str = Field(..., min_length=10)
    agent_id: Optional[str] = None


class EnquiryUpdate(APIModel):
    status: Optional[EnquiryStatus] = None


class EnquiryResponse(APIModel):
    id: str
    property_id: Optional[str] = None
    agent_id: Optional[str] = None
    channel: EnquiryChannel
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    message: str
    status: EnquiryStatus
    responded_at: Optional[datetime] = None
    source: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="metadata_")
    created_at: datetime
    agent: Optional[AgentSummary] = None
