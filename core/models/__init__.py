# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - enums.py: Domain enumerations shared with the database tables
# - property.py: Listing, status change and price history schemas
# - agent.py: Agent profile schemas
# - enquiry.py: Lead schemas
# - deal.py: Deal pipeline schemas and metadata documents
# - content.py: Submissions, projects and posts
# - automation.py: n8n gateway payloads
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------
from .enums import (
    DealType,
    EnquiryChannel,
    EnquiryStatus,
    Freshness,
    ListingType,
    PostCategory,
    PriceChangeType,
    PropertyCategory,
    PropertyStatus,
    SubmissionStatus,
    UserRole,
    VerificationSource,
)

# -----------------------------------------------------------------------------
# Property Models - Listings and their audit trail
# -----------------------------------------------------------------------------
from .property import (
    PriceHistoryResponse,
    PropertyCreate,
    PropertyResponse,
    PropertyUpdate,
    StatusChangeRequest,
)

# -----------------------------------------------------------------------------
# Agent Models
# -----------------------------------------------------------------------------
from .agent import (
    AgentCreate,
    AgentResponse,
    AgentStatsResponse,
    AgentSummary,
    AgentUpdate,
    CurrentAgentResponse,
    RecentEnquiry,
)

# -----------------------------------------------------------------------------
# Enquiry & Deal Models - Lead capture and pipeline
# -----------------------------------------------------------------------------
from .enquiry import EnquiryCreate, EnquiryResponse, EnquiryUpdate
from .deal import (
    DealCreate,
    DealPropertySummary,
    DealResponse,
    DealUpdate,
    InvoiceDocument,
    ReceiptDocument,
    merge_metadata,
)

# -----------------------------------------------------------------------------
# Content Models
# -----------------------------------------------------------------------------
from .content import (
    PostResponse,
    ProjectResponse,
    SubmissionCreate,
    SubmissionResponse,
)

# -----------------------------------------------------------------------------
# Automation Models - n8n gateway
# -----------------------------------------------------------------------------
from .automation import (
    AutomationEnquiryRequest,
    AutomationPropertyResponse,
    AutomationPostRequest,
    ChatLogRequest,
    InvoiceRequest,
    ReceiptRequest,
)

__all__ = [
    # Enums
    "DealType",
    "EnquiryChannel",
    "EnquiryStatus",
    "Freshness",
    "ListingType",
    "PostCategory",
    "PriceChangeType",
    "PropertyCategory",
    "PropertyStatus",
    "SubmissionStatus",
    "UserRole",
    "VerificationSource",
    # Property
    "PriceHistoryResponse",
    "PropertyCreate",
    "PropertyResponse",
    "PropertyUpdate",
    "StatusChangeRequest",
    # Agent
    "AgentCreate",
    "AgentResponse",
    "AgentStatsResponse",
    "AgentSummary",
    "AgentUpdate",
    "CurrentAgentResponse",
    "RecentEnquiry",
    # Enquiry & Deal
    "EnquiryCreate",
    "EnquiryResponse",
    "EnquiryUpdate",
    "DealCreate",
    "DealPropertySummary",
    "DealResponse",
    "DealUpdate",
    "InvoiceDocument",
    "ReceiptDocument",
    "merge_metadata",
    # Content
    "PostResponse",
    "ProjectResponse",
    "SubmissionCreate",
    "SubmissionResponse",
    # Automation
    "AutomationEnquiryRequest",
    "AutomationPropertyResponse",
    "AutomationPostRequest",
    "ChatLogRequest",
    "InvoiceRequest",
    "ReceiptRequest",
]
