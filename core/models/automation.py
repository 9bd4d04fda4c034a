# =============================================================================
# core/models/automation.py - Automation Gateway Schemas
# =============================================================================
# Payloads accepted from, and listings returned to, the n8n workflows on
# /api/n8n/*.
# =============================================================================

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import Field

from .base import EMAIL_PATTERN, APIModel
from .enums import EnquiryChannel, Freshness, ListingType, PostCategory, PropertyCategory


class ChatLogRequest(APIModel):
    """A chat exchange handled by the automation bot. Logged, not stored."""

    platform: Optional[str] = None
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    message: Optional[str] = None
    intent: Optional[str] = None
    response: Optional[str] = None
    automated: bool = True
    metadata: dict[str, Any] = Field(default_factory=dict)


class InvoiceRequest(APIModel):
    """
    Example:
        {"dealId": "...", "url": "https://.../INV-1001.pdf", "invoiceNumber": "1001", "amount": 45000}
    """

    deal_id: str
    url: str = Field(..., min_length=1)
    invoice_number: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    due_date: Optional[str] = None
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ReceiptRequest(APIModel):
    deal_id: str
    url: str = Field(..., min_length=1)
    receipt_number: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    paid_date: Optional[str] = None
    payment_method: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class AutomationPostRequest(APIModel):
    """Article drafted by automation. Stays unpublished unless status is PUBLISHED."""

    title: str = Field(..., min_length=1, max_length=300)
    content: str = Field(..., min_length=1)
    excerpt: Optional[str] = None
    category: PostCategory = PostCategory.NEWS
    tags: list[str] = Field(default_factory=list)
    status: Literal["DRAFT", "PUBLISHED"] = "DRAFT"
    author_id: Optional[str] = None
    featured_image: Optional[str] = None


class AutomationEnquiryRequest(APIModel):
    name: str = Field(..., min_length=2, max_length=200)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    phone: Optional[str] = Field(default=None, max_length=50)
    message: str = Field(default="Lead from automation", min_length=1)
    property_id: Optional[str] = None
    agent_id: Optional[str] = None
    channel: EnquiryChannel = EnquiryChannel.AUTOMATION
    source: str = "n8n"
    metadata: dict[str, Any] = Field(default_factory=dict)


class AutomationPropertyResponse(APIModel):
    """
    Listing as handed to workflows.

    Workflows act on behalf of agents, so the agent's commission share and
    the commission amount are included.
    """

    id: str
    listing_code: str
    slug: str
    title: str
    description: str
    category: PropertyCategory
    listing_type: ListingType
    price: Optional[float] = None
    rent_price: Optional[float] = None
    size: float
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    area: Optional[str] = None
    city: str
    address: str
    images: list[str] = Field(default_factory=list)
    featured: bool = False
    agent_id: Optional[str] = None
    agent_commission_rate: Optional[float] = None
    commission_amount: Optional[float] = None
    freshness: Freshness
    url: str
    created_at: datetime
