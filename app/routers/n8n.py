# =============================================================================
# app/routers/n8n.py - Automation Gateway Endpoints
# =============================================================================
# Ingress for n8n workflows (chat bots, document generation, content, lead
# matching).
# AutomationRoute checks the X-N8N-API-Key header before the body is read;
# AutomationKeyDep then applies the AUTOMATION rate limit before the handler.
# =============================================================================

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Query

from app.dependencies import AutomationKeyDep, AutomationRoute, DbDep
from app.responses import created_response, success_response
from core.models.automation import (
    AutomationEnquiryRequest,
    AutomationPostRequest,
    ChatLogRequest,
    InvoiceRequest,
    ReceiptRequest,
)
from core.models.content import PostResponse
from core.models.enquiry import EnquiryResponse
from core.models.enums import ListingType, PropertyCategory
from core.services.automation_service import AutomationService, PropertyMatchCriteria
from core.services.enquiry_service import EnquiryService

logger = logging.getLogger(__name__)

router = APIRouter(route_class=AutomationRoute)


# =============================================================================
# Chat
# =============================================================================

@router.post("/chat/response", status_code=201)
def log_chat_response(body: ChatLogRequest, caller: AutomationKeyDep):
    """Log one chatbot exchange."""
    chat_id = AutomationService.log_chat(body)
    return created_response({"id": chat_id, "logged": True})


# =============================================================================
# Documents
# =============================================================================

@router.post("/documents/invoice", status_code=201)
def record_invoice(body: InvoiceRequest, db: DbDep, caller: AutomationKeyDep):
    """
    Attach a generated invoice to a deal.

    Existing deal metadata keys are kept; only `invoice` and the keys in
    the request's metadata are overwritten.
    """
    return created_response(AutomationService.record_invoice(db, body))


@router.post("/documents/receipt", status_code=201)
def record_receipt(body: ReceiptRequest, db: DbDep, caller: AutomationKeyDep):
    """Attach a payment receipt to a deal."""
    return created_response(AutomationService.record_receipt(db, body))


# =============================================================================
# Content
# =============================================================================

@router.post("/posts", status_code=201)
def create_post(body: AutomationPostRequest, db: DbDep, caller: AutomationKeyDep):
    """Create an article; drafts unless status is PUBLISHED."""
    post = AutomationService.create_post(db, body)
    response = PostResponse.model_validate(post).model_copy(
        update={"url": AutomationService.post_url(post)}
    )
    return created_response(response)


# =============================================================================
# Leads
# =============================================================================

@router.post("/enquiries", status_code=201)
def create_enquiry(body: AutomationEnquiryRequest, db: DbDep, caller: AutomationKeyDep):
    """Record a lead captured by a workflow."""
    enquiry = AutomationService.create_enquiry(db, body)
    return created_response(
        EnquiryResponse.model_validate(enquiry),
        meta={"enquiryNumber": AutomationService.enquiry_number(enquiry)},
    )


@router.get("/enquiries/{enquiry_id}")
def get_enquiry(enquiry_id: str, db: DbDep, caller: AutomationKeyDep):
    """Look up a lead so a workflow can follow up on it."""
    enquiry = EnquiryService.get_enquiry(db, enquiry_id)
    return success_response(
        EnquiryResponse.model_validate(enquiry),
        meta={"enquiryNumber": AutomationService.enquiry_number(enquiry)},
    )


# =============================================================================
# Listings
# =============================================================================

@router.get("/properties/match")
def match_properties(
    db: DbDep,
    caller: AutomationKeyDep,
    min_budget: Annotated[Optional[float], Query(alias="minBudget", ge=0)] = None,
    max_budget: Annotated[Optional[float], Query(alias="maxBudget", ge=0)] = None,
    category: Optional[PropertyCategory] = None,
    listing_type: Annotated[Optional[ListingType], Query(alias="listingType")] = None,
    bedrooms: Annotated[Optional[int], Query(ge=0)] = None,
    area: Optional[str] = None,
    city: str = "Pattaya",
    limit: Annotated[int, Query(ge=1, le=50)] = 5,
):
    """Available listings that fit a lead's budget and requirements."""
    criteria = PropertyMatchCriteria(
        min_budget=min_budget,
        max_budget=max_budget,
        category=category,
        listing_type=listing_type,
        bedrooms=bedrooms,
        area=area,
        city=city,
        limit=limit,
    )
    matches = [AutomationService.serialize_property(p) for p in AutomationService.match_properties(db, criteria)]
    return success_response(matches, meta={"count": len(matches)})


@router.get("/properties/featured")
def featured_properties(
    db: DbDep,
    caller: AutomationKeyDep,
    kind: Annotated[str, Query(alias="type")] = "all",
    category: Optional[PropertyCategory] = None,
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
):
    """Listings for social posts and newsletters (type: all, new or featured)."""
    listings = [
        AutomationService.serialize_property(p)
        for p in AutomationService.featured_properties(db, kind=kind, category=category, limit=limit)
    ]
    return success_response(listings, meta={"count": len(listings)})
