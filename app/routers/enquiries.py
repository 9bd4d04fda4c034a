# =============================================================================
# app/routers/enquiries.py - Enquiry Endpoints
# =============================================================================
# POST is public (website contact form) and rate limited per client IP.
# Reading and updating enquiries is for agents, scoped to their own unless
# they are internal agents.
# =============================================================================

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from app.auth import AuthContext, require_agent
from app.dependencies import DbDep, LimiterDep
from app.rate_limit import POLICIES, client_identifier, enforce_rate_limit
from app.responses import created_response, success_response
from core.models.enquiry import EnquiryCreate, EnquiryResponse, EnquiryUpdate
from core.models.enums import EnquiryStatus
from core.services.enquiry_service import EnquiryService

router = APIRouter()


@router.post("", status_code=201)
def create_enquiry(
    body: EnquiryCreate,
    request: Request,
    db: DbDep,
    limiter: LimiterDep,
):
    """
    Submit an enquiry about a listing.

    Routed to the explicit agent if given, otherwise to the listing's agent.
    """
    enforce_rate_limit(limiter, client_identifier(request, "enquiry"), POLICIES["ENQUIRY"])

    enquiry = EnquiryService.create_enquiry(db, body)
    return created_response(EnquiryResponse.model_validate(enquiry))


@router.get("")
def list_enquiries(
    db: DbDep,
    auth: AuthContext = Depends(require_agent),
    property_id: Optional[str] = Query(default=None, alias="propertyId"),
    status: Optional[EnquiryStatus] = None,
):
    """Enquiries visible to the caller, newest first."""
    enquiries = EnquiryService.list_enquiries(db, auth.agent, property_id=property_id, status=status)
    return success_response([EnquiryResponse.model_validate(e) for e in enquiries])


@router.patch("/{enquiry_id}")
def update_enquiry(
    enquiry_id: str,
    body: EnquiryUpdate,
    db: DbDep,
    auth: AuthContext = Depends(require_agent),
):
    """Update an enquiry's status (owner or internal agents)."""
    enquiry = EnquiryService.update_enquiry(db, enquiry_id, body, auth.agent)
    return success_response(EnquiryResponse.model_validate(enquiry))
