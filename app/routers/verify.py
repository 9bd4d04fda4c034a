# =============================================================================
# app/routers/verify.py - Owner Verification Link
# =============================================================================
# Target of the "is your property still available?" e-mail sent to owners.
# The owner submits a small form; the response is a standalone HTML page,
# not the JSON envelope. Errors render as HTML through the exception
# handlers (see VerificationPageError).
# =============================================================================

from typing import Annotated, Optional

from fastapi import APIRouter, Form
from fastapi.responses import HTMLResponse

from app.dependencies import DbDep
from app.exceptions import render_message_page
from core.models.enums import PropertyStatus
from core.services.property_service import PropertyService

router = APIRouter()

# (title, body, background, text color) per accepted action
CONFIRMATION_PAGES = {
    PropertyStatus.AVAILABLE: (
        "Updated Successfully!",
        "Thank you for confirming your property is still available.",
        "#f0fdf4",
        "#166534",
    ),
    PropertyStatus.SOLD: (
        "Listing Closed",
        "Thank you for letting us know. The listing has been marked as sold.",
        "#f9fafb",
        "#374151",
    ),
}


@router.post("/{property_id}", response_class=HTMLResponse)
def verify_property(
    property_id: str,
    db: DbDep,
    action: Annotated[Optional[str], Form()] = None,
):
    """
    Apply the owner's answer (AVAILABLE or SOLD).

    Stamps the listing as verified by the OWNER. Any other action returns a
    400 page and changes nothing.
    """
    prop = PropertyService.verify_by_owner(db, property_id, action)
    title, body, background, color = CONFIRMATION_PAGES[prop.status]
    return HTMLResponse(content=render_message_page(title, body, background=background, color=color))
