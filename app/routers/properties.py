# =============================================================================
# app/routers/properties.py - Listing Endpoints
# =============================================================================
# Public search and detail, agent CRUD, and the lifecycle actions:
# - POST /properties/{id}/status: explicit status change
# - POST /properties/{id}/verify: agent confirms the current status
#
# Commission fields are redacted per viewer by PropertyService.serialize.
# =============================================================================

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Path, Query

from app.auth import AuthContext, require_agent
from app.dependencies import DbDep, OptionalAgentDep, PublicReadLimit
from app.exceptions import ValidationError
from app.responses import created_response, paginated_response, success_response, validate_pagination
from core.models.enums import Freshness, ListingType, PropertyCategory, PropertyStatus
from core.models.property import PropertyCreate, PropertyUpdate, StatusChangeRequest
from core.services.property_service import PropertyFilters, PropertyService

router = APIRouter()


def _freshness_param(value: Optional[str]) -> Optional[Freshness]:
    # Accepts fresh / needs_check in any case
    if value is None:
        return None
    try:
        return Freshness(value.upper())
    except ValueError:
        raise ValidationError(
            "Invalid freshness filter",
            details=[{"field": "freshness", "message": "Must be fresh or needs_check"}],
        )


# =============================================================================
# Public Endpoints
# =============================================================================

@router.get("", dependencies=[PublicReadLimit])
def list_properties(
    db: DbDep,
    viewer: OptionalAgentDep,
    category: Optional[PropertyCategory] = None,
    listing_type: Annotated[Optional[ListingType], Query(alias="listingType")] = None,
    city: Optional[str] = None,
    area: Optional[str] = None,
    min_price: Annotated[Optional[float], Query(alias="minPrice", ge=0)] = None,
    max_price: Annotated[Optional[float], Query(alias="maxPrice", ge=0)] = None,
    bedrooms: Annotated[Optional[int], Query(ge=0)] = None,
    min_size: Annotated[Optional[float], Query(alias="minSize", ge=0)] = None,
    max_size: Annotated[Optional[float], Query(alias="maxSize", ge=0)] = None,
    featured: Optional[bool] = None,
    status: PropertyStatus = PropertyStatus.AVAILABLE,
    project_id: Annotated[Optional[str], Query(alias="projectId")] = None,
    freshness: Optional[str] = None,
    new_project: Annotated[bool, Query(alias="newProject")] = False,
    page: Optional[int] = None,
    limit: Optional[int] = None,
):
    """
    Search listings.

    Anonymous callers and SUPER_ADMIN see every listing; other signed-in
    agents see only their own.
    """
    page, limit = validate_pagination(page, limit)
    filters = PropertyFilters(
        category=category,
        listing_type=listing_type,
        city=city,
        area=area,
        min_price=min_price,
        max_price=max_price,
        bedrooms=bedrooms,
        min_size=min_size,
        max_size=max_size,
        featured=featured,
        status=status,
        project_id=project_id,
        freshness=_freshness_param(freshness),
        new_project=new_project,
    )

    items, total = PropertyService.list_properties(db, filters, viewer, page, limit)
    return paginated_response(
        [PropertyService.serialize(prop, viewer) for prop in items], page, limit, total
    )


@router.get("/{property_id}", dependencies=[PublicReadLimit])
def get_property(
    property_id: Annotated[str, Path(description="Property id")],
    db: DbDep,
    viewer: OptionalAgentDep,
):
    """Listing detail with freshness; commission fields depend on the viewer."""
    prop = PropertyService.get_property(db, property_id)
    return success_response(PropertyService.serialize(prop, viewer))


# =============================================================================
# Agent Endpoints
# =============================================================================

@router.post("", status_code=201)
def create_property(
    body: PropertyCreate,
    db: DbDep,
    auth: AuthContext = Depends(require_agent),
):
    """
    Create a listing owned by the caller.

    Generates the ASC- reference id and a unique slug, and records the
    INITIAL price history row.
    """
    prop = PropertyService.create_property(db, body, auth.agent)
    return created_response(PropertyService.serialize(prop, auth.agent))


@router.put("/{property_id}")
def update_property(
    property_id: str,
    body: PropertyUpdate,
    db: DbDep,
    auth: AuthContext = Depends(require_agent),
):
    """Partial update; price changes are appended to the price history."""
    prop = PropertyService.update_property(db, property_id, body, auth.agent)
    return success_response(PropertyService.serialize(prop, auth.agent))


@router.delete("/{property_id}")
def delete_property(
    property_id: str,
    db: DbDep,
    auth: AuthContext = Depends(require_agent),
):
    """Delete a listing. Owner or SUPER_ADMIN only."""
    PropertyService.delete_property(db, property_id, auth.agent)
    return success_response({"id": property_id, "deleted": True})


@router.post("/{property_id}/status")
def change_status(
    property_id: str,
    body: StatusChangeRequest,
    db: DbDep,
    auth: AuthContext = Depends(require_agent),
):
    """Move a listing to a new status; invalid transitions return 400."""
    prop = PropertyService.change_status(db, property_id, body.status, auth.agent)
    return success_response(PropertyService.serialize(prop, auth.agent))


@router.post("/{property_id}/verify")
def reverify_property(
    property_id: str,
    db: DbDep,
    auth: AuthContext = Depends(require_agent),
):
    """Confirm the listing's current status, refreshing it to FRESH."""
    prop = PropertyService.reverify(db, property_id, auth.agent)
    return success_response(PropertyService.serialize(prop, auth.agent))
