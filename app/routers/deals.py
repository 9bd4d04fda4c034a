# =============================================================================
# app/routers/deals.py - Deal Pipeline Endpoints
# =============================================================================
# Deals are scoped through the agent that owns the deal's property.
# Moving a deal to another stage also refreshes the listing's freshness.
# =============================================================================

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from app.auth import AuthContext, require_agent
from app.dependencies import DbDep
from app.responses import created_response, paginated_response, success_response, validate_pagination
from core.models.deal import DealCreate, DealResponse, DealUpdate
from core.models.enums import DealType
from core.services.deal_service import DealService

router = APIRouter()


@router.get("")
def list_deals(
    db: DbDep,
    auth: AuthContext = Depends(require_agent),
    stage: Optional[str] = None,
    deal_type: Annotated[Optional[DealType], Query(alias="dealType")] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
):
    """Deals on listings the caller can see, most recently updated first."""
    page, limit = validate_pagination(page, limit)
    deals, total = DealService.list_deals(
        db, auth.agent, stage=stage, deal_type=deal_type, page=page, limit=limit
    )
    return paginated_response([DealResponse.model_validate(d) for d in deals], page, limit, total)


@router.post("", status_code=201)
def create_deal(
    body: DealCreate,
    db: DbDep,
    auth: AuthContext = Depends(require_agent),
):
    """Open a deal on a listing the caller manages."""
    deal = DealService.create_deal(db, body, auth.agent)
    return created_response(DealResponse.model_validate(deal))


@router.get("/{deal_id}")
def get_deal(
    deal_id: str,
    db: DbDep,
    auth: AuthContext = Depends(require_agent),
):
    deal = DealService.get_deal(db, deal_id, auth.agent)
    return success_response(DealResponse.model_validate(deal))


@router.patch("/{deal_id}")
def update_deal(
    deal_id: str,
    body: DealUpdate,
    db: DbDep,
    auth: AuthContext = Depends(require_agent),
):
    """
    Update a deal.

    A stage change marks the listing as verified by the SYSTEM in the same
    transaction; if either write fails neither is kept.
    """
    deal = DealService.update_deal(db, deal_id, body, auth.agent)
    return success_response(DealResponse.model_validate(deal))


@router.delete("/{deal_id}")
def delete_deal(
    deal_id: str,
    db: DbDep,
    auth: AuthContext = Depends(require_agent),
):
    DealService.delete_deal(db, deal_id, auth.agent)
    return success_response({"id": deal_id, "deleted": True})
