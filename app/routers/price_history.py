# =============================================================================
# app/routers/price_history.py - Price History Endpoint
# =============================================================================
# Read-only. Rows are written by the property service whenever a listing's
# price changes; nothing here writes history directly.
# =============================================================================

from typing import Annotated, Optional

from fastapi import APIRouter, Query

from app.dependencies import DbDep, PublicReadLimit
from app.exceptions import ValidationError
from app.responses import success_response
from core.models.property import PriceHistoryResponse
from core.services.property_service import PropertyService

router = APIRouter()


@router.get("", dependencies=[PublicReadLimit])
def get_price_history(
    db: DbDep,
    property_id: Annotated[Optional[str], Query(alias="propertyId")] = None,
):
    """Price changes for one listing, newest first."""
    if not property_id:
        raise ValidationError(
            "Property ID is required",
            details=[{"field": "propertyId", "message": "Query parameter is required"}],
        )

    history = PropertyService.get_price_history(db, property_id)
    return success_response([PriceHistoryResponse.model_validate(row) for row in history])
