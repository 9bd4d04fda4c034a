# =============================================================================
# app/routers/geocode.py - Geocoding Endpoint
# =============================================================================
# Address lookup for the listing form, backed by Mapbox.
#   ?lat=&lng=  reverse geocode (single result or null)
#   ?q=         forward search (list)
# =============================================================================

from typing import Annotated, Optional

from fastapi import APIRouter, Query

from app.dependencies import GeocoderDep, PublicReadLimit
from app.exceptions import EstateAscentException, ValidationError
from app.responses import success_response
from core.models.base import APIModel
from lib.geocoding import GeocodingError

router = APIRouter()


class GeocodeResponse(APIModel):
    address: str
    city: str
    zip_code: str
    lat: float
    lng: float


@router.get("", dependencies=[PublicReadLimit])
def geocode(
    geocoder: GeocoderDep,
    lat: Annotated[Optional[float], Query(ge=-90, le=90)] = None,
    lng: Annotated[Optional[float], Query(ge=-180, le=180)] = None,
    q: Optional[str] = None,
):
    """Reverse geocode coordinates, or search by free text."""
    try:
        if lat is not None and lng is not None:
            result = geocoder.reverse(lat, lng)
            return success_response(GeocodeResponse.model_validate(result) if result else None)

        if q:
            return success_response([GeocodeResponse.model_validate(r) for r in geocoder.search(q)])
    except GeocodingError as e:
        raise EstateAscentException(
            message=str(e),
            code="GEOCODING_UNAVAILABLE",
            status_code=502,
            suggestion="Try again later or enter the address manually",
        )

    raise ValidationError(
        "Provide lat and lng, or q",
        details=[{"field": "q", "message": "Either coordinates or a search query is required"}],
    )
