# =============================================================================
# core/models/property.py - Property Schemas
# =============================================================================
# These models define the API contract for listings:
# - PropertyCreate / PropertyUpdate: agent input
# - PropertyResponse: listing as returned to clients (freshness included)
# - StatusChangeRequest: explicit lifecycle transition
# - PriceHistoryResponse: one price audit row
# =============================================================================

from datetime import datetime
from typing import Optional

from pydantic import Field, model_validator

from .base import APIModel
from .enums import (
    Freshness,
    ListingType,
    PriceChangeType,
    PropertyCategory,
    PropertyStatus,
    VerificationSource,
)

# Fields that make no sense for a plot of land
LAND_EXCLUDED_FIELDS = ("bedrooms", "bathrooms")


class PropertyFields(APIModel):
    """Optional listing attributes shared by create and update."""

    area: Optional[str] = Field(default=None, max_length=100)
    price: Optional[float] = Field(default=None, gt=0)
    rent_price: Optional[float] = Field(default=None, gt=0)
    bedrooms: Optional[int] = Field(default=None, ge=0)
    bathrooms: Optional[int] = Field(default=None, ge=0)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    project_id: Optional[str] = None
    owner_contact_details: Optional[str] = None

    commission_rate: Optional[float] = Field(default=None, ge=0, le=100)
    commission_amount: Optional[float] = Field(default=None, gt=0)
    agent_commission_rate: Optional[float] = Field(default=None, ge=0, le=100)


class PropertyCreate(PropertyFields):
    """
    Input for creating a listing.

    Example:
        {
            "title": "Pool Villa near Jomtien Beach",
            "description": "Three bedroom villa with private pool",
            "address": "123 Jomtien Second Road",
            "city": "Pattaya",
            "state": "Chonburi",
            "zipCode": "20150",
            "category": "HOUSE",
            "size": 220,
            "listingType": "SALE",
            "price": 8500000
        }
    """

    title: str = Field(..., min_length=5, max_length=200)
    description: str = Field(..., min_length=10)
    address: str = Field(..., min_length=5)
    city: str = Field(..., min_length=2, max_length=100)
    state: str = Field(..., min_length=2, max_length=100)
    zip_code: str = Field(..., min_length=3, max_length=20)
    category: PropertyCategory
    size: float = Field(..., gt=0)
    listing_type: ListingType = ListingType.SALE
    status: PropertyStatus = PropertyStatus.AVAILABLE
    images: list[str] = Field(default_factory=list)
    featured: bool = False

    @model_validator(mode="after")
    def check_listing_rules(self) -> "PropertyCreate":
        if self.listing_type in (ListingType.SALE, ListingType.BOTH) and not self.price:
            raise ValueError("Sale price is required when listing type is SALE or BOTH")
        if self.listing_type in (ListingType.RENT, ListingType.BOTH) and not self.rent_price:
            raise ValueError("Rent price is required when listing type is RENT or BOTH")
        if self.category == PropertyCategory.LAND:
            for field in LAND_EXCLUDED_FIELDS:
                if getattr(self, field):
                    raise ValueError(f"{field} is not applicable to LAND category")
        return self


class PropertyUpdate(PropertyFields):
    """
    Partial update. Only fields present in the request are applied.

    A change to `status` goes through the lifecycle rules; a change to
    `price` or `rentPrice` records a price history row.
    """

    title: Optional[str] = Field(default=None, min_length=5, max_length=200)
    description: Optional[str] = Field(default=None, min_length=10)
    address: Optional[str] = Field(default=None, min_length=5)
    city: Optional[str] = Field(default=None, min_length=2, max_length=100)
    state: Optional[str] = Field(default=None, min_length=2, max_length=100)
    zip_code: Optional[str] = Field(default=None, min_length=3, max_length=20)
    category: Optional[PropertyCategory] = None
    size: Optional[float] = Field(default=None, gt=0)
    listing_type: Optional[ListingType] = None
    status: Optional[PropertyStatus] = None
    images: Optional[list[str]] = None
    featured: Optional[bool] = None


class PropertyResponse(APIModel):
    """Listing as returned by the API."""

    id: str
    reference_id: str
    slug: str
    title: str
    description: str
    address: str
    city: str
    area: Optional[str] = None
    state: str
    zip_code: str
    category: PropertyCategory
    listing_type: ListingType
    status: PropertyStatus
    price: Optional[float] = None
    rent_price: Optional[float] = None
    size: float
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    images: list[str] = Field(default_factory=list)
    featured: bool = False
    commission_rate: Optional[float] = None
    commission_amount: Optional[float] = None
    agent_commission_rate: Optional[float] = None
    last_verified_at: Optional[datetime] = None
    verification_source: Optional[VerificationSource] = None
    freshness: Optional[Freshness] = None
    agent_id: Optional[str] = None
    project_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class StatusChangeRequest(APIModel):
    """Move a listing to a new status (or re-confirm the current one)."""

    status: PropertyStatus


class PriceHistoryResponse(APIModel):
    id: str
    property_id: str
    price: Optional[float] = None
    rent_price: Optional[float] = None
    change_type: PriceChangeType
    changed_by: Optional[str] = None
    notes: Optional[str] = None
    changed_at: datetime
