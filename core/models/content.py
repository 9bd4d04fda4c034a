# =============================================================================
# core/models/content.py - Submission, Project and Post Schemas
# =============================================================================
# Smaller resources that sit around listings:
# - PropertySubmission: owner intake from the public site
# - Project: condo/development a listing belongs to
# - Post: article published by agents or automation
# =============================================================================

from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import APIModel
from .enums import ListingType, PostCategory, PropertyCategory, SubmissionStatus


class SubmissionCreate(APIModel):
    """Owner intake form."""

    title: str = Field(..., min_length=5, max_length=200)
    description: str = Field(..., min_length=10)
    price: float = Field(..., gt=0)
    listing_type: ListingType
    category: PropertyCategory
    contact_name: str = Field(..., min_length=2, max_length=200)
    contact_line: Optional[str] = None
    contact_phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    commission: Optional[str] = None
    images: list[str] = Field(default_factory=list)


class SubmissionResponse(APIModel):
    id: str
    title: str
    description: str
    price: float
    listing_type: ListingType
    category: PropertyCategory
    contact_name: str
    contact_line: Optional[str] = None
    contact_phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    commission: Optional[str] = None
    images: list[str] = Field(default_factory=list)
    status: SubmissionStatus
    created_at: datetime


class ProjectResponse(APIModel):
    id: str
    name: str
    name_th: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    address: Optional[str] = None
    city: Optional[str] = None
    completion_year: Optional[int] = None


class PostResponse(APIModel):
    id: str
    title: str
    slug: str
    excerpt: Optional[str] = None
    category: PostCategory
    tags: list[str] = Field(default_factory=list)
    published: bool
    author_id: Optional[str] = None
    featured_image: Optional[str] = None
    created_at: datetime
    url: Optional[str] = None
