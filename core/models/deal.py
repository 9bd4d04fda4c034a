# =============================================================================
# core/models/deal.py - Deal Schemas
# =============================================================================
# A deal tracks one client's progress on one listing. Its `metadata` column
# is an open document: known keys (invoice, receipt) are typed below, and
# any other keys written by integrations are preserved untouched.
# =============================================================================

from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from .base import PHONE_PATTERN, APIModel
from .enums import DealType


class InvoiceDocument(APIModel):
    url: str
    invoice_number: str
    amount: float
    due_date: Optional[str] = None
    generated_at: datetime


class ReceiptDocument(APIModel):
    url: str
    receipt_number: str
    amount: float
    paid_date: Optional[str] = None
    payment_method: Optional[str] = None
    generated_at: datetime


def merge_metadata(existing: dict[str, Any] | None, updates: dict[str, Any]) -> dict[str, Any]:
    """
    Shallow-merge `updates` into a copy of `existing`.

    Top-level keys in `updates` replace their counterparts; every other
    existing key is carried over.
    """
    merged = dict(existing or {})
    merged.update(updates)
    return merged


class DealCreate(APIModel):
    """
    Example:
        {"propertyId": "...", "clientName": "Mr. Lee", "dealType": "SALE", "amount": 8200000}
    """

    property_id: str
    client_name: str = Field(..., min_length=1, max_length=200)
    client_phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    notes: Optional[str] = None
    stage: Optional[str] = Field(default=None, min_length=1, max_length=50)
    deal_type: Optional[DealType] = None
    amount: Optional[float] = Field(default=None, gt=0)


class DealUpdate(APIModel):
    """
    Partial update. A changed `stage` also refreshes the listing's
    verification timestamp.
    """

    client_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    client_phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    notes: Optional[str] = None
    stage: Optional[str] = Field(default=None, min_length=1, max_length=50)
    deal_type: Optional[DealType] = None
    amount: Optional[float] = Field(default=None, gt=0)
    monthly_rent: Optional[float] = Field(default=None, gt=0)
    deposit_amount: Optional[float] = Field(default=None, gt=0)
    lease_start_date: Optional[datetime] = None
    lease_end_date: Optional[datetime] = None
    next_payment_due: Optional[datetime] = None


class DealPropertySummary(APIModel):
    id: str
    title: str
    slug: str
    address: str
    price: Optional[float] = None


class DealResponse(APIModel):
    id: str
    property_id: str
    client_name: str
    client_phone: Optional[str] = None
    notes: Optional[str] = None
    stage: str
    deal_type: Optional[DealType] = None
    amount: Optional[float] = None
    monthly_rent: Optional[float] = None
    deposit_amount: Optional[float] = None
    lease_start_date: Optional[datetime] = None
    lease_end_date: Optional[datetime] = None
    next_payment_due: Optional[datetime] = None
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="metadata_")
    created_at: datetime
    updated_at: datetime
    property: Optional[DealPropertySummary] = None
