# =============================================================================
# core/services/automation_service.py - Automation Gateway Logic
# =============================================================================
# Operations behind /api/n8n/*. The routes have already checked the API key
# and the AUTOMATION rate limit before any of this runs.
# =============================================================================

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any
from uuid import uuid4

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import NotFoundError, ValidationError
from core.database import atomic
from core.models.automation import (
    AutomationEnquiryRequest,
    AutomationPostRequest,
    AutomationPropertyResponse,
    ChatLogRequest,
    InvoiceRequest,
    ReceiptRequest,
)
from core.models.deal import InvoiceDocument, ReceiptDocument, merge_metadata
from core.lifecycle import classify_freshness
from core.models.enums import EnquiryStatus, ListingType, PropertyCategory, PropertyStatus
from core.tables import AgentProfile, Deal, Enquiry, Post, Property
from lib.utils import slugify, utcnow

logger = logging.getLogger(__name__)

EXCERPT_LENGTH = 200

# Listings created within this window are "new" for the featured feed
NEW_LISTING_WINDOW = timedelta(days=7)
FEATURED_KINDS = ("all", "new", "featured")
DEFAULT_MATCH_CITY = "Pattaya"


@dataclass
class PropertyMatchCriteria:
    """Lead requirements a workflow matches listings against."""
    min_budget: float | None = None
    max_budget: float | None = None
    category: PropertyCategory | None = None
    listing_type: ListingType | None = None
    bedrooms: int | None = None
    area: str | None = None
    city: str | None = DEFAULT_MATCH_CITY
    limit: int = 5


class AutomationService:
    """Service for automation workflows."""

    @staticmethod
    def log_chat(data: ChatLogRequest) -> str:
        """
        Record a bot conversation turn in the application log.

        Returns:
            Generated log id (CHAT-<epoch ms>)
        """
        chat_id = f"CHAT-{int(time.time() * 1000)}"
        logger.info(
            f"Chat interaction {chat_id}: platform={data.platform} user={data.user_id} "
            f"intent={data.intent} automated={data.automated}"
        )
        return chat_id

    @staticmethod
    def _get_deal(db: Session, deal_id: str) -> Deal:
        deal = db.get(Deal, deal_id)
        if deal is None:
            raise NotFoundError("Deal not found", details={"deal_id": deal_id})
        return deal

    @staticmethod
    def _attach_document(db: Session, deal: Deal, key: str, document: dict[str, Any], extra: dict[str, Any]) -> None:
        """Merge `extra` and the document under `key` into the deal's metadata."""
        merged = merge_metadata(deal.metadata_, {**extra, key: document})
        with atomic(db):
            # Reassign so the JSON column is flagged dirty
            deal.metadata_ = merged

    @staticmethod
    def record_invoice(db: Session, data: InvoiceRequest) -> dict[str, Any]:
        """
        Store an invoice document on a deal, keeping other metadata keys.

        Raises:
            NotFoundError: Unknown deal
        """
        deal = AutomationService._get_deal(db, data.deal_id)
        document = InvoiceDocument(
            url=data.url,
            invoice_number=data.invoice_number,
            amount=data.amount,
            due_date=data.due_date,
            generated_at=utcnow(),
        ).model_dump(mode="json", by_alias=True)

        AutomationService._attach_document(db, deal, "invoice", document, data.metadata)

        logger.info(f"Invoice {data.invoice_number} recorded on deal {deal.id}")
        return {
            "id": f"INV-{data.invoice_number}",
            "dealId": deal.id,
            **document,
        }

    @staticmethod
    def record_receipt(db: Session, data: ReceiptRequest) -> dict[str, Any]:
        """
        Store a receipt document on a deal, keeping other metadata keys.

        Raises:
            NotFoundError: Unknown deal
        """
        deal = AutomationService._get_deal(db, data.deal_id)
        document = ReceiptDocument(
            url=data.url,
            receipt_number=data.receipt_number,
            amount=data.amount,
            paid_date=data.paid_date,
            payment_method=data.payment_method,
            generated_at=utcnow(),
        ).model_dump(mode="json", by_alias=True)

        AutomationService._attach_document(db, deal, "receipt", document, data.metadata)

        logger.info(f"Receipt {data.receipt_number} recorded on deal {deal.id}")
        return {
            "id": f"RCP-{data.receipt_number}",
            "dealId": deal.id,
            **document,
        }

    @staticmethod
    def create_post(db: Session, data: AutomationPostRequest) -> Post:
        """
        Create an article. The slug gets a random suffix so repeated
        titles never collide; the post stays a draft unless PUBLISHED.
        """
        base = slugify(data.title) or "post"
        post = Post(
            title=data.title,
            slug=f"{base}-{uuid4().hex[:8]}",
            content=data.content,
            excerpt=data.excerpt or data.content[:EXCERPT_LENGTH],
            category=data.category,
            tags=data.tags,
            published=data.status == "PUBLISHED",
            author_id=data.author_id,
            featured_image=data.featured_image,
        )
        with atomic(db):
            db.add(post)

        logger.info(f"Post {post.id} created by automation (published={post.published})")
        return post

    @staticmethod
    def post_url(post: Post) -> str:
        return f"{settings.SITE_URL.rstrip('/')}/insights/{post.slug}"

    @staticmethod
    def create_enquiry(db: Session, data: AutomationEnquiryRequest) -> Enquiry:
        """
        Record a lead captured by an automation workflow.

        Raises:
            ValidationError: Referenced property or agent doesn't exist
        """
        if data.property_id and db.get(Property, data.property_id) is None:
            raise ValidationError("Property not found", details={"property_id": data.property_id})
        if data.agent_id and db.get(AgentProfile, data.agent_id) is None:
            raise ValidationError("Agent not found", details={"agent_id": data.agent_id})

        enquiry = Enquiry(
            name=data.name,
            email=data.email,
            phone=data.phone,
            message=data.message,
            property_id=data.property_id,
            agent_id=data.agent_id,
            status=EnquiryStatus.NEW,
            channel=data.channel,
            source=data.source,
            metadata_=data.metadata,
        )
        with atomic(db):
            db.add(enquiry)

        logger.info(f"Enquiry {enquiry.id} created by automation (source={data.source})")
        return enquiry

    @staticmethod
    def enquiry_number(enquiry: Enquiry) -> str:
        """Human-friendly lead number, e.g. ENQ-2026-3F2A9C."""
        return f"ENQ-{enquiry.created_at.year}-{enquiry.id.replace('-', '')[:6].upper()}"

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    @staticmethod
    def _available_listings(conditions: list, limit: int) -> Any:
        return (
            select(Property)
            .where(Property.status == PropertyStatus.AVAILABLE, *conditions)
            .order_by(Property.featured.desc(), Property.created_at.desc())
            .limit(limit)
        )

    @staticmethod
    def match_properties(db: Session, criteria: PropertyMatchCriteria) -> list[Property]:
        """
        AVAILABLE listings that fit a lead, featured first then newest.

        A SALE or RENT request also matches listings offered as BOTH.

        Raises:
            ValidationError: min_budget above max_budget
        """
        if (
            criteria.min_budget is not None
            and criteria.max_budget is not None
            and criteria.min_budget > criteria.max_budget
        ):
            raise ValidationError(
                "minBudget cannot exceed maxBudget",
                details=[{"field": "minBudget", "message": "Must not be greater than maxBudget"}],
            )

        conditions = []
        if criteria.category:
            conditions.append(Property.category == criteria.category)
        if criteria.listing_type:
            conditions.append(Property.listing_type.in_([criteria.listing_type, ListingType.BOTH]))
        if criteria.city:
            conditions.append(func.lower(Property.city) == criteria.city.lower())
        if criteria.area:
            conditions.append(Property.area == criteria.area)
        if criteria.bedrooms is not None:
            conditions.append(Property.bedrooms >= criteria.bedrooms)
        if criteria.min_budget is not None:
            conditions.append(Property.price >= criteria.min_budget)
        if criteria.max_budget is not None:
            conditions.append(Property.price <= criteria.max_budget)

        matches = list(db.scalars(AutomationService._available_listings(conditions, criteria.limit)).all())
        logger.info(f"Automation property match returned {len(matches)} listings")
        return matches

    @staticmethod
    def featured_properties(
        db: Session,
        kind: str = "all",
        category: PropertyCategory | None = None,
        limit: int = 10,
        now: datetime | None = None,
    ) -> list[Property]:
        """
        Listings for marketing workflows, featured first then newest.

        Args:
            kind: "all", "new" (created in the last 7 days) or "featured"

        Raises:
            ValidationError: Unknown kind
        """
        if kind not in FEATURED_KINDS:
            raise ValidationError(
                "Invalid listing type filter",
                details=[{"field": "type", "message": f"Must be one of: {', '.join(FEATURED_KINDS)}"}],
            )

        now = now or utcnow()
        conditions = []
        if category:
            conditions.append(Property.category == category)
        if kind == "new":
            conditions.append(Property.created_at >= now - NEW_LISTING_WINDOW)
        elif kind == "featured":
            conditions.append(Property.featured.is_(True))

        return list(db.scalars(AutomationService._available_listings(conditions, limit)).all())

    @staticmethod
    def serialize_property(prop: Property, now: datetime | None = None) -> AutomationPropertyResponse:
        now = now or utcnow()
        return AutomationPropertyResponse(
            id=prop.id,
            listing_code=prop.reference_id,
            slug=prop.slug,
            title=prop.title,
            description=prop.description,
            category=prop.category,
            listing_type=prop.listing_type,
            price=prop.price,
            rent_price=prop.rent_price,
            size=prop.size,
            bedrooms=prop.bedrooms,
            bathrooms=prop.bathrooms,
            area=prop.area,
            city=prop.city,
            address=prop.address,
            images=prop.images or [],
            featured=prop.featured,
            agent_id=prop.agent_id,
            agent_commission_rate=prop.agent_commission_rate,
            commission_amount=prop.commission_amount,
            freshness=classify_freshness(
                prop.last_verified_at, now, timedelta(days=settings.FRESHNESS_WINDOW_DAYS)
            ),
            url=f"{settings.SITE_URL.rstrip('/')}/properties/{prop.slug}",
            created_at=prop.created_at,
        )
