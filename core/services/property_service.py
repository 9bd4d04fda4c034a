# =============================================================================
# core/services/property_service.py - Property Business Logic
# =============================================================================
# Listing CRUD plus the lifecycle operations:
# - status changes (agent, owner link) through core.lifecycle
# - freshness filtering and serialization
# - price history coupling: any price change writes exactly one
#   PriceHistory row in the same transaction as the property update
# =============================================================================

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import (
    InternalServerError,
    InvalidVerificationActionError,
    NotFoundError,
    ValidationError,
    VerificationTargetNotFoundError,
)
from core.database import atomic
from core.lifecycle import (
    OWNER_ACTIONS,
    TRIGGER_SOURCE,
    VerificationTrigger,
    classify_freshness,
    classify_price_change,
    freshness_cutoff,
    plan_transition,
    price_changed,
)
from core.models.enums import (
    Freshness,
    ListingType,
    PriceChangeType,
    PropertyCategory,
    PropertyStatus,
    UserRole,
)
from core.models.property import PropertyCreate, PropertyResponse, PropertyUpdate
from core.permissions import Capability, check_ownership, has_capability
from core.tables import AgentProfile, PriceHistory, Project, Property
from lib.utils import slugify, utcnow

logger = logging.getLogger(__name__)

REFERENCE_ID_PREFIX = "ASC-"
REFERENCE_ID_ATTEMPTS = 10

# Fields only internal agents may write
COMMISSION_FIELDS = ("commission_rate", "commission_amount")


@dataclass
class PropertyFilters:
    """Query filters for the listing search."""
    category: PropertyCategory | None = None
    listing_type: ListingType | None = None
    city: str | None = None
    area: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    bedrooms: int | None = None
    min_size: float | None = None
    max_size: float | None = None
    featured: bool | None = None
    status: PropertyStatus = PropertyStatus.AVAILABLE
    project_id: str | None = None
    freshness: Freshness | None = None
    new_project: bool = False


def freshness_window() -> timedelta:
    return timedelta(days=settings.FRESHNESS_WINDOW_DAYS)


def record_price_change(
    db: Session,
    prop: Property,
    change_type: PriceChangeType,
    changed_by: str | None,
    notes: str | None = None,
) -> PriceHistory:
    """Append a price history row for the property's current prices."""
    entry = PriceHistory(
        property_id=prop.id,
        price=prop.price,
        rent_price=prop.rent_price,
        change_type=change_type,
        changed_by=changed_by,
        notes=notes,
    )
    db.add(entry)
    return entry


class PropertyService:
    """
    Service for listing operations.

    Every write runs inside `atomic(db)`.
    """

    # -------------------------------------------------------------------------
    # Identifiers
    # -------------------------------------------------------------------------

    @staticmethod
    def generate_reference_id(db: Session) -> str:
        """
        Pick an unused reference id in the form ASC-XXXXXX (6 digits).

        Raises:
            InternalServerError: If no free id was found after a few attempts
        """
        for _ in range(REFERENCE_ID_ATTEMPTS):
            candidate = f"{REFERENCE_ID_PREFIX}{100000 + secrets.randbelow(900000)}"
            exists = db.scalar(select(Property.id).where(Property.reference_id == candidate))
            if exists is None:
                return candidate

        logger.error("Could not generate a unique property reference id")
        raise InternalServerError("Failed to generate unique reference ID")

    @staticmethod
    def generate_unique_slug(db: Session, title: str, property_id: str | None = None) -> str:
        """
        Slug derived from the title, suffixed -2, -3, ... until unused.

        The property being updated may keep its own slug.
        """
        base = slugify(title) or "property"
        slug = base
        counter = 1

        while True:
            owner = db.scalar(select(Property.id).where(Property.slug == slug))
            if owner is None or owner == property_id:
                return slug
            counter += 1
            slug = f"{base}-{counter}"

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @staticmethod
    def get_property(db: Session, property_id: str) -> Property:
        """
        Raises:
            NotFoundError: If the property doesn't exist
        """
        prop = db.get(Property, property_id)
        if prop is None:
            raise NotFoundError("Property not found", details={"property_id": property_id})
        return prop

    @staticmethod
    def serialize(
        prop: Property,
        viewer: AgentProfile | None = None,
        now: datetime | None = None,
    ) -> PropertyResponse:
        """
        Build the response model for a listing as seen by `viewer`.

        Commission fields are hidden from everyone but internal agents;
        the agent commission rate is visible to any signed-in agent.
        """
        now = now or utcnow()
        updates = {"freshness": classify_freshness(prop.last_verified_at, now, freshness_window())}

        if not has_capability(viewer, Capability.VIEW_COMMISSION):
            updates["commission_rate"] = None
            updates["commission_amount"] = None
            if viewer is None:
                updates["agent_commission_rate"] = None

        return PropertyResponse.model_validate(prop).model_copy(update=updates)

    @staticmethod
    def list_properties(
        db: Session,
        filters: PropertyFilters,
        viewer: AgentProfile | None,
        page: int,
        limit: int,
        now: datetime | None = None,
    ) -> tuple[list[Property], int]:
        """
        Search listings.

        Signed-in agents without VIEW_ALL_LISTINGS only see their own.

        Returns:
            Tuple of (page of properties, total matching)
        """
        now = now or utcnow()
        conditions = [Property.status == filters.status]

        if viewer is not None and not has_capability(viewer, Capability.VIEW_ALL_LISTINGS):
            conditions.append(Property.agent_id == viewer.id)

        if filters.category:
            conditions.append(Property.category == filters.category)
        if filters.listing_type:
            if filters.listing_type in (ListingType.SALE, ListingType.RENT):
                conditions.append(Property.listing_type.in_([filters.listing_type, ListingType.BOTH]))
            else:
                conditions.append(Property.listing_type == filters.listing_type)
        if filters.city:
            conditions.append(func.lower(Property.city).contains(filters.city.lower()))
        if filters.area:
            conditions.append(Property.area == filters.area)
        if filters.min_price is not None:
            conditions.append(Property.price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(Property.price <= filters.max_price)
        if filters.bedrooms is not None:
            conditions.append(Property.bedrooms >= filters.bedrooms)
        if filters.min_size is not None:
            conditions.append(Property.size >= filters.min_size)
        if filters.max_size is not None:
            conditions.append(Property.size <= filters.max_size)
        if filters.featured:
            conditions.append(Property.featured.is_(True))
        if filters.project_id:
            conditions.append(Property.project_id == filters.project_id)
        if filters.new_project:
            recent = select(Project.id).where(Project.completion_year >= now.year - 2)
            conditions.append(Property.project_id.in_(recent))

        if filters.freshness is not None:
            cutoff = freshness_cutoff(now, freshness_window())
            if filters.freshness == Freshness.FRESH:
                conditions.append(Property.last_verified_at >= cutoff)
            else:
                conditions.append(
                    or_(Property.last_verified_at.is_(None), Property.last_verified_at < cutoff)
                )

        total = db.scalar(select(func.count()).select_from(Property).where(*conditions)) or 0
        items = db.scalars(
            select(Property)
            .where(*conditions)
            .order_by(Property.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()

        logger.info(
            f"Fetched {len(items)}/{total} properties "
            f"(viewer={viewer.id if viewer else None}, page={page})"
        )
        return list(items), total

    @staticmethod
    def get_price_history(db: Session, property_id: str) -> list[PriceHistory]:
        """Price history for a listing, newest first."""
        return list(
            db.scalars(
                select(PriceHistory)
                .where(PriceHistory.property_id == property_id)
                .order_by(PriceHistory.changed_at.desc())
            ).all()
        )

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    @staticmethod
    def _check_project(db: Session, project_id: str | None) -> None:
        if project_id and db.get(Project, project_id) is None:
            raise ValidationError("Project not found", details={"project_id": project_id})

    @staticmethod
    def create_property(db: Session, data: PropertyCreate, agent: AgentProfile) -> Property:
        """
        Create a listing owned by `agent` with its INITIAL price history row.

        Raises:
            ValidationError: If the referenced project doesn't exist
        """
        values = data.model_dump()
        if not has_capability(agent, Capability.SET_COMMISSION):
            for field in COMMISSION_FIELDS:
                values[field] = None

        PropertyService._check_project(db, values.get("project_id"))

        now = utcnow()
        prop = Property(
            **values,
            reference_id=PropertyService.generate_reference_id(db),
            slug=PropertyService.generate_unique_slug(db, data.title),
            agent_id=agent.id,
            last_verified_at=now,
            verification_source=TRIGGER_SOURCE[VerificationTrigger.AGENT_ACTION],
        )

        with atomic(db):
            db.add(prop)
            db.flush()
            record_price_change(db, prop, PriceChangeType.INITIAL, agent.id, notes="Listing created")

        logger.info(f"Created property {prop.id} ({prop.reference_id}) for agent {agent.id}")
        return prop

    @staticmethod
    def update_property(
        db: Session,
        property_id: str,
        data: PropertyUpdate,
        agent: AgentProfile,
    ) -> Property:
        """
        Apply a partial update.

        A status change is validated by the lifecycle rules; a price change
        appends one PriceHistory row. Both land in the same transaction as
        the other fields, or not at all.

        Raises:
            NotFoundError: Unknown property
            ForbiddenError: Agent may not edit this listing
            ValidationError: Invalid status transition or unknown project
        """
        prop = PropertyService.get_property(db, property_id)
        check_ownership(
            agent, prop.agent_id, "You can only edit your own listings",
            override=Capability.EDIT_ANY_LISTING,
        ).enforce()

        changes = data.model_dump(exclude_unset=True)
        if not has_capability(agent, Capability.SET_COMMISSION):
            for field in COMMISSION_FIELDS:
                changes.pop(field, None)

        if "project_id" in changes:
            PropertyService._check_project(db, changes["project_id"])

        old_price, old_rent = prop.price, prop.rent_price
        new_price = changes.get("price", old_price)
        new_rent = changes.get("rent_price", old_rent)

        status_change = None
        new_status = changes.pop("status", None)
        if new_status is not None and new_status != prop.status:
            status_change = plan_transition(
                prop.status, new_status, VerificationTrigger.AGENT_ACTION,
                prop.last_verified_at, utcnow(),
            )

        if changes.get("title"):
            changes["slug"] = PropertyService.generate_unique_slug(db, changes["title"], prop.id)

        with atomic(db):
            for field, value in changes.items():
                setattr(prop, field, value)

            if status_change is not None:
                PropertyService._apply_status_change(prop, status_change)

            if price_changed(old_price, new_price, old_rent, new_rent):
                change_type = classify_price_change(old_price, new_price, old_rent, new_rent)
                db.flush()
                record_price_change(db, prop, change_type, agent.id)
                logger.info(f"Price history recorded for property {prop.id}: {change_type.value}")

        logger.info(f"Property {prop.id} updated by agent {agent.id}: {sorted(changes)}")
        return prop

    @staticmethod
    def delete_property(db: Session, property_id: str, agent: AgentProfile) -> None:
        """
        Delete a listing and its price history.

        Raises:
            NotFoundError: Unknown property
            ForbiddenError: Agent is neither owner nor SUPER_ADMIN
        """
        prop = PropertyService.get_property(db, property_id)
        check_ownership(
            agent, prop.agent_id, "You can only delete your own listings",
            override=Capability.DELETE_ANY_LISTING,
        ).enforce()

        with atomic(db):
            db.delete(prop)

        logger.info(f"Property {property_id} deleted by agent {agent.id} ({UserRole(agent.role).value})")

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @staticmethod
    def _apply_status_change(prop: Property, change) -> None:
        prop.status = change.status
        prop.last_verified_at = change.last_verified_at
        prop.verification_source = change.verification_source

    @staticmethod
    def change_status(
        db: Session,
        property_id: str,
        status: PropertyStatus | str,
        agent: AgentProfile,
    ) -> Property:
        """
        Move a listing to `status` as an agent action.

        Raises:
            ValidationError: If the transition isn't allowed
        """
        prop = PropertyService.get_property(db, property_id)
        check_ownership(
            agent, prop.agent_id, "You can only edit your own listings",
            override=Capability.EDIT_ANY_LISTING,
        ).enforce()

        change = plan_transition(
            prop.status, status, VerificationTrigger.AGENT_ACTION, prop.last_verified_at, utcnow()
        )
        with atomic(db):
            PropertyService._apply_status_change(prop, change)

        logger.info(f"Property {prop.id} status -> {change.status.value} by agent {agent.id}")
        return prop

    @staticmethod
    def reverify(db: Session, property_id: str, agent: AgentProfile) -> Property:
        """Confirm the current status is still accurate."""
        prop = PropertyService.get_property(db, property_id)
        return PropertyService.change_status(db, prop.id, prop.status, agent)

    @staticmethod
    def verify_by_owner(db: Session, property_id: str, action: str | None) -> Property:
        """
        Apply the owner's answer from the e-mailed verification link.

        Raises:
            InvalidVerificationActionError: Action is not AVAILABLE or SOLD
            VerificationTargetNotFoundError: Unknown property
        """
        if action not in {status.value for status in OWNER_ACTIONS}:
            raise InvalidVerificationActionError(action)

        prop = db.get(Property, property_id)
        if prop is None:
            raise VerificationTargetNotFoundError(property_id)

        change = plan_transition(
            prop.status, action, VerificationTrigger.OWNER_LINK, prop.last_verified_at, utcnow()
        )
        with atomic(db):
            PropertyService._apply_status_change(prop, change)

        logger.info(f"Owner verified property {prop.id} as {change.status.value}")
        return prop
