# =============================================================================
# core/services/deal_service.py - Deal Business Logic
# =============================================================================
# Deal pipeline CRUD. Deals are scoped through their listing: an agent sees
# deals on their own listings unless they hold VIEW_ALL_DEALS.
#
# A stage change is evidence the listing is still live, so it refreshes the
# listing's verification stamp (source SYSTEM) in the same transaction as
# the deal update.
# =============================================================================

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from app.exceptions import NotFoundError, ValidationError
from core.database import atomic
from core.lifecycle import VerificationTrigger, plan_transition
from core.models.deal import DealCreate, DealUpdate
from core.permissions import Capability, check_ownership, scoped_agent_id
from core.tables import AgentProfile, Deal, Property
from lib.utils import utcnow

logger = logging.getLogger(__name__)

DEFAULT_STAGE = "NEW_LEAD"


def refresh_listing_freshness(prop: Property) -> None:
    """Re-stamp a listing's verification after deal activity."""
    change = plan_transition(
        prop.status, prop.status, VerificationTrigger.DEAL_STAGE, prop.last_verified_at, utcnow()
    )
    prop.last_verified_at = change.last_verified_at
    prop.verification_source = change.verification_source


class DealService:
    """Service for deal pipeline operations."""

    @staticmethod
    def _get_scoped(db: Session, deal_id: str, agent: AgentProfile, action: str) -> Deal:
        deal = db.get(Deal, deal_id)
        if deal is None:
            raise NotFoundError("Deal not found", details={"deal_id": deal_id})

        prop = deal.property
        if prop is None:
            raise NotFoundError("Associated property not found", details={"deal_id": deal_id})

        check_ownership(agent, prop.agent_id, f"You do not have permission to {action} this deal").enforce()
        return deal

    @staticmethod
    def list_deals(
        db: Session,
        agent: AgentProfile,
        page: int,
        limit: int,
        stage: str | None = None,
        deal_type: str | None = None,
    ) -> tuple[list[Deal], int]:
        """
        Deals visible to `agent`, most recently updated first.

        Returns:
            Tuple of (page of deals, total matching)
        """
        conditions = []
        owner_id = scoped_agent_id(agent, Capability.VIEW_ALL_DEALS)
        if owner_id is not None:
            conditions.append(Deal.property_id.in_(select(Property.id).where(Property.agent_id == owner_id)))
        if stage:
            conditions.append(Deal.stage == stage)
        if deal_type:
            conditions.append(Deal.deal_type == deal_type)

        total = db.scalar(select(func.count()).select_from(Deal).where(*conditions)) or 0
        deals = db.scalars(
            select(Deal)
            .options(selectinload(Deal.property))
            .where(*conditions)
            .order_by(Deal.updated_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()

        logger.info(f"Fetched {len(deals)}/{total} deals for agent {agent.id}")
        return list(deals), total

    @staticmethod
    def get_deal(db: Session, deal_id: str, agent: AgentProfile) -> Deal:
        """
        Raises:
            NotFoundError: Unknown deal
            ForbiddenError: Deal is on another agent's listing
        """
        return DealService._get_scoped(db, deal_id, agent, "view")

    @staticmethod
    def create_deal(db: Session, data: DealCreate, agent: AgentProfile) -> Deal:
        """
        Open a deal on a listing the agent can act on.

        Raises:
            ValidationError: Unknown property
            ForbiddenError: Listing belongs to another agent
        """
        prop = db.get(Property, data.property_id)
        if prop is None:
            raise ValidationError("Property not found", details={"property_id": data.property_id})

        check_ownership(agent, prop.agent_id, "You can only open deals on your own listings").enforce()

        deal = Deal(
            property_id=prop.id,
            client_name=data.client_name,
            client_phone=data.client_phone,
            notes=data.notes,
            stage=data.stage or DEFAULT_STAGE,
            deal_type=data.deal_type,
            amount=data.amount,
        )
        with atomic(db):
            db.add(deal)

        logger.info(f"Deal {deal.id} created on property {prop.id} by agent {agent.id}")
        return deal

    @staticmethod
    def update_deal(db: Session, deal_id: str, data: DealUpdate, agent: AgentProfile) -> Deal:
        """
        Apply a partial update.

        When the stage changes, the listing's last_verified_at and
        verification_source are refreshed in the same transaction; if either
        write fails, neither is kept.

        Raises:
            NotFoundError: Unknown deal or listing
            ForbiddenError: Deal is on another agent's listing
        """
        deal = DealService._get_scoped(db, deal_id, agent, "update")
        changes = data.model_dump(exclude_unset=True)

        old_stage = deal.stage
        stage_changed = "stage" in changes and changes["stage"] is not None and changes["stage"] != old_stage
        if "stage" in changes and changes["stage"] is None:
            changes.pop("stage")

        with atomic(db):
            for field, value in changes.items():
                setattr(deal, field, value)
            if stage_changed:
                refresh_listing_freshness(deal.property)

        if stage_changed:
            logger.info(
                f"Refreshed freshness of property {deal.property_id} after deal {deal_id} "
                f"moved {old_stage} -> {changes['stage']}"
            )
        logger.info(f"Deal {deal_id} updated by agent {agent.id}: {sorted(changes)}")
        return deal

    @staticmethod
    def delete_deal(db: Session, deal_id: str, agent: AgentProfile) -> None:
        deal = DealService._get_scoped(db, deal_id, agent, "delete")
        with atomic(db):
            db.delete(deal)
        logger.info(f"Deal {deal_id} deleted by agent {agent.id}")
