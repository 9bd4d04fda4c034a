# =============================================================================
# core/services/agent_service.py - Agent Profile Business Logic
# =============================================================================
# Profile lookup for the signed-in user (with auto-provisioning), agent
# management, and the dashboard counts.
# =============================================================================

import logging
from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.auth.dependencies import find_agent_by_email
from app.auth.models import AuthUser
from app.config import settings
from app.exceptions import ConflictError, NotFoundError, UnauthorizedError
from core.database import atomic
from core.lifecycle import freshness_cutoff
from core.models.agent import AgentCreate, AgentStatsResponse, AgentUpdate, RecentEnquiry
from core.models.enums import PropertyStatus, SubmissionStatus, UserRole
from core.permissions import Capability, has_capability, scoped_agent_id
from core.tables import AgentProfile, Enquiry, Property, PropertySubmission
from lib.utils import utcnow

logger = logging.getLogger(__name__)

# Enquiries younger than this count as new on the dashboard
NEW_ENQUIRY_WINDOW = timedelta(days=7)
RECENT_ENQUIRY_LIMIT = 5


def default_agent_name(email: str) -> str:
    """Display name for an auto-provisioned profile: the e-mail's local part."""
    return email.split("@")[0] or "Agent"


def _count(db: Session, model, *conditions) -> int:
    query = select(func.count()).select_from(model)
    if conditions:
        query = query.where(*conditions)
    return db.scalar(query) or 0


class AgentService:
    """Service for agent profile operations."""

    @staticmethod
    def get_or_create_current(db: Session, user: AuthUser) -> tuple[AgentProfile, bool]:
        """
        Profile of the signed-in user, created as a plain AGENT if missing.

        Returns:
            Tuple of (profile, whether it was just created)

        Raises:
            UnauthorizedError: If the session carries no e-mail
        """
        if not user.email:
            raise UnauthorizedError("Not authenticated")

        agent = find_agent_by_email(db, user.email)
        if agent is not None:
            logger.info(f"Agent profile found: {agent.id} ({UserRole(agent.role).value})")
            return agent, False

        logger.info(f"Agent profile not found for user {user.id}, auto-creating")
        agent = AgentProfile(
            name=default_agent_name(user.email),
            email=user.email,
            role=UserRole.AGENT,
            languages=[],
        )
        with atomic(db):
            db.add(agent)

        logger.info(f"Agent profile auto-created: {agent.id}")
        return agent, True

    @staticmethod
    def list_agents(db: Session, include_inactive: bool = False) -> list[AgentProfile]:
        query = select(AgentProfile)
        if not include_inactive:
            query = query.where(AgentProfile.is_active.is_(True))
        return list(db.scalars(query.order_by(AgentProfile.created_at.asc())).all())

    @staticmethod
    def get_agent(db: Session, agent_id: str) -> AgentProfile:
        """
        Raises:
            NotFoundError: Unknown agent
        """
        agent = db.get(AgentProfile, agent_id)
        if agent is None:
            raise NotFoundError("Agent not found", details={"agent_id": agent_id})
        return agent

    @staticmethod
    def _ensure_email_free(db: Session, email: str | None, exclude_id: str | None = None) -> None:
        if not email:
            return
        query = select(AgentProfile.id).where(func.lower(AgentProfile.email) == email.lower())
        if exclude_id:
            query = query.where(AgentProfile.id != exclude_id)
        if db.scalar(query) is not None:
            raise ConflictError("An agent with this email already exists", details={"email": email})

    @staticmethod
    def create_agent(db: Session, data: AgentCreate, created_by: AgentProfile) -> AgentProfile:
        """
        Raises:
            ConflictError: E-mail already used by another profile
        """
        AgentService._ensure_email_free(db, data.email)

        agent = AgentProfile(**data.model_dump())
        with atomic(db):
            db.add(agent)

        logger.info(f"Agent {agent.id} created by {created_by.id} with role {UserRole(agent.role).value}")
        return agent

    @staticmethod
    def update_agent(
        db: Session,
        agent_id: str,
        data: AgentUpdate,
        updated_by: AgentProfile,
    ) -> AgentProfile:
        """
        Raises:
            NotFoundError: Unknown agent
            ConflictError: New e-mail already used by another profile
        """
        agent = AgentService.get_agent(db, agent_id)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("email"):
            AgentService._ensure_email_free(db, changes["email"], exclude_id=agent.id)

        with atomic(db):
            for field, value in changes.items():
                setattr(agent, field, value)

        logger.info(f"Agent {agent_id} updated by {updated_by.id}: {sorted(changes)}")
        return agent

    @staticmethod
    def dashboard_stats(db: Session, agent: AgentProfile, now: datetime | None = None) -> AgentStatsResponse:
        """
        Counts for the agent dashboard.

        Listings and enquiries use the same scope as their list endpoints;
        listings without a verification date count as needs-check.
        """
        now = now or utcnow()
        cutoff = freshness_cutoff(now, timedelta(days=settings.FRESHNESS_WINDOW_DAYS))

        listings = [Property.status == PropertyStatus.AVAILABLE]
        listing_owner = scoped_agent_id(agent, Capability.VIEW_ALL_LISTINGS)
        if listing_owner is not None:
            listings.append(Property.agent_id == listing_owner)

        enquiries = []
        enquiry_owner = scoped_agent_id(agent, Capability.VIEW_ALL_ENQUIRIES)
        if enquiry_owner is not None:
            enquiries.append(Enquiry.agent_id == enquiry_owner)

        active = _count(db, Property, *listings)
        fresh = _count(db, Property, *listings, Property.last_verified_at >= cutoff)

        pending = 0
        if has_capability(agent, Capability.REVIEW_SUBMISSIONS):
            pending = _count(db, PropertySubmission, PropertySubmission.status == SubmissionStatus.PENDING)

        recent_query = select(Enquiry).order_by(Enquiry.created_at.desc()).limit(RECENT_ENQUIRY_LIMIT)
        if enquiries:
            recent_query = recent_query.where(*enquiries)
        recent = db.scalars(recent_query).all()

        stats = AgentStatsResponse(
            active_listings=active,
            fresh_listings=fresh,
            needs_check_listings=active - fresh,
            pending_submissions=pending,
            total_enquiries=_count(db, Enquiry, *enquiries),
            new_enquiries=_count(db, Enquiry, *enquiries, Enquiry.created_at >= now - NEW_ENQUIRY_WINDOW),
            recent_enquiries=[RecentEnquiry.model_validate(e) for e in recent],
        )

        logger.info(
            f"Dashboard stats for agent {agent.id}: active={stats.active_listings} "
            f"pending_submissions={stats.pending_submissions}"
        )
        return stats
