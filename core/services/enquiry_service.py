# =============================================================================
# core/services/enquiry_service.py - Enquiry Business Logic
# =============================================================================
# Lead capture from the public site and automation, and the agent-side
# status workflow. Agents only see their own leads unless they hold
# VIEW_ALL_ENQUIRIES.
# =============================================================================

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.exceptions import NotFoundError, ValidationError
from core.database import atomic
from core.models.enquiry import EnquiryCreate, EnquiryUpdate
from core.models.enums import EnquiryStatus
from core.permissions import Capability, check_ownership, scoped_agent_id
from core.tables import AgentProfile, Enquiry, Property
from lib.utils import utcnow

logger = logging.getLogger(__name__)


class EnquiryService:
    """Service for enquiry operations."""

    @staticmethod
    def create_enquiry(db: Session, data: EnquiryCreate) -> Enquiry:
        """
        Record a public enquiry and route it to an agent.

        The target agent is the one named in the request, else the
        listing's agent.

        Raises:
            ValidationError: Unknown property, no agent to route to, or unknown agent
        """
        prop = db.get(Property, data.property_id)
        if prop is None:
            raise ValidationError("Property not found", details={"property_id": data.property_id})

        target_agent_id = data.agent_id or prop.agent_id
        if not target_agent_id:
            raise ValidationError("No agent assigned to this property")

        agent = db.get(AgentProfile, target_agent_id)
        if agent is None:
            raise ValidationError("Agent not found", details={"agent_id": target_agent_id})

        enquiry = Enquiry(
            property_id=prop.id,
            agent_id=agent.id,
            channel=data.channel,
            name=data.name,
            email=data.email,
            phone=data.phone,
            message=data.message,
            source="website",
        )
        with atomic(db):
            db.add(enquiry)

        # E-mail delivery to the agent is handled outside this service
        logger.info(f"Enquiry {enquiry.id} created for property {prop.id}, routed to agent {agent.id}")
        return enquiry

    @staticmethod
    def list_enquiries(
        db: Session,
        agent: AgentProfile,
        property_id: str | None = None,
        status: EnquiryStatus | None = None,
    ) -> list[Enquiry]:
        """Enquiries visible to `agent`, newest first."""
        query = select(Enquiry).options(selectinload(Enquiry.agent))

        owner_id = scoped_agent_id(agent, Capability.VIEW_ALL_ENQUIRIES)
        if owner_id is not None:
            query = query.where(Enquiry.agent_id == owner_id)
        if property_id:
            query = query.where(Enquiry.property_id == property_id)
        if status:
            query = query.where(Enquiry.status == status)

        enquiries = list(db.scalars(query.order_by(Enquiry.created_at.desc())).all())
        logger.info(f"Fetched {len(enquiries)} enquiries for agent {agent.id}")
        return enquiries

    @staticmethod
    def update_enquiry(
        db: Session,
        enquiry_id: str,
        data: EnquiryUpdate,
        agent: AgentProfile,
    ) -> Enquiry:
        """
        Update an enquiry's status.

        `responded_at` is set the first time the enquiry becomes CONTACTED
        and never changed afterwards.

        Raises:
            NotFoundError: Unknown enquiry
            ForbiddenError: Agent doesn't own the enquiry
        """
        enquiry = db.get(Enquiry, enquiry_id)
        if enquiry is None:
            raise NotFoundError("Enquiry not found", details={"enquiry_id": enquiry_id})

        check_ownership(agent, enquiry.agent_id, "You can only update your own enquiries").enforce()

        with atomic(db):
            if data.status is not None:
                enquiry.status = data.status
                if data.status == EnquiryStatus.CONTACTED and enquiry.responded_at is None:
                    enquiry.responded_at = utcnow()

        logger.info(f"Enquiry {enquiry_id} updated by agent {agent.id}: status={enquiry.status.value}")
        return enquiry

    @staticmethod
    def get_enquiry(db: Session, enquiry_id: str) -> Enquiry:
        """
        Raises:
            NotFoundError: Unknown enquiry
        """
        enquiry = db.get(Enquiry, enquiry_id)
        if enquiry is None:
            raise NotFoundError("Enquiry not found", details={"enquiry_id": enquiry_id})
        return enquiry
