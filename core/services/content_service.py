# =============================================================================
# core/services/content_service.py - Submissions & Projects
# =============================================================================
# Owner submissions from the public site and project search.
# =============================================================================

import logging

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from core.database import atomic
from core.models.content import SubmissionCreate
from core.models.enums import SubmissionStatus
from core.tables import AgentProfile, Project, PropertySubmission

logger = logging.getLogger(__name__)

PROJECT_QUERY_MIN_LENGTH = 2
PROJECT_SEARCH_LIMIT = 10


class SubmissionService:
    """Owner intake."""

    @staticmethod
    def create_submission(db: Session, data: SubmissionCreate) -> PropertySubmission:
        """Store an owner submission as PENDING for agent review."""
        submission = PropertySubmission(**data.model_dump(), status=SubmissionStatus.PENDING)
        with atomic(db):
            db.add(submission)

        logger.info(f"Property submission created: {submission.id}")
        return submission

    @staticmethod
    def list_submissions(db: Session, agent: AgentProfile) -> list[PropertySubmission]:
        """All submissions, newest first."""
        submissions = list(
            db.scalars(select(PropertySubmission).order_by(PropertySubmission.created_at.desc())).all()
        )
        logger.info(f"Fetched {len(submissions)} submissions for agent {agent.id}")
        return submissions


class ProjectService:
    """Project lookup for the listing form."""

    @staticmethod
    def search_projects(db: Session, query: str | None) -> list[Project]:
        """
        Case-insensitive match on the English or Thai project name.

        Queries shorter than two characters return nothing.
        """
        query = (query or "").strip()
        if len(query) < PROJECT_QUERY_MIN_LENGTH:
            return []

        needle = query.lower()
        return list(
            db.scalars(
                select(Project)
                .where(
                    or_(
                        func.lower(Project.name).contains(needle),
                        func.lower(Project.name_th).contains(needle),
                    )
                )
                .order_by(Project.name)
                .limit(PROJECT_SEARCH_LIMIT)
            ).all()
        )
