# =============================================================================
# app/routers/submissions.py - Owner Submission Endpoints
# =============================================================================
# Owners submit properties from the public site (rate limited per IP);
# agents review the queue.
# =============================================================================

from fastapi import APIRouter, Depends, Request

from app.auth import AuthContext, with_auth
from app.dependencies import DbDep, LimiterDep
from app.rate_limit import POLICIES, client_identifier, enforce_rate_limit
from app.responses import created_response, success_response
from core.models.content import SubmissionCreate, SubmissionResponse
from core.permissions import Capability
from core.services.content_service import SubmissionService

router = APIRouter()

require_submission_reviewer = with_auth(capability=Capability.REVIEW_SUBMISSIONS)


@router.post("", status_code=201)
def create_submission(
    body: SubmissionCreate,
    request: Request,
    db: DbDep,
    limiter: LimiterDep,
):
    """Submit a property for listing. Stored as PENDING."""
    enforce_rate_limit(limiter, client_identifier(request, "contact"), POLICIES["CONTACT"])

    submission = SubmissionService.create_submission(db, body)
    return created_response(SubmissionResponse.model_validate(submission))


@router.get("")
def list_submissions(
    db: DbDep,
    auth: AuthContext = Depends(require_submission_reviewer),
):
    submissions = SubmissionService.list_submissions(db, auth.agent)
    return success_response([SubmissionResponse.model_validate(s) for s in submissions])
