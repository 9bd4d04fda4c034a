# =============================================================================
# app/routers/projects.py - Project Search
# =============================================================================

from typing import Optional

from fastapi import APIRouter

from app.dependencies import DbDep, PublicReadLimit
from app.responses import success_response
from core.models.content import ProjectResponse
from core.services.content_service import ProjectService

router = APIRouter()


@router.get("", dependencies=[PublicReadLimit])
def search_projects(db: DbDep, query: Optional[str] = None):
    """
    Search projects by English or Thai name.

    Queries under two characters return an empty list.
    """
    projects = ProjectService.search_projects(db, query)
    return success_response([ProjectResponse.model_validate(p) for p in projects])
