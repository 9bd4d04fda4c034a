# =============================================================================
# app/routers/agents.py - Agent Profile Endpoints
# =============================================================================
# - GET /agent/me: profile of the signed-in user (auto-created on first use)
# - GET /agent/stats: dashboard counts, scoped like the list endpoints
# - /agents: directory and management (MANAGE_AGENTS capability)
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.auth import AuthContext, require_agent, with_auth
from app.dependencies import DbDep
from app.responses import created_response, success_response
from core.models.agent import AgentCreate, AgentResponse, AgentUpdate, CurrentAgentResponse
from core.permissions import Capability
from core.services.agent_service import AgentService

router = APIRouter()

require_agent_manager = with_auth(capability=Capability.MANAGE_AGENTS)


@router.get("/agent/me")
def get_current_agent(
    db: DbDep,
    auth: AuthContext = Depends(with_auth(require_agent=False)),
):
    """
    Current agent profile.

    A signed-in user without a profile gets a plain AGENT profile created
    from their e-mail.
    """
    if auth.agent is not None:
        agent, created = auth.agent, False
    else:
        agent, created = AgentService.get_or_create_current(db, auth.user)

    return success_response(
        CurrentAgentResponse(agent=AgentResponse.model_validate(agent), auto_created=created)
    )


@router.get("/agent/stats")
def get_dashboard_stats(
    db: DbDep,
    auth: AuthContext = Depends(require_agent),
):
    """
    Dashboard counts: available listings split by freshness, pending owner
    submissions, and enquiries (total, last 7 days, latest 5).
    """
    return success_response(AgentService.dashboard_stats(db, auth.agent))


@router.get("/agents")
def list_agents(
    db: DbDep,
    auth: AuthContext = Depends(require_agent),
    include_inactive: Annotated[bool, Query(alias="includeInactive")] = False,
):
    agents = AgentService.list_agents(db, include_inactive=include_inactive)
    return success_response([AgentResponse.model_validate(a) for a in agents])


@router.post("/agents", status_code=201)
def create_agent(
    body: AgentCreate,
    db: DbDep,
    auth: AuthContext = Depends(require_agent_manager),
):
    """Create an agent profile. Duplicate e-mails return 409."""
    agent = AgentService.create_agent(db, body, auth.agent)
    return created_response(AgentResponse.model_validate(agent))


@router.get("/agents/{agent_id}")
def get_agent(
    agent_id: str,
    db: DbDep,
    auth: AuthContext = Depends(require_agent),
):
    agent = AgentService.get_agent(db, agent_id)
    return success_response(AgentResponse.model_validate(agent))


@router.patch("/agents/{agent_id}")
def update_agent(
    agent_id: str,
    body: AgentUpdate,
    db: DbDep,
    auth: AuthContext = Depends(require_agent_manager),
):
    agent = AgentService.update_agent(db, agent_id, body, auth.agent)
    return success_response(AgentResponse.model_validate(agent))
