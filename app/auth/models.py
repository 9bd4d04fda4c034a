# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Identity carried through a request:
# - AuthUser: who the session token belongs to (from the JWT alone)
# - AuthContext: that user plus their AgentProfile, if any
# =============================================================================

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict

from core.tables import AgentProfile


class AuthUser(BaseModel):
    """
    Authenticated user extracted from a Supabase session token.

    This is the minimal user info available from the token itself,
    without querying the database.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    email: Optional[str] = None


@dataclass
class AuthContext:
    """Resolved caller for agent routes."""
    user: AuthUser
    agent: AgentProfile | None = None

    @property
    def agent_id(self) -> str | None:
        return self.agent.id if self.agent is not None else None
