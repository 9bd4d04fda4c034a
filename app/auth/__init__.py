# =============================================================================
# app/auth/__init__.py - Authentication Module
# =============================================================================
# Provides JWT-based authentication using Supabase Auth and the agent
# profile lookup that turns a session into a role.
#
# Usage:
#   from app.auth import with_auth, AuthContext
#
#   @router.get("/protected")
#   def protected(auth: AuthContext = Depends(with_auth())):
#       return {"agent_id": auth.agent.id}
# =============================================================================

from app.auth.dependencies import (
    decode_session_token,
    find_agent_by_email,
    get_current_user,
    get_current_user_optional,
    get_optional_agent,
    require_agent,
    with_auth,
)
from app.auth.models import AuthContext, AuthUser

__all__ = [
    "decode_session_token",
    "find_agent_by_email",
    "get_current_user",
    "get_current_user_optional",
    "get_optional_agent",
    "require_agent",
    "with_auth",
    "AuthContext",
    "AuthUser",
]
