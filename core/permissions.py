# =============================================================================
# core/permissions.py - Role Capabilities
# =============================================================================
# Declarative role checks used by the auth layer and the services.
#
# Each Capability maps to the set of roles that hold it. Checks return an
# AccessDecision (Allow or Deny with a reason) instead of raising, so callers
# can combine them; `.enforce()` turns a Deny into ForbiddenError.
#
# Usage:
#   check_capability(agent, Capability.MANAGE_AGENTS).enforce()
#   check_ownership(agent, prop.agent_id, "You can only edit your own listings").enforce()
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, Union

from app.exceptions import ForbiddenError
from core.models.enums import UserRole


class AgentLike(Protocol):
    id: str
    role: UserRole


# =============================================================================
# Decisions
# =============================================================================

@dataclass(frozen=True)
class Allow:
    allowed: bool = True

    def enforce(self) -> None:
        return None


@dataclass(frozen=True)
class Deny:
    reason: str
    allowed: bool = False

    def enforce(self) -> None:
        raise ForbiddenError(self.reason)


AccessDecision = Union[Allow, Deny]

ALLOW = Allow()


# =============================================================================
# Capabilities
# =============================================================================

INTERNAL_ROLES = frozenset({UserRole.SUPER_ADMIN, UserRole.PLATFORM_AGENT})
ALL_ROLES = frozenset(UserRole)


class Capability(str, Enum):
    VIEW_ALL_ENQUIRIES = "view_all_enquiries"
    VIEW_ALL_DEALS = "view_all_deals"
    VIEW_ALL_LISTINGS = "view_all_listings"
    EDIT_ANY_LISTING = "edit_any_listing"
    DELETE_ANY_LISTING = "delete_any_listing"
    SET_COMMISSION = "set_commission"
    VIEW_COMMISSION = "view_commission"
    MANAGE_AGENTS = "manage_agents"
    REVIEW_SUBMISSIONS = "review_submissions"


CAPABILITIES: dict[Capability, frozenset[UserRole]] = {
    Capability.VIEW_ALL_ENQUIRIES: INTERNAL_ROLES,
    Capability.VIEW_ALL_DEALS: INTERNAL_ROLES,
    Capability.VIEW_ALL_LISTINGS: frozenset({UserRole.SUPER_ADMIN}),
    Capability.EDIT_ANY_LISTING: frozenset({UserRole.SUPER_ADMIN}),
    Capability.DELETE_ANY_LISTING: frozenset({UserRole.SUPER_ADMIN}),
    Capability.SET_COMMISSION: INTERNAL_ROLES,
    Capability.VIEW_COMMISSION: INTERNAL_ROLES,
    Capability.MANAGE_AGENTS: frozenset({UserRole.SUPER_ADMIN}),
    Capability.REVIEW_SUBMISSIONS: ALL_ROLES,
}


def is_internal_agent(role: UserRole | str) -> bool:
    """True for roles with cross-tenant visibility (SUPER_ADMIN, PLATFORM_AGENT)."""
    return UserRole(role) in INTERNAL_ROLES


def has_capability(agent: AgentLike | None, capability: Capability) -> bool:
    return agent is not None and UserRole(agent.role) in CAPABILITIES[capability]


def check_roles(agent: AgentLike | None, roles: frozenset[UserRole] | set[UserRole] | None) -> AccessDecision:
    """Allow when no roles are required or the agent's role is among them."""
    if not roles:
        return ALLOW
    if agent is None:
        return Deny("Agent profile not found")
    if UserRole(agent.role) not in roles:
        return Deny("Insufficient permissions")
    return ALLOW


def check_capability(agent: AgentLike | None, capability: Capability) -> AccessDecision:
    if has_capability(agent, capability):
        return ALLOW
    return Deny("Insufficient permissions")


def check_ownership(
    agent: AgentLike | None,
    owner_id: str | None,
    reason: str = "You can only modify your own records",
    override: Capability | None = None,
) -> AccessDecision:
    """
    Allow when the agent owns the row, or holds the override capability.

    Args:
        agent: Acting agent
        owner_id: The row's agent_id
        reason: Message for the Deny
        override: Capability that bypasses ownership (None = internal roles)
    """
    if agent is None:
        return Deny("Agent profile not found")
    if override is None:
        if is_internal_agent(agent.role):
            return ALLOW
    elif has_capability(agent, override):
        return ALLOW
    if owner_id is not None and owner_id == agent.id:
        return ALLOW
    return Deny(reason)


def scoped_agent_id(agent: AgentLike, capability: Capability) -> str | None:
    """
    Agent id to filter list queries by.

    Returns None when the agent may see every row for this capability.
    """
    return None if has_capability(agent, capability) else agent.id
