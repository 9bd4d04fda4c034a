# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Resolves the caller of a request in two steps:
#   1. Session token (Supabase JWT) -> AuthUser
#   2. AuthUser e-mail -> AgentProfile (case-insensitive match)
#
# Token verification supports both:
# - ES256/RS256 (Supabase JWT signing keys) via JWKS
# - HS256 (legacy Supabase JWT secret)
# When neither key is available locally, Supabase Auth is asked directly.
#
# Usage:
#   from app.auth import with_auth, AuthContext
#
#   @router.get("/deals")
#   def list_deals(auth: AuthContext = Depends(with_auth())):
#       ...
#
#   @router.post("/agents")
#   def create_agent(auth: AuthContext = Depends(with_auth(roles={UserRole.SUPER_ADMIN}))):
#       ...
# =============================================================================

import logging
import time
from typing import Callable, Iterable, Optional

import httpx
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.auth.models import AuthContext, AuthUser
from app.config import settings
from app.exceptions import ForbiddenError, UnauthorizedError
from app.rate_limit import POLICIES, enforce_rate_limit, get_rate_limiter
from core.database import get_db
from core.models.enums import UserRole
from core.permissions import Capability, check_capability, check_roles
from core.tables import AgentProfile
from lib.rate_limiter import RateLimiter
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

# Missing header is handled here so it maps to the 401 envelope
security_optional = HTTPBearer(auto_error=False)

# Cache for JWKS keys
_jwks_cache: dict = {}
_jwks_cache_time: float = 0
JWKS_CACHE_TTL = 3600  # 1 hour


def _get_jwks_url() -> str:
    """Get the JWKS URL from Supabase URL."""
    supabase_url = settings.SUPABASE_URL.rstrip("/")
    return f"{supabase_url}/auth/v1/.well-known/jwks.json"


def _fetch_jwks() -> dict:
    """Fetch JWKS from Supabase with caching."""
    global _jwks_cache, _jwks_cache_time

    current_time = time.time()

    if _jwks_cache and (current_time - _jwks_cache_time) < JWKS_CACHE_TTL:
        return _jwks_cache

    try:
        response = httpx.get(_get_jwks_url(), timeout=10)
        response.raise_for_status()
        _jwks_cache = response.json()
        _jwks_cache_time = current_time
        logger.debug("Fetched JWKS from Supabase")
        return _jwks_cache
    except httpx.HTTPError as e:
        logger.warning(f"Failed to fetch JWKS: {e}")
        # Stale keys are better than none
        return _jwks_cache or {"keys": []}


def _get_signing_key(token: str) -> tuple[str | dict, str] | None:
    """
    Find the key that verifies `token`.

    Returns:
        Tuple of (key, algorithm), or None when no local key matches
    """
    try:
        unverified_header = jwt.get_unverified_header(token)
    except JWTError:
        raise UnauthorizedError("Invalid session token")

    alg = unverified_header.get("alg", "HS256")
    kid = unverified_header.get("kid")

    if alg == "HS256":
        if not settings.SUPABASE_JWT_SECRET:
            return None
        return settings.SUPABASE_JWT_SECRET, "HS256"

    if kid:
        for key in _fetch_jwks().get("keys", []):
            if key.get("kid") == kid:
                return key, alg

    logger.warning(f"No local key for alg={alg}, kid={kid}")
    return None


def decode_session_token(token: str) -> AuthUser:
    """
    Verify a Supabase session token.

    Raises:
        UnauthorizedError: If the token is invalid, expired or has no subject
    """
    signing_key = _get_signing_key(token)

    if signing_key is None:
        user = SupabaseClient.fetch_user(token)
        if user is None:
            raise UnauthorizedError("Invalid session token")
        return AuthUser(id=user["id"], email=user.get("email"))

    key, algorithm = signing_key
    try:
        payload = jwt.decode(token, key, algorithms=[algorithm], audience="authenticated")
    except ExpiredSignatureError:
        logger.warning("Session token has expired")
        raise UnauthorizedError("Session has expired")
    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise UnauthorizedError("Invalid session token")

    user_id = payload.get("sub")
    if not user_id:
        logger.warning("JWT token missing 'sub' claim")
        raise UnauthorizedError("Invalid session token")

    return AuthUser(id=str(user_id), email=payload.get("email"))


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_optional),
) -> AuthUser:
    """
    Require a valid session.

    Raises:
        UnauthorizedError: 401 if the token is missing, invalid or expired
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError()
    user = decode_session_token(credentials.credentials)
    logger.debug(f"Authenticated user: {user.id}")
    return user


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_optional),
) -> Optional[AuthUser]:
    """
    Optionally get the current user.

    Returns None for a missing or invalid token instead of raising, for
    routes that serve both the public site and the agent dashboard.
    """
    if credentials is None:
        return None

    try:
        return await get_current_user(credentials)
    except UnauthorizedError:
        return None


# =============================================================================
# Agent Resolution
# =============================================================================

def find_agent_by_email(db: Session, email: str | None) -> AgentProfile | None:
    """Look up an agent profile by e-mail, ignoring case."""
    if not email:
        return None
    return db.scalars(
        select(AgentProfile).where(func.lower(AgentProfile.email) == email.strip().lower())
    ).first()


def get_optional_agent(
    user: Optional[AuthUser] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
) -> AgentProfile | None:
    """Agent profile of the caller on public routes, if signed in and active."""
    if user is None:
        return None
    agent = find_agent_by_email(db, user.email)
    if agent is None or not agent.is_active:
        return None
    return agent


def with_auth(
    roles: Iterable[UserRole] | None = None,
    require_agent: bool = True,
    capability: Capability | None = None,
) -> Callable[..., AuthContext]:
    """
    Build a dependency that authenticates and authorizes a request.

    Args:
        roles: Roles allowed through (None = any agent)
        require_agent: Reject sessions that have no agent profile
        capability: Capability the agent must hold (see core.permissions)

    Raises (from the dependency):
        UnauthorizedError: No valid session
        ForbiddenError: No/inactive agent profile, role not allowed, or
            capability missing
        RateLimitExceededError: Caller exceeded the AGENT policy
    """
    allowed_roles = frozenset(UserRole(role) for role in roles) if roles else None

    def dependency(
        user: AuthUser = Depends(get_current_user),
        db: Session = Depends(get_db),
        limiter: RateLimiter = Depends(get_rate_limiter),
    ) -> AuthContext:
        agent = find_agent_by_email(db, user.email)

        if agent is None:
            if require_agent or allowed_roles or capability is not None:
                logger.warning(f"No agent profile for user {user.id}")
                raise ForbiddenError("Agent profile not found")
        elif not agent.is_active:
            logger.warning(f"Inactive agent {agent.id} rejected")
            raise ForbiddenError("Agent profile is inactive")

        check_roles(agent, allowed_roles).enforce()
        if capability is not None:
            check_capability(agent, capability).enforce()

        enforce_rate_limit(limiter, f"agent:{agent.id if agent else user.id}", POLICIES["AGENT"])

        return AuthContext(user=user, agent=agent)

    return dependency


# Common shorthand for agent-only routes
require_agent = with_auth()
