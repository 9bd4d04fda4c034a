# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up test environment variables before any imports
# - Fresh in-memory SQLite database per test (get_db overridden)
# - Fresh in-memory rate limiter per test
# - Factories for agents and properties, and real HS256 session tokens
# =============================================================================

import os
import time
from datetime import timedelta
from decimal import Decimal

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-length")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("N8N_API_KEY", "n8n-test-key-0123456789")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "false")

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.orm import sessionmaker

from app.config import settings
from app.main import app
from core.database import Base, build_engine, get_db
from core.models.enums import (
    ListingType,
    PropertyCategory,
    PropertyStatus,
    UserRole,
    VerificationSource,
)
from core.tables import AgentProfile, Property
from lib.rate_limiter import InMemoryRateLimitStore, RateLimiter
from lib.utils import utcnow

N8N_KEY = settings.N8N_API_KEY


# =============================================================================
# Database
# =============================================================================

@pytest.fixture
def engine():
    """A brand new in-memory database with every table created."""
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=True)


@pytest.fixture
def db(session_factory):
    """Session used by tests to arrange and inspect rows."""
    session = session_factory()
    yield session
    session.close()


# =============================================================================
# Application
# =============================================================================

@pytest.fixture
def limiter():
    return RateLimiter(InMemoryRateLimitStore())


@pytest.fixture
def client(session_factory, limiter):
    """
    TestClient wired to the per-test database and limiter.

    Server exceptions are returned as 500 responses so rollback tests can
    assert on them.
    """
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.state.rate_limiter = limiter

    yield TestClient(app, raise_server_exceptions=False)

    app.dependency_overrides.clear()
    app.state.rate_limiter = None


# =============================================================================
# Factories
# =============================================================================

@pytest.fixture
def make_agent(db):
    """Create and commit an AgentProfile."""
    counter = {"n": 0}

    def _make(role=UserRole.AGENT, email=None, is_active=True, name=None):
        counter["n"] += 1
        agent = AgentProfile(
            name=name or f"Agent {counter['n']}",
            email=email or f"agent{counter['n']}@example.com",
            role=role,
            is_active=is_active,
            languages=["en", "th"],
        )
        db.add(agent)
        db.commit()
        db.refresh(agent)
        return agent

    return _make


@pytest.fixture
def make_property(db):
    """Create and commit a Property owned by `agent`."""
    counter = {"n": 0}

    def _make(agent=None, verified_days_ago=0, **overrides):
        counter["n"] += 1
        values = dict(
            reference_id=f"ASC-{100000 + counter['n']}",
            slug=f"test-property-{counter['n']}",
            title=f"Test Property {counter['n']}",
            description="A lovely property near the beach",
            address="123 Beach Road",
            city="Pattaya",
            state="Chonburi",
            zip_code="20150",
            category=PropertyCategory.CONDO,
            listing_type=ListingType.SALE,
            status=PropertyStatus.AVAILABLE,
            price=Decimal("3000000"),
            size=Decimal("45"),
            bedrooms=1,
            bathrooms=1,
            images=[],
            commission_rate=Decimal("3"),
            commission_amount=Decimal("90000"),
            agent_commission_rate=Decimal("1.5"),
            agent_id=agent.id if agent else None,
            last_verified_at=(
                utcnow() - timedelta(days=verified_days_ago)
                if verified_days_ago is not None
                else None
            ),
            verification_source=VerificationSource.AGENT,
        )
        values.update(overrides)
        prop = Property(**values)
        db.add(prop)
        db.commit()
        db.refresh(prop)
        return prop

    return _make


# =============================================================================
# Auth helpers
# =============================================================================

def make_token(email: str, user_id: str = "user-1", expires_in: int = 3600) -> str:
    """Mint a Supabase-style HS256 session token."""
    now = int(time.time())
    claims = {
        "sub": user_id,
        "email": email,
        "aud": "authenticated",
        "role": "authenticated",
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(claims, settings.SUPABASE_JWT_SECRET, algorithm="HS256")


def auth_headers(agent_or_email, **kwargs) -> dict[str, str]:
    email = agent_or_email if isinstance(agent_or_email, str) else agent_or_email.email
    return {"Authorization": f"Bearer {make_token(email, **kwargs)}"}


@pytest.fixture
def n8n_headers():
    return {"X-N8N-API-Key": N8N_KEY}
