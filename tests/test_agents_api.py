# =============================================================================
# tests/test_agents_api.py - Agent Profile Endpoint Tests
# =============================================================================

from datetime import timedelta

import pytest
from sqlalchemy import select

from core.models.enums import (
    EnquiryChannel,
    ListingType,
    PropertyCategory,
    PropertyStatus,
    SubmissionStatus,
    UserRole,
)
from core.tables import AgentProfile, Enquiry, PropertySubmission
from lib.utils import utcnow
from tests.conftest import auth_headers


class TestCurrentAgent:

    def test_existing_profile(self, client, make_agent):
        agent = make_agent(role=UserRole.PLATFORM_AGENT)

        body = client.get("/api/agent/me", headers=auth_headers(agent)).json()

        assert body["data"]["agent"]["id"] == agent.id
        assert body["data"]["agent"]["role"] == "PLATFORM_AGENT"
        assert body["data"]["autoCreated"] is False

    def test_auto_creates_plain_agent(self, client, db):
        response = client.get("/api/agent/me", headers=auth_headers("new.person@example.com"))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["autoCreated"] is True
        assert data["agent"]["role"] == "AGENT"
        assert data["agent"]["name"] == "new.person"

        db.expire_all()
        stored = db.scalars(select(AgentProfile).where(AgentProfile.email == "new.person@example.com")).all()
        assert len(stored) == 1

    def test_inactive_profile_rejected(self, client, make_agent):
        agent = make_agent(is_active=False)
        assert client.get("/api/agent/me", headers=auth_headers(agent)).status_code == 403

    def test_requires_session(self, client):
        assert client.get("/api/agent/me").status_code == 401


class TestAgentManagement:

    def test_super_admin_creates_agent(self, client, make_agent):
        admin = make_agent(role=UserRole.SUPER_ADMIN)

        response = client.post(
            "/api/agents",
            json={"name": "Nok Agent", "email": "nok@example.com", "role": "PLATFORM_AGENT"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 201
        assert response.json()["data"]["role"] == "PLATFORM_AGENT"

    def test_duplicate_email_conflict(self, client, make_agent):
        admin = make_agent(role=UserRole.SUPER_ADMIN)
        make_agent(email="taken@example.com")

        response = client.post(
            "/api/agents",
            json={"name": "Copy Cat", "email": "TAKEN@example.com"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 409
        assert response.json()["code"] == "CONFLICT"

    def test_list_hides_inactive_by_default(self, client, make_agent):
        viewer = make_agent()
        make_agent(is_active=False)

        active = client.get("/api/agents", headers=auth_headers(viewer)).json()["data"]
        everyone = client.get("/api/agents?includeInactive=true", headers=auth_headers(viewer)).json()["data"]

        assert len(active) == 1
        assert len(everyone) == 2

    def test_get_agent(self, client, make_agent):
        viewer, other = make_agent(), make_agent()

        response = client.get(f"/api/agents/{other.id}", headers=auth_headers(viewer))

        assert response.json()["data"]["email"] == other.email
        assert client.get("/api/agents/missing", headers=auth_headers(viewer)).status_code == 404

    @pytest.mark.parametrize("role", [UserRole.AGENT, UserRole.PLATFORM_AGENT])
    def test_create_requires_super_admin(self, client, make_agent, role):
        response = client.post(
            "/api/agents",
            json={"email": "new.agent@example.com", "name": "New Agent"},
            headers=auth_headers(make_agent(role=role)),
        )

        assert response.status_code == 403

    def test_update_requires_super_admin(self, client, make_agent):
        agent, other = make_agent(), make_agent()

        response = client.patch(
            f"/api/agents/{other.id}", json={"isActive": False}, headers=auth_headers(agent)
        )

        assert response.status_code == 403

    def test_super_admin_deactivates_agent(self, client, make_agent):
        admin, other = make_agent(role=UserRole.SUPER_ADMIN), make_agent()

        response = client.patch(
            f"/api/agents/{other.id}", json={"isActive": False}, headers=auth_headers(admin)
        )

        assert response.status_code == 200
        assert response.json()["data"]["isActive"] is False


# =============================================================================
# Dashboard Stats
# =============================================================================

def _enquiry(db, agent=None, days_ago=0, name="Lead"):
    enquiry = Enquiry(
        agent_id=agent.id if agent else None,
        channel=EnquiryChannel.WEBSITE_FORM,
        name=name,
        message="Is this still available?",
        created_at=utcnow() - timedelta(days=days_ago),
    )
    db.add(enquiry)
    db.commit()
    return enquiry


def _submission(db, status=SubmissionStatus.PENDING):
    submission = PropertySubmission(
        title="Owner listed condo",
        description="Two bedroom condo with sea view",
        price=2500000,
        listing_type=ListingType.SALE,
        category=PropertyCategory.CONDO,
        contact_name="Somchai",
        status=status,
    )
    db.add(submission)
    db.commit()


class TestDashboardStats:

    def test_listing_counts_are_scoped_to_agent(self, client, make_agent, make_property):
        agent, other = make_agent(), make_agent()
        make_property(agent, verified_days_ago=1)
        make_property(agent, verified_days_ago=20)
        make_property(agent, verified_days_ago=None)
        make_property(agent, status=PropertyStatus.SOLD)
        make_property(other)

        response = client.get("/api/agent/stats", headers=auth_headers(agent))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["activeListings"] == 3
        assert data["freshListings"] == 1
        assert data["needsCheckListings"] == 2

    def test_super_admin_sees_all_listings(self, client, make_agent, make_property):
        admin, agent, other = make_agent(role=UserRole.SUPER_ADMIN), make_agent(), make_agent()
        make_property(agent)
        make_property(other)

        data = client.get("/api/agent/stats", headers=auth_headers(admin)).json()["data"]

        assert data["activeListings"] == 2

    def test_pending_submissions(self, client, db, make_agent):
        _submission(db)
        _submission(db)
        _submission(db, status=SubmissionStatus.APPROVED)

        data = client.get("/api/agent/stats", headers=auth_headers(make_agent())).json()["data"]

        assert data["pendingSubmissions"] == 2

    def test_enquiries_for_agent(self, client, db, make_agent):
        agent, other = make_agent(), make_agent()
        _enquiry(db, agent, days_ago=1, name="Recent lead")
        _enquiry(db, agent, days_ago=30, name="Old lead")
        _enquiry(db, other, name="Someone else's lead")

        data = client.get("/api/agent/stats", headers=auth_headers(agent)).json()["data"]

        assert data["totalEnquiries"] == 2
        assert data["newEnquiries"] == 1
        assert [e["name"] for e in data["recentEnquiries"]] == ["Recent lead", "Old lead"]

    def test_platform_agent_sees_all_enquiries(self, client, db, make_agent):
        platform, agent = make_agent(role=UserRole.PLATFORM_AGENT), make_agent()
        _enquiry(db, agent)
        _enquiry(db)

        data = client.get("/api/agent/stats", headers=auth_headers(platform)).json()["data"]

        assert data["totalEnquiries"] == 2

    def test_recent_enquiries_capped(self, client, db, make_agent):
        agent = make_agent()
        for day in range(7):
            _enquiry(db, agent, days_ago=day)

        data = client.get("/api/agent/stats", headers=auth_headers(agent)).json()["data"]

        assert data["totalEnquiries"] == 7
        assert len(data["recentEnquiries"]) == 5

    def test_requires_agent(self, client):
        assert client.get("/api/agent/stats").status_code == 401
