# =============================================================================
# tests/test_deals_api.py - Deal Pipeline Tests
# =============================================================================
# Includes the stage change / listing freshness coupling and its rollback.
# =============================================================================

from datetime import timedelta

from core.models.enums import PropertyStatus, UserRole, VerificationSource
from core.tables import Deal, Property
from lib.utils import ensure_utc, utcnow
from tests.conftest import auth_headers


def _open_deal(client, agent, prop, **overrides):
    body = {"propertyId": prop.id, "clientName": "Mr. Lee", "dealType": "SALE", "amount": 2900000}
    body.update(overrides)
    return client.post("/api/deals", json=body, headers=auth_headers(agent))


class TestCreateDeal:

    def test_defaults_to_new_lead(self, client, make_agent, make_property):
        agent = make_agent()
        prop = make_property(agent)

        response = _open_deal(client, agent, prop)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["stage"] == "NEW_LEAD"
        assert data["property"]["id"] == prop.id
        assert data["metadata"] == {}

    def test_unknown_property_rejected(self, client, make_agent):
        agent = make_agent()
        response = client.post(
            "/api/deals",
            json={"propertyId": "missing", "clientName": "Mr. Lee"},
            headers=auth_headers(agent),
        )
        assert response.status_code == 400

    def test_other_agents_listing_forbidden(self, client, make_agent, make_property):
        prop = make_property(make_agent())
        response = _open_deal(client, make_agent(), prop)
        assert response.status_code == 403


class TestDealScoping:

    def test_agent_lists_deals_on_own_listings(self, client, make_agent, make_property):
        a, b = make_agent(), make_agent()
        _open_deal(client, a, make_property(a))
        _open_deal(client, b, make_property(b))

        body = client.get("/api/deals", headers=auth_headers(a)).json()

        assert body["pagination"]["total"] == 1
        assert body["data"][0]["property"]["title"].startswith("Test Property")

    def test_super_admin_lists_all(self, client, make_agent, make_property):
        a, b = make_agent(), make_agent()
        _open_deal(client, a, make_property(a))
        _open_deal(client, b, make_property(b))
        admin = make_agent(role=UserRole.SUPER_ADMIN)

        body = client.get("/api/deals", headers=auth_headers(admin)).json()

        assert body["pagination"]["total"] == 2

    def test_get_other_agents_deal_forbidden(self, client, make_agent, make_property):
        owner = make_agent()
        deal_id = _open_deal(client, owner, make_property(owner)).json()["data"]["id"]

        response = client.get(f"/api/deals/{deal_id}", headers=auth_headers(make_agent()))

        assert response.status_code == 403
        assert response.json()["error"] == "You do not have permission to view this deal"

    def test_unknown_deal_404(self, client, make_agent):
        assert client.get("/api/deals/missing", headers=auth_headers(make_agent())).status_code == 404


class TestStageChange:

    def test_stage_change_refreshes_listing(self, client, db, make_agent, make_property):
        agent = make_agent()
        prop = make_property(agent, verified_days_ago=30)
        deal_id = _open_deal(client, agent, prop).json()["data"]["id"]
        before = utcnow()

        response = client.patch(
            f"/api/deals/{deal_id}", json={"stage": "VIEWING"}, headers=auth_headers(agent)
        )

        assert response.status_code == 200
        assert response.json()["data"]["stage"] == "VIEWING"
        db.expire_all()
        stored = db.get(Property, prop.id)
        assert stored.verification_source == VerificationSource.SYSTEM
        assert stored.status == PropertyStatus.AVAILABLE
        assert abs(ensure_utc(stored.last_verified_at) - before) < timedelta(seconds=1)

    def test_other_fields_leave_listing_alone(self, client, db, make_agent, make_property):
        agent = make_agent()
        prop = make_property(agent, verified_days_ago=30)
        deal_id = _open_deal(client, agent, prop).json()["data"]["id"]

        client.patch(f"/api/deals/{deal_id}", json={"notes": "Called back"}, headers=auth_headers(agent))

        db.expire_all()
        assert db.get(Property, prop.id).verification_source == VerificationSource.AGENT

    def test_refresh_failure_rolls_back_stage(self, client, db, make_agent, make_property, monkeypatch):
        agent = make_agent()
        prop = make_property(agent, verified_days_ago=30)
        deal_id = _open_deal(client, agent, prop).json()["data"]["id"]
        original_verified_at = ensure_utc(db.get(Property, prop.id).last_verified_at)

        def fail(prop):
            raise RuntimeError("property update failed")

        monkeypatch.setattr("core.services.deal_service.refresh_listing_freshness", fail)

        response = client.patch(
            f"/api/deals/{deal_id}", json={"stage": "NEGOTIATION"}, headers=auth_headers(agent)
        )

        assert response.status_code == 500
        db.expire_all()
        assert db.get(Deal, deal_id).stage == "NEW_LEAD"
        assert ensure_utc(db.get(Property, prop.id).last_verified_at) == original_verified_at


class TestDeleteDeal:

    def test_owner_deletes(self, client, db, make_agent, make_property):
        agent = make_agent()
        deal_id = _open_deal(client, agent, make_property(agent)).json()["data"]["id"]

        response = client.delete(f"/api/deals/{deal_id}", headers=auth_headers(agent))

        assert response.status_code == 200
        db.expire_all()
        assert db.get(Deal, deal_id) is None
