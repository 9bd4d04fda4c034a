# =============================================================================
# tests/test_properties_api.py - Listing Endpoint Tests
# =============================================================================
# Covers:
# - create/update with price history coupling (and rollback on failure)
# - commission redaction per viewer
# - list scoping, filters and freshness
# - status changes and re-verification
# =============================================================================

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from core.models.enums import PriceChangeType, PropertyStatus, UserRole, VerificationSource
from core.tables import PriceHistory, Property
from lib.utils import ensure_utc, utcnow
from tests.conftest import auth_headers

NEW_LISTING = {
    "title": "Pool Villa near Jomtien Beach",
    "description": "Three bedroom villa with private pool",
    "address": "123 Jomtien Second Road",
    "city": "Pattaya",
    "state": "Chonburi",
    "zipCode": "20150",
    "category": "HOUSE",
    "size": 220,
    "listingType": "SALE",
    "price": 8500000,
    "bedrooms": 3,
    "bathrooms": 3,
}


def _history(db, property_id):
    db.expire_all()
    return list(
        db.scalars(select(PriceHistory).where(PriceHistory.property_id == property_id)).all()
    )


# =============================================================================
# Create
# =============================================================================

class TestCreateProperty:

    def test_requires_authentication(self, client):
        response = client.post("/api/properties", json=NEW_LISTING)
        assert response.status_code == 401

    def test_creates_listing_with_initial_history(self, client, db, make_agent):
        agent = make_agent()

        response = client.post("/api/properties", json=NEW_LISTING, headers=auth_headers(agent))

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["referenceId"].startswith("ASC-")
        assert len(data["referenceId"]) == len("ASC-") + 6
        assert data["slug"] == "pool-villa-near-jomtien-beach"
        assert data["agentId"] == agent.id
        assert data["freshness"] == "FRESH"
        assert data["verificationSource"] == "AGENT"

        history = _history(db, data["id"])
        assert len(history) == 1
        assert history[0].change_type == PriceChangeType.INITIAL
        assert history[0].price == Decimal("8500000")

    def test_duplicate_titles_get_suffixed_slugs(self, client, make_agent):
        headers = auth_headers(make_agent())

        first = client.post("/api/properties", json=NEW_LISTING, headers=headers).json()["data"]
        second = client.post("/api/properties", json=NEW_LISTING, headers=headers).json()["data"]

        assert first["slug"] == "pool-villa-near-jomtien-beach"
        assert second["slug"] == "pool-villa-near-jomtien-beach-2"

    def test_sale_listing_requires_price(self, client, make_agent):
        body = {**NEW_LISTING, "price": None}

        response = client.post("/api/properties", json=body, headers=auth_headers(make_agent()))

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_land_cannot_have_bedrooms(self, client, make_agent):
        body = {**NEW_LISTING, "category": "LAND"}

        response = client.post("/api/properties", json=body, headers=auth_headers(make_agent()))

        assert response.status_code == 400

    def test_agent_cannot_set_commission(self, client, make_agent):
        body = {**NEW_LISTING, "commissionRate": 3, "commissionAmount": 255000}

        response = client.post("/api/properties", json=body, headers=auth_headers(make_agent()))

        data = response.json()["data"]
        assert data["commissionRate"] is None
        assert data["commissionAmount"] is None

    def test_history_failure_rolls_back_listing(self, client, db, make_agent, monkeypatch):
        def fail(*args, **kwargs):
            raise RuntimeError("history table unavailable")

        monkeypatch.setattr("core.services.property_service.record_price_change", fail)

        response = client.post("/api/properties", json=NEW_LISTING, headers=auth_headers(make_agent()))

        assert response.status_code == 500
        db.expire_all()
        assert db.scalars(select(Property)).all() == []


# =============================================================================
# Update / price history coupling
# =============================================================================

class TestUpdateProperty:

    def test_price_change_appends_exactly_one_row(self, client, db, make_agent, make_property):
        agent = make_agent()
        prop = make_property(agent)

        response = client.put(
            f"/api/properties/{prop.id}", json={"price": 2800000}, headers=auth_headers(agent)
        )

        assert response.status_code == 200
        assert response.json()["data"]["price"] == 2800000
        history = _history(db, prop.id)
        assert len(history) == 1
        assert history[0].change_type == PriceChangeType.DECREASE
        assert history[0].price == Decimal("2800000")
        assert history[0].changed_by == agent.id

    def test_unchanged_price_writes_no_history(self, client, db, make_agent, make_property):
        agent = make_agent()
        prop = make_property(agent)

        client.put(
            f"/api/properties/{prop.id}",
            json={"price": 3000000, "title": "Renamed Sea View Condo"},
            headers=auth_headers(agent),
        )

        assert _history(db, prop.id) == []

    def test_title_change_regenerates_slug(self, client, make_agent, make_property):
        agent = make_agent()
        prop = make_property(agent)

        response = client.put(
            f"/api/properties/{prop.id}",
            json={"title": "Renamed Sea View Condo"},
            headers=auth_headers(agent),
        )

        assert response.json()["data"]["slug"] == "renamed-sea-view-condo"

    def test_history_failure_rolls_back_price(self, client, db, make_agent, make_property, monkeypatch):
        agent = make_agent()
        prop = make_property(agent)

        def fail(*args, **kwargs):
            raise RuntimeError("history insert failed")

        monkeypatch.setattr("core.services.property_service.record_price_change", fail)

        response = client.put(
            f"/api/properties/{prop.id}",
            json={"price": 2500000, "title": "Should Not Stick"},
            headers=auth_headers(agent),
        )

        assert response.status_code == 500
        db.expire_all()
        stored = db.get(Property, prop.id)
        assert stored.price == Decimal("3000000")
        assert stored.title != "Should Not Stick"
        assert _history(db, prop.id) == []

    def test_other_agents_listing_forbidden(self, client, make_agent, make_property):
        owner, other = make_agent(), make_agent()
        prop = make_property(owner)

        response = client.put(
            f"/api/properties/{prop.id}", json={"price": 1}, headers=auth_headers(other)
        )

        assert response.status_code == 403
        assert response.json()["error"] == "You can only edit your own listings"

    def test_super_admin_may_edit_any_listing(self, client, make_agent, make_property):
        prop = make_property(make_agent())
        admin = make_agent(role=UserRole.SUPER_ADMIN)

        response = client.put(
            f"/api/properties/{prop.id}", json={"featured": True}, headers=auth_headers(admin)
        )

        assert response.status_code == 200
        assert response.json()["data"]["featured"] is True

    def test_invalid_status_via_update_rejected(self, client, make_agent, make_property):
        agent = make_agent()
        prop = make_property(agent, status=PropertyStatus.SOLD)

        response = client.put(
            f"/api/properties/{prop.id}", json={"status": "PENDING"}, headers=auth_headers(agent)
        )

        assert response.status_code == 400
        assert "Invalid status transition" in response.json()["error"]

    def test_unknown_property_404(self, client, make_agent):
        response = client.put(
            "/api/properties/missing", json={"price": 1}, headers=auth_headers(make_agent())
        )
        assert response.status_code == 404


# =============================================================================
# Delete
# =============================================================================

class TestDeleteProperty:

    def test_owner_deletes_listing_and_history(self, client, db, make_agent, make_property):
        agent = make_agent()
        prop = make_property(agent)
        property_id = prop.id
        db.add(PriceHistory(property_id=property_id, price=prop.price, change_type=PriceChangeType.INITIAL))
        db.commit()

        response = client.delete(f"/api/properties/{property_id}", headers=auth_headers(agent))

        assert response.status_code == 200
        assert response.json()["data"] == {"id": property_id, "deleted": True}
        db.expunge_all()
        assert db.scalar(select(Property).where(Property.id == property_id)) is None
        assert db.scalars(select(PriceHistory).where(PriceHistory.property_id == property_id)).all() == []

    def test_platform_agent_cannot_delete_others(self, client, make_agent, make_property):
        prop = make_property(make_agent())
        platform = make_agent(role=UserRole.PLATFORM_AGENT)

        response = client.delete(f"/api/properties/{prop.id}", headers=auth_headers(platform))

        assert response.status_code == 403


# =============================================================================
# Read / redaction
# =============================================================================

class TestCommissionRedaction:

    def test_anonymous_sees_no_commission(self, client, make_agent, make_property):
        prop = make_property(make_agent())

        data = client.get(f"/api/properties/{prop.id}").json()["data"]

        assert data["commissionRate"] is None
        assert data["commissionAmount"] is None
        assert data["agentCommissionRate"] is None

    def test_agent_sees_agent_commission_only(self, client, make_agent, make_property):
        prop = make_property(make_agent())
        viewer = make_agent()

        data = client.get(f"/api/properties/{prop.id}", headers=auth_headers(viewer)).json()["data"]

        assert data["commissionRate"] is None
        assert data["agentCommissionRate"] == 1.5

    @pytest.mark.parametrize("role", [UserRole.SUPER_ADMIN, UserRole.PLATFORM_AGENT])
    def test_internal_agents_see_commission(self, client, make_agent, make_property, role):
        prop = make_property(make_agent())
        viewer = make_agent(role=role)

        data = client.get(f"/api/properties/{prop.id}", headers=auth_headers(viewer)).json()["data"]

        assert data["commissionRate"] == 3
        assert data["commissionAmount"] == 90000

    def test_unknown_property_404(self, client):
        response = client.get("/api/properties/does-not-exist")
        assert response.status_code == 404
        assert response.json()["success"] is False


class TestListProperties:

    def test_anonymous_sees_all_available(self, client, make_agent, make_property):
        a, b = make_agent(), make_agent()
        make_property(a)
        make_property(b)
        make_property(b, status=PropertyStatus.SOLD)

        body = client.get("/api/properties").json()

        assert body["pagination"]["total"] == 2
        assert len(body["data"]) == 2

    def test_agent_sees_only_own(self, client, make_agent, make_property):
        a, b = make_agent(), make_agent()
        mine = make_property(a)
        make_property(b)

        body = client.get("/api/properties", headers=auth_headers(a)).json()

        assert [p["id"] for p in body["data"]] == [mine.id]

    def test_super_admin_sees_all(self, client, make_agent, make_property):
        make_property(make_agent())
        make_property(make_agent())
        admin = make_agent(role=UserRole.SUPER_ADMIN)

        body = client.get("/api/properties", headers=auth_headers(admin)).json()

        assert body["pagination"]["total"] == 2

    def test_freshness_filter(self, client, make_agent, make_property):
        agent = make_agent()
        fresh = make_property(agent, verified_days_ago=2)
        stale = make_property(agent, verified_days_ago=30)
        never = make_property(agent, verified_days_ago=None)

        fresh_ids = {p["id"] for p in client.get("/api/properties?freshness=fresh").json()["data"]}
        stale_ids = {p["id"] for p in client.get("/api/properties?freshness=needs_check").json()["data"]}

        assert fresh_ids == {fresh.id}
        assert stale_ids == {stale.id, never.id}

    def test_invalid_freshness_value(self, client):
        response = client.get("/api/properties?freshness=stale")
        assert response.status_code == 400

    def test_listing_type_sale_includes_both(self, client, make_agent, make_property):
        agent = make_agent()
        make_property(agent, listing_type="SALE")
        make_property(agent, listing_type="BOTH", rent_price=Decimal("25000"))
        make_property(agent, listing_type="RENT", price=None, rent_price=Decimal("20000"))

        body = client.get("/api/properties?listingType=SALE").json()

        assert body["pagination"]["total"] == 2

    def test_price_and_city_filters(self, client, make_agent, make_property):
        agent = make_agent()
        cheap = make_property(agent, price=Decimal("1500000"), city="Pattaya")
        make_property(agent, price=Decimal("9000000"), city="Pattaya")
        make_property(agent, price=Decimal("1200000"), city="Bangkok")

        body = client.get("/api/properties?maxPrice=2000000&city=patt").json()

        assert [p["id"] for p in body["data"]] == [cheap.id]

    def test_pagination(self, client, make_agent, make_property):
        agent = make_agent()
        for _ in range(5):
            make_property(agent)

        body = client.get("/api/properties?page=2&limit=2").json()

        assert len(body["data"]) == 2
        assert body["pagination"] == {"total": 5, "page": 2, "limit": 2, "totalPages": 3}

    def test_invalid_pagination(self, client):
        assert client.get("/api/properties?page=0").status_code == 400
        assert client.get("/api/properties?limit=1000").status_code == 400

    def test_anonymous_reads_are_rate_limited(self, client, make_agent, make_property, monkeypatch):
        from app import rate_limit
        from lib.rate_limiter import RateLimitPolicy

        monkeypatch.setitem(rate_limit.POLICIES, "API", RateLimitPolicy(max_requests=2, window_ms=60_000))
        prop = make_property(make_agent())
        ip = {"X-Forwarded-For": "10.0.3.1"}

        statuses = [
            client.get("/api/properties", headers=ip).status_code,
            client.get(f"/api/properties/{prop.id}", headers=ip).status_code,
            client.get("/api/properties", headers=ip).status_code,
        ]

        assert statuses == [200, 200, 429]
        other = client.get("/api/properties", headers={"X-Forwarded-For": "10.0.3.2"})
        assert other.status_code == 200


# =============================================================================
# Lifecycle endpoints
# =============================================================================

class TestStatusEndpoints:

    def test_status_change_stamps_agent_verification(self, client, db, make_agent, make_property):
        agent = make_agent()
        prop = make_property(agent, verified_days_ago=20)
        before = utcnow()

        response = client.post(
            f"/api/properties/{prop.id}/status", json={"status": "PENDING"}, headers=auth_headers(agent)
        )

        assert response.status_code == 200
        db.expire_all()
        stored = db.get(Property, prop.id)
        assert stored.status == PropertyStatus.PENDING
        assert stored.verification_source == VerificationSource.AGENT
        assert ensure_utc(stored.last_verified_at) >= before - timedelta(seconds=1)

    def test_sold_cannot_go_pending(self, client, make_agent, make_property):
        agent = make_agent()
        prop = make_property(agent, status=PropertyStatus.SOLD)

        response = client.post(
            f"/api/properties/{prop.id}/status", json={"status": "PENDING"}, headers=auth_headers(agent)
        )

        assert response.status_code == 400

    def test_reverify_makes_listing_fresh(self, client, make_agent, make_property):
        agent = make_agent()
        prop = make_property(agent, verified_days_ago=40)

        response = client.post(f"/api/properties/{prop.id}/verify", headers=auth_headers(agent))

        data = response.json()["data"]
        assert data["freshness"] == "FRESH"
        assert data["status"] == "AVAILABLE"


class TestPriceHistoryEndpoint:

    def test_requires_property_id(self, client):
        response = client.get("/api/price-history")
        assert response.status_code == 400

    def test_newest_first(self, client, make_agent, make_property):
        agent = make_agent()
        prop = make_property(agent)
        headers = auth_headers(agent)
        client.put(f"/api/properties/{prop.id}", json={"price": 3200000}, headers=headers)
        client.put(f"/api/properties/{prop.id}", json={"price": 3100000}, headers=headers)

        data = client.get(f"/api/price-history?propertyId={prop.id}").json()["data"]

        assert [row["changeType"] for row in data] == ["DECREASE", "INCREASE"]
        assert data[0]["price"] == 3100000
