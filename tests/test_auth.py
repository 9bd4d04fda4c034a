# =============================================================================
# tests/test_auth.py - Session and Role Resolution Tests
# =============================================================================
# Real HS256 tokens run through the whole dependency chain.
# =============================================================================

from unittest.mock import patch

import pytest
from jose import jwt

from app.auth import decode_session_token
from app.config import settings
from app.exceptions import UnauthorizedError
from core.models.enums import UserRole
from tests.conftest import auth_headers, make_token


class TestDecodeSessionToken:

    def test_valid_token(self):
        user = decode_session_token(make_token("agent@example.com", user_id="u-42"))

        assert user.id == "u-42"
        assert user.email == "agent@example.com"

    def test_expired_token(self):
        with pytest.raises(UnauthorizedError, match="Session has expired"):
            decode_session_token(make_token("agent@example.com", expires_in=-60))

    def test_wrong_secret(self):
        token = jwt.encode(
            {"sub": "u", "aud": "authenticated", "exp": 9999999999}, "other-secret", algorithm="HS256"
        )
        with pytest.raises(UnauthorizedError, match="Invalid session token"):
            decode_session_token(token)

    def test_wrong_audience(self):
        token = jwt.encode(
            {"sub": "u", "aud": "anon", "exp": 9999999999}, settings.SUPABASE_JWT_SECRET, algorithm="HS256"
        )
        with pytest.raises(UnauthorizedError):
            decode_session_token(token)

    def test_garbage_token(self):
        with pytest.raises(UnauthorizedError):
            decode_session_token("not-a-jwt")

    def test_falls_back_to_supabase_without_local_key(self, monkeypatch):
        monkeypatch.setattr(settings, "SUPABASE_JWT_SECRET", "")
        token = jwt.encode({"sub": "u", "aud": "authenticated", "exp": 9999999999}, "x", algorithm="HS256")

        with patch(
            "app.auth.dependencies.SupabaseClient.fetch_user",
            return_value={"id": "remote-user", "email": "remote@example.com"},
        ) as fetch_user:
            user = decode_session_token(token)

        fetch_user.assert_called_once_with(token)
        assert user.id == "remote-user"


class TestWithAuth:

    def test_no_token_401(self, client):
        response = client.get("/api/deals")

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED"

    def test_expired_token_401(self, client, make_agent):
        agent = make_agent()
        response = client.get("/api/deals", headers=auth_headers(agent, expires_in=-60))

        assert response.status_code == 401
        assert response.json()["error"] == "Session has expired"

    def test_session_without_profile_403(self, client):
        response = client.get("/api/deals", headers=auth_headers("stranger@example.com"))

        assert response.status_code == 403
        assert response.json()["error"] == "Agent profile not found"

    def test_inactive_agent_403(self, client, make_agent):
        agent = make_agent(is_active=False)

        response = client.get("/api/deals", headers=auth_headers(agent))

        assert response.status_code == 403
        assert response.json()["error"] == "Agent profile is inactive"

    def test_email_match_ignores_case(self, client, make_agent):
        make_agent(email="Somchai@Example.com")

        response = client.get("/api/deals", headers=auth_headers("somchai@example.com"))

        assert response.status_code == 200

    def test_role_restriction(self, client, make_agent):
        agent = make_agent(role=UserRole.PLATFORM_AGENT)

        response = client.post(
            "/api/agents", json={"name": "New Agent"}, headers=auth_headers(agent)
        )

        assert response.status_code == 403
        assert response.json()["error"] == "Insufficient permissions"

    def test_invalid_token_on_public_route_is_anonymous(self, client, make_agent, make_property):
        make_property(make_agent())

        response = client.get("/api/properties", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 200
        assert response.json()["pagination"]["total"] == 1

    def test_agent_rate_limit(self, client, make_agent, monkeypatch):
        from app import rate_limit
        from lib.rate_limiter import RateLimitPolicy

        monkeypatch.setitem(rate_limit.POLICIES, "AGENT", RateLimitPolicy(max_requests=2, window_ms=60_000))
        headers = auth_headers(make_agent())

        statuses = [client.get("/api/deals", headers=headers).status_code for _ in range(3)]

        assert statuses == [200, 200, 429]
