# =============================================================================
# tests/test_responses.py - Envelopes, Pagination and Error Handlers
# =============================================================================
# Uses a throwaway FastAPI app so each error kind can be raised directly.
# =============================================================================

import json

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError

from app.config import settings
from app.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidVerificationActionError,
    NotFoundError,
    RateLimitExceededError,
    UnauthorizedError,
    ValidationError,
    register_exception_handlers,
)
from app.responses import (
    created_response,
    paginated_response,
    success_response,
    validate_pagination,
)
from core.models.base import APIModel


def _body(response) -> dict:
    return json.loads(response.body)


# =============================================================================
# Success Envelopes
# =============================================================================

class TestSuccessEnvelope:

    def test_success_response_shape(self):
        response = success_response({"id": "p1"})
        body = _body(response)

        assert response.status_code == 200
        assert body["success"] is True
        assert body["data"] == {"id": "p1"}
        assert "timestamp" in body

    def test_meta_merged_into_top_level(self):
        body = _body(success_response([], meta={"count": 0}))
        assert body["count"] == 0

    def test_created_is_201(self):
        assert created_response({"id": "x"}).status_code == 201

    def test_models_serialized_camel_case(self):
        class Sample(APIModel):
            zip_code: str

        body = _body(success_response(Sample(zip_code="20150")))
        assert body["data"] == {"zipCode": "20150"}


class TestPagination:

    def test_paginated_response(self):
        body = _body(paginated_response([1, 2], page=2, limit=2, total=5))

        assert body["data"] == [1, 2]
        assert body["pagination"] == {"total": 5, "page": 2, "limit": 2, "totalPages": 3}

    def test_empty_result_has_zero_pages(self):
        body = _body(paginated_response([], page=1, limit=10, total=0))
        assert body["pagination"]["totalPages"] == 0

    def test_defaults(self):
        assert validate_pagination(None, None) == (1, settings.PAGINATION_DEFAULT_LIMIT)

    @pytest.mark.parametrize("page,limit", [(0, 10), (-1, 10), (1, 0), (1, -5)])
    def test_non_positive_values_rejected(self, page, limit):
        with pytest.raises(ValidationError, match="Invalid pagination parameters"):
            validate_pagination(page, limit)

    def test_limit_above_max_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_pagination(1, settings.PAGINATION_MAX_LIMIT + 1)
        assert exc_info.value.details[0]["field"] == "limit"

    def test_max_limit_allowed(self):
        assert validate_pagination(3, settings.PAGINATION_MAX_LIMIT) == (3, settings.PAGINATION_MAX_LIMIT)


# =============================================================================
# Error Handlers
# =============================================================================

class Payload(BaseModel):
    name: str
    count: int


@pytest.fixture
def error_client():
    app = FastAPI()
    register_exception_handlers(app)

    errors = {
        "validation": ValidationError("Bad input", details={"field": "x"}),
        "unauthorized": UnauthorizedError(),
        "forbidden": ForbiddenError("Insufficient permissions"),
        "not-found": NotFoundError("Property not found"),
        "conflict": ConflictError("Duplicate"),
        "rate-limited": RateLimitExceededError(reset_time=1_700_000_030, now=1_700_000_000),
        "verify": InvalidVerificationActionError("PENDING"),
    }

    @app.get("/raise/{kind}")
    def raise_error(kind: str):
        raise errors[kind]

    @app.get("/boom")
    def boom():
        raise RuntimeError("secret internals")

    @app.get("/integrity")
    def integrity():
        raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

    @app.post("/payload")
    def payload(body: Payload):
        return body

    return TestClient(app, raise_server_exceptions=False)


class TestErrorHandlers:

    @pytest.mark.parametrize("kind,status,code", [
        ("validation", 400, "VALIDATION_ERROR"),
        ("unauthorized", 401, "UNAUTHORIZED"),
        ("forbidden", 403, "FORBIDDEN"),
        ("not-found", 404, "NOT_FOUND"),
        ("conflict", 409, "CONFLICT"),
        ("rate-limited", 429, "RATE_LIMIT_EXCEEDED"),
    ])
    def test_domain_errors_map_to_status(self, error_client, kind, status, code):
        response = error_client.get(f"/raise/{kind}")
        body = response.json()

        assert response.status_code == status
        assert body["success"] is False
        assert body["code"] == code
        assert "timestamp" in body

    def test_rate_limit_headers(self, error_client):
        response = error_client.get("/raise/rate-limited")

        assert response.headers["Retry-After"] == "30"
        assert "X-RateLimit-Reset" in response.headers
        assert response.json()["details"]["retry_after"] == 30

    def test_unauthorized_has_www_authenticate(self, error_client):
        response = error_client.get("/raise/unauthorized")
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_unexpected_error_is_generic_500(self, error_client):
        response = error_client.get("/boom")
        body = response.json()

        assert response.status_code == 500
        assert body["error"] == "An unexpected error occurred"
        assert "secret" not in response.text

    def test_integrity_error_is_409(self, error_client):
        response = error_client.get("/integrity")
        assert response.status_code == 409
        assert response.json()["code"] == "DUPLICATE_ENTRY"

    def test_request_validation_is_400_with_fields(self, error_client):
        response = error_client.post("/payload", json={"name": "x", "count": "many"})
        body = response.json()

        assert response.status_code == 400
        assert body["code"] == "VALIDATION_ERROR"
        assert body["details"][0]["field"] == "count"

    def test_verification_errors_render_html(self, error_client):
        response = error_client.get("/raise/verify")

        assert response.status_code == 400
        assert response.headers["content-type"].startswith("text/html")
        assert "Invalid Action" in response.text
