# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the EstateAscent API:
# - test_rate_limiter.py, test_permissions.py, test_lifecycle.py: Unit tests
# - test_responses.py: Envelopes and error handlers
# - test_*_api.py: Integration tests for API endpoints (SQLite + TestClient)
# - test_geocoding.py, test_storage.py: External clients with mocked transports
#
# Run tests with: pytest
# =============================================================================
