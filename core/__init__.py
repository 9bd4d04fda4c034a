# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the listing platform's business logic:
# - models/: Pydantic schemas for data validation
# - tables.py: SQLAlchemy tables
# - database.py: Engine, sessions and the atomic() transaction helper
# - lifecycle.py: Status transitions, freshness and price change rules
# - permissions.py: Role capabilities and ownership checks
# - services/: Operations used by the API routers
#
# Services raise app.exceptions errors and never build HTTP responses.
# =============================================================================
