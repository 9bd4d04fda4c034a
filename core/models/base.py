# =============================================================================
# core/models/base.py - Shared Schema Base
# =============================================================================
# Every API schema serializes to camelCase on the wire. Requests accept
# either camelCase or snake_case field names.
# =============================================================================

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Loose e-mail shape check; delivery is the mail provider's problem
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# Same pattern the agent dashboard uses client-side
PHONE_PATTERN = r"^[+]?[(]?[0-9]{1,4}[)]?[-\s.]?[(]?[0-9]{1,4}[)]?[-\s.]?[0-9]{1,9}$"


class APIModel(BaseModel):
    """Base for request and response schemas."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
