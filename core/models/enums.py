# =============================================================================
# core/models/enums.py - Domain Enumerations
# =============================================================================
# String enums shared by the database tables and the API schemas.
# Values are the uppercase strings stored in the database and sent on the wire.
# =============================================================================

from enum import Enum


class UserRole(str, Enum):
    """
    Agent roles, from widest to narrowest capability.

    SUPER_ADMIN ⊇ PLATFORM_AGENT ⊇ AGENT for read scope.
    """
    SUPER_ADMIN = "SUPER_ADMIN"
    PLATFORM_AGENT = "PLATFORM_AGENT"
    AGENT = "AGENT"


class PropertyStatus(str, Enum):
    """
    Listing lifecycle states.

    Flow: AVAILABLE -> PENDING -> SOLD | RENTED -> (relisted) AVAILABLE
    """
    AVAILABLE = "AVAILABLE"
    PENDING = "PENDING"
    SOLD = "SOLD"
    RENTED = "RENTED"


class ListingType(str, Enum):
    SALE = "SALE"
    RENT = "RENT"
    BOTH = "BOTH"


class PropertyCategory(str, Enum):
    HOUSE = "HOUSE"
    CONDO = "CONDO"
    INVESTMENT = "INVESTMENT"
    LAND = "LAND"


class VerificationSource(str, Enum):
    """Who most recently confirmed a listing's status."""
    OWNER = "OWNER"
    SYSTEM = "SYSTEM"
    AGENT = "AGENT"


class PriceChangeType(str, Enum):
    INITIAL = "INITIAL"
    INCREASE = "INCREASE"
    DECREASE = "DECREASE"
    CORRECTION = "CORRECTION"


class EnquiryStatus(str, Enum):
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    CONVERTED = "CONVERTED"
    CLOSED = "CLOSED"


class EnquiryChannel(str, Enum):
    PHONE = "PHONE"
    EMAIL = "EMAIL"
    LINE = "LINE"
    WHATSAPP = "WHATSAPP"
    WEBSITE_FORM = "WEBSITE_FORM"
    AUTOMATION = "AUTOMATION"


class DealType(str, Enum):
    SALE = "SALE"
    RENT = "RENT"


class SubmissionStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class PostCategory(str, Enum):
    NEWS = "NEWS"
    GUIDE = "GUIDE"
    MARKET = "MARKET"
    LIFESTYLE = "LIFESTYLE"


class Freshness(str, Enum):
    """Derived listing classification; never stored."""
    FRESH = "FRESH"
    NEEDS_CHECK = "NEEDS_CHECK"
