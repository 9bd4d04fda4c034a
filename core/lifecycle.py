# =============================================================================
# core/lifecycle.py - Property Lifecycle & Verification Rules
# =============================================================================
# Pure rules for a listing's status and freshness:
# - which status transitions each trigger may perform
# - how a transition stamps last_verified_at / verification_source
# - the derived "freshness" classification
# - how a price edit is classified for the price history
#
# Nothing here touches the database; PropertyService applies the results
# inside a transaction.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum

from app.exceptions import ValidationError
from core.models.enums import (
    Freshness,
    PriceChangeType,
    PropertyStatus,
    VerificationSource,
)
from lib.utils import ensure_utc

DEFAULT_FRESHNESS_WINDOW = timedelta(days=14)


class VerificationTrigger(str, Enum):
    """What caused a status confirmation."""
    OWNER_LINK = "OWNER_LINK"          # owner clicked the e-mailed verification link
    AGENT_ACTION = "AGENT_ACTION"      # an agent changed or re-confirmed the status
    DEAL_STAGE = "DEAL_STAGE"          # a deal on the listing moved stage


TRIGGER_SOURCE: dict[VerificationTrigger, VerificationSource] = {
    VerificationTrigger.OWNER_LINK: VerificationSource.OWNER,
    VerificationTrigger.AGENT_ACTION: VerificationSource.AGENT,
    VerificationTrigger.DEAL_STAGE: VerificationSource.SYSTEM,
}

# Agent-driven transitions. Same-state entries are re-verifications.
AGENT_TRANSITIONS: dict[PropertyStatus, frozenset[PropertyStatus]] = {
    PropertyStatus.AVAILABLE: frozenset(PropertyStatus),
    PropertyStatus.PENDING: frozenset(PropertyStatus),
    PropertyStatus.SOLD: frozenset({PropertyStatus.AVAILABLE, PropertyStatus.SOLD}),
    PropertyStatus.RENTED: frozenset({PropertyStatus.AVAILABLE, PropertyStatus.RENTED}),
}

# The owner link may only confirm availability or close the listing.
OWNER_ACTIONS: frozenset[PropertyStatus] = frozenset({PropertyStatus.AVAILABLE, PropertyStatus.SOLD})


@dataclass(frozen=True)
class StatusChange:
    """Column values a transition writes."""
    status: PropertyStatus
    last_verified_at: datetime
    verification_source: VerificationSource


def can_transition(
    current: PropertyStatus,
    target: PropertyStatus,
    trigger: VerificationTrigger,
) -> bool:
    if trigger is VerificationTrigger.OWNER_LINK:
        return target in OWNER_ACTIONS
    if trigger is VerificationTrigger.DEAL_STAGE:
        return target == current
    return target in AGENT_TRANSITIONS[current]


def advance_verified_at(previous: datetime | None, now: datetime) -> datetime:
    """last_verified_at only moves forward."""
    now = ensure_utc(now)
    previous = ensure_utc(previous)
    if previous is not None and previous > now:
        return previous
    return now


def plan_transition(
    current: PropertyStatus,
    target: PropertyStatus | str,
    trigger: VerificationTrigger,
    previous_verified_at: datetime | None,
    now: datetime,
) -> StatusChange:
    """
    Validate a status change and compute the columns it writes.

    Raises:
        ValidationError: If the trigger may not move the listing to `target`
    """
    try:
        target = PropertyStatus(target)
    except ValueError:
        raise ValidationError(f"Unknown status: {target}")

    current = PropertyStatus(current)
    if not can_transition(current, target, trigger):
        raise ValidationError(
            f"Invalid status transition: {current.value} -> {target.value}",
            details={"from": current.value, "to": target.value, "trigger": trigger.value},
        )

    return StatusChange(
        status=target,
        last_verified_at=advance_verified_at(previous_verified_at, now),
        verification_source=TRIGGER_SOURCE[trigger],
    )


# =============================================================================
# Freshness
# =============================================================================

def freshness_cutoff(now: datetime, window: timedelta = DEFAULT_FRESHNESS_WINDOW) -> datetime:
    """Oldest last_verified_at that still counts as fresh."""
    return ensure_utc(now) - window


def classify_freshness(
    last_verified_at: datetime | None,
    now: datetime,
    window: timedelta = DEFAULT_FRESHNESS_WINDOW,
) -> Freshness:
    """FRESH if verified within `window` of `now`, otherwise NEEDS_CHECK."""
    if last_verified_at is None:
        return Freshness.NEEDS_CHECK
    if ensure_utc(last_verified_at) >= freshness_cutoff(now, window):
        return Freshness.FRESH
    return Freshness.NEEDS_CHECK


# =============================================================================
# Price Changes
# =============================================================================

def _as_decimal(value) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value))


def price_changed(old_price, new_price, old_rent, new_rent) -> bool:
    return _as_decimal(old_price) != _as_decimal(new_price) or _as_decimal(old_rent) != _as_decimal(new_rent)


def classify_price_change(old_price, new_price, old_rent, new_rent) -> PriceChangeType:
    """
    Direction of a price edit.

    The sale price decides when both old and new are set; otherwise the rent
    price; a value appearing or disappearing is a CORRECTION.
    """
    old_price, new_price = _as_decimal(old_price), _as_decimal(new_price)
    old_rent, new_rent = _as_decimal(old_rent), _as_decimal(new_rent)

    if old_price is not None and new_price is not None and old_price != new_price:
        return PriceChangeType.INCREASE if new_price > old_price else PriceChangeType.DECREASE
    if old_rent is not None and new_rent is not None and old_rent != new_rent:
        return PriceChangeType.INCREASE if new_rent > old_rent else PriceChangeType.DECREASE
    return PriceChangeType.CORRECTION
