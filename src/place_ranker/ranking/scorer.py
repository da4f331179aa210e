"""
Quality score: a deterministic 0-100 composite of accessibility, verification,
community and freshness signals.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from ..models import Venue, VerificationRecord, VerificationTier


WEIGHT_ACCESSIBILITY = 0.30
WEIGHT_VERIFICATION = 0.25
WEIGHT_COMMUNITY = 0.20
WEIGHT_FRESHNESS = 0.15
WEIGHT_CATEGORY_RELEVANCE = 0.10

ACCESSIBILITY_PROFILE_DEFAULT = 0.6
ACCESSIBILITY_UNKNOWN_DEFAULT = 0.3
WHEELCHAIR_BONUS = 0.2
GENERIC_VERIFIED_VALUE = 0.4
COMMUNITY_DEFAULT = 0.5
FRESHNESS_DEFAULT = 0.2
FRESHNESS_HORIZON_DAYS = 365.0

VERIFICATION_TIER_VALUES: dict[VerificationTier, float] = {
    VerificationTier.GOLD: 1.0,
    VerificationTier.SILVER: 0.8,
    VerificationTier.BRONZE: 0.6,
}


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class QualitySignals:
    """Per-signal contributions on the 0-100 scale."""

    accessibility: float
    verification: float
    community: float
    freshness: float
    category_relevance: float

    @property
    def total(self) -> float:
        return (
            self.accessibility
            + self.verification
            + self.community
            + self.freshness
            + self.category_relevance
        )

    @property
    def score(self) -> int:
        # Round half up so x.5 never flips with banker's rounding.
        return int(math.floor(_clamp(self.total, 0.0, 100.0) + 0.5))


def accessibility_value(venue: Venue) -> float:
    if venue.accessibility_confidence is not None:
        base = _clamp(float(venue.accessibility_confidence))
    elif venue.accessibility is not None and not venue.accessibility.is_empty():
        base = ACCESSIBILITY_PROFILE_DEFAULT
    else:
        base = ACCESSIBILITY_UNKNOWN_DEFAULT
    if venue.has_wheelchair_amenity():
        return min(1.0, base + WHEELCHAIR_BONUS)
    return base


def verification_value(venue: Venue, verification: VerificationRecord | None) -> float:
    if verification is not None:
        return VERIFICATION_TIER_VALUES[verification.tier]
    if venue.verified:
        return GENERIC_VERIFIED_VALUE
    return 0.0


def community_value(venue: Venue) -> float:
    if venue.community_score is None:
        return COMMUNITY_DEFAULT
    return _clamp(float(venue.community_score))


def freshness_value(verified_at: datetime | None, now: datetime) -> float:
    """Linear decay from 1 (today) to 0 (one year old)."""
    if verified_at is None:
        return FRESHNESS_DEFAULT
    days_since = (now - verified_at).total_seconds() / 86400.0
    return _clamp(1.0 - days_since / FRESHNESS_HORIZON_DAYS)


def quality_signals(
    venue: Venue,
    verification: VerificationRecord | None,
    *,
    now: datetime,
) -> QualitySignals:
    """Compute weighted signal contributions for a venue."""
    verified_at = verification.verified_at if verification is not None else venue.verified_at
    return QualitySignals(
        accessibility=accessibility_value(venue) * WEIGHT_ACCESSIBILITY * 100,
        verification=verification_value(venue, verification) * WEIGHT_VERIFICATION * 100,
        community=community_value(venue) * WEIGHT_COMMUNITY * 100,
        freshness=freshness_value(verified_at, now) * WEIGHT_FRESHNESS * 100,
        category_relevance=WEIGHT_CATEGORY_RELEVANCE * 100,
    )


def quality_score(
    venue: Venue,
    verification: VerificationRecord | None,
    *,
    now: datetime,
) -> int:
    """Return the integer quality score (0-100) for a venue."""
    return quality_signals(venue, verification, now=now).score
