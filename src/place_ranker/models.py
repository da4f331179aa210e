"""
Domain records for venues, verifications, sponsorships and ranked output.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


WHEELCHAIR_AMENITY = "wheelchair_accessible"


def ensure_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC and normalize aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class BusinessCategory(str, Enum):
    RESTAURANT = "RESTAURANT"
    RETAIL = "RETAIL"
    HEALTHCARE = "HEALTHCARE"
    TRANSPORT = "TRANSPORT"
    ACCOMMODATION = "ACCOMMODATION"
    ENTERTAINMENT = "ENTERTAINMENT"
    SERVICES = "SERVICES"
    ACCESSIBLE_VENUE = "ACCESSIBLE_VENUE"
    NDIS_PROVIDER = "NDIS_PROVIDER"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, raw: str | None) -> BusinessCategory | None:
        """Lenient lookup: case-insensitive, `-` accepted for `_`, unknown -> None."""
        if raw is None or not raw.strip():
            return None
        normalized = raw.strip().upper().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            return None


class VenueStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class VerificationTier(str, Enum):
    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"

    @property
    def rank(self) -> int:
        return _VERIFICATION_RANK[self]


_VERIFICATION_RANK: dict[VerificationTier, int] = {
    VerificationTier.BRONZE: 1,
    VerificationTier.SILVER: 2,
    VerificationTier.GOLD: 3,
}


class SponsorshipTier(str, Enum):
    COMMUNITY_SUPPORTER = "COMMUNITY_SUPPORTER"
    FEATURED_ACCESSIBLE_VENUE = "FEATURED_ACCESSIBLE_VENUE"
    ACCESSIBILITY_LEADER = "ACCESSIBILITY_LEADER"

    @property
    def rank(self) -> int:
        return _SPONSORSHIP_RANK[self]

    @property
    def label(self) -> str:
        return _SPONSORSHIP_LABELS[self]


_SPONSORSHIP_RANK: dict[SponsorshipTier, int] = {
    SponsorshipTier.COMMUNITY_SUPPORTER: 1,
    SponsorshipTier.FEATURED_ACCESSIBLE_VENUE: 2,
    SponsorshipTier.ACCESSIBILITY_LEADER: 3,
}

_SPONSORSHIP_LABELS: dict[SponsorshipTier, str] = {
    SponsorshipTier.COMMUNITY_SUPPORTER: "Community Supporter",
    SponsorshipTier.FEATURED_ACCESSIBLE_VENUE: "Featured Accessible Venue",
    SponsorshipTier.ACCESSIBILITY_LEADER: "Accessibility Leader",
}


class SponsorshipStatus(str, Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    ENDED = "ENDED"


class EnforcementAction(str, Enum):
    WARN = "warn"
    DEBOOST = "deboost"
    SUSPEND = "suspend"
    REINSTATE = "reinstate"


class AccessibilityProfile(BaseModel):
    """Structured accessibility descriptor; unknown keys are kept as extras."""

    model_config = ConfigDict(extra="allow")

    wheelchair: bool | None = None
    step_free_entry: bool | None = None
    accessible_toilet: bool | None = None
    hearing_loop: bool | None = None
    notes: str | None = None

    def is_empty(self) -> bool:
        # Extras are included in the dump.
        return not self.model_dump(exclude_none=True)

    def has_wheelchair_access(self) -> bool:
        return bool(self.wheelchair)


class BoostPolicy(BaseModel):
    """Sponsorship boost policy document."""

    model_config = ConfigDict(extra="allow")

    deboost_until: datetime | None = None

    @field_validator("deboost_until")
    @classmethod
    def _utc_deboost_until(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)

    def is_deboosted(self, now: datetime) -> bool:
        return self.deboost_until is not None and self.deboost_until > now


class Venue(BaseModel):
    """A place of business shown on the map."""

    id: str
    name: str
    description: str | None = None
    category: BusinessCategory = BusinessCategory.OTHER
    latitude: float
    longitude: float
    address: str = ""
    city: str = ""
    state: str = ""
    postcode: str = ""
    accessibility: AccessibilityProfile | None = None
    amenities: list[str] = Field(default_factory=list)
    accepts_ndis: bool = False
    verified: bool = False
    verified_at: datetime | None = None
    accessibility_confidence: float | None = None
    community_score: float | None = None
    logo_url: str | None = None
    status: VenueStatus = VenueStatus.ACTIVE

    @field_validator("verified_at")
    @classmethod
    def _utc_verified_at(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)

    def has_wheelchair_amenity(self) -> bool:
        return WHEELCHAIR_AMENITY in self.amenities


class VerificationRecord(BaseModel):
    """An accessibility attestation for a venue."""

    id: str
    venue_id: str
    tier: VerificationTier
    verified_at: datetime
    expires_at: datetime | None = None
    method: str | None = None
    evidence_refs: list[str] | None = None

    @field_validator("verified_at", "expires_at")
    @classmethod
    def _utc_timestamps(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)

    def is_valid(self, now: datetime) -> bool:
        return self.expires_at is None or self.expires_at > now


class Sponsorship(BaseModel):
    """A paid promotion arrangement for a venue."""

    id: str
    venue_id: str
    sponsor_id: str | None = None
    tier: SponsorshipTier
    status: SponsorshipStatus = SponsorshipStatus.PENDING
    start_at: datetime
    end_at: datetime | None = None
    boost_policy: BoostPolicy = Field(default_factory=BoostPolicy)
    created_at: datetime | None = None

    @field_validator("start_at", "end_at", "created_at")
    @classmethod
    def _utc_timestamps(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)

    def is_live(self, now: datetime) -> bool:
        """Active status and `now` inside the validity window."""
        if self.status != SponsorshipStatus.ACTIVE:
            return False
        if self.start_at > now:
            return False
        return self.end_at is None or self.end_at >= now

    def is_active_for_ranking(self, now: datetime) -> bool:
        return self.is_live(now) and not self.boost_policy.is_deboosted(now)


class VenueListing(BaseModel):
    """A venue with its verification and sponsorship records eagerly loaded."""

    venue: Venue
    verifications: list[VerificationRecord] = Field(default_factory=list)
    sponsorships: list[Sponsorship] = Field(default_factory=list)


class RankedPlace(BaseModel):
    """Per-request projection of a venue with ranking annotations."""

    id: str
    name: str
    description: str | None
    category: BusinessCategory
    latitude: float
    longitude: float
    address: str
    city: str
    state: str
    postcode: str
    accessibility: AccessibilityProfile | None
    amenities: list[str]
    accepts_ndis: bool
    verified: bool
    logo_url: str | None
    quality_score: int
    is_sponsored: bool
    verification_tier: VerificationTier | None
    sponsorship_tier: SponsorshipTier | None
    disclosure_text: str | None
    evidence_refs: list[str] | None
    verified_at: datetime | None


class PlaceDetail(BaseModel):
    """Venue detail with verification and sponsorship disclosure."""

    id: str
    name: str
    description: str | None
    category: BusinessCategory
    latitude: float
    longitude: float
    address: str
    city: str
    state: str
    postcode: str
    accessibility: AccessibilityProfile | None
    amenities: list[str]
    accepts_ndis: bool
    verified: bool
    logo_url: str | None
    status: VenueStatus
    verification_tier: VerificationTier | None
    verification_method: str | None
    verified_at: datetime | None
    evidence_refs: list[str] | None
    sponsorship_tier: SponsorshipTier | None
    disclosure_text: str | None


class SponsorshipAuditEntry(BaseModel):
    """An enforcement action recorded against a sponsorship."""

    id: str
    sponsorship_id: str
    action: EnforcementAction
    reason: str
    actor: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def _utc_created_at(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)


class SeedBundle(BaseModel):
    """Bulk data file accepted by `place-ranker load`."""

    venues: list[Venue] = Field(default_factory=list)
    verifications: list[VerificationRecord] = Field(default_factory=list)
    sponsorships: list[Sponsorship] = Field(default_factory=list)
