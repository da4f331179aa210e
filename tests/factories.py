"""Builders for venues, verifications and sponsorships used across tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from place_ranker.geo import BoundingBox
from place_ranker.models import (
    BusinessCategory,
    Sponsorship,
    SponsorshipStatus,
    SponsorshipTier,
    Venue,
    VenueListing,
    VenueStatus,
    VerificationRecord,
    VerificationTier,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

SYDNEY_LAT = -33.8688
SYDNEY_LNG = 151.2093


def make_venue(venue_id: str = "venue-1", **overrides: Any) -> Venue:
    data: dict[str, Any] = {
        "id": venue_id,
        "name": f"Venue {venue_id}",
        "category": BusinessCategory.RESTAURANT,
        "latitude": SYDNEY_LAT,
        "longitude": SYDNEY_LNG,
        "address": "1 George St",
        "city": "Sydney",
        "state": "NSW",
        "postcode": "2000",
    }
    data.update(overrides)
    return Venue(**data)


def make_verification(
    venue_id: str = "venue-1",
    tier: VerificationTier = VerificationTier.GOLD,
    *,
    record_id: str | None = None,
    verified_at: datetime | None = None,
    expires_at: datetime | None = None,
    **overrides: Any,
) -> VerificationRecord:
    return VerificationRecord(
        id=record_id or f"ver-{venue_id}-{tier.value.lower()}",
        venue_id=venue_id,
        tier=tier,
        verified_at=verified_at or NOW,
        expires_at=expires_at,
        **overrides,
    )


def make_sponsorship(
    venue_id: str = "venue-1",
    tier: SponsorshipTier = SponsorshipTier.ACCESSIBILITY_LEADER,
    *,
    sponsorship_id: str | None = None,
    status: SponsorshipStatus = SponsorshipStatus.ACTIVE,
    start_at: datetime | None = None,
    end_at: datetime | None = None,
    **overrides: Any,
) -> Sponsorship:
    return Sponsorship(
        id=sponsorship_id or f"sp-{venue_id}",
        venue_id=venue_id,
        tier=tier,
        status=status,
        start_at=start_at or NOW - timedelta(days=30),
        end_at=end_at if end_at is not None else NOW + timedelta(days=30),
        **overrides,
    )


def make_listing(
    venue: Venue,
    verifications: list[VerificationRecord] | None = None,
    sponsorships: list[Sponsorship] | None = None,
) -> VenueListing:
    return VenueListing(
        venue=venue,
        verifications=verifications or [],
        sponsorships=sponsorships or [],
    )


def leader_listing(venue_id: str = "venue-1", **venue_overrides: Any) -> VenueListing:
    """A high-quality Gold-verified venue with a live Accessibility Leader sponsorship."""
    venue_data: dict[str, Any] = {
        "accessibility_confidence": 0.9,
        "amenities": ["wheelchair_accessible"],
        "community_score": 0.8,
    }
    venue_data.update(venue_overrides)
    return make_listing(
        make_venue(venue_id, **venue_data),
        [make_verification(venue_id, VerificationTier.GOLD)],
        [make_sponsorship(venue_id, SponsorshipTier.ACCESSIBILITY_LEADER)],
    )


class FixedClock:
    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeVenueRepository:
    """In-memory repository that mimics the DuckDB bounds/category/limit query."""

    def __init__(self, listings: list[VenueListing]) -> None:
        self.listings = listings
        self.calls: list[dict[str, Any]] = []

    def find_active_venues(
        self,
        *,
        bounds: BoundingBox,
        category: BusinessCategory | None,
        limit: int,
        now: datetime,
    ) -> list[VenueListing]:
        self.calls.append({"bounds": bounds, "category": category, "limit": limit, "now": now})
        matches = [
            listing
            for listing in sorted(self.listings, key=lambda item: item.venue.id)
            if listing.venue.status == VenueStatus.ACTIVE
            and bounds.contains(listing.venue.latitude, listing.venue.longitude)
            and (category is None or listing.venue.category == category)
        ]
        return matches[:limit]

    def get_venue(self, venue_id: str, *, now: datetime) -> VenueListing | None:
        for listing in self.listings:
            if listing.venue.id == venue_id:
                return listing
        return None


class FailingVenueRepository:
    """Repository whose reads fail the way a broken DuckDB file does."""

    def __init__(self, error: Exception) -> None:
        self.error = error

    def find_active_venues(self, **kwargs: Any) -> list[VenueListing]:
        raise self.error

    def get_venue(self, venue_id: str, *, now: datetime) -> VenueListing | None:
        raise self.error
