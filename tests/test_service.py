"""Tests for the request-level ranking pipeline and place detail."""

from __future__ import annotations

from datetime import timedelta

import duckdb
import pytest

from place_ranker.config import RankingConfig
from place_ranker.geo import BoundingBox, CenterRadius, ScopeValidationError
from place_ranker.models import (
    AccessibilityProfile,
    BusinessCategory,
    SponsorshipTier,
    VenueStatus,
    VerificationTier,
)
from place_ranker.ranking import EligibilityFilter, MapPlacesQuery, RankingService

from factories import (
    NOW,
    SYDNEY_LAT,
    SYDNEY_LNG,
    FailingVenueRepository,
    FakeVenueRepository,
    FixedClock,
    leader_listing,
    make_listing,
    make_sponsorship,
    make_venue,
    make_verification,
)

CENTER = CenterRadius(latitude=SYDNEY_LAT, longitude=SYDNEY_LNG)


def _service(listings, config: RankingConfig | None = None) -> RankingService:
    return RankingService(FakeVenueRepository(listings), config, clock=FixedClock())


def test_get_places_runs_full_pipeline() -> None:
    listings = [
        leader_listing("venue-1"),
        make_listing(make_venue("venue-2")),
        make_listing(make_venue("far-away", latitude=-37.81, longitude=144.96)),
    ]

    places = _service(listings).get_places(MapPlacesQuery(center=CENTER))

    assert [(place.id, place.is_sponsored) for place in places] == [
        ("venue-1", False),
        ("venue-2", False),
        ("venue-1", True),
    ]


def test_query_overfetches_twice_the_limit() -> None:
    repository = FakeVenueRepository([make_listing(make_venue(f"v{index}")) for index in range(8)])
    service = RankingService(repository, clock=FixedClock())

    places = service.get_places(MapPlacesQuery(center=CENTER, limit=3))

    assert repository.calls[0]["limit"] == 6
    assert repository.calls[0]["now"] == NOW
    assert len(places) == 3


def test_default_limit_and_radius_come_from_config() -> None:
    repository = FakeVenueRepository([])
    config = RankingConfig(default_limit=10, default_radius_meters=1000.0)
    RankingService(repository, config, clock=FixedClock()).get_places(MapPlacesQuery(center=CENTER))

    call = repository.calls[0]
    assert call["limit"] == 20
    bounds: BoundingBox = call["bounds"]
    assert bounds.max_lat - SYDNEY_LAT == pytest.approx(1000.0 / 111_000.0)


def test_accessibility_filters_apply_before_truncation() -> None:
    listings = [make_listing(make_venue(f"a{index}")) for index in range(3)]
    listings.append(make_listing(make_venue("z-ndis", accepts_ndis=True)))
    listings.append(
        make_listing(
            make_venue("z-wheelchair", accessibility=AccessibilityProfile(wheelchair=True))
        )
    )
    query = MapPlacesQuery(center=CENTER, accessibility_filters=("ndis",), limit=3)

    places = _service(listings).get_places(query)

    assert [place.id for place in places] == ["z-ndis"]


def test_category_and_inactive_venues_are_excluded() -> None:
    listings = [
        make_listing(make_venue("food", category=BusinessCategory.RESTAURANT)),
        make_listing(make_venue("clinic", category=BusinessCategory.HEALTHCARE)),
        make_listing(make_venue("closed", category=BusinessCategory.HEALTHCARE, status=VenueStatus.INACTIVE)),
    ]
    query = MapPlacesQuery(center=CENTER, category=BusinessCategory.HEALTHCARE)

    assert [place.id for place in _service(listings).get_places(query)] == ["clinic"]


def test_hide_sponsored_passes_through() -> None:
    listings = [leader_listing("venue-1"), make_listing(make_venue("venue-2"))]

    places = _service(listings).get_places(MapPlacesQuery(center=CENTER, hide_sponsored=True))

    assert [place.id for place in places] == ["venue-2"]


@pytest.mark.parametrize("limit", [0, 101, -5])
def test_invalid_limit_is_rejected(limit: int) -> None:
    with pytest.raises(ScopeValidationError):
        _service([]).get_places(MapPlacesQuery(center=CENTER, limit=limit))


def test_missing_scope_is_rejected() -> None:
    with pytest.raises(ScopeValidationError):
        _service([]).get_places(MapPlacesQuery())


def test_resolve_limit_bounds() -> None:
    eligibility = EligibilityFilter(FakeVenueRepository([]), RankingConfig())

    assert eligibility.resolve_limit(None) == 50
    assert eligibility.resolve_limit(1) == 1
    assert eligibility.resolve_limit(100) == 100


def test_place_detail_includes_verification_and_disclosure() -> None:
    listing = leader_listing("venue-1")
    listing = listing.model_copy(
        update={
            "verifications": [
                make_verification(
                    "venue-1",
                    VerificationTier.SILVER,
                    record_id="ver-new",
                    verified_at=NOW - timedelta(days=1),
                    method="onsite_audit",
                    evidence_refs=["https://example.org/audit.pdf"],
                ),
                make_verification(
                    "venue-1",
                    VerificationTier.GOLD,
                    record_id="ver-old",
                    verified_at=NOW - timedelta(days=90),
                ),
            ],
            "sponsorships": [
                make_sponsorship(
                    "venue-1",
                    SponsorshipTier.COMMUNITY_SUPPORTER,
                    sponsorship_id="sp-old",
                    start_at=NOW - timedelta(days=20),
                ),
                make_sponsorship(
                    "venue-1",
                    SponsorshipTier.FEATURED_ACCESSIBLE_VENUE,
                    sponsorship_id="sp-new",
                    start_at=NOW - timedelta(days=2),
                ),
            ],
        }
    )

    detail = _service([listing]).get_place_detail("venue-1")

    assert detail is not None
    assert detail.verification_tier is VerificationTier.SILVER
    assert detail.verification_method == "onsite_audit"
    assert detail.evidence_refs == ["https://example.org/audit.pdf"]
    assert detail.sponsorship_tier is SponsorshipTier.FEATURED_ACCESSIBLE_VENUE
    assert detail.disclosure_text.startswith("This venue is a sponsored Featured Accessible Venue.")
    assert "never overrides your filters" in detail.disclosure_text


def test_place_detail_without_sponsorship_or_unknown_id() -> None:
    service = _service([make_listing(make_venue("plain"))])

    detail = service.get_place_detail("plain")
    assert detail is not None
    assert detail.sponsorship_tier is None
    assert detail.disclosure_text is None
    assert detail.verification_tier is None

    assert service.get_place_detail("missing") is None


def test_repository_failure_propagates_unchanged() -> None:
    error = duckdb.IOException("database file is corrupt")
    service = RankingService(FailingVenueRepository(error), clock=FixedClock())

    with pytest.raises(duckdb.IOException) as raised:
        service.get_places(MapPlacesQuery(center=CENTER))
    assert raised.value is error

    with pytest.raises(duckdb.IOException):
        service.get_place_detail("venue-1")
