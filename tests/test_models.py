"""Tests for domain models and their time-window helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from place_ranker.models import (
    AccessibilityProfile,
    BoostPolicy,
    BusinessCategory,
    SeedBundle,
    SponsorshipStatus,
    SponsorshipTier,
    VerificationTier,
    ensure_utc,
)

from factories import NOW, make_sponsorship, make_venue, make_verification


def test_business_category_parse_is_lenient() -> None:
    assert BusinessCategory.parse("restaurant") is BusinessCategory.RESTAURANT
    assert BusinessCategory.parse("ndis-provider") is BusinessCategory.NDIS_PROVIDER
    assert BusinessCategory.parse(" Accessible_Venue ") is BusinessCategory.ACCESSIBLE_VENUE
    assert BusinessCategory.parse("spaceport") is None
    assert BusinessCategory.parse("") is None
    assert BusinessCategory.parse(None) is None


def test_tiers_are_ordered_and_labelled() -> None:
    assert VerificationTier.BRONZE.rank < VerificationTier.SILVER.rank < VerificationTier.GOLD.rank
    assert (
        SponsorshipTier.COMMUNITY_SUPPORTER.rank
        < SponsorshipTier.FEATURED_ACCESSIBLE_VENUE.rank
        < SponsorshipTier.ACCESSIBILITY_LEADER.rank
    )
    assert SponsorshipTier.ACCESSIBILITY_LEADER.label == "Accessibility Leader"
    assert SponsorshipTier.FEATURED_ACCESSIBLE_VENUE.label == "Featured Accessible Venue"
    assert SponsorshipTier.COMMUNITY_SUPPORTER.label == "Community Supporter"


def test_ensure_utc_normalizes_naive_and_offset_datetimes() -> None:
    naive = datetime(2024, 1, 1, 9, 30)
    assert ensure_utc(naive) == datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc)

    sydney = timezone(timedelta(hours=10))
    aware = datetime(2024, 1, 1, 10, 0, tzinfo=sydney)
    assert ensure_utc(aware) == datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)
    assert ensure_utc(None) is None


def test_accessibility_profile_keeps_unknown_keys() -> None:
    profile = AccessibilityProfile.model_validate({"wheelchair": True, "ramp_gradient": "1:14"})

    assert profile.has_wheelchair_access() is True
    assert profile.model_dump(exclude_none=True)["ramp_gradient"] == "1:14"
    assert AccessibilityProfile().is_empty() is True
    assert AccessibilityProfile.model_validate({"braille_menu": True}).is_empty() is False


def test_verification_validity_window() -> None:
    open_ended = make_verification(expires_at=None)
    expiring = make_verification(expires_at=NOW + timedelta(days=1))
    expired = make_verification(expires_at=NOW)

    assert open_ended.is_valid(NOW) is True
    assert expiring.is_valid(NOW) is True
    assert expired.is_valid(NOW) is False


def test_sponsorship_live_window_and_status() -> None:
    live = make_sponsorship()
    assert live.is_live(NOW) is True

    not_started = make_sponsorship(start_at=NOW + timedelta(hours=1))
    assert not_started.is_live(NOW) is False

    ends_now = make_sponsorship(end_at=NOW)
    assert ends_now.is_live(NOW) is True

    ended = make_sponsorship(end_at=NOW - timedelta(seconds=1))
    assert ended.is_live(NOW) is False

    for status in (SponsorshipStatus.PENDING, SponsorshipStatus.SUSPENDED, SponsorshipStatus.ENDED):
        assert make_sponsorship(status=status).is_live(NOW) is False


def test_deboost_blocks_ranking_but_not_liveness() -> None:
    deboosted = make_sponsorship(
        boost_policy=BoostPolicy(deboost_until=NOW + timedelta(days=2)),
    )
    assert deboosted.is_live(NOW) is True
    assert deboosted.is_active_for_ranking(NOW) is False
    assert deboosted.is_active_for_ranking(NOW + timedelta(days=3)) is True


def test_seed_bundle_parses_json_payload() -> None:
    bundle = SeedBundle.model_validate(
        {
            "venues": [make_venue("v1").model_dump(mode="json")],
            "verifications": [make_verification("v1").model_dump(mode="json")],
            "sponsorships": [make_sponsorship("v1").model_dump(mode="json")],
        }
    )

    assert [venue.id for venue in bundle.venues] == ["v1"]
    assert bundle.verifications[0].verified_at == NOW
    assert bundle.sponsorships[0].tier is SponsorshipTier.ACCESSIBILITY_LEADER
