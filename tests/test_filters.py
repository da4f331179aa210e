"""Tests for accessibility filter parsing and matching."""

from __future__ import annotations

from place_ranker.models import AccessibilityProfile
from place_ranker.ranking import (
    parse_accessibility_filters,
    passes_accessibility_filters,
    supported_filter_tokens,
)

from factories import make_venue


def test_parse_accessibility_filters_normalizes_tokens() -> None:
    assert parse_accessibility_filters(" Wheelchair, NDIS ,,wheelchair") == ["wheelchair", "ndis"]
    assert parse_accessibility_filters("") == []
    assert parse_accessibility_filters(None) == []
    assert supported_filter_tokens() == ["ndis", "wheelchair"]


def test_ndis_filter_requires_ndis_acceptance() -> None:
    assert passes_accessibility_filters(make_venue(accepts_ndis=True), ["ndis"]) is True
    assert passes_accessibility_filters(make_venue(accepts_ndis=False), ["ndis"]) is False


def test_wheelchair_filter_accepts_amenity_tag_or_profile() -> None:
    tagged = make_venue(amenities=["wheelchair_accessible"])
    profiled = make_venue(accessibility=AccessibilityProfile(wheelchair=True))
    neither = make_venue(accessibility=AccessibilityProfile(wheelchair=False))

    assert passes_accessibility_filters(tagged, ["wheelchair"]) is True
    assert passes_accessibility_filters(profiled, ["wheelchair"]) is True
    assert passes_accessibility_filters(neither, ["wheelchair"]) is False
    assert passes_accessibility_filters(make_venue(), ["wheelchair"]) is False


def test_filters_combine_and_unknown_tokens_are_ignored() -> None:
    venue = make_venue(accepts_ndis=True, amenities=["wheelchair_accessible"])

    assert passes_accessibility_filters(venue, ["ndis", "wheelchair"]) is True
    assert passes_accessibility_filters(venue, ["hearing_loop"]) is True
    assert passes_accessibility_filters(make_venue(), ["hearing_loop", "ndis"]) is False
    assert passes_accessibility_filters(make_venue(), []) is True
