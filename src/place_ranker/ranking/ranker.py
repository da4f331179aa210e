"""
Organic ranking plus capped, policy-gated sponsored placements.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from ..config import RankingConfig
from ..models import (
    RankedPlace,
    Sponsorship,
    SponsorshipTier,
    VenueListing,
    VerificationRecord,
    VerificationTier,
)
from .scorer import quality_score

logger = logging.getLogger(__name__)


def best_verification_tier(
    verifications: list[VerificationRecord], *, now: datetime
) -> VerificationTier | None:
    """Highest tier among non-expired records."""
    valid = [record for record in verifications if record.is_valid(now)]
    if not valid:
        return None
    return max(valid, key=lambda record: record.tier.rank).tier


def latest_verification(
    verifications: list[VerificationRecord], *, now: datetime
) -> VerificationRecord | None:
    """Most recently verified non-expired record."""
    valid = [record for record in verifications if record.is_valid(now)]
    if not valid:
        return None
    # Ties on verified_at resolve to the smallest id.
    return min(valid, key=lambda record: (-record.verified_at.timestamp(), record.id))


def select_sponsorship(
    sponsorships: list[Sponsorship], *, now: datetime
) -> Sponsorship | None:
    """Highest-tier live sponsorship; ties go to the earliest start, then id."""
    live = [sponsorship for sponsorship in sponsorships if sponsorship.is_live(now)]
    if not live:
        return None
    return min(
        live,
        key=lambda sponsorship: (
            -sponsorship.tier.rank,
            sponsorship.start_at.timestamp(),
            sponsorship.id,
        ),
    )


def disclosure_text(tier: SponsorshipTier) -> str:
    return f"This venue is a sponsored {tier.label} and meets your filters."


@dataclass(frozen=True)
class ScoredVenue:
    """A candidate with its derived ranking inputs."""

    listing: VenueListing
    quality_score: int
    verification_tier: VerificationTier | None
    latest_verification: VerificationRecord | None
    sponsorship: Sponsorship | None

    @property
    def venue_id(self) -> str:
        return self.listing.venue.id

    def to_ranked_place(self, *, is_sponsored: bool) -> RankedPlace:
        venue = self.listing.venue
        latest = self.latest_verification
        evidence_refs = None
        if latest is not None and latest.evidence_refs is not None:
            evidence_refs = list(latest.evidence_refs)

        disclosure = None
        if is_sponsored and self.sponsorship is not None:
            disclosure = disclosure_text(self.sponsorship.tier)

        return RankedPlace(
            id=venue.id,
            name=venue.name,
            description=venue.description,
            category=venue.category,
            latitude=venue.latitude,
            longitude=venue.longitude,
            address=venue.address,
            city=venue.city,
            state=venue.state,
            postcode=venue.postcode,
            accessibility=venue.accessibility,
            amenities=list(venue.amenities),
            accepts_ndis=venue.accepts_ndis,
            verified=venue.verified,
            logo_url=venue.logo_url,
            quality_score=self.quality_score,
            is_sponsored=is_sponsored,
            verification_tier=self.verification_tier,
            sponsorship_tier=self.sponsorship.tier if self.sponsorship is not None else None,
            disclosure_text=disclosure,
            evidence_refs=evidence_refs,
            verified_at=latest.verified_at if latest is not None else venue.verified_at,
        )


def score_listing(listing: VenueListing, *, now: datetime) -> ScoredVenue:
    latest = latest_verification(listing.verifications, now=now)
    return ScoredVenue(
        listing=listing,
        quality_score=quality_score(listing.venue, latest, now=now),
        verification_tier=best_verification_tier(listing.verifications, now=now),
        latest_verification=latest,
        sponsorship=select_sponsorship(listing.sponsorships, now=now),
    )


class SponsorshipRanker:
    """Merge organic results with a bounded sponsored slate."""

    def __init__(self, config: RankingConfig) -> None:
        self.config = config

    def rank_and_merge(
        self,
        listings: list[VenueListing],
        *,
        now: datetime,
        hide_sponsored: bool = False,
    ) -> list[RankedPlace]:
        scored = [score_listing(listing, now=now) for listing in listings]

        organic = sorted(
            (item for item in scored if not hide_sponsored or item.sponsorship is None),
            key=lambda item: (-item.quality_score, item.venue_id),
        )
        if hide_sponsored:
            return [item.to_ranked_place(is_sponsored=False) for item in organic]

        slate = self.select_sponsored(scored, now=now)

        if self.config.dedupe_sponsored:
            promoted = {item.venue_id for item in slate}
            return [
                item.to_ranked_place(is_sponsored=item.venue_id in promoted)
                for item in organic
            ]

        organic_places = [item.to_ranked_place(is_sponsored=False) for item in organic]
        sponsored_places = [item.to_ranked_place(is_sponsored=True) for item in slate]
        return organic_places + sponsored_places

    def is_sponsorship_eligible(self, item: ScoredVenue, *, now: datetime) -> bool:
        sponsorship = item.sponsorship
        if sponsorship is None:
            return False
        if sponsorship.boost_policy.is_deboosted(now):
            logger.debug("Sponsorship %s skipped: de-boosted", sponsorship.id)
            return False
        if item.quality_score < self.config.quality_floor:
            logger.debug(
                "Sponsorship %s skipped: quality %d below floor %d",
                sponsorship.id,
                item.quality_score,
                self.config.quality_floor,
            )
            return False
        if not self.config.meets_min_verification(item.verification_tier, sponsorship.tier):
            logger.debug(
                "Sponsorship %s skipped: verification %s below minimum for %s",
                sponsorship.id,
                item.verification_tier.value if item.verification_tier else None,
                sponsorship.tier.value,
            )
            return False
        return True

    def select_sponsored(self, scored: list[ScoredVenue], *, now: datetime) -> list[ScoredVenue]:
        """Apply eligibility gates, then per-viewport and per-category caps."""
        pool = [item for item in scored if self.is_sponsorship_eligible(item, now=now)]
        pool.sort(
            key=lambda item: (
                -item.sponsorship.tier.rank,  # type: ignore[union-attr]
                -item.quality_score,
                item.venue_id,
            )
        )

        category_counts: dict[str, int] = {}
        slate: list[ScoredVenue] = []
        for item in pool:
            if len(slate) >= self.config.max_sponsored_per_viewport:
                break
            category = item.listing.venue.category.value
            count = category_counts.get(category, 0)
            if count >= self.config.max_sponsored_per_category:
                continue
            slate.append(item)
            category_counts[category] = count + 1
        return slate
