"""
Ranking service: eligibility -> scoring -> sponsored merge for one request.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from ..config import RankingConfig
from ..models import PlaceDetail, RankedPlace, SponsorshipTier
from ..storage import VenueRepository
from .eligibility import EligibilityFilter, MapPlacesQuery
from .ranker import SponsorshipRanker, latest_verification

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def detail_disclosure_text(tier: SponsorshipTier) -> str:
    return (
        f"This venue is a sponsored {tier.label}. Sponsored placement is gated by "
        "accessibility verification and never overrides your filters."
    )


class RankingService:
    """Stateless per-request ranking over a venue repository."""

    def __init__(
        self,
        repository: VenueRepository,
        config: RankingConfig | None = None,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.repository = repository
        self.config = config or RankingConfig()
        self.clock = clock
        self.eligibility = EligibilityFilter(repository, self.config)
        self.ranker = SponsorshipRanker(self.config)

    def get_places(self, query: MapPlacesQuery) -> list[RankedPlace]:
        """Run the full pipeline and return organic + sponsored places."""
        now = self.clock()
        listings = self.eligibility.select(query, now=now)
        places = self.ranker.rank_and_merge(
            listings,
            now=now,
            hide_sponsored=query.hide_sponsored,
        )
        logger.debug(
            "Ranked %d candidates into %d places (%d sponsored)",
            len(listings),
            len(places),
            sum(1 for place in places if place.is_sponsored),
        )
        return places

    def get_place_detail(self, venue_id: str) -> PlaceDetail | None:
        now = self.clock()
        listing = self.repository.get_venue(venue_id, now=now)
        if listing is None:
            return None

        venue = listing.venue
        latest = latest_verification(listing.verifications, now=now)
        live = [sponsorship for sponsorship in listing.sponsorships if sponsorship.is_live(now)]
        sponsorship = max(live, key=lambda item: (item.start_at, item.id)) if live else None

        return PlaceDetail(
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
            status=venue.status,
            verification_tier=latest.tier if latest is not None else None,
            verification_method=latest.method if latest is not None else None,
            verified_at=latest.verified_at if latest is not None else venue.verified_at,
            evidence_refs=list(latest.evidence_refs) if latest and latest.evidence_refs else None,
            sponsorship_tier=sponsorship.tier if sponsorship is not None else None,
            disclosure_text=detail_disclosure_text(sponsorship.tier) if sponsorship else None,
        )
