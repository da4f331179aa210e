"""
Eligibility filtering: viewport query plus in-memory accessibility filters.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from ..config import MAX_REQUEST_LIMIT, RankingConfig
from ..geo import BoundingBox, CenterRadius, ScopeValidationError, resolve_scope
from ..models import BusinessCategory, VenueListing
from ..storage import VenueRepository
from .filters import passes_accessibility_filters

logger = logging.getLogger(__name__)

OVERFETCH_FACTOR = 2


@dataclass(frozen=True)
class MapPlacesQuery:
    """A map viewport request."""

    bounds: BoundingBox | None = None
    center: CenterRadius | None = None
    category: BusinessCategory | None = None
    accessibility_filters: tuple[str, ...] = field(default_factory=tuple)
    hide_sponsored: bool = False
    limit: int | None = None


class EligibilityFilter:
    """Select active venues in scope that pass the caller's filters."""

    def __init__(self, repository: VenueRepository, config: RankingConfig) -> None:
        self.repository = repository
        self.config = config

    def resolve_limit(self, limit: int | None) -> int:
        if limit is None:
            return self.config.default_limit
        if not 1 <= limit <= MAX_REQUEST_LIMIT:
            raise ScopeValidationError(f"Invalid limit; use 1-{MAX_REQUEST_LIMIT}")
        return limit

    def select(self, query: MapPlacesQuery, *, now: datetime) -> list[VenueListing]:
        bounds = resolve_scope(
            bounds=query.bounds,
            center=query.center,
            default_radius_meters=self.config.default_radius_meters,
        )
        limit = self.resolve_limit(query.limit)

        listings = self.repository.find_active_venues(
            bounds=bounds,
            category=query.category,
            limit=limit * OVERFETCH_FACTOR,
            now=now,
        )
        if not query.accessibility_filters:
            return listings[:limit]

        eligible = [
            listing
            for listing in listings
            if passes_accessibility_filters(listing.venue, query.accessibility_filters)
        ]
        logger.debug(
            "Eligibility: fetched=%d passed_filters=%d limit=%d filters=%s",
            len(listings),
            len(eligible),
            limit,
            ",".join(query.accessibility_filters),
        )
        return eligible[:limit]
