"""
PlaceRanker - accessibility-first ranking of map places.

Ranks organic venues by an accessibility quality score and merges in a
small, capped slate of sponsored placements. Sponsorships only surface when
the venue meets a quality floor and the tier's verification minimum, and
every sponsored entry carries disclosure text.

Example usage:
    >>> from place_ranker import DuckDBVenueStore, MapPlacesQuery, RankingService
    >>> from place_ranker.geo import CenterRadius
    >>> store = DuckDBVenueStore("places.duckdb", read_only=True, initialize=False)
    >>> service = RankingService(store)
    >>> places = service.get_places(MapPlacesQuery(center=CenterRadius(-33.86, 151.21)))
"""

from .config import RankingConfig, RankingConfigError, load_ranking_config
from .geo import BoundingBox, CenterRadius, ScopeValidationError
from .models import (
    PlaceDetail,
    RankedPlace,
    Sponsorship,
    SponsorshipTier,
    Venue,
    VerificationRecord,
    VerificationTier,
)
from .ranking import MapPlacesQuery, RankingService, SponsorshipRanker
from .sponsorships import (
    SponsorshipManager,
    SponsorshipNotFoundError,
    SponsorshipPolicyError,
)
from .storage import DuckDBVenueStore

__all__ = [
    # Config
    "RankingConfig",
    "RankingConfigError",
    "load_ranking_config",
    # Scope
    "BoundingBox",
    "CenterRadius",
    "ScopeValidationError",
    # Models
    "PlaceDetail",
    "RankedPlace",
    "Sponsorship",
    "SponsorshipTier",
    "Venue",
    "VerificationRecord",
    "VerificationTier",
    # Ranking
    "MapPlacesQuery",
    "RankingService",
    "SponsorshipRanker",
    # Administration
    "SponsorshipManager",
    "SponsorshipNotFoundError",
    "SponsorshipPolicyError",
    # Storage
    "DuckDBVenueStore",
]
