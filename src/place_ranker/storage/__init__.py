"""Storage backends for venues, verifications and sponsorships."""

from .base import (
    RECENT_VERIFICATIONS_PER_VENUE,
    SponsorshipStore,
    VenueRepository,
    VenueWriter,
)
from .duckdb import DuckDBVenueStore

__all__ = [
    "RECENT_VERIFICATIONS_PER_VENUE",
    "SponsorshipStore",
    "VenueRepository",
    "VenueWriter",
    "DuckDBVenueStore",
]
