"""
Storage interfaces for venues, verifications and sponsorships.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from ..geo import BoundingBox
from ..models import (
    BusinessCategory,
    Sponsorship,
    SponsorshipAuditEntry,
    SponsorshipStatus,
    Venue,
    VenueListing,
    VerificationRecord,
)


RECENT_VERIFICATIONS_PER_VENUE = 5


class VenueRepository(Protocol):
    """Read operations used by the ranking service."""

    def find_active_venues(
        self,
        *,
        bounds: BoundingBox,
        category: BusinessCategory | None,
        limit: int,
        now: datetime,
    ) -> list[VenueListing]:
        """Active venues in bounds with recent valid verifications and live sponsorships."""

    def get_venue(self, venue_id: str, *, now: datetime) -> VenueListing | None:
        """A single venue with the same eager-loaded relations, any status."""


class SponsorshipStore(Protocol):
    """Persistence operations used by sponsorship administration."""

    def get_venue(self, venue_id: str, *, now: datetime) -> VenueListing | None:
        """A single venue with its relations."""

    def get_sponsorship(self, sponsorship_id: str) -> Sponsorship | None:
        """Fetch a sponsorship by id."""

    def list_sponsorships(
        self,
        *,
        status: SponsorshipStatus | None = None,
        venue_id: str | None = None,
        limit: int = 100,
    ) -> list[Sponsorship]:
        """List sponsorships, newest first."""

    def upsert_sponsorship(self, sponsorship: Sponsorship) -> None:
        """Insert or replace a sponsorship."""

    def add_audit_entry(self, entry: SponsorshipAuditEntry) -> None:
        """Append an enforcement audit entry."""

    def list_audit_entries(self, sponsorship_id: str) -> list[SponsorshipAuditEntry]:
        """Audit entries for a sponsorship, oldest first."""


class VenueWriter(Protocol):
    """Bulk load operations used by the CLI."""

    def upsert_venue(self, venue: Venue) -> None:
        """Insert or replace a venue."""

    def upsert_verification(self, record: VerificationRecord) -> None:
        """Insert or replace a verification record."""

    def upsert_sponsorship(self, sponsorship: Sponsorship) -> None:
        """Insert or replace a sponsorship."""
