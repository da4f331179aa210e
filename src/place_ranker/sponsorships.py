"""
Sponsorship administration: applications and the enforcement ladder.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime

from .config import RankingConfig
from .models import (
    BoostPolicy,
    EnforcementAction,
    Sponsorship,
    SponsorshipAuditEntry,
    SponsorshipStatus,
    SponsorshipTier,
    ensure_utc,
)
from .ranking.ranker import latest_verification
from .ranking.service import utc_now
from .storage import SponsorshipStore

logger = logging.getLogger(__name__)


class SponsorshipNotFoundError(LookupError):
    """Raised when a sponsorship or its venue does not exist."""


class SponsorshipPolicyError(ValueError):
    """Raised when an application or enforcement request violates policy."""


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


class SponsorshipManager:
    """Create sponsorship applications and apply enforcement actions."""

    def __init__(
        self,
        store: SponsorshipStore,
        config: RankingConfig | None = None,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.config = config or RankingConfig()
        self.clock = clock

    def apply(
        self,
        *,
        venue_id: str,
        tier: SponsorshipTier,
        start_at: datetime,
        end_at: datetime | None = None,
        sponsor_id: str | None = None,
    ) -> Sponsorship:
        """Create a PENDING sponsorship if the venue's verification allows the tier."""
        now = self.clock()
        listing = self.store.get_venue(venue_id, now=now)
        if listing is None:
            raise SponsorshipNotFoundError(f"Venue not found: {venue_id}")

        start_at = ensure_utc(start_at)
        end_at = ensure_utc(end_at)
        if end_at is not None and end_at < start_at:
            raise SponsorshipPolicyError("end_at must not be before start_at")

        latest = latest_verification(listing.verifications, now=now)
        verification_tier = latest.tier if latest is not None else None
        if not self.config.meets_min_verification(verification_tier, tier):
            required = self.config.min_verification_tier[tier]
            raise SponsorshipPolicyError(
                f"Venue must hold {required.value} verification or better "
                f"for {tier.value} sponsorship"
            )

        sponsorship = Sponsorship(
            id=_new_id("sp"),
            venue_id=venue_id,
            sponsor_id=sponsor_id,
            tier=tier,
            status=SponsorshipStatus.PENDING,
            start_at=start_at,
            end_at=end_at,
            created_at=now,
        )
        self.store.upsert_sponsorship(sponsorship)
        logger.info(
            "Sponsorship %s applied for venue %s at tier %s",
            sponsorship.id,
            venue_id,
            tier.value,
        )
        return sponsorship

    def enforce(
        self,
        sponsorship_id: str,
        *,
        action: EnforcementAction,
        reason: str,
        deboost_until: datetime | None = None,
        actor: str | None = None,
    ) -> Sponsorship:
        """Apply warn / deboost / suspend / reinstate and record an audit entry."""
        if not reason or not reason.strip():
            raise SponsorshipPolicyError("An enforcement reason is required")
        if action == EnforcementAction.DEBOOST and deboost_until is None:
            raise SponsorshipPolicyError("deboost requires deboost_until")

        sponsorship = self.store.get_sponsorship(sponsorship_id)
        if sponsorship is None:
            raise SponsorshipNotFoundError(f"Sponsorship not found: {sponsorship_id}")

        metadata: dict[str, str] = {}
        if action == EnforcementAction.SUSPEND:
            updated = sponsorship.model_copy(update={"status": SponsorshipStatus.SUSPENDED})
        elif action == EnforcementAction.REINSTATE:
            updated = sponsorship.model_copy(
                update={"status": SponsorshipStatus.ACTIVE, "boost_policy": BoostPolicy()}
            )
        elif action == EnforcementAction.DEBOOST:
            until = ensure_utc(deboost_until)
            policy_data = sponsorship.boost_policy.model_dump()
            policy_data["deboost_until"] = until
            updated = sponsorship.model_copy(
                update={"boost_policy": BoostPolicy.model_validate(policy_data)}
            )
            metadata["deboost_until"] = until.isoformat()
        else:
            updated = sponsorship

        self.store.upsert_sponsorship(updated)
        self.store.add_audit_entry(
            SponsorshipAuditEntry(
                id=_new_id("audit"),
                sponsorship_id=sponsorship_id,
                action=action,
                reason=reason.strip(),
                actor=actor,
                metadata=metadata,
                created_at=self.clock(),
            )
        )
        logger.info(
            "Sponsorship %s enforcement %s by %s: status=%s",
            sponsorship_id,
            action.value,
            actor or "unknown",
            updated.status.value,
        )
        return updated

    def list_sponsorships(
        self,
        *,
        status: SponsorshipStatus | None = None,
        venue_id: str | None = None,
        limit: int = 100,
    ) -> list[Sponsorship]:
        return self.store.list_sponsorships(status=status, venue_id=venue_id, limit=limit)
