"""Eligibility, scoring and sponsored-merge ranking for map places."""

from .eligibility import EligibilityFilter, MapPlacesQuery
from .filters import (
    parse_accessibility_filters,
    passes_accessibility_filters,
    supported_filter_tokens,
)
from .ranker import (
    ScoredVenue,
    SponsorshipRanker,
    best_verification_tier,
    disclosure_text,
    latest_verification,
    select_sponsorship,
)
from .scorer import QualitySignals, quality_score, quality_signals
from .service import RankingService

__all__ = [
    "EligibilityFilter",
    "MapPlacesQuery",
    "parse_accessibility_filters",
    "passes_accessibility_filters",
    "supported_filter_tokens",
    "ScoredVenue",
    "SponsorshipRanker",
    "best_verification_tier",
    "disclosure_text",
    "latest_verification",
    "select_sponsorship",
    "QualitySignals",
    "quality_score",
    "quality_signals",
    "RankingService",
]
