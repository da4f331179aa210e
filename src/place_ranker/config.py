"""
Configuration for ranking policy and local storage.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from .models import SponsorshipTier, VerificationTier


DEFAULT_DB_PATH = "~/.place_ranker/places.duckdb"
ENV_DB_PATH = "PLACE_RANKER_DB_PATH"

ENV_MAX_SPONSORED_PER_VIEWPORT = "PLACE_RANKER_MAX_SPONSORED_PER_VIEWPORT"
ENV_MAX_SPONSORED_PER_CATEGORY = "PLACE_RANKER_MAX_SPONSORED_PER_CATEGORY"
ENV_QUALITY_FLOOR = "PLACE_RANKER_QUALITY_FLOOR"
ENV_DEFAULT_LIMIT = "PLACE_RANKER_DEFAULT_LIMIT"
ENV_DEDUPE_SPONSORED = "PLACE_RANKER_DEDUPE_SPONSORED"

MAX_REQUEST_LIMIT = 100


def _default_boost_bounds() -> dict[SponsorshipTier, float]:
    return {
        SponsorshipTier.COMMUNITY_SUPPORTER: 0.05,
        SponsorshipTier.FEATURED_ACCESSIBLE_VENUE: 0.10,
        SponsorshipTier.ACCESSIBILITY_LEADER: 0.15,
    }


def _default_min_verification() -> dict[SponsorshipTier, VerificationTier]:
    return {
        SponsorshipTier.COMMUNITY_SUPPORTER: VerificationTier.BRONZE,
        SponsorshipTier.FEATURED_ACCESSIBLE_VENUE: VerificationTier.BRONZE,
        SponsorshipTier.ACCESSIBILITY_LEADER: VerificationTier.SILVER,
    }


class RankingConfigError(ValueError):
    """Raised when ranking policy values are invalid."""


@dataclass(frozen=True)
class RankingConfig:
    """Sponsorship caps, gates and defaults used by the ranker."""

    max_sponsored_per_viewport: int = 3
    max_sponsored_per_category: int = 2
    quality_floor: int = 30
    # Upper bound on the ranking lift a tier may apply. Sponsored entries are
    # appended after organic ones, so this is not used for ordering.
    boost_bounds: dict[SponsorshipTier, float] = field(default_factory=_default_boost_bounds)
    min_verification_tier: dict[SponsorshipTier, VerificationTier] = field(
        default_factory=_default_min_verification
    )
    dedupe_sponsored: bool = False
    default_limit: int = 50
    default_radius_meters: float = 5000.0

    def __post_init__(self) -> None:
        if self.max_sponsored_per_viewport < 0:
            raise RankingConfigError("max_sponsored_per_viewport must be >= 0")
        if self.max_sponsored_per_category < 0:
            raise RankingConfigError("max_sponsored_per_category must be >= 0")
        if not 0 <= self.quality_floor <= 100:
            raise RankingConfigError("quality_floor must be within 0-100")
        if not 1 <= self.default_limit <= MAX_REQUEST_LIMIT:
            raise RankingConfigError(f"default_limit must be within 1-{MAX_REQUEST_LIMIT}")
        if self.default_radius_meters <= 0:
            raise RankingConfigError("default_radius_meters must be positive")

        missing_bounds = [tier.value for tier in SponsorshipTier if tier not in self.boost_bounds]
        if missing_bounds:
            raise RankingConfigError(f"boost_bounds missing tiers: {', '.join(missing_bounds)}")
        for tier, bound in self.boost_bounds.items():
            if not 0.0 <= float(bound) <= 1.0:
                raise RankingConfigError(f"boost bound for {tier.value} must be within 0-1")

        missing_gates = [
            tier.value for tier in SponsorshipTier if tier not in self.min_verification_tier
        ]
        if missing_gates:
            raise RankingConfigError(
                f"min_verification_tier missing tiers: {', '.join(missing_gates)}"
            )

    def meets_min_verification(
        self,
        verification_tier: VerificationTier | None,
        sponsorship_tier: SponsorshipTier,
    ) -> bool:
        if verification_tier is None:
            return False
        return verification_tier.rank >= self.min_verification_tier[sponsorship_tier].rank


def _env_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise RankingConfigError(f"{name} must be an integer, got {raw!r}") from exc


def _env_bool(name: str) -> bool | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    lowered = raw.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    raise RankingConfigError(f"{name} must be a boolean, got {raw!r}")


def load_ranking_config(**overrides: object) -> RankingConfig:
    """
    Build ranking config from explicit overrides, env vars, and defaults.

    Precedence:
    1) keyword overrides (None values are ignored)
    2) PLACE_RANKER_* env vars
    3) dataclass defaults
    """
    values: dict[str, object] = {}
    env_values = {
        "max_sponsored_per_viewport": _env_int(ENV_MAX_SPONSORED_PER_VIEWPORT),
        "max_sponsored_per_category": _env_int(ENV_MAX_SPONSORED_PER_CATEGORY),
        "quality_floor": _env_int(ENV_QUALITY_FLOOR),
        "default_limit": _env_int(ENV_DEFAULT_LIMIT),
        "dedupe_sponsored": _env_bool(ENV_DEDUPE_SPONSORED),
    }
    for key, value in env_values.items():
        if value is not None:
            values[key] = value
    for key, value in overrides.items():
        if value is not None:
            values[key] = value
    return RankingConfig(**values)  # type: ignore[arg-type]


def resolve_db_path(override_path: str | None = None) -> str:
    """
    Resolve the DuckDB path from CLI override, env var, or default.

    Precedence:
    1) explicit override_path
    2) PLACE_RANKER_DB_PATH
    3) default path
    """
    raw_path = override_path or os.getenv(ENV_DB_PATH) or DEFAULT_DB_PATH
    resolved = Path(raw_path).expanduser().resolve()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return str(resolved)
