"""
Accessibility-capability filter parsing and matching.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from ..models import Venue


def _accepts_ndis(venue: Venue) -> bool:
    return venue.accepts_ndis


def _wheelchair_access(venue: Venue) -> bool:
    if venue.has_wheelchair_amenity():
        return True
    return venue.accessibility is not None and venue.accessibility.has_wheelchair_access()


_FILTER_CHECKS: dict[str, Callable[[Venue], bool]] = {
    "ndis": _accepts_ndis,
    "wheelchair": _wheelchair_access,
}


def supported_filter_tokens() -> list[str]:
    """Tokens that constrain results; anything else is accepted and ignored."""
    return sorted(_FILTER_CHECKS)


def parse_accessibility_filters(raw_filters: str | None) -> list[str]:
    """Split a comma-separated filter string into normalized tokens."""
    if raw_filters is None or not raw_filters.strip():
        return []
    tokens: list[str] = []
    for part in raw_filters.split(","):
        token = part.strip().lower()
        if token and token not in tokens:
            tokens.append(token)
    return tokens


def passes_accessibility_filters(venue: Venue, filters: Iterable[str]) -> bool:
    """Return True when the venue satisfies every recognized filter token."""
    for token in filters:
        check = _FILTER_CHECKS.get(token.strip().lower())
        if check is None:
            continue
        if not check(venue):
            return False
    return True
