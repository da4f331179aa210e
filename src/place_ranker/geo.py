"""
Geographic scope helpers: bounding boxes and center/radius conversion.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


METERS_PER_DEGREE = 111_000.0
MIN_COS_LATITUDE = 0.1


class ScopeValidationError(ValueError):
    """Raised when a map scope is missing or malformed."""


@dataclass(frozen=True)
class BoundingBox:
    """Latitude/longitude rectangle in degrees."""

    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def __post_init__(self) -> None:
        for name in ("min_lat", "max_lat", "min_lng", "max_lng"):
            if not math.isfinite(getattr(self, name)):
                raise ScopeValidationError(f"{name} must be a finite number")
        for name in ("min_lat", "max_lat"):
            if not -90.0 <= getattr(self, name) <= 90.0:
                raise ScopeValidationError(f"{name} out of range: {getattr(self, name)}")
        for name in ("min_lng", "max_lng"):
            if not -180.0 <= getattr(self, name) <= 180.0:
                raise ScopeValidationError(f"{name} out of range: {getattr(self, name)}")
        if self.min_lat > self.max_lat:
            raise ScopeValidationError("min_lat must not exceed max_lat")
        if self.min_lng > self.max_lng:
            raise ScopeValidationError("min_lng must not exceed max_lng")

    def contains(self, latitude: float, longitude: float) -> bool:
        return (
            self.min_lat <= latitude <= self.max_lat
            and self.min_lng <= longitude <= self.max_lng
        )


@dataclass(frozen=True)
class CenterRadius:
    """Map center with a search radius in meters."""

    latitude: float
    longitude: float
    radius_meters: float | None = None


def bounds_from_center(latitude: float, longitude: float, radius_meters: float) -> BoundingBox:
    """Approximate a radius as a bounding box (flat-Earth, 1 deg ~ 111 km)."""
    if not math.isfinite(latitude) or not math.isfinite(longitude):
        raise ScopeValidationError("center must be finite coordinates")
    if not -90.0 <= latitude <= 90.0:
        raise ScopeValidationError(f"latitude out of range: {latitude}")
    if not -180.0 <= longitude <= 180.0:
        raise ScopeValidationError(f"longitude out of range: {longitude}")
    if not math.isfinite(radius_meters) or radius_meters <= 0:
        raise ScopeValidationError(f"radius must be positive, got {radius_meters}")

    lat_delta = radius_meters / METERS_PER_DEGREE
    cos_lat = max(MIN_COS_LATITUDE, abs(math.cos(math.radians(latitude))))
    lng_delta = lat_delta / cos_lat
    # Clipped to valid coordinates; no antimeridian wrap.
    return BoundingBox(
        min_lat=max(-90.0, latitude - lat_delta),
        max_lat=min(90.0, latitude + lat_delta),
        min_lng=max(-180.0, longitude - lng_delta),
        max_lng=min(180.0, longitude + lng_delta),
    )


def resolve_scope(
    *,
    bounds: BoundingBox | None,
    center: CenterRadius | None,
    default_radius_meters: float,
) -> BoundingBox:
    """Resolve explicit bounds or a center/radius into one bounding box."""
    if bounds is not None:
        return bounds
    if center is not None:
        radius = center.radius_meters if center.radius_meters is not None else default_radius_meters
        return bounds_from_center(center.latitude, center.longitude, radius)
    raise ScopeValidationError(
        "Provide either center (lat, lng) or bounds (minLat, maxLat, minLng, maxLng)"
    )
