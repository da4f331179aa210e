"""
FastAPI server for map place ranking.

Provides the viewport ranking endpoint used by the map and a venue detail
endpoint with verification and sponsorship disclosure.
"""

import asyncio
import logging
import math
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse

from .config import MAX_REQUEST_LIMIT, RankingConfig, load_ranking_config, resolve_db_path
from .geo import BoundingBox, CenterRadius, ScopeValidationError
from .models import BusinessCategory, PlaceDetail, RankedPlace
from .ranking import MapPlacesQuery, RankingService, parse_accessibility_filters
from .storage import DuckDBVenueStore

logger = logging.getLogger(__name__)

_config: RankingConfig | None = None


def get_config() -> RankingConfig:
    """Ranking config loaded at startup (or on first use outside the app lifespan)."""
    global _config
    if _config is None:
        _config = load_ranking_config()
    return _config


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _config
    # Invalid PLACE_RANKER_* values abort startup with RankingConfigError.
    _config = load_ranking_config()
    logger.info("Ranking config loaded: %s", _config)
    yield


app = FastAPI(
    title="Place Ranker",
    description="Accessibility-first map place ranking",
    lifespan=lifespan,
)


def _parse_float(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError as exc:
        raise ScopeValidationError(f"Invalid {name}: {raw!r}") from exc
    if not math.isfinite(value):
        raise ScopeValidationError(f"Invalid {name}: {raw!r}")
    return value


def build_query(
    *,
    lat: str | None,
    lng: str | None,
    radius: str | None,
    min_lat: str | None,
    max_lat: str | None,
    min_lng: str | None,
    max_lng: str | None,
    category: str | None,
    accessibility: str | None,
    hide_sponsored: str | None,
    limit: str | None,
) -> MapPlacesQuery:
    """Translate raw query-string values into a validated map query."""
    parsed_limit: int | None = None
    if limit is not None:
        try:
            parsed_limit = int(limit)
        except ValueError as exc:
            raise ScopeValidationError(f"Invalid limit; use 1-{MAX_REQUEST_LIMIT}") from exc
        if not 1 <= parsed_limit <= MAX_REQUEST_LIMIT:
            raise ScopeValidationError(f"Invalid limit; use 1-{MAX_REQUEST_LIMIT}")

    bounds: BoundingBox | None = None
    center: CenterRadius | None = None
    if None not in (min_lat, max_lat, min_lng, max_lng):
        bounds = BoundingBox(
            min_lat=_parse_float("minLat", min_lat),  # type: ignore[arg-type]
            max_lat=_parse_float("maxLat", max_lat),  # type: ignore[arg-type]
            min_lng=_parse_float("minLng", min_lng),  # type: ignore[arg-type]
            max_lng=_parse_float("maxLng", max_lng),  # type: ignore[arg-type]
        )
    elif lat is not None and lng is not None:
        radius_meters: float | None = None
        if radius is not None:
            try:
                radius_meters = float(int(radius))
            except ValueError:
                radius_meters = None
        center = CenterRadius(
            latitude=_parse_float("lat", lat),
            longitude=_parse_float("lng", lng),
            radius_meters=radius_meters,
        )
    else:
        raise ScopeValidationError(
            "Provide either center (lat, lng) or bounds (minLat, maxLat, minLng, maxLng)"
        )

    return MapPlacesQuery(
        bounds=bounds,
        center=center,
        category=BusinessCategory.parse(category),
        accessibility_filters=tuple(parse_accessibility_filters(accessibility)),
        hide_sponsored=(hide_sponsored or "").strip().lower() == "true",
        limit=parsed_limit,
    )


def _rank_places(db_path: str, query: MapPlacesQuery) -> list[RankedPlace]:
    storage = DuckDBVenueStore(db_path, read_only=True, initialize=False)
    try:
        return RankingService(storage, get_config()).get_places(query)
    finally:
        storage.close()


def _place_detail(db_path: str, venue_id: str) -> PlaceDetail | None:
    storage = DuckDBVenueStore(db_path, read_only=True, initialize=False)
    try:
        return RankingService(storage, get_config()).get_place_detail(venue_id)
    finally:
        storage.close()


@app.get("/api/map/places")
async def map_places(
    lat: str | None = None,
    lng: str | None = None,
    radius: str | None = None,
    min_lat: str | None = Query(None, alias="minLat"),
    max_lat: str | None = Query(None, alias="maxLat"),
    min_lng: str | None = Query(None, alias="minLng"),
    max_lng: str | None = Query(None, alias="maxLng"),
    category: str | None = None,
    accessibility: str | None = None,
    hide_sponsored: str | None = Query(None, alias="hideSponsored"),
    limit: str | None = None,
    db_path: str | None = None,
):
    """Return organic + sponsored places for a map viewport."""
    try:
        query = build_query(
            lat=lat,
            lng=lng,
            radius=radius,
            min_lat=min_lat,
            max_lat=max_lat,
            min_lng=min_lng,
            max_lng=max_lng,
            category=category,
            accessibility=accessibility,
            hide_sponsored=hide_sponsored,
            limit=limit,
        )
    except ScopeValidationError as exc:
        return JSONResponse({"error": str(exc)}, status_code=400)

    resolved_db_path = resolve_db_path(db_path)
    if not Path(resolved_db_path).exists():
        return JSONResponse({"error": "No place database found."}, status_code=404)

    try:
        places = await asyncio.to_thread(_rank_places, resolved_db_path, query)
    except ScopeValidationError as exc:
        return JSONResponse({"error": str(exc)}, status_code=400)
    except Exception as exc:
        logger.exception("Error fetching map places")
        return JSONResponse({"error": str(exc)}, status_code=500)

    return {"places": [place.model_dump(mode="json") for place in places]}


@app.get("/api/places/{place_id}")
async def place_detail(place_id: str, db_path: str | None = None):
    """Venue detail with verification, sponsorship disclosure and evidence links."""
    resolved_db_path = resolve_db_path(db_path)
    if not Path(resolved_db_path).exists():
        return JSONResponse({"error": "Place not found"}, status_code=404)

    try:
        detail = await asyncio.to_thread(_place_detail, resolved_db_path, place_id)
    except Exception as exc:
        logger.exception("Error fetching place %s", place_id)
        return JSONResponse({"error": str(exc)}, status_code=500)

    if detail is None:
        return JSONResponse({"error": "Place not found"}, status_code=404)
    return detail.model_dump(mode="json")


def run_server(host: str = "127.0.0.1", port: int = 8000):
    """Run the FastAPI server."""
    import uvicorn

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
