import json
from datetime import datetime
from pathlib import Path
from typing import Annotated, Optional

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from typer import Argument, Exit, Option, Typer

from .config import RankingConfigError, load_ranking_config, resolve_db_path
from .geo import BoundingBox, CenterRadius, ScopeValidationError
from .logging_setup import configure_logging
from .models import (
    BusinessCategory,
    EnforcementAction,
    SeedBundle,
    SponsorshipStatus,
    SponsorshipTier,
)
from .ranking import MapPlacesQuery, RankingService, parse_accessibility_filters
from .sponsorships import (
    SponsorshipManager,
    SponsorshipNotFoundError,
    SponsorshipPolicyError,
)
from .storage import DuckDBVenueStore

app = Typer(help="Accessibility-first ranking of organic and sponsored map places.")
sponsorship_app = Typer(help="Apply for, list and enforce sponsorships.")
app.add_typer(sponsorship_app, name="sponsorship")

DbPathOption = Annotated[
    Optional[str],
    Option("--db-path", help="DuckDB file (defaults to PLACE_RANKER_DB_PATH or ~/.place_ranker)."),
]


def _fail(console: Console, message: str) -> None:
    console.print(f"[bold red]Error:[/] {escape(message)}")
    raise Exit(code=1)


def _open_reader(console: Console, db_path: str | None) -> DuckDBVenueStore:
    resolved = resolve_db_path(db_path)
    if not Path(resolved).exists():
        _fail(console, f"No place database at {resolved}. Run `place-ranker init` first.")
    return DuckDBVenueStore(resolved, read_only=True, initialize=False)


@app.callback()
def configure(
    log_level: Annotated[
        Optional[str], Option("--log-level", help="Logging level, e.g. DEBUG or INFO.")
    ] = None,
) -> None:
    configure_logging(log_level)


@app.command()
def init(db_path: DbPathOption = None) -> None:
    """Create the place database and its tables."""
    resolved = resolve_db_path(db_path)
    storage = DuckDBVenueStore(resolved)
    storage.close()
    Console().print(f"Initialized place database at [bold]{resolved}[/]")


@app.command()
def load(
    seed_file: Annotated[Path, Argument(help="JSON file with venues, verifications, sponsorships.")],
    db_path: DbPathOption = None,
) -> None:
    """Load venues, verification records and sponsorships from a JSON file."""
    console = Console()
    try:
        bundle = SeedBundle.model_validate(json.loads(seed_file.read_text(encoding="utf-8")))
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        _fail(console, f"Invalid seed file {seed_file}: {exc}")
        return

    storage = DuckDBVenueStore(resolve_db_path(db_path))
    try:
        for venue in bundle.venues:
            storage.upsert_venue(venue)
        for record in bundle.verifications:
            storage.upsert_verification(record)
        for sponsorship in bundle.sponsorships:
            storage.upsert_sponsorship(sponsorship)
    finally:
        storage.close()

    console.print(
        Panel(
            f"venues: {len(bundle.venues)}\n"
            f"verifications: {len(bundle.verifications)}\n"
            f"sponsorships: {len(bundle.sponsorships)}",
            title="Load Complete",
            title_align="left",
            border_style="bold green",
        )
    )


@app.command()
def places(
    lat: Annotated[Optional[float], Option(help="Center latitude.")] = None,
    lng: Annotated[Optional[float], Option(help="Center longitude.")] = None,
    radius: Annotated[Optional[float], Option(help="Radius in meters.")] = None,
    min_lat: Annotated[Optional[float], Option("--min-lat")] = None,
    max_lat: Annotated[Optional[float], Option("--max-lat")] = None,
    min_lng: Annotated[Optional[float], Option("--min-lng")] = None,
    max_lng: Annotated[Optional[float], Option("--max-lng")] = None,
    category: Annotated[Optional[str], Option(help="Business category, e.g. restaurant.")] = None,
    accessibility: Annotated[
        Optional[str], Option(help="Comma-separated filters, e.g. wheelchair,ndis.")
    ] = None,
    hide_sponsored: Annotated[bool, Option("--hide-sponsored")] = False,
    limit: Annotated[Optional[int], Option(help="Maximum organic results (1-100).")] = None,
    as_json: Annotated[bool, Option("--json", help="Print raw JSON.")] = False,
    db_path: DbPathOption = None,
) -> None:
    """Rank places for a viewport or center/radius."""
    console = Console()
    try:
        bounds = None
        center = None
        if None not in (min_lat, max_lat, min_lng, max_lng):
            bounds = BoundingBox(min_lat, max_lat, min_lng, max_lng)  # type: ignore[arg-type]
        elif lat is not None and lng is not None:
            center = CenterRadius(latitude=lat, longitude=lng, radius_meters=radius)
        query = MapPlacesQuery(
            bounds=bounds,
            center=center,
            category=BusinessCategory.parse(category),
            accessibility_filters=tuple(parse_accessibility_filters(accessibility)),
            hide_sponsored=hide_sponsored,
            limit=limit,
        )
        config = load_ranking_config()
    except (ScopeValidationError, RankingConfigError) as exc:
        _fail(console, str(exc))
        return

    storage = _open_reader(console, db_path)
    try:
        results = RankingService(storage, config).get_places(query)
    except ScopeValidationError as exc:
        _fail(console, str(exc))
        return
    finally:
        storage.close()

    if as_json:
        console.print_json(json.dumps([place.model_dump(mode="json") for place in results]))
        return

    table = Table(title=f"{len(results)} places")
    table.add_column("#", justify="right")
    table.add_column("id")
    table.add_column("name")
    table.add_column("category")
    table.add_column("quality", justify="right")
    table.add_column("verification")
    table.add_column("sponsored")
    for position, place in enumerate(results, start=1):
        table.add_row(
            str(position),
            place.id,
            place.name,
            place.category.value,
            str(place.quality_score),
            place.verification_tier.value if place.verification_tier else "-",
            place.sponsorship_tier.label if place.is_sponsored and place.sponsorship_tier else "-",
        )
    console.print(table)
    for place in results:
        if place.disclosure_text:
            console.print(f"[dim]{place.id}: {place.disclosure_text}[/]")


@app.command()
def place(
    place_id: Annotated[str, Argument(help="Venue id.")],
    db_path: DbPathOption = None,
) -> None:
    """Show venue detail with verification and sponsorship disclosure."""
    console = Console()
    try:
        config = load_ranking_config()
    except RankingConfigError as exc:
        _fail(console, str(exc))
        return
    storage = _open_reader(console, db_path)
    try:
        detail = RankingService(storage, config).get_place_detail(place_id)
    finally:
        storage.close()
    if detail is None:
        _fail(console, f"Place not found: {place_id}")
        return
    console.print_json(detail.model_dump_json())


@sponsorship_app.command("apply")
def sponsorship_apply(
    venue_id: Annotated[str, Argument(help="Venue id.")],
    tier: Annotated[SponsorshipTier, Option(case_sensitive=False)],
    start_at: Annotated[datetime, Option("--start-at", help="UTC start timestamp.")],
    end_at: Annotated[Optional[datetime], Option("--end-at", help="UTC end timestamp.")] = None,
    sponsor_id: Annotated[Optional[str], Option("--sponsor-id")] = None,
    db_path: DbPathOption = None,
) -> None:
    """Apply for a sponsorship (created PENDING)."""
    console = Console()
    try:
        config = load_ranking_config()
    except RankingConfigError as exc:
        _fail(console, str(exc))
        return
    storage = DuckDBVenueStore(resolve_db_path(db_path))
    try:
        manager = SponsorshipManager(storage, config)
        sponsorship = manager.apply(
            venue_id=venue_id,
            tier=tier,
            start_at=start_at,
            end_at=end_at,
            sponsor_id=sponsor_id,
        )
    except (SponsorshipNotFoundError, SponsorshipPolicyError) as exc:
        _fail(console, str(exc))
        return
    finally:
        storage.close()
    console.print(f"Created sponsorship [bold]{sponsorship.id}[/] ({sponsorship.status.value})")


@sponsorship_app.command("list")
def sponsorship_list(
    status: Annotated[Optional[SponsorshipStatus], Option(case_sensitive=False)] = None,
    venue_id: Annotated[Optional[str], Option("--venue-id")] = None,
    db_path: DbPathOption = None,
) -> None:
    """List sponsorships, newest first."""
    console = Console()
    storage = _open_reader(console, db_path)
    try:
        rows = SponsorshipManager(storage).list_sponsorships(status=status, venue_id=venue_id)
    finally:
        storage.close()

    table = Table(title=f"{len(rows)} sponsorships")
    for column in ("id", "venue", "tier", "status", "start", "end", "deboost until"):
        table.add_column(column)
    for row in rows:
        table.add_row(
            row.id,
            row.venue_id,
            row.tier.label,
            row.status.value,
            row.start_at.isoformat(),
            row.end_at.isoformat() if row.end_at else "-",
            row.boost_policy.deboost_until.isoformat() if row.boost_policy.deboost_until else "-",
        )
    console.print(table)


@sponsorship_app.command("enforce")
def sponsorship_enforce(
    sponsorship_id: Annotated[str, Argument(help="Sponsorship id.")],
    action: Annotated[EnforcementAction, Option(case_sensitive=False)],
    reason: Annotated[str, Option(help="Why the action is taken.")],
    deboost_until: Annotated[
        Optional[datetime], Option("--deboost-until", help="UTC end of de-boost.")
    ] = None,
    actor: Annotated[Optional[str], Option(help="Who is taking the action.")] = None,
    db_path: DbPathOption = None,
) -> None:
    """Warn, de-boost, suspend or reinstate a sponsorship."""
    console = Console()
    storage = DuckDBVenueStore(resolve_db_path(db_path))
    try:
        updated = SponsorshipManager(storage).enforce(
            sponsorship_id,
            action=action,
            reason=reason,
            deboost_until=deboost_until,
            actor=actor,
        )
    except (SponsorshipNotFoundError, SponsorshipPolicyError) as exc:
        _fail(console, str(exc))
        return
    finally:
        storage.close()
    console.print(
        f"Sponsorship [bold]{updated.id}[/]: {action.value} applied, status {updated.status.value}"
    )


@app.command()
def serve(
    host: Annotated[str, Option(help="Bind address.")] = "127.0.0.1",
    port: Annotated[int, Option(help="Bind port.")] = 8000,
) -> None:
    """Run the HTTP API."""
    from .server import run_server

    run_server(host=host, port=port)
