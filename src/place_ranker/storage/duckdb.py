"""
DuckDB storage backend for venues, verifications and sponsorships.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import duckdb

from ..geo import BoundingBox
from ..models import (
    AccessibilityProfile,
    BoostPolicy,
    BusinessCategory,
    Sponsorship,
    SponsorshipAuditEntry,
    SponsorshipStatus,
    Venue,
    VenueListing,
    VenueStatus,
    VerificationRecord,
)
from .base import RECENT_VERIFICATIONS_PER_VENUE


_VENUE_COLUMNS = """
    id, name, description, category, latitude, longitude, address, city, state,
    postcode, accessibility_json, amenities_json, accepts_ndis, verified,
    verified_at, accessibility_confidence, community_score, logo_url, status
"""

_SPONSORSHIP_COLUMNS = """
    id, venue_id, sponsor_id, tier, status, start_at, end_at, boost_policy_json, created_at
"""


def _to_db_ts(value: datetime | None) -> datetime | None:
    """Store timestamps as naive UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _from_db_ts(value: Any) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _placeholders(count: int) -> str:
    return ", ".join(["?"] * count)


class DuckDBVenueStore:
    """DuckDB-backed persistence for map places and their sponsorships."""

    def __init__(
        self,
        db_path: str,
        *,
        read_only: bool = False,
        initialize: bool = True,
    ) -> None:
        self.db_path = str(Path(db_path).expanduser().resolve())
        self.read_only = read_only
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = duckdb.connect(self.db_path, read_only=read_only)
        if initialize and not read_only:
            self.initialize()

    def close(self) -> None:
        """Close the underlying DuckDB connection."""
        self._conn.close()

    def initialize(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS venues (
                id VARCHAR PRIMARY KEY,
                name VARCHAR NOT NULL,
                description VARCHAR,
                category VARCHAR NOT NULL,
                latitude DOUBLE NOT NULL,
                longitude DOUBLE NOT NULL,
                address VARCHAR NOT NULL DEFAULT '',
                city VARCHAR NOT NULL DEFAULT '',
                state VARCHAR NOT NULL DEFAULT '',
                postcode VARCHAR NOT NULL DEFAULT '',
                accessibility_json VARCHAR,
                amenities_json VARCHAR NOT NULL DEFAULT '[]',
                accepts_ndis BOOLEAN NOT NULL DEFAULT FALSE,
                verified BOOLEAN NOT NULL DEFAULT FALSE,
                verified_at TIMESTAMP,
                accessibility_confidence DOUBLE,
                community_score DOUBLE,
                logo_url VARCHAR,
                status VARCHAR NOT NULL DEFAULT 'ACTIVE'
            );
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS place_verifications (
                id VARCHAR PRIMARY KEY,
                venue_id VARCHAR NOT NULL,
                tier VARCHAR NOT NULL,
                verified_at TIMESTAMP NOT NULL,
                expires_at TIMESTAMP,
                method VARCHAR,
                evidence_refs_json VARCHAR
            );
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS sponsorships (
                id VARCHAR PRIMARY KEY,
                venue_id VARCHAR NOT NULL,
                sponsor_id VARCHAR,
                tier VARCHAR NOT NULL,
                status VARCHAR NOT NULL,
                start_at TIMESTAMP NOT NULL,
                end_at TIMESTAMP,
                boost_policy_json VARCHAR NOT NULL DEFAULT '{}',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );
            """
        )
        self._conn.execute("CREATE SEQUENCE IF NOT EXISTS sponsorship_audit_seq START 1;")
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS sponsorship_audit_log (
                id VARCHAR PRIMARY KEY,
                seq BIGINT NOT NULL DEFAULT nextval('sponsorship_audit_seq'),
                sponsorship_id VARCHAR NOT NULL,
                action VARCHAR NOT NULL,
                reason VARCHAR NOT NULL,
                actor VARCHAR,
                metadata_json VARCHAR NOT NULL DEFAULT '{}',
                created_at TIMESTAMP NOT NULL
            );
            """
        )

    # -- writes ---------------------------------------------------------------

    def upsert_venue(self, venue: Venue) -> None:
        accessibility_json = (
            json.dumps(venue.accessibility.model_dump(mode="json", exclude_none=True), sort_keys=True)
            if venue.accessibility is not None
            else None
        )
        self._conn.execute(
            f"""
            INSERT OR REPLACE INTO venues ({_VENUE_COLUMNS})
            VALUES ({_placeholders(19)})
            """,
            [
                venue.id,
                venue.name,
                venue.description,
                venue.category.value,
                venue.latitude,
                venue.longitude,
                venue.address,
                venue.city,
                venue.state,
                venue.postcode,
                accessibility_json,
                json.dumps(venue.amenities),
                venue.accepts_ndis,
                venue.verified,
                _to_db_ts(venue.verified_at),
                venue.accessibility_confidence,
                venue.community_score,
                venue.logo_url,
                venue.status.value,
            ],
        )

    def upsert_verification(self, record: VerificationRecord) -> None:
        self._conn.execute(
            """
            INSERT OR REPLACE INTO place_verifications (
                id, venue_id, tier, verified_at, expires_at, method, evidence_refs_json
            )
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                record.id,
                record.venue_id,
                record.tier.value,
                _to_db_ts(record.verified_at),
                _to_db_ts(record.expires_at),
                record.method,
                json.dumps(record.evidence_refs) if record.evidence_refs is not None else None,
            ],
        )

    def upsert_sponsorship(self, sponsorship: Sponsorship) -> None:
        created_at = sponsorship.created_at or datetime.now(timezone.utc)
        self._conn.execute(
            f"""
            INSERT OR REPLACE INTO sponsorships ({_SPONSORSHIP_COLUMNS})
            VALUES ({_placeholders(9)})
            """,
            [
                sponsorship.id,
                sponsorship.venue_id,
                sponsorship.sponsor_id,
                sponsorship.tier.value,
                sponsorship.status.value,
                _to_db_ts(sponsorship.start_at),
                _to_db_ts(sponsorship.end_at),
                json.dumps(
                    sponsorship.boost_policy.model_dump(mode="json", exclude_none=True),
                    sort_keys=True,
                ),
                _to_db_ts(created_at),
            ],
        )

    def add_audit_entry(self, entry: SponsorshipAuditEntry) -> None:
        self._conn.execute(
            """
            INSERT INTO sponsorship_audit_log (
                id, sponsorship_id, action, reason, actor, metadata_json, created_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                entry.id,
                entry.sponsorship_id,
                entry.action.value,
                entry.reason,
                entry.actor,
                json.dumps(entry.metadata, sort_keys=True, default=str),
                _to_db_ts(entry.created_at),
            ],
        )

    # -- reads ----------------------------------------------------------------

    def find_active_venues(
        self,
        *,
        bounds: BoundingBox,
        category: BusinessCategory | None,
        limit: int,
        now: datetime,
    ) -> list[VenueListing]:
        sql = f"""
            SELECT {_VENUE_COLUMNS}
            FROM venues
            WHERE status = ?
              AND latitude BETWEEN ? AND ?
              AND longitude BETWEEN ? AND ?
        """
        params: list[Any] = [
            VenueStatus.ACTIVE.value,
            bounds.min_lat,
            bounds.max_lat,
            bounds.min_lng,
            bounds.max_lng,
        ]
        if category is not None:
            sql += " AND category = ?"
            params.append(category.value)
        sql += " ORDER BY id ASC LIMIT ?"
        params.append(max(int(limit), 1))

        venues = [self._row_to_venue(row) for row in self._conn.execute(sql, params).fetchall()]
        return self._attach_relations(venues, now=now)

    def get_venue(self, venue_id: str, *, now: datetime) -> VenueListing | None:
        row = self._conn.execute(
            f"SELECT {_VENUE_COLUMNS} FROM venues WHERE id = ? LIMIT 1",
            [venue_id],
        ).fetchone()
        if row is None:
            return None
        listings = self._attach_relations([self._row_to_venue(row)], now=now)
        return listings[0]

    def get_sponsorship(self, sponsorship_id: str) -> Sponsorship | None:
        row = self._conn.execute(
            f"SELECT {_SPONSORSHIP_COLUMNS} FROM sponsorships WHERE id = ? LIMIT 1",
            [sponsorship_id],
        ).fetchone()
        if row is None:
            return None
        return self._row_to_sponsorship(row)

    def list_sponsorships(
        self,
        *,
        status: SponsorshipStatus | None = None,
        venue_id: str | None = None,
        limit: int = 100,
    ) -> list[Sponsorship]:
        sql = f"SELECT {_SPONSORSHIP_COLUMNS} FROM sponsorships WHERE 1 = 1"
        params: list[Any] = []
        if status is not None:
            sql += " AND status = ?"
            params.append(status.value)
        if venue_id is not None:
            sql += " AND venue_id = ?"
            params.append(venue_id)
        sql += " ORDER BY created_at DESC, id ASC LIMIT ?"
        params.append(max(int(limit), 1))
        rows = self._conn.execute(sql, params).fetchall()
        return [self._row_to_sponsorship(row) for row in rows]

    def list_audit_entries(self, sponsorship_id: str) -> list[SponsorshipAuditEntry]:
        rows = self._conn.execute(
            """
            SELECT id, sponsorship_id, action, reason, actor, metadata_json, created_at
            FROM sponsorship_audit_log
            WHERE sponsorship_id = ?
            ORDER BY created_at ASC, seq ASC
            """,
            [sponsorship_id],
        ).fetchall()
        return [
            SponsorshipAuditEntry(
                id=str(row[0]),
                sponsorship_id=str(row[1]),
                action=str(row[2]),
                reason=str(row[3]),
                actor=row[4],
                metadata=json.loads(str(row[5])),
                created_at=_from_db_ts(row[6]),
            )
            for row in rows
        ]

    def count_venues(self) -> int:
        row = self._conn.execute("SELECT COUNT(*) FROM venues").fetchone()
        return int(row[0]) if row else 0

    # -- helpers --------------------------------------------------------------

    def _attach_relations(self, venues: list[Venue], *, now: datetime) -> list[VenueListing]:
        if not venues:
            return []
        venue_ids = [venue.id for venue in venues]
        db_now = _to_db_ts(now)

        verification_rows = self._conn.execute(
            f"""
            SELECT id, venue_id, tier, verified_at, expires_at, method, evidence_refs_json
            FROM (
                SELECT
                    *,
                    row_number() OVER (
                        PARTITION BY venue_id ORDER BY verified_at DESC, id ASC
                    ) AS recency
                FROM place_verifications
                WHERE venue_id IN ({_placeholders(len(venue_ids))})
                  AND (expires_at IS NULL OR expires_at > ?)
            ) recent
            WHERE recency <= ?
            ORDER BY venue_id, verified_at DESC, id ASC
            """,
            [*venue_ids, db_now, RECENT_VERIFICATIONS_PER_VENUE],
        ).fetchall()

        sponsorship_rows = self._conn.execute(
            f"""
            SELECT {_SPONSORSHIP_COLUMNS}
            FROM sponsorships
            WHERE venue_id IN ({_placeholders(len(venue_ids))})
              AND status = ?
              AND start_at <= ?
              AND (end_at IS NULL OR end_at >= ?)
            ORDER BY venue_id, start_at ASC, id ASC
            """,
            [*venue_ids, SponsorshipStatus.ACTIVE.value, db_now, db_now],
        ).fetchall()

        verifications: dict[str, list[VerificationRecord]] = {}
        for row in verification_rows:
            record = self._row_to_verification(row)
            verifications.setdefault(record.venue_id, []).append(record)

        sponsorships: dict[str, list[Sponsorship]] = {}
        for row in sponsorship_rows:
            sponsorship = self._row_to_sponsorship(row)
            sponsorships.setdefault(sponsorship.venue_id, []).append(sponsorship)

        return [
            VenueListing(
                venue=venue,
                verifications=verifications.get(venue.id, []),
                sponsorships=sponsorships.get(venue.id, []),
            )
            for venue in venues
        ]

    @staticmethod
    def _row_to_venue(row: tuple[Any, ...]) -> Venue:
        accessibility = None
        if row[10] is not None:
            accessibility = AccessibilityProfile.model_validate(json.loads(str(row[10])))
        return Venue(
            id=str(row[0]),
            name=str(row[1]),
            description=row[2],
            category=BusinessCategory(str(row[3])),
            latitude=float(row[4]),
            longitude=float(row[5]),
            address=str(row[6]),
            city=str(row[7]),
            state=str(row[8]),
            postcode=str(row[9]),
            accessibility=accessibility,
            amenities=list(json.loads(str(row[11]))),
            accepts_ndis=bool(row[12]),
            verified=bool(row[13]),
            verified_at=_from_db_ts(row[14]),
            accessibility_confidence=float(row[15]) if row[15] is not None else None,
            community_score=float(row[16]) if row[16] is not None else None,
            logo_url=row[17],
            status=VenueStatus(str(row[18])),
        )

    @staticmethod
    def _row_to_verification(row: tuple[Any, ...]) -> VerificationRecord:
        return VerificationRecord(
            id=str(row[0]),
            venue_id=str(row[1]),
            tier=str(row[2]),
            verified_at=_from_db_ts(row[3]),
            expires_at=_from_db_ts(row[4]),
            method=row[5],
            evidence_refs=json.loads(str(row[6])) if row[6] is not None else None,
        )

    @staticmethod
    def _row_to_sponsorship(row: tuple[Any, ...]) -> Sponsorship:
        return Sponsorship(
            id=str(row[0]),
            venue_id=str(row[1]),
            sponsor_id=row[2],
            tier=str(row[3]),
            status=str(row[4]),
            start_at=_from_db_ts(row[5]),
            end_at=_from_db_ts(row[6]),
            boost_policy=BoostPolicy.model_validate(json.loads(str(row[7]))),
            created_at=_from_db_ts(row[8]),
        )
