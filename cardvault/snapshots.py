"""Profile, snapshot and card asset storage.

Snapshots are append-only: each capture inserts a new row and no row is
ever updated. Profiles are upserted on every capture.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from cardvault.models import CardAsset, KPIs, Profile, Score, Snapshot
from cardvault.scoring.tags import as_utc

logger = logging.getLogger(__name__)


class SnapshotNotFoundError(LookupError):
    """No snapshot with the given id."""


class UnknownProfileError(LookupError):
    """No stored profile with the given username."""


# ── Profiles ────────────────────────────────────────────────────


def upsert_profile(conn: sqlite3.Connection, profile: Profile) -> Profile:
    """Insert a profile or refresh the stored one's details.

    The id and created_at of an existing row are kept.

    Returns:
        The stored profile.
    """
    conn.execute(
        """INSERT INTO profiles
           (id, platform, username, display_name, avatar_url,
            verified, bio, created_at, last_fetched_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
           ON CONFLICT(platform, username) DO UPDATE SET
             display_name = excluded.display_name,
             avatar_url = excluded.avatar_url,
             verified = excluded.verified,
             bio = excluded.bio,
             last_fetched_at = excluded.last_fetched_at""",
        (
            profile.id,
            profile.platform,
            profile.username,
            profile.display_name,
            profile.avatar_url,
            None if profile.verified is None else int(profile.verified),
            profile.bio,
            profile.created_at,
            profile.last_fetched_at,
        ),
    )
    row = conn.execute(
        "SELECT * FROM profiles WHERE platform = ? AND username = ?",
        (profile.platform, profile.username),
    ).fetchone()
    return Profile.from_row(row)


def get_profile(conn: sqlite3.Connection, profile_id: str) -> Optional[Profile]:
    row = conn.execute("SELECT * FROM profiles WHERE id = ?", (profile_id,)).fetchone()
    return Profile.from_row(row) if row else None


def get_profile_by_username(
    conn: sqlite3.Connection,
    username: str,
    platform: str = "x",
) -> Optional[Profile]:
    row = conn.execute(
        "SELECT * FROM profiles WHERE platform = ? AND username = ?",
        (platform, username.lower()),
    ).fetchone()
    return Profile.from_row(row) if row else None


# ── Snapshots ───────────────────────────────────────────────────


def get_snapshot(conn: sqlite3.Connection, snapshot_id: str) -> Snapshot:
    """Load a snapshot by id.

    Raises:
        SnapshotNotFoundError: If it does not exist.
    """
    row = conn.execute("SELECT * FROM snapshots WHERE id = ?", (snapshot_id,)).fetchone()
    if row is None:
        raise SnapshotNotFoundError(snapshot_id)
    return Snapshot.from_row(row)


def get_latest_snapshot(
    conn: sqlite3.Connection,
    profile_id: str,
    as_of: Optional[datetime] = None,
) -> Optional[Snapshot]:
    """Most recent snapshot of a profile by capture time, None if it has none.

    Args:
        conn: Active database connection.
        profile_id: Profile to look up.
        as_of: If given, only snapshots captured at or before this instant
            count. Naive datetimes are taken as UTC.
    """
    if as_of is None:
        row = conn.execute(
            """SELECT * FROM snapshots WHERE profile_id = ?
               ORDER BY captured_at DESC, card_number DESC LIMIT 1""",
            (profile_id,),
        ).fetchone()
    else:
        row = conn.execute(
            """SELECT * FROM snapshots WHERE profile_id = ? AND captured_at <= ?
               ORDER BY captured_at DESC, card_number DESC LIMIT 1""",
            (profile_id, as_utc(as_of).isoformat()),
        ).fetchone()
    return Snapshot.from_row(row) if row else None


def list_profile_snapshots(conn: sqlite3.Connection, profile_id: str) -> list[Snapshot]:
    """All snapshots of a profile, oldest first."""
    rows = conn.execute(
        "SELECT * FROM snapshots WHERE profile_id = ? ORDER BY captured_at, card_number",
        (profile_id,),
    ).fetchall()
    return [Snapshot.from_row(r) for r in rows]


def insert_snapshot(
    conn: sqlite3.Connection,
    profile_id: str,
    captured_at: datetime,
    kpis: KPIs,
    score: Score,
    provenance: dict,
    snapshot_id: Optional[str] = None,
) -> Snapshot:
    """Append a snapshot, allocating the next card number.

    The card number is computed inside the INSERT so concurrent writers
    on the same database cannot hand out the same edition number.

    captured_at is stored as UTC; naive datetimes are taken as UTC.

    Returns:
        The stored snapshot.
    """
    snapshot_id = snapshot_id or str(uuid4())
    now = datetime.now(timezone.utc).isoformat()

    conn.execute(
        """INSERT INTO snapshots
           (id, profile_id, captured_at, kpis, score, score_value,
            provenance, card_number, created_at)
           VALUES (?, ?, ?, ?, ?, ?, ?,
                   (SELECT COALESCE(MAX(card_number), 0) + 1 FROM snapshots), ?)""",
        (
            snapshot_id,
            profile_id,
            as_utc(captured_at).isoformat(),
            kpis.model_dump_json(by_alias=True),
            score.model_dump_json(by_alias=True),
            score.value,
            json.dumps(provenance),
            now,
        ),
    )
    logger.debug("Inserted snapshot %s for profile %s", snapshot_id, profile_id)
    return get_snapshot(conn, snapshot_id)


# ── Card assets ─────────────────────────────────────────────────


def record_asset(conn: sqlite3.Connection, asset: CardAsset) -> CardAsset:
    """Store a rendered asset, replacing an earlier render of the same format."""
    conn.execute(
        """INSERT INTO card_assets
           (id, snapshot_id, format, url, width, height, created_at)
           VALUES (?, ?, ?, ?, ?, ?, ?)
           ON CONFLICT(snapshot_id, format) DO UPDATE SET
             url = excluded.url,
             width = excluded.width,
             height = excluded.height,
             created_at = excluded.created_at""",
        (
            asset.id,
            asset.snapshot_id,
            asset.format,
            asset.url,
            asset.width,
            asset.height,
            asset.created_at,
        ),
    )
    conn.commit()
    row = conn.execute(
        "SELECT * FROM card_assets WHERE snapshot_id = ? AND format = ?",
        (asset.snapshot_id, asset.format),
    ).fetchone()
    return CardAsset(**dict(row))


def list_assets(conn: sqlite3.Connection, snapshot_id: str) -> list[CardAsset]:
    rows = conn.execute(
        "SELECT * FROM card_assets WHERE snapshot_id = ? ORDER BY format DESC",
        (snapshot_id,),
    ).fetchall()
    return [CardAsset(**dict(r)) for r in rows]
