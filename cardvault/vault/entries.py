"""Vault entries: snapshots saved by a user with a visibility level.

public   - listed in the profile's public vault
unlisted - reachable by card link, never listed
private  - only in the owner's own vault
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from cardvault.models import VISIBILITIES, CardAsset, Profile, Snapshot, VaultEntry, _utc_now
from cardvault.safety.audit import log as audit_log
from cardvault.snapshots import (
    UnknownProfileError,
    get_profile,
    get_profile_by_username,
    get_snapshot,
    list_assets,
)

logger = logging.getLogger(__name__)


class VaultCard(BaseModel):
    """A snapshot as shown in a vault listing."""

    model_config = ConfigDict(populate_by_name=True)

    vault_entry: Optional[VaultEntry] = Field(default=None, alias="vaultEntry")
    snapshot: Snapshot
    profile: Optional[Profile] = None
    assets: list[CardAsset]


def save_to_vault(
    conn: sqlite3.Connection,
    snapshot_id: str,
    visibility: str,
    owner_user_id: str,
) -> VaultEntry:
    """Save a snapshot to a user's vault, or change its visibility.

    Tags are copied from the snapshot's provenance at save time.

    Args:
        conn: Active database connection.
        snapshot_id: Snapshot to save.
        visibility: public, private or unlisted.
        owner_user_id: The saving user.

    Returns:
        The stored vault entry.

    Raises:
        ValueError: If visibility is not recognized.
        SnapshotNotFoundError: If the snapshot does not exist.
    """
    if visibility not in VISIBILITIES:
        raise ValueError(f"visibility must be one of {sorted(VISIBILITIES)}, got '{visibility}'")

    snapshot = get_snapshot(conn, snapshot_id)
    conn.execute(
        """INSERT INTO vault_entries
           (id, owner_user_id, owner_profile_id, snapshot_id, visibility, tags, created_at)
           VALUES (?, ?, ?, ?, ?, ?, ?)
           ON CONFLICT(owner_user_id, snapshot_id) DO UPDATE SET
             visibility = excluded.visibility""",
        (
            str(uuid4()),
            owner_user_id,
            snapshot.profile_id,
            snapshot.id,
            visibility,
            json.dumps(snapshot.get_tags()),
            _utc_now(),
        ),
    )
    conn.commit()

    row = conn.execute(
        "SELECT * FROM vault_entries WHERE owner_user_id = ? AND snapshot_id = ?",
        (owner_user_id, snapshot.id),
    ).fetchone()
    entry = VaultEntry.from_row(row)

    logger.info("Saved snapshot %s to vault of %s (%s)", snapshot.id, owner_user_id, visibility)
    audit_log(conn, "vault", "save", {
        "vault_entry_id": entry.id,
        "snapshot_id": snapshot.id,
        "visibility": visibility,
    })
    return entry


def _card_for(conn: sqlite3.Connection, entry: Optional[VaultEntry], snapshot: Snapshot) -> VaultCard:
    return VaultCard(
        vault_entry=entry,
        snapshot=snapshot,
        profile=get_profile(conn, snapshot.profile_id),
        assets=list_assets(conn, snapshot.id),
    )


def list_my_vault(conn: sqlite3.Connection, owner_user_id: str) -> list[VaultCard]:
    """All of a user's saved cards, every visibility, newest save first."""
    rows = conn.execute(
        """SELECT * FROM vault_entries WHERE owner_user_id = ?
           ORDER BY created_at DESC""",
        (owner_user_id,),
    ).fetchall()

    cards = []
    for row in rows:
        entry = VaultEntry.from_row(row)
        cards.append(_card_for(conn, entry, get_snapshot(conn, entry.snapshot_id)))
    return cards


def get_public_vault(conn: sqlite3.Connection, username: str) -> tuple[Profile, list[VaultCard]]:
    """A profile's publicly saved cards, newest capture first.

    A snapshot saved publicly by several users appears once.

    Raises:
        UnknownProfileError: If no profile with that username is stored.
    """
    profile = get_profile_by_username(conn, username.lstrip("@"))
    if profile is None:
        raise UnknownProfileError(username)

    rows = conn.execute(
        """SELECT v.* FROM vault_entries v
           JOIN snapshots s ON s.id = v.snapshot_id
           WHERE v.owner_profile_id = ? AND v.visibility = 'public'
           ORDER BY s.captured_at DESC, v.created_at""",
        (profile.id,),
    ).fetchall()

    seen: set[str] = set()
    cards = []
    for row in rows:
        entry = VaultEntry.from_row(row)
        if entry.snapshot_id in seen:
            continue
        seen.add(entry.snapshot_id)
        snapshot = get_snapshot(conn, entry.snapshot_id)
        cards.append(VaultCard(
            vault_entry=entry,
            snapshot=snapshot,
            profile=profile,
            assets=list_assets(conn, snapshot.id),
        ))
    return profile, cards
