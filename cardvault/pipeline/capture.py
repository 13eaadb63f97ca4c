"""Capture pipeline for Social Card Vault.

Turns a submitted handle into a minted card:
normalize → fetch metrics → score → previous snapshot → tags →
persist profile + snapshot → render card assets.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

import httpx
from pydantic import BaseModel

from cardvault.config import Settings
from cardvault.metrics.handles import normalize_username
from cardvault.metrics.provider import fetch_metrics
from cardvault.models import CardAsset, Profile, Snapshot
from cardvault.safety.audit import log as audit_log
from cardvault.scoring.format import short_id
from cardvault.scoring.score import social_score_v1
from cardvault.scoring.tags import as_utc, compute_tags
from cardvault.snapshots import (
    get_latest_snapshot,
    get_profile_by_username,
    insert_snapshot,
    upsert_profile,
)

logger = logging.getLogger(__name__)


class CaptureResult(BaseModel):
    """Everything minted by one capture."""

    profile: Profile
    snapshot: Snapshot
    assets: list[CardAsset]
    tags: list[str]


def capture_snapshot(
    conn: sqlite3.Connection,
    username: str,
    settings: Settings,
    captured_at: Optional[datetime] = None,
    client: Optional[httpx.Client] = None,
    render: bool = True,
) -> CaptureResult:
    """Capture, score and mint a new snapshot for a handle.

    Args:
        conn: Active database connection.
        username: Handle as submitted (may include "@").
        settings: Application settings.
        captured_at: Capture instant (defaults to now). Naive datetimes are
            taken as UTC. Must not precede the profile's latest snapshot.
        client: Optional httpx client for the live provider.
        render: If False, skip card rendering.

    Returns:
        CaptureResult with the stored profile, snapshot, assets and tags.

    Raises:
        ValueError: If the handle is invalid or captured_at is older than
            the profile's latest snapshot.
        MetricsProviderError: If the live provider fails.
        ProfileNotFoundError: If the handle does not exist.
    """
    handle = normalize_username(username)
    captured_at = as_utc(captured_at or datetime.now(timezone.utc))

    # No back-filling behind the latest snapshot
    existing = get_profile_by_username(conn, handle)
    latest = get_latest_snapshot(conn, existing.id) if existing else None
    if latest is not None and latest.captured_at_dt() > captured_at:
        raise ValueError(
            f"captured_at {captured_at.isoformat()} precedes the latest snapshot"
            f" of @{handle} ({latest.captured_at})"
        )

    try:
        fetched = fetch_metrics(handle, settings, client=client)
    except Exception as e:
        logger.error("Metric fetch failed for @%s: %s", handle, e)
        audit_log(conn, "capture", "fetch_failed", {"username": handle, "error": str(e)}, success=False)
        raise

    profile = upsert_profile(
        conn,
        Profile(
            platform=fetched.platform,
            username=handle,
            display_name=fetched.display_name,
            avatar_url=fetched.avatar_url,
            verified=fetched.verified,
            bio=fetched.bio,
            last_fetched_at=captured_at.isoformat(),
        ),
    )

    previous = get_latest_snapshot(conn, profile.id, as_of=captured_at)
    previous_score = previous.score.value if previous else None

    score = social_score_v1(fetched.kpis)
    tags = compute_tags(score, previous_score, previous is None, captured_at)

    snapshot_id = str(uuid4())
    provenance = {
        "tags": tags,
        "source": fetched.source,
        "formula_version": score.formula_version,
        "previous_score": previous_score,
        "previous_snapshot_id": previous.id if previous else None,
        "card_id": short_id(snapshot_id),
    }
    snapshot = insert_snapshot(
        conn,
        profile_id=profile.id,
        captured_at=captured_at,
        kpis=fetched.kpis,
        score=score,
        provenance=provenance,
        snapshot_id=snapshot_id,
    )
    conn.commit()

    logger.info(
        "Captured @%s: score %d (%s) tags=%s card #%d",
        handle, score.value, score.tier, tags, snapshot.card_number,
    )
    audit_log(conn, "capture", "snapshot_created", {
        "username": handle,
        "snapshot_id": snapshot.id,
        "score": score.value,
        "tier": score.tier,
        "tags": tags,
        "source": fetched.source,
    })

    assets: list[CardAsset] = []
    if render:
        # Snapshot is already committed; a render failure leaves it asset-less
        from cardvault.card.render import render_and_record

        try:
            assets = render_and_record(conn, snapshot, profile, settings)
            audit_log(conn, "render", "card_rendered", {
                "snapshot_id": snapshot.id,
                "formats": [a.format for a in assets],
            })
        except Exception as e:
            logger.error("Card render failed for snapshot %s: %s", snapshot.id, e)
            audit_log(conn, "render", "card_failed", {
                "snapshot_id": snapshot.id,
                "error": str(e),
            }, success=False)

    return CaptureResult(profile=profile, snapshot=snapshot, assets=assets, tags=tags)
