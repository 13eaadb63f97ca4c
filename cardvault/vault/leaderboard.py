"""Leaderboard ranking.

Ranks profiles by their best snapshot inside a time window: either the
last N days or one calendar UTC month. Ties go to the earlier capture.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel

from cardvault.models import CardAsset, Profile, Snapshot
from cardvault.snapshots import get_profile, list_assets

logger = logging.getLogger(__name__)


class LeaderboardItem(BaseModel):
    rank: int
    total: int
    snapshot: Snapshot
    profile: Profile
    assets: list[CardAsset]


def parse_month(value: str) -> tuple[datetime, datetime]:
    """Turn "YYYY-MM" into the [start, end) UTC instants of that month.

    Raises:
        ValueError: If the value is not a valid year-month.
    """
    try:
        start = datetime.strptime(value, "%Y-%m").replace(tzinfo=timezone.utc)
    except ValueError as e:
        raise ValueError(f"month must look like YYYY-MM, got '{value}'") from e
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def rank_window(
    conn: sqlite3.Connection,
    start: datetime,
    end: datetime,
    limit: int,
) -> list[LeaderboardItem]:
    """Rank profiles by best score captured in [start, end).

    Args:
        conn: Active database connection.
        start: Inclusive window start.
        end: Exclusive window end.
        limit: Max items to return.

    Returns:
        Items ordered by rank (1 = highest score).
    """
    rows = conn.execute(
        """SELECT * FROM snapshots
           WHERE captured_at >= ? AND captured_at < ?
           ORDER BY score_value DESC, captured_at ASC, card_number ASC""",
        (start.isoformat(), end.isoformat()),
    ).fetchall()

    best: list[Snapshot] = []
    seen: set[str] = set()
    for row in rows:
        if row["profile_id"] in seen:
            continue
        seen.add(row["profile_id"])
        best.append(Snapshot.from_row(row))

    total = len(best)
    items = []
    for rank, snapshot in enumerate(best[:limit], start=1):
        items.append(LeaderboardItem(
            rank=rank,
            total=total,
            snapshot=snapshot,
            profile=get_profile(conn, snapshot.profile_id),
            assets=list_assets(conn, snapshot.id),
        ))
    logger.debug("Ranked %d profiles between %s and %s", total, start, end)
    return items


def get_leaderboard(
    conn: sqlite3.Connection,
    days: int = 7,
    limit: int = 24,
    now: Optional[datetime] = None,
) -> list[LeaderboardItem]:
    """Top profiles over the trailing `days` days."""
    if days < 1:
        raise ValueError("days must be at least 1")
    # Stored instants are UTC ISO strings; compare in the same form
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return rank_window(conn, now - timedelta(days=days), now + timedelta(microseconds=1), limit)


def get_monthly_leaderboard(
    conn: sqlite3.Connection,
    month: str,
    limit: int = 24,
) -> list[LeaderboardItem]:
    """Top profiles for one calendar UTC month ("YYYY-MM")."""
    start, end = parse_month(month)
    return rank_window(conn, start, end, limit)
