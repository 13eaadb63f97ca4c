"""Provenance tags for snapshots.

genesis: first snapshot ever recorded for a profile.
foil: score jumped by FOIL_SCORE_JUMP or more since the previous snapshot,
or the snapshot was captured on the last UTC day of a month. Both triggers
share the one tag.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from cardvault.models import Score
from cardvault.scoring.constants import FOIL_SCORE_JUMP, TAG_FOIL, TAG_GENESIS


def as_utc(moment: datetime) -> datetime:
    """Naive datetimes are taken to already be UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def is_month_end(captured_at: datetime) -> bool:
    """True if captured_at falls on the last calendar day of its UTC month."""
    day = as_utc(captured_at).date()
    return (day + timedelta(days=1)).month != day.month


def compute_tags(
    score: Score,
    previous_score: Optional[int],
    is_first_snapshot: bool,
    captured_at: datetime,
) -> list[str]:
    """Determine provenance tags for a snapshot.

    Args:
        score: Score of the snapshot being tagged.
        previous_score: Value of the preceding snapshot, None if there is none.
        is_first_snapshot: Whether this is the profile's first snapshot.
        captured_at: Capture instant.

    Returns:
        Tags in stable order: genesis first, then foil.
    """
    tags: list[str] = []

    if is_first_snapshot:
        tags.append(TAG_GENESIS)

    delta = score.value - previous_score if previous_score is not None else 0
    if delta >= FOIL_SCORE_JUMP:
        tags.append(TAG_FOIL)

    if is_month_end(captured_at) and TAG_FOIL not in tags:
        tags.append(TAG_FOIL)

    return tags
