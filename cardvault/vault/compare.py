"""Side-by-side comparison of two snapshots."""

from __future__ import annotations

import sqlite3

from cardvault.scoring.constants import KPI_LABELS
from cardvault.scoring.score import compute_sub_scores
from cardvault.snapshots import get_snapshot


def compare_snapshots(conn: sqlite3.Connection, a_id: str, b_id: str) -> dict:
    """Compare snapshot B against snapshot A.

    Deltas are B minus A, so a positive score delta means B scored higher.

    Raises:
        SnapshotNotFoundError: If either snapshot does not exist.
    """
    a = get_snapshot(conn, a_id)
    b = get_snapshot(conn, b_id)

    sub_a = compute_sub_scores(a.kpis)
    sub_b = compute_sub_scores(b.kpis)

    return {
        "a": a,
        "b": b,
        "delta": {
            "score": b.score.value - a.score.value,
            "tier_changed": a.score.tier != b.score.tier,
            "kpis": {
                key: getattr(b.kpis, key) - getattr(a.kpis, key)
                for key, _ in KPI_LABELS
            },
            "sub_scores": {
                name: round(getattr(sub_b, name) - getattr(sub_a, name), 6)
                for name in ("influence", "credibility", "quality", "momentum", "health")
            },
        },
    }
