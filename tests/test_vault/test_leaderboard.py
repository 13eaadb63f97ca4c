"""Tests for leaderboard ranking."""

from datetime import datetime, timedelta, timezone

import pytest

from cardvault.db import get_initialized_connection
from cardvault.models import KPIs, Profile
from cardvault.scoring.score import social_score_v1
from cardvault.snapshots import insert_snapshot, upsert_profile
from cardvault.vault.leaderboard import get_leaderboard, get_monthly_leaderboard, parse_month

UTC = timezone.utc
NOW = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def conn(tmp_path):
    conn = get_initialized_connection(str(tmp_path / "test.db"))
    yield conn
    conn.close()


def _kpis(followers: int) -> KPIs:
    return KPIs(followers=followers, following=100, listed=followers // 100,
                avg_eng_per_post=followers // 50, velocity_7d=10)


def _capture(conn, username, followers, when):
    profile = upsert_profile(conn, Profile(username=username))
    kpis = _kpis(followers)
    snapshot = insert_snapshot(
        conn,
        profile_id=profile.id,
        captured_at=when,
        kpis=kpis,
        score=social_score_v1(kpis),
        provenance={"tags": []},
    )
    conn.commit()
    return snapshot


def test_ranked_by_score(conn):
    _capture(conn, "small", 1_000, NOW - timedelta(days=1))
    _capture(conn, "big", 5_000_000, NOW - timedelta(days=2))
    _capture(conn, "mid", 80_000, NOW - timedelta(days=3))

    items = get_leaderboard(conn, days=7, now=NOW)

    assert [i.profile.username for i in items] == ["big", "mid", "small"]
    assert [i.rank for i in items] == [1, 2, 3]
    assert all(i.total == 3 for i in items)


def test_best_snapshot_per_profile(conn):
    _capture(conn, "jack", 1_000, NOW - timedelta(days=1))
    best = _capture(conn, "jack", 2_000_000, NOW - timedelta(days=4))
    _capture(conn, "nasa", 50_000, NOW - timedelta(days=2))

    items = get_leaderboard(conn, days=7, now=NOW)

    assert len(items) == 2
    assert items[0].snapshot.id == best.id


def test_window_excludes_old_snapshots(conn):
    _capture(conn, "old", 9_000_000, NOW - timedelta(days=8))
    _capture(conn, "new", 1_000, NOW - timedelta(hours=1))

    items = get_leaderboard(conn, days=7, now=NOW)
    assert [i.profile.username for i in items] == ["new"]


def test_capture_at_now_included(conn):
    _capture(conn, "jack", 1_000, NOW)
    assert len(get_leaderboard(conn, days=1, now=NOW)) == 1


def test_ties_go_to_earlier_capture(conn):
    late = _capture(conn, "late", 40_000, NOW - timedelta(days=1))
    early = _capture(conn, "early", 40_000, NOW - timedelta(days=3))

    items = get_leaderboard(conn, days=7, now=NOW)
    assert [i.snapshot.id for i in items] == [early.id, late.id]


def test_limit_keeps_total(conn):
    for n in range(5):
        _capture(conn, f"user_{n}", 1_000 * 10 ** n, NOW - timedelta(hours=n + 1))

    items = get_leaderboard(conn, days=7, limit=2, now=NOW)
    assert len(items) == 2
    assert items[0].total == 5


def test_days_must_be_positive(conn):
    with pytest.raises(ValueError):
        get_leaderboard(conn, days=0, now=NOW)


def test_monthly_window(conn):
    _capture(conn, "may", 9_000_000, datetime(2024, 5, 31, 23, 59, tzinfo=UTC))
    _capture(conn, "june_first", 1_000, datetime(2024, 6, 1, 0, 0, tzinfo=UTC))
    _capture(conn, "june_last", 2_000, datetime(2024, 6, 30, 23, 59, tzinfo=UTC))
    _capture(conn, "july", 9_000_000, datetime(2024, 7, 1, 0, 0, tzinfo=UTC))

    items = get_monthly_leaderboard(conn, "2024-06")
    assert {i.profile.username for i in items} == {"june_first", "june_last"}


def test_parse_month():
    assert parse_month("2024-02") == (
        datetime(2024, 2, 1, tzinfo=UTC),
        datetime(2024, 3, 1, tzinfo=UTC),
    )
    assert parse_month("2023-12")[1] == datetime(2024, 1, 1, tzinfo=UTC)


@pytest.mark.parametrize("value", ["2024", "2024-13", "June", "2024/06", ""])
def test_parse_month_rejects(value):
    with pytest.raises(ValueError):
        parse_month(value)
