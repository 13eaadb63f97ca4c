"""Tests for the audit trail."""

import pytest

from cardvault.db import get_initialized_connection
from cardvault.safety.audit import log, query


@pytest.fixture
def conn(tmp_path):
    db_path = str(tmp_path / "test.db")
    return get_initialized_connection(db_path)


def test_log_returns_id(conn):
    entry_id = log(conn, "capture", "snapshot_created")
    assert isinstance(entry_id, int)
    assert entry_id > 0


def test_log_10_entries(conn):
    for i in range(10):
        log(conn, component=f"comp_{i}", action=f"action_{i}", details={"index": i})

    assert len(query(conn, limit=100)) == 10


def test_query_newest_first(conn):
    log(conn, "capture", "first")
    log(conn, "capture", "second")
    assert [e["action"] for e in query(conn)] == ["second", "first"]


def test_query_by_component(conn):
    log(conn, "capture", "snapshot_created")
    log(conn, "vault", "save")
    log(conn, "capture", "fetch_failed")

    results = query(conn, component="capture")
    assert len(results) == 2
    assert all(r["component"] == "capture" for r in results)


def test_query_by_action(conn):
    log(conn, "render", "card_rendered")
    log(conn, "render", "card_failed", success=False)
    assert len(query(conn, action="card_failed")) == 1


def test_query_success_only(conn):
    log(conn, "render", "ok", success=True)
    log(conn, "render", "fail", success=False)

    results = query(conn, success_only=True)
    assert len(results) == 1
    assert results[0]["success"] == 1


def test_details_round_trip(conn):
    log(conn, "capture", "snapshot_created", details={"score": 69, "tags": ["genesis"]})
    assert query(conn)[0]["details"] == {"score": 69, "tags": ["genesis"]}


def test_log_without_details(conn):
    log(conn, "vault", "save")
    assert query(conn)[0]["details"] is None


def test_write_failure_returns_none(conn):
    """A broken connection is logged, not raised."""
    conn.close()
    assert log(conn, "capture", "snapshot_created") is None
