"""Audit trail for captures, renders and vault changes.

Every state-changing action lands in the audit_log table so a card's
history can be reconstructed after the fact.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)


def log(
    conn: sqlite3.Connection,
    component: str,
    action: str,
    details: Optional[dict[str, Any]] = None,
    success: bool = True,
) -> Optional[int]:
    """Write an entry to the audit log.

    Non-blocking: catches and logs DB errors instead of raising.

    Args:
        conn: Active database connection.
        component: System component (e.g., "capture", "render", "vault").
        action: Action performed (e.g., "snapshot_created", "save").
        details: Optional dict of extra context (serialized to JSON).
        success: Whether the action succeeded.

    Returns:
        The audit log entry ID, or None if write failed.
    """
    now = datetime.now(timezone.utc).isoformat()
    details_json = json.dumps(details, default=str) if details else None

    try:
        cursor = conn.execute(
            """INSERT INTO audit_log
               (timestamp, component, action, details, success)
               VALUES (?, ?, ?, ?, ?)""",
            (now, component, action, details_json, 1 if success else 0),
        )
        conn.commit()
        return cursor.lastrowid
    except sqlite3.Error as e:
        logger.error("Audit log write failed: %s", e)
        return None


def query(
    conn: sqlite3.Connection,
    component: Optional[str] = None,
    action: Optional[str] = None,
    success_only: bool = False,
    limit: int = 100,
) -> list[dict]:
    """Query audit log entries, newest first.

    Args:
        conn: Active database connection.
        component: Filter by component name.
        action: Filter by action name.
        success_only: If True, only return successful entries.
        limit: Max number of entries to return.

    Returns:
        List of audit log entries as dicts, details decoded.
    """
    conditions = []
    params: list[Any] = []

    if component:
        conditions.append("component = ?")
        params.append(component)
    if action:
        conditions.append("action = ?")
        params.append(action)
    if success_only:
        conditions.append("success = 1")

    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    params.append(limit)

    rows = conn.execute(
        f"SELECT * FROM audit_log {where} ORDER BY id DESC LIMIT ?",
        params,
    ).fetchall()

    entries = []
    for row in rows:
        entry = dict(row)
        entry["details"] = json.loads(entry["details"]) if entry["details"] else None
        entries.append(entry)
    return entries
