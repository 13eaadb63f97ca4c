"""Social Card Vault database module.

SQLite connection management with WAL mode for concurrent reads.
Provides connection factory and schema initialization.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path


# All CREATE TABLE statements for the card vault schema.
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS profiles (
    id TEXT PRIMARY KEY,
    platform TEXT NOT NULL,
    username TEXT NOT NULL,
    display_name TEXT,
    avatar_url TEXT,
    verified INTEGER,
    bio TEXT,
    created_at TEXT NOT NULL,
    last_fetched_at TEXT,
    UNIQUE(platform, username)
);

CREATE TABLE IF NOT EXISTS snapshots (
    id TEXT PRIMARY KEY,
    profile_id TEXT NOT NULL REFERENCES profiles(id),
    captured_at TEXT NOT NULL,
    kpis TEXT NOT NULL,
    score TEXT NOT NULL,
    score_value INTEGER NOT NULL,
    provenance TEXT NOT NULL,
    card_number INTEGER UNIQUE NOT NULL,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_snapshots_profile_captured
    ON snapshots(profile_id, captured_at);
CREATE INDEX IF NOT EXISTS idx_snapshots_captured ON snapshots(captured_at);

CREATE TABLE IF NOT EXISTS card_assets (
    id TEXT PRIMARY KEY,
    snapshot_id TEXT NOT NULL REFERENCES snapshots(id),
    format TEXT NOT NULL,
    url TEXT NOT NULL,
    width INTEGER,
    height INTEGER,
    created_at TEXT NOT NULL,
    UNIQUE(snapshot_id, format)
);

CREATE TABLE IF NOT EXISTS vault_entries (
    id TEXT PRIMARY KEY,
    owner_user_id TEXT,
    owner_profile_id TEXT REFERENCES profiles(id),
    snapshot_id TEXT NOT NULL REFERENCES snapshots(id),
    visibility TEXT NOT NULL DEFAULT 'public',
    tags TEXT,
    created_at TEXT NOT NULL,
    UNIQUE(owner_user_id, snapshot_id)
);

CREATE INDEX IF NOT EXISTS idx_vault_entries_profile ON vault_entries(owner_profile_id);

CREATE TABLE IF NOT EXISTS audit_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp TEXT NOT NULL,
    component TEXT NOT NULL,
    action TEXT NOT NULL,
    details TEXT,
    success INTEGER DEFAULT 1
);
"""


def get_connection(db_path: str | Path = "data/cardvault.db") -> sqlite3.Connection:
    """Create a SQLite connection with WAL mode and recommended pragmas.

    Args:
        db_path: Path to the SQLite database file.

    Returns:
        Configured sqlite3.Connection with WAL mode enabled.
    """
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    # FastAPI runs sync routes in a threadpool
    conn = sqlite3.connect(str(path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.execute("PRAGMA busy_timeout=5000")
    return conn


def init_schema(conn: sqlite3.Connection) -> None:
    """Create all tables if they don't exist.

    Args:
        conn: Active SQLite connection.
    """
    conn.executescript(SCHEMA_SQL)
    conn.commit()


def get_initialized_connection(
    db_path: str | Path = "data/cardvault.db",
) -> sqlite3.Connection:
    """Get a connection with schema already initialized.

    Args:
        db_path: Path to the SQLite database file.

    Returns:
        Configured and initialized sqlite3.Connection.
    """
    conn = get_connection(db_path)
    init_schema(conn)
    return conn
