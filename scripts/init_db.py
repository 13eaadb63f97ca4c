"""Create or upgrade the Social Card Vault database and report its state.

Applies the schema (idempotent) and prints how many profiles, snapshots,
card assets and vault entries the database holds, plus the highest edition
number minted so far.

Usage:
    python scripts/init_db.py
    python scripts/init_db.py --db-path /custom/path.db
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from cardvault.config import get_settings
from cardvault.db import get_initialized_connection
from cardvault.scoring.constants import FORMULA_VERSION

logger = logging.getLogger("init_db")

COUNTED_TABLES = ("profiles", "snapshots", "card_assets", "vault_entries")


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Initialize the card vault database")
    parser.add_argument(
        "--db-path",
        default=settings.db_path,
        help=f"Path to SQLite database (default: {settings.db_path})",
    )
    args = parser.parse_args()

    logging.basicConfig(level=settings.log_level, format="%(levelname)s: %(message)s")

    conn = get_initialized_connection(args.db_path)
    try:
        counts = {
            table: conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
            for table in COUNTED_TABLES
        }
        last_edition = conn.execute("SELECT MAX(card_number) FROM snapshots").fetchone()[0]
    finally:
        conn.close()

    logger.info("Schema applied to %s", args.db_path)
    print(f"Database: {args.db_path}")
    print(f"Formula:  {FORMULA_VERSION}")
    for table, count in counts.items():
        print(f"  {table:<14} {count}")
    print(f"Last edition: #{last_edition}" if last_edition else "Last edition: none minted yet")


if __name__ == "__main__":
    main()
