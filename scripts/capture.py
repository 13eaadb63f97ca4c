"""Capture one or more handles from the command line.

Runs the same pipeline as POST /api/capture-snapshot and prints the
score, tier, tags and card files for each handle.

Usage:
    python scripts/capture.py jack
    python scripts/capture.py @jack nasa --mock --no-render
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
from cardvault.metrics.provider import MetricsProviderError, ProfileNotFoundError
from cardvault.pipeline.capture import capture_snapshot
from cardvault.scoring.format import format_number

logger = logging.getLogger("capture")


def main() -> int:
    parser = argparse.ArgumentParser(description="Capture social score cards")
    parser.add_argument("usernames", nargs="+", help="Handles to capture")
    parser.add_argument("--db-path", default=None, help="Override database path")
    parser.add_argument("--mock", action="store_true", help="Force mock metrics")
    parser.add_argument("--no-render", action="store_true", help="Skip card rendering")
    args = parser.parse_args()

    overrides = {}
    if args.db_path:
        overrides["db_path"] = args.db_path
    if args.mock:
        overrides["metrics_mode"] = "mock"
    settings = get_settings(**overrides)

    logging.basicConfig(level=settings.log_level, format="%(levelname)s: %(message)s")

    conn = get_initialized_connection(settings.db_path)
    failures = 0
    try:
        for username in args.usernames:
            try:
                result = capture_snapshot(conn, username, settings, render=not args.no_render)
            except (ValueError, ProfileNotFoundError, MetricsProviderError) as e:
                logger.error("@%s: %s", username.lstrip("@"), e)
                failures += 1
                continue

            snap = result.snapshot
            print(
                f"@{result.profile.username:<16} {snap.score.value:>3} {snap.score.tier:<9}"
                f" #{snap.card_number:<5} followers={format_number(snap.kpis.followers)}"
                f" tags={','.join(result.tags) or '-'}"
            )
            for asset in result.assets:
                print(f"    {asset.format}: {asset.url}")
    finally:
        conn.close()

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
