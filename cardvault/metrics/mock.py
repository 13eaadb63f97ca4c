"""Deterministic mock metrics.

Used when no X API token is configured. Seeds a PRNG from the SHA-256 of
the handle so the same handle always produces the same card.
"""

from __future__ import annotations

import hashlib
import random

from cardvault.models import KPIs


def _rng_for(username: str) -> random.Random:
    digest = hashlib.sha256(username.lower().encode("utf-8")).hexdigest()
    return random.Random(int(digest[:16], 16))


def mock_kpis(username: str) -> KPIs:
    """Generate plausible metrics for a handle.

    Args:
        username: Normalized handle.

    Returns:
        KPIs that depend only on the handle.
    """
    rng = _rng_for(username)
    followers = int(10 ** rng.uniform(1.5, 7.5))
    following = int(10 ** rng.uniform(1.0, 4.0))
    posts = rng.randint(20, 60_000)
    listed = int(followers * rng.uniform(0.0005, 0.01))
    avg_eng = round(followers * rng.uniform(0.0005, 0.03), 1)
    velocity = rng.randint(0, 60)

    return KPIs(
        followers=followers,
        following=following,
        posts=posts,
        listed=listed,
        avg_eng_per_post=avg_eng,
        velocity_7d=velocity,
    )


def mock_profile_fields(username: str, kpis: KPIs) -> dict:
    """Profile details to go with mock_kpis."""
    return {
        "display_name": username.replace("_", " ").title(),
        "avatar_url": None,
        "verified": kpis.followers >= 1_000_000,
        "bio": f"Mock profile for @{username}",
    }
