"""Social score calculator, formula v1.

Pure functions only: metrics in, Score out. No I/O, no shared state, so
two calls with the same metrics always produce the same Score.
"""

from __future__ import annotations

import math

from cardvault.models import KPIs, Score, SubScores
from cardvault.scoring.constants import (
    BOUNDS,
    FORMULA_VERSION,
    TIER_THRESHOLDS,
    WEIGHTS,
)


def clamp(n: float, lo: float, hi: float) -> float:
    """Clamp n into [lo, hi]."""
    return max(lo, min(hi, n))


def _log_count(n: float) -> float:
    # negative counts would make log10 undefined
    return math.log10(max(n, 0.0) + 1)


def compute_sub_scores(kpis: KPIs) -> SubScores:
    """Compute the five weighted components and their raw sum.

    Args:
        kpis: Raw engagement metrics.

    Returns:
        SubScores with influence, credibility, quality, momentum, health, raw.
    """
    influence = _log_count(kpis.followers)
    credibility = _log_count(kpis.listed)
    quality = _log_count(kpis.avg_eng_per_post)
    momentum = clamp(kpis.velocity_7d, 0, 100) / 100
    health = clamp(max(kpis.followers, 0.0) / max(kpis.following, 1), 0, 10) / 10

    parts = {
        "influence": influence,
        "credibility": credibility,
        "quality": quality,
        "momentum": momentum,
        "health": health,
    }
    raw = sum(WEIGHTS[name] * value for name, value in parts.items())

    return SubScores(**parts, raw=raw)


def _weighted_bound(attr: str) -> float:
    return sum(WEIGHTS[name] * getattr(BOUNDS[name], attr) for name in WEIGHTS)


RAW_MIN = _weighted_bound("min")
RAW_MAX = _weighted_bound("max")


def normalize_raw(raw: float) -> float:
    """Map a raw weighted sum onto [0, 1] using the fixed v1 bounds."""
    return clamp((raw - RAW_MIN) / (RAW_MAX - RAW_MIN), 0, 1)


def round_half_up(x: float) -> int:
    """Round to the nearest integer, .5 going up (not banker's rounding)."""
    return int(math.floor(x + 0.5))


def assign_tier(value: int) -> str:
    """Return the first tier whose lower bound value reaches."""
    for threshold in TIER_THRESHOLDS:
        if value >= threshold.min:
            return threshold.name
    return "bronze"


def social_score_v1(kpis: KPIs) -> Score:
    """Score a metrics record with formula v1.

    Args:
        kpis: Raw engagement metrics.

    Returns:
        Score with integer value in [0, 100], tier and formula version.
    """
    sub = compute_sub_scores(kpis)
    value = round_half_up(normalize_raw(sub.raw) * 100)
    return Score(value=value, tier=assign_tier(value), formula_version=FORMULA_VERSION)
