"""Social score v1 constants.

Weights, normalization bounds and tier thresholds for formula "v1".
Changing any value here changes scores; ship it as a new formula version.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import NamedTuple

FORMULA_VERSION = "v1"


class Bound(NamedTuple):
    min: float
    max: float


class TierThreshold(NamedTuple):
    min: int
    max: int
    name: str


class TierStyle(NamedTuple):
    label: str
    color: str
    glow: str


# ── Score weights (sum to 1.0) ──
WEIGHTS = MappingProxyType({
    "influence": 0.35,
    "credibility": 0.15,
    "quality": 0.25,
    "momentum": 0.15,
    "health": 0.10,
})

# ── Fixed normalization bounds ──
BOUNDS = MappingProxyType({
    "influence": Bound(0, 8),    # log10(followers+1), ~100M followers
    "credibility": Bound(0, 5),  # log10(listed+1), ~100K lists
    "quality": Bound(0, 6),      # log10(avg_eng_per_post+1), ~1M engagements
    "momentum": Bound(0, 1),     # min(velocity_7d, 100) / 100
    "health": Bound(0, 1),       # clamp(followers/following, 0, 10) / 10
})

# ── Tier thresholds, scanned top-down ──
TIER_THRESHOLDS: tuple[TierThreshold, ...] = (
    TierThreshold(90, 100, "mythic"),
    TierThreshold(75, 89, "platinum"),
    TierThreshold(50, 74, "gold"),
    TierThreshold(25, 49, "silver"),
    TierThreshold(0, 24, "bronze"),
)

TIER_NAMES = frozenset(t.name for t in TIER_THRESHOLDS)

# ── Tier display config ──
TIER_CONFIG = MappingProxyType({
    "mythic": TierStyle("MYTHIC", "#FF00FF", "rgba(255,0,255,0.4)"),
    "platinum": TierStyle("PLATINUM", "#E5E4E2", "rgba(229,228,226,0.3)"),
    "gold": TierStyle("GOLD", "#FFD700", "rgba(255,215,0,0.3)"),
    "silver": TierStyle("SILVER", "#C0C0C0", "rgba(192,192,192,0.25)"),
    "bronze": TierStyle("BRONZE", "#CD7F32", "rgba(205,127,50,0.25)"),
})

# ── Card dimensions (px) ──
CARD_WIDTH = 630
CARD_HEIGHT = 880

# ── KPI display order + labels ──
KPI_LABELS: tuple[tuple[str, str], ...] = (
    ("followers", "Followers"),
    ("following", "Following"),
    ("posts", "Total Posts"),
    ("listed", "Listed"),
    ("avg_eng_per_post", "Avg Eng/Post"),
    ("velocity_7d", "Velocity 7d"),
)

# ── Provenance tags ──
TAG_GENESIS = "genesis"
TAG_FOIL = "foil"
FOIL_SCORE_JUMP = 10
