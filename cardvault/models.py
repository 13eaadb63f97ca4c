"""Social Card Vault Pydantic models.

Data models matching the SQLite schema plus the scoring value types.
Used for validation, serialization, and type safety throughout the application.
Wire names (camelCase) are exposed through aliases; dump with by_alias=True
for API responses.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cardvault.scoring.constants import TIER_NAMES

VISIBILITIES = frozenset({"public", "private", "unlisted"})
ASSET_FORMATS = frozenset({"png", "pdf"})
PLATFORMS = frozenset({"x"})


def _utc_now() -> str:
    """Return current UTC timestamp as ISO string."""
    return datetime.now(timezone.utc).isoformat()


def _uuid() -> str:
    """Generate a new UUID4 string."""
    return str(uuid4())


class KPIs(BaseModel):
    """Raw engagement metrics for one handle at one instant.

    No range validation: the scorer clamps whatever it is given.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    followers: float = 0
    following: float = 0
    posts: float = 0
    listed: float = 0
    avg_eng_per_post: float = Field(default=0, alias="avgEngPerPost")
    velocity_7d: float = Field(default=0, alias="velocity7d")


class SubScores(BaseModel):
    """Intermediate score components. Never persisted."""

    model_config = ConfigDict(frozen=True)

    influence: float
    credibility: float
    quality: float
    momentum: float
    health: float
    raw: float


class Score(BaseModel):
    """A computed social score. Immutable once minted."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    value: int = Field(..., ge=0, le=100)
    tier: str
    formula_version: str = Field(default="v1", alias="formulaVersion")

    @field_validator("tier")
    @classmethod
    def validate_tier(cls, v: str) -> str:
        """Ensure tier is one of the known tiers."""
        if v not in TIER_NAMES:
            raise ValueError(f"tier must be one of {sorted(TIER_NAMES)}, got '{v}'")
        return v


class Profile(BaseModel):
    """A social profile from the profiles table."""

    id: str = Field(default_factory=_uuid)
    platform: str = "x"
    username: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    verified: Optional[bool] = None
    bio: Optional[str] = None
    created_at: str = Field(default_factory=_utc_now)
    last_fetched_at: Optional[str] = None

    @field_validator("platform")
    @classmethod
    def validate_platform(cls, v: str) -> str:
        """Ensure platform is recognized."""
        if v not in PLATFORMS:
            raise ValueError(f"platform must be one of {set(PLATFORMS)}, got '{v}'")
        return v

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Profile":
        data = dict(row)
        if data.get("verified") is not None:
            data["verified"] = bool(data["verified"])
        return cls(**data)


class Snapshot(BaseModel):
    """One scored measurement of a profile. Never updated after insert."""

    id: str = Field(default_factory=_uuid)
    profile_id: str
    captured_at: str
    kpis: KPIs
    score: Score
    provenance: dict[str, Any] = Field(default_factory=dict)
    card_number: int = Field(..., ge=1)
    created_at: str = Field(default_factory=_utc_now)

    def get_tags(self) -> list[str]:
        """Tags recorded in provenance."""
        return list(self.provenance.get("tags", []))

    def captured_at_dt(self) -> datetime:
        """Parse captured_at into an aware datetime."""
        return datetime.fromisoformat(self.captured_at)

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Snapshot":
        return cls(
            id=row["id"],
            profile_id=row["profile_id"],
            captured_at=row["captured_at"],
            kpis=KPIs.model_validate_json(row["kpis"]),
            score=Score.model_validate_json(row["score"]),
            provenance=json.loads(row["provenance"]),
            card_number=row["card_number"],
            created_at=row["created_at"],
        )


class CardAsset(BaseModel):
    """A rendered card file (PNG image or PDF document)."""

    id: str = Field(default_factory=_uuid)
    snapshot_id: str
    format: str
    url: str
    width: Optional[int] = None
    height: Optional[int] = None
    created_at: str = Field(default_factory=_utc_now)

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Ensure asset format is png or pdf."""
        if v not in ASSET_FORMATS:
            raise ValueError(f"format must be one of {set(ASSET_FORMATS)}, got '{v}'")
        return v


class VaultEntry(BaseModel):
    """A snapshot saved to someone's vault."""

    id: str = Field(default_factory=_uuid)
    owner_user_id: Optional[str] = None
    owner_profile_id: Optional[str] = None
    snapshot_id: str
    visibility: str = "public"
    tags: list[str] = Field(default_factory=list)
    created_at: str = Field(default_factory=_utc_now)

    @field_validator("visibility")
    @classmethod
    def validate_visibility(cls, v: str) -> str:
        """Ensure visibility is public, private or unlisted."""
        if v not in VISIBILITIES:
            raise ValueError(f"visibility must be one of {set(VISIBILITIES)}, got '{v}'")
        return v

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "VaultEntry":
        data = dict(row)
        data["tags"] = json.loads(data["tags"]) if data.get("tags") else []
        return cls(**data)


class AuditEntry(BaseModel):
    """An audit log entry."""

    id: Optional[int] = None  # Auto-incremented by SQLite
    timestamp: str = Field(default_factory=_utc_now)
    component: str
    action: str
    details: Optional[str] = None
    success: int = Field(default=1, ge=0, le=1)
