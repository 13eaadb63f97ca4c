"""Social Card Vault REST API.

FastAPI server for capturing handles, serving cards, the vault and the
leaderboard. Callers identify themselves with an X-User-Id header; issuing
and verifying that identity is the job of whatever sits in front of us.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from pydantic import BaseModel, Field

from cardvault import __version__
from cardvault.config import get_settings
from cardvault.db import get_initialized_connection
from cardvault.metrics.provider import MetricsProviderError, ProfileNotFoundError
from cardvault.pipeline.capture import capture_snapshot
from cardvault.scoring.constants import FORMULA_VERSION, TIER_CONFIG, TIER_THRESHOLDS
from cardvault.scoring.format import short_id
from cardvault.snapshots import (
    SnapshotNotFoundError,
    UnknownProfileError,
    get_profile,
    get_snapshot,
    list_assets,
)
from cardvault.vault.compare import compare_snapshots
from cardvault.vault.entries import get_public_vault, list_my_vault, save_to_vault
from cardvault.vault.leaderboard import get_leaderboard, get_monthly_leaderboard

logger = logging.getLogger(__name__)

app = FastAPI(title="Social Card Vault API", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

_CARD_FILE_RE = re.compile(r"^card_[0-9a-f-]{36}\.(png|pdf)$")
_MEDIA_TYPES = {"png": "image/png", "pdf": "application/pdf"}


def _get_conn():
    """Get an initialized DB connection."""
    settings = get_settings()
    return get_initialized_connection(settings.db_path)


def _dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)


def _require_user(user_id: Optional[str]) -> str:
    if not user_id or not user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return user_id.strip()


# ── Request Models ──────────────────────────────────────────────


class CaptureRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)


class SaveToVaultRequest(BaseModel):
    snapshotId: str = Field(..., description="Snapshot to save")
    visibility: str = Field("public", description="public, private or unlisted")


# ── Health ──────────────────────────────────────────────────────


@app.get("/health")
def health():
    """API health check, also verifies DB connectivity."""
    db_ok = False
    try:
        conn = _get_conn()
        conn.execute("SELECT 1").fetchone()
        conn.close()
        db_ok = True
    except Exception as e:
        logger.warning("Health check DB probe failed: %s", e)
    return {
        "status": "online" if db_ok else "degraded",
        "version": __version__,
        "formulaVersion": FORMULA_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "db": "ok" if db_ok else "error",
    }


# ── Capture ─────────────────────────────────────────────────────


@app.post("/api/capture-snapshot")
def capture(req: CaptureRequest):
    """Fetch metrics for a handle, score it and mint a card."""
    settings = get_settings()
    conn = _get_conn()
    try:
        result = capture_snapshot(conn, req.username, settings)
        return _dump(result)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProfileNotFoundError:
        raise HTTPException(status_code=404, detail=f"No such profile: {req.username}")
    except MetricsProviderError as e:
        raise HTTPException(status_code=502, detail=str(e))
    finally:
        conn.close()


# ── Cards ───────────────────────────────────────────────────────


@app.get("/api/card/{snapshot_id}")
def get_card(snapshot_id: str):
    """Snapshot, profile and assets for one card."""
    settings = get_settings()
    conn = _get_conn()
    try:
        snapshot = get_snapshot(conn, snapshot_id)
        profile = get_profile(conn, snapshot.profile_id)
        return {
            "profile": _dump(profile),
            "snapshot": _dump(snapshot),
            "assets": [_dump(a) for a in list_assets(conn, snapshot.id)],
            "cardId": short_id(snapshot.id),
            "cardUrl": f"{settings.public_base_url.rstrip('/')}/card/{snapshot.id}",
        }
    except SnapshotNotFoundError:
        raise HTTPException(status_code=404, detail="Snapshot not found")
    finally:
        conn.close()


@app.get("/api/assets/{snapshot_id}")
def get_assets(snapshot_id: str):
    """Rendered files for a snapshot."""
    conn = _get_conn()
    try:
        get_snapshot(conn, snapshot_id)
        return {"assets": [_dump(a) for a in list_assets(conn, snapshot_id)]}
    except SnapshotNotFoundError:
        raise HTTPException(status_code=404, detail="Snapshot not found")
    finally:
        conn.close()


@app.get("/api/cards/{filename}")
def get_card_file(filename: str):
    """Serve a rendered PNG or PDF card."""
    match = _CARD_FILE_RE.match(filename)
    if not match:
        raise HTTPException(status_code=404, detail="Card file not found")

    path = get_settings().assets_dir_resolved / filename
    if not path.exists():
        raise HTTPException(status_code=404, detail="Card file not found")

    return FileResponse(
        path=str(path),
        media_type=_MEDIA_TYPES[match.group(1)],
        headers={"Cache-Control": "public, max-age=31536000, immutable"},
    )


@app.get("/api/tiers")
def tiers():
    """Tier thresholds and display config for the current formula."""
    return {
        "formulaVersion": FORMULA_VERSION,
        "tiers": [
            {
                "name": t.name,
                "min": t.min,
                "max": t.max,
                **TIER_CONFIG[t.name]._asdict(),
            }
            for t in TIER_THRESHOLDS
        ],
    }


@app.get("/api/compare")
def compare(a: str = Query(...), b: str = Query(...)):
    """Compare two snapshots (deltas are b minus a)."""
    conn = _get_conn()
    try:
        result = compare_snapshots(conn, a, b)
        return {
            "a": _dump(result["a"]),
            "b": _dump(result["b"]),
            "delta": result["delta"],
        }
    except SnapshotNotFoundError:
        raise HTTPException(status_code=404, detail="Snapshot not found")
    finally:
        conn.close()


# ── Leaderboard ─────────────────────────────────────────────────


@app.get("/api/leaderboard")
def leaderboard(
    days: Optional[int] = Query(default=None, ge=1, le=366),
    limit: Optional[int] = Query(default=None, ge=1),
    month: Optional[str] = Query(default=None, description="YYYY-MM, UTC"),
):
    """Top cards by score for a rolling window or a calendar month."""
    settings = get_settings()
    limit = min(limit or settings.leaderboard_default_limit, settings.leaderboard_max_limit)

    conn = _get_conn()
    try:
        if month:
            items = get_monthly_leaderboard(conn, month, limit=limit)
        else:
            items = get_leaderboard(
                conn,
                days=days or settings.leaderboard_default_days,
                limit=limit,
            )
        return {"items": [_dump(i) for i in items]}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    finally:
        conn.close()


# ── Vault ───────────────────────────────────────────────────────


@app.post("/api/save-to-vault")
def save_vault(req: SaveToVaultRequest, x_user_id: Optional[str] = Header(default=None)):
    """Save a snapshot to the caller's vault."""
    user_id = _require_user(x_user_id)
    conn = _get_conn()
    try:
        entry = save_to_vault(conn, req.snapshotId, req.visibility, user_id)
        return {"ok": True, "vaultEntry": _dump(entry)}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SnapshotNotFoundError:
        raise HTTPException(status_code=404, detail="Snapshot not found")
    finally:
        conn.close()


@app.get("/api/my-vault")
def my_vault(x_user_id: Optional[str] = Header(default=None)):
    """Every card the caller has saved."""
    user_id = _require_user(x_user_id)
    conn = _get_conn()
    try:
        return {"cards": [_dump(c) for c in list_my_vault(conn, user_id)]}
    finally:
        conn.close()


@app.get("/api/vault/{username}")
def public_vault(username: str):
    """A profile's publicly saved cards."""
    conn = _get_conn()
    try:
        profile, cards = get_public_vault(conn, username)
        return {"profile": _dump(profile), "cards": [_dump(c) for c in cards]}
    except UnknownProfileError:
        raise HTTPException(status_code=404, detail="Profile not found")
    finally:
        conn.close()


# ── CLI Entry Point ─────────────────────────────────────────────


def main():
    """Start the API server."""
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host="127.0.0.1", port=8040, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
