"""Card renderer for Social Card Vault.

Draws a trading card for a scored snapshot with Pillow and writes it as
a PNG image plus a single-page PDF. Files land in settings.assets_dir and
are served back through /api/cards/{filename}.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from PIL import Image, ImageColor, ImageDraw, ImageFont

from cardvault.config import Settings
from cardvault.models import CardAsset, Profile, Snapshot
from cardvault.scoring.constants import (
    CARD_HEIGHT,
    CARD_WIDTH,
    FORMULA_VERSION,
    KPI_LABELS,
    TAG_FOIL,
    TIER_CONFIG,
)
from cardvault.scoring.format import format_number, short_id
from cardvault.snapshots import record_asset

logger = logging.getLogger(__name__)

BACKGROUND = (11, 11, 16)
PANEL = (24, 24, 32)
TEXT = (245, 245, 245)
MUTED = (150, 150, 160)
BORDER = 10
MARGIN = 36


def _font(size: int) -> ImageFont.ImageFont:
    return ImageFont.load_default(size=size)


def card_filename(snapshot_id: str, fmt: str) -> str:
    return f"card_{snapshot_id}.{fmt}"


def render_card_image(snapshot: Snapshot, profile: Profile) -> Image.Image:
    """Draw the card for a snapshot.

    Args:
        snapshot: The scored snapshot.
        profile: The profile it belongs to.

    Returns:
        RGB image of CARD_WIDTH x CARD_HEIGHT.
    """
    style = TIER_CONFIG[snapshot.score.tier]
    tier_rgb = ImageColor.getrgb(style.color)
    tags = snapshot.get_tags()

    img = Image.new("RGB", (CARD_WIDTH, CARD_HEIGHT), BACKGROUND)
    draw = ImageDraw.Draw(img)

    # Tier frame
    draw.rectangle(
        (BORDER // 2, BORDER // 2, CARD_WIDTH - BORDER // 2, CARD_HEIGHT - BORDER // 2),
        outline=tier_rgb,
        width=BORDER,
    )

    # Header
    y = MARGIN
    draw.text((MARGIN, y), "SOCIAL SCORE", font=_font(16), fill=MUTED)
    draw.text(
        (CARD_WIDTH - MARGIN, y),
        f"EDITION #{snapshot.card_number}",
        font=_font(16),
        fill=MUTED,
        anchor="ra",
    )
    y += 36
    draw.text((MARGIN, y), f"@{profile.username}", font=_font(34), fill=TEXT)
    y += 44
    if profile.display_name:
        draw.text((MARGIN, y), profile.display_name, font=_font(20), fill=MUTED)
    y += 40

    # Score panel
    panel_top = y
    draw.rounded_rectangle(
        (MARGIN, panel_top, CARD_WIDTH - MARGIN, panel_top + 200),
        radius=18,
        fill=PANEL,
        outline=tier_rgb,
        width=3,
    )
    draw.text(
        (CARD_WIDTH // 2, panel_top + 90),
        str(snapshot.score.value),
        font=_font(120),
        fill=tier_rgb,
        anchor="mm",
    )
    draw.text(
        (CARD_WIDTH // 2, panel_top + 170),
        style.label,
        font=_font(28),
        fill=tier_rgb,
        anchor="mm",
    )
    y = panel_top + 230

    # KPI rows
    for key, label in KPI_LABELS:
        draw.text((MARGIN + 8, y), label.upper(), font=_font(18), fill=MUTED)
        draw.text(
            (CARD_WIDTH - MARGIN - 8, y),
            format_number(getattr(snapshot.kpis, key)),
            font=_font(22),
            fill=TEXT,
            anchor="ra",
        )
        y += 38

    # Tags
    y += 10
    x = MARGIN
    for tag in tags:
        label = tag.upper()
        width = int(draw.textlength(label, font=_font(16))) + 24
        draw.rounded_rectangle((x, y, x + width, y + 30), radius=10, outline=tier_rgb, width=2)
        draw.text((x + 12, y + 15), label, font=_font(16), fill=tier_rgb, anchor="lm")
        x += width + 10

    if TAG_FOIL in tags:
        draw.polygon(
            [(CARD_WIDTH - 150, 0), (CARD_WIDTH, 0), (CARD_WIDTH, 150)],
            fill=tier_rgb,
        )
        draw.text((CARD_WIDTH - 40, 40), "FOIL", font=_font(18), fill=BACKGROUND, anchor="mm")

    # Footer
    captured = snapshot.captured_at_dt().strftime("%Y-%m-%d %H:%M UTC")
    footer_y = CARD_HEIGHT - MARGIN - 20
    draw.text((MARGIN, footer_y), f"ID {short_id(snapshot.id)}", font=_font(16), fill=MUTED)
    draw.text(
        (CARD_WIDTH - MARGIN, footer_y),
        f"{captured} | {FORMULA_VERSION}",
        font=_font(16),
        fill=MUTED,
        anchor="ra",
    )
    return img


def write_card_files(
    snapshot: Snapshot,
    profile: Profile,
    assets_dir: Path,
) -> dict[str, Path]:
    """Render a card and save it as PNG and PDF.

    Returns:
        Mapping of format ("png", "pdf") to written file path.
    """
    assets_dir.mkdir(parents=True, exist_ok=True)
    img = render_card_image(snapshot, profile)

    png_path = assets_dir / card_filename(snapshot.id, "png")
    pdf_path = assets_dir / card_filename(snapshot.id, "pdf")
    img.save(png_path, "PNG", optimize=True)
    img.save(pdf_path, "PDF", resolution=72.0)

    logger.info("Rendered card %s for @%s", short_id(snapshot.id), profile.username)
    return {"png": png_path, "pdf": pdf_path}


def render_and_record(
    conn: sqlite3.Connection,
    snapshot: Snapshot,
    profile: Profile,
    settings: Settings,
) -> list[CardAsset]:
    """Render a snapshot's card and store its asset rows.

    Args:
        conn: Active database connection.
        snapshot: The scored snapshot.
        profile: Its profile.
        settings: Settings carrying assets_dir.

    Returns:
        The stored CardAsset rows (png first).
    """
    paths = write_card_files(snapshot, profile, settings.assets_dir_resolved)
    now = datetime.now(timezone.utc).isoformat()

    assets = []
    for fmt, path in paths.items():
        asset = CardAsset(
            snapshot_id=snapshot.id,
            format=fmt,
            url=f"/api/cards/{path.name}",
            width=CARD_WIDTH,
            height=CARD_HEIGHT,
            created_at=now,
        )
        assets.append(record_asset(conn, asset))
    return assets
