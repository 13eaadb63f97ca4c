"""Metric provider for Social Card Vault.

Fetches profile details and engagement metrics for a handle, either live
from the X API v2 or from the deterministic mock generator.

Live mode makes two calls:
1. GET /users/by/username/{username} for profile + public_metrics
2. GET /users/{id}/tweets for recent posts, used to derive average
   engagement per post and 7-day posting velocity
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import httpx
from pydantic import BaseModel

from cardvault.config import Settings
from cardvault.metrics.mock import mock_kpis, mock_profile_fields
from cardvault.models import KPIs

logger = logging.getLogger(__name__)

USER_FIELDS = "public_metrics,description,profile_image_url,verified,name"
TWEET_FIELDS = "public_metrics,created_at"
MAX_RECENT_POSTS = 100
VELOCITY_WINDOW = timedelta(days=7)


class MetricsProviderError(RuntimeError):
    """The metric source failed or returned something unusable."""


class ProfileNotFoundError(LookupError):
    """The handle does not exist on the platform."""


class FetchedProfile(BaseModel):
    """Profile details plus metrics from one provider call."""

    username: str
    platform: str = "x"
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    verified: Optional[bool] = None
    bio: Optional[str] = None
    kpis: KPIs
    source: str


def _get_json(client: httpx.Client, path: str, params: dict[str, Any]) -> dict:
    """GET a path on the X API and return the decoded body.

    Raises:
        MetricsProviderError: On transport errors, non-2xx or bad JSON.
    """
    try:
        response = client.get(path, params=params)
        response.raise_for_status()
        return response.json()
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 404:
            raise ProfileNotFoundError(path) from e
        logger.error("X API error %d on %s: %s", e.response.status_code, path, e.response.text)
        raise MetricsProviderError(f"X API returned {e.response.status_code}") from e
    except httpx.HTTPError as e:
        logger.error("X API request failed on %s: %s", path, e)
        raise MetricsProviderError(f"X API request failed: {e}") from e
    except ValueError as e:
        raise MetricsProviderError("X API returned invalid JSON") from e


def _parse_created_at(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def summarize_posts(posts: list[dict], now: datetime) -> tuple[float, int]:
    """Derive (avg engagement per post, posts in the last 7 days).

    Engagement per post is likes + reposts + replies + quotes.
    """
    if not posts:
        return 0.0, 0

    total_engagement = 0
    recent = 0
    cutoff = now - VELOCITY_WINDOW
    for post in posts:
        metrics = post.get("public_metrics") or {}
        total_engagement += (
            metrics.get("like_count", 0)
            + metrics.get("retweet_count", 0)
            + metrics.get("reply_count", 0)
            + metrics.get("quote_count", 0)
        )
        created = post.get("created_at")
        if created and _parse_created_at(created) >= cutoff:
            recent += 1

    return round(total_engagement / len(posts), 2), recent


def fetch_live(
    username: str,
    settings: Settings,
    client: Optional[httpx.Client] = None,
    now: Optional[datetime] = None,
) -> FetchedProfile:
    """Fetch a profile and its metrics from the X API v2.

    Args:
        username: Normalized handle.
        settings: Settings carrying the bearer token and API base.
        client: Optional preconfigured client (tests inject a mock transport).
        now: Reference instant for the 7-day window.

    Raises:
        MetricsProviderError: If no token is configured or the API fails.
        ProfileNotFoundError: If the handle does not exist.
    """
    if not settings.has_x_token():
        raise MetricsProviderError("X API bearer token is not configured")

    now = now or datetime.now(timezone.utc)
    own_client = client is None
    if own_client:
        client = httpx.Client(
            base_url=settings.x_api_base,
            timeout=settings.metrics_timeout_s,
            headers={"Authorization": f"Bearer {settings.x_bearer_token}"},
        )

    try:
        body = _get_json(client, f"/users/by/username/{username}", {"user.fields": USER_FIELDS})
        user = body.get("data")
        if not user:
            # X reports unknown handles as 200 + errors[]
            logger.info("X API has no user @%s: %s", username, body.get("errors"))
            raise ProfileNotFoundError(username)

        timeline = _get_json(
            client,
            f"/users/{user['id']}/tweets",
            {
                "max_results": MAX_RECENT_POSTS,
                "tweet.fields": TWEET_FIELDS,
                "exclude": "retweets,replies",
            },
        )
    finally:
        if own_client:
            client.close()

    public = user.get("public_metrics") or {}
    avg_eng, velocity = summarize_posts(timeline.get("data") or [], now)

    kpis = KPIs(
        followers=public.get("followers_count", 0),
        following=public.get("following_count", 0),
        posts=public.get("tweet_count", 0),
        listed=public.get("listed_count", 0),
        avg_eng_per_post=avg_eng,
        velocity_7d=velocity,
    )
    logger.info("Fetched live metrics for @%s", username)
    return FetchedProfile(
        username=username,
        display_name=user.get("name"),
        avatar_url=user.get("profile_image_url"),
        verified=user.get("verified"),
        bio=user.get("description"),
        kpis=kpis,
        source="live",
    )


def fetch_mock(username: str) -> FetchedProfile:
    """Build a deterministic mock profile for a handle."""
    kpis = mock_kpis(username)
    return FetchedProfile(
        username=username,
        kpis=kpis,
        source="mock",
        **mock_profile_fields(username, kpis),
    )


def fetch_metrics(
    username: str,
    settings: Settings,
    client: Optional[httpx.Client] = None,
) -> FetchedProfile:
    """Fetch metrics for a normalized handle using the configured mode.

    Args:
        username: Normalized handle.
        settings: Application settings (metrics_mode decides the source).
        client: Optional httpx client for live mode.

    Returns:
        FetchedProfile with kpis and source ("live" or "mock").
    """
    if settings.use_live_metrics():
        return fetch_live(username, settings, client=client)
    logger.debug("Using mock metrics for @%s", username)
    return fetch_mock(username)
