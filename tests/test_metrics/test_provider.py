"""Tests for the live X API provider, using an httpx mock transport."""

from datetime import datetime, timezone

import httpx
import pytest

from cardvault.config import Settings
from cardvault.metrics.provider import (
    MetricsProviderError,
    ProfileNotFoundError,
    fetch_live,
    fetch_metrics,
    summarize_posts,
)

NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)

USER = {
    "data": {
        "id": "42",
        "name": "Jack",
        "username": "jack",
        "description": "just setting up",
        "profile_image_url": "https://img.test/jack.jpg",
        "verified": True,
        "public_metrics": {
            "followers_count": 6_500_000,
            "following_count": 4_000,
            "tweet_count": 29_000,
            "listed_count": 25_000,
        },
    }
}

TWEETS = {
    "data": [
        {
            "id": "1",
            "created_at": "2024-03-09T08:00:00.000Z",
            "public_metrics": {"like_count": 10, "retweet_count": 2, "reply_count": 1, "quote_count": 0},
        },
        {
            "id": "2",
            "created_at": "2024-02-01T08:00:00.000Z",
            "public_metrics": {"like_count": 5, "retweet_count": 0, "reply_count": 0, "quote_count": 1},
        },
    ]
}


@pytest.fixture
def settings():
    return Settings(_env_file=None, metrics_mode="live", x_bearer_token="token-123")


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler), base_url="https://api.test/2")


def _happy_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/users/by/username/jack"):
        assert "public_metrics" in request.url.params["user.fields"]
        return httpx.Response(200, json=USER)
    if request.url.path.endswith("/users/42/tweets"):
        assert request.url.params["max_results"] == "100"
        return httpx.Response(200, json=TWEETS)
    return httpx.Response(404, json={})


def test_fetch_live_maps_metrics(settings):
    fetched = fetch_live("jack", settings, client=_client(_happy_handler), now=NOW)

    assert fetched.source == "live"
    assert fetched.display_name == "Jack"
    assert fetched.verified is True
    assert fetched.avatar_url == "https://img.test/jack.jpg"
    assert fetched.kpis.followers == 6_500_000
    assert fetched.kpis.following == 4_000
    assert fetched.kpis.posts == 29_000
    assert fetched.kpis.listed == 25_000
    assert fetched.kpis.avg_eng_per_post == 9.5
    assert fetched.kpis.velocity_7d == 1


def test_unknown_user_in_body(settings):
    def handler(request):
        return httpx.Response(200, json={"errors": [{"title": "Not Found Error"}]})

    with pytest.raises(ProfileNotFoundError):
        fetch_live("ghost", settings, client=_client(handler), now=NOW)


def test_http_404_is_not_found(settings):
    with pytest.raises(ProfileNotFoundError):
        fetch_live("ghost", settings, client=_client(lambda r: httpx.Response(404)), now=NOW)


def test_server_error_is_provider_error(settings):
    def handler(request):
        return httpx.Response(503, text="over capacity")

    with pytest.raises(MetricsProviderError, match="503"):
        fetch_live("jack", settings, client=_client(handler), now=NOW)


def test_transport_error_is_provider_error(settings):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(MetricsProviderError):
        fetch_live("jack", settings, client=_client(handler), now=NOW)


def test_invalid_json_is_provider_error(settings):
    def handler(request):
        return httpx.Response(200, text="<html>")

    with pytest.raises(MetricsProviderError, match="invalid JSON"):
        fetch_live("jack", settings, client=_client(handler), now=NOW)


def test_missing_token_is_provider_error():
    settings = Settings(_env_file=None, metrics_mode="live", x_bearer_token="")
    with pytest.raises(MetricsProviderError, match="not configured"):
        fetch_live("jack", settings)


def test_no_posts():
    assert summarize_posts([], NOW) == (0.0, 0)


def test_fetch_metrics_mock_mode_never_calls_api():
    settings = Settings(_env_file=None, metrics_mode="mock", x_bearer_token="token-123")

    def handler(request):
        raise AssertionError("live API should not be called")

    fetched = fetch_metrics("jack", settings, client=_client(handler))
    assert fetched.source == "mock"


def test_fetch_metrics_live_mode(settings):
    fetched = fetch_metrics("jack", settings, client=_client(_happy_handler))
    assert fetched.source == "live"
