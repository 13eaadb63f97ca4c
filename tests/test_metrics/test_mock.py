"""Tests for the deterministic mock provider."""

from cardvault.metrics.mock import mock_kpis, mock_profile_fields
from cardvault.metrics.provider import fetch_mock


def test_same_handle_same_metrics():
    assert mock_kpis("jack") == mock_kpis("jack")


def test_case_insensitive():
    assert mock_kpis("Jack") == mock_kpis("jack")


def test_different_handles_differ():
    assert mock_kpis("jack") != mock_kpis("nasa")


def test_metrics_are_plausible():
    for handle in ["jack", "nasa", "a", "someone_else", "x" * 15]:
        kpis = mock_kpis(handle)
        assert kpis.followers >= 31
        assert kpis.following >= 10
        assert 20 <= kpis.posts <= 60_000
        assert kpis.listed >= 0
        assert kpis.avg_eng_per_post >= 0
        assert 0 <= kpis.velocity_7d <= 60


def test_profile_fields():
    kpis = mock_kpis("night_owl")
    fields = mock_profile_fields("night_owl", kpis)
    assert fields["display_name"] == "Night Owl"
    assert fields["verified"] == (kpis.followers >= 1_000_000)


def test_fetch_mock_source():
    fetched = fetch_mock("jack")
    assert fetched.source == "mock"
    assert fetched.username == "jack"
    assert fetched.kpis == mock_kpis("jack")
